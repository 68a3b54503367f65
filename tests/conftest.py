"""Shared fixtures: temporary store, config, registry and a fake web."""

import sys
import time
from configparser import ConfigParser
from pathlib import Path
from threading import Lock

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import utils  # noqa: E402
from utils.config import Config  # noqa: E402
from webcrawler.errors import FetchError  # noqa: E402
from webcrawler.registry import SessionRegistry  # noqa: E402
from webcrawler.session import Session  # noqa: E402
from webcrawler.store import Store  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def log_dir(tmp_path_factory):
    utils.set_log_dir(str(tmp_path_factory.mktemp("logs")))


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakeWeb(object):
    """
    In-memory LinkProvider. Unknown URLs fail with FetchError.

    A fetch waits until hold(url) returns False, which lets tests keep
    workers alive until a drain closes the session's gate.
    """

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.calls = []
        self.hold = lambda url: False
        self._lock = Lock()

    def hold_until_drained(self, session, *urls):
        """Block fetches of urls (all urls if none given) while session accepts workers."""
        self.hold = lambda url: session.accepting_new and (not urls or url in urls)

    def __call__(self, url):
        with self._lock:
            self.calls.append(url)
        wait_for(lambda: not self.hold(url))
        if url not in self.pages:
            raise FetchError(f"{url}: not found")
        return set(self.pages[url])


@pytest.fixture
def seed_file(tmp_path):
    return tmp_path / "seedSites.txt"


@pytest.fixture
def config(tmp_path, seed_file):
    cparser = ConfigParser()
    cparser.read_dict({
        "SERVER": {"PORT": "0"},
        "STORE": {"DATADIR": str(tmp_path / "data")},
        "CRAWLER": {"SEEDFILE": str(seed_file), "GRACEPERIOD": "0.01"},
    })
    return Config(cparser)


@pytest.fixture
def store(config):
    return Store(config.data_dir)


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def web():
    return FakeWeb()


@pytest.fixture
def make_session(registry, store, config, web):
    sessions = []

    def factory(link_provider=None):
        session = Session(registry, store, config, link_provider or web)
        registry.register(session)
        sessions.append(session)
        return session

    yield factory

    web.hold = lambda url: False
    for session in sessions:
        session.close()
        registry.unregister(session)
