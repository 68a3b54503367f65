from threading import BoundedSemaphore, Event
from types import SimpleNamespace

from webcrawler.errors import FetchError, StoreError
from webcrawler.registry import SessionRegistry
from webcrawler.worker import CrawlWorker


class StubStore(object):
    def __init__(self, fail=False):
        self.fail = fail
        self.added = []

    def add_new_sites(self, database, links):
        if self.fail:
            raise StoreError("disk full")
        self.added.append((database, sorted(links)))
        return sorted(links)


class StubSession(object):
    """Just enough of a Session for one worker."""

    def __init__(self, links=None, error=None, store=None):
        self.registry = SessionRegistry()
        self.store = store or StubStore()
        self.fetch_slot = BoundedSemaphore(1)
        self.gate = Event()
        self.gate.set()
        self.spawned = []
        self.released = []
        self.fetched = []
        self._links = links or set()
        self._error = error

    @property
    def accepting_new(self):
        return self.gate.is_set()

    def link_provider(self, url):
        self.fetched.append(url)
        if self._error:
            raise self._error
        return self._links

    def spawn(self, sites, database=None):
        self.spawned.append((database, list(sites)))
        return len(sites)

    def release(self, worker):
        self.released.append(worker.url)


def run_worker(session, url="http://a/"):
    worker = CrawlWorker(url, session, "crawl")
    worker.start()
    worker.join(timeout=5)
    return worker


def test_worker_records_and_spawns_new_links():
    session = StubSession(links={"http://b/", "http://c/"})
    run_worker(session)
    assert session.store.added == [("crawl", ["http://b/", "http://c/"])]
    assert session.spawned == [("crawl", ["http://b/", "http://c/"])]
    assert session.released == ["http://a/"]


def test_worker_exits_when_gate_closed():
    session = StubSession(links={"http://b/"})
    session.gate.clear()
    run_worker(session)
    assert session.fetched == []
    assert session.store.added == []
    assert session.released == []


def test_fetch_error_drops_url():
    session = StubSession(error=FetchError("http://a/: status <404>"))
    run_worker(session)
    assert session.store.added == []
    assert session.spawned == []
    assert session.released == ["http://a/"]


def test_store_error_abandons_batch():
    session = StubSession(links={"http://b/"}, store=StubStore(fail=True))
    run_worker(session)
    assert session.spawned == [("crawl", [])]
    assert session.released == ["http://a/"]
