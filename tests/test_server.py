import socket
import threading

import pytest

from conftest import wait_for
from webcrawler.server import CrawlerServer


@pytest.fixture
def server(config, store, registry, web):
    server = CrawlerServer(config, store, web, registry=registry)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


class Client(object):
    def __init__(self, port):
        self.sock = socket.create_connection(("127.0.0.1", port), timeout=5)
        self.file = self.sock.makefile("rwb")

    def send(self, line):
        self.file.write(f"{line}\n".encode("utf-8"))
        self.file.flush()
        return self.file.readline().decode("utf-8").rstrip("\n")

    def close(self):
        self.file.close()
        self.sock.close()


@pytest.fixture
def connect(server):
    clients = []

    def factory():
        client = Client(server.port)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


def test_one_reply_per_line(connect):
    client = connect()
    assert client.send("threads") == "0 threads currently running"
    assert client.send("foo bar") == "ERROR: unsupported command"
    assert client.send("start -1") == "ERROR: please input a number of threads greater than 0"
    assert client.send("start abc") == "ERROR: please input a number"
    assert client.send("init") == "initialized new tables"
    assert client.send("start") == "ERROR: no more seeds to start threads from"


def test_sessions_register_and_leave(connect, registry):
    first = connect()
    second = connect()
    first.send("threads")
    second.send("use other")
    assert len(registry.sessions()) == 2
    assert sorted(s.current_database for s in registry.sessions()) == ["other", "webcrawler"]

    first.close()
    assert wait_for(lambda: len(registry.sessions()) == 1)


def test_disconnect_drains_workers(connect, registry, seed_file, web):
    seed_file.write_text("http://a/\n", encoding="utf-8")
    client = connect()
    assert client.send("init") == "initialized new tables"
    session = registry.sessions()[0]
    web.hold_until_drained(session)
    assert client.send("start") == "started 1 thread"
    workers = list(session.workers().values())

    client.close()
    assert wait_for(lambda: registry.sessions() == [])
    assert session.workers() == {}
    assert not any(worker.is_alive() for worker in workers)


def test_drop_from_another_client(connect, registry, seed_file, store, web):
    seed_file.write_text("http://a/\nhttp://b/\n", encoding="utf-8")
    crawler = connect()
    assert crawler.send("init") == "initialized new tables"
    crawling = registry.sessions()[0]
    admin = connect()
    web.hold_until_drained(crawling)
    assert crawler.send("start 2") == "started 2 threads"

    assert admin.send("drop webcrawler") == "dropped database webcrawler"
    assert crawling.workers() == {}
    assert crawler.send("threads") == "0 threads currently running"
    assert not store.database_exists("webcrawler")
