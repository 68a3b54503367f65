"""
server.py - Line Protocol Listener

Accepts TCP connections and gives each one a Session. Every request is
one LF-terminated line; every reply is written back as one line.

Key role: Session lifecycle per connection (register, execute, drain,
unregister)
"""

import socketserver

from utils import get_logger
from webcrawler.commands import error_reply
from webcrawler.errors import UnknownCommand
from webcrawler.registry import SessionRegistry
from webcrawler.session import Session

UNSUPPORTED_COMMAND = error_reply("unsupported command")


class CommandHandler(socketserver.StreamRequestHandler):
    """Handle one client connection. Returns when the client disconnects."""

    def handle(self):
        server = self.server
        logger = server.logger
        logger.info(f"client connected from {self.client_address[0]}:{self.client_address[1]}")

        session = server.open_session()
        try:
            for raw in self.rfile:
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                logger.info(f"request: {line}")
                try:
                    output = session.execute(line)
                except UnknownCommand:
                    output = UNSUPPORTED_COMMAND
                logger.info(f"reply: {output}")
                self.wfile.write(f"{output}\n".encode("utf-8"))
                self.wfile.flush()
        except OSError as e:
            logger.info(f"connection error: {e}")
        finally:
            server.close_session(session)
            logger.info("client disconnected")


class CrawlerServer(socketserver.ThreadingTCPServer):
    """
    Multi-client command server.

    One thread per connection runs that client's command loop; all
    sessions share one registry and one store.
    """

    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, config, store, link_provider, registry=None,
                 handler_class=CommandHandler):
        """
        Args:
            config: Config object (host, port and session settings)
            store: Store shared by every session
            link_provider: Callable handed to every session's workers
            registry: SessionRegistry (a new one if omitted)
        """
        self.logger = get_logger("SERVER")
        self.config = config
        self.store = store
        self.link_provider = link_provider
        self.registry = registry or SessionRegistry()
        super().__init__((config.host, config.port), handler_class)

    @property
    def port(self):
        return self.server_address[1]

    def open_session(self):
        session = Session(self.registry, self.store, self.config, self.link_provider)
        self.registry.register(session)
        return session

    def close_session(self, session):
        try:
            session.close()
        finally:
            self.registry.unregister(session)
