"""
worker.py - Crawl Worker Threads

One thread per URL. A worker fetches its page, records the links nobody
has scheduled yet on its database, and spawns a worker for each of them
through its owning session.

Key role: Extends the frontier while honoring the session's drain gate
"""

from threading import Thread

from utils import get_logger
from webcrawler.errors import FetchError, StoreError


class CrawlWorker(Thread):
    """
    Worker thread for a single URL.

    The session owns the workers map; a worker only removes itself, and
    only while the session is still accepting new workers. Once the gate
    is closed the draining thread is the sole mutator of the map.
    """

    def __init__(self, url, session, database):
        """
        Args:
            url: Page to crawl
            session: Owning session (gate, workers map, store, link provider)
            database: Logical database the URL was scheduled on
        """
        self.logger = get_logger("WORKER", "Worker")
        self.url = url
        self.session = session
        self.database = database
        super().__init__(daemon=True, name=f"CrawlWorker-{url[:64]}")

    def run(self):
        session = self.session
        if not session.accepting_new:
            return

        with session.fetch_slot:
            # The gate may have closed while waiting for a slot
            if not session.accepting_new:
                return
            try:
                links = session.link_provider(self.url)
            except FetchError as e:
                self.logger.info(f"Dropping {self.url}: {e}")
                session.release(self)
                return

        new_links = []
        try:
            with session.registry.exclusive_store():
                if session.accepting_new:
                    new_links = session.store.add_new_sites(self.database, links)
        except StoreError:
            self.logger.exception(
                f"Unable to record links found on {self.url}, abandoning them.")

        session.spawn(new_links, self.database)
        session.release(self)
