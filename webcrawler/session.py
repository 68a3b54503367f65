"""
session.py - Client Session

One Session per connected client. Translates command lines into store
changes and owns every crawl worker the client spawned.

Workers are drained, never interrupted: stop and pause close the
accepting gate, give in-flight workers a grace period to notice, then
join them. While the gate is closed no worker enters the workers map and
no worker removes itself from it.

Key role: Where the crawl lifecycle and its concurrency contract live
"""

import time
from itertools import count
from threading import BoundedSemaphore, Event, Lock

from utils import get_logger, plural
from webcrawler.commands import help_text, parse_command, replies_errors
from webcrawler.errors import BadArgument, EmptyPrecondition, StoreError, UnknownCommand
from webcrawler.store import is_valid_database_name
from webcrawler.worker import CrawlWorker

_session_ids = count(1)


class Session(object):
    """
    Interactive state of one client.

    The session binds to the configured default database on creation,
    creating it if needed.
    """

    def __init__(self, registry, store, config, link_provider, worker_factory=CrawlWorker):
        """
        Args:
            registry: SessionRegistry shared by all sessions
            store: Store holding every logical database
            config: Config object (default database, seed file, grace period)
            link_provider: Callable url -> iterable of absolute urls, raising FetchError
            worker_factory: Factory for worker threads (for testing)
        """
        self.logger = get_logger("SESSION", "Session")
        self.id = next(_session_ids)
        self.registry = registry
        self.store = store
        self.config = config
        self.link_provider = link_provider
        self.worker_factory = worker_factory
        self.current_database = None

        # Bounds concurrent downloads; workers beyond it wait for a slot
        self.fetch_slot = BoundedSemaphore(config.max_fetches)

        self._workers = {}  # url -> worker thread
        self._workers_lock = Lock()  # Protects _workers
        self._drain_lock = Lock()  # Serializes stop/pause
        self._accepting = Event()
        self._accepting.set()

        self._commands = {
            "drop": self.drop,
            "help": self.help,
            "init": self.init,
            "pause": self.pause,
            "resume": self.resume,
            "sanitize": self.sanitize,
            "start": self.start,
            "stop": self.stop,
            "threads": self.threads,
            "use": self.use,
        }

        reply = self.use(config.default_database)
        self.logger.info(f"Session {self.id} opened: {reply}")

    @property
    def accepting_new(self):
        return self._accepting.is_set()

    def workers(self):
        """Snapshot of the workers map."""
        with self._workers_lock:
            return dict(self._workers)

    def execute(self, line):
        """
        Run one command line and return its reply.

        Raises:
            UnknownCommand: The command token names no command
        """
        command, arg = parse_command(line)
        handler = self._commands.get(command)
        if handler is None:
            raise UnknownCommand(f"unsupported command {command!r}")
        return handler(arg)

    def close(self):
        """Drain any remaining workers when the client goes away."""
        if self.workers():
            reply = self.stop()
            self.logger.info(f"Session {self.id} closed: {reply}")

    # ------------------------------------------------------------------
    # Commands

    @replies_errors
    def drop(self, database=None):
        if not database:
            database = self.config.default_database
        self._check_database_name(database)

        # No client may be crawling the database while it is dropped
        self.registry.stop_database(database)
        self._locked(f"unable to drop database {database}",
                     self.store.drop_database, database)
        return f"dropped database {database}"

    @replies_errors
    def help(self, arg=None):
        return help_text(self.config.default_database)

    @replies_errors
    def init(self, arg=None):
        database = self.current_database
        self.registry.stop_database(database)
        self._locked("unable to initialize new tables", self._create_tables, database)
        return "initialized new tables"

    @replies_errors
    def pause(self, arg=None):
        self._drain("pause", save_state=True)
        return "paused all threads"

    @replies_errors
    def resume(self, arg=None):
        database = self.current_database
        sites = self._locked("unable to retrieve saved state",
                             self.store.drain_state, database)
        if not sites:
            raise EmptyPrecondition("no state was saved")
        self.spawn(sites, database)
        return f"resumed {plural(len(sites), 'thread')}"

    @replies_errors
    def sanitize(self, arg=None):
        # Reserved until the jobs table has a format
        return "database has been sanitized"

    @replies_errors
    def start(self, num=None):
        thread_count = self._parse_thread_count(num)
        database = self.current_database
        seeds = self._locked("unable to start threads",
                             self.store.claim_seeds, database, thread_count)
        if not seeds:
            raise EmptyPrecondition("no more seeds to start threads from")
        started = self.spawn(seeds, database)
        return f"started {plural(started, 'thread')}"

    @replies_errors
    def stop(self, arg=None):
        self._drain("stop")
        return "stopped all threads"

    @replies_errors
    def threads(self, arg=None):
        with self._workers_lock:
            running = sum(1 for worker in self._workers.values() if worker.is_alive())
        return f"{plural(running, 'thread')} currently running"

    @replies_errors
    def use(self, database=None):
        if not database:
            database = self.config.default_database
        self._check_database_name(database)

        # Save whatever this client was crawling before switching. Workers
        # of the old database must be gone before rebinding, saved or not.
        try:
            self._drain("pause", save_state=True)
        except EmptyPrecondition:
            pass
        except StoreError:
            self.logger.warning(
                f"Session {self.id}: crawl state of {self.current_database} "
                f"was not saved, stopping its workers before switching.")
            try:
                self._drain("stop")
            except EmptyPrecondition:
                pass

        self._locked(f"unable to use database {database}",
                     self.store.create_database, database)
        self.current_database = database
        return f"using database {database}"

    # ------------------------------------------------------------------
    # Worker lifecycle

    def spawn(self, sites, database=None):
        """
        Start one worker per site while the session accepts new workers.

        A worker is registered and started under the workers lock, so a
        drain's snapshot contains every worker that was ever started.

        Returns:
            Number of workers started
        """
        if database is None:
            database = self.current_database
        spawned = 0
        for site in sites:
            with self._workers_lock:
                if not self._accepting.is_set():
                    break
                running = self._workers.get(site)
                if running is not None and running.is_alive():
                    continue
                worker = self.worker_factory(site, self, database)
                self._workers[site] = worker
                worker.start()
            spawned += 1
        return spawned

    def release(self, worker):
        """Remove a finished worker, unless a drain owns the map."""
        with self._workers_lock:
            if not self._accepting.is_set():
                return
            if self._workers.get(worker.url) is worker:
                del self._workers[worker.url]

    def _drain(self, action, save_state=False):
        with self._drain_lock:
            self._accepting.clear()
            try:
                # Let in-flight workers see the closed gate
                time.sleep(self.config.grace_period)

                with self._workers_lock:
                    workers = dict(self._workers)
                if not workers:
                    raise EmptyPrecondition(f"no threads to {action}")

                if save_state:
                    self._locked("unable to save state to database",
                                 self.store.save_state, self.current_database,
                                 list(workers))

                for worker in workers.values():
                    worker.join()
                with self._workers_lock:
                    self._workers.clear()
                self.logger.info(
                    f"Session {self.id}: {action} joined {plural(len(workers), 'worker')}.")
            finally:
                self._accepting.set()

    # ------------------------------------------------------------------
    # Helpers

    def _locked(self, failure, fn, *args):
        """Run a store operation under the store lock, reporting failure as StoreError."""
        try:
            return self.registry.with_exclusive_store(fn, *args)
        except StoreError as e:
            self.logger.error(f"Session {self.id}: {failure}: {e}")
            raise StoreError(failure) from e

    def _create_tables(self, database):
        self.store.create_tables(database)
        seeds = self._read_seed_file()
        inserted = self.store.insert_seeds(database, seeds)
        self.logger.info(f"Loaded {plural(inserted, 'seed')} into {database}.")

    def _read_seed_file(self):
        try:
            with open(self.config.seed_file, "r", encoding="utf-8", errors="replace") as f:
                return [line.strip() for line in f]
        except OSError as e:
            self.logger.warning(
                f"Could not read seed file {self.config.seed_file}: {e}")
            return []

    @staticmethod
    def _check_database_name(database):
        if not is_valid_database_name(database):
            raise BadArgument(f"invalid database name {database}")

    @staticmethod
    def _parse_thread_count(num):
        if num is None:
            return 1
        try:
            thread_count = int(num)
        except ValueError:
            raise BadArgument("please input a number")
        if thread_count < 1:
            raise BadArgument("please input a number of threads greater than 0")
        return thread_count
