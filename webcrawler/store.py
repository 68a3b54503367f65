"""
store.py - Persistent Crawl Store

Keeps the crawl tables of every logical database:
- seeds(site, visited): seed list loaded by init, consumed by start
- sites(site): every URL ever scheduled, the dedup witness
- state(site): frontier saved by pause, drained by resume

Each logical database is one SQLite file under the data directory.
The store holds no locks of its own; callers wrap multi-statement work
in the registry's DatabaseLock.

Key role: Tabular persistence only, no crawl logic
"""

import os
import re
import sqlite3
from contextlib import contextmanager
from urllib.parse import quote

from utils import get_logger
from webcrawler.errors import StoreError

MAX_SITE_LENGTH = 1023
MAX_DATABASE_NAME_LENGTH = 63
DATABASE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")

SITE_COLUMN = f"site VARCHAR({MAX_SITE_LENGTH})"
TABLES = {
    "seeds": f"{SITE_COLUMN}, visited BIT DEFAULT 0",
    "sites": SITE_COLUMN,
    "state": SITE_COLUMN,
}


def is_valid_database_name(name):
    return (
        bool(name)
        and len(name) <= MAX_DATABASE_NAME_LENGTH
        and DATABASE_NAME.match(name) is not None
    )


class Store(object):
    """
    SQLite-backed store, one file per logical database.

    Databases are opened read-write without create, so a dropped
    database stays dropped until create_database() is called again.
    """

    def __init__(self, data_dir):
        self.logger = get_logger("STORE")
        self.data_dir = data_dir

    def path(self, database):
        if not is_valid_database_name(database):
            raise StoreError(f"invalid database name {database!r}")
        return os.path.join(self.data_dir, f"{database}.sqlite3")

    def database_exists(self, database):
        return os.path.exists(self.path(database))

    def create_database(self, database):
        """Create the database file if it does not exist yet."""
        path = self.path(database)
        if os.path.exists(path):
            return False
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            sqlite3.connect(path).close()
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"unable to create database {database}: {e}") from e
        self.logger.info(f"Created database {database} at {path}.")
        return True

    def drop_database(self, database):
        """Delete the database file. Returns False if there was none."""
        path = self.path(database)
        if not os.path.exists(path):
            return False
        try:
            os.remove(path)
        except OSError as e:
            raise StoreError(f"unable to drop database {database}: {e}") from e
        self.logger.info(f"Dropped database {database}.")
        return True

    @contextmanager
    def transaction(self, database):
        """
        Open the database and yield a connection inside one transaction.

        Commits on success, rolls back on any error. sqlite3 errors are
        re-raised as StoreError.
        """
        uri = "file:" + quote(os.path.abspath(self.path(database))) + "?mode=rw"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise StoreError(f"unable to open database {database}: {e}") from e
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def create_tables(self, database):
        """Create or replace the seeds, sites and state tables."""
        with self.transaction(database) as conn:
            for table, columns in TABLES.items():
                conn.execute(f"DROP TABLE IF EXISTS {table}")
                conn.execute(f"CREATE TABLE {table}({columns})")
            conn.execute("CREATE INDEX sites_site ON sites(site)")

    def insert_seeds(self, database, sites):
        """Insert unvisited seeds, skipping blank and over-long lines."""
        inserted = 0
        with self.transaction(database) as conn:
            for site in sites:
                if not site:
                    continue
                if len(site) > MAX_SITE_LENGTH:
                    self.logger.warning(
                        f"Skipping seed longer than {MAX_SITE_LENGTH} characters: "
                        f"{site[:80]}...")
                    continue
                conn.execute("INSERT INTO seeds VALUES (?, 0)", (site,))
                inserted += 1
        return inserted

    def claim_seeds(self, database, count):
        """
        Take up to count unvisited seeds.

        Every seed looked at is marked visited. A seed that already has a
        sites row was scheduled before and is not claimed again; every
        claimed seed gets its sites row here.

        Returns:
            List of claimed seed URLs, in seed file order
        """
        claimed = []
        with self.transaction(database) as conn:
            rows = conn.execute(
                "SELECT site FROM seeds WHERE visited = 0 ORDER BY rowid").fetchall()
            for (site,) in rows:
                if len(claimed) >= count:
                    break
                conn.execute("UPDATE seeds SET visited = 1 WHERE site = ?", (site,))
                if self._has_site(conn, site):
                    continue
                conn.execute("INSERT INTO sites VALUES (?)", (site,))
                claimed.append(site)
        return claimed

    def add_new_sites(self, database, links):
        """
        Record every link not seen before on this database.

        Links longer than MAX_SITE_LENGTH are ignored. Values are bound as
        parameters, so quotes in URLs are stored verbatim.

        Returns:
            The links that were inserted, in input order
        """
        new_sites = []
        with self.transaction(database) as conn:
            for link in links:
                if not link or len(link) > MAX_SITE_LENGTH:
                    continue
                if self._has_site(conn, link):
                    continue
                conn.execute("INSERT INTO sites VALUES (?)", (link,))
                new_sites.append(link)
        return new_sites

    def save_state(self, database, sites):
        """Append sites to the state table. Returns the number saved."""
        saved = 0
        with self.transaction(database) as conn:
            for site in sites:
                if len(site) > MAX_SITE_LENGTH:
                    continue
                conn.execute("INSERT INTO state VALUES (?)", (site,))
                saved += 1
        return saved

    def drain_state(self, database):
        """Read every saved site and empty the state table."""
        with self.transaction(database) as conn:
            sites = [site for (site,) in conn.execute(
                "SELECT site FROM state ORDER BY rowid")]
            conn.execute("DELETE FROM state")
        return sites

    def seeds(self, database):
        with self.transaction(database) as conn:
            return [(site, bool(visited)) for site, visited in conn.execute(
                "SELECT site, visited FROM seeds ORDER BY rowid")]

    def sites(self, database):
        with self.transaction(database) as conn:
            return [site for (site,) in conn.execute(
                "SELECT site FROM sites ORDER BY rowid")]

    def state(self, database):
        with self.transaction(database) as conn:
            return [site for (site,) in conn.execute(
                "SELECT site FROM state ORDER BY rowid")]

    @staticmethod
    def _has_site(conn, site):
        return conn.execute(
            "SELECT 1 FROM sites WHERE site = ? LIMIT 1", (site,)).fetchone() is not None
