"""
webcrawler - Crawl Coordination

Multi-client crawl server pieces:
- Store: persistent seeds/sites/state tables per logical database
- SessionRegistry: directory of sessions plus the store lock
- Session: one client's commands and crawl workers
- CrawlWorker: one thread per URL
- CrawlerServer: line-protocol TCP listener
"""

from webcrawler.registry import DatabaseLock, SessionRegistry
from webcrawler.session import Session
from webcrawler.store import Store
from webcrawler.worker import CrawlWorker

__all__ = ["CrawlWorker", "DatabaseLock", "Session", "SessionRegistry", "Store"]
