"""
errors.py - Crawler Error Kinds

Every failure a client can be told about is a CrawlerError. The message
of a caught CrawlerError is what follows "ERROR: " in the reply line.
"""


class CrawlerError(Exception):
    """Base class for errors surfaced to clients."""


class UnknownCommand(CrawlerError):
    """The command token does not name any command."""


class BadArgument(CrawlerError):
    """A command argument could not be used (e.g. non-numeric thread count)."""


class StoreError(CrawlerError):
    """Any failure from the persistent store."""


class FetchError(CrawlerError):
    """A page could not be downloaded or parsed for links."""


class EmptyPrecondition(CrawlerError):
    """The command had nothing to act on (no threads to stop, no saved state)."""
