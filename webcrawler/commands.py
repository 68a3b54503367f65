"""
commands.py - Command Line Parsing

Splits a request line into a command and an optional argument, and
turns CrawlerErrors raised by a command into "ERROR: ..." replies.
"""

import re
from functools import wraps

from webcrawler.errors import CrawlerError

COMMANDS = (
    "drop", "help", "init", "pause", "resume",
    "sanitize", "start", "stop", "threads", "use",
)

_SPACES = re.compile(r" +")


def parse_command(line):
    """
    Split a request line into (command, argument).

    Splits on runs of spaces into at most two tokens. The command is
    lowercased; the argument is kept verbatim, or None if absent.
    """
    line = line.rstrip("\r\n")
    tokens = _SPACES.split(line, maxsplit=1)
    command = tokens[0].lower()
    arg = tokens[1] if len(tokens) > 1 else None
    return command, arg


def error_reply(error):
    return f"ERROR: {error}"


def replies_errors(method):
    """Turn a CrawlerError raised by a command method into its reply line."""

    @wraps(method)
    def wrapper(self, arg=None):
        try:
            return method(self, arg)
        except CrawlerError as e:
            return error_reply(e)

    return wrapper


def help_text(default_database):
    return (
        "\n> drop [db]\n\tDrops the specified database."
        f"\n\tIf none is specified, drops the '{default_database}' database."
        "\n> help\n\tThis text."
        "\n> init\n\tInitializes the 'seeds', 'sites', and 'state' tables."
        "\n> pause\n\tSame as the stop command, but the state of the crawler is saved."
        "\n> resume\n\tResumes the state saved by the pause command."
        "\n> sanitize\n\tRefreshes the database by removing any job postings that no longer exist."
        "\n> start [threads]\n\tStarts the web crawler with the given number of threads."
        "\n\tIf no thread number is specified, the crawler is started with one thread."
        "\n> stop\n\tStops all threads started by this client."
        "\n> threads\n\tPrints the number of threads currently running."
        "\n> use [db]\n\tSwitches to database db."
        f"\n\tIf none is specified, uses the '{default_database}' database."
        "\n\tIf the database doesn't exist, a new one is created to switch to.\n"
    )
