"""
config.py - Server Configuration

Wraps a ConfigParser loaded from config.ini. Every key has a default, so
an empty ConfigParser yields a usable configuration.
"""

DEFAULT_PORT = 4949
DEFAULT_DATABASE = "webcrawler"


class Config(object):
    def __init__(self, config):
        # Listener
        self.host = config.get("SERVER", "HOST", fallback="127.0.0.1")
        self.port = config.getint("SERVER", "PORT", fallback=DEFAULT_PORT)

        # Store
        self.data_dir = config.get("STORE", "DATADIR", fallback="data")
        self.default_database = config.get(
            "STORE", "DEFAULTDATABASE", fallback=DEFAULT_DATABASE)

        # Crawl
        self.seed_file = config.get("CRAWLER", "SEEDFILE", fallback="seedSites.txt")
        self.grace_period = config.getfloat("CRAWLER", "GRACEPERIOD", fallback=0.2)
        self.max_fetches = config.getint("CRAWLER", "MAXFETCHES", fallback=32)
        self.user_agent = config.get(
            "CRAWLER", "USERAGENT", fallback="webcrawler-server/1.0")
        self.timeout = config.getfloat("CRAWLER", "TIMEOUT", fallback=10)

        self.log_dir = config.get("LOGGING", "LOGDIR", fallback="Logs")

        if not 0 <= self.port <= 65535:
            raise ValueError(f"PORT must be between 0 and 65535, got {self.port}")
        if self.max_fetches < 1:
            raise ValueError("MAXFETCHES must be at least 1")
