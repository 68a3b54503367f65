"""
launch.py - Crawler Server Entry Point

Loads configuration, opens the store and serves client sessions until
interrupted.

Usage:
    python launch.py                      # Serve on the configured port
    python launch.py --port 5000          # Override the listen port
    python launch.py --config_file path   # Use custom config file
"""

from configparser import ConfigParser
from argparse import ArgumentParser

import utils
from utils import get_logger
from utils.config import Config
from scraper import LinkProvider
from webcrawler.server import CrawlerServer
from webcrawler.store import Store


def main(config_file, port=None):
    """
    Start the crawler server and block until it is interrupted.

    Args:
        config_file: Path to configuration file (default: config.ini)
        port: Listen port overriding the configuration, if given
    """
    cparser = ConfigParser()
    cparser.read(config_file)
    config = Config(cparser)
    if port is not None:
        config.port = port

    utils.set_log_dir(config.log_dir)
    logger = get_logger("SERVER")

    store = Store(config.data_dir)
    server = CrawlerServer(config, store, LinkProvider(config))
    logger.info(f"Listening on {config.host}:{server.port}, data in {config.data_dir}.")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
    finally:
        server.server_close()


def run():
    parser = ArgumentParser()
    parser.add_argument("--config_file", type=str, default="config.ini",
                        help="Path to configuration file")
    parser.add_argument("--port", type=int, default=None,
                        help="Listen port (overrides SERVER.PORT)")
    args = parser.parse_args()
    main(args.config_file, args.port)


if __name__ == "__main__":
    run()
