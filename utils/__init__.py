import os
import logging

LOG_DIR = "Logs"


def set_log_dir(path):
    """Change where loggers created from now on write their files."""
    global LOG_DIR
    LOG_DIR = path


def get_logger(name, filename=None):
    """
    Get a logger that writes to both the console and Logs/<filename>.log.

    Args:
        name: Logger name, shown in every record
        filename: Log file name without extension (defaults to name)
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    if not os.path.exists(LOG_DIR):
        os.makedirs(LOG_DIR, exist_ok=True)
    fh = logging.FileHandler(
        os.path.join(LOG_DIR, f"{filename if filename else name}.log"))
    fh.setLevel(logging.DEBUG)
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    fh.setFormatter(formatter)
    ch.setFormatter(formatter)
    logger.addHandler(fh)
    logger.addHandler(ch)
    return logger


def plural(count, noun):
    """'1 thread', '2 threads', '0 threads'."""
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
