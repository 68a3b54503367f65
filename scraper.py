"""
scraper.py - Link Extraction

Turns a downloaded page into the absolute URLs of its anchors.
LinkProvider bundles download + extraction into the callable that crawl
workers use: url -> set of absolute urls, or FetchError.
"""

from urllib.parse import urlparse, urljoin, urldefrag

from bs4 import BeautifulSoup

from utils import get_logger
from utils.download import download
from webcrawler.errors import FetchError

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class LinkProvider(object):
    """Download a page and return the links found on it."""

    def __init__(self, config, logger=None):
        self.config = config
        self.logger = logger or get_logger("SCRAPER")

    def __call__(self, url):
        resp = download(url, self.config, self.logger)
        if resp.error:
            raise FetchError(f"{url}: {resp.error}")
        if resp.status != 200 or resp.raw_response is None:
            raise FetchError(f"{url}: status <{resp.status}>")
        content_type = resp.content_type
        if content_type and not content_type.startswith(HTML_CONTENT_TYPES):
            raise FetchError(f"{url}: unsupported content type {content_type}")
        return set(scraper(url, resp))


def scraper(url, resp):
    links = extract_next_links(url, resp)
    return [link for link in links if is_valid(link)]


def extract_next_links(url, resp):
    if resp.status != 200 or resp.raw_response is None:
        return list()

    try:
        content = resp.raw_response.content
    except AttributeError:
        return list()

    if not content:
        return list()

    soup = BeautifulSoup(content, "lxml")
    base_url = resp.raw_response.url if resp.raw_response.url else url

    # <base href> overrides the document URL for relative links
    base_tag = soup.find("base", href=True)
    if base_tag:
        base_url = urljoin(base_url, base_tag["href"].strip())

    links = []
    for tag in soup.find_all("a", href=True):
        href = tag["href"].strip()
        if not href or href.startswith(("javascript:", "mailto:", "tel:", "#")):
            continue
        absolute = urljoin(base_url, href)
        absolute, _ = urldefrag(absolute)
        links.append(absolute)

    return links


def is_valid(url):
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in {"http", "https"}:
        return False
    return bool(parsed.netloc)
