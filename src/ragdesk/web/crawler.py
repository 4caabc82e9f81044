"""Bounded website crawler.

Traversal is depth-first from the base URL using an explicit stack, so links
are followed in document order without recursion. Fetches are serialized:
exactly one request is in flight at any time, and the crawl stops as soon as
``max_pages`` pages have been collected, so the cap is exact.

Scope is a plain string-prefix test: a link is followed only if its resolved
absolute URL starts with the literal base URL. This is not a same-origin
check; ``https://example.com`` also admits ``https://example.com.evil.org/``.
"""

from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from ragdesk.errors import FetchError
from ragdesk.web.fetch import FetchedPage, PageFetcher

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 100

_NON_VISIBLE_TAGS = ["script", "style", "noscript", "template"]


@dataclass
class Page:
    """Extracted text of one crawled page."""

    url: str
    text: str


@dataclass
class CrawlFrontier:
    """Per-crawl traversal state, discarded when the crawl returns."""

    visited: set[str] = field(default_factory=set)
    pending: list[str] = field(default_factory=list)
    pages: list[Page] = field(default_factory=list)


def normalize_url(url: str) -> str:
    """Strip the ``#fragment`` part of *url*."""
    return urllib.parse.urldefrag(url).url


def in_scope(url: str, base_url: str) -> bool:
    return url.startswith(base_url)


# ------------------------------------------------------------------
# Text extraction
# ------------------------------------------------------------------


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _visible_body(soup: BeautifulSoup) -> str:
    for tag in soup.find_all(_NON_VISIBLE_TAGS):
        tag.decompose()
    body = soup.body or soup
    return _collapse(body.get_text(" "))


def page_body_text(html: str) -> str:
    """Return the visible body text of *html* with whitespace collapsed."""
    return _visible_body(BeautifulSoup(html, "html.parser"))


def extract_page_text(html: str) -> str:
    """Return title, h1–h3 headings, and body text, separated by blank lines.

    Parts that are empty are left out; an empty string means the page has no
    indexable text.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = _collapse(soup.title.get_text()) if soup.title else ""
    headings = "\n".join(
        text for text in (_collapse(h.get_text(" ")) for h in soup.find_all(["h1", "h2", "h3"]))
        if text
    )
    body = _visible_body(soup)
    return "\n\n".join(part for part in (title, headings, body) if part)


def extract_links(html: str, page_url: str) -> list[str]:
    """Return absolute, fragment-free URLs of all ``<a href>`` links in document order."""
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].split("#")[0].strip()
        links.append(normalize_url(urllib.parse.urljoin(page_url, href)))
    return links


# ------------------------------------------------------------------
# Crawler
# ------------------------------------------------------------------


class Crawler:
    """Depth-first, prefix-scoped crawler with an exact page cap.

    Args:
        fetcher: Page fetcher; defaults to a ``PageFetcher`` with default limits.
        max_pages: Default cap on collected pages.
    """

    def __init__(
        self,
        fetcher: PageFetcher | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self.fetcher = fetcher or PageFetcher()
        self.max_pages = max_pages

    def crawl(self, base_url: str, max_pages: int | None = None) -> list[Page]:
        """Crawl from *base_url* and return extracted pages in visit order.

        A fetch failure is logged and only prunes that branch. Pages are
        recorded under their post-redirect URL.
        """
        limit = self.max_pages if max_pages is None else max_pages
        if limit < 1:
            raise ValueError("max_pages must be >= 1")

        frontier = CrawlFrontier(pending=[normalize_url(base_url)])

        while frontier.pending and len(frontier.pages) < limit:
            url = frontier.pending.pop()
            if url in frontier.visited:
                continue
            frontier.visited.add(url)

            try:
                fetched = self.fetcher.fetch(url)
            except FetchError as exc:
                logger.warning("Failed to fetch %s: %s", url, exc)
                continue

            final_url = normalize_url(fetched.url)
            if final_url != url:
                if final_url in frontier.visited:
                    logger.debug("%s redirected to already visited %s", url, final_url)
                    continue
                frontier.visited.add(final_url)

            page = self._to_page(final_url, fetched)
            if page is not None:
                frontier.pages.append(page)

            if fetched.is_html:
                # Relative links resolve against the post-redirect address
                children = [
                    link
                    for link in extract_links(fetched.body, final_url)
                    if in_scope(link, base_url) and link not in frontier.visited
                ]
                # Reverse so the first link on the page is popped first
                frontier.pending.extend(reversed(children))

        logger.info(
            "Crawl of %s finished: %d pages, %d URLs visited",
            base_url,
            len(frontier.pages),
            len(frontier.visited),
        )
        return frontier.pages

    @staticmethod
    def _to_page(url: str, fetched: FetchedPage) -> Page | None:
        text = extract_page_text(fetched.body) if fetched.is_html else fetched.body.strip()
        if not text:
            logger.debug("No text extracted from %s", url)
            return None
        return Page(url=url, text=text)
