"""Web fetching and crawling."""

from ragdesk.web.crawler import Crawler, Page, extract_page_text, page_body_text
from ragdesk.web.fetch import FetchedPage, PageFetcher

__all__ = [
    "Crawler",
    "FetchedPage",
    "Page",
    "PageFetcher",
    "extract_page_text",
    "page_body_text",
]
