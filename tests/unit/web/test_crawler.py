"""Tests for the bounded crawler and page text extraction."""

from __future__ import annotations

import pytest

from ragdesk.errors import FetchError
from ragdesk.web.crawler import (
    Crawler,
    extract_links,
    extract_page_text,
    page_body_text,
)
from ragdesk.web.fetch import FetchedPage


class FakeFetcher:
    """Serves pages from a dict; missing URLs fail like a 404."""

    def __init__(
        self,
        site: dict[str, str],
        content_type: str = "text/html",
        redirects: dict[str, str] | None = None,
    ) -> None:
        self.site = site
        self.content_type = content_type
        self.redirects = redirects or {}
        self.requested: list[str] = []

    def fetch(self, url: str) -> FetchedPage:
        self.requested.append(url)
        final = self.redirects.get(url, url)
        if final not in self.site:
            raise FetchError(f"HTTP Error 404 for '{url}'")
        return FetchedPage(url=final, body=self.site[final], content_type=self.content_type)


def _html(title: str, *links: str) -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body><p>{title} body</p>{anchors}</body></html>"


BASE = "https://example.com/"


# ------------------------------------------------------------------
# Traversal
# ------------------------------------------------------------------


def test_three_page_site_visits_each_once():
    site = {
        BASE: _html("A", "/b", "/c"),
        BASE + "b": _html("B", "/"),
        BASE + "c": _html("C"),
    }
    fetcher = FakeFetcher(site)
    pages = Crawler(fetcher, max_pages=10).crawl(BASE)

    assert {p.url for p in pages} == set(site)
    assert len(pages) == 3
    assert sorted(fetcher.requested) == sorted(site)


def test_depth_first_document_order():
    site = {
        BASE: _html("Home", "/a", "/b"),
        BASE + "a": _html("A", "/a/deep"),
        BASE + "a/deep": _html("Deep"),
        BASE + "b": _html("B"),
    }
    pages = Crawler(FakeFetcher(site)).crawl(BASE)
    assert [p.url for p in pages] == [BASE, BASE + "a", BASE + "a/deep", BASE + "b"]


def test_max_pages_is_exact_cap():
    links = [f"/p{i}" for i in range(20)]
    site = {BASE: _html("Home", *links)}
    site.update({BASE + f"p{i}": _html(f"P{i}") for i in range(20)})
    fetcher = FakeFetcher(site)

    pages = Crawler(fetcher).crawl(BASE, max_pages=5)

    assert len(pages) == 5
    assert len(fetcher.requested) == 5


def test_max_pages_default_from_constructor():
    site = {BASE: _html("Home", "/x", "/y"), BASE + "x": _html("X"), BASE + "y": _html("Y")}
    assert len(Crawler(FakeFetcher(site), max_pages=2).crawl(BASE)) == 2


@pytest.mark.parametrize("bad", [0, -3])
def test_max_pages_must_be_positive(bad):
    with pytest.raises(ValueError, match="max_pages"):
        Crawler(FakeFetcher({}), max_pages=bad)
    with pytest.raises(ValueError, match="max_pages"):
        Crawler(FakeFetcher({})).crawl(BASE, max_pages=bad)


def test_out_of_scope_links_not_followed():
    site = {
        BASE + "docs/": _html("Docs", "/docs/guide", "/blog/post", "https://other.org/"),
        BASE + "docs/guide": _html("Guide"),
    }
    fetcher = FakeFetcher(site)
    pages = Crawler(fetcher).crawl(BASE + "docs/")

    assert [p.url for p in pages] == [BASE + "docs/", BASE + "docs/guide"]
    assert BASE + "blog/post" not in fetcher.requested
    assert "https://other.org/" not in fetcher.requested


def test_prefix_scope_admits_lookalike_host():
    """Scope is a literal string prefix, not an origin check."""
    base = "https://example.com"
    site = {
        base: _html("Home", "https://example.com.evil.org/x"),
        "https://example.com.evil.org/x": _html("Evil"),
    }
    pages = Crawler(FakeFetcher(site)).crawl(base)
    assert [p.url for p in pages] == [base, "https://example.com.evil.org/x"]


def test_fetch_failure_prunes_branch_only():
    site = {
        BASE: _html("Home", "/missing", "/ok"),
        BASE + "ok": _html("OK"),
    }
    fetcher = FakeFetcher(site)
    pages = Crawler(fetcher).crawl(BASE)

    assert [p.url for p in pages] == [BASE, BASE + "ok"]
    assert BASE + "missing" in fetcher.requested


def test_unreachable_base_returns_no_pages():
    assert Crawler(FakeFetcher({})).crawl(BASE) == []


def test_links_resolve_against_redirected_url():
    base = BASE + "docs"
    site = {
        BASE + "docs/": _html("Docs", "intro"),
        BASE + "docs/intro": _html("Intro"),
    }
    fetcher = FakeFetcher(site, redirects={base: BASE + "docs/"})
    pages = Crawler(fetcher).crawl(base)

    assert fetcher.requested == [base, BASE + "docs/intro"]
    assert [p.url for p in pages] == [BASE + "docs/", BASE + "docs/intro"]


def test_redirect_target_marked_visited():
    site = {
        BASE: _html("Home", "/old", "/new"),
        BASE + "new": _html("New"),
    }
    fetcher = FakeFetcher(site, redirects={BASE + "old": BASE + "new"})
    pages = Crawler(fetcher).crawl(BASE)

    assert [p.url for p in pages] == [BASE, BASE + "new"]
    assert fetcher.requested == [BASE, BASE + "old"]


def test_redirect_onto_visited_page_not_collected_twice():
    site = {
        BASE: _html("Home", "/moved", "/a"),
        BASE + "a": _html("A"),
    }
    fetcher = FakeFetcher(site, redirects={BASE + "moved": BASE})
    pages = Crawler(fetcher).crawl(BASE)

    assert [p.url for p in pages] == [BASE, BASE + "a"]
    assert fetcher.requested == [BASE, BASE + "moved", BASE + "a"]


def test_fragments_deduplicated():
    site = {
        BASE: _html("Home", "/a#top", "/a#bottom", "#self"),
        BASE + "a": _html("A"),
    }
    fetcher = FakeFetcher(site)
    pages = Crawler(fetcher).crawl(BASE)

    assert [p.url for p in pages] == [BASE, BASE + "a"]
    assert fetcher.requested.count(BASE + "a") == 1
    assert fetcher.requested.count(BASE) == 1


def test_page_without_text_still_followed():
    site = {
        BASE: '<html><body><a href="/a"></a></body></html>',
        BASE + "a": _html("A"),
    }
    pages = Crawler(FakeFetcher(site)).crawl(BASE)
    assert [p.url for p in pages] == [BASE + "a"]


def test_plain_text_page_collected_without_links():
    fetcher = FakeFetcher({BASE: "  just text, /not-a-link  "}, content_type="text/plain")
    pages = Crawler(fetcher).crawl(BASE)
    assert [(p.url, p.text) for p in pages] == [(BASE, "just text, /not-a-link")]
    assert fetcher.requested == [BASE]


# ------------------------------------------------------------------
# Text extraction
# ------------------------------------------------------------------


def test_extract_page_text_includes_title_headings_body():
    html = (
        "<html><head><title> My  Site </title><style>p{}</style></head>"
        "<body><h1>Welcome</h1><h2>Intro</h2><h4>Minor</h4>"
        "<p>Hello\n   world</p><script>var x = 1;</script></body></html>"
    )
    text = extract_page_text(html)
    title, headings, body = text.split("\n\n")
    assert title == "My Site"
    assert headings == "Welcome\nIntro"
    assert "Hello world" in body
    assert "var x" not in body
    assert "p{}" not in body


def test_extract_page_text_skips_empty_headings():
    html = "<html><body><h1>  </h1><h2>\n  Getting\n  started\n</h2><p>Body</p></body></html>"
    assert extract_page_text(html) == "Getting started\n\nGetting started Body"


def test_extract_page_text_empty_page():
    assert extract_page_text("<html><body>   </body></html>") == ""


def test_page_body_text_collapses_whitespace():
    html = "<html><body><div>one\n\n two</div><noscript>hidden</noscript><p>three</p></body></html>"
    assert page_body_text(html) == "one two three"


def test_page_body_text_without_body_tag():
    assert page_body_text("<p>fragment</p>") == "fragment"


def test_extract_links_resolves_against_page_url():
    html = '<a href="child">c</a><a href="/root">r</a><a href="https://x.org/y#z">x</a><a>no href</a>'
    assert extract_links(html, "https://example.com/dir/page") == [
        "https://example.com/dir/child",
        "https://example.com/root",
        "https://x.org/y",
    ]
