"""Web page fetcher with SSRF protection.

Security requirements:
- SSRF guard: ipaddress module blocks private/loopback/link-local ranges before
  any connection is established (unless explicitly allowed).
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html and text/plain only.
- Max response body: 5 MB.
- Timeout: 30 seconds by default (connect + read).
- Max redirects: 3.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from http.client import HTTPResponse

from ragdesk.errors import FetchError, SsrfError, ValidationError

logger = logging.getLogger(__name__)

_USER_AGENT = "ragdesk/0.1 (+https://github.com/ragdesk/ragdesk)"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_TIMEOUT = 30.0  # seconds
_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "text/plain"}


@dataclass
class FetchedPage:
    """A successfully fetched response body.

    Attributes:
        url: Final URL after redirects.
        body: Decoded response text.
        content_type: Media type without parameters (``text/html`` or ``text/plain``).
    """

    url: str
    body: str
    content_type: str

    @property
    def is_html(self) -> bool:
        return self.content_type == "text/html"


class PageFetcher:
    """Fetch pages over HTTP(S) with the guards listed in the module docstring.

    Args:
        timeout: Seconds for connect + read.
        allow_private_hosts: Skip the SSRF guard (intranet crawling, tests).
    """

    def __init__(self, timeout: float = _TIMEOUT, allow_private_hosts: bool = False) -> None:
        self.timeout = timeout
        self.allow_private_hosts = allow_private_hosts

    def fetch(self, url: str) -> FetchedPage:
        """Validate and fetch *url*.

        Raises:
            ValidationError: Unsupported scheme.
            SsrfError: Host resolves to a private or reserved address.
            FetchError: Network failure, bad Content-Type, or oversized body.
        """
        validate_scheme(url)
        if not self.allow_private_hosts:
            check_ssrf(url)
        logger.debug("GET %s", url)
        return self._fetch(url)

    def _fetch(self, url: str) -> FetchedPage:
        request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})

        # Custom opener with redirect limit
        opener = urllib.request.build_opener(_LimitedRedirectHandler(_MAX_REDIRECTS))

        try:
            response: HTTPResponse = opener.open(request, timeout=self.timeout)
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise FetchError(f"Failed to fetch URL '{url}': {exc}") from exc

        with response:
            raw_ct = response.headers.get("Content-Type", "text/html")
            ct = raw_ct.split(";")[0].strip().lower()
            if ct not in _ALLOWED_CONTENT_TYPES:
                raise FetchError(
                    f"Unsupported Content-Type '{ct}' for URL '{url}'. "
                    f"Accepted: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
                )

            try:
                body = response.read(_MAX_BYTES + 1)
            except OSError as exc:
                raise FetchError(f"Failed to read response from '{url}': {exc}") from exc
            if len(body) > _MAX_BYTES:
                raise FetchError(
                    f"Response body exceeds {_MAX_BYTES // (1024 * 1024)} MB limit for URL '{url}'."
                )

            charset = response.headers.get_content_charset() or "utf-8"
            final_url = response.geturl() or url

        try:
            text = body.decode(charset, errors="replace")
        except LookupError:
            text = body.decode("utf-8", errors="replace")
        return FetchedPage(url=final_url, body=text, content_type=ct)


def validate_scheme(url: str) -> None:
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise ValidationError(
            f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
        )


def check_ssrf(url: str) -> None:
    """Resolve the hostname and block private/reserved IP ranges.

    Raises SsrfError if any resolved address is private, loopback,
    link-local, or otherwise reserved.
    """
    parsed = urllib.parse.urlparse(url)
    hostname = parsed.hostname
    if not hostname:
        raise ValidationError(f"URL has no hostname: {url}")

    try:
        addrinfos = socket.getaddrinfo(hostname, None)
    except socket.gaierror as exc:
        raise FetchError(f"DNS resolution failed for '{hostname}': {exc}") from exc

    for addrinfo in addrinfos:
        addr_str = addrinfo[4][0]
        try:
            ip = ipaddress.ip_address(addr_str)
        except ValueError:
            continue
        if (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_reserved
            or ip.is_multicast
            or ip.is_unspecified
        ):
            raise SsrfError(
                f"URL resolves to private address ({ip}). "
                "Access to internal network addresses is not allowed."
            )


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects."""

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise FetchError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)
