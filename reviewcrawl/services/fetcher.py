from __future__ import annotations

from typing import Callable, Optional, Protocol

from bs4 import BeautifulSoup

from reviewcrawl.domain.fetched_page import FetchedPage


class Fetcher(Protocol):
    """Fetch a URL and return the parsed page.

    Implementations raise `HttpFetchError` on transport failure.
    """

    def fetch(self, url: str) -> FetchedPage: ...


class HttpPageFetcher:
    def __init__(self, http_service, soup_factory: Optional[Callable[[str], BeautifulSoup]] = None):
        self._http_service = http_service
        self._soup_factory = soup_factory or (lambda html: BeautifulSoup(html, "html.parser"))

    def fetch(self, url: str) -> FetchedPage:
        response = self._http_service.fetch(url)
        return FetchedPage(url=response.url or url, soup=self._soup_factory(response.text or ""))
