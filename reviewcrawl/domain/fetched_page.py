from typing import NamedTuple

from bs4 import BeautifulSoup


class FetchedPage(NamedTuple):
    """A fetched and parsed HTML page.

    `url` is the address the page was served from; relative links found in
    `soup` are resolved against it.
    """
    url: str
    soup: BeautifulSoup
