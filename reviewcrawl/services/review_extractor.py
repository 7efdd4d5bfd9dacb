import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from reviewcrawl.domain import FetchedPage, ReviewFields, TopicLink
from reviewcrawl.exceptions import ItemExtractionError
from reviewcrawl.utils.datetime_utils import parse_long_date

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"\d{1,2}\s+[A-Za-z]+\s+\d{4}")


def _text(el: Optional[Tag]) -> Optional[str]:
    if el is None:
        return None
    value = " ".join(el.get_text(separator=" ", strip=True).split())
    return value or None


class ReviewExtractor:
    """Pulls topics, review links and review fields out of parsed pages.

    Selectors match the review library's markup; they can be overridden to
    follow layout changes without touching the crawl loop. No I/O happens here.
    """

    def __init__(
        self,
        *,
        topic_selector: str = "li.browse-by-list-item > a",
        review_link_selector: str = 'a[href*="/doi/"]',
        title_selector: str = "h1.publication-title",
        authors_selector: str = "div.article-authors__list",
        date_selector: str = ".publish-date",
        content_selectors: tuple = ("div.article-section__text", "div.article-section__content"),
    ):
        self.topic_selector = topic_selector
        self.review_link_selector = review_link_selector
        self.title_selector = title_selector
        self.authors_selector = authors_selector
        self.date_selector = date_selector
        self.content_selectors = content_selectors

    def parse_topic_index(self, page: FetchedPage) -> List[TopicLink]:
        """Return (name, absolute url) for each topic, in document order."""
        topics = []
        for a in page.soup.select(self.topic_selector):
            href = a.get("href")
            if not href:
                continue
            # The label usually sits in a <button> inside the link.
            name = _text(a.find("button")) or _text(a)
            if not name:
                logger.debug("Skipping topic link without a label: %s", href)
                continue
            topics.append(TopicLink(name=name, url=urljoin(page.url, href)))
        if not topics:
            logger.warning("No topics found on index page %s", page.url)
        return topics

    def parse_listing(self, page: FetchedPage) -> List[str]:
        """Return absolute review URLs in listing order."""
        urls = []
        for a in page.soup.select(self.review_link_selector):
            href = a.get("href")
            if href:
                urls.append(urljoin(page.url, href))
        return urls

    def parse_detail(self, page: FetchedPage) -> ReviewFields:
        """Extract review fields. A missing title raises ItemExtractionError."""
        soup: BeautifulSoup = page.soup
        title = _text(soup.select_one(self.title_selector))
        if not title:
            raise ItemExtractionError(page.url, f"no {self.title_selector} found")

        authors = _text(soup.select_one(self.authors_selector))
        publication_date = None
        date_text = _text(soup.select_one(self.date_selector))
        if date_text:
            m = _DATE_RE.search(date_text)
            publication_date = parse_long_date(m.group(0)) if m else None

        content = ""
        for selector in self.content_selectors:
            el = soup.select_one(selector)
            if el is not None:
                content = el.decode_contents().strip()
                break

        return ReviewFields(title=title, authors=authors, content=content, publication_date=publication_date)
