from datetime import date

import pytest
from bs4 import BeautifulSoup

from reviewcrawl.domain import FetchedPage, TopicLink
from reviewcrawl.exceptions import ItemExtractionError
from reviewcrawl.services.review_extractor import ReviewExtractor


BASE = "https://library.example.org/reviews/topics"


def _page(html, url=BASE):
    return FetchedPage(url=url, soup=BeautifulSoup(html, "html.parser"))


def test_parse_topic_index_prefers_button_label():
    html = """
    <ul>
      <li class="browse-by-list-item"><a href="/topics/cancer"><button> Cancer </button></a></li>
      <li class="browse-by-list-item"><a href="https://other.example.org/t/heart">Heart &amp; circulation</a></li>
      <li class="browse-by-list-item"><a>No link</a></li>
      <li class="browse-by-list-item"><a href="/topics/empty"></a></li>
    </ul>
    """
    topics = ReviewExtractor().parse_topic_index(_page(html))
    assert topics == [
        TopicLink("Cancer", "https://library.example.org/topics/cancer"),
        TopicLink("Heart & circulation", "https://other.example.org/t/heart"),
    ]


def test_parse_listing_keeps_document_order_and_absolutizes():
    html = """
    <div>
      <a href="/cdsr/doi/10.1002/A/full">A</a>
      <a href="/about">About</a>
      <a href="https://library.example.org/cdsr/doi/10.1002/B/full">B</a>
    </div>
    """
    urls = ReviewExtractor().parse_listing(_page(html, url="https://library.example.org/topics/cancer"))
    assert urls == [
        "https://library.example.org/cdsr/doi/10.1002/A/full",
        "https://library.example.org/cdsr/doi/10.1002/B/full",
    ]


def test_parse_detail_extracts_all_fields():
    html = """
    <h1 class="publication-title">Exercise for   depression</h1>
    <div class="article-authors__list">Smith J, Doe A</div>
    <span class="publish-date">Version published: 2 September 2022</span>
    <div class="article-section__text"><p>Background</p></div>
    """
    fields = ReviewExtractor().parse_detail(_page(html))
    assert fields.title == "Exercise for depression"
    assert fields.authors == "Smith J, Doe A"
    assert fields.publication_date == date(2022, 9, 2)
    assert fields.content == "<p>Background</p>"


def test_parse_detail_falls_back_to_section_content():
    html = """
    <h1 class="publication-title">T</h1>
    <div class="article-section__content"><p>Body</p></div>
    """
    fields = ReviewExtractor().parse_detail(_page(html))
    assert fields.content == "<p>Body</p>"
    assert fields.authors is None
    assert fields.publication_date is None


def test_parse_detail_tolerates_empty_body_and_bad_date():
    html = """
    <h1 class="publication-title">T</h1>
    <span class="publish-date">sometime</span>
    """
    fields = ReviewExtractor().parse_detail(_page(html))
    assert fields.content == ""
    assert fields.publication_date is None


def test_parse_detail_without_title_raises():
    with pytest.raises(ItemExtractionError):
        ReviewExtractor().parse_detail(_page("<div class='article-section__text'>x</div>"))
