from datetime import date

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from reviewcrawl.db.models import Base, Review as DBReview
from reviewcrawl.domain import CrawlStatus, Review
from reviewcrawl.repository.reviews import ReviewsRepository


@pytest.fixture
def repo():
    engine = create_engine("sqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    return ReviewsRepository(sessionmaker(bind=engine, future=True))


def _review(url, topic="Cancer", title="T", authors=None, published=None, status=CrawlStatus.COMPLETED, content="<p>x</p>"):
    return Review(
        url=url,
        topic=topic,
        title=title,
        authors=authors,
        publication_date=published,
        content=content,
        crawl_status=status,
    )


def test_upsert_inserts_then_updates_by_url(repo):
    first = repo.upsert(_review("u1", title="Old", status=CrawlStatus.FAILED))
    assert first.review_id is not None
    assert repo.exists("u1")

    second = repo.upsert(_review("u1", title="New"))
    assert second.review_id == first.review_id
    assert second.title == "New"
    assert second.crawl_status is CrawlStatus.COMPLETED
    assert repo.count() == 1


def test_upsert_sets_id_on_the_given_review(repo):
    r = _review("u1")
    stored = repo.upsert(r)
    assert r.review_id == stored.review_id


def test_upsert_strips_nul_characters(repo):
    stored = repo.get_by_id(repo.upsert(_review("u1", title="A\x00B", content="x\x00y")).review_id)
    assert stored.title == "AB"
    assert stored.content == "xy"


def test_status_is_stored_as_lowercase_text(repo):
    repo.upsert(_review("u1", status=CrawlStatus.FAILED))
    with repo.get_session() as s:
        row = s.execute(select(DBReview).where(DBReview.url == "u1")).scalars().one()
        assert row.crawl_status == "failed"


def test_delete_all_returns_count(repo):
    repo.upsert(_review("u1"))
    repo.upsert(_review("u2"))
    assert repo.delete_all() == 2
    assert repo.count() == 0
    assert not repo.exists("u1")


def test_find_and_count_by_status(repo):
    repo.upsert(_review("u1", status=CrawlStatus.FAILED))
    repo.upsert(_review("u2"))
    repo.upsert(_review("u3", status=CrawlStatus.FAILED))
    failed = repo.find_by_status(CrawlStatus.FAILED)
    assert [r.url for r in failed] == ["u1", "u3"]
    assert repo.count_by_status("completed") == 1
    with pytest.raises(ValueError):
        repo.find_by_status("archived")


def test_get_by_id_missing_returns_none(repo):
    assert repo.get_by_id(999) is None


def test_topics_listing_and_counts(repo):
    repo.upsert(_review("u1", topic="Heart"))
    repo.upsert(_review("u2", topic="Cancer"))
    repo.upsert(_review("u3", topic="Cancer"))
    assert repo.list_topics() == ["Cancer", "Heart"]
    assert repo.count_by_topic() == {"Cancer": 2, "Heart": 1}


def test_query_orders_by_publication_date_with_unknown_last(repo):
    repo.upsert(_review("old", published=date(2019, 1, 1)))
    repo.upsert(_review("none", published=None))
    repo.upsert(_review("new", published=date(2023, 5, 1)))

    page = repo.query(page=0, size=10)
    assert [r.url for r in page.items] == ["new", "old", "none"]
    assert page.total == 3


def test_query_paginates(repo):
    for i in range(5):
        repo.upsert(_review(f"u{i}", published=date(2020, 1, i + 1)))
    page = repo.query(page=1, size=2)
    assert [r.url for r in page.items] == ["u2", "u1"]
    assert page.total == 5
    assert page.total_pages == 3


def test_query_topic_takes_precedence_over_search(repo):
    repo.upsert(_review("u1", topic="Cancer", title="Exercise"))
    repo.upsert(_review("u2", topic="Heart", title="Exercise"))
    page = repo.query(topic="Heart", search_term="nothing matches")
    assert [r.url for r in page.items] == ["u2"]


def test_query_search_matches_title_or_authors_case_insensitive(repo):
    repo.upsert(_review("u1", title="Exercise for depression"))
    repo.upsert(_review("u2", title="Statins", authors="Smith J"))
    repo.upsert(_review("u3", title="Other"))
    assert {r.url for r in repo.query(search_term="EXERCISE").items} == {"u1"}
    assert {r.url for r in repo.query(search_term="smith").items} == {"u2"}


def test_query_search_treats_wildcards_literally(repo):
    repo.upsert(_review("u1", title="100% adherence"))
    repo.upsert(_review("u2", title="1000 adherence"))
    repo.upsert(_review("u3", title="snake_case trial"))
    repo.upsert(_review("u4", title="snakeXcase trial"))
    assert {r.url for r in repo.query(search_term="100%").items} == {"u1"}
    assert {r.url for r in repo.query(search_term="snake_case").items} == {"u3"}
    assert {r.url for r in repo.query(search_term="%").items} == {"u1"}


def test_query_rejects_bad_paging(repo):
    with pytest.raises(ValueError):
        repo.query(page=-1)
    with pytest.raises(ValueError):
        repo.query(size=0)
