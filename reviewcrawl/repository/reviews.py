import logging
from typing import Dict, List, Optional, Union

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reviewcrawl.db.models import Review as DBReview
from reviewcrawl.domain import CrawlStatus, Review, ReviewPage

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ReviewsRepository:
    """Repository for Review database operations.

    Requires an explicit `session_factory` (callable returning a `Session`).
    URL uniqueness is enforced here; callers may upsert the same URL freely.
    """
    def __init__(self, session_factory):
        self.session_factory = session_factory

    @staticmethod
    def _sanitize_text(val: Optional[str]) -> Optional[str]:
        """Remove NUL (\x00) characters from text fields to satisfy DB constraints.

        Postgres TEXT columns cannot contain NULs; scraped markup occasionally
        carries them. Strip them before persisting.
        """
        if isinstance(val, str):
            return val.replace("\x00", "")
        return val

    def get_session(self) -> Session:
        return self.session_factory()

    def _to_domain(self, row: DBReview) -> Review:
        """Convert database Review to domain Review."""
        return Review(
            review_id=row.review_id,
            url=row.url,
            topic=row.topic,
            title=row.title,
            authors=row.authors,
            publication_date=row.publication_date,
            content=row.content,
            crawl_status=row.crawl_status,
            last_updated=row.last_updated,
        )

    def _apply(self, row: DBReview, review: Review) -> None:
        row.topic = review.topic
        row.title = self._sanitize_text(review.title)
        row.authors = self._sanitize_text(review.authors)
        row.publication_date = review.publication_date
        row.content = self._sanitize_text(review.content)
        row.crawl_status = review.crawl_status.value
        row.last_updated = review.last_updated

    def exists(self, url: str) -> bool:
        with self.get_session() as session:
            q = select(DBReview.review_id).where(DBReview.url == url)
            return session.execute(q).first() is not None

    def upsert(self, review: Review) -> Review:
        """Insert or update the review identified by its URL and return the stored copy."""
        with self.get_session() as session:
            q = select(DBReview).where(DBReview.url == review.url)
            row = session.execute(q).scalars().first()
            if row is None:
                row = DBReview(url=review.url)
                self._apply(row, review)
                session.add(row)
                # Another writer (e.g. retry_failed next to a full run) may have
                # inserted the same URL; fall back to updating that row.
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    row = session.execute(q).scalars().first()
                    if row is None:
                        raise
                    self._apply(row, review)
                    session.commit()
            else:
                self._apply(row, review)
                session.commit()
            session.refresh(row)
            stored = self._to_domain(row)
        review.review_id = stored.review_id
        return stored

    def delete_all(self) -> int:
        with self.get_session() as session:
            result = session.execute(delete(DBReview))
            session.commit()
            logger.info("Deleted %s reviews", result.rowcount)
            return result.rowcount

    def get_by_id(self, review_id: int) -> Optional[Review]:
        with self.get_session() as session:
            row = session.get(DBReview, review_id)
            if row is None:
                return None
            return self._to_domain(row)

    def find_by_status(self, status: Union[CrawlStatus, str]) -> List[Review]:
        status = CrawlStatus.coerce(status)
        with self.get_session() as session:
            q = select(DBReview).where(DBReview.crawl_status == status.value).order_by(DBReview.review_id)
            rows = session.execute(q).scalars().all()
            return [self._to_domain(r) for r in rows]

    def count_by_status(self, status: Union[CrawlStatus, str]) -> int:
        status = CrawlStatus.coerce(status)
        with self.get_session() as session:
            q = select(func.count(DBReview.review_id)).where(DBReview.crawl_status == status.value)
            return session.execute(q).scalar_one()

    def count(self) -> int:
        with self.get_session() as session:
            return session.execute(select(func.count(DBReview.review_id))).scalar_one()

    def list_topics(self) -> List[str]:
        """Distinct topic labels, alphabetically."""
        with self.get_session() as session:
            q = (
                select(DBReview.topic)
                .where(DBReview.topic.is_not(None))
                .distinct()
                .order_by(DBReview.topic)
            )
            return list(session.execute(q).scalars().all())

    def count_by_topic(self) -> Dict[str, int]:
        with self.get_session() as session:
            q = (
                select(DBReview.topic, func.count(DBReview.review_id))
                .where(DBReview.topic.is_not(None))
                .group_by(DBReview.topic)
                .order_by(DBReview.topic)
            )
            return {topic: cnt for topic, cnt in session.execute(q).all()}

    def query(self, topic: Optional[str] = None, search_term: Optional[str] = None, page: int = 0, size: int = 10) -> ReviewPage:
        """Return one page of reviews, newest publication first (unknown dates last).

        `topic` filters by exact topic label and takes precedence over
        `search_term`, which matches title or authors case-insensitively.
        """
        if page < 0:
            raise ValueError("page must be >= 0")
        if size <= 0:
            raise ValueError("size must be > 0")

        conditions = []
        if topic:
            conditions.append(DBReview.topic == topic)
        elif search_term:
            pattern = f"%{_escape_like(search_term)}%"
            conditions.append(
                or_(
                    DBReview.title.ilike(pattern, escape="\\"),
                    DBReview.authors.ilike(pattern, escape="\\"),
                )
            )

        with self.get_session() as session:
            count_q = select(func.count(DBReview.review_id)).where(*conditions)
            total = session.execute(count_q).scalar_one()
            q = (
                select(DBReview)
                .where(*conditions)
                .order_by(
                    DBReview.publication_date.is_(None),
                    DBReview.publication_date.desc(),
                    DBReview.review_id,
                )
                .offset(page * size)
                .limit(size)
            )
            rows = session.execute(q).scalars().all()
            return ReviewPage(items=[self._to_domain(r) for r in rows], total=total, page=page, size=size)
