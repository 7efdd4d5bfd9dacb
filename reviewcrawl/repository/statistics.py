from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from reviewcrawl.db.models import CrawlStatistics as DBCrawlStatistics
from reviewcrawl.domain import StatisticsSnapshot


def _join(values) -> Optional[str]:
    values = [v.replace("\n", " ") for v in values]
    return "\n".join(values) if values else None


def _split(value: Optional[str]) -> tuple:
    if not value:
        return ()
    return tuple(v for v in value.split("\n") if v)


class StatisticsRepository:
    """Stores the finalized statistics of each crawl run."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    def _to_domain(self, row: DBCrawlStatistics) -> StatisticsSnapshot:
        return StatisticsSnapshot(
            started_at=row.started_at,
            finished_at=row.finished_at,
            running=False,
            total_topics=row.total_topics or 0,
            processed_topics=_split(row.processed_topics),
            failed_topics=_split(row.failed_topics),
            total_processed=row.total_processed or 0,
            successful_reviews=row.successful_reviews or 0,
            failed_reviews=row.failed_reviews or 0,
            current_topic=row.current_topic,
            current_review=row.current_review,
            last_processed_url=row.last_processed_url,
            error_log=_split(row.error_log),
            items_per_minute=row.items_per_minute or 0.0,
        )

    def save(self, snapshot: StatisticsSnapshot) -> int:
        with self.get_session() as session:
            row = DBCrawlStatistics(
                started_at=snapshot.started_at,
                finished_at=snapshot.finished_at,
                total_topics=snapshot.total_topics,
                processed_topics=_join(snapshot.processed_topics),
                failed_topics=_join(snapshot.failed_topics),
                total_processed=snapshot.total_processed,
                successful_reviews=snapshot.successful_reviews,
                failed_reviews=snapshot.failed_reviews,
                current_topic=snapshot.current_topic,
                current_review=snapshot.current_review,
                last_processed_url=snapshot.last_processed_url,
                error_log=_join(snapshot.error_log),
                items_per_minute=snapshot.items_per_minute,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.stats_id

    def latest(self) -> Optional[StatisticsSnapshot]:
        with self.get_session() as session:
            q = select(DBCrawlStatistics).order_by(DBCrawlStatistics.stats_id.desc()).limit(1)
            row = session.execute(q).scalars().first()
            if row is None:
                return None
            return self._to_domain(row)

    def list_recent(self, limit: int = 20) -> List[StatisticsSnapshot]:
        """Return the last `limit` runs, most recent first."""
        with self.get_session() as session:
            q = select(DBCrawlStatistics).order_by(DBCrawlStatistics.stats_id.desc()).limit(limit)
            rows = session.execute(q).scalars().all()
            return [self._to_domain(r) for r in rows]
