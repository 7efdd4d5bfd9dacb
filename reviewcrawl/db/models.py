from __future__ import annotations


from sqlalchemy import Column, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class Review(Base):
    __tablename__ = "reviews"

    review_id = Column(Integer, primary_key=True)
    url = Column(String(500), unique=True, nullable=False)
    topic = Column(Text, nullable=True, index=True)
    title = Column(Text, nullable=True)
    authors = Column(String(1000), nullable=True)
    publication_date = Column(Date, nullable=True)
    content = Column(Text, nullable=True)
    crawl_status = Column(String(16), nullable=False, default="pending", index=True)
    last_updated = Column(DateTime, nullable=True)


class CrawlStatistics(Base):
    __tablename__ = "crawl_statistics"

    stats_id = Column(Integer, primary_key=True)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
    total_topics = Column(Integer, nullable=False, default=0)
    processed_topics = Column(Text, nullable=True)  # newline-separated topic names
    failed_topics = Column(Text, nullable=True)  # newline-separated topic names
    total_processed = Column(Integer, nullable=False, default=0)
    successful_reviews = Column(Integer, nullable=False, default=0)
    failed_reviews = Column(Integer, nullable=False, default=0)
    current_topic = Column(String(1000), nullable=True)
    current_review = Column(String(1000), nullable=True)
    last_processed_url = Column(String(1000), nullable=True)
    error_log = Column(Text, nullable=True)  # newline-separated, oldest first
    items_per_minute = Column(Float, nullable=False, default=0.0)
