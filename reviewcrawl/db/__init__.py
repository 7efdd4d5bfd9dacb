from .engine import make_engine, init_orm
from .models import Base, Review, CrawlStatistics

__all__ = [
    "make_engine",
    "init_orm",
    "Base",
    "Review",
    "CrawlStatistics",
]
