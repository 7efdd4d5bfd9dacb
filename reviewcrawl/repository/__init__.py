from .reviews import ReviewsRepository
from .statistics import StatisticsRepository

__all__ = ["ReviewsRepository", "StatisticsRepository"]
