import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from reviewcrawl.domain import CrawlStatus

logger = logging.getLogger(__name__)


def create_reviews_router(reviews_repo, orchestrator):
    router = APIRouter(prefix="/reviews", tags=["Reviews"])

    @router.get("/")
    def list_reviews(
        topic: Optional[str] = None,
        search_term: Optional[str] = None,
        page: int = 0,
        size: int = 10,
        include_content: Optional[bool] = None,
    ):
        if page < 0 or size <= 0 or size > 100:
            raise HTTPException(status_code=400, detail="invalid paging parameters")
        result = reviews_repo.query(topic=topic, search_term=search_term, page=page, size=size)
        items = []
        for r in result.items:
            d = r.to_dict()
            if not include_content:
                d.pop("content", None)
            items.append(d)
        return {
            "items": items,
            "total": result.total,
            "page": result.page,
            "size": result.size,
            "total_pages": result.total_pages,
        }

    # Fixed paths are declared before /{review_id} so they are not shadowed.
    @router.get("/topics")
    def topics():
        return reviews_repo.list_topics()

    @router.get("/stats")
    def stats():
        return {
            "total": reviews_repo.count(),
            "by_status": {s.value: reviews_repo.count_by_status(s) for s in CrawlStatus},
            "by_topic": reviews_repo.count_by_topic(),
        }

    @router.post("/retry-failed")
    def retry_failed():
        failed = reviews_repo.find_by_status(CrawlStatus.FAILED)
        if not failed:
            return {"retried_count": 0, "total_failed": 0}
        try:
            retried = orchestrator.retry_failed(failed)
        except Exception:
            logger.exception("Retrying failed reviews raised")
            raise HTTPException(status_code=500, detail="could not retry failed reviews")
        return {"retried_count": retried, "total_failed": len(failed)}

    @router.get("/{review_id}")
    def get_review(review_id: int):
        review = reviews_repo.get_by_id(review_id)
        if review is None:
            raise HTTPException(status_code=404, detail="review not found")
        return review.to_dict()

    return router
