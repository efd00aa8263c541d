# ===== detailing/tasks/review_tasks.py =====
import logging

from detailing.config.celery_config import celery_app
from detailing.config.database import SessionLocal
from detailing.services.review.review_workflow_service import ReviewWorkflowService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def purge_expired_review_drafts(self):
    """Periodic: drop review drafts whose session went quiet past the TTL"""
    db = SessionLocal()
    try:
        purged = ReviewWorkflowService(db).purge_expired_drafts()
        return {"status": "success", "purged": purged}

    except Exception as exc:
        logger.error(f"Review draft cleanup failed: {exc}")
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    finally:
        db.close()
