from typing import List
import logging

from sqlalchemy.orm import Session

from ..celery_app import celery_app
from ..database import SessionLocal
from ..models import Feedback, User
from ..services.model_service import apply_feedback_updates, build_feedback_examples

logger = logging.getLogger(__name__)


@celery_app.task(name="dayplan.celery_tasks.learning.apply_feedback")
def apply_feedback_task(user_id: int, feedback_ids: List[int]) -> bool:
    """Apply stored feedback rows to a user's weights."""
    db: Session = SessionLocal()
    try:
        user = db.query(User).filter_by(id=user_id).first()
        if not user:
            logger.error(f"User {user_id} not found")
            return False

        rows = (
            db.query(Feedback)
            .filter(Feedback.user_id == user_id, Feedback.id.in_(feedback_ids))
            .order_by(Feedback.id)
            .all()
        )
        if not rows:
            logger.info(f"No feedback rows {feedback_ids} for user {user_id}, skipping")
            return False

        examples = build_feedback_examples([(row.features_snapshot, row.label) for row in rows])
        updated = apply_feedback_updates(db, user, examples)
        logger.info(f"Processed {len(rows)} feedback rows for user {user_id} (updated={updated})")
        return updated
    finally:
        db.close()
