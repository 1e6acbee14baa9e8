"""
Per-user utility model: preset weights, version migration and feedback
learning.
"""

import logging
from datetime import datetime
from typing import List, Sequence, Tuple

from sqlalchemy.orm import Session

from .. import config
from ..models import Feedback, User
from ..scheduling.core.constants import DEFAULT_WEIGHTS, FEATURE_COUNT, MODEL_VERSION, Profile
from ..scheduling.learning.sgd import FeedbackExample, LearnerParams, apply_feedback

logger = logging.getLogger(__name__)


def default_weights(profile: Profile) -> List[float]:
    return list(DEFAULT_WEIGHTS.get(profile or Profile.ADULT, DEFAULT_WEIGHTS[Profile.ADULT]))


def ensure_user_weights(user: User) -> Tuple[List[float], bool]:
    """
    Make sure ``user`` carries current-version weights.

    Missing weights get the profile preset. Weights from another model
    version, or of another length, are laid over the preset position by
    position. Returns the weights and whether the user was changed.
    """
    defaults = default_weights(user.profile)
    stored = list(user.weights or [])

    if not stored:
        user.weights = defaults
        user.model_version = MODEL_VERSION
        user.model_updated_at = datetime.utcnow()
        return list(defaults), True

    if user.model_version != MODEL_VERSION or len(stored) != len(defaults):
        merged = list(defaults)
        for index, value in enumerate(stored[:len(merged)]):
            merged[index] = float(value)
        logger.info(f"Migrated weights for user {user.id} from version {user.model_version} to {MODEL_VERSION}")
        user.weights = merged
        user.model_version = MODEL_VERSION
        user.model_updated_at = datetime.utcnow()
        return list(merged), True

    return [float(value) for value in stored[:FEATURE_COUNT]], False


def save_weights(db: Session, user: User, weights: Sequence[float]):
    user.weights = [float(value) for value in weights]
    user.model_version = MODEL_VERSION
    user.model_updated_at = datetime.utcnow()
    db.commit()


def reset_user_weights(db: Session, user: User) -> List[float]:
    weights = default_weights(user.profile)
    save_weights(db, user, weights)
    return weights


def count_feedback(db: Session, user_id: int) -> int:
    return db.query(Feedback).filter(Feedback.user_id == user_id).count()


def build_feedback_examples(rows: Sequence[Tuple[Sequence[float], int]]) -> List[FeedbackExample]:
    """Positive examples are masked so hard-constraint features are not rewarded."""
    examples = []
    for features, label in rows:
        examples.append(FeedbackExample(
            features_snapshot=list(features),
            label=label,
            mask_hard_constraints=bool(label == 1 and config.LEARNING_MASK_HARD_CONSTRAINTS),
        ))
    return examples


def apply_feedback_updates(db: Session, user: User, examples: Sequence[FeedbackExample]) -> bool:
    """
    Run the learner for ``user`` and persist the result. Returns whether the
    weights changed; below the feedback threshold nothing is touched.
    """
    weights, migrated = ensure_user_weights(user)
    feedback_count = count_feedback(db, user.id)
    params = LearnerParams()

    if feedback_count < params.min_feedback or not examples:
        if migrated:
            db.commit()
        logger.info(f"User {user.id}: {feedback_count} feedback rows, model update skipped")
        return False

    updated = apply_feedback(weights, examples, params, feedback_count)
    save_weights(db, user, updated)
    logger.info(f"User {user.id}: model updated from {len(examples)} examples")
    return True
