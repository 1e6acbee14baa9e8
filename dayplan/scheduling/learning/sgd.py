"""
Online logistic regression over stored feature snapshots.
"""

import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from ..core.constants import (
    HARD_CONSTRAINT_FEATURES, INITIAL_LEARNING_RATE, INITIAL_REGULARIZATION, MIN_FEEDBACK_FOR_UPDATE
)
from ..scoring.utility import ensure_weights_length, sigmoid

logger = logging.getLogger(__name__)


class FeedbackExample(BaseModel):
    features_snapshot: List[float]
    label: int = Field(ge=0, le=1)
    # Overrides LearnerParams.mask_hard_constraints for this example
    mask_hard_constraints: Optional[bool] = None


class LearnerParams(BaseModel):
    learning_rate: float = INITIAL_LEARNING_RATE
    regularization: float = INITIAL_REGULARIZATION
    mask_hard_constraints: bool = False
    min_feedback: int = MIN_FEEDBACK_FOR_UPDATE


def mask_features(features: Sequence[float]) -> List[float]:
    """Zero the meal/school/sleep conflict components."""
    masked = list(features)
    for index in HARD_CONSTRAINT_FEATURES:
        if index < len(masked):
            masked[index] = 0.0
    return masked


def sgd_step(
    weights: Sequence[float],
    features: Sequence[float],
    label: int,
    learning_rate: float = INITIAL_LEARNING_RATE,
    regularization: float = INITIAL_REGULARIZATION,
    mask_hard_constraints: bool = False,
) -> List[float]:
    """
    One L2-regularized logistic regression step. Features are padded or
    truncated to the weight length; empty weights take the feature length.
    """
    length = len(weights) or len(features)
    w = ensure_weights_length(weights, length)
    x = ensure_weights_length(features, length)
    if mask_hard_constraints:
        x = mask_features(x)

    prediction = sigmoid(sum(wi * xi for wi, xi in zip(w, x)))
    error = prediction - label
    return [wi - learning_rate * (error * xi + regularization * wi) for wi, xi in zip(w, x)]


def apply_feedback(
    weights: Sequence[float],
    examples: Sequence[FeedbackExample],
    params: LearnerParams = None,
    feedback_count: int = 0,
) -> List[float]:
    """
    Run ``sgd_step`` over ``examples`` in order. Nothing changes until at
    least ``params.min_feedback`` feedback rows have been collected.
    """
    params = params or LearnerParams()
    updated = [float(w) for w in weights]
    if feedback_count < params.min_feedback:
        logger.info(f"Skipping model update: {feedback_count} of {params.min_feedback} feedback rows")
        return updated
    if not examples:
        return updated

    for example in examples:
        updated = sgd_step(
            updated,
            example.features_snapshot,
            example.label,
            learning_rate=params.learning_rate,
            regularization=params.regularization,
            mask_hard_constraints=(params.mask_hard_constraints if example.mask_hard_constraints is None
                                   else example.mask_hard_constraints),
        )
    logger.info(f"Applied {len(examples)} feedback examples")
    return updated
