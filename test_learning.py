#!/usr/bin/env python3
"""
Tests for the online learner
"""

import pytest

from dayplan.scheduling.core.constants import DEFAULT_WEIGHTS, HARD_CONSTRAINT_FEATURES, Profile
from dayplan.scheduling.learning.sgd import (
    FeedbackExample, LearnerParams, apply_feedback, mask_features, sgd_step
)
from dayplan.scheduling.scoring.utility import ensure_weights_length, sigmoid, utility_score

FEATURES = [0.7, 0.3, 0.6, -1.0, 0.0, 0.5, -1.0, 0.0, -1.0, 1.0, 0.0, -0.5]


def predicted(weights, features):
    return sigmoid(utility_score(weights, features))


def test_positive_feedback_raises_prediction():
    weights = list(DEFAULT_WEIGHTS[Profile.ADULT])
    updated = apply_feedback(weights, [FeedbackExample(features_snapshot=FEATURES, label=1)],
                             feedback_count=20)

    assert predicted(updated, FEATURES) > predicted(weights, FEATURES)


def test_negative_feedback_lowers_prediction():
    weights = list(DEFAULT_WEIGHTS[Profile.ADULT])
    updated = apply_feedback(weights, [FeedbackExample(features_snapshot=FEATURES, label=0)],
                             feedback_count=25)

    assert predicted(updated, FEATURES) < predicted(weights, FEATURES)


@pytest.mark.parametrize("label", [0, 1])
def test_masking_leaves_hard_constraint_weights_to_regularization(label):
    weights = list(DEFAULT_WEIGHTS[Profile.CHILD])
    params = LearnerParams(mask_hard_constraints=True)
    updated = apply_feedback(weights, [FeedbackExample(features_snapshot=FEATURES, label=label)],
                             params, feedback_count=20)

    decay = 1 - params.learning_rate * params.regularization
    for index in HARD_CONSTRAINT_FEATURES:
        assert updated[index] == pytest.approx(weights[index] * decay)
    # Soft features still learn
    assert updated[9] != pytest.approx(weights[9] * decay)


def test_per_example_mask_overrides_params():
    weights = list(DEFAULT_WEIGHTS[Profile.ADULT])
    example = FeedbackExample(features_snapshot=FEATURES, label=1, mask_hard_constraints=True)
    params = LearnerParams(mask_hard_constraints=False)
    updated = apply_feedback(weights, [example], params, feedback_count=20)

    decay = 1 - params.learning_rate * params.regularization
    assert updated[6] == pytest.approx(weights[6] * decay)


def test_no_update_below_feedback_threshold():
    weights = list(DEFAULT_WEIGHTS[Profile.ADULT])
    updated = apply_feedback(weights, [FeedbackExample(features_snapshot=FEATURES, label=1)],
                             feedback_count=19)

    assert updated == weights


def test_examples_apply_in_order():
    weights = list(DEFAULT_WEIGHTS[Profile.ADULT])
    first = FeedbackExample(features_snapshot=FEATURES, label=1)
    second = FeedbackExample(features_snapshot=[0.0] * 11 + [1.0], label=0)

    batched = apply_feedback(weights, [first, second], feedback_count=20)
    stepped = sgd_step(sgd_step(weights, FEATURES, 1), second.features_snapshot, 0)

    assert batched == pytest.approx(stepped)


def test_sgd_step_reconciles_lengths():
    weights = list(DEFAULT_WEIGHTS[Profile.ADULT])

    assert len(sgd_step(weights, FEATURES[:8], 1)) == len(weights)
    assert len(sgd_step(weights, FEATURES + [1.0, 1.0], 1)) == len(weights)
    assert len(sgd_step([], FEATURES, 1)) == len(FEATURES)


def test_sgd_step_matches_the_update_rule():
    weights = [0.5, -0.5]
    features = [1.0, 2.0]
    prediction = sigmoid(0.5 * 1.0 - 0.5 * 2.0)
    error = prediction - 1

    updated = sgd_step(weights, features, 1, learning_rate=0.1, regularization=0.01)

    assert updated[0] == pytest.approx(0.5 - 0.1 * (error * 1.0 + 0.01 * 0.5))
    assert updated[1] == pytest.approx(-0.5 - 0.1 * (error * 2.0 + 0.01 * -0.5))


def test_mask_features_zeroes_conflicts_only():
    masked = mask_features(FEATURES)
    for index, value in enumerate(masked):
        if index in HARD_CONSTRAINT_FEATURES:
            assert value == 0.0
        else:
            assert value == FEATURES[index]


def test_utility_helpers():
    assert ensure_weights_length([1.0], 3) == [1.0, 0.0, 0.0]
    assert ensure_weights_length([1.0, 2.0, 3.0], 2) == [1.0, 2.0]
    with pytest.raises(ValueError):
        ensure_weights_length([1.0], 0)

    assert utility_score([1.0, 2.0], [0.5, 0.25, 9.0]) == pytest.approx(1.0)
    assert sigmoid(0) == 0.5
    assert sigmoid(100) == 1.0
    assert sigmoid(-100) == 0.0
    assert sigmoid(-1) < sigmoid(0) < sigmoid(1)
