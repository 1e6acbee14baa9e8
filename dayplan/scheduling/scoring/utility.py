"""
Linear utility model over the slot feature vector.
"""

import math
from typing import List, Sequence

SIGMOID_CLAMP = 30.0


def ensure_weights_length(weights: Sequence[float], length: int) -> List[float]:
    """
    Pad with zeros or truncate so ``weights`` has exactly ``length`` entries.
    """
    if length <= 0:
        raise ValueError("Feature length must be positive")
    weights = [float(w) for w in (weights or [])]
    if len(weights) >= length:
        return weights[:length]
    return weights + [0.0] * (length - len(weights))


def utility_score(weights: Sequence[float], features: Sequence[float]) -> float:
    """Dot product of weights and features, weights reconciled to the feature length."""
    aligned = ensure_weights_length(weights, len(features))
    return sum(w * x for w, x in zip(aligned, features))


def sigmoid(z: float) -> float:
    if z > SIGMOID_CLAMP:
        return 1.0
    if z < -SIGMOID_CLAMP:
        return 0.0
    return 1 / (1 + math.exp(-z))
