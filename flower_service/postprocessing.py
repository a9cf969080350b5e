"""Turn raw logits into ranked, labelled percentages."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List, Sequence

import numpy as np

from .errors import ExecutionError

# Positionally aligned with the model's output indices.
FLOWER_LABELS = ("daisy", "dandelion", "rose", "sunflower", "tulip")
UNKNOWN_LABEL = "unknown"
TOP_K = 3


@dataclass(frozen=True)
class Classification:
    label: str
    score: float  # percentage, two decimals


def label_for_index(index: int, labels: Sequence[str] = FLOWER_LABELS) -> str:
    if 0 <= index < len(labels):
        return labels[index]
    return UNKNOWN_LABEL


def softmax(logits: np.ndarray) -> np.ndarray:
    """
    Plain exponential softmax, no max subtraction.

    Only suitable for bounded logits: large values overflow to inf/nan.
    """
    exp = np.exp(np.asarray(logits, dtype=np.float32).ravel())
    return exp / exp.sum()


def to_score(prob: float) -> float:
    """
    Probability -> percentage with two decimals, halves rounded away from zero.

    The scaling happens in float32, the precision the model outputs.
    """
    scaled = float(np.float32(prob) * np.float32(10000.0))
    rounded = math.floor(abs(scaled) + 0.5)
    return math.copysign(rounded, scaled) / 100.0


def rank(logits: np.ndarray, top_k: int = TOP_K, labels: Sequence[str] = FLOWER_LABELS) -> List[Classification]:
    """
    Return the `top_k` highest-scoring classifications, best first.

    Raises:
        ExecutionError: when the softmax overflows (logits out of range).
    """
    with np.errstate(over="ignore", invalid="ignore"):
        probs = softmax(logits)
    if not np.all(np.isfinite(probs)):
        raise ExecutionError("softmax overflow: logits out of range")
    scored = [
        Classification(label=label_for_index(i, labels), score=to_score(prob))
        for i, prob in enumerate(probs)
    ]
    # sorted() is stable, so ties keep output-index order
    scored = sorted(scored, key=lambda c: c.score, reverse=True)
    return scored[:top_k]
