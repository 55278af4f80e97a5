"""
Scoring and ranking
Similarity-weighted preference estimates and deterministic top-N selection
"""

import heapq
import math
from dataclasses import dataclass
from functools import total_ordering
from typing import Dict, List, Optional

import numpy as np

from .exceptions import InvalidArgumentError


@total_ordering
@dataclass(frozen=True)
class RecommendedItem:
    """
    An item together with its estimated value.

    Items sort in ranking order: higher value first, then lower item ID.
    """
    item_id: int
    value: float

    def __lt__(self, other: 'RecommendedItem') -> bool:
        if not isinstance(other, RecommendedItem):
            return NotImplemented
        return (-self.value, self.item_id) < (-other.value, other.item_id)


class IDRescorer:
    """
    Hook for adjusting or filtering scores before ranking.

    The default implementation keeps every item unchanged; subclasses
    override one or both methods.
    """

    def rescore(self, item_id: int, value: float) -> float:
        return value

    def is_filtered(self, item_id: int) -> bool:
        return False


def estimate(similarities: np.ndarray, values: np.ndarray) -> Optional[float]:
    """
    Similarity-weighted average of known preference values.

    Args:
        similarities: Similarity of the target item to each rated item (NaN if undefined)
        values: The user's preference value for each rated item

    Returns:
        The estimate, or None when no rated item carries similarity weight
    """
    similarities = np.asarray(similarities, dtype=float)
    values = np.asarray(values, dtype=float)

    defined = ~np.isnan(similarities)
    weights = similarities[defined]
    denominator = np.abs(weights).sum()
    if denominator == 0:
        return None

    return float(np.dot(weights, values[defined]) / denominator)


def top_items(scores: Dict[int, float],
              how_many: int,
              rescorer: Optional[IDRescorer] = None) -> List[RecommendedItem]:
    """
    Select the best scored items.

    Ties are broken by ascending item ID, so the result for how_many is always
    a prefix of the result for how_many + 1.

    Args:
        scores: Mapping of item ID to score
        how_many: Maximum number of items to return
        rescorer: Optional rescorer applied before ranking

    Returns:
        List of RecommendedItem, best first
    """
    if how_many < 1:
        raise InvalidArgumentError(f"how_many must be positive, got {how_many}")

    candidates = []
    for item_id, value in scores.items():
        if rescorer is not None:
            if rescorer.is_filtered(item_id):
                continue
            value = rescorer.rescore(item_id, value)
        if value is None or math.isnan(value):
            continue
        candidates.append(RecommendedItem(item_id, float(value)))

    return heapq.nsmallest(how_many, candidates)
