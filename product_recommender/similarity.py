"""
Item Similarity
Log-likelihood ratio similarity between items, memoized per item pair
"""

import logging
import threading
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

import numpy as np
from scipy.special import xlogy

from .config import SIMILARITY_PARAMS
from .exceptions import InvalidArgumentError
from .preferences import PreferenceStore
from .scoring import RecommendedItem, top_items

logger = logging.getLogger(__name__)


def _entropy(*counts: int) -> float:
    """Unnormalized Shannon entropy: xlogx(sum) - sum(xlogx(k))."""
    counts = np.asarray(counts, dtype=float)
    total = counts.sum()
    return float(xlogy(total, total) - xlogy(counts, counts).sum())


def log_likelihood_ratio(k11: int, k12: int, k21: int, k22: int) -> float:
    """
    Log-likelihood ratio test statistic of a 2x2 contingency table.

    Args:
        k11: Events where both A and B occur
        k12: Events where B occurs without A
        k21: Events where A occurs without B
        k22: Events where neither occurs

    Returns:
        Non-negative LLR score; 0.0 for independent events
    """
    if min(k11, k12, k21, k22) < 0:
        raise InvalidArgumentError(f"Counts must be non-negative: {(k11, k12, k21, k22)}")

    row_entropy = _entropy(k11 + k12, k21 + k22)
    column_entropy = _entropy(k11 + k21, k12 + k22)
    matrix_entropy = _entropy(k11, k12, k21, k22)
    if row_entropy + column_entropy < matrix_entropy:
        # round-off error
        return 0.0
    return 2.0 * (row_entropy + column_entropy - matrix_entropy)


class LogLikelihoodSimilarity:
    """
    Item-item similarity from co-occurrence of raters.

    For items A and B the four counts are the users who rated both, only B,
    only A and neither. The LLR statistic over them is mapped into [0, 1)
    with 1 - 1 / (1 + llr). Items with no shared raters have no similarity
    (NaN). Preference values do not enter the score, only their presence.

    Defined scores are memoized by unordered item pair; a pair without shared
    raters is recounted on every call. The instance listens to its
    store: entries for a mutated item are dropped inside the store's write
    lock, and the whole cache is dropped when the number of users changes
    since that count enters every score.
    """

    def __init__(self, store: PreferenceStore):
        self.store = store
        self._cache: Dict[Tuple[int, int], float] = {}
        self._partners: Dict[int, Set[int]] = {}
        self._cache_lock = threading.Lock()
        store.add_listener(self._on_store_mutation)

    @staticmethod
    def _key(item_a: int, item_b: int) -> Tuple[int, int]:
        return (item_a, item_b) if item_a <= item_b else (item_b, item_a)

    def item_similarity(self, item_a: int, item_b: int) -> float:
        """
        Similarity of two items.

        Returns:
            Score in [0, 1), or NaN when no user rated both items
        """
        key = self._key(item_a, item_b)
        with self.store.lock.read():
            with self._cache_lock:
                cached = self._cache.get(key)
            if cached is not None:
                return cached

            value = self._compute(item_a, item_b)
            if np.isnan(value):
                # not cached, so unknown item IDs cannot grow the cache
                return value
            with self._cache_lock:
                self._cache[key] = value
                self._partners.setdefault(key[0], set()).add(key[1])
                self._partners.setdefault(key[1], set()).add(key[0])
        return value

    def item_similarities(self, item_id: int, other_item_ids: Iterable[int]) -> np.ndarray:
        """Similarity of item_id to each of other_item_ids, in order."""
        with self.store.lock.read():
            return np.array(
                [self.item_similarity(item_id, other) for other in other_item_ids],
                dtype=float
            )

    def _compute(self, item_a: int, item_b: int) -> float:
        preferring_both = self.store.num_co_raters(item_a, item_b)
        if preferring_both == 0:
            return float('nan')

        preferring_a = self.store.num_raters(item_a)
        preferring_b = self.store.num_raters(item_b)
        num_users = self.store.num_users
        llr = log_likelihood_ratio(
            preferring_both,
            preferring_b - preferring_both,
            preferring_a - preferring_both,
            num_users - preferring_a - preferring_b + preferring_both
        )
        return 1.0 - 1.0 / (1.0 + llr)

    def most_similar(self,
                     item_ids: Iterable[int],
                     how_many: int,
                     exclude_item_if_not_similar_to_all: bool =
                     SIMILARITY_PARAMS['exclude_item_if_not_similar_to_all']) -> List[RecommendedItem]:
        """
        Items most similar to a set of items.

        Candidates are the items co-rated with at least one input item. Each is
        scored by its mean similarity to the input items it has a defined
        similarity with.

        Args:
            item_ids: Input items; never part of the result
            how_many: Maximum number of items to return
            exclude_item_if_not_similar_to_all: Drop candidates lacking a
                defined similarity to any input item

        Returns:
            List of RecommendedItem, most similar first
        """
        if how_many < 1:
            raise InvalidArgumentError(f"how_many must be positive, got {how_many}")

        inputs = list(dict.fromkeys(item_ids))
        with self.store.lock.read():
            candidates = set()
            for item_id in inputs:
                for user_id in self.store.users_for_item(item_id):
                    candidates.update(self.store.preference_values_for_user(user_id))
            candidates.difference_update(inputs)

            scores = {}
            for candidate in candidates:
                similarities = self.item_similarities(candidate, inputs)
                defined = similarities[~np.isnan(similarities)]
                if defined.size == 0:
                    continue
                if exclude_item_if_not_similar_to_all and defined.size < len(inputs):
                    continue
                scores[candidate] = float(defined.mean())

        return top_items(scores, how_many)

    # -------------------------------------------------------------------------
    # Cache maintenance
    # -------------------------------------------------------------------------

    def detach(self):
        """
        Stop listening to the store.

        Call this before discarding a similarity over a store that outlives
        it. The cache is cleared since it can no longer be kept current.
        """
        self.store.remove_listener(self._on_store_mutation)
        self.clear_cache()

    def _on_store_mutation(self, item_ids: FrozenSet[int], population_changed: bool):
        if population_changed:
            self.clear_cache()
            return
        for item_id in item_ids:
            self.invalidate_item(item_id)

    def invalidate_item(self, item_id: int):
        """Drop every cached score that involves item_id."""
        with self._cache_lock:
            partners = self._partners.pop(item_id, set())
            for partner in partners:
                self._cache.pop(self._key(item_id, partner), None)
                if partner != item_id:
                    others = self._partners.get(partner)
                    if others is not None:
                        others.discard(item_id)
                        if not others:
                            del self._partners[partner]
        if partners:
            logger.debug(f"Invalidated {len(partners)} cached similarities for item {item_id}")

    def clear_cache(self):
        with self._cache_lock:
            dropped = len(self._cache)
            self._cache.clear()
            self._partners.clear()
        if dropped:
            logger.debug(f"Cleared {dropped} cached similarities")

    @property
    def cache_size(self) -> int:
        with self._cache_lock:
            return len(self._cache)
