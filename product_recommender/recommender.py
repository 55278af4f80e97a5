"""
Item-Based Recommender
Orchestrates candidate generation, LLR similarity and scoring
"""

import logging
from typing import Iterable, List, Optional, Union

import numpy as np

from .candidates import CandidateGenerator
from .config import DEFAULT_HOW_MANY
from .exceptions import InvalidArgumentError, NotComputableError, UnknownUserError
from .preferences import PreferenceStore
from .scoring import IDRescorer, RecommendedItem, estimate, top_items
from .similarity import LogLikelihoodSimilarity

logger = logging.getLogger(__name__)


class ItemBasedRecommender:
    """
    Item-based collaborative filtering recommender.

    The estimated preference of a user for an item is the average of the
    user's known preference values, weighted by the similarity between the
    item and each rated item. Safe to share between threads: every query runs
    under one read lock on the store, so it sees a single consistent state.
    """

    def __init__(self,
                 store: PreferenceStore,
                 similarity: Optional[LogLikelihoodSimilarity] = None,
                 candidate_generator: Optional[CandidateGenerator] = None):
        """
        Initialize the recommender.

        Args:
            store: Preference store shared with writers
            similarity: Item similarity over the same store (built if None)
            candidate_generator: Candidate strategy over the same store (built if None)
        """
        self._store = store
        self._similarity = similarity or LogLikelihoodSimilarity(store)
        self._candidate_generator = candidate_generator or CandidateGenerator(store)

    @property
    def store(self) -> PreferenceStore:
        return self._store

    @property
    def similarity(self) -> LogLikelihoodSimilarity:
        return self._similarity

    def recommend(self,
                  user_id: int,
                  how_many: int = DEFAULT_HOW_MANY,
                  rescorer: Optional[IDRescorer] = None) -> List[RecommendedItem]:
        """
        Generate recommendations for a user.

        Args:
            user_id: User to recommend for
            how_many: Maximum number of recommendations
            rescorer: Optional hook to filter or adjust scores

        Returns:
            List of RecommendedItem, highest estimate first. Candidates without
            similarity signal are left out.
        """
        _check_how_many(how_many)

        with self._store.lock.read():
            rated = self._store.preference_values_for_user(user_id)
            if not rated:
                raise UnknownUserError(user_id)

            rated_items = list(rated)
            rated_values = np.array([rated[item_id] for item_id in rated_items], dtype=float)

            scores = {}
            for candidate in self._candidate_generator.candidate_items(user_id):
                similarities = self._similarity.item_similarities(candidate, rated_items)
                value = estimate(similarities, rated_values)
                if value is not None:
                    scores[candidate] = value

        recommendations = top_items(scores, how_many, rescorer)
        logger.debug(f"Recommended {len(recommendations)} of {len(scores)} scored items for user {user_id}")
        return recommendations

    def most_similar_items(self,
                           item_ids: Union[int, Iterable[int]],
                           how_many: int = DEFAULT_HOW_MANY) -> List[RecommendedItem]:
        """
        Get items most similar to an item or a set of items.

        Args:
            item_ids: A single item ID or an iterable of item IDs
            how_many: Maximum number of items to return

        Returns:
            List of RecommendedItem, excluding the input items
        """
        _check_how_many(how_many)
        if isinstance(item_ids, (int, np.integer)):
            item_ids = [item_ids]
        return self._similarity.most_similar(item_ids, how_many)

    def estimate_preference(self, user_id: int, item_id: int) -> float:
        """
        Estimate a user's preference for an item.

        The item is compared with every other item the user rated; it is never
        compared with itself, so an item the user rated alone is not
        computable.

        Raises:
            NotComputableError: No rated item has a similarity weight to item_id
        """
        with self._store.lock.read():
            rated = self._store.preference_values_for_user(user_id)
            rated.pop(item_id, None)
            if not rated:
                raise NotComputableError(user_id, item_id, "user has no other preferences")

            rated_items = list(rated)
            similarities = self._similarity.item_similarities(item_id, rated_items)
            value = estimate(similarities, [rated[i] for i in rated_items])

        if value is None:
            raise NotComputableError(user_id, item_id)
        return value

    def set_preference(self, user_id: int, item_id: int, value: float):
        self._store.set_preference(user_id, item_id, value)

    def remove_preference(self, user_id: int, item_id: int):
        self._store.remove_preference(user_id, item_id)

    def refresh(self):
        """Drop all cached derived state so it is recomputed on demand."""
        with self._store.lock.write():
            dropped = self._similarity.cache_size
            self._similarity.clear_cache()
        logger.info(f"Recommender refreshed ({dropped} cached similarities dropped)")


def _check_how_many(how_many: int):
    if isinstance(how_many, bool) or not isinstance(how_many, (int, np.integer)) or how_many < 1:
        raise InvalidArgumentError(f"how_many must be a positive integer, got {how_many!r}")
