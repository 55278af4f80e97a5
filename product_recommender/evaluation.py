"""
Offline evaluation for the Product Recommender
Ranking metrics and hold-out evaluators
"""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Set

import numpy as np
from sklearn.model_selection import train_test_split

from .config import EVAL_AT, RANDOM_STATE, RELEVANCE_THRESHOLD, TEST_SIZE
from .exceptions import InvalidArgumentError, NotComputableError
from .preferences import Preference, PreferenceStore
from .recommender import ItemBasedRecommender

logger = logging.getLogger(__name__)


# =============================================================================
# RANKING METRICS
# =============================================================================

def precision_at_k(recommended: List[int], relevant: Set[int], k: int) -> float:
    """
    Compute Precision@K.

    Args:
        recommended: List of recommended item IDs (in order)
        relevant: Set of relevant (ground truth) item IDs
        k: Number of top recommendations to consider

    Returns:
        Precision@K score
    """
    if k <= 0:
        return 0.0

    n_relevant = len(set(recommended[:k]) & relevant)
    return n_relevant / k


def recall_at_k(recommended: List[int], relevant: Set[int], k: int) -> float:
    """
    Compute Recall@K.

    Args:
        recommended: List of recommended item IDs (in order)
        relevant: Set of relevant (ground truth) item IDs
        k: Number of top recommendations to consider

    Returns:
        Recall@K score
    """
    if len(relevant) == 0:
        return 0.0

    n_relevant = len(set(recommended[:k]) & relevant)
    return n_relevant / len(relevant)


def ndcg_at_k(recommended: List[int], relevant: Set[int], k: int) -> float:
    """Compute Normalized Discounted Cumulative Gain at K."""
    dcg = sum(
        1.0 / np.log2(i + 2)
        for i, item in enumerate(recommended[:k])
        if item in relevant
    )
    idcg = sum(1.0 / np.log2(i + 2) for i in range(min(len(relevant), k)))

    if idcg == 0:
        return 0.0

    return float(dcg / idcg)


def mean_reciprocal_rank(recommended: List[int], relevant: Set[int]) -> float:
    for i, item in enumerate(recommended):
        if item in relevant:
            return 1.0 / (i + 1)
    return 0.0


def hit_rate_at_k(recommended: List[int], relevant: Set[int], k: int) -> float:
    return 1.0 if set(recommended[:k]) & relevant else 0.0


# =============================================================================
# EVALUATORS
# =============================================================================

def evaluate_estimates(preferences: Sequence[Preference],
                       test_size: float = TEST_SIZE,
                       random_state: int = RANDOM_STATE) -> Dict[str, float]:
    """
    Evaluate estimate accuracy on a random hold-out split.

    A recommender is built on the training preferences and asked to estimate
    each held-out preference. Pairs it cannot compute are counted in the
    coverage figure rather than the error.

    Args:
        preferences: All preference records
        test_size: Proportion of records held out
        random_state: Random seed for reproducibility

    Returns:
        Dictionary with mae, rmse, coverage and the number of evaluated pairs
    """
    if len(preferences) < 2:
        raise InvalidArgumentError("Need at least two preferences to evaluate")

    train, test = train_test_split(
        list(preferences),
        test_size=test_size,
        random_state=random_state
    )
    recommender = ItemBasedRecommender(PreferenceStore(train))

    errors = []
    for pref in test:
        try:
            estimated = recommender.estimate_preference(pref.user_id, pref.item_id)
        except NotComputableError:
            continue
        errors.append(estimated - pref.value)

    errors = np.array(errors, dtype=float)
    results = {
        'mae': float(np.abs(errors).mean()) if errors.size else float('nan'),
        'rmse': float(np.sqrt((errors ** 2).mean())) if errors.size else float('nan'),
        'coverage': errors.size / len(test),
        'n_evaluated': int(errors.size),
    }
    logger.info(f"Estimate evaluation: {results}")
    return results


def evaluate_rankings(preferences: Sequence[Preference],
                      at: int = EVAL_AT,
                      relevance_threshold: float = RELEVANCE_THRESHOLD) -> Dict[str, float]:
    """
    Evaluate recommendation lists by hiding each user's best items.

    For every user with more than ``at`` preferences, the top ``at`` items
    valued at or above the threshold are removed from the training data and
    treated as the relevant set for that user's recommendations.

    Args:
        preferences: All preference records
        at: Number of recommendations (and maximum hidden items) per user
        relevance_threshold: Minimum value for an item to be relevant

    Returns:
        Dictionary with averaged precision, recall, ndcg, mrr and hit rate
    """
    if at < 1:
        raise InvalidArgumentError(f"at must be positive, got {at}")

    by_user = defaultdict(list)
    for pref in preferences:
        by_user[pref.user_id].append(pref)

    metrics = defaultdict(list)
    for user_id, user_prefs in by_user.items():
        if len(user_prefs) <= at:
            continue

        ranked = sorted(user_prefs, key=lambda p: (-p.value, p.item_id))
        relevant = {p.item_id for p in ranked[:at] if p.value >= relevance_threshold}
        if not relevant:
            continue

        train = [p for p in preferences if p.user_id != user_id or p.item_id not in relevant]
        recommender = ItemBasedRecommender(PreferenceStore(train))
        recs = [item.item_id for item in recommender.recommend(user_id, at)]

        metrics['precision'].append(precision_at_k(recs, relevant, at))
        metrics['recall'].append(recall_at_k(recs, relevant, at))
        metrics['ndcg'].append(ndcg_at_k(recs, relevant, at))
        metrics['mrr'].append(mean_reciprocal_rank(recs, relevant))
        metrics['hit_rate'].append(hit_rate_at_k(recs, relevant, at))

    results = {
        f'precision@{at}': float(np.mean(metrics['precision'])) if metrics['precision'] else 0.0,
        f'recall@{at}': float(np.mean(metrics['recall'])) if metrics['recall'] else 0.0,
        f'ndcg@{at}': float(np.mean(metrics['ndcg'])) if metrics['ndcg'] else 0.0,
        'mrr': float(np.mean(metrics['mrr'])) if metrics['mrr'] else 0.0,
        f'hit_rate@{at}': float(np.mean(metrics['hit_rate'])) if metrics['hit_rate'] else 0.0,
        'n_users': len(metrics['precision']),
    }
    logger.info(f"Ranking evaluation: {results}")
    return results
