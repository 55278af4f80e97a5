# Product Recommender
# Item-based collaborative filtering with log-likelihood similarity

from .config import DEFAULT_HOW_MANY
from .exceptions import (
    RecommenderError, UnknownUserError, NotComputableError, InvalidArgumentError,
)
from .preferences import Preference, PreferenceStore
from .similarity import LogLikelihoodSimilarity, log_likelihood_ratio
from .candidates import CandidateGenerator
from .scoring import RecommendedItem, IDRescorer, estimate, top_items
from .recommender import ItemBasedRecommender
from .data_loader import load_preferences, build_store, build_recommender
from .evaluation import (
    precision_at_k, recall_at_k, ndcg_at_k, mean_reciprocal_rank, hit_rate_at_k,
    evaluate_estimates, evaluate_rankings,
)

__version__ = "1.0.0"
