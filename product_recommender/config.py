"""
Configuration file for the Product Recommender
Centralizes all paths, parameters, and constants
"""

import os

# =============================================================================
# PATHS
# =============================================================================

# Project root directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Data directory
DATA_DIR = os.path.join(PROJECT_ROOT, 'data')

# Preference file loaded at startup (user,item[,value] per line)
DATA_FILE = os.environ.get('RECOMMENDER_DATA_FILE', os.path.join(DATA_DIR, 'data.txt'))

# =============================================================================
# MODEL PARAMETERS
# =============================================================================

# Number of recommendations returned when the caller does not ask for a count
DEFAULT_HOW_MANY = 20

# Value stored for a preference that carries no explicit rating
IMPLICIT_PREFERENCE_VALUE = 1.0

# Item similarity parameters
SIMILARITY_PARAMS = {
    'exclude_item_if_not_similar_to_all': False,  # most-similar over item sets
}

# =============================================================================
# EVALUATION PARAMETERS
# =============================================================================

# Hold-out ratio for estimate evaluation
TEST_SIZE = 0.2

# Random seed for reproducibility
RANDOM_STATE = 42

# Cut-off for ranking metrics
EVAL_AT = 5

# Minimum preference value for an item to count as relevant
RELEVANCE_THRESHOLD = 3.0

# =============================================================================
# API CONFIGURATION
# =============================================================================

# Flask API settings
API_HOST = os.environ.get('RECOMMENDER_HOST', '0.0.0.0')
API_PORT = int(os.environ.get('RECOMMENDER_PORT', 5001))

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get('RECOMMENDER_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
