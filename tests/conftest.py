import pytest

from product_recommender.preferences import Preference, PreferenceStore
from product_recommender.recommender import ItemBasedRecommender

ITEM_A, ITEM_B, ITEM_C = 1, 2, 3

SAMPLE_RECORDS = [
    (1, 101, 5.0), (1, 102, 3.0), (1, 103, 2.5),
    (2, 101, 2.0), (2, 102, 2.5), (2, 103, 5.0), (2, 104, 2.0),
    (3, 101, 2.5), (3, 104, 4.0), (3, 105, 4.5), (3, 107, 5.0),
    (4, 101, 5.0), (4, 103, 3.0), (4, 104, 4.5), (4, 106, 4.0),
    (5, 101, 4.0), (5, 102, 3.0), (5, 103, 2.0), (5, 104, 4.0),
    (5, 105, 3.5), (5, 106, 4.0),
]


@pytest.fixture
def sample_preferences():
    return [Preference(u, i, v) for u, i, v in SAMPLE_RECORDS]


@pytest.fixture
def sample_store(sample_preferences):
    return PreferenceStore(sample_preferences)


@pytest.fixture
def sample_recommender(sample_store):
    return ItemBasedRecommender(sample_store)


@pytest.fixture
def scenario_store():
    """Users 1 and 2 both like items A and B; user 3 only rated C."""
    return PreferenceStore([
        Preference(1, ITEM_A, 5.0), Preference(1, ITEM_B, 4.5),
        Preference(2, ITEM_A, 4.5), Preference(2, ITEM_B, 5.0),
        Preference(3, ITEM_C, 3.0),
    ])


@pytest.fixture
def scenario_recommender(scenario_store):
    return ItemBasedRecommender(scenario_store)
