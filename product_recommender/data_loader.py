"""
Data Loader for the Product Recommender
Reads preference files into a PreferenceStore at startup
"""

import logging
import os
from typing import List, Optional

import pandas as pd

from .config import DATA_FILE, IMPLICIT_PREFERENCE_VALUE
from .exceptions import InvalidArgumentError
from .preferences import Preference, PreferenceStore
from .recommender import ItemBasedRecommender

logger = logging.getLogger(__name__)

COLUMNS = ['user_id', 'item_id', 'value']
# trailing timestamp is accepted and ignored
FIELDS = COLUMNS + ['timestamp']


def read_preferences_frame(path: str) -> pd.DataFrame:
    """
    Read a preference file into a DataFrame.

    Each line holds ``user,item[,value[,timestamp]]``, separated by commas or
    tabs. Lines starting with ``#`` are ignored, and so is the timestamp. A
    missing value marks an implicit preference and is stored as
    IMPLICIT_PREFERENCE_VALUE.

    Args:
        path: Path to the preference file

    Returns:
        DataFrame with columns user_id (int64), item_id (int64), value (float64)
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Preference file not found at {path}")

    with open(path, encoding='utf-8') as f:
        lines = pd.Series([line.strip() for line in f], dtype=object)
    lines = lines[(lines != '') & ~lines.str.startswith('#')].reset_index(drop=True)
    if lines.empty:
        return _empty_frame()

    fields = lines.str.split(r'[,\t]', regex=True, expand=True)
    if fields.shape[1] > len(FIELDS):
        too_long = fields[len(FIELDS)].notna()
        line = int(too_long.idxmax())
        raise InvalidArgumentError(
            f"Record {line} of {path} has more than {len(FIELDS)} fields"
        )
    fields = fields.reindex(columns=range(len(FIELDS)))
    fields.columns = FIELDS
    df = fields[COLUMNS].apply(lambda column: column.str.strip() if column.notna().any() else column)

    missing_ids = df['user_id'].isna() | df['item_id'].isna() | (df['user_id'] == '') | (df['item_id'] == '')
    if missing_ids.any():
        line = int(missing_ids.idxmax())
        raise InvalidArgumentError(f"Missing user or item ID in record {line} of {path}")

    try:
        df['user_id'] = df['user_id'].astype('int64')
        df['item_id'] = df['item_id'].astype('int64')
    except ValueError as e:
        raise InvalidArgumentError(f"Malformed identifier in {path}: {e}") from e

    values = df['value'].where(df['value'].notna() & (df['value'] != ''))
    try:
        df['value'] = pd.to_numeric(values).astype('float64').fillna(IMPLICIT_PREFERENCE_VALUE)
    except ValueError as e:
        raise InvalidArgumentError(f"Malformed preference value in {path}: {e}") from e

    return df


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame({
        'user_id': pd.Series(dtype='int64'),
        'item_id': pd.Series(dtype='int64'),
        'value': pd.Series(dtype='float64'),
    })


def load_preferences(path: str = DATA_FILE) -> List[Preference]:
    """
    Load preference records from a file.

    Args:
        path: Path to the preference file

    Returns:
        List of Preference in file order
    """
    df = read_preferences_frame(path)
    preferences = [
        Preference(int(row.user_id), int(row.item_id), float(row.value))
        for row in df.itertuples(index=False)
    ]
    logger.info(f"Read {len(preferences)} preference records from {path}")
    return preferences


def build_store(path: Optional[str] = None) -> PreferenceStore:
    """Create a PreferenceStore seeded from a preference file."""
    return PreferenceStore(load_preferences(path or DATA_FILE))


def build_recommender(path: Optional[str] = None) -> ItemBasedRecommender:
    """Create an ItemBasedRecommender over a store seeded from a file."""
    return ItemBasedRecommender(build_store(path))
