"""
Preference Store
In-memory sparse user-item preference matrix with a reverse item index
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from .locking import ReadWriteLock

logger = logging.getLogger(__name__)

# Called inside the write lock with the touched item IDs and whether the set
# of known users changed.
MutationListener = Callable[[FrozenSet[int], bool], None]


@dataclass(frozen=True)
class Preference:
    """A user's recorded affinity for an item."""
    user_id: int
    item_id: int
    value: float


class PreferenceStore:
    """
    Owns every preference record.

    Keeps two indexes that are always updated together under the write lock:
    user -> {item: value} (insertion ordered) and item -> {users}. A user or
    item whose last preference is removed disappears from its index.
    """

    def __init__(self, preferences: Optional[Iterable[Preference]] = None):
        self.lock = ReadWriteLock()
        self._user_prefs: Dict[int, Dict[int, float]] = {}
        self._item_users: Dict[int, set] = {}
        self._listeners: List[MutationListener] = []

        if preferences is not None:
            self.bulk_load(preferences)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def add_listener(self, listener: MutationListener):
        """Register a callback run after every mutation, inside the write lock."""
        with self.lock.write():
            self._listeners.append(listener)

    def remove_listener(self, listener: MutationListener):
        """Unregister a callback; does nothing when it is not registered."""
        with self.lock.write():
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, item_ids: FrozenSet[int], population_changed: bool):
        for listener in self._listeners:
            listener(item_ids, population_changed)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def set_preference(self, user_id: int, item_id: int, value: float):
        """Insert or overwrite the preference of user_id for item_id."""
        with self.lock.write():
            population_changed = self._set(user_id, item_id, float(value))
            self._notify(frozenset((item_id,)), population_changed)

    def remove_preference(self, user_id: int, item_id: int):
        """Remove a preference; does nothing when it is absent."""
        with self.lock.write():
            user_items = self._user_prefs.get(user_id)
            if user_items is None or item_id not in user_items:
                return
            population_changed = self._remove(user_id, item_id)
            self._notify(frozenset((item_id,)), population_changed)

    def bulk_load(self, preferences: Iterable[Preference]) -> int:
        """
        Apply many preferences under a single write lock.

        Args:
            preferences: Preference records; later records overwrite earlier ones

        Returns:
            Number of records applied
        """
        with self.lock.write():
            touched = set()
            population_changed = False
            count = 0
            for pref in preferences:
                population_changed |= self._set(pref.user_id, pref.item_id, float(pref.value))
                touched.add(pref.item_id)
                count += 1
            if count:
                self._notify(frozenset(touched), population_changed)

        logger.info(f"Loaded {count} preferences ({self.num_users} users, {self.num_items} items)")
        return count

    def _set(self, user_id: int, item_id: int, value: float) -> bool:
        new_user = user_id not in self._user_prefs
        self._user_prefs.setdefault(user_id, {})[item_id] = value
        self._item_users.setdefault(item_id, set()).add(user_id)
        return new_user

    def _remove(self, user_id: int, item_id: int) -> bool:
        user_items = self._user_prefs[user_id]
        del user_items[item_id]
        raters = self._item_users[item_id]
        raters.discard(user_id)
        if not raters:
            del self._item_users[item_id]
        if not user_items:
            del self._user_prefs[user_id]
            return True
        return False

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def preferences_for_user(self, user_id: int) -> List[Preference]:
        """Preferences of a user in insertion order; empty for unknown users."""
        with self.lock.read():
            items = self._user_prefs.get(user_id, {})
            return [Preference(user_id, item_id, value) for item_id, value in items.items()]

    def preference_values_for_user(self, user_id: int) -> Dict[int, float]:
        """Copy of the user's item -> value mapping."""
        with self.lock.read():
            return dict(self._user_prefs.get(user_id, {}))

    def users_for_item(self, item_id: int) -> FrozenSet[int]:
        """IDs of the users who have a preference for item_id."""
        with self.lock.read():
            return frozenset(self._item_users.get(item_id, ()))

    def get_preference(self, user_id: int, item_id: int) -> Optional[float]:
        with self.lock.read():
            return self._user_prefs.get(user_id, {}).get(item_id)

    def has_user(self, user_id: int) -> bool:
        with self.lock.read():
            return user_id in self._user_prefs

    def has_item(self, item_id: int) -> bool:
        with self.lock.read():
            return item_id in self._item_users

    def user_ids(self) -> List[int]:
        with self.lock.read():
            return sorted(self._user_prefs)

    def item_ids(self) -> List[int]:
        with self.lock.read():
            return sorted(self._item_users)

    def num_raters(self, item_id: int) -> int:
        with self.lock.read():
            return len(self._item_users.get(item_id, ()))

    def num_co_raters(self, item_a: int, item_b: int) -> int:
        """Number of users with a preference for both items."""
        with self.lock.read():
            raters_a = self._item_users.get(item_a, set())
            raters_b = self._item_users.get(item_b, set())
            if len(raters_a) > len(raters_b):
                raters_a, raters_b = raters_b, raters_a
            return sum(1 for user_id in raters_a if user_id in raters_b)

    @property
    def num_users(self) -> int:
        with self.lock.read():
            return len(self._user_prefs)

    @property
    def num_items(self) -> int:
        with self.lock.read():
            return len(self._item_users)

    @property
    def num_preferences(self) -> int:
        with self.lock.read():
            return sum(len(items) for items in self._user_prefs.values())

    def get_statistics(self) -> Dict:
        """
        Get store statistics.

        Returns:
            Dictionary with user, item and preference counts and sparsity
        """
        with self.lock.read():
            n_users = self.num_users
            n_items = self.num_items
            n_prefs = self.num_preferences
            cells = n_users * n_items
            return {
                'n_users': n_users,
                'n_items': n_items,
                'n_preferences': n_prefs,
                'avg_preferences_per_user': n_prefs / n_users if n_users else 0.0,
                'sparsity': 1 - n_prefs / cells if cells else 0.0,
            }
