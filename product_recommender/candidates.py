"""
Candidate generation for item-based recommendation
"""

from typing import Set

from .preferences import PreferenceStore


class CandidateGenerator:
    """
    Chooses which items are worth scoring for a user.

    Candidates are the items rated by any user who shares at least one rated
    item with the target user, minus the items the target user already rated.
    """

    def __init__(self, store: PreferenceStore):
        self.store = store

    def candidate_items(self, user_id: int) -> Set[int]:
        """
        Get candidate item IDs for a user.

        Args:
            user_id: Target user

        Returns:
            Set of item IDs; empty when the user has no preferences
        """
        with self.store.lock.read():
            rated = self.store.preference_values_for_user(user_id)
            candidates = set()
            seen_users = set()
            for item_id in rated:
                for other_user in self.store.users_for_item(item_id):
                    if other_user in seen_users:
                        continue
                    seen_users.add(other_user)
                    candidates.update(self.store.preference_values_for_user(other_user))

        candidates.difference_update(rated)
        return candidates
