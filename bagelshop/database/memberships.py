"""Membership storage"""

import threading
from typing import Optional

from ..models.membership import Membership


class MembershipDatabase:
    """In-memory membership storage keyed by user ID"""

    def __init__(self):
        self.memberships: dict[str, Membership] = {}
        self._lock = threading.Lock()

    def get_by_user(self, user_id: str) -> Optional[Membership]:
        """Get the membership record for a user"""
        return self.memberships.get(user_id)

    def upsert(self, membership: Membership) -> Membership:
        """Create or replace the membership record for a user"""
        with self._lock:
            self.memberships[membership.user_id] = membership
        return membership

    def consume_delivery(self, user_id: str) -> Optional[Membership]:
        """
        Atomically decrement deliveries_left.

        Returns the updated membership, or None when the user has no record
        or no deliveries left.
        """
        with self._lock:
            membership = self.memberships.get(user_id)
            if not membership or membership.deliveries_left <= 0:
                return None
            updated = membership.model_copy(
                update={"deliveries_left": membership.deliveries_left - 1}
            )
            self.memberships[user_id] = updated
            return updated

    def clear(self) -> None:
        with self._lock:
            self.memberships.clear()


# Singleton instance
membership_db = MembershipDatabase()
