"""Promo code storage"""

import threading
from typing import Optional

from ..models.promo import PromoCode


class PromoCodeDatabase:
    """
    In-memory promo code storage.

    Codes are unique and case-sensitive. Usage counters are only changed
    through increment_usage(), which re-checks the cap under the lock.
    """

    def __init__(self):
        self.codes: dict[str, PromoCode] = {}
        self._lock = threading.Lock()

    def create(self, promo: PromoCode) -> Optional[PromoCode]:
        """Store a new code; returns None if the code already exists"""
        with self._lock:
            if promo.code in self.codes:
                return None
            self.codes[promo.code] = promo
            return promo

    def get_by_code(self, code: str) -> Optional[PromoCode]:
        """Get a promo code by its code"""
        return self.codes.get(code)

    def list_codes(self) -> list[PromoCode]:
        return sorted(self.codes.values(), key=lambda p: p.code)

    def update(self, code: str, changes: dict) -> Optional[PromoCode]:
        """Apply field changes to a code; usage counters cannot be set here"""
        changes = {k: v for k, v in changes.items() if k not in ("id", "code", "total_times_used")}
        with self._lock:
            promo = self.codes.get(code)
            if not promo:
                return None
            updated = PromoCode.model_validate({**promo.model_dump(), **changes})
            self.codes[code] = updated
            return updated

    def delete(self, code: str) -> bool:
        with self._lock:
            if code in self.codes:
                del self.codes[code]
                return True
            return False

    def increment_usage(self, code: str) -> Optional[PromoCode]:
        """
        Atomically increment total_times_used.

        Returns the updated code, or None if the code does not exist or its
        usage cap has been reached.
        """
        with self._lock:
            promo = self.codes.get(code)
            if not promo:
                return None
            if promo.total_allowed_uses is not None and promo.total_times_used >= promo.total_allowed_uses:
                return None
            updated = promo.model_copy(update={"total_times_used": promo.total_times_used + 1})
            self.codes[code] = updated
            return updated

    def clear(self) -> None:
        with self._lock:
            self.codes.clear()


# Singleton instance
promo_code_db = PromoCodeDatabase()
