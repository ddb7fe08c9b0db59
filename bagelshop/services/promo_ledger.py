"""Promo code ledger: eligibility checks and usage accounting"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from ..core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ..database.orders import OrderDatabase, order_db
from ..database.promo_codes import PromoCodeDatabase, promo_code_db
from ..models.promo import PromoCode, PromoRejection

logger = logging.getLogger(__name__)

REJECTION_MESSAGES = {
    PromoRejection.DISABLED: "This promo code is disabled.",
    PromoRejection.EXPIRED: "This promo code has expired.",
    PromoRejection.OUT_OF_USES: "This promo code has no uses left.",
}


class PromoCodeRejected(ForbiddenError):
    """A promo code exists but cannot be applied"""

    def __init__(self, code: str, reason: PromoRejection):
        super().__init__(REJECTION_MESSAGES[reason])
        self.code = code
        self.reason = reason


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class PromoLedger:
    """Validates promo codes and records their usage"""

    def __init__(self, codes: PromoCodeDatabase, orders: OrderDatabase):
        self.codes = codes
        self.orders = orders

    def rejection_reason(
        self,
        promo: PromoCode,
        now: Optional[datetime] = None,
        check_usage: bool = True,
    ) -> Optional[PromoRejection]:
        """First rule the code breaks, or None if it is applicable"""
        now = now or datetime.now(timezone.utc)
        if promo.disabled:
            return PromoRejection.DISABLED
        if now > _as_aware(promo.date_of_expiry):
            return PromoRejection.EXPIRED
        if (
            check_usage
            and promo.total_allowed_uses is not None
            and promo.total_times_used >= promo.total_allowed_uses
        ):
            return PromoRejection.OUT_OF_USES
        return None

    def validate(
        self,
        code: str,
        now: Optional[datetime] = None,
        check_usage: bool = True,
    ) -> PromoCode:
        """
        Look up a code and check it can be applied.

        Raises:
            NotFoundError: no such code
            PromoCodeRejected: disabled, expired or out of uses
        """
        promo = self.codes.get_by_code(code)
        if not promo:
            raise NotFoundError(f"Promo code {code} was not found.")

        reason = self.rejection_reason(promo, now=now, check_usage=check_usage)
        if reason is not None:
            logger.info(f"Promo code {code} rejected: {reason.value}")
            raise PromoCodeRejected(code, reason)
        return promo

    def record_use(self, code: str) -> PromoCode:
        """
        Consume one use of a code.

        The increment is conditional on the cap, so concurrent callers
        cannot push total_times_used past total_allowed_uses.
        """
        updated = self.codes.increment_usage(code)
        if updated is None:
            if self.codes.get_by_code(code) is None:
                raise NotFoundError(f"Promo code {code} was not found.")
            raise PromoCodeRejected(code, PromoRejection.OUT_OF_USES)
        logger.info(
            f"Promo code {code} used {updated.total_times_used}"
            f"/{updated.total_allowed_uses if updated.total_allowed_uses is not None else 'unlimited'} times"
        )
        return updated

    def create(self, promo: PromoCode) -> PromoCode:
        created = self.codes.create(promo)
        if created is None:
            raise ConflictError(f"Promo code {promo.code} already exists.")
        logger.info(f"Promo code {promo.code} created by {promo.created_by_user_id}")
        return created

    def update(self, code: str, changes: dict) -> PromoCode:
        """
        Apply admin changes to a code.

        Raises:
            NotFoundError: no such code
            BadRequestError: the changed code would be invalid, e.g. a cap
                below the uses already consumed
        """
        try:
            updated = self.codes.update(code, changes)
        except ValidationError as e:
            messages = "; ".join(error["msg"] for error in e.errors())
            raise BadRequestError(f"Invalid promo code update: {messages}")
        if updated is None:
            raise NotFoundError(f"Promo code {code} was not found.")
        logger.info(f"Promo code {code} updated: {sorted(changes)}")
        return updated

    def sales_total(self, code: str) -> tuple[int, Decimal]:
        """Number of orders and summed final price attributed to a code"""
        if self.codes.get_by_code(code) is None:
            raise NotFoundError(f"Promo code {code} was not found.")
        orders = self.orders.list_by_promo_code(code)
        return len(orders), self.orders.promo_sales_total(code)


# Singleton instance
promo_ledger = PromoLedger(promo_code_db, order_db)
