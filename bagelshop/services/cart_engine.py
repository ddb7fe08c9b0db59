"""
Cart pricing engine.

Carts are immutable snapshots: every operation takes a Cart and returns a
new Cart with all derived totals recomputed. Nothing is stored server-side;
the caller signs the returned snapshot into a fresh cart token.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.config import settings
from ..core.errors import BadRequestError
from ..models.cart import Cart, CartLine, CartTotals
from ..models.catalog import SelectionKind
from ..models.membership import MembershipTier
from ..models.promo import parse_perk
from .catalog import CatalogLookup, SelectionNotApplicable, catalog
from .pricing import ZERO, format_dollars, promo_discount_amount, tier_adjusted_price
from .promo_ledger import PromoLedger, promo_ledger

logger = logging.getLogger(__name__)


class CartEngine:
    """Computes cart snapshots from catalog prices, tiers and promo perks"""

    def __init__(
        self,
        catalog: CatalogLookup,
        ledger: PromoLedger,
        tax_rate: Optional[Decimal] = None,
    ):
        self.catalog = catalog
        self.ledger = ledger
        self._tax_rate = tax_rate

    @property
    def tax_rate(self) -> Decimal:
        return self._tax_rate if self._tax_rate is not None else settings.tax_rate

    def empty_cart(self) -> Cart:
        return Cart()

    def recalculate(self, cart: Cart, **changes) -> Cart:
        """Return a copy of the cart with changes applied and totals recomputed"""
        lines = changes.pop("lines", cart.lines)
        promo_perk = changes.get("promo_perk", cart.promo_perk)

        subtotal = sum((line.line_total for line in lines), ZERO)
        discount = promo_discount_amount(parse_perk(promo_perk), subtotal) if promo_perk else ZERO
        tax = (subtotal - discount) * self.tax_rate
        final_price = max(ZERO, subtotal + tax - discount)

        return cart.model_copy(
            update={
                **changes,
                "lines": list(lines),
                "subtotal": subtotal,
                "tax": tax,
                "discount_amount": discount,
                "final_price": final_price,
                "total_quantity": sum(line.quantity for line in lines),
            }
        )

    def upsert_line(
        self,
        cart: Cart,
        item_id: str,
        selection: SelectionKind,
        quantity: int,
        tier: MembershipTier = MembershipTier.NON_MEMBER,
    ) -> Cart:
        """
        Set the quantity of an item + selection.

        A new line is priced at the tier-adjusted catalog price. An existing
        line has its quantity replaced, and is dropped when the quantity is 0.
        Selections the item is not sold by leave the cart unchanged.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise BadRequestError("Quantity must be a non-negative whole number.")

        try:
            entry = self.catalog.lookup(item_id, selection)
        except SelectionNotApplicable as e:
            logger.info(f"Ignoring cart update: {e}")
            return cart

        lines = list(cart.lines)
        index = cart.find_line(item_id, selection)

        if index is None:
            if quantity == 0:
                return cart
            lines.append(
                CartLine(
                    item_id=entry.item_id,
                    selection=selection,
                    quantity=quantity,
                    unit_price=tier_adjusted_price(entry.unit_price, tier),
                    display_name=entry.display_name,
                )
            )
        elif quantity == 0:
            del lines[index]
        else:
            lines[index] = lines[index].model_copy(update={"quantity": quantity})

        return self.recalculate(cart, lines=lines)

    def apply_membership_pricing(self, cart: Cart, tier: MembershipTier) -> Cart:
        """Re-price every line from its catalog price at the given tier"""
        lines = []
        for line in cart.lines:
            try:
                entry = self.catalog.lookup(line.item_id, line.selection)
            except SelectionNotApplicable:
                # The item stopped selling this selection; keep the line as priced
                lines.append(line)
                continue
            lines.append(
                line.model_copy(
                    update={
                        "unit_price": tier_adjusted_price(entry.unit_price, tier),
                        "display_name": entry.display_name,
                    }
                )
            )
        return self.recalculate(cart, lines=lines)

    def set_desired_ship_date(self, cart: Cart, ship_date: str) -> Cart:
        if not ship_date or not ship_date.strip():
            raise BadRequestError("A ship date was not provided.")
        try:
            parsed = date.fromisoformat(ship_date.strip()[:10])
        except ValueError:
            try:
                parsed = datetime.fromisoformat(ship_date.strip()).date()
            except ValueError:
                raise BadRequestError(f"Invalid ship date: {ship_date}")
        return self.recalculate(cart, desired_ship_date=parsed)

    def set_gift_message(self, cart: Cart, message: str) -> Cart:
        if not message or not message.strip():
            raise BadRequestError("A gift message was not provided.")
        return self.recalculate(cart, gift_message=message)

    def apply_promo_code(
        self,
        cart: Cart,
        code: str,
        now: Optional[datetime] = None,
    ) -> Cart:
        """
        Attach a promo code, replacing any attached one.

        In "attach" accounting the code's usage is consumed here; the replaced
        code's usage is not given back. Re-applying the attached code only
        re-prices the cart.
        """
        # A cart re-applying its own code already holds one of the counted uses
        reapplying = cart.promo_code == code
        promo = self.ledger.validate(
            code,
            now=now,
            check_usage=not reapplying or settings.promo_usage_accounting == "finalize",
        )
        updated = self.recalculate(cart, promo_code=promo.code, promo_perk=promo.perk)

        if reapplying:
            return updated

        if settings.promo_usage_accounting == "attach":
            self.ledger.record_use(promo.code)

        if cart.promo_code:
            logger.info(f"Promo code {cart.promo_code} replaced by {promo.code}")
        else:
            logger.info(f"Promo code {promo.code} attached")
        return updated

    def remove_promo_code(self, cart: Cart) -> Cart:
        """Detach the promo code; consumed usage is not refunded"""
        if cart.promo_code:
            logger.info(f"Promo code {cart.promo_code} detached")
        return self.recalculate(cart, promo_code=None, promo_perk=None)

    def totals(self, cart: Cart) -> CartTotals:
        return CartTotals(
            subtotal=format_dollars(cart.subtotal),
            tax=format_dollars(cart.tax),
            discount=format_dollars(cart.discount_amount),
            final_price=format_dollars(cart.final_price),
            total_quantity=cart.total_quantity,
        )


# Singleton instance
cart_engine = CartEngine(catalog, promo_ledger)
