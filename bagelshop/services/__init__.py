# Pricing, promo and checkout services

from .catalog import CatalogLookup, SelectionNotApplicable, catalog
from .cart_engine import CartEngine, cart_engine
from .promo_ledger import PromoLedger, PromoCodeRejected, promo_ledger
from .checkout import CheckoutOrchestrator, checkout_orchestrator
from .payments import (
    PaymentGateway,
    PaymentGatewayError,
    FakePaymentGateway,
    get_gateway,
    set_gateway,
    reset_gateway,
)
from .notifications import (
    EmailPort,
    FakeEmailAdapter,
    get_email_channel,
    set_email_channel,
    reset_email_channel,
    send_order_placed,
)

__all__ = [
    "CatalogLookup",
    "SelectionNotApplicable",
    "catalog",
    "CartEngine",
    "cart_engine",
    "PromoLedger",
    "PromoCodeRejected",
    "promo_ledger",
    "CheckoutOrchestrator",
    "checkout_orchestrator",
    "PaymentGateway",
    "PaymentGatewayError",
    "FakePaymentGateway",
    "get_gateway",
    "set_gateway",
    "reset_gateway",
    "EmailPort",
    "FakeEmailAdapter",
    "get_email_channel",
    "set_email_channel",
    "reset_email_channel",
    "send_order_placed",
]
