"""
Cart and login token issuing.

Possession of a validly signed, unrevoked cart token is what allows a
client to act on that cart snapshot. Each successful mutation supersedes
the presented token.
"""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from ..core.config import settings
from ..models.cart import Cart
from ..tokens import (
    RevokedTokenStore,
    SignedToken,
    TokenPurpose,
    TokenSigner,
    TokenVerifier,
    VerificationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class CartSnapshot:
    """A verified cart token and the cart it carries"""
    token: str
    cart: Cart
    jti: str
    expires: int


class CartTokenError(Exception):
    """A cart token could not be verified"""


class TokenService:
    """Issues, reads and supersedes signed tokens"""

    def __init__(self, secret_key: str, revoked: RevokedTokenStore):
        self.revoked = revoked
        self.signer = TokenSigner(secret_key)
        self.verifier = TokenVerifier(secret_key, revoked=revoked)

    def issue_cart_token(self, cart: Cart) -> SignedToken:
        return self.signer.sign(
            TokenPurpose.CART,
            {"cart": cart.model_dump(mode="json")},
            ttl_seconds=settings.cart_token_ttl_seconds,
        )

    def read_cart_token(self, token: str, verify_expiry: bool = True) -> CartSnapshot:
        """
        Verify a cart token and decode its cart.

        Raises:
            CartTokenError: bad signature, expired, superseded or malformed cart
        """
        result = self.verifier.verify(token, TokenPurpose.CART, verify_expiry=verify_expiry)
        if not result.is_valid:
            raise CartTokenError(result.error_message)
        try:
            cart = Cart.model_validate(result.data.get("cart", {}))
        except ValidationError as e:
            raise CartTokenError(f"Cart token carries an invalid cart: {e.error_count()} errors")
        return CartSnapshot(token=token, cart=cart, jti=result.jti, expires=result.expires)

    def supersede(self, snapshot: CartSnapshot, cart: Cart) -> str:
        """Issue a token for the new cart and revoke the presented one"""
        signed = self.issue_cart_token(cart)
        self.revoked.revoke(snapshot.jti, snapshot.expires)
        return signed.token

    def issue_login_token(self, user_id: str, is_admin: bool = False) -> str:
        """Login tokens are normally issued by the identity provider"""
        return self.signer.sign(
            TokenPurpose.LOGIN,
            {"sub": user_id, "adm": is_admin},
            ttl_seconds=settings.login_token_ttl_seconds,
        ).token

    def verify_login_token(self, token: str) -> VerificationResult:
        return self.verifier.verify(token, TokenPurpose.LOGIN)


# Singleton instances
revoked_tokens = RevokedTokenStore(purge_interval_seconds=settings.token_purge_interval_seconds)
token_service = TokenService(settings.secret_key, revoked_tokens)


def issue_login_token(user_id: str, is_admin: bool = False) -> str:
    return token_service.issue_login_token(user_id, is_admin=is_admin)

