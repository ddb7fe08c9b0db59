"""
Token Signer

Issues stateless HS256 JWTs. The cart itself travels inside a cart token;
login tokens carry the user.
"""

import time
import uuid
from typing import Any, Optional

import jwt

from .models import SignedToken, TokenPurpose

ALGORITHM = "HS256"


class TokenSigner:
    """
    Signs token claims with a shared secret.

    Usage:
        signer = TokenSigner(secret_key="...")
        signed = signer.sign(TokenPurpose.CART, {"cart": cart_json}, ttl_seconds=3600)
        response["cart_token"] = signed.token
    """

    def __init__(self, secret_key: str):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key

    def sign(
        self,
        purpose: TokenPurpose,
        data: dict[str, Any],
        ttl_seconds: int,
        now: Optional[int] = None,
    ) -> SignedToken:
        """
        Sign a new token.

        Args:
            purpose: What the token grants (cart snapshot or login)
            data: Purpose-specific claims
            ttl_seconds: How long the token remains valid
            now: Issue time in epoch seconds (defaults to the current time)
        """
        issued_at = int(time.time()) if now is None else now
        expires = issued_at + ttl_seconds
        jti = uuid.uuid4().hex

        claims = {
            **data,
            "pur": purpose.value,
            "jti": jti,
            "iat": issued_at,
            "exp": expires,
        }

        return SignedToken(
            token=jwt.encode(claims, self._secret_key, algorithm=ALGORITHM),
            jti=jti,
            issued_at=issued_at,
            expires=expires,
            purpose=purpose,
        )
