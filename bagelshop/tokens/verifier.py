"""
Token Verifier

Verifies tokens issued by TokenSigner. Verification never raises; the
result says whether the token is usable and why not.
"""

from typing import Optional

import jwt

from .models import TokenPurpose, VerificationResult
from .signer import ALGORITHM
from .store import RevokedTokenStore

_RESERVED_CLAIMS = ("pur", "jti", "iat", "exp")


class TokenVerifier:
    """
    Verifies signed tokens.

    Usage:
        verifier = TokenVerifier(secret_key="...", revoked=revoked_tokens)
        result = verifier.verify(token, TokenPurpose.CART)
        if result.is_valid:
            cart = Cart.model_validate(result.data["cart"])
    """

    def __init__(
        self,
        secret_key: str,
        revoked: Optional[RevokedTokenStore] = None,
        max_clock_skew_seconds: int = 60,
    ):
        self._secret_key = secret_key
        self.revoked = revoked
        self.max_clock_skew = max_clock_skew_seconds

    def verify(
        self,
        token: str,
        purpose: TokenPurpose,
        verify_expiry: bool = True,
    ) -> VerificationResult:
        """
        Verify a token.

        Args:
            token: The token string
            purpose: The purpose the caller expects
            verify_expiry: Reject expired and revoked tokens. Disabled when
                the server reads back a token it stored with a pending order.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                leeway=self.max_clock_skew,
                options={"require": ["exp", "iat", "jti"], "verify_exp": verify_expiry},
            )
        except jwt.ExpiredSignatureError:
            return VerificationResult(is_valid=False, error_message="Token has expired")
        except jwt.ImmatureSignatureError:
            return VerificationResult(is_valid=False, error_message="Token issued in the future")
        except jwt.InvalidSignatureError:
            return VerificationResult(is_valid=False, error_message="Invalid token signature")
        except jwt.MissingRequiredClaimError as e:
            return VerificationResult(is_valid=False, error_message=f"Token is missing the {e.claim} claim")
        except jwt.DecodeError:
            return VerificationResult(is_valid=False, error_message="Malformed token")
        except jwt.InvalidTokenError as e:
            return VerificationResult(is_valid=False, error_message=f"Invalid token: {e}")

        if claims.get("pur") != purpose.value:
            return VerificationResult(is_valid=False, error_message="Token purpose mismatch")

        jti = claims["jti"]
        if verify_expiry and self.revoked is not None and self.revoked.is_revoked(jti):
            return VerificationResult(is_valid=False, jti=jti, error_message="Token has been superseded")

        return VerificationResult(
            is_valid=True,
            purpose=purpose,
            jti=jti,
            expires=claims["exp"],
            data={k: v for k, v in claims.items() if k not in _RESERVED_CLAIMS},
        )
