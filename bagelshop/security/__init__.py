# Request security

from .auth import Identity, cart_token, optional_user, require_user, require_admin
from .cart_tokens import (
    CartSnapshot,
    CartTokenError,
    TokenService,
    token_service,
    revoked_tokens,
    issue_login_token,
)

__all__ = [
    "Identity",
    "cart_token",
    "optional_user",
    "require_user",
    "require_admin",
    "CartSnapshot",
    "CartTokenError",
    "TokenService",
    "token_service",
    "revoked_tokens",
    "issue_login_token",
]
