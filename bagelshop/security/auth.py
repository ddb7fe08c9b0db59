"""
Request identity and cart token dependencies.

Identity comes from an optional "Authorization: Bearer <login token>"
header; guests simply have no identity. The cart travels in the
"X-Cart-Token" header.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from ..core.errors import BadRequestError, ForbiddenError, UnauthorizedError
from .cart_tokens import CartSnapshot, CartTokenError, token_service

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    """Authenticated caller"""
    user_id: str
    is_admin: bool = False


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Authorization header must be a bearer token.")
    return token.strip()


class IdentityDependency:
    """
    FastAPI dependency resolving the caller's identity.

    Use optional_user where guests are allowed, require_user where a login
    is needed, and require_admin for admin routes.
    """

    def __init__(self, require_login: bool = False, require_admin: bool = False):
        """
        Args:
            require_login: If True, reject requests without a valid login token
            require_admin: If True, additionally require the admin flag
        """
        self.require_login = require_login or require_admin
        self.require_admin = require_admin

    async def __call__(self, authorization: Optional[str] = Header(None)) -> Optional[Identity]:
        token = _bearer_token(authorization)

        if token is None:
            if self.require_login:
                raise UnauthorizedError("This endpoint requires a login token.")
            return None

        result = token_service.verify_login_token(token)
        if not result.is_valid:
            logger.info(f"Login token rejected: {result.error_message}")
            raise UnauthorizedError(f"Invalid login token: {result.error_message}")

        identity = Identity(user_id=str(result.data.get("sub")), is_admin=bool(result.data.get("adm")))

        if self.require_admin and not identity.is_admin:
            raise ForbiddenError("This endpoint requires admin access.")

        return identity


async def cart_token(x_cart_token: Optional[str] = Header(None)) -> CartSnapshot:
    """Verify the presented cart token"""
    if not x_cart_token:
        raise BadRequestError("A cart token was not provided.")
    try:
        return token_service.read_cart_token(x_cart_token)
    except CartTokenError as e:
        raise ForbiddenError(f"Cart token rejected: {e}")


# Dependency instances
optional_user = IdentityDependency()
require_user = IdentityDependency(require_login=True)
require_admin = IdentityDependency(require_admin=True)
