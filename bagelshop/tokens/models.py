"""Token Data Models"""

from dataclasses import dataclass, field
from typing import Any, Optional
from enum import Enum


class TokenPurpose(str, Enum):
    """What a signed token grants access to"""
    CART = "cart"
    LOGIN = "login"


@dataclass
class SignedToken:
    """A freshly issued token and its identifying claims"""
    token: str
    jti: str
    issued_at: int
    expires: int
    purpose: TokenPurpose


@dataclass
class VerificationResult:
    """Result of token verification"""
    is_valid: bool
    purpose: Optional[TokenPurpose] = None
    jti: Optional[str] = None
    expires: Optional[int] = None
    data: dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None
