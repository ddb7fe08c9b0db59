# Signed token codec

from .models import TokenPurpose, SignedToken, VerificationResult
from .signer import TokenSigner
from .verifier import TokenVerifier
from .store import RevokedTokenStore

__all__ = [
    "TokenPurpose",
    "SignedToken",
    "VerificationResult",
    "TokenSigner",
    "TokenVerifier",
    "RevokedTokenStore",
]
