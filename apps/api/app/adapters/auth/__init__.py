"""Auth verifier adapters."""

from .base import AuthVerificationError, TokenVerifier
from .delegated import ProviderTokenVerifier
from .self_issued import SelfIssuedTokenVerifier

__all__ = [
    "AuthVerificationError",
    "TokenVerifier",
    "ProviderTokenVerifier",
    "SelfIssuedTokenVerifier",
]
