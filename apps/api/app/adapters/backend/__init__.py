"""External collaborator adapters."""

from .base import (
    Backend,
    BackendError,
    BlobStore,
    DuplicateAccountError,
    Filter,
    IdentityProvider,
    Order,
    RecordStore,
)
from .supabase import build_supabase_backend

__all__ = [
    "Backend",
    "BackendError",
    "BlobStore",
    "DuplicateAccountError",
    "Filter",
    "IdentityProvider",
    "Order",
    "RecordStore",
    "build_supabase_backend",
]
