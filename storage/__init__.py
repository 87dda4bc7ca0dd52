"""
Storage Module
Process-scoped caches
"""
from .credential_cache import (
    ExpiringCredentialCache,
    credential_from_ttl,
)

__all__ = [
    "ExpiringCredentialCache",
    "credential_from_ttl",
]
