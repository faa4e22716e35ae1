"""
Domain models for archrypt.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from archrypt.models.archive import PackedEntry, TargetKind, TargetPath
from archrypt.models.crypto import (
    CONTENT_KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    SealedPayload,
)

__all__ = [
    # Archive
    "TargetKind",
    "TargetPath",
    "PackedEntry",
    # Crypto
    "SealedPayload",
    "CONTENT_KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
]
