"""
Cryptographic operations for archrypt.

This module provides:
- Hybrid sealing (AES-256-GCM payload, RSA PKCS#1 v1.5 wrapped key)
- PEM key loading
- Zeroing content key buffers
"""

from archrypt.crypto.content_key import ContentKey
from archrypt.crypto.hybrid import MIN_MODULUS_BYTES, HybridCipher
from archrypt.crypto.keys import load_private_key, load_public_key

__all__ = [
    "ContentKey",
    "HybridCipher",
    "MIN_MODULUS_BYTES",
    "load_private_key",
    "load_public_key",
]
