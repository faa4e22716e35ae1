"""
Cryptographic domain models.
"""

from dataclasses import dataclass

CONTENT_KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


@dataclass(frozen=True, kw_only=True)
class SealedPayload:
    """
    Output of a hybrid seal operation.

    Attributes:
        nonce: 96-bit AES-GCM nonce, fresh per seal.
        wrapped_key: Content key encrypted to the recipient's RSA public key.
        ciphertext: AES-256-GCM ciphertext with the 16-byte tag appended.
    """

    nonce: bytes
    wrapped_key: bytes
    ciphertext: bytes

    def __repr__(self) -> str:
        return (
            f"SealedPayload(nonce={self.nonce.hex()}, wrapped_key=<{len(self.wrapped_key)} bytes>, "
            f"ciphertext=<{len(self.ciphertext)} bytes>)"
        )
