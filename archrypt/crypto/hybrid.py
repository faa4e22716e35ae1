"""
Hybrid encryption: AES-256-GCM for the payload, RSA for the content key.

Each seal draws a fresh content key and nonce, encrypts the whole buffer in
one AEAD call and wraps the key with RSA PKCS#1 v1.5. Opening reverses the
wrap and lets the AEAD tag decide whether any plaintext is returned.
"""

import os
from collections.abc import Callable

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from archrypt.crypto.content_key import ContentKey
from archrypt.crypto.keys import PrivateKeyInput, PublicKeyInput, load_private_key, load_public_key
from archrypt.exceptions import (
    AuthenticationFailedError,
    CryptoError,
    KeyTooSmallError,
    KeyUnwrapError,
    MalformedContainerError,
)
from archrypt.models.crypto import CONTENT_KEY_SIZE, NONCE_SIZE, SealedPayload

logger = structlog.get_logger(__name__)

# PKCS#1 v1.5 encryption padding needs at least 11 bytes of the modulus.
PKCS1V15_OVERHEAD = 11
MIN_MODULUS_BYTES = CONTENT_KEY_SIZE + PKCS1V15_OVERHEAD


class HybridCipher:
    """
    Seals and opens byte buffers for a single RSA recipient.

    Example:
        cipher = HybridCipher()
        payload = cipher.seal(archive_bytes, "recipient.pub.pem")
        archive_bytes = cipher.open(payload, "recipient.pem")
    """

    def __init__(self, token_source: Callable[[int], bytes] = os.urandom) -> None:
        """
        Args:
            token_source: Secure random source for keys and nonces. Only tests replace it.
        """
        self._token_source = token_source

    def seal(self, plaintext: bytes, public_key: PublicKeyInput) -> SealedPayload:
        """
        Encrypt a buffer for the holder of ``public_key``.

        Args:
            plaintext: Complete buffer to encrypt.
            public_key: Recipient key as path, PEM bytes or key object.

        Returns:
            Nonce, wrapped content key and ciphertext (tag included).

        Raises:
            KeyParseError: If the public key cannot be loaded.
            KeyTooSmallError: If the key modulus cannot hold the wrapped content key.
            CryptoError: If the buffer is too large for a single AEAD call.
        """
        recipient = load_public_key(public_key)
        _check_modulus(recipient)

        nonce = self._token_source(NONCE_SIZE)
        with ContentKey.generate(self._token_source) as content_key:
            raw_key = bytes(content_key)
            try:
                ciphertext = AESGCM(raw_key).encrypt(nonce, plaintext, None)
            except OverflowError as e:
                msg = f"Payload too large for single-shot encryption: {len(plaintext)} bytes"
                raise CryptoError(msg) from e
            wrapped_key = _wrap_key(raw_key, recipient)

        logger.debug(
            "Sealed payload",
            plaintext_size=len(plaintext),
            wrapped_key_size=len(wrapped_key),
        )
        return SealedPayload(nonce=nonce, wrapped_key=wrapped_key, ciphertext=ciphertext)

    def open(self, payload: SealedPayload, private_key: PrivateKeyInput) -> bytes:
        """
        Decrypt a sealed payload.

        Args:
            payload: Output of ``seal``, usually parsed from a container.
            private_key: Recipient key as path, PEM bytes or key object.

        Returns:
            The authenticated plaintext.

        Raises:
            KeyParseError: If the private key cannot be loaded.
            MalformedContainerError: If the nonce has the wrong size.
            KeyUnwrapError: If the content key cannot be recovered.
            AuthenticationFailedError: If the AEAD tag does not verify.
        """
        recipient = load_private_key(private_key)
        if len(payload.nonce) != NONCE_SIZE:
            msg = f"Nonce must be {NONCE_SIZE} bytes, got {len(payload.nonce)}"
            raise MalformedContainerError(msg)

        with _unwrap_key(payload.wrapped_key, recipient) as content_key:
            try:
                plaintext = AESGCM(bytes(content_key)).decrypt(
                    payload.nonce, payload.ciphertext, None
                )
            except InvalidTag as e:
                msg = "Authentication failed, ciphertext was modified or the key is wrong"
                raise AuthenticationFailedError(msg) from e

        logger.debug("Opened payload", plaintext_size=len(plaintext))
        return plaintext


def _check_modulus(public_key: rsa.RSAPublicKey) -> None:
    modulus_bytes = (public_key.key_size + 7) // 8
    if modulus_bytes >= MIN_MODULUS_BYTES:
        return
    msg = f"Public key too small: {modulus_bytes}-byte modulus, need at least {MIN_MODULUS_BYTES}"
    raise KeyTooSmallError(msg, key_size=public_key.key_size)


def _wrap_key(raw_key: bytes, public_key: rsa.RSAPublicKey) -> bytes:
    try:
        return public_key.encrypt(raw_key, padding.PKCS1v15())
    except ValueError as e:
        msg = f"Failed to wrap content key: {e}"
        raise KeyTooSmallError(msg, key_size=public_key.key_size) from e


def _unwrap_key(wrapped_key: bytes, private_key: rsa.RSAPrivateKey) -> ContentKey:
    try:
        raw_key = private_key.decrypt(wrapped_key, padding.PKCS1v15())
    except ValueError as e:
        msg = f"Failed to unwrap content key: {e}"
        raise KeyUnwrapError(msg) from e

    # Implicit rejection returns random bytes of arbitrary length instead of raising.
    if len(raw_key) != CONTENT_KEY_SIZE:
        msg = f"Unwrapped content key has {len(raw_key)} bytes, expected {CONTENT_KEY_SIZE}"
        raise KeyUnwrapError(msg)
    return ContentKey(raw_key)
