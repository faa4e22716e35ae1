"""
RSA key loading from PEM files.

The core never generates or stores keys; it only turns caller-supplied
PEM material into key objects.
"""

from pathlib import Path

import structlog
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from archrypt.exceptions import KeyParseError

logger = structlog.get_logger(__name__)

KeySource = Path | str | bytes
PublicKeyInput = KeySource | rsa.RSAPublicKey
PrivateKeyInput = KeySource | rsa.RSAPrivateKey


def load_public_key(source: PublicKeyInput) -> rsa.RSAPublicKey:
    """
    Load an RSA public key.

    Args:
        source: Path to a PEM file, raw PEM bytes, or an already loaded key.

    Returns:
        The RSA public key.

    Raises:
        KeyParseError: If the file cannot be read or is not an RSA public key in PEM format.
    """
    if isinstance(source, rsa.RSAPublicKey):
        return source

    pem = _read_pem(source)
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm) as e:
        msg = f"Failed to parse public key: {e}"
        raise KeyParseError(msg, source=_describe(source)) from e

    if not isinstance(key, rsa.RSAPublicKey):
        msg = f"Expected an RSA public key, got {type(key).__name__}"
        raise KeyParseError(msg, source=_describe(source))

    logger.debug("Loaded public key", key_size=key.key_size)
    return key


def load_private_key(
    source: PrivateKeyInput,
    password: bytes | None = None,
) -> rsa.RSAPrivateKey:
    """
    Load an RSA private key (PKCS#1 or PKCS#8 PEM).

    Args:
        source: Path to a PEM file, raw PEM bytes, or an already loaded key.
        password: Passphrase for encrypted PEM files.

    Returns:
        The RSA private key.

    Raises:
        KeyParseError: If the file cannot be read, the passphrase is wrong,
            or the key is not an RSA private key in PEM format.
    """
    if isinstance(source, rsa.RSAPrivateKey):
        return source

    pem = _read_pem(source)
    try:
        key = serialization.load_pem_private_key(pem, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        msg = f"Failed to parse private key: {e}"
        raise KeyParseError(msg, source=_describe(source)) from e

    if not isinstance(key, rsa.RSAPrivateKey):
        msg = f"Expected an RSA private key, got {type(key).__name__}"
        raise KeyParseError(msg, source=_describe(source))

    logger.debug("Loaded private key", key_size=key.key_size)
    return key


def _read_pem(source: KeySource) -> bytes:
    if isinstance(source, bytes):
        return source
    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as e:
        msg = f"Failed to read key file: {e.strerror or e}"
        raise KeyParseError(msg, source=str(path)) from e


def _describe(source: KeySource) -> str:
    if isinstance(source, bytes):
        return f"<{len(source)} bytes of PEM>"
    return str(source)
