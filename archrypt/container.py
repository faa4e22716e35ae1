"""
Container codec.

Layout::

    nonce (12) | wrapped key length (2, big-endian) | wrapped key | ciphertext

The codec only checks lengths; authenticity is decided by the AEAD tag
when the payload is opened.
"""

import os
import struct
import tempfile
from pathlib import Path

import structlog

from archrypt.exceptions import ArchiveIOError, MalformedContainerError
from archrypt.models.crypto import NONCE_SIZE, SealedPayload

logger = structlog.get_logger(__name__)

_LENGTH_FIELD = struct.Struct(">H")
HEADER_SIZE = NONCE_SIZE + _LENGTH_FIELD.size
MAX_WRAPPED_KEY_SIZE = 0xFFFF


def serialize(payload: SealedPayload) -> bytes:
    """
    Encode a sealed payload into container bytes.

    Raises:
        MalformedContainerError: If a field cannot be represented in the layout.
    """
    if len(payload.nonce) != NONCE_SIZE:
        msg = f"Nonce must be {NONCE_SIZE} bytes, got {len(payload.nonce)}"
        raise MalformedContainerError(msg)
    if len(payload.wrapped_key) > MAX_WRAPPED_KEY_SIZE:
        msg = f"Wrapped key too long: {len(payload.wrapped_key)} > {MAX_WRAPPED_KEY_SIZE}"
        raise MalformedContainerError(msg)

    return b"".join(
        (
            payload.nonce,
            _LENGTH_FIELD.pack(len(payload.wrapped_key)),
            payload.wrapped_key,
            payload.ciphertext,
        )
    )


def parse(data: bytes) -> SealedPayload:
    """
    Decode container bytes.

    Args:
        data: Complete container contents.

    Returns:
        The sealed payload fields.

    Raises:
        MalformedContainerError: If the header is truncated or the
            wrapped key length runs past the end of the data.
    """
    if len(data) < HEADER_SIZE:
        msg = f"Container too short: {len(data)} < {HEADER_SIZE} bytes"
        raise MalformedContainerError(msg)

    (wrapped_key_length,) = _LENGTH_FIELD.unpack_from(data, NONCE_SIZE)
    key_end = HEADER_SIZE + wrapped_key_length
    if key_end > len(data):
        msg = f"Wrapped key length {wrapped_key_length} exceeds container size {len(data)}"
        raise MalformedContainerError(msg)

    return SealedPayload(
        nonce=bytes(data[:NONCE_SIZE]),
        wrapped_key=bytes(data[HEADER_SIZE:key_end]),
        ciphertext=bytes(data[key_end:]),
    )


def read_container(path: Path) -> SealedPayload:
    """
    Read and parse a container file.

    Raises:
        ArchiveIOError: If the file cannot be read.
        MalformedContainerError: If the contents are inconsistent.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        msg = f"Failed to read container: {e.strerror or e}"
        raise ArchiveIOError(msg, path=path) from e
    logger.debug("Read container", path=str(path), size=len(data))
    return parse(data)


def write_container(path: Path, payload: SealedPayload) -> None:
    """
    Serialize a payload and move it into place at ``path``.

    The bytes are written to a sibling temp file first, so a failed write
    never leaves a truncated container under the final name.

    Raises:
        ArchiveIOError: If writing or renaming fails.
        MalformedContainerError: If the payload cannot be serialized.
    """
    data = serialize(payload)
    directory = path.parent
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    except OSError as e:
        msg = f"Failed to create container: {e.strerror or e}"
        raise ArchiveIOError(msg, path=path) from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        msg = f"Failed to write container: {e.strerror or e}"
        raise ArchiveIOError(msg, path=path) from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.debug("Wrote container", path=str(path), size=len(data))
