"""Short-lived symmetric content keys that are zeroed after use."""

import ctypes
import os
import warnings
from collections.abc import Callable
from typing import Self

from archrypt.models.crypto import CONTENT_KEY_SIZE


def _secure_zero(data: bytearray) -> None:
    if len(data) == 0:
        return
    try:
        address = ctypes.addressof((ctypes.c_char * len(data)).from_buffer(data))
        ctypes.memset(address, 0, len(data))
    except (TypeError, ValueError) as exc:
        warnings.warn(f"ctypes.memset failed, using fallback: {exc}", RuntimeWarning)
        for i in range(len(data)):
            data[i] = 0


class ContentKey:
    """
    A 256-bit AES key that only lives for one seal or open call.

    Use as context manager for guaranteed cleanup. ``bytes(key)`` creates an
    unmanaged copy, which the AEAD primitives require.
    """

    __slots__ = ("_data", "_cleared")

    def __init__(self, data: bytes | bytearray) -> None:
        # __del__ still runs when validation fails.
        self._data = bytearray()
        self._cleared = True
        if len(data) != CONTENT_KEY_SIZE:
            msg = f"Content key must be {CONTENT_KEY_SIZE} bytes, got {len(data)}"
            raise ValueError(msg)
        self._data = bytearray(data)
        self._cleared = False

    @classmethod
    def generate(cls, token_source: Callable[[int], bytes] = os.urandom) -> Self:
        """Create a fresh key from a cryptographically secure source."""
        raw = bytearray(token_source(CONTENT_KEY_SIZE))
        try:
            return cls(raw)
        finally:
            _secure_zero(raw)

    def __del__(self) -> None:
        self.clear()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: object) -> None:
        self.clear()

    def clear(self) -> None:
        """Zero memory. Idempotent."""
        if self._cleared:
            return
        _secure_zero(self._data)
        self._cleared = True

    def __bytes__(self) -> bytes:
        if self._cleared:
            raise RuntimeError("ContentKey has been cleared")
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        if self._cleared:
            return "ContentKey(<cleared>)"
        return f"ContentKey(<{len(self._data)} bytes>)"

    @property
    def is_cleared(self) -> bool:
        return self._cleared
