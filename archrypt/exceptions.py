"""
archrypt exception hierarchy.

All exceptions inherit from ArchryptError for easy catching.
"""

from pathlib import Path
from typing import Any


class ArchryptError(Exception):
    """Base exception for all archrypt errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class InvalidExtensionError(ArchryptError):
    """Container path does not carry the registered suffix."""

    def __init__(self, message: str, *, path: Path | str, expected: str) -> None:
        super().__init__(message, path=str(path), expected=expected)
        self.path = str(path)
        self.expected = expected


class PathError(ArchryptError):
    """Filesystem path related error."""

    def __init__(self, message: str, *, path: Path | str) -> None:
        super().__init__(message, path=str(path))
        self.path = str(path)


class InvalidTargetError(PathError):
    """Target is neither a regular file nor a directory."""


class ArchiveIOError(PathError):
    """Reading, writing or creating a file or directory failed."""


class EntryNameError(ArchryptError):
    """Archive entry name related error."""

    def __init__(self, message: str, *, name: str) -> None:
        super().__init__(message, name=name)
        self.name = name


class UnsafeEntryNameError(EntryNameError):
    """Entry name is absolute or escapes the archive root."""


class DuplicateEntryError(EntryNameError):
    """Two targets produce the same entry name."""


class FormatError(ArchryptError):
    """Binary data does not match the expected layout."""


class MalformedContainerError(FormatError):
    """Container length or field values are inconsistent."""


class MalformedArchiveError(FormatError):
    """Decrypted payload is not a readable archive."""


class CryptoError(ArchryptError):
    """Cryptographic operation failed."""


class KeyParseError(CryptoError):
    """Key file is unreadable, not PEM, or not an RSA key."""


class KeyTooSmallError(CryptoError):
    """Public key modulus cannot hold the wrapped content key."""

    def __init__(self, message: str, *, key_size: int | None = None) -> None:
        super().__init__(message, key_size=key_size)
        self.key_size = key_size


class KeyUnwrapError(CryptoError):
    """Asymmetric decryption of the wrapped content key failed."""


class AuthenticationFailedError(CryptoError):
    """AEAD tag verification failed; ciphertext was tampered with or the key is wrong."""


class KeyRegistryError(ArchryptError):
    """Key registry could not be read, written or updated."""
