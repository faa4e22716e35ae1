"""
archrypt: pack files and directories into a single encrypted container.

Archives are ZIP streams sealed with AES-256-GCM under a fresh content key,
which is wrapped with the recipient's RSA public key.

Example:
    ```python
    from archrypt import compress_files, extract_files

    compress_files("backup.acrp", "recipient.pub.pem", ["notes.txt", "docs"])
    extract_files("backup.acrp", "recipient.pem", "restored")
    ```
"""

from archrypt.config import ArchryptConfig
from archrypt.crypto.hybrid import HybridCipher
from archrypt.exceptions import (
    ArchiveIOError,
    ArchryptError,
    AuthenticationFailedError,
    CryptoError,
    DuplicateEntryError,
    EntryNameError,
    FormatError,
    InvalidExtensionError,
    InvalidTargetError,
    KeyParseError,
    KeyRegistryError,
    KeyTooSmallError,
    KeyUnwrapError,
    MalformedArchiveError,
    MalformedContainerError,
    PathError,
    UnsafeEntryNameError,
)
from archrypt.registry import KeyRegistry
from archrypt.services.pipeline import ArchivePipeline, compress_files, extract_files

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "ArchivePipeline",
    "compress_files",
    "extract_files",
    "HybridCipher",
    # Configuration
    "ArchryptConfig",
    "KeyRegistry",
    # Exceptions
    "ArchryptError",
    "InvalidExtensionError",
    "PathError",
    "InvalidTargetError",
    "ArchiveIOError",
    "EntryNameError",
    "UnsafeEntryNameError",
    "DuplicateEntryError",
    "FormatError",
    "MalformedContainerError",
    "MalformedArchiveError",
    "CryptoError",
    "KeyParseError",
    "KeyTooSmallError",
    "KeyUnwrapError",
    "AuthenticationFailedError",
    "KeyRegistryError",
]
