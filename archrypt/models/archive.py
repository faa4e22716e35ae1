"""
Archive-related domain models.
"""

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Self

from archrypt.exceptions import InvalidTargetError


class TargetKind(IntEnum):
    """Type of a packaging target."""

    FILE = 1
    DIRECTORY = 2


@dataclass(frozen=True, kw_only=True)
class TargetPath:
    """
    A file or directory selected for packaging.

    Directories are expanded recursively; their base name becomes the
    prefix of every entry inside the archive.
    """

    path: Path
    kind: TargetKind

    @classmethod
    def from_path(cls, path: Path | str) -> Self:
        """
        Classify a filesystem path.

        Raises:
            InvalidTargetError: If the path is missing or a special file.
        """
        path = Path(path)
        if path.is_file():
            return cls(path=path, kind=TargetKind.FILE)
        if path.is_dir():
            return cls(path=path, kind=TargetKind.DIRECTORY)
        msg = f"Target path is neither file nor directory: {path}"
        raise InvalidTargetError(msg, path=path)

    @property
    def base_name(self) -> str:
        # resolve() so that "." and "dir/" still yield a usable name
        return self.path.name or self.path.resolve().name

    @property
    def is_directory(self) -> bool:
        return self.kind == TargetKind.DIRECTORY


@dataclass(frozen=True, kw_only=True)
class PackedEntry:
    """
    A single archive member.

    Attributes:
        name: Relative path using ``/`` separators. Directory entries end with ``/``.
        content: File bytes; always empty for directory entries.
    """

    name: str
    content: bytes = b""

    def __post_init__(self) -> None:
        if self.is_directory and self.content:
            msg = f"Directory entry cannot carry content: {self.name}"
            raise ValueError(msg)

    @property
    def is_directory(self) -> bool:
        return self.name.endswith("/")
