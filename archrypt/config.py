"""
archrypt configuration.
"""

from dataclasses import dataclass, field
from pathlib import Path


def _default_registry_path() -> Path:
    return Path.home() / ".archrypt" / "config.json"


@dataclass(frozen=True, kw_only=True)
class ArchryptConfig:
    """
    Attributes:
        extension: Container file suffix, without the leading dot. Compared case-sensitively.
        spool_max_size: Bytes of raw archive kept in memory before staging spills to a temp file.
        temp_dir: Directory for staging files. Uses the system default if not provided.
        reject_duplicate_entries: Fail the build when two targets produce the same entry name.
        registry_path: Location of the persisted key registry.
    """

    extension: str = "acrp"
    spool_max_size: int = 64 * 1024 * 1024
    temp_dir: Path | None = None
    reject_duplicate_entries: bool = True
    registry_path: Path = field(default_factory=_default_registry_path)

    def __post_init__(self) -> None:
        if not self.extension:
            msg = "extension must not be empty"
            raise ValueError(msg)
        if self.extension.startswith(".") or "/" in self.extension:
            msg = "extension must be a bare suffix without dots or separators"
            raise ValueError(msg)
        if self.spool_max_size <= 0:
            msg = "spool_max_size must be positive"
            raise ValueError(msg)

    @property
    def suffix(self) -> str:
        """Suffix as returned by ``Path.suffix``."""
        return f".{self.extension}"
