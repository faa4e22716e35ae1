"""
Persisted registry of known key files.

Holds ordered lists of public and private key paths, each with an optional
default index. The registry is plain data handed to callers such as the
CLI; the pipeline never reads it on its own.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Self

import structlog

from archrypt.exceptions import KeyRegistryError

logger = structlog.get_logger(__name__)


@dataclass(kw_only=True)
class KeyRegistry:
    """
    Attributes:
        public_keys: Registered public key paths.
        default_public_key_index: Index into ``public_keys`` of the default, if any.
        private_keys: Registered private key paths.
        default_private_key_index: Index into ``private_keys`` of the default, if any.
    """

    public_keys: list[Path] = field(default_factory=list)
    default_public_key_index: int | None = None
    private_keys: list[Path] = field(default_factory=list)
    default_private_key_index: int | None = None

    @classmethod
    def load(cls, path: Path) -> Self:
        """
        Read a registry file. A missing file yields an empty registry.

        Raises:
            KeyRegistryError: If the file cannot be read or has the wrong shape.
        """
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            msg = f"Failed to read key registry: {e}"
            raise KeyRegistryError(msg, path=str(path)) from e
        return cls.from_dict(data, source=path)

    @classmethod
    def from_dict(cls, data: Any, *, source: Path | None = None) -> Self:
        if not isinstance(data, dict):
            msg = "Key registry must be a JSON object"
            raise KeyRegistryError(msg, path=str(source))
        try:
            registry = cls(
                public_keys=[Path(p) for p in data.get("public_keys", [])],
                default_public_key_index=data.get("default_public_key_index"),
                private_keys=[Path(p) for p in data.get("private_keys", [])],
                default_private_key_index=data.get("default_private_key_index"),
            )
        except TypeError as e:
            msg = f"Invalid key registry entry: {e}"
            raise KeyRegistryError(msg, path=str(source)) from e
        registry._validate_defaults()
        return registry

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["public_keys"] = [str(p) for p in self.public_keys]
        data["private_keys"] = [str(p) for p in self.private_keys]
        return data

    def save(self, path: Path) -> None:
        """
        Write the registry as JSON, creating parent directories.

        Raises:
            KeyRegistryError: If writing fails.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write key registry: {e.strerror or e}"
            raise KeyRegistryError(msg, path=str(path)) from e
        logger.debug("Key registry saved", path=str(path))

    def add_public_key(self, key_path: Path) -> int:
        """Register a public key; the first one becomes the default. Returns its index."""
        self.public_keys.append(_absolute(key_path))
        if self.default_public_key_index is None:
            self.default_public_key_index = 0
        return len(self.public_keys) - 1

    def add_private_key(self, key_path: Path) -> int:
        """Register a private key; the first one becomes the default. Returns its index."""
        self.private_keys.append(_absolute(key_path))
        if self.default_private_key_index is None:
            self.default_private_key_index = 0
        return len(self.private_keys) - 1

    def set_default_public_key(self, index: int) -> None:
        _check_index(index, self.public_keys, "public")
        self.default_public_key_index = index

    def set_default_private_key(self, index: int) -> None:
        _check_index(index, self.private_keys, "private")
        self.default_private_key_index = index

    def remove_public_key(self, index: int) -> Path:
        """Remove a public key, clearing or shifting the default index. Returns the removed path."""
        _check_index(index, self.public_keys, "public")
        removed = self.public_keys.pop(index)
        self.default_public_key_index = _shift_default(self.default_public_key_index, index)
        return removed

    def remove_private_key(self, index: int) -> Path:
        """Remove a private key, clearing or shifting the default index. Returns the removed path."""
        _check_index(index, self.private_keys, "private")
        removed = self.private_keys.pop(index)
        self.default_private_key_index = _shift_default(self.default_private_key_index, index)
        return removed

    def clear_public_keys(self) -> None:
        self.public_keys = []
        self.default_public_key_index = None

    def clear_private_keys(self) -> None:
        self.private_keys = []
        self.default_private_key_index = None

    def default_public_key(self) -> Path | None:
        return _get_default(self.public_keys, self.default_public_key_index)

    def default_private_key(self) -> Path | None:
        return _get_default(self.private_keys, self.default_private_key_index)

    def _validate_defaults(self) -> None:
        for index, keys, kind in (
            (self.default_public_key_index, self.public_keys, "public"),
            (self.default_private_key_index, self.private_keys, "private"),
        ):
            if index is not None:
                _check_index(index, keys, kind)


def _absolute(key_path: Path) -> Path:
    try:
        return key_path.resolve(strict=True)
    except OSError as e:
        msg = f"Key file not found: {key_path}"
        raise KeyRegistryError(msg, path=str(key_path)) from e


def _check_index(index: Any, keys: list[Path], kind: str) -> None:
    if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(keys):
        return
    msg = f"Invalid index: {index}. There are only {len(keys)} {kind} keys registered."
    raise KeyRegistryError(msg, index=index)


def _shift_default(default: int | None, removed: int) -> int | None:
    if default is None or default == removed:
        return None
    if default > removed:
        return default - 1
    return default


def _get_default(keys: list[Path], index: int | None) -> Path | None:
    if index is None or not 0 <= index < len(keys):
        return None
    return keys[index]
