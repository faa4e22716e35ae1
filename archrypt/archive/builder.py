"""
Archive builder.

Packs files and directory trees into a single ZIP byte stream. Directory
targets contribute their base name as the prefix of every entry they hold.
The stream is staged in a private spooled temp file that is discarded once
its bytes have been handed back.
"""

import os
import tempfile
import zipfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import NamedTuple

import structlog

from archrypt.archive.names import SEPARATOR, entry_name, is_directory_name
from archrypt.config import ArchryptConfig
from archrypt.core.progress import NullProgress, ProgressObserver
from archrypt.exceptions import ArchiveIOError, DuplicateEntryError, InvalidTargetError
from archrypt.models.archive import TargetPath

logger = structlog.get_logger(__name__)

TargetInput = TargetPath | Path | str


class _Member(NamedTuple):
    name: str
    source: Path

    @property
    def is_directory(self) -> bool:
        return is_directory_name(self.name)


class _ClaimedNames:
    """Entry names packed so far and the directories they imply."""

    def __init__(self) -> None:
        self.names: set[str] = set()
        self._files: set[str] = set()
        self._directories: set[str] = set()

    def conflict(self, name: str) -> str | None:
        """Describe why ``name`` cannot coexist with the claimed names, if it cannot."""
        if name in self.names:
            return "Duplicate entry name"
        path = name.removesuffix(SEPARATOR)
        if any(parent in self._files for parent in _parents(path)):
            return "Entry is nested below a file entry"
        if is_directory_name(name):
            if path in self._files:
                return "Directory entry collides with a file entry"
        elif path in self._directories:
            return "File entry collides with a directory"
        return None

    def add(self, name: str) -> None:
        self.names.add(name)
        path = name.removesuffix(SEPARATOR)
        if is_directory_name(name):
            self._directories.add(path)
        else:
            self._files.add(path)
        self._directories.update(_parents(path))


def _parents(path: str) -> list[str]:
    segments = path.split(SEPARATOR)
    return [SEPARATOR.join(segments[:i]) for i in range(1, len(segments))]


def resolve_targets(targets: Iterable[TargetInput]) -> list[TargetPath]:
    """
    Classify every target up front so a bad path aborts before any packing.

    Raises:
        InvalidTargetError: If a path is neither file nor directory.
    """
    resolved = [t if isinstance(t, TargetPath) else TargetPath.from_path(t) for t in targets]
    if not resolved:
        msg = "No targets given"
        raise InvalidTargetError(msg, path="")
    return resolved


def count_files(targets: Iterable[TargetInput]) -> int:
    """Count the file entries the targets would produce."""
    return sum(1 for member in _iter_members(resolve_targets(targets)) if not member.is_directory)


class ArchiveBuilder:
    """
    Builds the raw archive for a compress operation.

    Example:
        builder = ArchiveBuilder()
        raw = builder.build([Path("notes.txt"), Path("docs")])
    """

    def __init__(
        self,
        config: ArchryptConfig | None = None,
        observer: ProgressObserver | None = None,
    ) -> None:
        """
        Args:
            config: Staging and duplicate handling settings. Uses defaults if not provided.
            observer: Receives one unit per packed file.
        """
        self._config = config or ArchryptConfig()
        self._observer = observer or NullProgress()

    def build(self, targets: Iterable[TargetInput]) -> bytes:
        """
        Pack targets into a ZIP byte stream.

        Args:
            targets: Files and directories, in the order they should be packed.

        Returns:
            The complete archive bytes.

        Raises:
            InvalidTargetError: If a target or walked path is neither file nor directory,
                or a walked directory is a symbolic link.
            DuplicateEntryError: If two entries share a name, or a file entry collides with
                a directory path, and conflicts are rejected.
            ArchiveIOError: If reading a file or writing the staging buffer fails.
        """
        resolved = resolve_targets(targets)
        claimed = _ClaimedNames()
        files = 0

        try:
            with tempfile.SpooledTemporaryFile(
                max_size=self._config.spool_max_size, dir=self._config.temp_dir
            ) as spool:
                with zipfile.ZipFile(spool, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                    for member in _iter_members(resolved):
                        self._claim(member.name, claimed)
                        self._add(archive, member)
                        if not member.is_directory:
                            files += 1
                            self._observer.advance()
                spool.seek(0)
                raw = spool.read()
        except OSError as e:
            msg = f"Failed to stage archive: {e.strerror or e}"
            raise ArchiveIOError(msg, path=e.filename or "<staging>") from e

        logger.debug("Archive built", entries=len(claimed.names), files=files, size=len(raw))
        return raw

    def _claim(self, name: str, claimed: _ClaimedNames) -> None:
        reason = claimed.conflict(name)
        if reason is not None:
            if self._config.reject_duplicate_entries:
                msg = f"{reason}: {name}"
                raise DuplicateEntryError(msg, name=name)
            logger.warning(
                "Conflicting entry name, later entry wins on extraction", name=name, reason=reason
            )
        claimed.add(name)

    @staticmethod
    def _add(archive: zipfile.ZipFile, member: _Member) -> None:
        try:
            info = zipfile.ZipInfo.from_file(member.source, member.name, strict_timestamps=False)
            data = b"" if member.is_directory else member.source.read_bytes()
        except OSError as e:
            msg = f"Failed to read {member.source}: {e.strerror or e}"
            raise ArchiveIOError(msg, path=member.source) from e
        archive.writestr(info, data, compress_type=zipfile.ZIP_DEFLATED)


def _iter_members(targets: list[TargetPath]) -> Iterator[_Member]:
    for target in targets:
        if target.is_directory:
            yield from _walk_directory(target)
        else:
            yield _Member(entry_name(target.base_name), target.path)


def _walk_directory(target: TargetPath) -> Iterator[_Member]:
    root = target.path

    def _on_error(error: OSError) -> None:
        msg = f"Failed to list directory: {error.strerror or error}"
        raise ArchiveIOError(msg, path=error.filename or root) from error

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        current = Path(dirpath)
        prefix = current.relative_to(root).parts

        # os.walk lists symlinked directories but never descends into them.
        for dirname in dirnames:
            if (current / dirname).is_symlink():
                msg = f"Symbolic link to a directory cannot be packed: {current / dirname}"
                raise InvalidTargetError(msg, path=current / dirname)

        if not dirnames and not filenames:
            yield _Member(entry_name(target.base_name, *prefix, directory=True), current)
            continue

        for filename in sorted(filenames):
            source = current / filename
            if not source.is_file():
                msg = f"Target path is neither file nor directory: {source}"
                raise InvalidTargetError(msg, path=source)
            yield _Member(entry_name(target.base_name, *prefix, filename), source)
