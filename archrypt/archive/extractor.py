"""
Archive extractor.

Unpacks a raw ZIP byte stream into a directory tree. Extraction is not
transactional: entries written before a failure stay on disk.
"""

import io
import zipfile
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

from archrypt.archive.names import SEPARATOR, validate_entry_name
from archrypt.core.progress import NullProgress, ProgressObserver
from archrypt.exceptions import ArchiveIOError, MalformedArchiveError, UnsafeEntryNameError
from archrypt.models.archive import PackedEntry

logger = structlog.get_logger(__name__)

_READ_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError)


@contextmanager
def _open_archive(raw_archive: bytes) -> Iterator[zipfile.ZipFile]:
    try:
        archive = zipfile.ZipFile(io.BytesIO(raw_archive))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        msg = f"Payload is not a readable archive: {e}"
        raise MalformedArchiveError(msg) from e
    with archive:
        yield archive


def _read_member(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
    try:
        return archive.read(info)
    except _READ_ERRORS as e:
        msg = f"Failed to read entry {info.filename}: {e}"
        raise MalformedArchiveError(msg) from e


def read_entries(raw_archive: bytes) -> list[PackedEntry]:
    """
    Decode every entry without touching the filesystem.

    Raises:
        MalformedArchiveError: If the bytes are not a readable archive.
    """
    with _open_archive(raw_archive) as archive:
        return [
            PackedEntry(
                name=info.filename,
                content=b"" if info.is_dir() else _read_member(archive, info),
            )
            for info in archive.infolist()
        ]


def count_entries(raw_archive: bytes) -> int:
    """Count the file (non-directory) entries in an archive."""
    with _open_archive(raw_archive) as archive:
        return sum(1 for info in archive.infolist() if not info.is_dir())


class ArchiveExtractor:
    """Writes archive entries below an output directory."""

    def __init__(self, observer: ProgressObserver | None = None) -> None:
        """
        Args:
            observer: Receives one unit per extracted file.
        """
        self._observer = observer or NullProgress()

    def extract(self, raw_archive: bytes, output_dir: Path) -> int:
        """
        Unpack an archive into ``output_dir``, creating it if absent.

        Args:
            raw_archive: Decrypted archive bytes.
            output_dir: Extraction root.

        Returns:
            Number of entries written (files and directories).

        Raises:
            MalformedArchiveError: If the archive cannot be decoded.
            UnsafeEntryNameError: If an entry would land outside ``output_dir``.
            ArchiveIOError: If creating a directory or writing a file fails.
        """
        _make_dirs(output_dir)
        root = output_dir.resolve()
        written = 0

        with _open_archive(raw_archive) as archive:
            for info in archive.infolist():
                destination = _destination(root, info.filename)
                if info.is_dir():
                    _make_dirs(destination)
                else:
                    _make_dirs(destination.parent)
                    _write_file(destination, _read_member(archive, info))
                    self._observer.advance()
                written += 1

        logger.debug("Archive extracted", output_dir=str(root), entries=written)
        return written


def _destination(root: Path, name: str) -> Path:
    validate_entry_name(name)
    destination = root.joinpath(*name.removesuffix(SEPARATOR).split(SEPARATOR))
    # Symlinks already inside the output tree could still redirect the write.
    if not destination.resolve().is_relative_to(root):
        msg = "Entry resolves outside the output directory"
        raise UnsafeEntryNameError(msg, name=name)
    return destination


def _make_dirs(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Failed to create directory: {e.strerror or e}"
        raise ArchiveIOError(msg, path=path) from e


def _write_file(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        msg = f"Failed to write file: {e.strerror or e}"
        raise ArchiveIOError(msg, path=path) from e
