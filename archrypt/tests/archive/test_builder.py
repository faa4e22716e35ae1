import io
import os
import zipfile
from pathlib import Path

import pytest

from archrypt.archive.builder import ArchiveBuilder, count_files, resolve_targets
from archrypt.config import ArchryptConfig
from archrypt.core.progress import RecordingProgress
from archrypt.exceptions import DuplicateEntryError, InvalidTargetError
from archrypt.models.archive import TargetKind


def _names(raw: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        return archive.namelist()


def _contents(raw: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def test_build_names_entries_after_target_base_name(sample_tree: Path) -> None:
    raw = ArchiveBuilder().build([sample_tree / "notes.txt", sample_tree / "docs"])

    assert _contents(raw) == {
        "notes.txt": b"hello",
        "docs/a.txt": b"alpha",
        "docs/b.txt": b"bravo",
    }


def test_build_prefixes_directory_entries_with_its_name(sample_tree: Path) -> None:
    raw = ArchiveBuilder().build([sample_tree])

    assert _names(raw) == ["src/notes.txt", "src/docs/a.txt", "src/docs/b.txt"]


def test_build_uses_deflate(sample_tree: Path) -> None:
    (sample_tree / "big.txt").write_bytes(b"a" * 10_000)

    raw = ArchiveBuilder().build([sample_tree / "big.txt"])

    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        info = archive.getinfo("big.txt")
    assert info.compress_type == zipfile.ZIP_DEFLATED
    assert info.compress_size < info.file_size


def test_build_records_empty_directories(tmp_path: Path) -> None:
    root = tmp_path / "root"
    (root / "empty").mkdir(parents=True)
    (root / "full").mkdir()
    (root / "full" / "f.txt").write_text("x")

    raw = ArchiveBuilder().build([root])

    assert _names(raw) == ["root/empty/", "root/full/f.txt"]


def test_build_records_empty_target_directory(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()

    assert _names(ArchiveBuilder().build([empty])) == ["empty/"]


def test_build_is_deterministic_in_entry_order(sample_tree: Path) -> None:
    builder = ArchiveBuilder()

    assert _names(builder.build([sample_tree])) == _names(builder.build([sample_tree]))


def test_build_rejects_duplicate_entry_names(tmp_path: Path) -> None:
    first = tmp_path / "one" / "same.txt"
    second = tmp_path / "two" / "same.txt"
    for path in (first, second):
        path.parent.mkdir()
        path.write_text(path.parent.name)

    with pytest.raises(DuplicateEntryError, match="Duplicate entry name") as exc_info:
        ArchiveBuilder().build([first, second])

    assert exc_info.value.name == "same.txt"


def test_build_keeps_duplicates_when_allowed(tmp_path: Path) -> None:
    first = tmp_path / "one" / "same.txt"
    second = tmp_path / "two" / "same.txt"
    for path in (first, second):
        path.parent.mkdir()
        path.write_text(path.parent.name)
    config = ArchryptConfig(reject_duplicate_entries=False)

    raw = ArchiveBuilder(config).build([first, second])

    assert _names(raw) == ["same.txt", "same.txt"]


def _file_and_directory_named_docs(tmp_path: Path) -> tuple[Path, Path]:
    docs_file = tmp_path / "a" / "docs"
    docs_dir = tmp_path / "b" / "docs"
    docs_file.parent.mkdir()
    docs_file.write_text("file")
    docs_dir.mkdir(parents=True)
    (docs_dir / "x.txt").write_text("x")
    return docs_file, docs_dir


def test_build_rejects_file_that_shadows_directory(tmp_path: Path) -> None:
    docs_file, docs_dir = _file_and_directory_named_docs(tmp_path)

    with pytest.raises(DuplicateEntryError, match="nested below a file entry") as exc_info:
        ArchiveBuilder().build([docs_file, docs_dir])

    assert exc_info.value.name == "docs/x.txt"


def test_build_rejects_directory_path_reused_as_file(tmp_path: Path) -> None:
    docs_file, docs_dir = _file_and_directory_named_docs(tmp_path)

    with pytest.raises(DuplicateEntryError, match="collides with a directory") as exc_info:
        ArchiveBuilder().build([docs_dir, docs_file])

    assert exc_info.value.name == "docs"


def test_build_rejects_empty_directory_over_file(tmp_path: Path) -> None:
    docs_file = tmp_path / "a" / "docs"
    docs_file.parent.mkdir()
    docs_file.write_text("file")
    empty = tmp_path / "b" / "docs"
    empty.mkdir(parents=True)

    with pytest.raises(DuplicateEntryError, match="Directory entry collides with a file entry"):
        ArchiveBuilder().build([docs_file, empty])


def test_build_keeps_path_conflicts_when_allowed(tmp_path: Path) -> None:
    docs_file, docs_dir = _file_and_directory_named_docs(tmp_path)
    config = ArchryptConfig(reject_duplicate_entries=False)

    raw = ArchiveBuilder(config).build([docs_file, docs_dir])

    assert _names(raw) == ["docs", "docs/x.txt"]


def test_build_accepts_sibling_names_sharing_a_prefix(tmp_path: Path) -> None:
    docs_file = tmp_path / "docs"
    docs_file.write_text("file")
    docs_dir = tmp_path / "docs2"
    docs_dir.mkdir()
    (docs_dir / "x.txt").write_text("x")

    raw = ArchiveBuilder().build([docs_file, docs_dir])

    assert _names(raw) == ["docs", "docs2/x.txt"]


def test_build_rejects_symlinked_directory(tmp_path: Path) -> None:
    real = tmp_path / "real"
    real.mkdir()
    (real / "f.txt").write_text("f")
    source = tmp_path / "src"
    source.mkdir()
    (source / "link").symlink_to(real, target_is_directory=True)

    with pytest.raises(InvalidTargetError, match="Symbolic link to a directory") as exc_info:
        ArchiveBuilder().build([source])

    assert exc_info.value.path == str(source / "link")


def test_build_packs_symlinked_file_contents(sample_tree: Path) -> None:
    (sample_tree / "alias.txt").symlink_to(sample_tree / "notes.txt")

    raw = ArchiveBuilder().build([sample_tree])

    assert _contents(raw)["src/alias.txt"] == b"hello"


def test_build_missing_target_raises_before_packing(sample_tree: Path) -> None:
    progress = RecordingProgress()

    with pytest.raises(InvalidTargetError):
        ArchiveBuilder(observer=progress).build([sample_tree / "notes.txt", sample_tree / "nope"])

    assert progress.completed == 0


def test_build_without_targets_raises() -> None:
    with pytest.raises(InvalidTargetError, match="No targets given"):
        ArchiveBuilder().build([])


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires named pipes")
def test_build_rejects_special_file_inside_directory(sample_tree: Path) -> None:
    os.mkfifo(sample_tree / "docs" / "pipe")

    with pytest.raises(InvalidTargetError, match="neither file nor directory"):
        ArchiveBuilder().build([sample_tree])


def test_build_advances_observer_per_file(sample_tree: Path) -> None:
    (sample_tree / "empty").mkdir()
    progress = RecordingProgress()

    ArchiveBuilder(observer=progress).build([sample_tree])

    assert progress.completed == 3


def test_build_spills_to_disk_when_over_spool_limit(sample_tree: Path) -> None:
    config = ArchryptConfig(spool_max_size=16)

    raw = ArchiveBuilder(config).build([sample_tree])

    assert len(_names(raw)) == 3


def test_count_files_ignores_empty_directories(sample_tree: Path) -> None:
    (sample_tree / "empty").mkdir()

    assert count_files([sample_tree]) == 3
    assert count_files([sample_tree / "notes.txt"]) == 1


def test_resolve_targets_accepts_strings(sample_tree: Path) -> None:
    targets = resolve_targets([str(sample_tree / "notes.txt"), sample_tree / "docs"])

    assert [t.kind for t in targets] == [TargetKind.FILE, TargetKind.DIRECTORY]
