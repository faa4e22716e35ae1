import json
from pathlib import Path

import pytest

from archrypt.exceptions import KeyRegistryError
from archrypt.registry import KeyRegistry


@pytest.fixture
def key_paths(tmp_path: Path) -> list[Path]:
    paths = [tmp_path / f"key{i}.pem" for i in range(3)]
    for path in paths:
        path.write_text("pem")
    return paths


def test_load_missing_file_returns_empty_registry(tmp_path: Path) -> None:
    registry = KeyRegistry.load(tmp_path / "missing.json")

    assert registry.public_keys == []
    assert registry.default_public_key() is None
    assert registry.default_private_key() is None


def test_save_then_load_round_trips(tmp_path: Path, key_paths: list[Path]) -> None:
    path = tmp_path / "nested" / "config.json"
    registry = KeyRegistry()
    registry.add_public_key(key_paths[0])
    registry.add_private_key(key_paths[1])

    registry.save(path)

    assert KeyRegistry.load(path) == registry
    assert json.loads(path.read_text()) == {
        "public_keys": [str(key_paths[0].resolve())],
        "default_public_key_index": 0,
        "private_keys": [str(key_paths[1].resolve())],
        "default_private_key_index": 0,
    }


def test_load_accepts_partial_document(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"public_keys": ["/keys/a.pem"], "default_public_key_index": 0}')

    registry = KeyRegistry.load(path)

    assert registry.default_public_key() == Path("/keys/a.pem")
    assert registry.private_keys == []


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("{not json", "Failed to read key registry"),
        ("[1, 2]", "must be a JSON object"),
        ('{"public_keys": [1]}', "Invalid key registry entry"),
        ('{"public_keys": [], "default_public_key_index": 0}', "Invalid index: 0"),
        ('{"private_keys": ["/a"], "default_private_key_index": true}', "Invalid index: True"),
    ],
)
def test_load_rejects_invalid_documents(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(content)

    with pytest.raises(KeyRegistryError, match=message):
        KeyRegistry.load(path)


def test_first_added_key_becomes_default(key_paths: list[Path]) -> None:
    registry = KeyRegistry()

    assert registry.add_public_key(key_paths[0]) == 0
    assert registry.add_public_key(key_paths[1]) == 1

    assert registry.default_public_key() == key_paths[0].resolve()


def test_add_missing_key_file_raises(tmp_path: Path) -> None:
    registry = KeyRegistry()

    with pytest.raises(KeyRegistryError, match="Key file not found"):
        registry.add_private_key(tmp_path / "absent.pem")

    assert registry.private_keys == []


def test_set_default_key(key_paths: list[Path]) -> None:
    registry = KeyRegistry()
    for path in key_paths:
        registry.add_private_key(path)

    registry.set_default_private_key(2)

    assert registry.default_private_key() == key_paths[2].resolve()


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_set_default_out_of_range_raises(key_paths: list[Path], index: int) -> None:
    registry = KeyRegistry()
    for path in key_paths:
        registry.add_public_key(path)

    with pytest.raises(
        KeyRegistryError, match=f"Invalid index: {index}. There are only 3 public keys registered."
    ):
        registry.set_default_public_key(index)


def test_remove_before_default_shifts_index(key_paths: list[Path]) -> None:
    registry = KeyRegistry()
    for path in key_paths:
        registry.add_public_key(path)
    registry.set_default_public_key(2)

    removed = registry.remove_public_key(0)

    assert removed == key_paths[0].resolve()
    assert registry.default_public_key_index == 1
    assert registry.default_public_key() == key_paths[2].resolve()


def test_remove_default_clears_it(key_paths: list[Path]) -> None:
    registry = KeyRegistry()
    for path in key_paths:
        registry.add_private_key(path)

    registry.remove_private_key(0)

    assert registry.default_private_key_index is None
    assert registry.default_private_key() is None
    assert len(registry.private_keys) == 2


def test_remove_after_default_keeps_index(key_paths: list[Path]) -> None:
    registry = KeyRegistry()
    for path in key_paths:
        registry.add_public_key(path)

    registry.remove_public_key(2)

    assert registry.default_public_key_index == 0


def test_remove_invalid_index_raises(key_paths: list[Path]) -> None:
    registry = KeyRegistry()
    registry.add_private_key(key_paths[0])

    with pytest.raises(KeyRegistryError, match="There are only 1 private keys registered"):
        registry.remove_private_key(1)


def test_clear_keys_resets_defaults(key_paths: list[Path]) -> None:
    registry = KeyRegistry()
    registry.add_public_key(key_paths[0])
    registry.add_private_key(key_paths[1])

    registry.clear_public_keys()
    registry.clear_private_keys()

    assert registry == KeyRegistry()
