from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from archrypt.tests.utils.keys import KeyFiles, write_key_pair


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_key(private_key: rsa.RSAPrivateKey) -> rsa.RSAPublicKey:
    return private_key.public_key()


@pytest.fixture(scope="session")
def key_files(
    tmp_path_factory: pytest.TempPathFactory, private_key: rsa.RSAPrivateKey
) -> KeyFiles:
    return write_key_pair(tmp_path_factory.mktemp("keys"), private_key)


@pytest.fixture(scope="session")
def other_key_files(
    tmp_path_factory: pytest.TempPathFactory, other_private_key: rsa.RSAPrivateKey
) -> KeyFiles:
    return write_key_pair(tmp_path_factory.mktemp("other_keys"), other_private_key)


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """
    Source layout::

        src/notes.txt        "hello"
        src/docs/a.txt       "alpha"
        src/docs/b.txt       "bravo"
    """
    source = tmp_path / "src"
    docs = source / "docs"
    docs.mkdir(parents=True)
    (source / "notes.txt").write_bytes(b"hello")
    (docs / "a.txt").write_bytes(b"alpha")
    (docs / "b.txt").write_bytes(b"bravo")
    return source
