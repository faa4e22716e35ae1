"""
Compress and extract pipelines.

Compress: targets → ArchiveBuilder → HybridCipher.seal → container file.
Extract: container file → HybridCipher.open → ArchiveExtractor → directory.
"""

from collections.abc import Sequence
from pathlib import Path

import structlog

from archrypt.archive.builder import ArchiveBuilder, TargetInput, count_files, resolve_targets
from archrypt.archive.extractor import ArchiveExtractor, count_entries
from archrypt.config import ArchryptConfig
from archrypt.container import read_container, write_container
from archrypt.core.progress import NullProgress, ProgressObserver
from archrypt.crypto.hybrid import HybridCipher
from archrypt.crypto.keys import (
    PrivateKeyInput,
    PublicKeyInput,
    load_private_key,
    load_public_key,
)
from archrypt.exceptions import InvalidExtensionError

logger = structlog.get_logger(__name__)


class ArchivePipeline:
    """
    Sequences the builder, cipher and codec for one recipient key pair.

    Every call owns its own buffers; an instance can be reused for any
    number of sequential operations.
    """

    def __init__(
        self,
        config: ArchryptConfig | None = None,
        cipher: HybridCipher | None = None,
        observer: ProgressObserver | None = None,
    ) -> None:
        """
        Args:
            config: Pipeline configuration. Uses defaults if not provided.
            cipher: Hybrid cipher to seal and open payloads.
            observer: Progress observer; one unit per file plus one for the cryptographic stage.
        """
        self._config = config or ArchryptConfig()
        self._cipher = cipher or HybridCipher()
        self._observer = observer or NullProgress()

    @property
    def config(self) -> ArchryptConfig:
        return self._config

    def compress(
        self,
        output_path: Path | str,
        public_key: PublicKeyInput,
        targets: Sequence[TargetInput],
    ) -> Path:
        """
        Pack targets and write an encrypted container.

        Args:
            output_path: Container path; must end with the configured suffix.
            public_key: Recipient public key (path, PEM bytes or key object).
            targets: Files and directories to pack.

        Returns:
            Absolute path of the written container.

        Raises:
            InvalidExtensionError: If ``output_path`` has the wrong suffix. Raised before any I/O.
            InvalidTargetError: If a target is neither file nor directory.
            ArchiveIOError: If reading targets or writing the container fails.
            KeyParseError: If the public key cannot be loaded.
            KeyTooSmallError: If the public key cannot wrap the content key.
        """
        output_path = Path(output_path)
        self._check_extension(output_path)

        recipient = load_public_key(public_key)
        resolved = resolve_targets(targets)
        self._observer.set_total(count_files(resolved) + 1)
        log = logger.bind(output=str(output_path), targets=len(resolved))
        log.debug("Building archive")

        raw_archive = ArchiveBuilder(self._config, self._observer).build(resolved)
        payload = self._cipher.seal(raw_archive, recipient)
        self._observer.advance()

        write_container(output_path, payload)
        self._observer.finish()

        log.info("Container written", size=len(payload.ciphertext))
        return output_path.resolve()

    def extract(
        self,
        input_path: Path | str,
        private_key: PrivateKeyInput,
        output_dir: Path | str,
    ) -> int:
        """
        Decrypt a container and unpack it into ``output_dir``.

        Args:
            input_path: Container path; must end with the configured suffix.
            private_key: Recipient private key (path, PEM bytes or key object).
            output_dir: Extraction root, created if absent.

        Returns:
            Number of entries written.

        Raises:
            InvalidExtensionError: If ``input_path`` has the wrong suffix. Raised before any I/O.
            ArchiveIOError: If reading the container or writing entries fails.
            MalformedContainerError: If the container layout is inconsistent.
            KeyParseError: If the private key cannot be loaded.
            KeyUnwrapError: If the content key cannot be recovered.
            AuthenticationFailedError: If the ciphertext does not authenticate.
            MalformedArchiveError: If the decrypted payload is not an archive.
            UnsafeEntryNameError: If an entry would escape ``output_dir``.
        """
        input_path = Path(input_path)
        output_dir = Path(output_dir)
        self._check_extension(input_path)

        self._observer.set_total(1)
        log = logger.bind(input=str(input_path), output_dir=str(output_dir))
        log.debug("Opening container")

        recipient = load_private_key(private_key)
        payload = read_container(input_path)
        raw_archive = self._cipher.open(payload, recipient)
        self._observer.advance()
        self._observer.set_total(count_entries(raw_archive) + 1)

        written = ArchiveExtractor(self._observer).extract(raw_archive, output_dir)
        self._observer.finish()

        log.info("Container extracted", entries=written)
        return written

    def _check_extension(self, path: Path) -> None:
        if path.suffix == self._config.suffix:
            return
        msg = f'Path extension is not "{self._config.suffix}": {path}'
        raise InvalidExtensionError(msg, path=path, expected=self._config.suffix)


def compress_files(
    output_path: Path | str,
    public_key: PublicKeyInput,
    targets: Sequence[TargetInput],
    *,
    config: ArchryptConfig | None = None,
    observer: ProgressObserver | None = None,
) -> Path:
    """Pack and encrypt ``targets`` into ``output_path``. See ``ArchivePipeline.compress``."""
    return ArchivePipeline(config, observer=observer).compress(output_path, public_key, targets)


def extract_files(
    input_path: Path | str,
    private_key: PrivateKeyInput,
    output_dir: Path | str,
    *,
    config: ArchryptConfig | None = None,
    observer: ProgressObserver | None = None,
) -> int:
    """Decrypt ``input_path`` and unpack it into ``output_dir``. See ``ArchivePipeline.extract``."""
    return ArchivePipeline(config, observer=observer).extract(input_path, private_key, output_dir)
