"""
Command-line interface.

Example:
    archrypt pubkey --add recipient.pub.pem
    archrypt compress -o backup.acrp notes.txt docs/
    archrypt extract -o restored/ -k recipient.pem backup.acrp
"""

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from archrypt import __version__
from archrypt.config import ArchryptConfig
from archrypt.exceptions import ArchryptError, KeyRegistryError
from archrypt.registry import KeyRegistry
from archrypt.services.pipeline import ArchivePipeline

app = typer.Typer(
    help="File compression and encryption tool.",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


class KeyKind(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True, kw_only=True)
class CliState:
    config: ArchryptConfig


class RichProgress:
    """Progress observer backed by a Rich progress bar."""

    def __init__(self, progress: Progress, description: str) -> None:
        self._progress = progress
        self._task = progress.add_task(description, total=None)
        self._total: int | None = None

    def set_total(self, total: int) -> None:
        self._total = total
        self._progress.update(self._task, total=total)

    def advance(self, units: int = 1) -> None:
        self._progress.advance(self._task, units)

    def finish(self) -> None:
        if self._total is not None:
            self._progress.update(self._task, completed=self._total)


def _make_progress() -> Progress:
    return Progress(
        SpinnerColumn(style="green"),
        TimeElapsedColumn(),
        BarColumn(bar_width=40, complete_style="cyan", finished_style="blue"),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=False,
    )


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=lambda *_: structlog.PrintLogger(sys.stderr),
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)
    return typer.Exit(code=1)


def _load_registry(state: CliState) -> KeyRegistry:
    try:
        return KeyRegistry.load(state.config.registry_path)
    except KeyRegistryError as e:
        raise _fail(f"Failed to load configuration: {e}") from e


def _save_registry(state: CliState, registry: KeyRegistry) -> None:
    try:
        registry.save(state.config.registry_path)
    except KeyRegistryError as e:
        raise _fail(f"Failed to save configuration: {e}") from e


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"archrypt {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    registry: Annotated[
        Optional[Path],
        typer.Option("--registry", help="Key registry file (default: ~/.archrypt/config.json)."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version."),
    ] = False,
) -> None:
    _configure_logging(verbose)
    config = ArchryptConfig(registry_path=registry) if registry else ArchryptConfig()
    ctx.obj = CliState(config=config)


@app.command()
def compress(
    ctx: typer.Context,
    targets: Annotated[list[Path], typer.Argument(help="Files and directories to pack.")],
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Output container path (*.acrp).")
    ],
    public_key: Annotated[
        Optional[Path],
        typer.Option("--public-key", "-p", help="Public key used for encryption."),
    ] = None,
) -> None:
    """Compress files and encrypt them into a container."""
    state: CliState = ctx.obj
    if public_key is None:
        public_key = _load_registry(state).default_public_key()
        if public_key is None:
            raise _fail("Public key is not specified and no default is set.")

    try:
        with _make_progress() as progress:
            observer = RichProgress(progress, "Compressing")
            pipeline = ArchivePipeline(state.config, observer=observer)
            written = pipeline.compress(output, public_key, targets)
    except ArchryptError as e:
        raise _fail(f"Compression failed: {e}") from e

    console.print("Complete!")
    console.print(str(written), markup=False, soft_wrap=True)


@app.command()
def extract(
    ctx: typer.Context,
    container: Annotated[Path, typer.Argument(help="Container to decrypt (*.acrp).")],
    output: Annotated[Path, typer.Option("--output", "-o", help="Extraction directory.")],
    private_key: Annotated[
        Optional[Path],
        typer.Option("--private-key", "-k", help="Private key used for decryption."),
    ] = None,
) -> None:
    """Decrypt a container and extract its files."""
    state: CliState = ctx.obj
    if private_key is None:
        private_key = _load_registry(state).default_private_key()
        if private_key is None:
            raise _fail("Private key is not specified and no default is set.")

    try:
        with _make_progress() as progress:
            observer = RichProgress(progress, "Extracting")
            pipeline = ArchivePipeline(state.config, observer=observer)
            pipeline.extract(container, private_key, output)
    except ArchryptError as e:
        raise _fail(f"Extraction failed: {e}") from e

    console.print("Complete!")
    console.print(str(output.resolve()), markup=False, soft_wrap=True)


def _manage_keys(
    state: CliState,
    kind: KeyKind,
    *,
    list_keys: bool,
    add: Path | None,
    set_default: int | None,
    delete: int | None,
    clear: bool,
) -> None:
    registry = _load_registry(state)
    keys = registry.public_keys if kind is KeyKind.PUBLIC else registry.private_keys

    try:
        if list_keys:
            _print_keys(registry, kind)
            return
        if add is not None:
            if kind is KeyKind.PUBLIC:
                registry.add_public_key(add)
            else:
                registry.add_private_key(add)
            message = f"Added {kind.value} key: {add}"
        elif set_default is not None:
            if kind is KeyKind.PUBLIC:
                registry.set_default_public_key(set_default)
            else:
                registry.set_default_private_key(set_default)
            message = f"Set default {kind.value} key to index {set_default}"
        elif delete is not None:
            if kind is KeyKind.PUBLIC:
                removed = registry.remove_public_key(delete)
            else:
                removed = registry.remove_private_key(delete)
            message = f"Deleted {kind.value} key: {removed}"
        elif clear:
            if kind is KeyKind.PUBLIC:
                registry.clear_public_keys()
            else:
                registry.clear_private_keys()
            message = f"Removed all {len(keys)} {kind.value} keys"
        else:
            raise _fail(f"No valid {kind.value} key option was provided.")
    except KeyRegistryError as e:
        raise _fail(str(e)) from e

    _save_registry(state, registry)
    console.print(message, markup=False, soft_wrap=True)


def _print_keys(registry: KeyRegistry, kind: KeyKind) -> None:
    if kind is KeyKind.PUBLIC:
        keys, default = registry.public_keys, registry.default_public_key_index
    else:
        keys, default = registry.private_keys, registry.default_private_key_index

    if not keys:
        console.print(f"No {kind.value} keys registered.")
        return
    console.print(f"Registered {kind.value} keys:")
    for index, key in enumerate(keys):
        marker = " [default]" if index == default else ""
        console.print(f"  {index}: {key}{marker}", markup=False, soft_wrap=True)


_ListOption = Annotated[
    bool, typer.Option("--list", "-l", help="List registered keys and the current default.")
]
_AddOption = Annotated[Optional[Path], typer.Option("--add", "-a", help="Register a key file.")]
_SetOption = Annotated[Optional[int], typer.Option("--set", "-s", help="Set the default by index.")]
_DeleteOption = Annotated[Optional[int], typer.Option("--delete", "-d", help="Delete a key by index.")]
_ClearOption = Annotated[bool, typer.Option("--clear", "-c", help="Remove all registered keys.")]


@app.command()
def pubkey(
    ctx: typer.Context,
    list_keys: _ListOption = False,
    add: _AddOption = None,
    set_default: _SetOption = None,
    delete: _DeleteOption = None,
    clear: _ClearOption = False,
) -> None:
    """Manage public key configuration."""
    _manage_keys(
        ctx.obj,
        KeyKind.PUBLIC,
        list_keys=list_keys,
        add=add,
        set_default=set_default,
        delete=delete,
        clear=clear,
    )


@app.command()
def privatekey(
    ctx: typer.Context,
    list_keys: _ListOption = False,
    add: _AddOption = None,
    set_default: _SetOption = None,
    delete: _DeleteOption = None,
    clear: _ClearOption = False,
) -> None:
    """Manage private key configuration."""
    _manage_keys(
        ctx.obj,
        KeyKind.PRIVATE,
        list_keys=list_keys,
        add=add,
        set_default=set_default,
        delete=delete,
        clear=clear,
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
