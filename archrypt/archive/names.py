"""Archive entry naming rules shared by the builder and the extractor."""

import re

from archrypt.exceptions import UnsafeEntryNameError

SEPARATOR = "/"
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def entry_name(*parts: str, directory: bool = False) -> str:
    """
    Join path segments into a validated entry name.

    Args:
        parts: Path segments; each may itself contain ``/``.
        directory: Append the trailing separator that marks a directory entry.
    """
    name = SEPARATOR.join(part.strip(SEPARATOR) for part in parts if part.strip(SEPARATOR))
    if directory:
        name += SEPARATOR
    validate_entry_name(name)
    return name


def validate_entry_name(name: str) -> None:
    """
    Reject names that could write outside the extraction root.

    Raises:
        UnsafeEntryNameError: If the name is empty, absolute, uses
            backslashes or NUL, or contains ``.``/``..`` segments.
    """
    if not name or name == SEPARATOR:
        msg = "Entry name is empty"
        raise UnsafeEntryNameError(msg, name=name)
    if name.startswith(SEPARATOR) or _DRIVE_PREFIX.match(name):
        msg = "Entry name is absolute"
        raise UnsafeEntryNameError(msg, name=name)
    if "\\" in name or "\x00" in name:
        msg = "Entry name contains a backslash or NUL byte"
        raise UnsafeEntryNameError(msg, name=name)

    segments = name.removesuffix(SEPARATOR).split(SEPARATOR)
    for segment in segments:
        if segment in ("", ".", ".."):
            msg = f"Entry name contains an invalid segment: {segment!r}"
            raise UnsafeEntryNameError(msg, name=name)


def is_directory_name(name: str) -> bool:
    return name.endswith(SEPARATOR)
