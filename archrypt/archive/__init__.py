"""
Archive assembly and extraction.
"""

from archrypt.archive.builder import ArchiveBuilder, count_files, resolve_targets
from archrypt.archive.extractor import ArchiveExtractor, count_entries, read_entries
from archrypt.archive.names import entry_name, validate_entry_name

__all__ = [
    "ArchiveBuilder",
    "ArchiveExtractor",
    "count_entries",
    "count_files",
    "entry_name",
    "read_entries",
    "resolve_targets",
    "validate_entry_name",
]
