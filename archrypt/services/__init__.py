"""
Pipeline services for archrypt.
"""

from archrypt.services.pipeline import ArchivePipeline, compress_files, extract_files

__all__ = [
    "ArchivePipeline",
    "compress_files",
    "extract_files",
]
