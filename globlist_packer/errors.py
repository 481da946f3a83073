"""
Error taxonomy for pack runs.

Every error raised here is run-fatal: there is no partial retry or resume.
"""

from pathlib import Path
from typing import Optional


class PackerError(Exception):
    """Base class for all run-fatal packer errors"""


class ValidationError(PackerError):
    """Invalid input detected before any filesystem mutation"""


class LimitExceededError(PackerError):
    """The matched file count exceeds the configured cap"""

    def __init__(self, matched: int, limit: int):
        self.matched = matched
        self.limit = limit
        super().__init__(
            f"Matched file count of {matched} exceeds maxFileCount of {limit}"
        )


class CopyError(PackerError):
    """A file could not be staged even after creating its parent directories"""

    def __init__(self, source: Path, destination: Path, cause: Optional[BaseException] = None):
        self.source = source
        self.destination = destination
        self.cause = cause
        message = f"Failed to copy {source} to {destination}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ArchiveError(PackerError):
    """The archive stream or codec failed"""
