"""
Data records shared across the pack pipeline
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class PackMode(str, Enum):
    """Where staged files end up"""
    ARCHIVE = "archive"
    COPY = "copy"


class ArchiveType(str, Enum):
    """Archive container; not the same thing as the file extension"""
    TAR = "tar"
    ZIP = "zip"

    @property
    def extension(self) -> str:
        return ARCHIVE_EXTENSIONS[self]


ARCHIVE_EXTENSIONS: Dict[ArchiveType, str] = {
    ArchiveType.TAR: ".tgz",
    ArchiveType.ZIP: ".zip",
}

BLOCKED_BY_TRANSFORMER = "user provided fileNameTransformer"


@dataclass
class FileRecord:
    """A matched file on its way into the staging directory"""
    relative_path: str
    source_path: Path
    dest_path: Path
    base_name: str
    renamed_from: Optional[str] = None

    @property
    def was_renamed(self) -> bool:
        return self.renamed_from is not None


@dataclass
class BlockedFileRecord:
    """A matched file that was kept out of staging, and why"""
    record: FileRecord
    blocked_by: str

    @property
    def source_path(self) -> Path:
        return self.record.source_path

    @property
    def relative_path(self) -> str:
        return self.record.relative_path


@dataclass
class ArchiveDescriptor:
    """Resolved output of the archive step"""
    path: Path
    archive_type: ArchiveType
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def compression_level(self) -> int:
        return int(self.options.get('zlib', {}).get('level', 6))


@dataclass
class PackResult:
    """Outcome of a successful run"""
    mode: PackMode
    destination: Path
    copied: List[FileRecord] = field(default_factory=list)
    blocked: List[BlockedFileRecord] = field(default_factory=list)
    empty_dirs: List[str] = field(default_factory=list)
    archive: Optional[ArchiveDescriptor] = None
    bytes_written: Optional[int] = None

    @property
    def archive_path(self) -> Optional[Path]:
        return self.archive.path if self.archive else None
