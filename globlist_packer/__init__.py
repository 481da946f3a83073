"""
globlist-packer: pack a directory into an archive, or copy it elsewhere,
keeping only the files that survive a cascade of gitignore-style lists.
"""

__version__ = "0.1.0"

from .config import PackerConfig, config_from_mapping, load_config_file
from .errors import (
    ArchiveError,
    CopyError,
    LimitExceededError,
    PackerError,
    ValidationError,
)
from .models import ArchiveType, FileRecord, PackMode, PackResult
from .packer import pack, pack_async
from .progress import ProgressStep

__all__ = [
    '__version__',
    'pack',
    'pack_async',
    'PackerConfig',
    'config_from_mapping',
    'load_config_file',
    'PackResult',
    'PackMode',
    'ArchiveType',
    'FileRecord',
    'ProgressStep',
    'PackerError',
    'ValidationError',
    'LimitExceededError',
    'CopyError',
    'ArchiveError',
]
