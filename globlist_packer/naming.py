"""
Archive naming and destination derivation
"""

import copy
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .ignore.constants import GITIGNORE_FILENAME
from .models import ArchiveDescriptor, ArchiveType

DEFAULT_ARCHIVE_BASENAME = "packed"
DEFAULT_ARCHIVE_OPTIONS: Dict[str, Any] = {"zlib": {"level": 6}}


def strip_extension(name: str) -> str:
    """Drop the final extension: "foo.bar" -> "foo", ".npmignore" stays as is"""
    return os.path.splitext(name)[0]


def merge_archive_options(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Caller options merged over the default compression level"""
    options = dict(options or {})
    merged = copy.deepcopy(DEFAULT_ARCHIVE_OPTIONS)
    zlib_options = options.pop("zlib", None) or {}
    merged.update(options)
    merged["zlib"] = {**DEFAULT_ARCHIVE_OPTIONS["zlib"], **zlib_options}
    return merged


NameTier = Tuple[str, Callable[["ArchiveNamer"], Optional[str]]]


def _explicit_name(namer: "ArchiveNamer") -> Optional[str]:
    return namer.archive_name or None


def _first_user_list(namer: "ArchiveNamer") -> Optional[str]:
    for basename in namer.ignore_list_basenames:
        if basename != GITIGNORE_FILENAME:
            return basename
    return None


def _hardcoded_default(namer: "ArchiveNamer") -> Optional[str]:
    return DEFAULT_ARCHIVE_BASENAME


# First tier yielding a non-empty name wins
NAME_TIERS: List[NameTier] = [
    ("archive_name", _explicit_name),
    ("ignore_list", _first_user_list),
    ("default", _hardcoded_default),
]


class ArchiveNamer:
    """
    Derives the archive file name and where it is written.

    The base name comes from the first tier in NAME_TIERS that yields
    something; the extension depends only on the archive type.
    """

    def __init__(self,
                 archive_type: Union[str, ArchiveType] = ArchiveType.TAR,
                 archive_name: Optional[str] = None,
                 ignore_list_file_names: Optional[Sequence[Union[str, Path]]] = None):
        self.archive_type = ArchiveType(archive_type)
        self.archive_name = archive_name
        self.ignore_list_basenames = [
            os.path.basename(os.fspath(name)) for name in (ignore_list_file_names or [])
        ]

    def resolve_base_name(self) -> Tuple[str, str]:
        """
        Returns:
            (tier name, base name without extension)
        """
        for tier, resolver in NAME_TIERS:
            candidate = resolver(self)
            if not candidate:
                continue
            stripped = strip_extension(candidate)
            if stripped:
                return tier, stripped
        return "default", DEFAULT_ARCHIVE_BASENAME

    def base_name(self) -> str:
        """Final archive file name, extension included"""
        _, stem = self.resolve_base_name()
        return f"{stem}{self.archive_type.extension}"

    def output_dir(self, root_dir: Path, out_dir: Optional[Union[str, Path]] = None) -> Path:
        """out_dir as-is if absolute, resolved against root if relative, else root"""
        if not out_dir:
            return Path(root_dir)
        path = Path(out_dir)
        if not path.is_absolute():
            path = Path(root_dir) / path
        return Path(os.path.normpath(path))

    def describe(self, root_dir: Path, out_dir: Optional[Union[str, Path]] = None,
                 archive_options: Optional[Dict[str, Any]] = None) -> ArchiveDescriptor:
        """Full archive descriptor: path, type and merged codec options"""
        return ArchiveDescriptor(
            path=self.output_dir(root_dir, out_dir) / self.base_name(),
            archive_type=self.archive_type,
            options=merge_archive_options(archive_options),
        )
