"""
Run configuration for globlist-packer

PackerConfig holds caller input exactly as given; resolve() turns it into
absolute paths and a pack mode, validating everything that must be checked
before the filesystem is touched.
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from .errors import ValidationError
from .models import ArchiveType, PackMode
from .utils import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]

# Hook result: False/"" omits the file, a str renames it, anything else keeps it
TransformResult = Union[None, bool, str]
FileNameTransformer = Callable[[str, str], Union[TransformResult, Awaitable[TransformResult]]]
StepCallback = Callable[[Any], None]

# camelCase option names accepted in config files
CAMEL_CASE_ALIASES = {
    'rootDir': 'root_dir',
    'ignoreListFileNames': 'ignore_list_file_names',
    'useGitIgnoreFiles': 'use_gitignore_files',
    'includeDefaultIgnores': 'include_default_ignores',
    'includeEmpty': 'include_empty',
    'followSymlink': 'follow_symlink',
    'outDir': 'out_dir',
    'copyFilesTo': 'copy_files_to',
    'archiveName': 'archive_name',
    'archiveType': 'archive_type',
    'archiveRootDirName': 'archive_root_dir_name',
    'archiveOptions': 'archive_options',
    'maxFileCount': 'max_file_count',
    'verbose': 'verbose',
}

# Callables cannot come from a config file
NON_SERIALIZABLE_FIELDS = {'file_name_transformer', 'on_step_change'}


def resolve_against(base: Path, value: PathLike) -> Path:
    """Use an absolute path as-is, otherwise resolve it against base"""
    path = Path(os.path.expanduser(os.fspath(value)))
    if not path.is_absolute():
        path = base / path
    return Path(os.path.normpath(path))


@dataclass
class ResolvedConfig:
    """Absolute, validated view of a PackerConfig"""
    root_dir: Path
    mode: PackMode
    out_dir: Path
    copy_files_to: Optional[Path]
    archive_type: ArchiveType


@dataclass
class PackerConfig:
    """
    Options for one pack run.

    Attributes:
        root_dir: Walk and copy base; relative paths resolve against it (default: cwd)
        ignore_list_file_names: User rule files, applied last, order preserved
        use_gitignore_files: Include .gitignore files as a rule source
        include_default_ignores: Inject the bundled default excludes
        include_empty: Keep empty directories
        follow_symlink: Descend into symlinked directories
        out_dir: Archive output directory (default: root_dir)
        copy_files_to: Copy matches into this directory instead of archiving
        archive_name: Archive base name; any extension is replaced
        archive_type: "tar" (.tgz) or "zip" (.zip)
        archive_root_dir_name: Nest every staged file under this folder
        archive_options: Codec options merged over {"zlib": {"level": 6}}
        max_file_count: Abort when more files than this match
        file_name_transformer: Per-file rename/omit hook (base_name, abs_path)
        on_step_change: Called with each ProgressStep as the run advances
        verbose: Log resolved options, file lists and blocked files at INFO on
            the globlist_packer loggers; library callers see them only after
            enabling INFO output, e.g. configure_logging(log_level="INFO")
    """
    root_dir: Optional[PathLike] = None
    ignore_list_file_names: List[PathLike] = field(default_factory=list)
    use_gitignore_files: bool = True
    include_default_ignores: bool = True
    include_empty: bool = False
    follow_symlink: bool = False
    out_dir: Optional[PathLike] = None
    copy_files_to: Optional[PathLike] = None
    archive_name: Optional[str] = None
    archive_type: Union[str, ArchiveType] = ArchiveType.TAR
    archive_root_dir_name: Optional[str] = None
    archive_options: Dict[str, Any] = field(default_factory=dict)
    max_file_count: Optional[int] = None
    file_name_transformer: Optional[FileNameTransformer] = None
    on_step_change: Optional[StepCallback] = None
    verbose: bool = False

    def __post_init__(self):
        """Validate configuration values"""
        try:
            self.archive_type = ArchiveType(self.archive_type)
        except ValueError:
            choices = ', '.join(t.value for t in ArchiveType)
            raise ValidationError(
                f"archive_type must be one of {choices}, got {self.archive_type!r}"
            ) from None

        if isinstance(self.ignore_list_file_names, (str, Path)):
            self.ignore_list_file_names = [self.ignore_list_file_names]
        else:
            self.ignore_list_file_names = list(self.ignore_list_file_names or [])

        if self.max_file_count is not None:
            if isinstance(self.max_file_count, bool) or not isinstance(self.max_file_count, int):
                raise ValidationError(
                    f"max_file_count must be an integer, got {self.max_file_count!r}"
                )
            if self.max_file_count < 1:
                raise ValidationError(
                    f"max_file_count must be positive, got {self.max_file_count}"
                )

        if self.archive_options is None:
            self.archive_options = {}
        if not isinstance(self.archive_options, dict):
            raise ValidationError(
                f"archive_options must be a mapping, got {type(self.archive_options).__name__}"
            )
        zlib_options = self.archive_options.get('zlib', {})
        if not isinstance(zlib_options, dict):
            raise ValidationError("archive_options.zlib must be a mapping")
        level = zlib_options.get('level', 6)
        if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= 9:
            raise ValidationError(
                f"archive_options.zlib.level must be an integer from 0 to 9, got {level!r}"
            )

        if self.archive_root_dir_name:
            root_name = Path(self.archive_root_dir_name)
            if root_name.is_absolute() or '..' in root_name.parts:
                raise ValidationError(
                    f"archive_root_dir_name must be a relative folder name, got "
                    f"{self.archive_root_dir_name!r}"
                )

        for name in ('file_name_transformer', 'on_step_change'):
            value = getattr(self, name)
            if value is not None and not callable(value):
                raise ValidationError(f"{name} must be callable")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> "PackerConfig":
        """Alias for config_from_mapping()"""
        return config_from_mapping(data, **overrides)

    @property
    def mode(self) -> PackMode:
        return PackMode.COPY if self.copy_files_to else PackMode.ARCHIVE

    def resolve(self) -> ResolvedConfig:
        """
        Resolve paths and run the checks that precede any mutation

        Returns:
            ResolvedConfig with absolute paths

        Raises:
            ValidationError: root is not a directory, or the copy
                destination is the root directory itself
        """
        root = Path(os.path.expanduser(os.fspath(self.root_dir))) if self.root_dir else Path.cwd()
        root = Path(os.path.normpath(root.absolute()))
        if not root.is_dir():
            raise ValidationError(f"rootDir is not a directory: {root}")

        copy_to = resolve_against(root, self.copy_files_to) if self.copy_files_to else None
        if copy_to is not None and copy_to.resolve() == root.resolve():
            raise ValidationError(
                "Stopping process! - copyFilesTo is the same directory as rootDir - "
                "this would overwrite files in-place and is likely unwanted."
            )

        out_dir = resolve_against(root, self.out_dir) if self.out_dir else root

        return ResolvedConfig(
            root_dir=root,
            mode=self.mode,
            out_dir=out_dir,
            copy_files_to=copy_to,
            archive_type=self.archive_type,
        )

    def describe(self) -> Dict[str, Any]:
        """Serializable snapshot of the options, for verbose logging"""
        snapshot = {}
        for f in fields(self):
            if f.name in NON_SERIALIZABLE_FIELDS:
                snapshot[f.name] = getattr(self, f.name) is not None
                continue
            value = getattr(self, f.name)
            if isinstance(value, ArchiveType):
                value = value.value
            elif isinstance(value, Path):
                value = str(value)
            elif isinstance(value, list):
                value = [os.fspath(v) for v in value]
            snapshot[f.name] = value
        return snapshot


def config_from_mapping(data: Mapping[str, Any], **overrides: Any) -> PackerConfig:
    """
    Build a PackerConfig from a mapping with snake_case or camelCase keys

    Args:
        data: Option mapping, e.g. a parsed JSON config file
        **overrides: snake_case options that win over the mapping

    Returns:
        Validated PackerConfig

    Raises:
        ValidationError: unknown or non-serializable option names
    """
    known = {f.name for f in fields(PackerConfig)} - NON_SERIALIZABLE_FIELDS
    options: Dict[str, Any] = {}
    for key, value in data.items():
        name = CAMEL_CASE_ALIASES.get(key, key)
        if name not in known:
            raise ValidationError(f"Unknown config option: {key}")
        options[name] = value
    options.update(overrides)
    return PackerConfig(**options)


def load_config_file(path: PathLike) -> Dict[str, Any]:
    """
    Read a JSON config file

    Args:
        path: Path to a JSON file holding one object

    Returns:
        The parsed options mapping
    """
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding='utf-8'))
    except FileNotFoundError:
        raise ValidationError(f"Config file not found: {config_path}") from None
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError(f"Config file {config_path} must contain a JSON object")

    logger.debug(f"Loaded config from {config_path}: {sorted(data)}")
    return data
