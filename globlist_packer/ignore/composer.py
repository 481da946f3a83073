"""
Composition of the ordered ignore-source cascade
"""

import os
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from ..errors import ValidationError
from ..utils import get_logger
from .constants import (
    DEFAULT_IGNORE_GLOBS,
    DEFAULTS_FILE_PREFIX,
    DEFAULTS_FILE_SUFFIX,
    GITIGNORE_FILENAME,
)

logger = get_logger(__name__)


def generate_defaults_filename() -> str:
    """Unique, namespaced name for the synthetic defaults file"""
    return f"{DEFAULTS_FILE_PREFIX}{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{DEFAULTS_FILE_SUFFIX}"


def generate_defaults_content(defaults_filename: str,
                              patterns: Optional[Sequence[str]] = None) -> str:
    """
    Content of the synthetic defaults file

    The file lists itself so it never shows up in the walk result.
    """
    lines = list(patterns if patterns is not None else DEFAULT_IGNORE_GLOBS)
    lines.append(defaults_filename)
    return '\n'.join(lines) + '\n'


class RuleSetComposer:
    """
    Builds the ordered list of ignore-source basenames handed to the walker.

    Order is always: synthetic defaults (if enabled), ``.gitignore`` (if
    enabled), then the user lists in the order given. User lists come last
    so their ``!`` patterns can re-include anything excluded earlier.

    Only basenames are kept: the walker honours an ignore source only where
    a file of that name sits inside a scanned directory.
    """

    def __init__(self,
                 root_dir: Union[str, Path],
                 include_default_ignores: bool = True,
                 use_gitignore_files: bool = True,
                 ignore_list_file_names: Optional[Sequence[Union[str, Path]]] = None,
                 default_patterns: Optional[Sequence[str]] = None):
        self.root_dir = Path(root_dir)
        self.include_default_ignores = include_default_ignores
        self.use_gitignore_files = use_gitignore_files
        self.user_list_basenames = [
            os.path.basename(os.fspath(name)) for name in (ignore_list_file_names or [])
        ]
        self.default_patterns = list(default_patterns) if default_patterns is not None else None
        self.defaults_filename = generate_defaults_filename() if include_default_ignores else None

    @property
    def defaults_path(self) -> Optional[Path]:
        if self.defaults_filename is None:
            return None
        return self.root_dir / self.defaults_filename

    def compose(self) -> List[str]:
        """
        Ordered ignore-source basenames

        Returns:
            Basenames in fixed precedence: defaults, VCS ignore, user lists
        """
        sources: List[str] = []
        if self.defaults_filename is not None:
            sources.append(self.defaults_filename)
        if self.use_gitignore_files:
            sources.append(GITIGNORE_FILENAME)
        sources.extend(self.user_list_basenames)

        logger.debug(f"Composed ignore sources: {sources}")
        return sources

    @contextmanager
    def defaults_file(self) -> Iterator[Optional[Path]]:
        """
        Materialize the synthetic defaults file for the duration of a walk.

        Yields the file path (or None when defaults are disabled). The file
        is removed on exit, including when the body raises.

        Raises:
            ValidationError: a file with the synthetic name already exists
        """
        path = self.defaults_path
        if path is None:
            yield None
            return

        content = generate_defaults_content(self.defaults_filename, self.default_patterns)
        try:
            # 'x' refuses to clobber an existing file
            with open(path, 'x', encoding='utf-8') as f:
                f.write(content)
        except FileExistsError as e:
            raise ValidationError(
                f"Fatal: Failed to create temporary ignore file at {path}: file already exists"
            ) from e
        except OSError as e:
            raise ValidationError(
                f"Fatal: Failed to create temporary ignore file at {path}: {e}"
            ) from e

        logger.debug(f"Created {path}")
        try:
            yield path
        finally:
            try:
                path.unlink()
                logger.debug(f"Deleted {path}")
            except FileNotFoundError:
                logger.warning(f"Temporary ignore file vanished before cleanup: {path}")
