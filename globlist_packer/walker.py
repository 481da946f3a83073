"""
Tree walker honouring cascaded, per-directory ignore files
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple, Union

from .ignore.file_loader import IgnoreFileLoader
from .ignore.rule_engine import IgnoreRuleEngine, RuleLevel
from .utils import get_logger

logger = get_logger(__name__)


@dataclass
class WalkResult:
    """Root-relative posix paths that survived the ignore cascade"""
    files: List[str] = field(default_factory=list)
    empty_dirs: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files)


class TreeWalker:
    """
    Walks a directory tree and applies ignore files found along the way.

    At each directory, every named ignore file present there is loaded in
    the given order and appended to the cascade for that subtree. Excluded
    directories are pruned, so a deeper ``!`` pattern cannot re-include
    files below an excluded parent (the gitignore rule).
    """

    def __init__(self,
                 root: Union[str, Path],
                 ignore_files: Sequence[str],
                 follow_symlinks: bool = False,
                 include_empty: bool = False,
                 rule_engine: Optional[IgnoreRuleEngine] = None,
                 loader: Optional[IgnoreFileLoader] = None):
        """
        Args:
            root: Directory to walk
            ignore_files: Ordered ignore-source basenames
            follow_symlinks: Descend into symlinked directories
            include_empty: Report directories left without entries
            rule_engine: Pattern engine (shared compile cache)
            loader: Ignore file loader
        """
        self.root = Path(root)
        self.ignore_files = list(ignore_files)
        self.follow_symlinks = follow_symlinks
        self.include_empty = include_empty
        self._engine = rule_engine or IgnoreRuleEngine()
        self._loader = loader or IgnoreFileLoader(self._engine.validate_pattern)

    def walk(self) -> WalkResult:
        """
        Walk the tree once

        Returns:
            WalkResult with sorted file paths and, if requested, empty dirs
        """
        result = WalkResult()
        visited: Set[Tuple[int, int]] = set()
        self._walk_dir(self.root, "", [], result, visited)
        result.files.sort()
        result.empty_dirs.sort()
        logger.debug(
            f"Walked {self.root}: {len(result.files)} file(s), "
            f"{len(result.empty_dirs)} empty dir(s)"
        )
        return result

    def _load_levels(self, dir_path: Path, rel_dir: str) -> List[RuleLevel]:
        levels = []
        for name in self.ignore_files:
            candidate = dir_path / name
            if not candidate.is_file():
                continue
            patterns = self._loader.load_and_report(candidate)
            level = self._engine.compile_level(rel_dir, name, patterns)
            if level is not None:
                levels.append(level)
        return levels

    def _walk_dir(self, dir_path: Path, rel_dir: str, parent_levels: List[RuleLevel],
                  result: WalkResult, visited: Set[Tuple[int, int]]) -> bool:
        """Walk one directory; returns True if anything under it was kept"""
        if self.follow_symlinks:
            try:
                st = dir_path.stat()
            except OSError as e:
                logger.warning(f"Cannot stat directory {dir_path}: {e}")
                return False
            key = (st.st_dev, st.st_ino)
            if key in visited:
                logger.warning(f"Symlink cycle detected at {dir_path}, skipping")
                return False
            visited.add(key)

        levels = parent_levels + self._load_levels(dir_path, rel_dir)

        try:
            with os.scandir(dir_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Cannot read directory {dir_path}: {e}")
            return False

        kept = False
        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name

            try:
                is_dir = entry.is_dir(follow_symlinks=self.follow_symlinks)
            except OSError:
                is_dir = False

            if is_dir:
                if self._engine.match_path(rel_path, levels, is_dir=True).should_ignore:
                    logger.trace(f"Pruned directory {rel_path}")
                    continue
                if self._walk_dir(Path(entry.path), rel_path, levels, result, visited):
                    kept = True
                elif self.include_empty:
                    result.empty_dirs.append(rel_path)
                    kept = True
                continue

            if entry.is_symlink() and entry.is_dir():
                logger.debug(f"Skipping symlinked directory {rel_path} (follow_symlinks disabled)")
                continue
            if not entry.is_file():
                logger.debug(f"Skipping non-regular file {rel_path}")
                continue

            match = self._engine.match_path(rel_path, levels)
            if match.should_ignore:
                logger.trace(
                    f"Ignored {rel_path} (pattern {match.matched_pattern!r} "
                    f"from {match.matched_source})"
                )
                continue

            result.files.append(rel_path)
            kept = True

        return kept
