"""
Rule engine for pattern compilation and cascaded matching
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pathspec

from ..utils import get_logger

logger = get_logger(__name__)


@dataclass
class RuleLevel:
    """Compiled patterns of one ignore file, anchored at the directory holding it"""
    base_dir: str  # posix path relative to the walk root, "" for the root itself
    source_name: str
    spec: pathspec.PathSpec


@dataclass
class MatchResult:
    """Result of matching a path against the cascade"""
    should_ignore: bool
    matched_pattern: Optional[str] = None
    matched_source: Optional[str] = None
    matched_level: Optional[str] = None


class IgnoreRuleEngine:
    """
    Compiles gitignore-style patterns and evaluates a cascade of rule levels.

    Levels are evaluated in the order given (root first, then deeper
    directories; within a directory, in ignore-source order). Inside each
    level the last matching pattern wins, and a later level overrides an
    earlier one, so a user list applied last can re-include with ``!``.
    """

    def __init__(self):
        self._compiled_cache: Dict[str, pathspec.PathSpec] = {}

    def validate_pattern(self, pattern: str) -> Tuple[bool, Optional[str]]:
        """
        Validate a single pattern

        Args:
            pattern: Pattern to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            test_pattern = pattern[1:] if pattern.startswith('!') else pattern
            pathspec.PathSpec.from_lines('gitwildmatch', [test_pattern])
            return True, None
        except Exception as e:
            return False, str(e)

    def compile_level(self, base_dir: str, source_name: str,
                      patterns: List[str]) -> Optional[RuleLevel]:
        """
        Compile the patterns of one ignore file into a RuleLevel

        Args:
            base_dir: Posix directory of the ignore file, relative to root
            source_name: Basename of the ignore file
            patterns: Validated gitignore-style patterns

        Returns:
            RuleLevel, or None when there is nothing to compile
        """
        spec = self._compile_patterns(patterns)
        if spec is None:
            return None
        return RuleLevel(base_dir=base_dir, source_name=source_name, spec=spec)

    def match_path(self, rel_path: str, levels: Sequence[RuleLevel],
                   is_dir: bool = False) -> MatchResult:
        """
        Match a root-relative posix path against the cascade

        Args:
            rel_path: Path relative to the walk root, forward slashes
            levels: Applicable rule levels, most general first
            is_dir: Whether the path is a directory (enables ``dir/`` patterns)

        Returns:
            MatchResult with the decision and the deciding pattern
        """
        result = MatchResult(should_ignore=False)

        for level in levels:
            local = self._relative_to_level(rel_path, level.base_dir)
            if local is None:
                continue
            if is_dir:
                local += '/'

            for pattern in level.spec.patterns:
                if pattern.include is None:
                    continue
                if pattern.match_file(local) is not None:
                    result.should_ignore = bool(pattern.include)
                    result.matched_pattern = getattr(pattern, 'pattern', None)
                    result.matched_source = level.source_name
                    result.matched_level = level.base_dir

        return result

    def _relative_to_level(self, rel_path: str, base_dir: str) -> Optional[str]:
        if not base_dir:
            return rel_path
        prefix = base_dir + '/'
        if not rel_path.startswith(prefix):
            return None
        return rel_path[len(prefix):]

    def _compile_patterns(self, patterns: List[str]) -> Optional[pathspec.PathSpec]:
        """
        Compile a list of patterns with caching

        Order is part of the cache key: gitignore semantics are last-match-wins.
        """
        if not patterns:
            return None

        cache_key = '\n'.join(patterns)
        if cache_key in self._compiled_cache:
            return self._compiled_cache[cache_key]

        try:
            spec = pathspec.PathSpec.from_lines('gitwildmatch', patterns)
        except Exception as e:
            logger.error(f"Failed to compile patterns: {e}")
            return None

        self._compiled_cache[cache_key] = spec
        return spec
