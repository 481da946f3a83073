"""
File loader for parsing and validating ignore files
"""

from pathlib import Path
from typing import List
from dataclasses import dataclass, field

from ..utils import get_logger
from .constants import MAX_IGNORE_FILE_SIZE, MAX_PATTERNS_PER_FILE

logger = get_logger(__name__)


@dataclass
class PatternIssue:
    """A problem found on one line of an ignore file"""
    line: int
    pattern: str
    message: str


@dataclass
class IgnoreFileInfo:
    """Information about a loaded ignore file"""
    path: Path
    patterns: List[str] = field(default_factory=list)
    valid_patterns: List[str] = field(default_factory=list)
    errors: List[PatternIssue] = field(default_factory=list)
    warnings: List[PatternIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check if file has no errors"""
        return len(self.errors) == 0


class IgnoreFileLoader:
    """
    Handles loading, parsing, and validating ignore files
    """

    def __init__(self, validator=None):
        """
        Initialize loader

        Args:
            validator: Callable returning (is_valid, error_message) for a
                pattern; defaults to IgnoreRuleEngine.validate_pattern
        """
        if validator is None:
            # Import here to avoid circular dependency
            from .rule_engine import IgnoreRuleEngine
            validator = IgnoreRuleEngine().validate_pattern
        self._validate_pattern = validator

    def load_file(self, file_path: Path) -> IgnoreFileInfo:
        """
        Load and validate an ignore file

        Unreadable or oversized files yield an info object with errors and
        no patterns; the walk continues without them.

        Args:
            file_path: Path to the ignore file

        Returns:
            IgnoreFileInfo with patterns and validation results
        """
        info = IgnoreFileInfo(path=file_path)

        try:
            file_size = file_path.stat().st_size
        except OSError as e:
            info.errors.append(PatternIssue(0, "", f"Cannot stat file: {e}"))
            return info

        if file_size > MAX_IGNORE_FILE_SIZE:
            info.errors.append(PatternIssue(
                0, "", f"File too large: {file_size} bytes (max: {MAX_IGNORE_FILE_SIZE})"
            ))
            return info

        try:
            lines = file_path.read_text(encoding='utf-8', errors='replace').splitlines()
        except OSError as e:
            info.errors.append(PatternIssue(0, "", f"Error reading file: {e}"))
            return info

        for line_num, line in enumerate(lines, 1):
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue

            info.patterns.append(stripped)
            is_valid, validation_msg = self._validate_pattern(stripped)
            if is_valid:
                info.valid_patterns.append(stripped)
            else:
                info.errors.append(PatternIssue(
                    line_num, stripped, validation_msg or "Invalid pattern"
                ))

            for warning_msg in self._check_pattern_warnings(stripped):
                info.warnings.append(PatternIssue(line_num, stripped, warning_msg))

        if len(info.valid_patterns) > MAX_PATTERNS_PER_FILE:
            info.errors.append(PatternIssue(
                0, "",
                f"Too many patterns: {len(info.valid_patterns)} (max: {MAX_PATTERNS_PER_FILE})"
            ))
            info.valid_patterns = info.valid_patterns[:MAX_PATTERNS_PER_FILE]

        return info

    def load_and_report(self, file_path: Path) -> List[str]:
        """Load a file, log its problems, and return the usable patterns"""
        info = self.load_file(file_path)
        for error in info.errors:
            logger.error(f"{file_path}:{error.line}: {error.message}")
        for warning in info.warnings:
            logger.debug(f"{file_path}:{warning.line}: {warning.message}")
        return info.valid_patterns

    def _check_pattern_warnings(self, pattern: str) -> List[str]:
        warnings = []

        if '\\' in pattern and not pattern.startswith('\\'):
            warnings.append(
                "Pattern contains backslash. Use forward slashes for paths."
            )

        if pattern in ['*', '**', '**/*']:
            warnings.append("Very broad pattern - will exclude many files")

        return warnings

