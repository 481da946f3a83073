"""
Ignore rule processing for globlist-packer

This package provides:
- Composition of the ordered ignore-source cascade
- Loading and validation of gitignore-style rule files
- Multi-level pattern matching backed by pathspec
"""

from .constants import DEFAULT_IGNORE_GLOBS, GITIGNORE_FILENAME
from .composer import RuleSetComposer
from .file_loader import IgnoreFileLoader, IgnoreFileInfo
from .rule_engine import IgnoreRuleEngine, MatchResult, RuleLevel

__all__ = [
    'DEFAULT_IGNORE_GLOBS',
    'GITIGNORE_FILENAME',
    'RuleSetComposer',
    'IgnoreFileLoader',
    'IgnoreFileInfo',
    'IgnoreRuleEngine',
    'MatchResult',
    'RuleLevel',
]
