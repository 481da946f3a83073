"""
Central configuration for ignore file processing
"""

# VCS ignore file honoured when use_gitignore_files is enabled
GITIGNORE_FILENAME = ".gitignore"

# Bundled default exclusions, written into the synthetic defaults file
DEFAULT_IGNORE_GLOBS = [
    "node_modules",
    ".git",
]

# Synthetic defaults file: .globlist-packer-defaults-<timestamp>-<hex>.ignore
DEFAULTS_FILE_PREFIX = ".globlist-packer-defaults-"
DEFAULTS_FILE_SUFFIX = ".ignore"

# Limits for security and performance
MAX_IGNORE_FILE_SIZE = 1024 * 1024  # 1MB
MAX_PATTERNS_PER_FILE = 10000
