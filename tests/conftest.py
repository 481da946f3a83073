"""Shared fixtures for globlist-packer tests"""

import logging
from pathlib import Path
from typing import Dict, Optional

import pytest


def write_tree(root: Path, files: Dict[str, Optional[str]]) -> Path:
    """
    Create files under root

    Args:
        root: Directory to populate
        files: Relative posix path -> content; a trailing "/" key with None
            creates an (empty) directory

    Returns:
        root
    """
    for rel_path, content in files.items():
        target = root / rel_path
        if rel_path.endswith('/'):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content if content is not None else rel_path)
    return root


@pytest.fixture
def make_tree():
    """Factory writing a {relative path: content} mapping under a root"""
    return write_tree


@pytest.fixture
def project_dir(tmp_path):
    """A small project tree with VCS noise, dependencies and an ignore list"""
    root = tmp_path / "project"
    root.mkdir()
    write_tree(root, {
        "README.md": "# readme",
        "src/main.py": "print('main')",
        "src/util.py": "print('util')",
        "src/debug.log": "log",
        "build/out.bin": "bin",
        "node_modules/dep/index.js": "module.exports = {}",
        ".git/HEAD": "ref: refs/heads/main",
        ".gitignore": "*.log\nbuild/\n",
    })
    return root


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging() replaces root handlers; put them back after each test"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
