"""Shared fixtures for the snapshot test suite.

All tests run with zero network access: GitHub is mocked with ``responses``
or a fake client, and git/TypeDoc are replaced by fakes or tiny Python
subprocesses.
"""

import sys
import tempfile
from pathlib import Path

import pytest

# Ensure the repository root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


@pytest.fixture
def output_dir(tmp_path):
    """Output directory for published artifacts (not created up front)."""
    return tmp_path / "dist"


@pytest.fixture
def temp_root(tmp_path, monkeypatch):
    """Redirect tempfile.mkdtemp into a directory the test can inspect."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment variables that influence settings."""
    for name in (
        "BUILD_FORCE", "MAKEFILE_BUILD_FORCE", "OUTPUT_DIR",
        "GITHUB_TOKEN", "TYPEDOC_COMMAND", "DOCS_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
