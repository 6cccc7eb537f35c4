"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add python/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))


@pytest.fixture
def make_file(tmp_path):
    """Write bytes (or text) to a file under tmp_path and return its path."""
    def _make(name, content):
        path = tmp_path / name
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return str(path)
    return _make
