"""Pytest fixtures for driveuploader tests."""
import os
from pathlib import Path

import pytest


@pytest.fixture
def make_file(tmp_path):
    """Returns a factory writing a file of random bytes: make_file(size) -> (path, data)."""
    def _make(size: int, name: str = "dummy.txt"):
        data = os.urandom(size)
        path = tmp_path / name
        path.write_bytes(data)
        return path, data
    return _make


@pytest.fixture
def missing_file(tmp_path) -> Path:
    """Path of a file that does not exist."""
    return tmp_path / "does_not_exist.txt"
