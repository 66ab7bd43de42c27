"""Shared pytest fixtures"""
from pathlib import Path

import pytest


@pytest.fixture
def write_feature(tmp_path):
    """Write a .feature file under tmp_path and return its path"""
    def _write(content: str, name: str = "sample.feature") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
