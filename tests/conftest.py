"""Shared fixtures for revstore tests."""

from __future__ import annotations

import pytest

from revstore.store import RevisionStore
from revstore.tags import TagIndex


@pytest.fixture
def store(tmp_path):
    """RevisionStore rooted in a fresh temp directory."""
    return RevisionStore(tmp_path / "objects")


@pytest.fixture
def mem_store():
    """RevisionStore over an in-memory log."""
    return RevisionStore.in_memory()


@pytest.fixture
def tags(tmp_path):
    return TagIndex(tmp_path / "tags")
