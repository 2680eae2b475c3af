"""Shared test fixtures for ztln tests."""

import pytest

from ztln.organization import Organization
from ztln.store import RepositoryStore


# --- Fixtures ---


@pytest.fixture
def repo_dir(tmp_path):
    """Location for a repository that does not exist yet."""
    return tmp_path / "repo"


@pytest.fixture
def store(repo_dir):
    """Provide a freshly initialized, empty repository store."""
    return RepositoryStore.initialize(repo_dir)


@pytest.fixture
def orga(store):
    """Provide an Organization over an empty repository."""
    return Organization(store)


@pytest.fixture
def topic_orga(orga):
    """Provide an Organization with a current topic "T1" and no notes."""
    orga.create_topic("T1")
    return orga

