import pytest

from pathfinder.store import ContentStore


@pytest.fixture(scope="session")
def store():
    """Load the packaged content once for the entire test session."""
    s = ContentStore()
    s.load()
    return s
