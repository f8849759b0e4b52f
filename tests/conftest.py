import pytest

from clientauth.store import MemoryStore
from tests.auth_helpers import build_engine


@pytest.fixture
def auth_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def state_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_engine(auth_store, state_store):
    def _make(**kwargs):
        kwargs.setdefault("auth_store", auth_store)
        kwargs.setdefault("state_store", state_store)
        return build_engine(**kwargs)

    return _make
