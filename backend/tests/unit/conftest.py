import pytest

from tests.unit.sync_fakes import (
    FakeDirectory,
    FakeIdentityMapper,
    FakeUnitOfWork,
    InMemoryConfigStore,
    enable_background_mode,
)

NOW = 1_700_000_000


@pytest.fixture
def config_store() -> InMemoryConfigStore:
    store = InMemoryConfigStore()
    enable_background_mode(store)
    return store


@pytest.fixture
def mapper() -> FakeIdentityMapper:
    return FakeIdentityMapper()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def uow(config_store, mapper) -> FakeUnitOfWork:
    return FakeUnitOfWork(config_store, mapper)
