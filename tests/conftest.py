import pytest

from momentum.config import IN_MEMORY_URL, StoreSettings
from momentum.db.record_store import RecordStore
from momentum.services import ProductivityService


@pytest.fixture
def store():
    """Fresh in-memory store per test; each engine owns its own database."""
    s = RecordStore(StoreSettings(database_url=IN_MEMORY_URL))
    s.open()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def service(store):
    return ProductivityService(store)


@pytest.fixture
def make_user(service):
    async def _make(name: str, **extra) -> int:
        payload = {"username": name, "email": f"{name}@example.com", "password": "secret", "full_name": name.title()}
        payload.update(extra)
        return await service.create_user(payload)
    return _make
