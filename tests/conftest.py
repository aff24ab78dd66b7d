from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from purchase_guard.advisor.key_pool import KeyPool
from purchase_guard.advisor.types import ProductInfo
from purchase_guard.core.dependencies import get_advisor
from purchase_guard.main import app


@pytest.fixture
def widget() -> ProductInfo:
    return ProductInfo(name="Widget", price=49.99, currency="USD")


@pytest.fixture
def two_key_pool() -> KeyPool:
    return KeyPool(["key-alpha-0001", "key-bravo-0002"])


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.pop(get_advisor, None)
