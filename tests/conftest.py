from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from storedesk.api.backend import StubBackend
from storedesk.api.main import create_app
from storedesk.config import ClientSettings
from storedesk.context import ClientContext

STUB_URL = "http://stub.test"

ADMIN_EMAIL = "admin@example.com"
MANAGER_EMAIL = "manager@example.com"
CUSTOMER_EMAIL = "carol@example.com"
PASSWORD = "correct-horse"


@pytest.fixture
def test_data_dir(tmp_path: Path) -> Path:
    return tmp_path / "storedesk"


@pytest.fixture
def backend() -> StubBackend:
    """
    In-memory stub backend seeded with one account per role plus a few
    customers and products.
    """
    backend = StubBackend()
    backend.add_account(ADMIN_EMAIL, PASSWORD, "admin", fullname="Alice Admin")
    backend.add_account(MANAGER_EMAIL, PASSWORD, "manager", fullname="Mark Manager")
    backend.add_account("pending@example.com", PASSWORD, "staff", status="pending")
    backend.add_account(CUSTOMER_EMAIL, PASSWORD, "customer", fullname="Carol Customer")
    for i in range(1, 13):
        backend.add_account(f"buyer{i:02d}@example.com", PASSWORD, "customer", fullname=f"Buyer {i:02d}")

    backend.add_product({"name": "Desk Lamp", "price": 39.5, "category": "lighting", "published": True})
    backend.add_product({"name": "Standing Desk", "price": 420.0, "category": "furniture", "published": True})
    backend.add_product({"name": "Cable Tray", "price": 12.0, "category": "furniture"})
    return backend


@pytest.fixture
def app(backend: StubBackend) -> FastAPI:
    return create_app(backend)


@pytest.fixture
def settings(test_data_dir: Path) -> ClientSettings:
    return ClientSettings(api_url=STUB_URL, data_dir=test_data_dir)


@pytest_asyncio.fixture
async def ctx(settings: ClientSettings, app: FastAPI):
    """
    ClientContext talking to the stub app in-process (no sockets),
    persisting credentials under a temporary data dir.
    """
    context = ClientContext.create(settings, transport=httpx.ASGITransport(app=app))
    yield context
    await context.aclose()


@pytest_asyncio.fixture
async def admin_ctx(ctx: ClientContext) -> ClientContext:
    await ctx.session.bootstrap()
    await ctx.session.login(ADMIN_EMAIL, PASSWORD)
    return ctx
