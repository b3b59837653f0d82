"""API test fixtures — FastAPI app over scripted services + httpx test client.

Invariants:
    - "widgets" resource: default + tenantA fake services sharing one call log
    - "notes" resource: the in-memory reference service
    - raise_app_exceptions=False so catch-all 500 responses reach the test

Design Decisions:
    - current_user fixture drives get_current_user via dependency_overrides
"""

import pytest
from httpx import ASGITransport, AsyncClient

from crudkit.api.crud_router import CrudResource, get_current_user
from crudkit.config import Settings
from crudkit.core.current_user import ANONYMOUS
from crudkit.main import create_app
from crudkit.services.memory_service import InMemoryStore, make_memory_factory
from tests.services.fake_service import make_fake_factory


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def widget_default(call_log):
    return make_fake_factory("default", log=call_log)


@pytest.fixture
def widget_tenant(call_log):
    return make_fake_factory("tenantA", log=call_log)


@pytest.fixture
def current_user():
    """Mutable holder: tests set current_user["user"] to switch identity."""
    return {"user": ANONYMOUS}


@pytest.fixture
def test_app(widget_default, widget_tenant, current_user, tmp_path):
    settings = Settings(log_format="text", export_dir=str(tmp_path))
    resources = [
        CrudResource(
            name="widgets",
            default_service=widget_default,
            services={"tenantA": widget_tenant},
            messages={"delete": "widget removed"},
        ),
        CrudResource(
            name="notes",
            default_service=make_memory_factory(
                InMemoryStore(), ("title",), tmp_path,
            ),
        ),
    ]
    app = create_app(resources, settings)
    app.dependency_overrides[get_current_user] = lambda: current_user["user"]
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app):
    async with AsyncClient(
        transport=ASGITransport(app=test_app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        yield c
