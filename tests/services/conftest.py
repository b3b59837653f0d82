"""Service test fixtures — scripted services and a dispatcher wired to them.

Invariants:
    - default_factory and tenant_factory share one call log
    - dispatcher uses the configured default messages from Settings
"""

import pytest

from crudkit.config import Settings
from crudkit.core.current_user import CurrentUser
from crudkit.core.service_protocols import RequestContext
from crudkit.core.service_resolver import ServiceRegistry
from crudkit.services.crud_dispatcher import CrudDispatcher
from tests.services.fake_service import make_fake_factory


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def default_factory(call_log):
    return make_fake_factory("default", log=call_log)


@pytest.fixture
def tenant_factory(call_log):
    return make_fake_factory("tenantA", log=call_log)


@pytest.fixture
def dispatcher(default_factory, tenant_factory):
    registry = ServiceRegistry(
        "notes", default_factory, {"tenantA": tenant_factory},
    )
    return CrudDispatcher(registry, Settings().response_messages())


@pytest.fixture
def ctx():
    return RequestContext(resource="notes", payload={"title": "hello"})


@pytest.fixture
def tenant_ctx():
    return RequestContext(
        resource="notes",
        current_user=CurrentUser(user_id="7", app_token="tenantA"),
    )
