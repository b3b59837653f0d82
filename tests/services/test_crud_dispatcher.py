"""CRUD Dispatcher — verifies success envelopes, failure translation and service selection.

Invariants:
    - One service instance per call, chosen by the caller's app_token
    - Handled failures -> envelope with the failure's message and mapped status
    - Unanticipated failure kinds propagate unchanged
"""

import logging

import pytest

from crudkit.config import Settings
from crudkit.core.errors import CrudError, FailureKind
from crudkit.core.service_resolver import ServiceRegistry
from crudkit.services.crud_dispatcher import (
    HANDLED_KINDS, CrudDispatcher, merge_messages, status_override,
)


# ─── Success paths ───────────────────────────────────────────────

async def test_create_returns_201_with_resource(dispatcher, default_factory, ctx):
    default_factory.results["create"] = {"id": 5}
    env = await dispatcher.create(ctx)
    assert env.http_status == 201
    assert env.to_content() == {"resource": {"id": 5}, "message": "resource created"}


async def test_retrieve_merges_data_and_default_message(dispatcher, default_factory, ctx):
    default_factory.results["retrieve"] = {"items": [{"id": 1}], "total": 1}
    env = await dispatcher.retrieve(ctx)
    assert env.http_status == 200
    assert env.to_content() == {
        "items": [{"id": 1}], "total": 1, "message": "resource list",
    }


async def test_retrieve_keeps_service_message(dispatcher, default_factory, ctx):
    default_factory.results["retrieve"] = {"items": [], "message": "nothing yet"}
    env = await dispatcher.retrieve(ctx)
    assert env.message == "nothing yet"


async def test_retrieve_wraps_non_mapping_result(dispatcher, default_factory, ctx):
    default_factory.results["retrieve"] = [1, 2, 3]
    env = await dispatcher.retrieve(ctx)
    assert env.to_content() == {"data": [1, 2, 3], "message": "resource list"}


async def test_update_returns_item_id(dispatcher, default_factory, ctx, call_log):
    env = await dispatcher.update(ctx, 7)
    assert env.http_status == 200
    assert env.to_content() == {"item_id": 7, "message": "resource updated"}
    assert call_log[0]["item_id"] == 7


async def test_delete_returns_item_id(dispatcher, ctx, call_log):
    env = await dispatcher.delete(ctx, "abc")
    assert env.http_status == 200
    assert env.to_content() == {"item_id": "abc", "message": "resource deleted"}
    assert call_log[0]["op"] == "delete"


async def test_export_returns_path(dispatcher, default_factory, ctx):
    default_factory.results["export"] = "/tmp/notes.csv"
    env = await dispatcher.export(ctx)
    assert env.http_status == 200
    assert env.to_content() == {"export_path": "/tmp/notes.csv", "message": "export ready"}


async def test_export_path_passes_through_unchanged(dispatcher, default_factory, ctx):
    default_factory.results["export"] = None
    env = await dispatcher.export(ctx)
    assert env.body["export_path"] is None


async def test_service_receives_context(dispatcher, ctx, call_log):
    await dispatcher.create(ctx)
    assert call_log[0]["ctx"] is ctx


# ─── Service selection ───────────────────────────────────────────

async def test_default_service_for_anonymous(dispatcher, ctx, call_log):
    await dispatcher.retrieve(ctx)
    assert call_log[0]["service"] == "default"


async def test_tenant_service_for_token(dispatcher, tenant_ctx, call_log):
    await dispatcher.retrieve(tenant_ctx)
    assert call_log[0]["service"] == "tenantA"


async def test_one_service_instance_per_call(dispatcher, default_factory, ctx):
    await dispatcher.retrieve(ctx)
    await dispatcher.retrieve(ctx)
    assert len(default_factory.built) == 2
    assert default_factory.built[0] is not default_factory.built[1]


async def test_service_gets_resource_logger(dispatcher, default_factory, ctx):
    await dispatcher.retrieve(ctx)
    assert default_factory.built[0].logger.name == "crudkit.services.notes"


# ─── Handled failures ────────────────────────────────────────────

async def test_create_validation_is_422(dispatcher, default_factory, ctx):
    default_factory.results["create"] = CrudError.validation({"name": ["required"]})
    env = await dispatcher.create(ctx)
    assert env.http_status == 422
    assert env.body["field_errors"] == {"name": ["required"]}
    assert env.message == "The submitted data is not valid"


async def test_validation_status_is_fixed(dispatcher, default_factory, ctx):
    default_factory.results["create"] = CrudError.validation(
        {"name": ["required"]}, "check the form", 400,
    )
    env = await dispatcher.create(ctx)
    assert env.http_status == 422
    assert env.message == "check the form"


async def test_create_failure_keeps_status(dispatcher, default_factory, ctx):
    default_factory.results["create"] = CrudError.create("duplicate", 409)
    env = await dispatcher.create(ctx)
    assert env.http_status == 409
    assert env.to_content() == {"error": "CREATE_ERROR", "message": "duplicate"}


async def test_update_not_found_is_404(dispatcher, default_factory, ctx):
    default_factory.results["update"] = CrudError.not_found("no such item", 404)
    env = await dispatcher.update(ctx, 7)
    assert env.http_status == 404
    assert env.message == "no such item"


async def test_update_validation_is_422(dispatcher, default_factory, ctx):
    default_factory.results["update"] = CrudError.validation(
        {"title": ["required"]}, http_status=400,
    )
    env = await dispatcher.update(ctx, 7)
    assert env.http_status == 422
    assert env.to_content() == {
        "error": "VALIDATION_ERROR",
        "message": "The submitted data is not valid",
        "field_errors": {"title": ["required"]},
    }


async def test_delete_not_found_is_404(dispatcher, default_factory, ctx):
    default_factory.results["delete"] = CrudError.not_found("already gone", 410)
    env = await dispatcher.delete(ctx, 7)
    assert env.http_status == 404
    assert env.to_content() == {"error": "NOT_FOUND_ERROR", "message": "already gone"}


async def test_update_failure_keeps_status(dispatcher, default_factory, ctx):
    default_factory.results["update"] = CrudError.update(http_status=503)
    env = await dispatcher.update(ctx, 7)
    assert env.http_status == 503
    assert env.message == "Error while updating the resource"


async def test_delete_failure_keeps_status(dispatcher, default_factory, ctx):
    default_factory.results["delete"] = CrudError.delete("locked", 423)
    env = await dispatcher.delete(ctx, 1)
    assert env.http_status == 423
    assert env.message == "locked"


async def test_retrieve_not_found_is_404(dispatcher, default_factory, ctx):
    default_factory.results["retrieve"] = CrudError.not_found("empty", 410)
    env = await dispatcher.retrieve(ctx)
    assert env.http_status == 404
    assert env.message == "empty"


async def test_export_failure_defaults_to_500(dispatcher, default_factory, ctx):
    default_factory.results["export"] = CrudError.export()
    env = await dispatcher.export(ctx)
    assert env.http_status == 500
    assert env.message == "Error while exporting the resource"


@pytest.mark.parametrize("operation", ["create", "retrieve", "update", "delete", "export"])
async def test_generic_failure_handled_everywhere(
    dispatcher, default_factory, ctx, operation,
):
    default_factory.results[operation] = CrudError.generic("busy", 503)
    call = getattr(dispatcher, operation)
    env = await (call(ctx, 1) if operation in ("update", "delete") else call(ctx))
    assert env.http_status == 503
    assert env.message == "busy"


async def test_same_failure_translates_identically(dispatcher, default_factory, ctx):
    default_factory.results["create"] = CrudError.validation({"name": ["required"]})
    first = await dispatcher.create(ctx)
    second = await dispatcher.create(ctx)
    assert first == second


# ─── Unanticipated failures ──────────────────────────────────────

@pytest.mark.parametrize("operation,error", [
    ("create", CrudError.not_found()),
    ("create", CrudError.update()),
    ("retrieve", CrudError.validation({})),
    ("update", CrudError.create()),
    ("update", CrudError.delete()),
    ("delete", CrudError.validation({})),
    ("export", CrudError.not_found()),
    ("create", CrudError.upload(["a.png"])),
])
async def test_unanticipated_kind_propagates(
    dispatcher, default_factory, ctx, operation, error,
):
    default_factory.results[operation] = error
    call = getattr(dispatcher, operation)
    with pytest.raises(CrudError) as info:
        await (call(ctx, 1) if operation in ("update", "delete") else call(ctx))
    assert info.value is error


async def test_non_crud_exception_propagates(dispatcher, default_factory, ctx):
    default_factory.results["create"] = RuntimeError("db down")
    with pytest.raises(RuntimeError):
        await dispatcher.create(ctx)


def test_upload_is_never_handled_directly():
    assert all(FailureKind.UPLOAD not in kinds for kinds in HANDLED_KINDS.values())


def test_status_override_table():
    assert status_override(FailureKind.VALIDATION) == 422
    assert status_override(FailureKind.NOT_FOUND) == 404
    assert status_override(FailureKind.GENERIC) is None


# ─── Messages ────────────────────────────────────────────────────

async def test_per_resource_message_override(default_factory, ctx):
    messages = merge_messages(Settings().response_messages(), {"create": "note saved"})
    dispatcher = CrudDispatcher(ServiceRegistry("notes", default_factory), messages)
    default_factory.results["create"] = {"id": 1}
    env = await dispatcher.create(ctx)
    assert env.message == "note saved"


def test_merge_messages_rejects_unknown_operation():
    with pytest.raises(ValueError):
        merge_messages(Settings().response_messages(), {"upsert": "done"})


@pytest.mark.parametrize("message", [None, 42])
def test_merge_messages_rejects_non_string(message):
    with pytest.raises(ValueError):
        merge_messages(Settings().response_messages(), {"create": message})


def test_dispatcher_requires_all_messages(default_factory):
    with pytest.raises(ValueError):
        CrudDispatcher(ServiceRegistry("notes", default_factory), {"create": "ok"})


def test_dispatcher_accepts_custom_service_logger(default_factory):
    service_logger = logging.getLogger("custom")
    dispatcher = CrudDispatcher(
        ServiceRegistry("notes", default_factory),
        Settings().response_messages(),
        service_logger,
    )
    assert dispatcher.service_logger is service_logger
