"""CRUD Dispatcher — runs one CRUD operation against the resolved Service.

Invariants:
    - Exactly one Service resolved per call, from ctx.current_user.app_token
    - Exactly one ResponseEnvelope per call, or the unanticipated failure propagates
    - Each operation handles only the failure kinds listed in HANDLED_KINDS;
      any other CrudError is re-raised unchanged (rendered as 500 upstream)
    - Failure messages always come from the failure itself
    - No retries at this layer

Design Decisions:
    - VALIDATION is always answered with 422 and NOT_FOUND with 404;
      every other handled kind keeps its own http_status
    - retrieve keeps a service-supplied "message"; the configured default fills in otherwise
"""

import logging
from typing import Any, Mapping

from crudkit.config import OPERATIONS
from crudkit.core.envelope import ResponseEnvelope, success, translate_failure
from crudkit.core.errors import CrudError, FailureKind
from crudkit.core.service_protocols import CrudService, ItemId, RequestContext
from crudkit.core.service_resolver import ServiceRegistry

logger = logging.getLogger(__name__)


HANDLED_KINDS: dict[str, frozenset[FailureKind]] = {
    "create": frozenset({
        FailureKind.VALIDATION, FailureKind.CREATE, FailureKind.GENERIC,
    }),
    "retrieve": frozenset({FailureKind.NOT_FOUND, FailureKind.GENERIC}),
    "update": frozenset({
        FailureKind.VALIDATION, FailureKind.NOT_FOUND,
        FailureKind.UPDATE, FailureKind.GENERIC,
    }),
    "delete": frozenset({
        FailureKind.NOT_FOUND, FailureKind.DELETE, FailureKind.GENERIC,
    }),
    "export": frozenset({FailureKind.EXPORT, FailureKind.GENERIC}),
}


def status_override(kind: FailureKind) -> int | None:
    """Fixed status for kinds whose HTTP meaning never varies."""
    match kind:
        case FailureKind.VALIDATION:
            return 422
        case FailureKind.NOT_FOUND:
            return 404
        case _:
            return None


class CrudDispatcher:
    """Generic create/retrieve/update/delete/export handler for one resource."""

    def __init__(
        self,
        registry: ServiceRegistry,
        messages: Mapping[str, str],
        service_logger: logging.Logger | None = None,
    ):
        missing = [op for op in OPERATIONS if op not in messages]
        if missing:
            raise ValueError(f"Missing default messages for: {', '.join(missing)}")
        self.registry = registry
        self.resource = registry.resource
        self.messages = dict(messages)
        self.service_logger = service_logger or logging.getLogger(
            f"crudkit.services.{registry.resource}",
        )

    def service_for(self, ctx: RequestContext) -> CrudService:
        token = ctx.current_user.app_token
        if token is not None and token not in self.registry:
            logger.debug(
                f"No {self.resource} service for token, using default",
                extra={"resource": self.resource, "token": token},
            )
        return self.registry.resolve(token, self.service_logger)

    async def create(self, ctx: RequestContext) -> ResponseEnvelope:
        service = self.service_for(ctx)
        try:
            resource = await service.create(ctx)
        except CrudError as e:
            return self._fail("create", e)
        return self._respond(
            "create", success(201, {"resource": resource}, self.messages["create"]),
        )

    async def retrieve(self, ctx: RequestContext) -> ResponseEnvelope:
        service = self.service_for(ctx)
        try:
            data = await service.retrieve(ctx)
        except CrudError as e:
            return self._fail("retrieve", e)
        body = dict(data) if isinstance(data, Mapping) else {"data": data}
        message = body.get("message") or self.messages["retrieve"]
        return self._respond("retrieve", success(200, body, message))

    async def update(self, ctx: RequestContext, item_id: ItemId) -> ResponseEnvelope:
        service = self.service_for(ctx)
        try:
            await service.update(ctx, item_id)
        except CrudError as e:
            return self._fail("update", e)
        return self._respond(
            "update", success(200, {"item_id": item_id}, self.messages["update"]),
        )

    async def delete(self, ctx: RequestContext, item_id: ItemId) -> ResponseEnvelope:
        service = self.service_for(ctx)
        try:
            await service.delete(ctx, item_id)
        except CrudError as e:
            return self._fail("delete", e)
        return self._respond(
            "delete", success(200, {"item_id": item_id}, self.messages["delete"]),
        )

    async def export(self, ctx: RequestContext) -> ResponseEnvelope:
        service = self.service_for(ctx)
        try:
            path = await service.export(ctx)
        except CrudError as e:
            return self._fail("export", e)
        return self._respond(
            "export",
            success(200, {"export_path": path}, self.messages["export"]),
        )

    # ─── Helpers ─────────────────────────────────────────────────

    def _respond(self, operation: str, envelope: ResponseEnvelope) -> ResponseEnvelope:
        logger.info(
            f"{self.resource}.{operation} -> {envelope.http_status}",
            extra={
                "resource": self.resource, "operation": operation,
                "http_status": envelope.http_status,
            },
        )
        return envelope

    def _fail(self, operation: str, error: CrudError) -> ResponseEnvelope:
        extra = {
            "resource": self.resource, "operation": operation,
            "error_code": error.code,
        }
        if error.kind not in HANDLED_KINDS[operation]:
            logger.error(
                f"Unanticipated {error.kind.value} failure in "
                f"{self.resource}.{operation}: {error.message}",
                extra=extra,
            )
            raise error
        logger.warning(
            f"{self.resource}.{operation} failed: {error.message}", extra=extra,
        )
        return self._respond(
            operation, translate_failure(error, status_override(error.kind)),
        )


def merge_messages(
    defaults: Mapping[str, str], overrides: Mapping[str, Any] | None = None,
) -> dict[str, str]:
    """Per-resource messages layered over the configured defaults."""
    merged = dict(defaults)
    for op, message in (overrides or {}).items():
        if op not in OPERATIONS:
            raise ValueError(f"Unknown CRUD operation '{op}'")
        if not isinstance(message, str):
            raise ValueError(f"Message for '{op}' must be a string, got {message!r}")
        merged[op] = message
    return merged
