"""CRUD Router — exposes one CrudDispatcher as five FastAPI endpoints.

Invariants:
    - POST "" create, GET "" retrieve, GET "/export" export,
      PUT/PATCH "/{item_id}" update, DELETE "/{item_id}" delete
    - Each request builds one RequestContext from the current user, query and body
    - Route handlers contain no business logic: dispatch, then render the envelope
    - ServiceRegistry is built when the router is built, so a resource without a
      default service fails app construction

Design Decisions:
    - get_current_user reads request.state.current_user or request.state.claims
      (set by the host's auth middleware); hosts may replace it with
      app.dependency_overrides
    - ASCII-digit path ids are passed to services as int, anything else as str
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from fastapi import APIRouter, Body, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from crudkit.config import Settings, get_settings
from crudkit.core.current_user import ANONYMOUS, CurrentUser
from crudkit.core.envelope import ResponseEnvelope
from crudkit.core.service_protocols import ItemId, RequestContext, ServiceFactory
from crudkit.core.service_resolver import ServiceRegistry
from crudkit.services.crud_dispatcher import CrudDispatcher, merge_messages

logger = logging.getLogger(__name__)


@dataclass
class CrudResource:
    """Declaration of one CRUD resource and its services."""
    name: str
    default_service: ServiceFactory | None
    services: Mapping[str, ServiceFactory] = field(default_factory=dict)
    messages: Mapping[str, str] = field(default_factory=dict)
    prefix: str | None = None
    tags: list[str] | None = None


def get_current_user(request: Request) -> CurrentUser:
    """FastAPI dependency — identity attached to the request by the host.

    Hosts set either request.state.current_user (a CurrentUser) or
    request.state.claims (decoded token claims); neither means anonymous.
    """
    user = getattr(request.state, "current_user", None)
    if isinstance(user, CurrentUser):
        return user
    claims = getattr(request.state, "claims", None)
    if isinstance(claims, Mapping):
        return CurrentUser.from_claims(claims)
    return ANONYMOUS


def render(envelope: ResponseEnvelope) -> JSONResponse:
    return JSONResponse(
        status_code=envelope.http_status,
        content=jsonable_encoder(envelope.to_content()),
    )


def coerce_item_id(raw: str) -> ItemId:
    return int(raw) if raw.isascii() and raw.isdigit() else raw


def build_dispatcher(resource: CrudResource, settings: Settings) -> CrudDispatcher:
    registry = ServiceRegistry(
        resource.name, resource.default_service, resource.services,
    )
    messages = merge_messages(settings.response_messages(), resource.messages)
    return CrudDispatcher(registry, messages)


def build_crud_router(
    resource: CrudResource, settings: Settings | None = None,
) -> APIRouter:
    """Build the APIRouter serving `resource`."""
    settings = settings or get_settings()
    dispatcher = build_dispatcher(resource, settings)
    tokens = dispatcher.registry.tokens()
    prefix = resource.prefix or f"{settings.api_prefix}/{resource.name}"
    router = APIRouter(prefix=prefix, tags=resource.tags or [resource.name])

    def context(
        request: Request, user: CurrentUser, payload: dict[str, Any] | None = None,
    ) -> RequestContext:
        return RequestContext(
            resource=resource.name,
            current_user=user,
            query=dict(request.query_params),
            payload=payload,
        )

    @router.post("")
    async def create(
        request: Request,
        payload: dict[str, Any] | None = Body(None),
        user: CurrentUser = Depends(get_current_user),
    ):
        return render(await dispatcher.create(context(request, user, payload)))

    @router.get("")
    async def retrieve(
        request: Request, user: CurrentUser = Depends(get_current_user),
    ):
        return render(await dispatcher.retrieve(context(request, user)))

    @router.get("/export")
    async def export(
        request: Request, user: CurrentUser = Depends(get_current_user),
    ):
        return render(await dispatcher.export(context(request, user)))

    @router.api_route("/{item_id}", methods=["PUT", "PATCH"])
    async def update(
        item_id: str,
        request: Request,
        payload: dict[str, Any] | None = Body(None),
        user: CurrentUser = Depends(get_current_user),
    ):
        return render(await dispatcher.update(
            context(request, user, payload), coerce_item_id(item_id),
        ))

    @router.delete("/{item_id}")
    async def delete(
        item_id: str,
        request: Request,
        user: CurrentUser = Depends(get_current_user),
    ):
        return render(await dispatcher.delete(
            context(request, user), coerce_item_id(item_id),
        ))

    logger.info(
        f"Registered CRUD resource '{resource.name}' at {prefix}"
        f" (tenant services: {', '.join(tokens) or 'none'})",
        extra={"resource": resource.name},
    )
    return router
