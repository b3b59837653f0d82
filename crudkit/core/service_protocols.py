"""Service Protocols — the CRUD capability contract between dispatcher and services.

Invariants:
    - Core NEVER imports services/ or api/ — services satisfy these protocols structurally
    - Every operation receives a RequestContext; update/delete also receive the item id
    - Operations return a success payload or raise CrudError

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; the dispatcher awaits them
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Protocol

from crudkit.core.current_user import ANONYMOUS, CurrentUser


ItemId = int | str


@dataclass(frozen=True)
class RequestContext:
    """Per-request input handed to a Service."""
    resource: str
    current_user: CurrentUser = ANONYMOUS
    query: Mapping[str, Any] = field(default_factory=dict)
    payload: Mapping[str, Any] | None = None

    def __post_init__(self):
        object.__setattr__(self, "query", MappingProxyType(dict(self.query)))
        if self.payload is not None:
            object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))


class CrudService(Protocol):
    """Contract for business-logic handlers — implemented outside the core."""
    async def create(self, ctx: RequestContext) -> Any: ...
    async def retrieve(self, ctx: RequestContext) -> Any: ...
    async def update(self, ctx: RequestContext, item_id: ItemId) -> Any: ...
    async def delete(self, ctx: RequestContext, item_id: ItemId) -> Any: ...
    async def export(self, ctx: RequestContext) -> str: ...


ServiceFactory = Callable[[logging.Logger], CrudService]
