"""In-Memory Service — reference CrudService backed by a per-resource dict store.

Invariants:
    - Store is shared across requests; service instances are per request
    - Ids are positive ints assigned in creation order, never reused
    - Unknown ids -> NOT_FOUND; missing required fields -> VALIDATION
    - Export writes one CSV file per call under export_dir

Design Decisions:
    - make_memory_factory closes over the store so the resolver can build a
      fresh service per request without sharing service state
"""

import csv
import logging
from itertools import count
from pathlib import Path
from typing import Any
from uuid import uuid4

from crudkit.core.errors import CrudError
from crudkit.core.service_protocols import ItemId, RequestContext, ServiceFactory


class InMemoryStore:
    """Items for one resource, keyed by id."""

    def __init__(self):
        self.items: dict[int, dict[str, Any]] = {}
        self._ids = count(1)

    def next_id(self) -> int:
        return next(self._ids)


class InMemoryCrudService:
    """CrudService over an InMemoryStore."""

    def __init__(
        self,
        logger: logging.Logger,
        store: InMemoryStore,
        required_fields: tuple[str, ...] = (),
        export_dir: str | Path = "exports",
    ):
        self.logger = logger
        self.store = store
        self.required_fields = required_fields
        self.export_dir = Path(export_dir)

    async def create(self, ctx: RequestContext) -> dict[str, Any]:
        payload = dict(ctx.payload or {})
        errors = self._missing_fields(payload)
        if errors:
            raise CrudError.validation(errors)
        payload.pop("id", None)
        item = {"id": self.store.next_id(), **payload}
        self.store.items[item["id"]] = item
        self.logger.info(f"Created {ctx.resource} {item['id']}")
        return dict(item)

    async def retrieve(self, ctx: RequestContext) -> dict[str, Any]:
        if "id" in ctx.query:
            item = self._get_or_raise(ctx.query["id"])
            return {"items": [dict(item)], "total": 1}
        items = [
            dict(item) for item in self.store.items.values()
            if all(str(item.get(k)) == str(v) for k, v in ctx.query.items())
        ]
        return {"items": items, "total": len(items)}

    async def update(self, ctx: RequestContext, item_id: ItemId) -> dict[str, Any]:
        item = self._get_or_raise(item_id)
        if not ctx.payload:
            raise CrudError.validation({"payload": ["must not be empty"]})
        changes = {k: v for k, v in ctx.payload.items() if k != "id"}
        blanked = {
            name: ["required"] for name in self.required_fields
            if name in changes and changes[name] in (None, "")
        }
        if blanked:
            raise CrudError.validation(blanked)
        item.update(changes)
        self.logger.info(f"Updated {ctx.resource} {item['id']}")
        return dict(item)

    async def delete(self, ctx: RequestContext, item_id: ItemId) -> None:
        item = self._get_or_raise(item_id)
        del self.store.items[item["id"]]
        self.logger.info(f"Deleted {ctx.resource} {item['id']}")

    async def export(self, ctx: RequestContext) -> str:
        items = list(self.store.items.values())
        columns = sorted({key for item in items for key in item} - {"id"})
        path = self.export_dir / f"{ctx.resource}_{uuid4().hex}.csv"
        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
            with path.open("w", newline="", encoding="utf-8") as fh:
                writer = csv.DictWriter(fh, fieldnames=["id", *columns])
                writer.writeheader()
                writer.writerows(items)
        except OSError as e:
            self.logger.error(f"Export of {ctx.resource} failed: {e}")
            raise CrudError.export(f"Could not write export file for {ctx.resource}")
        return str(path)

    def _missing_fields(self, payload: dict[str, Any]) -> dict[str, list[str]]:
        return {
            name: ["required"] for name in self.required_fields
            if payload.get(name) in (None, "")
        }

    def _get_or_raise(self, item_id: ItemId) -> dict[str, Any]:
        try:
            item = self.store.items.get(int(item_id))
        except (TypeError, ValueError):
            item = None
        if item is None:
            raise CrudError.not_found(f"Item '{item_id}' not found")
        return item


def make_memory_factory(
    store: InMemoryStore,
    required_fields: tuple[str, ...] = (),
    export_dir: str | Path = "exports",
) -> ServiceFactory:
    """ServiceFactory building an InMemoryCrudService over `store`."""
    def factory(logger: logging.Logger) -> InMemoryCrudService:
        return InMemoryCrudService(logger, store, required_fields, export_dir)
    return factory
