"""Failure Taxonomy — one tagged exception type for every CRUD failure mode.

Invariants:
    - Every CrudError has a kind (FailureKind), message (str), http_status (int)
    - Omitted message/status fall back to the kind's defaults in _DEFAULTS
    - VALIDATION carries field_errors; UPLOAD carries failed_files
    - Services are the only producers of CrudError; the dispatcher only translates

Design Decisions:
    - Single exception tagged by kind over a subclass per failure: handlers
      dispatch with `match error.kind` (ADR: flat taxonomy)
    - ServiceConfigurationError is not a CrudError: it is raised while the app
      is being built, never while serving a request
"""

from enum import Enum


class FailureKind(str, Enum):
    """Failure categories a Service may report."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    UPLOAD = "upload"
    EXPORT = "export"
    GENERIC = "generic"


_DEFAULTS: dict[FailureKind, tuple[str, int]] = {
    FailureKind.VALIDATION: ("The submitted data is not valid", 422),
    FailureKind.NOT_FOUND: ("The resource was not found", 404),
    FailureKind.CREATE: ("Error while creating the resource", 500),
    FailureKind.UPDATE: ("Error while updating the resource", 500),
    FailureKind.DELETE: ("Error while deleting the resource", 500),
    FailureKind.UPLOAD: ("Error while uploading the resource", 500),
    FailureKind.EXPORT: ("Error while exporting the resource", 500),
    FailureKind.GENERIC: ("An error occurred while processing the request", 500),
}


def default_message(kind: FailureKind) -> str:
    return _DEFAULTS[kind][0]


def default_status(kind: FailureKind) -> int:
    return _DEFAULTS[kind][1]


class CrudError(Exception):
    """Typed failure raised by a Service and translated by the dispatcher."""

    def __init__(
        self,
        kind: FailureKind,
        message: str | None = None,
        http_status: int | None = None,
        field_errors: dict[str, list[str]] | None = None,
        failed_files: list[str] | None = None,
    ):
        message = message if message is not None else default_message(kind)
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.http_status = (
            http_status if http_status is not None else default_status(kind)
        )
        self.field_errors = dict(field_errors or {})
        self.failed_files = list(failed_files or [])

    @property
    def code(self) -> str:
        """Upper-case error code used in logs and response bodies."""
        return f"{self.kind.name}_ERROR"

    def __repr__(self) -> str:
        return (
            f"CrudError(kind={self.kind.value!r}, message={self.message!r}, "
            f"http_status={self.http_status})"
        )

    # ─── Named constructors ──────────────────────────────────────

    @classmethod
    def validation(
        cls,
        field_errors: dict[str, list[str]],
        message: str | None = None,
        http_status: int | None = None,
    ) -> "CrudError":
        return cls(
            FailureKind.VALIDATION, message, http_status,
            field_errors=field_errors,
        )

    @classmethod
    def not_found(
        cls, message: str | None = None, http_status: int | None = None,
    ) -> "CrudError":
        return cls(FailureKind.NOT_FOUND, message, http_status)

    @classmethod
    def create(
        cls, message: str | None = None, http_status: int | None = None,
    ) -> "CrudError":
        return cls(FailureKind.CREATE, message, http_status)

    @classmethod
    def update(
        cls, message: str | None = None, http_status: int | None = None,
    ) -> "CrudError":
        return cls(FailureKind.UPDATE, message, http_status)

    @classmethod
    def delete(
        cls, message: str | None = None, http_status: int | None = None,
    ) -> "CrudError":
        return cls(FailureKind.DELETE, message, http_status)

    @classmethod
    def upload(
        cls,
        failed_files: list[str] | None = None,
        message: str | None = None,
        http_status: int | None = None,
    ) -> "CrudError":
        return cls(
            FailureKind.UPLOAD, message, http_status,
            failed_files=failed_files,
        )

    @classmethod
    def export(
        cls, message: str | None = None, http_status: int | None = None,
    ) -> "CrudError":
        return cls(FailureKind.EXPORT, message, http_status)

    @classmethod
    def generic(
        cls, message: str | None = None, http_status: int | None = None,
    ) -> "CrudError":
        return cls(FailureKind.GENERIC, message, http_status)


class ServiceConfigurationError(Exception):
    """A CRUD resource was declared without a usable default service."""

    def __init__(self, resource: str, reason: str = "default service is not set"):
        super().__init__(f"Resource '{resource}': {reason}")
        self.resource = resource
        self.reason = reason
