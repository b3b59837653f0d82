"""Response Envelope — uniform status + JSON body produced once per request.

Invariants:
    - Every envelope body contains "message"
    - Failure bodies carry "error" (CrudError.code, e.g. "NOT_FOUND_ERROR");
      VALIDATION adds "field_errors", UPLOAD adds "failed_files"
    - translate_failure is pure: same failure in, equal envelope out
      (no timestamps, no request data)
    - Envelopes are frozen; the body is exposed as a read-only mapping

Design Decisions:
    - Envelope kept framework-free; api/crud_router.py renders it as JSONResponse
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from crudkit.core.errors import CrudError, FailureKind


@dataclass(frozen=True)
class ResponseEnvelope:
    """HTTP status plus JSON-serializable body."""
    http_status: int
    body: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "body", MappingProxyType(dict(self.body)))

    @property
    def message(self) -> str:
        return self.body["message"]

    def to_content(self) -> dict[str, Any]:
        """Plain dict copy for JSON rendering."""
        return dict(self.body)


def success(http_status: int, data: Mapping[str, Any], message: str) -> ResponseEnvelope:
    """Success envelope; `message` goes last and replaces any in `data`."""
    body = {key: value for key, value in data.items() if key != "message"}
    body["message"] = message
    return ResponseEnvelope(http_status, body)


def translate_failure(
    error: CrudError, status_override: int | None = None,
) -> ResponseEnvelope:
    """Translate a failure into an envelope. Never alters the failure's message."""
    body: dict[str, Any] = {"error": error.code, "message": error.message}
    match error.kind:
        case FailureKind.VALIDATION:
            body["field_errors"] = {
                name: list(messages) for name, messages in error.field_errors.items()
            }
        case FailureKind.UPLOAD:
            body["failed_files"] = list(error.failed_files)
    status = status_override if status_override is not None else error.http_status
    return ResponseEnvelope(status, body)
