"""Current User — read-only identity of the authenticated caller.

Invariants:
    - Populated once per request by the host (authentication is external)
    - Never mutated by crudkit; claims exposed as a read-only mapping
    - app_token selects a tenant-specific service (None = default service)
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated identity threaded through each request."""
    user_id: str | None = None
    app_token: str | None = None
    claims: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "claims", MappingProxyType(dict(self.claims)))

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "CurrentUser":
        """Build from decoded token claims (`sub`, `app_token`)."""
        user_id = claims.get("sub")
        return cls(
            user_id=str(user_id) if user_id is not None else None,
            app_token=claims.get("app_token"),
            claims=claims,
        )


ANONYMOUS = CurrentUser()
