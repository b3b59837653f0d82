"""Service Resolver — picks the Service for a request from the caller's token.

Invariants:
    - Registered token -> that token's factory; anything else (incl. None) -> default
    - Deterministic given (token, registry); no IO, only object construction
    - A registry without a default factory cannot be built (startup failure)
    - Registry mapping is read-only after construction

Design Decisions:
    - Explicit token -> factory mapping, plain dict lookup (no dynamic class loading)
    - Missing default raises ServiceConfigurationError at app build time instead
      of aborting the process on first request
"""

import logging
from types import MappingProxyType
from typing import Mapping

from crudkit.core.errors import ServiceConfigurationError
from crudkit.core.service_protocols import CrudService, ServiceFactory


def resolve_service(
    token: str | None,
    registry: Mapping[str, ServiceFactory],
    default_factory: ServiceFactory | None,
    logger: logging.Logger,
    resource: str = "<unnamed>",
) -> CrudService:
    """Instantiate the service registered for `token`, or the default one."""
    if default_factory is None:
        raise ServiceConfigurationError(resource)
    if token is not None and token in registry:
        return registry[token](logger)
    return default_factory(logger)


class ServiceRegistry:
    """Immutable token -> factory table with a mandatory default."""

    def __init__(
        self,
        resource: str,
        default_factory: ServiceFactory | None,
        services: Mapping[str, ServiceFactory] | None = None,
    ):
        if default_factory is None:
            raise ServiceConfigurationError(resource)
        self.resource = resource
        self.default_factory = default_factory
        self.services: Mapping[str, ServiceFactory] = MappingProxyType(
            dict(services or {}),
        )

    def __contains__(self, token: object) -> bool:
        return token in self.services

    def tokens(self) -> list[str]:
        return sorted(self.services)

    def resolve(self, token: str | None, logger: logging.Logger) -> CrudService:
        return resolve_service(
            token, self.services, self.default_factory, logger, self.resource,
        )
