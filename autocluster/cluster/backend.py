"""
Autocluster Backend Drivers

A backend driver is the pipeline's only view of a service discovery
system. Each driver answers two questions:

- ``nodelist()`` -- which nodes does discovery currently know about?
- ``register()`` -- make this node known (idempotent).

Concrete drivers live outside this package. They are plugged into a
:class:`BackendRegistry`, a lookup table keyed by :class:`BackendKind`
that is built once and consulted once per run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional

import structlog

from autocluster.exceptions import ConfigurationError
from autocluster.types import BackendKind, NodeSet

logger = structlog.get_logger(__name__)


class BackendDriver(ABC):
    """Interface every discovery backend implements."""

    #: Short backend name used in log events and errors.
    name: str = "backend"

    @abstractmethod
    async def nodelist(self) -> NodeSet:
        """Return the nodes currently visible through discovery.

        Raise any exception on failure; the orchestrator reports it as a
        discovery error.
        """

    @abstractmethod
    async def register(self) -> None:
        """Register the local node. Registering twice must not fail."""


DriverFactory = Callable[[Dict[str, Any]], BackendDriver]


class BackendRegistry:
    """
    Lookup table from backend kind to driver factory.

    Usage::

        registry = BackendRegistry({BackendKind.CONSUL: ConsulDriver})
        driver = registry.create("consul", config.backend_options("consul"))
    """

    def __init__(
        self, factories: Optional[Mapping[BackendKind, DriverFactory]] = None
    ) -> None:
        self._factories: Dict[BackendKind, DriverFactory] = {}
        for kind, factory in (factories or {}).items():
            self.register_driver(kind, factory)

    def register_driver(self, kind: BackendKind, factory: DriverFactory) -> None:
        """Install (or replace) the factory for *kind*."""
        kind = BackendKind(kind)
        self._factories[kind] = factory
        logger.debug("backend_registry.driver_registered", backend=kind.value)

    @staticmethod
    def resolve_kind(value: str) -> BackendKind:
        """Map a configured backend string to its kind."""
        try:
            return BackendKind(value)
        except ValueError:
            raise ConfigurationError(f"Unsupported backend: {value}") from None

    def create(self, value: str, options: Dict[str, Any]) -> BackendDriver:
        """
        Build the driver for the configured backend *value*.

        Raises :class:`ConfigurationError` when the value names no known
        kind, or a kind nobody installed a driver for, or when the
        factory rejects the options.
        """
        kind = self.resolve_kind(value)
        factory = self._factories.get(kind)
        if factory is None:
            raise ConfigurationError(f"No driver installed for backend: {kind.value}")
        logger.debug("backend_registry.using_backend", backend=kind.value)
        try:
            return factory(options)
        except Exception as exc:
            raise ConfigurationError(
                f"Could not create {kind.value} driver: {exc!r}"
            ) from exc

    @property
    def kinds(self) -> frozenset:
        return frozenset(self._factories)

    def __contains__(self, kind: object) -> bool:
        try:
            return BackendKind(kind) in self._factories
        except ValueError:
            return False
