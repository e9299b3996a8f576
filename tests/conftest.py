"""
Shared fakes for the cluster formation tests.

The pipeline's collaborators (discovery backend, membership store, service
lifecycle, liveness prober) are replaced with in-memory versions that write
every call to a shared journal, so tests can assert on call order.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

import pytest
import structlog

from autocluster.cluster.backend import BackendDriver, BackendRegistry
from autocluster.cluster.delay import StartupDelay
from autocluster.cluster.orchestrator import DiscoveryOrchestrator
from autocluster.config import AutoclusterConfig
from autocluster.types import BackendKind, NodeType

LOCAL = "rabbit@node-a"
NODE_B = "rabbit@node-b"
NODE_C = "rabbit@node-c"

JOIN_SEQUENCE = [
    "stop_service",
    "store.stop",
    "store.reset",
    "store.join",
    "store.start",
    "start_service",
]


class FakeDriver(BackendDriver):
    name = "consul"

    def __init__(
        self,
        nodes: Iterable[str] = (),
        journal: Optional[List] = None,
        *,
        nodelist_error: Optional[Exception] = None,
        register_error: Optional[Exception] = None,
    ) -> None:
        self.nodes = set(nodes)
        self.journal = journal if journal is not None else []
        self.nodelist_error = nodelist_error
        self.register_error = register_error
        self.options = None

    async def nodelist(self):
        self.journal.append("nodelist")
        if self.nodelist_error is not None:
            raise self.nodelist_error
        return frozenset(self.nodes)

    async def register(self):
        self.journal.append("register")
        if self.register_error is not None:
            raise self.register_error


class FakeStore:
    def __init__(
        self,
        members: Iterable[str],
        journal: List,
        *,
        fail_on: Optional[str] = None,
    ) -> None:
        self.members = list(members)
        self.journal = journal
        self.fail_on = fail_on
        self.joined: List[Tuple[str, NodeType]] = []

    def _record(self, call: str) -> None:
        self.journal.append(call)
        if self.fail_on == call:
            raise RuntimeError(f"{call} rejected")

    async def cluster_nodes(self, scope: str = "all"):
        self._record("store.cluster_nodes")
        return list(self.members)

    async def stop(self):
        self._record("store.stop")

    async def reset(self):
        self._record("store.reset")

    async def join(self, peer, node_type):
        self.joined.append((peer, node_type))
        self._record("store.join")

    async def start(self):
        self._record("store.start")


class FakeLifecycle:
    def __init__(self, journal: List, *, fail_on: Optional[str] = None) -> None:
        self.journal = journal
        self.fail_on = fail_on

    def _record(self, call: str) -> None:
        self.journal.append(call)
        if self.fail_on == call:
            raise RuntimeError(f"{call} failed")

    async def stop_service(self):
        self._record("stop_service")

    async def start_service(self):
        self._record("start_service")


class FakeProber:
    def __init__(self, reachable: Iterable[str] = ()) -> None:
        self.reachable = set(reachable)
        self.probed: List[str] = []

    async def is_reachable(self, node):
        self.probed.append(node)
        return node in self.reachable


def join_calls(journal: List) -> List[str]:
    return [call for call in journal if call in JOIN_SEQUENCE]


def make_config(**overrides) -> AutoclusterConfig:
    values = {
        "backend": "consul",
        "autocluster_failure": "stop",
        "startup_delay": 0,
        "node_name": LOCAL,
        "node_type": "disc",
    }
    values.update(overrides)
    return AutoclusterConfig(**values)


def make_orchestrator(
    driver: BackendDriver,
    store: FakeStore,
    lifecycle: FakeLifecycle,
    prober,
    **config_overrides,
) -> DiscoveryOrchestrator:
    config = make_config(**config_overrides)

    def factory(options):
        driver.options = options
        return driver

    registry = BackendRegistry({BackendKind.CONSUL: factory})
    return DiscoveryOrchestrator(
        config,
        registry,
        store,
        lifecycle,
        prober=prober,
        delay=StartupDelay(0),
        local_node=LOCAL,
    )


@pytest.fixture
def journal():
    return []


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable AutoclusterConfig reads."""
    for field in AutoclusterConfig.model_fields.values():
        alias = field.validation_alias
        for name in getattr(alias, "choices", ()):
            monkeypatch.delenv(name, raising=False)
            monkeypatch.delenv(name.upper(), raising=False)
    return monkeypatch
