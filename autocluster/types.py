"""
Autocluster Types

Value types shared by the discovery / registration / join pipeline:

- Node identities and node sets as returned by discovery backends and the
  membership store
- Configuration-level enumerations (backend kind, failure mode, node type)
- Per-run outcomes (registration outcome, join decision, startup report)

Everything here is built fresh for one startup attempt and thrown away at
its end.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

NodeIdentity = str
NodeSet = FrozenSet[NodeIdentity]


def node_set(nodes: Iterable[NodeIdentity]) -> NodeSet:
    """Build a deduplicated ``NodeSet`` from any iterable of identities."""
    return frozenset(nodes)


def ordered(nodes: Iterable[NodeIdentity]) -> Tuple[NodeIdentity, ...]:
    """Stable enumeration order for a node set (lexicographic)."""
    return tuple(sorted(set(nodes)))


# =============================================================================
# Configuration enumerations
# =============================================================================


class BackendKind(str, Enum):
    """Service discovery backend selected for a run."""
    AWS = "aws"            # Cloud instance / tag lookup
    CONSUL = "consul"      # Key-value store with TTL health checks
    DNS = "dns"            # A / SRV record resolution
    ETCD = "etcd"          # Key-value store with TTL keys


class StartupFailureMode(str, Enum):
    """What a pipeline failure means for process startup."""
    STOP = "stop"
    IGNORE = "ignore"


class NodeType(str, Enum):
    """Membership store node type hint, passed through on join."""
    DISC = "disc"
    RAM = "ram"


class StartupOutcome(str, Enum):
    """Final answer of a startup attempt."""
    SUCCESS = "success"
    FAILURE = "failure"


# =============================================================================
# Registration
# =============================================================================


class RegistrationStatus(str, Enum):
    ALREADY_MEMBER = "already_member"
    REGISTERED = "registered"
    REGISTRATION_FAILED = "registration_failed"


@dataclass(frozen=True)
class RegistrationOutcome:
    """Result of the registration stage.

    ``nodes`` is the node set read from the backend *before* any
    registration call; it is not re-queried afterwards.
    """
    status: RegistrationStatus
    nodes: NodeSet = field(default_factory=frozenset)
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != RegistrationStatus.REGISTRATION_FAILED


# =============================================================================
# Join decision
# =============================================================================


class JoinDecisionKind(str, Enum):
    NO_OTHER_NODES = "no_other_nodes"        # This node seeds the cluster
    SINGLE_KNOWN_NODE = "single_known_node"  # Store is alone, trust discovery
    ALREADY_CLUSTERED = "already_clustered"  # Store already lists this node
    NEEDS_JOIN = "needs_join"                # Store knows peers, trust store


@dataclass(frozen=True)
class JoinDecision:
    """Outcome of comparing the membership store view with discovery."""
    kind: JoinDecisionKind
    targets: Tuple[NodeIdentity, ...] = ()

    @property
    def requires_join(self) -> bool:
        return self.kind in (
            JoinDecisionKind.SINGLE_KNOWN_NODE,
            JoinDecisionKind.NEEDS_JOIN,
        )


# =============================================================================
# Startup report
# =============================================================================


@dataclass
class StartupReport:
    """
    Everything one run of the pipeline decided.

    Truthy when the host process should continue booting.
    """
    outcome: StartupOutcome = StartupOutcome.SUCCESS
    local_node: Optional[NodeIdentity] = None
    backend: Optional[str] = None
    registration: Optional[RegistrationOutcome] = None
    decision: Optional[JoinDecision] = None
    reachable: Tuple[NodeIdentity, ...] = ()
    joined_peer: Optional[NodeIdentity] = None
    error: Optional[Exception] = None
    delay_ms: int = 0

    def __bool__(self) -> bool:
        return self.outcome == StartupOutcome.SUCCESS

    @property
    def joined(self) -> bool:
        return self.joined_peer is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "local_node": self.local_node,
            "backend": self.backend,
            "registration": (
                self.registration.status.value if self.registration else None
            ),
            "decision": self.decision.kind.value if self.decision else None,
            "targets": list(self.decision.targets) if self.decision else [],
            "reachable": list(self.reachable),
            "joined_peer": self.joined_peer,
            "error": str(self.error) if self.error else None,
            "delay_ms": self.delay_ms,
        }
