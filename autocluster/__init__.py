"""
Autocluster - automatic cluster formation at node startup

Discovers peers through a pluggable service discovery backend, registers
the local node, and joins an existing cluster when one is found:

- **Discovery**: one backend driver per run (cloud, key-value store, DNS)
- **Registration**: idempotent, skipped when discovery already lists us
- **Join decision**: discovery is trusted until the membership store knows
  other members, then the store is trusted
- **Failure policy**: configurable stop / ignore on any pipeline failure
"""

__version__ = "0.4.0"

from autocluster.boot import init, run_autocluster
from autocluster.config import AutoclusterConfig
from autocluster.cluster import (
    BackendDriver,
    BackendRegistry,
    DiscoveryOrchestrator,
    FailurePolicy,
    StartupDelay,
    TcpLivenessProber,
)
from autocluster.exceptions import (
    AutoclusterError,
    ConfigurationError,
    DiscoveryError,
    JoinExecutionError,
    MembershipQueryError,
    NoPeerError,
)
from autocluster.types import (
    BackendKind,
    JoinDecision,
    JoinDecisionKind,
    NodeType,
    RegistrationOutcome,
    RegistrationStatus,
    StartupFailureMode,
    StartupOutcome,
    StartupReport,
)

__all__ = [
    "AutoclusterConfig",
    "AutoclusterError",
    "BackendDriver",
    "BackendKind",
    "BackendRegistry",
    "ConfigurationError",
    "DiscoveryError",
    "DiscoveryOrchestrator",
    "FailurePolicy",
    "JoinDecision",
    "JoinDecisionKind",
    "JoinExecutionError",
    "MembershipQueryError",
    "NoPeerError",
    "NodeType",
    "RegistrationOutcome",
    "RegistrationStatus",
    "StartupDelay",
    "StartupFailureMode",
    "StartupOutcome",
    "StartupReport",
    "TcpLivenessProber",
    "init",
    "run_autocluster",
    "__version__",
]
