"""
Autocluster Cluster Formation

Public API surface for the cluster sub-package:

- :class:`DiscoveryOrchestrator` -- the startup decision pipeline
- :class:`BackendDriver` / :class:`BackendRegistry` -- pluggable discovery
- :class:`TcpLivenessProber` -- reachability check for join candidates
- :class:`StartupDelay` -- randomized pre-start sleep
- :class:`FailurePolicy` -- whether a failure aborts startup
"""

from __future__ import annotations

from autocluster.cluster.backend import BackendDriver, BackendRegistry, DriverFactory
from autocluster.cluster.delay import StartupDelay
from autocluster.cluster.failure import FailurePolicy, resolve_failure_mode
from autocluster.cluster.liveness import LivenessProber, TcpLivenessProber, parse_node
from autocluster.cluster.membership import MembershipStore, ServiceLifecycle
from autocluster.cluster.orchestrator import DiscoveryOrchestrator, decide_join

__all__ = [
    "BackendDriver",
    "BackendRegistry",
    "DiscoveryOrchestrator",
    "DriverFactory",
    "FailurePolicy",
    "LivenessProber",
    "MembershipStore",
    "ServiceLifecycle",
    "StartupDelay",
    "TcpLivenessProber",
    "decide_join",
    "parse_node",
    "resolve_failure_mode",
]
