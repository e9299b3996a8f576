"""
Autocluster Boot Step

Entry points the host calls from its startup sequence, before it starts
serving. The return value says whether boot should continue.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from autocluster.cluster.backend import BackendRegistry
from autocluster.cluster.liveness import LivenessProber
from autocluster.cluster.membership import MembershipStore, ServiceLifecycle
from autocluster.cluster.orchestrator import DiscoveryOrchestrator
from autocluster.config import AutoclusterConfig
from autocluster.log import maybe_set_default_log_level

logger = structlog.get_logger(__name__)


async def run_autocluster(
    registry: BackendRegistry,
    store: MembershipStore,
    lifecycle: ServiceLifecycle,
    *,
    config: Optional[AutoclusterConfig] = None,
    prober: Optional[LivenessProber] = None,
    configure_logging: bool = True,
) -> bool:
    """
    Register this node with discovery and join a cluster if there is one.

    Reads :class:`AutoclusterConfig` from the environment unless one is
    given. Returns ``False`` when startup should be aborted.
    """
    config = config or AutoclusterConfig()
    if configure_logging:
        maybe_set_default_log_level(config)

    orchestrator = DiscoveryOrchestrator(
        config,
        registry,
        store,
        lifecycle,
        prober=prober,
    )
    report = await orchestrator.run()
    logger.info("autocluster.finished", **report.to_dict())
    return bool(report)


def init(
    registry: BackendRegistry,
    store: MembershipStore,
    lifecycle: ServiceLifecycle,
    *,
    config: Optional[AutoclusterConfig] = None,
    prober: Optional[LivenessProber] = None,
) -> bool:
    """Blocking wrapper around :func:`run_autocluster`."""
    return asyncio.run(
        run_autocluster(registry, store, lifecycle, config=config, prober=prober)
    )
