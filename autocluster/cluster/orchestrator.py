"""
Autocluster Discovery Orchestrator

Runs once at node startup and decides whether this node has to register
with service discovery and join an existing cluster:

1. Sleep a random startup delay
2. Select the discovery backend driver
3. Read the discovery node list, registering this node if it is absent
4. Compare the discovery view with the membership store's view
5. Drop join candidates that do not answer a liveness probe
6. Stop services, reset the store, join the first reachable peer, restart

Discovery data is trusted while the membership store believes it is alone;
once the store knows other members, the store is trusted instead.

Nothing is retried. Every failure is resolved exactly once through the
failure policy, which decides whether startup continues.
"""

from __future__ import annotations

from typing import Optional, Tuple

import structlog

from autocluster.cluster.backend import BackendDriver, BackendRegistry
from autocluster.cluster.delay import StartupDelay
from autocluster.cluster.failure import FailurePolicy
from autocluster.cluster.liveness import LivenessProber, TcpLivenessProber
from autocluster.cluster.membership import MembershipStore, ServiceLifecycle
from autocluster.config import AutoclusterConfig
from autocluster.exceptions import (
    AutoclusterError,
    DiscoveryError,
    JoinExecutionError,
    MembershipQueryError,
    NoPeerError,
)
from autocluster.types import (
    JoinDecision,
    JoinDecisionKind,
    NodeIdentity,
    NodeSet,
    RegistrationOutcome,
    RegistrationStatus,
    StartupOutcome,
    StartupReport,
    node_set,
    ordered,
)

logger = structlog.get_logger(__name__)


class DiscoveryOrchestrator:
    """
    Sequences registration, membership comparison and join for one node.

    Not re-entrant: build one per startup attempt and call :meth:`run`
    once.
    """

    def __init__(
        self,
        config: AutoclusterConfig,
        registry: BackendRegistry,
        store: MembershipStore,
        lifecycle: ServiceLifecycle,
        *,
        prober: Optional[LivenessProber] = None,
        delay: Optional[StartupDelay] = None,
        failure_policy: Optional[FailurePolicy] = None,
        local_node: Optional[NodeIdentity] = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._store = store
        self._lifecycle = lifecycle
        self._prober: LivenessProber = prober or TcpLivenessProber(
            port=config.probe_port,
            timeout=config.probe_timeout,
        )
        self._delay = delay or StartupDelay(config.startup_delay)
        self._failure_policy = failure_policy or FailurePolicy(config.autocluster_failure)
        self._local_node: NodeIdentity = local_node or config.local_node()
        self._log = logger.bind(node=self._local_node)

    @property
    def local_node(self) -> NodeIdentity:
        return self._local_node

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(self) -> StartupReport:
        """Run the whole pipeline and report what happened."""
        report = StartupReport(local_node=self._local_node)
        report.delay_ms = await self._delay.wait()

        try:
            driver = self._select_backend()
            report.backend = driver.name

            registration = await self._ensure_registered(driver)
            report.registration = registration
            if not registration.ok:
                raise DiscoveryError(driver.name, "register", registration.reason)

            decision = await self._decide(registration.nodes)
            report.decision = decision
            if not decision.requires_join:
                return report

            reachable = await self._filter_dead_nodes(decision.targets)
            report.reachable = reachable
            if not reachable:
                self._log.warning(
                    "autocluster.no_reachable_nodes",
                    candidates=list(decision.targets),
                )
                raise NoPeerError(decision.targets)

            report.joined_peer = await self._join_cluster(reachable[0])
        except AutoclusterError as exc:
            report.error = exc
            report.outcome = self._startup_failure(exc)

        return report

    # ------------------------------------------------------------------
    # Backend selection & registration
    # ------------------------------------------------------------------

    def _select_backend(self) -> BackendDriver:
        backend = self._config.backend
        try:
            kind = self._registry.resolve_kind(backend)
            driver = self._registry.create(kind.value, self._config.backend_options(kind))
        except AutoclusterError as exc:
            self._log.error("autocluster.unsupported_backend", backend=backend, error=str(exc))
            raise
        self._log.debug("autocluster.using_backend", backend=driver.name)
        return driver

    async def _ensure_registered(self, driver: BackendDriver) -> RegistrationOutcome:
        self._log.info("autocluster.starting_registration", backend=driver.name)
        try:
            nodes = node_set(await driver.nodelist())
        except Exception as exc:
            self._log.error(
                "autocluster.nodelist_failed",
                backend=driver.name,
                error=str(exc),
            )
            raise DiscoveryError(driver.name, "nodelist", exc) from exc

        if self._local_node in nodes:
            self._log.debug("autocluster.already_registered", backend=driver.name)
            return RegistrationOutcome(RegistrationStatus.ALREADY_MEMBER, nodes)

        self._log.info("autocluster.registering", backend=driver.name)
        try:
            await driver.register()
        except Exception as exc:
            self._log.error(
                "autocluster.registration_failed",
                backend=driver.name,
                error=str(exc),
            )
            return RegistrationOutcome(
                RegistrationStatus.REGISTRATION_FAILED, nodes, reason=str(exc)
            )

        self._log.debug("autocluster.registered", backend=driver.name)
        # The node list is not re-read: discovery may not show us yet.
        return RegistrationOutcome(RegistrationStatus.REGISTERED, nodes)

    # ------------------------------------------------------------------
    # Membership comparison
    # ------------------------------------------------------------------

    async def _cluster_nodes(self) -> NodeSet:
        try:
            return node_set(await self._store.cluster_nodes("all"))
        except Exception as exc:
            self._log.error("autocluster.cluster_nodes_failed", error=str(exc))
            raise MembershipQueryError(f"could not read cluster members: {exc}") from exc

    async def _decide(self, discovered: NodeSet) -> JoinDecision:
        others = discovered - {self._local_node}
        cluster_nodes = await self._cluster_nodes()
        return decide_join(self._local_node, others, cluster_nodes, log=self._log)

    # ------------------------------------------------------------------
    # Join
    # ------------------------------------------------------------------

    async def _filter_dead_nodes(
        self, candidates: Tuple[NodeIdentity, ...]
    ) -> Tuple[NodeIdentity, ...]:
        reachable = []
        for node in candidates:
            if await self._prober.is_reachable(node):
                reachable.append(node)
            else:
                self._log.debug("autocluster.node_unreachable", peer=node)
        return tuple(reachable)

    async def _join_cluster(self, peer: NodeIdentity) -> NodeIdentity:
        """
        Move the local store into *peer*'s cluster.

        The steps are not transactional: if one fails the rest are skipped
        and nothing done so far is undone, so the local service may be left
        stopped.
        """
        node_type = self._config.node_type
        self._log.debug("autocluster.joining_cluster", peer=peer, node_type=node_type.value)

        steps = (
            ("stop_service", self._lifecycle.stop_service),
            ("stop_store", self._store.stop),
            ("reset_store", self._store.reset),
            ("join", lambda: self._store.join(peer, node_type)),
            ("start_store", self._store.start),
            ("start_service", self._lifecycle.start_service),
        )
        for step, call in steps:
            try:
                await call()
            except Exception as exc:
                self._log.error(
                    "autocluster.join_step_failed",
                    peer=peer,
                    step=step,
                    error=str(exc),
                )
                raise JoinExecutionError(step, peer, exc) from exc

        self._log.debug("autocluster.cluster_joined", peer=peer)
        return peer

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def _startup_failure(self, exc: AutoclusterError) -> StartupOutcome:
        outcome = self._failure_policy.resolve()
        self._log.error(
            "autocluster.startup_failure",
            error=str(exc),
            error_type=type(exc).__name__,
            failure_mode=self._failure_policy.mode_name,
            outcome=outcome.value,
        )
        return outcome


def decide_join(
    local_node: NodeIdentity,
    others: NodeSet,
    cluster_nodes: NodeSet,
    *,
    log=logger,
) -> JoinDecision:
    """
    Compare discovery (*others*, local node removed) with the store view.

    - nobody else in discovery: this node seeds the cluster
    - store knows only one member: join whoever discovery reports
    - store lists this node among several: already clustered
    - otherwise: join through the members the store knows about
    """
    if not others:
        log.debug("autocluster.first_node_in_cluster")
        return JoinDecision(JoinDecisionKind.NO_OTHER_NODES)

    if len(cluster_nodes) == 1:
        log.debug("autocluster.joining_discovery_nodes", candidates=sorted(others))
        return JoinDecision(JoinDecisionKind.SINGLE_KNOWN_NODE, ordered(others))

    if local_node in cluster_nodes:
        log.debug("autocluster.already_clustered", members=sorted(cluster_nodes))
        return JoinDecision(JoinDecisionKind.ALREADY_CLUSTERED)

    log.debug("autocluster.joining_existing_cluster", candidates=sorted(cluster_nodes))
    return JoinDecision(JoinDecisionKind.NEEDS_JOIN, ordered(cluster_nodes))
