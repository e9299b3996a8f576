"""
Autocluster Liveness Probing

Before joining, every candidate peer is probed. A probe answers only
"reachable or not" and never raises; it is bounded by a timeout.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, Tuple, runtime_checkable

import structlog

from autocluster.types import NodeIdentity

logger = structlog.get_logger(__name__)

_DEFAULT_PORT = 4369  # Erlang port mapper daemon
_DEFAULT_TIMEOUT = 5.0  # seconds per probe


@runtime_checkable
class LivenessProber(Protocol):
    async def is_reachable(self, node: NodeIdentity) -> bool:
        ...


def parse_node(node: NodeIdentity, default_port: int = _DEFAULT_PORT) -> Tuple[str, int]:
    """
    Split a node identity into ``(host, port)``.

    Accepts ``name@host``, ``name@host:port``, ``host:port`` and a bare
    ``host``.
    """
    address = node.split("@", 1)[1] if "@" in node else node
    if address.startswith("["):
        # [ipv6]:port
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
        return host, int(port) if port else default_port
    if address.count(":") == 1:
        host, port = address.split(":", 1)
        return host, int(port)
    return address, default_port


class TcpLivenessProber:
    """
    Reachability check by opening a TCP connection to the node's host.

    A node counts as reachable when the connection is accepted within
    ``timeout`` seconds.
    """

    def __init__(self, port: int = _DEFAULT_PORT, timeout: float = _DEFAULT_TIMEOUT) -> None:
        self._port = port
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    async def is_reachable(self, node: NodeIdentity) -> bool:
        try:
            host, port = parse_node(node, self._port)
        except ValueError:
            logger.warning("liveness.unparseable_node", node=node)
            return False

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.debug("liveness.timeout", node=node, timeout=self._timeout)
            return False
        except (OSError, ValueError) as exc:
            # ValueError covers hosts the idna codec rejects
            logger.debug("liveness.unreachable", node=node, error=str(exc))
            return False

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        logger.debug("liveness.reachable", node=node, host=host, port=port)
        return True
