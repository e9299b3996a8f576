"""
Autocluster Membership Interfaces

The pipeline drives two collaborators it does not own: the membership
store (the distributed database holding authoritative cluster membership)
and the host application's service lifecycle. Both are described here as
protocols; the host supplies the implementations.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from autocluster.types import NodeIdentity, NodeType


@runtime_checkable
class MembershipStore(Protocol):
    async def cluster_nodes(self, scope: str = "all") -> Iterable[NodeIdentity]:
        """Nodes the store believes form the cluster, this node included."""
        ...

    async def stop(self) -> None:
        ...

    async def reset(self) -> None:
        """Drop all local membership state."""
        ...

    async def join(self, peer: NodeIdentity, node_type: NodeType) -> None:
        """Attach the local store to the cluster *peer* belongs to."""
        ...

    async def start(self) -> None:
        ...


@runtime_checkable
class ServiceLifecycle(Protocol):
    async def stop_service(self) -> None:
        ...

    async def start_service(self) -> None:
        ...
