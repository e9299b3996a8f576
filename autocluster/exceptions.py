"""
Autocluster Errors

Every failure the pipeline can route to the failure policy derives from
:class:`AutoclusterError`.
"""

from __future__ import annotations

from typing import Optional, Sequence


class AutoclusterError(Exception):
    """Base class for pipeline failures."""


class ConfigurationError(AutoclusterError):
    """Unsupported backend kind or otherwise unusable configuration."""


class DiscoveryError(AutoclusterError):
    """A backend ``nodelist`` or ``register`` call failed."""

    def __init__(self, backend: str, operation: str, reason: object) -> None:
        self.backend = backend
        self.operation = operation
        self.reason = reason
        super().__init__(f"{backend} {operation} failed: {reason}")


class MembershipQueryError(AutoclusterError):
    """The membership store could not report its cluster members."""


class NoPeerError(AutoclusterError):
    """Join candidates existed but none of them answered a probe."""

    def __init__(self, candidates: Sequence[str]) -> None:
        self.candidates = tuple(candidates)
        super().__init__(
            f"none of {len(self.candidates)} cluster node(s) reachable: "
            + ", ".join(self.candidates)
        )


class JoinExecutionError(AutoclusterError):
    """
    A step of the stop / reset / join / start sequence failed.

    Steps already issued are not undone, so the local service may be left
    stopped.
    """

    def __init__(self, step: str, peer: str, reason: Optional[object] = None) -> None:
        self.step = step
        self.peer = peer
        self.reason = reason
        super().__init__(f"join via {peer} failed at {step}: {reason}")
