"""
Autocluster Failure Policy

Decides whether a pipeline failure should abort process startup.
"""

from __future__ import annotations

from typing import Union

import structlog

from autocluster.types import StartupFailureMode, StartupOutcome

logger = structlog.get_logger(__name__)


class FailurePolicy:
    """
    ``stop`` aborts startup, ``ignore`` lets it continue unclustered.

    Any other configured value is not treated as an error: startup
    continues and a warning is logged.
    """

    def __init__(self, mode: Union[str, StartupFailureMode]) -> None:
        self._mode = mode

    @property
    def mode(self) -> Union[str, StartupFailureMode]:
        return self._mode

    @property
    def mode_name(self) -> str:
        if isinstance(self._mode, StartupFailureMode):
            return self._mode.value
        return str(self._mode)

    def resolve(self) -> StartupOutcome:
        return resolve_failure_mode(self._mode)


def resolve_failure_mode(mode: Union[str, StartupFailureMode]) -> StartupOutcome:
    try:
        parsed = StartupFailureMode(mode)
    except ValueError:
        logger.warning("autocluster.invalid_failure_mode", value=mode)
        return StartupOutcome.SUCCESS

    if parsed is StartupFailureMode.STOP:
        return StartupOutcome.FAILURE
    return StartupOutcome.SUCCESS
