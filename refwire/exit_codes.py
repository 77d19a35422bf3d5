"""Central exit-code taxonomy for refwire."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes returned by refwire commands."""

    SUCCESS = 0
    CANCELLED = 1
    INVALID_INPUT = 2
    STATE_ERROR = 10
    AUTH_DENIED = 30
    RUNTIME_UNAVAILABLE = 40
    TIMEOUT_EXPIRED = 50
    INTERNAL_ERROR = 70
