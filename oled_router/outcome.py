# oled_router/outcome.py
from enum import Enum


class DispatchOutcome(Enum):
    """
    Result of one Router.dispatch() call.

    The value is the operator-facing description used when logging failures.
    """
    OK = ""
    UNMATCHED_PATTERN = "no matching pattern available"
    WRONG_ARGUMENTS = "unexpected types and/or length"
    INVALID_MODE = "invalid target mode"
    OUT_OF_RANGE = "argument(s) value(s) out of range"

    @property
    def ok(self) -> bool:
        return self is DispatchOutcome.OK

    @property
    def description(self) -> str:
        return self.value


class ConfigError(ValueError):
    """Static configuration that must stop the process before it serves."""


class RegistryError(LookupError):
    """Raised by guarded registry accessors when no valid target exists."""
