"""Power-up (chip) state machine."""

from .machine import (
    ACTIVE,
    POWER_UPS,
    UNUSED,
    USED,
    PowerUpSpec,
    PowerUpStatus,
    activate,
    cancel,
    complete_period,
    describe,
    is_active,
    state_of,
)

__all__ = [
    "ACTIVE",
    "POWER_UPS",
    "UNUSED",
    "USED",
    "PowerUpSpec",
    "PowerUpStatus",
    "activate",
    "cancel",
    "complete_period",
    "describe",
    "is_active",
    "state_of",
]
