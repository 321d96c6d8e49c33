"""Competition calendar and window gate."""

from .window import (
    Clock,
    CompetitionCalendar,
    Gameweek,
    WindowGate,
    WindowStatus,
    system_clock,
    window_status,
)

__all__ = [
    "Clock",
    "CompetitionCalendar",
    "Gameweek",
    "WindowGate",
    "WindowStatus",
    "system_clock",
    "window_status",
]
