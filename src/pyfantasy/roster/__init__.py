"""Composition validation, team creation and transfers."""

from .creation import TeamDraft, draft_team
from .transfers import TransferPlan, TransferResult, charge_transfer, plan_transfer, result_from_plan
from .validator import CompositionReport, ensure_available, validate_composition

__all__ = [
    "CompositionReport",
    "TeamDraft",
    "TransferPlan",
    "TransferResult",
    "charge_transfer",
    "draft_team",
    "ensure_available",
    "plan_transfer",
    "result_from_plan",
    "validate_composition",
]
