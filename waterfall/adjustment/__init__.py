"""
Schedule recalculation for contract edits.

Main API:
    calculate_adjustment - Build an AdjustmentPlan for new contract terms
    preview_edit - Describe an edit without applying it
    parse_mode - Turn a request's mode name into a mode object
"""

from .calculator import calculate_adjustment, remaining_periods, validate_mode
from .modes import (
    AdjustmentMode,
    CatchUp,
    Prospective,
    Regenerate,
    Retroactive,
    parse_mode,
)
from .plan import AdjustmentPlan, ScheduleSnapshot
from .preview import AffectedPeriod, CatchUpDetails, EditPreview, preview_edit

__all__ = [
    "AdjustmentMode",
    "AdjustmentPlan",
    "AffectedPeriod",
    "CatchUp",
    "CatchUpDetails",
    "EditPreview",
    "Prospective",
    "Regenerate",
    "Retroactive",
    "ScheduleSnapshot",
    "calculate_adjustment",
    "parse_mode",
    "preview_edit",
    "remaining_periods",
    "validate_mode",
]
