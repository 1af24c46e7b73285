"""Revenue Recognition Waterfall Engine.

This package turns contracts into straight-line monthly recognition schedules,
recalculates them when contract terms change, and ties the resulting balances
out against an external accounting ledger.

Key modules:
- schedule: Schedule generation and balance helpers
- adjustment: Recalculation of edited contracts (retroactive, catch-up, prospective)
- reconciliation: Tie-out of deferred revenue and income against the ledger
- ledger: Journal requests, collaborator protocols and posting workflow
- report: Waterfall and deferred balance DataFrames
- config: Tolerances and account mapping
"""

from .adjustment import (
    AdjustmentMode,
    AdjustmentPlan,
    CatchUp,
    EditPreview,
    Prospective,
    Regenerate,
    Retroactive,
    calculate_adjustment,
    parse_mode,
    preview_edit,
)
from .config import AccountMapping, RecognitionSettings
from .errors import (
    BalanceUnavailable,
    CatchUpTargetInvalid,
    ExternalPostingFailed,
    InvalidInput,
    ModeNotApplicable,
    NoRemainingPeriods,
    NotConfigured,
    NotFound,
    WaterfallError,
)
from .reconciliation import TieOutResult, compute_tie_out, verify_tie_out
from .schedule import build_entries, generate_schedule, monthly_recognition
from .schema import Contract, ContractStatus, ContractTerms, ScheduleEntry, Tenant

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "AccountMapping",
    "AdjustmentMode",
    "AdjustmentPlan",
    "BalanceUnavailable",
    "CatchUp",
    "CatchUpTargetInvalid",
    "Contract",
    "ContractStatus",
    "ContractTerms",
    "EditPreview",
    "ExternalPostingFailed",
    "InvalidInput",
    "ModeNotApplicable",
    "NoRemainingPeriods",
    "NotConfigured",
    "NotFound",
    "Prospective",
    "RecognitionSettings",
    "Regenerate",
    "Retroactive",
    "ScheduleEntry",
    "Tenant",
    "TieOutResult",
    "WaterfallError",
    "build_entries",
    "calculate_adjustment",
    "compute_tie_out",
    "generate_schedule",
    "monthly_recognition",
    "parse_mode",
    "preview_edit",
    "verify_tie_out",
    # Subpackages: ledger, report
]
