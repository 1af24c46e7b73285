"""Engine settings and ledger account mapping."""

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional

from waterfall.errors import InvalidInput, NotConfigured
from waterfall.utils.money import to_decimal

logger = logging.getLogger(__name__)

DEFAULT_TIE_OUT_TOLERANCE = Decimal("0.01")
# Amounts are whole cents, so anything above half a cent is a real difference.
DEFAULT_ADJUSTMENT_THRESHOLD = Decimal("0.005")


@dataclass(frozen=True)
class RecognitionSettings:
    """Numeric tolerances used by the calculator and the tie-out verifier."""

    tie_out_tolerance: Decimal = DEFAULT_TIE_OUT_TOLERANCE
    adjustment_threshold: Decimal = DEFAULT_ADJUSTMENT_THRESHOLD

    def __post_init__(self):
        for name in ("tie_out_tolerance", "adjustment_threshold"):
            value = to_decimal(getattr(self, name))
            if value < 0:
                raise InvalidInput(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def from_env(cls) -> "RecognitionSettings":
        """
        Build settings from the environment.

        Reads WATERFALL_TIE_OUT_TOLERANCE and WATERFALL_ADJUSTMENT_THRESHOLD,
        falling back to the defaults when unset.
        """
        settings = cls(
            tie_out_tolerance=to_decimal(
                os.getenv("WATERFALL_TIE_OUT_TOLERANCE", str(DEFAULT_TIE_OUT_TOLERANCE))
            ),
            adjustment_threshold=to_decimal(
                os.getenv(
                    "WATERFALL_ADJUSTMENT_THRESHOLD", str(DEFAULT_ADJUSTMENT_THRESHOLD)
                )
            ),
        )
        logger.debug("Loaded recognition settings: %s", settings)
        return settings


DEFAULT_SETTINGS = RecognitionSettings()

_KEY_ALIASES = {
    "liability_account": ("liability_account", "deferred_revenue_account_id", "deferredRevenueAccountId"),
    "liability_account_name": (
        "liability_account_name",
        "deferred_revenue_account_name",
        "deferredRevenueAccountName",
    ),
    "income_account": ("income_account", "revenue_account_id", "revenueAccountId"),
    "income_account_name": ("income_account_name", "revenue_account_name", "revenueAccountName"),
}


def _lookup(raw: Mapping[str, Any], field_name: str) -> Optional[str]:
    for key in _KEY_ALIASES[field_name]:
        value = raw.get(key)
        if value not in (None, ""):
            return str(value)
    return None


@dataclass(frozen=True)
class AccountMapping:
    """Maps recognition postings onto external ledger accounts.

    Attributes:
        liability_account: Deferred revenue (balance sheet) account reference
        income_account: Revenue (profit and loss) account reference
        liability_account_name: Display name of the liability account
        income_account_name: Display name of the income account
    """

    liability_account: str
    income_account: str
    liability_account_name: Optional[str] = None
    income_account_name: Optional[str] = None

    def __post_init__(self):
        missing = [
            name
            for name in ("liability_account", "income_account")
            if not getattr(self, name)
        ]
        if missing:
            raise NotConfigured(missing)

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "AccountMapping":
        """
        Validate a loosely-typed mapping blob.

        Accepts snake_case keys or the camelCase keys stored by integrations
        (``deferredRevenueAccountId``, ``revenueAccountId``...).

        Raises:
            NotConfigured: If the blob is missing or lacks an account reference
        """
        if not raw:
            raise NotConfigured(["liability_account", "income_account"])
        return cls(
            liability_account=_lookup(raw, "liability_account") or "",
            income_account=_lookup(raw, "income_account") or "",
            liability_account_name=_lookup(raw, "liability_account_name"),
            income_account_name=_lookup(raw, "income_account_name"),
        )
