"""Data structures for contracts and their recognition schedules.

Amounts are ``Decimal`` quantized to cents and periods are the first day of a
calendar month; both are normalized on construction so the calculation code
never sees floats or mid-month dates.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from waterfall.errors import InvalidInput
from waterfall.utils.date import DateLike, month_start
from waterfall.utils.money import AmountLike, quantize, to_cents, to_decimal

from .enums import AdjustmentKind, ContractStatus


def _positive_amount(value: AmountLike) -> Decimal:
    amount = to_cents(value)
    if amount <= 0:
        raise InvalidInput(f"Contract amount must be greater than 0, got {value!r}")
    return amount


def _positive_term(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"Term must be a whole number of months, got {value!r}")
    if value <= 0:
        raise InvalidInput(f"Term must be at least 1 month, got {value}")
    return value


@dataclass(frozen=True)
class ContractTerms:
    """The editable terms of a contract handed to the adjustment calculator.

    Attributes:
        total_amount: New contract total (> 0)
        term_months: New number of recognition periods (> 0)
        start_period: Any date in the first recognition month
        reference: Human-facing contract reference (invoice id) used in reasons
    """

    total_amount: Decimal
    term_months: int
    start_period: date
    reference: str = ""

    def __post_init__(self):
        object.__setattr__(self, "total_amount", _positive_amount(self.total_amount))
        object.__setattr__(self, "term_months", _positive_term(self.term_months))
        object.__setattr__(self, "start_period", month_start(self.start_period))

    @classmethod
    def of(
        cls, total_amount: AmountLike, term_months: int, start: DateLike, reference: str = ""
    ) -> "ContractTerms":
        return cls(to_decimal(total_amount), term_months, month_start(start), reference)

    @property
    def per_period_amount(self) -> Decimal:
        return quantize(self.total_amount / self.term_months)


@dataclass
class Contract:
    """A customer contract recognized straight-line over its term."""

    id: str
    total_amount: Decimal
    start_period: date
    term_months: int
    reference: str = ""
    customer_name: Optional[str] = None
    description: Optional[str] = None
    status: ContractStatus = ContractStatus.ACTIVE
    opening_posted: bool = True
    tenant_id: Optional[str] = None

    def __post_init__(self):
        self.total_amount = _positive_amount(self.total_amount)
        self.term_months = _positive_term(self.term_months)
        self.start_period = month_start(self.start_period)
        if not isinstance(self.status, ContractStatus):
            self.status = ContractStatus(self.status)

    @property
    def per_period_amount(self) -> Decimal:
        """Straight-line amount before the last period's rounding remainder."""
        return quantize(self.total_amount / self.term_months)

    @property
    def terms(self) -> ContractTerms:
        return ContractTerms(
            self.total_amount, self.term_months, self.start_period, self.reference
        )

    def with_terms(self, terms: ContractTerms) -> "Contract":
        return replace(
            self,
            total_amount=terms.total_amount,
            term_months=terms.term_months,
            start_period=terms.start_period,
            reference=terms.reference or self.reference,
        )


@dataclass
class ScheduleEntry:
    """One line of a contract's recognition schedule.

    Non-adjustment entries hold the scheduled amount for their period; at most
    one exists per (contract, period). Adjustment entries correct a posted
    entry (``adjusts_entry_id``) without touching it.
    """

    contract_id: str
    period: date
    amount: Decimal
    posted: bool = False
    posted_at: Optional[datetime] = None
    posted_by: Optional[str] = None
    external_ref: Optional[str] = None
    is_adjustment: bool = False
    adjusts_entry_id: Optional[str] = None
    adjustment_kind: Optional[AdjustmentKind] = None
    reason: Optional[str] = None
    id: Optional[str] = field(default=None)

    def __post_init__(self):
        self.period = month_start(self.period)
        self.amount = quantize(self.amount)
        if self.adjustment_kind is not None and not isinstance(
            self.adjustment_kind, AdjustmentKind
        ):
            self.adjustment_kind = AdjustmentKind(self.adjustment_kind)

    def mark_posted(
        self, external_ref: str, posted_by: Optional[str], posted_at: datetime
    ) -> "ScheduleEntry":
        """Return a posted copy; the receiver is left untouched."""
        return replace(
            self,
            posted=True,
            external_ref=external_ref,
            posted_by=posted_by,
            posted_at=posted_at,
        )


@dataclass
class Tenant:
    """An organization owning contracts and one ledger integration.

    ``account_mapping`` is the raw mapping blob as stored by the integration;
    it is validated into an AccountMapping only where it is used.
    """

    id: str
    name: str = ""
    account_mapping: Optional[Dict[str, Any]] = None
