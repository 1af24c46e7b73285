"""Exception types raised by the recognition engine."""

from __future__ import annotations

from datetime import date
from typing import Sequence, Tuple


class WaterfallError(Exception):
    """Base class for every error raised by the library."""


class InvalidInput(WaterfallError, ValueError):
    """Raised for bad amounts, terms, dates or mode names."""


class ModeNotApplicable(WaterfallError, ValueError):
    """Raised when an adjustment mode does not fit the contract's posting state."""

    def __init__(self, mode: str, reason: str):
        super().__init__(f"{mode} mode not applicable: {reason}")
        self.mode = mode
        self.reason = reason


class CatchUpTargetInvalid(WaterfallError, ValueError):
    """Raised when the catch-up target is posted or not a remaining period."""

    def __init__(self, target_period: date, reason: str):
        super().__init__(f"Invalid catch-up period {target_period.isoformat()}: {reason}")
        self.target_period = target_period
        self.reason = reason


class NoRemainingPeriods(WaterfallError, ValueError):
    """Raised when a mode needs unposted periods and none are left."""

    def __init__(self, mode: str):
        super().__init__(f"{mode} mode requires at least one unposted period")
        self.mode = mode


class ExternalPostingFailed(WaterfallError, RuntimeError):
    """A posting sequence stopped part way.

    ``committed_ids`` holds the external references of the postings that
    succeeded before ``period`` failed; they are committed in the ledger and
    must be persisted by the caller, never retried.
    """

    def __init__(
        self,
        period: date,
        reason: str,
        committed_ids: Sequence[str] = (),
        committed_entries: Sequence = (),
    ):
        super().__init__(
            f"Failed to post entry for {period.isoformat()}: {reason} "
            f"({len(committed_ids)} earlier posting(s) already committed)"
        )
        self.period = period
        self.reason = reason
        self.committed_ids: Tuple[str, ...] = tuple(committed_ids)
        self.committed_entries = tuple(committed_entries)


class NotConfigured(WaterfallError, RuntimeError):
    """Raised when required account references are missing."""

    def __init__(self, missing: Sequence[str]):
        super().__init__(f"Account mapping not configured: missing {', '.join(missing)}")
        self.missing = tuple(missing)


class NotFound(WaterfallError, LookupError):
    """Raised when a tenant or contract does not exist."""

    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class BalanceUnavailable(WaterfallError, RuntimeError):
    """Raised when the external ledger cannot report a balance."""

    def __init__(self, account: str, reason: str):
        super().__init__(f"Balance unavailable for account {account}: {reason}")
        self.account = account
        self.reason = reason
