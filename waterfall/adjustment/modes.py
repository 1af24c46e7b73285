"""Adjustment modes for contract edits.

Each mode is its own frozen type so that a catch-up without a target period
cannot be constructed. ``parse_mode`` converts the string names used by
request handlers at the boundary.
"""

from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Optional, Union

from waterfall.errors import InvalidInput
from waterfall.schema.enums import AdjustmentKind
from waterfall.utils.date import DateLike, month_start


@dataclass(frozen=True)
class Retroactive:
    """Post correcting entries for every posted period that changed."""

    kind: ClassVar[AdjustmentKind] = AdjustmentKind.RETROACTIVE


@dataclass(frozen=True)
class CatchUp:
    """Absorb the whole variance in one unposted period."""

    target_period: date
    kind: ClassVar[AdjustmentKind] = AdjustmentKind.CATCH_UP

    def __post_init__(self):
        object.__setattr__(self, "target_period", month_start(self.target_period))


@dataclass(frozen=True)
class Prospective:
    """Spread the variance evenly over the remaining unposted periods."""

    kind: ClassVar[AdjustmentKind] = AdjustmentKind.PROSPECTIVE


@dataclass(frozen=True)
class Regenerate:
    """Rebuild the whole schedule; only valid while nothing is posted."""

    kind: ClassVar[AdjustmentKind] = AdjustmentKind.NONE


AdjustmentMode = Union[Retroactive, CatchUp, Prospective, Regenerate]


def parse_mode(name: str, target_period: Optional[DateLike] = None) -> AdjustmentMode:
    """
    Build a mode from its request name.

    Args:
        name: One of "retroactive", "catch_up", "prospective", "none"
        target_period: Catch-up period; required for "catch_up" only

    Raises:
        InvalidInput: On an unknown name or a missing catch-up period
    """
    try:
        kind = AdjustmentKind(name)
    except ValueError as exc:
        raise InvalidInput(f"Unknown adjustment mode: {name!r}") from exc

    if kind == AdjustmentKind.CATCH_UP:
        if target_period is None:
            raise InvalidInput("Catch-up mode requires specifying a catch-up month")
        return CatchUp(month_start(target_period))
    if target_period is not None:
        raise InvalidInput(f"{name} mode does not take a catch-up month")
    if kind == AdjustmentKind.RETROACTIVE:
        return Retroactive()
    if kind == AdjustmentKind.PROSPECTIVE:
        return Prospective()
    return Regenerate()
