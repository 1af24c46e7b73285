# Re-export date and money helpers
from .date import (
    add_months,
    month_end,
    month_range,
    month_start,
    months_between,
    to_date,
    year_start,
)
from .money import CENT, ZERO, format_amount, money_sum, quantize, to_cents, to_decimal
