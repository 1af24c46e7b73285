# Re-export schedule components
from .balances import (
    deferred_balance_for_period,
    deferred_revenue,
    recognized_to_date,
    total_recognized,
)
from .dates import check_contract_dates, end_date_for, term_from_dates
from .generator import (
    build_entries,
    generate_schedule,
    monthly_recognition,
    recognition_periods,
    split_evenly,
)
