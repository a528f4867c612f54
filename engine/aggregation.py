from engine.models import AnnualRecord


def to_annual(trace):
    """
    Roll the monthly trace up into years.

    Each bucket holds 12 periods; the last one holds whatever is left.
    Running totals are carried from the first period.
    """
    periods = trace.periods
    annual = []

    total_interest = 0.0
    total_withdrawn = 0.0
    year_interest = 0.0
    year_withdrawals = 0.0
    year_start_balance = None

    for index, period in enumerate(periods):
        total_interest += period.interest_payment
        total_withdrawn += period.withdrawal
        year_interest += period.interest_payment
        year_withdrawals += period.withdrawal
        if year_start_balance is None:
            year_start_balance = period.start_balance

        if (index + 1) % 12 == 0 or index + 1 == len(periods):
            annual.append(AnnualRecord(
                year=len(annual) + 1,
                start_balance=year_start_balance,
                end_balance=period.end_balance,
                interest_payment=year_interest,
                withdrawal=year_withdrawals,
                total_interest=total_interest,
                total_withdrawn=total_withdrawn,
            ))
            year_interest = 0.0
            year_withdrawals = 0.0
            year_start_balance = None

    return tuple(annual)
