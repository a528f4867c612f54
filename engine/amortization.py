import math

from engine.errors import CalculationTooLong, SearchFailed
from engine.models import PeriodRecord, SimulationSummary, SimulationTrace

# A balance below one cent counts as exhausted
ZERO_BALANCE = 0.01

# Ceiling for open-ended runs (no target term)
CALCULATION_LIMIT_YEARS = 1000


def effective_monthly_rate(annual_rate_percent, compounding_periods_per_year=12):
    """
    Convert a nominal annual rate into the growth applied each month.

    The nominal rate is first turned into a true rate per compounding period,
    then compounded up (or down) to one month, so compounding frequency can
    differ from the monthly withdrawal cadence.

    Rates below -100% have no real periodic root and give nan; a nan
    balance fails the exhaustion check, so such a run ends after one period.
    """
    growth = 1 + annual_rate_percent / 100
    if growth < 0:
        return math.nan
    cc = compounding_periods_per_year / 12
    periodic = math.pow(growth, 1 / compounding_periods_per_year) - 1
    return math.pow(1 + periodic, cc) - 1


def _period_limit(term_years):
    """Highest period index allowed before the run is cut off."""
    if term_years:
        return 2 * term_years * 12
    return CALCULATION_LIMIT_YEARS * 12


def simulate(principal, term_years, annual_rate_percent, compounding_periods_per_year,
             initial_withdrawal, annual_increase_percent):
    """
    Run the draw-down month by month, keeping every period.

    Args:
        principal: Starting balance
        term_years: Target term, or None for an open-ended run
        annual_rate_percent: Nominal annual interest rate (e.g. 8 for 8%)
        compounding_periods_per_year: How often interest is capitalised
        initial_withdrawal: First monthly withdrawal
        annual_increase_percent: Yearly growth of the withdrawal

    Raises:
        SearchFailed: the run went past twice the target term
        CalculationTooLong: an open-ended run went past the year ceiling
    """
    rate = effective_monthly_rate(annual_rate_percent, compounding_periods_per_year)
    limit = _period_limit(term_years)

    periods = []
    balance = principal
    scheduled = initial_withdrawal

    i = 0
    while balance >= ZERO_BALANCE:
        if i > 0 and i % 12 == 0:
            scheduled *= 1 + annual_increase_percent / 100
        if i > limit:
            if term_years:
                raise SearchFailed(f"Balance still positive after {i} periods (target {term_years} years)")
            raise CalculationTooLong(CALCULATION_LIMIT_YEARS)

        start_balance = balance

        interest_payment = balance * rate
        balance += interest_payment

        withdrawal = min(balance, scheduled)
        balance -= withdrawal

        periods.append(PeriodRecord(
            start_balance=start_balance,
            end_balance=balance,
            interest_payment=interest_payment,
            withdrawal=withdrawal,
        ))
        i += 1

    return SimulationTrace(periods=tuple(periods), final_scheduled_withdrawal=scheduled)


def simulate_fast(principal, term_years, annual_rate_percent, compounding_periods_per_year,
                  initial_withdrawal, annual_increase_percent):
    """
    Same walk as simulate() but only the terminal state is kept.

    Going past twice the target term is reported as a diverged summary
    (infinite term, zero withdrawals) instead of an error, so search
    objectives see it as a ratio far from 1.
    """
    rate = effective_monthly_rate(annual_rate_percent, compounding_periods_per_year)
    limit = _period_limit(term_years)

    balance = principal
    scheduled = initial_withdrawal
    final_withdrawal = 0.0

    i = 0
    while balance >= ZERO_BALANCE:
        if i > 0 and i % 12 == 0:
            scheduled *= 1 + annual_increase_percent / 100
        if i > limit:
            if term_years:
                return SimulationSummary(
                    actual_term_years=math.inf,
                    final_scheduled_withdrawal=0.0,
                    final_applied_withdrawal=0.0,
                    diverged=True,
                )
            raise CalculationTooLong(CALCULATION_LIMIT_YEARS)

        balance += balance * rate
        final_withdrawal = min(balance, scheduled)
        balance -= final_withdrawal
        i += 1

    return SimulationSummary(
        actual_term_years=i / 12,
        final_scheduled_withdrawal=scheduled,
        final_applied_withdrawal=final_withdrawal,
    )
