"""
Solver policies: one per unknown input.

Each policy names the fields it needs, builds a search objective on top of
the fast simulator, solves for its unknown and hands back the resolved
inputs. solve() then re-runs the full simulation and builds the summary,
which is the same for every policy.
"""
from dataclasses import dataclass
from typing import Callable, Tuple

from engine.aggregation import to_annual
from engine.amortization import effective_monthly_rate, simulate, simulate_fast
from engine.errors import MissingInput
from engine.models import PolicyKind, SimulationInput, SolveResult, SolveSummary
from engine.solver import Direction, find, find_money_parameter, round_down, safe_ratio

# Rates are presented to three decimals
RATE_DECIMALS = 3


@dataclass(frozen=True)
class SolverPolicy:
    kind: PolicyKind
    required: Tuple[str, ...]
    resolve: Callable[[SimulationInput], SimulationInput]


def _run_fast(inputs, **overrides):
    values = inputs.with_values(**overrides)
    return simulate_fast(
        values.principal,
        values.term_years,
        values.annual_rate_percent,
        values.compounding_periods_per_year,
        values.initial_monthly_withdrawal,
        values.annual_increase_percent,
    )


def _shortfall_ratio(inputs, **overrides):
    """Above 1 while the balance runs out before the target term."""
    summary = _run_fast(inputs, **overrides)
    if summary.actual_term_years == inputs.term_years:
        return safe_ratio(summary.final_scheduled_withdrawal, summary.final_applied_withdrawal)
    return safe_ratio(inputs.term_years, summary.actual_term_years)


def _resolve_withdrawal(inputs):
    first_interest_payment = inputs.principal * effective_monthly_rate(
        inputs.annual_rate_percent, inputs.compounding_periods_per_year)

    def objective(withdrawal):
        summary = _run_fast(inputs, initial_monthly_withdrawal=withdrawal)
        if summary.actual_term_years == inputs.term_years:
            return safe_ratio(summary.final_applied_withdrawal, summary.final_scheduled_withdrawal)
        return safe_ratio(summary.actual_term_years, inputs.term_years)

    withdrawal = find_money_parameter(objective, Direction.DECREASING, 100, first_interest_payment)
    return inputs.with_values(initial_monthly_withdrawal=withdrawal)


def _resolve_principal(inputs):
    def objective(principal):
        return _shortfall_ratio(inputs, principal=principal)

    withdrawal = inputs.initial_monthly_withdrawal
    principal = find_money_parameter(objective, Direction.INCREASING, withdrawal, withdrawal)
    return inputs.with_values(principal=principal)


def _resolve_rate(inputs):
    def objective(rate):
        return _shortfall_ratio(inputs, annual_rate_percent=rate)

    rate = find(objective, Direction.INCREASING, 1, 0)
    return inputs.with_values(annual_rate_percent=round_down(rate, RATE_DECIMALS))


def _resolve_term(inputs):
    # The term falls out of an open-ended simulation; solve() fills it in
    return inputs.with_values(term_years=None)


POLICIES = {
    PolicyKind.WITHDRAWAL: SolverPolicy(
        PolicyKind.WITHDRAWAL,
        ('principal', 'term_years', 'annual_rate_percent', 'annual_increase_percent'),
        _resolve_withdrawal,
    ),
    PolicyKind.TERM: SolverPolicy(
        PolicyKind.TERM,
        ('principal', 'annual_rate_percent', 'initial_monthly_withdrawal', 'annual_increase_percent'),
        _resolve_term,
    ),
    PolicyKind.PRINCIPAL: SolverPolicy(
        PolicyKind.PRINCIPAL,
        ('term_years', 'annual_rate_percent', 'initial_monthly_withdrawal', 'annual_increase_percent'),
        _resolve_principal,
    ),
    PolicyKind.RATE: SolverPolicy(
        PolicyKind.RATE,
        ('principal', 'term_years', 'initial_monthly_withdrawal', 'annual_increase_percent'),
        _resolve_rate,
    ),
}

SOLVED_FIELDS = {
    PolicyKind.WITHDRAWAL: 'initial_monthly_withdrawal',
    PolicyKind.TERM: 'term_years',
    PolicyKind.PRINCIPAL: 'principal',
    PolicyKind.RATE: 'annual_rate_percent',
}


def required_fields(kind: PolicyKind) -> Tuple[str, ...]:
    return POLICIES[kind].required


def check_required(inputs: SimulationInput, kind: PolicyKind):
    missing = [name for name in required_fields(kind) if getattr(inputs, name) is None]
    if missing:
        raise MissingInput(missing)


def _draw_down_percent(initial_annual_income, principal):
    base = max(principal, initial_annual_income)
    if base == 0:
        return 0.0
    return initial_annual_income / base * 100


def solve(inputs: SimulationInput, kind: PolicyKind) -> SolveResult:
    """
    Solve for the unknown named by kind, then simulate the resolved inputs in full.

    Raises:
        MissingInput: a field the policy needs is None
        SearchFailed: no acceptable value, or the resolved inputs overrun the term
        CalculationTooLong: an open-ended run passed the year ceiling
    """
    check_required(inputs, kind)

    resolved = POLICIES[kind].resolve(inputs)

    trace = simulate(
        resolved.principal,
        resolved.term_years,
        resolved.annual_rate_percent,
        resolved.compounding_periods_per_year,
        resolved.initial_monthly_withdrawal,
        resolved.annual_increase_percent,
    )
    if kind is PolicyKind.TERM:
        resolved = resolved.with_values(term_years=trace.actual_term_years)

    initial_annual_income = resolved.initial_monthly_withdrawal * min(12, trace.period_count)
    summary = SolveSummary(
        total_interest=trace.total_interest,
        total_withdrawn=trace.total_withdrawn,
        initial_annual_income=initial_annual_income,
        draw_down_percent=_draw_down_percent(initial_annual_income, resolved.principal),
        solved_value=getattr(resolved, SOLVED_FIELDS[kind]),
    )

    return SolveResult(
        kind=kind,
        inputs=resolved,
        trace=trace,
        annual=to_annual(trace),
        summary=summary,
    )
