from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple


class PolicyKind(Enum):
    """Which of the four inputs is being solved for."""
    WITHDRAWAL = 0
    TERM = 1
    PRINCIPAL = 2
    RATE = 3

    @classmethod
    def from_index(cls, index):
        try:
            return cls(index)
        except ValueError:
            raise ValueError(f"Invalid calculation type index: {index}") from None

    @classmethod
    def parse(cls, value):
        """Accept an enum member, its index, or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_index(value)
        if isinstance(value, str):
            name = value.strip().upper()
            if name.isdigit():
                return cls.from_index(int(name))
            if name in cls.__members__:
                return cls[name]
        raise ValueError(f"Invalid calculation type: {value!r}")


@dataclass(frozen=True)
class SimulationInput:
    """
    Inputs for one annuity calculation.
    The field being solved for is left as None.
    """
    principal: Optional[float] = None
    term_years: Optional[float] = None
    annual_rate_percent: Optional[float] = None
    initial_monthly_withdrawal: Optional[float] = None
    annual_increase_percent: Optional[float] = 0.0
    compounding_periods_per_year: int = 12

    def with_values(self, **changes) -> "SimulationInput":
        return replace(self, **changes)


@dataclass(frozen=True)
class PeriodRecord:
    """One month of the draw-down."""
    start_balance: float
    end_balance: float
    interest_payment: float
    withdrawal: float


@dataclass(frozen=True)
class SimulationTrace:
    """Full month-by-month result of a simulation run."""
    periods: Tuple[PeriodRecord, ...]
    final_scheduled_withdrawal: float

    @property
    def period_count(self) -> int:
        return len(self.periods)

    @property
    def actual_term_years(self) -> float:
        return len(self.periods) / 12

    @property
    def total_interest(self) -> float:
        return sum(p.interest_payment for p in self.periods)

    @property
    def total_withdrawn(self) -> float:
        return sum(p.withdrawal for p in self.periods)


@dataclass(frozen=True)
class SimulationSummary:
    """Terminal state only, returned by the fast simulator."""
    actual_term_years: float
    final_scheduled_withdrawal: float
    final_applied_withdrawal: float
    diverged: bool = False


@dataclass(frozen=True)
class AnnualRecord:
    """Twelve (or fewer, for the last year) periods rolled up."""
    year: int
    start_balance: float
    end_balance: float
    interest_payment: float
    withdrawal: float
    total_interest: float
    total_withdrawn: float


@dataclass(frozen=True)
class SolveSummary:
    total_interest: float
    total_withdrawn: float
    initial_annual_income: float
    draw_down_percent: float
    solved_value: float


@dataclass(frozen=True)
class SolveResult:
    """Everything a caller needs to present a solved annuity."""
    kind: PolicyKind
    inputs: SimulationInput
    trace: SimulationTrace
    annual: Tuple[AnnualRecord, ...]
    summary: SolveSummary
