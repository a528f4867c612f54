import logging
import math
from enum import Enum

from engine.errors import SearchFailed

logger = logging.getLogger(__name__)

DELTA = 1e-10
DELTA_COUNT = 18
RETRY_COUNT = 10
MAX_ITERATIONS = 1000


class Direction(Enum):
    """
    Which side of the search settles by halving the step.

    Objectives are shaped so a ratio above the band means the trial value is
    too small. INCREASING halves on every step down, DECREASING on every
    step up.
    """
    INCREASING = 'increasing'
    DECREASING = 'decreasing'


def safe_ratio(numerator, denominator):
    """Divide with IEEE semantics for a zero denominator (inf or nan, never an exception)."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def round_down(value, decimals=0):
    exp = 10 ** decimals
    return math.floor(value * exp) / exp


def round_up(value, decimals=0):
    exp = 10 ** decimals
    return math.ceil(value * exp) / exp


def find(objective, direction, initial_step, initial_value=0.1):
    """
    Search for a value whose objective ratio lands in [1 - delta, 1].

    The band starts very tight and is widened tenfold per tier. Within a
    tier the search is restarted from initial_value with a doubled step
    each time. A ratio below the band moves the trial value down, a ratio
    above it (or nan) moves it up; the step is halved on the side that
    matches the direction so the search settles instead of oscillating.

    Args:
        objective: Callable mapping a trial value to a ratio (1 == solved)
        direction: Direction.INCREASING or Direction.DECREASING
        initial_step: First step size
        initial_value: Where every restart begins

    Returns:
        The accepted trial value.

    Raises:
        SearchFailed: nothing was accepted, or the accepted value is negative
    """
    delta = DELTA
    for tier in range(DELTA_COUNT):
        lower = 1 - delta
        upper = 1
        for retry in range(RETRY_COUNT + 1):
            value = initial_value
            step = initial_step * math.pow(2, retry)
            for _ in range(MAX_ITERATIONS):
                ratio = objective(value)
                if ratio < lower:
                    value -= step
                    if direction is Direction.INCREASING:
                        step /= 2
                elif lower <= ratio <= upper:
                    if value < 0:
                        logger.warning("Search converged to negative value %s", value)
                        raise SearchFailed(f"Search converged to a negative value ({value})")
                    return value
                else:
                    value += step
                    if direction is Direction.DECREASING:
                        step /= 2
        delta *= 10
        logger.debug("No convergence at tier %d, relaxing tolerance to %g", tier, delta)

    logger.warning("Search exhausted %d tolerance tiers without converging", DELTA_COUNT)
    raise SearchFailed("Search exhausted all tolerance tiers")


def find_money_parameter(objective, direction, initial_step, initial_value=0.1):
    """
    find() snapped to the cent on the conservative side: down when the
    ratio increases with the value, up when it decreases.
    """
    value = find(objective, direction, initial_step, initial_value)
    if direction is Direction.INCREASING:
        return round_down(value, 2)
    return round_up(value, 2)
