# engine/solver.py
#
# Bounded bisection for monotone non-decreasing functions
#

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 0.01
DEFAULT_MAX_ITERATIONS = 80


class TerminationReason(str, Enum):
    CONVERGED = "converged"
    ITERATION_CAP = "iteration_cap"
    NO_SIGN_CHANGE = "no_sign_change"
    LOWER_BOUND = "lower_bound"


@dataclass(frozen=True)
class BisectionResult:
    root: float
    value: float        # func(root)
    iterations: int
    converged: bool
    reason: TerminationReason


def bisect(func: Callable[[float], float], lo: float, hi: float,
           precision: float = DEFAULT_PRECISION,
           max_iterations: int = DEFAULT_MAX_ITERATIONS) -> BisectionResult:
    """
    Finds x in [lo, hi] with func(x) ~ 0 for a non-decreasing func.

    The returned root always sits on the upper side of the bracket
    (func(root) >= 0 whenever a sign change exists), so a solved target is
    never undershot.
    """
    if hi < lo:
        raise ValueError(f"Invalid bracket: hi ({hi}) < lo ({lo})")
    if precision <= 0:
        raise ValueError("precision must be positive")
    if max_iterations < 1:
        raise ValueError("max_iterations must be at least 1")

    f_lo = func(lo)
    if f_lo >= 0:
        return BisectionResult(lo, f_lo, 0, True, TerminationReason.LOWER_BOUND)

    f_hi = func(hi)
    if f_hi < 0:
        logger.debug(f"bisect: no sign change on [{lo}, {hi}] (f(hi)={f_hi:.4f})")
        return BisectionResult(hi, f_hi, 0, False, TerminationReason.NO_SIGN_CHANGE)

    for iteration in range(1, max_iterations + 1):
        mid = (lo + hi) / 2
        f_mid = func(mid)

        if f_mid >= 0:
            hi, f_hi = mid, f_mid
        else:
            lo = mid

        if abs(f_mid) <= precision and f_mid >= 0:
            return BisectionResult(mid, f_mid, iteration, True, TerminationReason.CONVERGED)
        if hi - lo <= precision:
            return BisectionResult(hi, f_hi, iteration, True, TerminationReason.CONVERGED)

    logger.debug(f"bisect: iteration cap {max_iterations} reached, bracket width {hi - lo:.6f}")
    return BisectionResult(hi, f_hi, max_iterations, False, TerminationReason.ITERATION_CAP)


def expand_upper_bound(func: Callable[[float], float], lo: float, hi: float,
                       max_doublings: int = 60) -> float:
    """Doubles `hi` (measured from `lo`) until func(hi) >= 0 or the doubling budget runs out."""
    width = max(hi - lo, 1.0)
    hi = lo + width
    for _ in range(max_doublings):
        if func(hi) >= 0:
            return hi
        width *= 2
        hi = lo + width
    return hi
