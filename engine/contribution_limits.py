# engine/contribution_limits.py
#
# Employee 401k / Roth 401k elective deferral limits
#

from dataclasses import dataclass

from utils.tax_utils import EMPLOYEE_401K_LIMIT_2025, EMPLOYEE_401K_CATCHUP_50, CATCHUP_AGE


@dataclass(frozen=True)
class ContributionLimits:
    base: float
    catchup: float

    @property
    def total(self) -> float:
        return self.base + self.catchup


@dataclass(frozen=True)
class LimitedContributions:
    pretax: float
    roth: float
    scale: float


def calculate_401k_limits(age: int) -> ContributionLimits:
    catchup = EMPLOYEE_401K_CATCHUP_50 if age >= CATCHUP_AGE else 0.0
    return ContributionLimits(base=EMPLOYEE_401K_LIMIT_2025, catchup=catchup)


def apply_contribution_limits(desired_pretax: float, desired_roth: float, age: int) -> LimitedContributions:
    """
    Scales desired pretax + Roth deferrals down to the combined limit,
    preserving the pretax:Roth ratio.
    """
    limits = calculate_401k_limits(age)
    total_desired = desired_pretax + desired_roth

    if total_desired <= limits.total:
        return LimitedContributions(pretax=desired_pretax, roth=desired_roth, scale=1.0)

    scale = limits.total / total_desired
    return LimitedContributions(pretax=desired_pretax * scale, roth=desired_roth * scale, scale=scale)
