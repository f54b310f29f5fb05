# engine/errors.py

from dataclasses import dataclass


class RetirementEngineError(Exception):
    """Base class for projection engine errors."""


class WithdrawalConfigError(RetirementEngineError, ValueError):
    """Fatal configuration problem; the projection cannot continue."""


class UnknownAccountKindError(WithdrawalConfigError):
    """An account kind outside savings / pretax401k / rothIra was requested."""


class WithdrawalSessionError(RetirementEngineError):
    """A withdrawal session was used after it was closed."""


# Warning kinds attached to yearly results
CONVERGENCE = "convergence"
NEGATIVE_BALANCE = "negative_balance"


@dataclass(frozen=True)
class ProjectionWarning:
    """Recovered problem attached to a single projection year."""
    kind: str
    year: int
    message: str

    def __str__(self) -> str:
        return f"[{self.year}] {self.kind}: {self.message}"
