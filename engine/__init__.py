# engine/__init__.py

# Expose the projector (for the entry script)
from .simulator import RetirementProjector, ProjectionResults, YearResult

# Core withdrawal engine and its collaborators
from .withdrawal_engine import WithdrawalConfig, WithdrawalEngine, WithdrawalSession
from .income_calculator import FixedIncomeFactors, IncomeBreakdown, IncomeResolver
from .accounts import AccountKind, AccountLedger
from .errors import (
    ProjectionWarning,
    RetirementEngineError,
    UnknownAccountKindError,
    WithdrawalConfigError,
    WithdrawalSessionError,
)
