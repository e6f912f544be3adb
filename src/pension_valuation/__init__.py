"""
Individual-Account Pension Benefit Engine

Actuarial engine estimating monthly benefits payable from an individually
funded balance under the old-age, disability and survivorship categories,
for scheduled withdrawal and life annuities with guaranteed-period and
temporary-increase clauses.

Version: 1.0.0

Standards:
- TM-2020 statutory mortality tables (CB-H, B-M, I-H, I-M)
- Necessary unit capital per the technical note on necessary capitals
- Survivor shares by relationship with proportional scaling above 100%

Author: Actuarial Pipeline Project
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Actuarial Pipeline Project"

from .engine import (
    PensionEngine,
    create_engine
)

from .mortality import (
    MortalityCalculator,
    MortalityTable,
    Sex,
    Cohort,
    create_mortality_calculator
)

from .financials import (
    FinancialEngine,
    create_financial_engine
)

from .capital import (
    CapitalCalculator,
    SurvivorshipCapital,
    create_capital_calculator
)

from .adjustments import (
    ClauseAdjustment,
    guaranteed_period_factor,
    solve_combined_clause,
    solve_guaranteed_period,
    solve_temporary_increase
)

from .distribution import (
    Distribution,
    StatutoryShare,
    allocate_shares
)

from .scenario import (
    Beneficiary,
    Category,
    DisabilityDegree,
    IncreaseUnit,
    InvalidScenarioError,
    Modality,
    Person,
    Relationship,
    ScenarioParameters,
    ScenarioRequest,
    ScenarioType,
    TemporaryIncreaseClause
)

from .results import (
    BeneficiaryBenefit,
    CombinedClauseResult,
    DisabilityResult,
    ErrorResult,
    GuaranteedAnnuityResult,
    ImmediateAnnuityResult,
    ProjectionPhase,
    ProjectionPoint,
    ScenarioResult,
    ScheduledWithdrawalResult,
    SurvivorshipResult,
    TemporaryIncrease,
    TemporaryIncreaseResult
)

from .plan_config import (
    EngineConfig,
    InterestRates
)

from .reporting import (
    results_to_dataframe,
    projection_to_dataframe,
    print_scenario_comparison
)

__all__ = [
    # Main engine
    "PensionEngine",
    "create_engine",

    # Configuration
    "EngineConfig",
    "InterestRates",

    # Request records
    "Person",
    "Beneficiary",
    "Relationship",
    "ScenarioParameters",
    "ScenarioRequest",
    "ScenarioType",
    "Category",
    "Modality",
    "DisabilityDegree",
    "IncreaseUnit",
    "TemporaryIncreaseClause",
    "InvalidScenarioError",

    # Results
    "ScenarioResult",
    "ScheduledWithdrawalResult",
    "ImmediateAnnuityResult",
    "GuaranteedAnnuityResult",
    "TemporaryIncreaseResult",
    "CombinedClauseResult",
    "DisabilityResult",
    "SurvivorshipResult",
    "ErrorResult",
    "BeneficiaryBenefit",
    "TemporaryIncrease",
    "ProjectionPoint",
    "ProjectionPhase",

    # Actuarial components
    "MortalityCalculator",
    "MortalityTable",
    "Sex",
    "Cohort",
    "create_mortality_calculator",
    "FinancialEngine",
    "create_financial_engine",
    "CapitalCalculator",
    "SurvivorshipCapital",
    "create_capital_calculator",
    "ClauseAdjustment",
    "guaranteed_period_factor",
    "solve_guaranteed_period",
    "solve_temporary_increase",
    "solve_combined_clause",
    "Distribution",
    "StatutoryShare",
    "allocate_shares",

    # Reporting
    "results_to_dataframe",
    "projection_to_dataframe",
    "print_scenario_comparison",
]
