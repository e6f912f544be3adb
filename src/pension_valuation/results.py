"""
pension_valuation/results.py - Scenario Result Variants

Immutable result records, one variant per modality, sharing a common base.
Monetary fields are already rounded; collaborators render them as-is.

Author: Actuarial Pipeline Project
License: MIT
"""

from typing import Any, ClassVar, Dict, Optional, Tuple
from dataclasses import dataclass, fields
from enum import Enum
import logging

from .scenario import DisabilityDegree, Relationship, ScenarioType

logger = logging.getLogger(__name__)


class ProjectionPhase(str, Enum):
    """Presentation label of one projected year."""
    INCREASE = "increase"
    STEADY = "steady"
    DECLINING = "declining"


@dataclass(frozen=True)
class ProjectionPoint:
    """One modeled year of a benefit trajectory."""
    year_index: int
    age: int
    monthly_benefit: float
    remaining_balance: float
    cumulative_withdrawn: float
    phase: ProjectionPhase


@dataclass(frozen=True)
class BeneficiaryBenefit:
    """Monthly amount paid to one survivor."""
    relationship: Relationship
    share_pct: float
    monthly_amount: float


@dataclass(frozen=True)
class TemporaryIncrease:
    """Temporary-increase clause as reported back to the caller."""
    months: int
    percent: float
    increased_amount: float
    steady_state_amount: float


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    if hasattr(value, '__dataclass_fields__'):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    return value


# =============================================================================
# RESULT VARIANTS
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class ScenarioResult:
    """
    Fields common to every scenario result.

    Attributes:
        scenario: Scenario tag that produced the result
        label: Human-readable name of the option
        monthly_benefit: Monthly amount, whole currency units
        benefit_in_index_units: Monthly amount in index units (UF)
        annual_benefit: Twelve monthly payments, whole currency units
        necessary_unit_capital: CNU used to price the benefit (unrounded)
        interest_rate_used: Technical interest rate applied
        life_expectancy_years: Life expectancy of the benefit's life (or mean of survivors)
        advisory_notes: Plain-language notes for the caller
        beneficiary_breakdown: Per-survivor amounts, when applicable
        reference_pension: Causant reference pension (survivorship only)
    """
    kind: ClassVar[str] = "scenario"

    scenario: ScenarioType
    label: str
    monthly_benefit: float
    benefit_in_index_units: float
    annual_benefit: float
    necessary_unit_capital: float
    interest_rate_used: float
    life_expectancy_years: float
    advisory_notes: Tuple[str, ...] = ()
    beneficiary_breakdown: Tuple[BeneficiaryBenefit, ...] = ()
    reference_pension: Optional[float] = None

    @property
    def is_error(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view (enums as values, tuples as lists)."""
        data = _plain(self)
        data['kind'] = self.kind
        data['is_error'] = self.is_error
        return data


@dataclass(frozen=True, kw_only=True)
class ScheduledWithdrawalResult(ScenarioResult):
    """Declining-balance withdrawal with its yearly trajectory."""
    kind: ClassVar[str] = "scheduled_withdrawal"

    yearly_projection: Tuple[ProjectionPoint, ...]
    ending_balance: float = 0.0


@dataclass(frozen=True, kw_only=True)
class ImmediateAnnuityResult(ScenarioResult):
    """Level life annuity after the insurance premium."""
    kind: ClassVar[str] = "immediate_annuity"

    premium_rate: float


@dataclass(frozen=True, kw_only=True)
class GuaranteedAnnuityResult(ScenarioResult):
    """Life annuity with a guaranteed payment period."""
    kind: ClassVar[str] = "guaranteed_annuity"

    guaranteed_months: int
    adjustment_factor: float


@dataclass(frozen=True, kw_only=True)
class TemporaryIncreaseResult(ScenarioResult):
    """Life annuity with a temporary increase; monthly_benefit is the increased amount."""
    kind: ClassVar[str] = "increase_annuity"

    temporary_increase: TemporaryIncrease
    adjustment_factor: float
    floor_applied: bool
    yearly_projection: Tuple[ProjectionPoint, ...] = ()


@dataclass(frozen=True, kw_only=True)
class CombinedClauseResult(TemporaryIncreaseResult):
    """Life annuity with both a guaranteed period and a temporary increase."""
    kind: ClassVar[str] = "combined_annuity"

    guaranteed_months: int
    guarantee_factor: float


@dataclass(frozen=True, kw_only=True)
class DisabilityResult(ScenarioResult):
    """Statutory-percentage disability benefit."""
    kind: ClassVar[str] = "disability"

    disability_degree: DisabilityDegree
    income_base: float
    disability_pct: float
    reference_amount: float
    insurance_shortfall: float
    yearly_projection: Tuple[ProjectionPoint, ...] = ()

    @property
    def is_subsidized(self) -> bool:
        return self.insurance_shortfall > 0


@dataclass(frozen=True, kw_only=True)
class SurvivorshipResult(ScenarioResult):
    """Reference pension distributed by statutory shares."""
    kind: ClassVar[str] = "survivorship"

    total_share: float
    scaling_factor: float


@dataclass(frozen=True, kw_only=True)
class ErrorResult(ScenarioResult):
    """Zero-valued result flagging a scenario that could not be priced."""
    kind: ClassVar[str] = "error"

    scenario: Optional[ScenarioType] = None
    reason: str

    @property
    def is_error(self) -> bool:
        return True


def error_result(scenario: Optional[ScenarioType], label: str, reason: str,
                 interest_rate: float, *notes: str) -> ErrorResult:
    """Build a zeroed ErrorResult and log it."""
    logger.warning(f"{scenario.value if scenario else 'request'}: {reason}")
    return ErrorResult(
        scenario=scenario,
        label=label,
        monthly_benefit=0.0,
        benefit_in_index_units=0.0,
        annual_benefit=0.0,
        necessary_unit_capital=0.0,
        interest_rate_used=interest_rate,
        life_expectancy_years=0.0,
        advisory_notes=(reason,) + notes,
        reason=reason,
    )
