"""
pension_valuation/scenario.py - Calculation Request Records

Pydantic models for everything a caller hands to the engine: the affiliate,
the beneficiary list, and the scenario parameters. Records are frozen; the
engine reads them and never mutates them.

Author: Actuarial Pipeline Project
License: MIT
"""

from typing import Optional, Tuple
from types import MappingProxyType
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
import logging

from .mortality import Sex, coerce_sex

logger = logging.getLogger(__name__)


class InvalidScenarioError(ValueError):
    """Raised before any computation when a request cannot be evaluated."""


# =============================================================================
# ENUMS
# =============================================================================

class Relationship(str, Enum):
    """Beneficiary relationship to the affiliate."""
    SPOUSE = "spouse"
    DOMESTIC_PARTNER = "domestic_partner"
    CHILD = "child"
    FATHER = "father"
    MOTHER = "mother"

    @property
    def label(self) -> str:
        return _RELATIONSHIP_LABELS[self]

    @property
    def is_parent(self) -> bool:
        return self in (Relationship.FATHER, Relationship.MOTHER)

    @property
    def is_partner(self) -> bool:
        return self in (Relationship.SPOUSE, Relationship.DOMESTIC_PARTNER)


_RELATIONSHIP_LABELS = {
    Relationship.SPOUSE: "Spouse",
    Relationship.DOMESTIC_PARTNER: "Domestic partner",
    Relationship.CHILD: "Child",
    Relationship.FATHER: "Father",
    Relationship.MOTHER: "Mother",
}

# Share a beneficiary is assumed to carry when the caller does not assign one
DEFAULT_ASSIGNED_SHARES = MappingProxyType({
    Relationship.SPOUSE: 0.60,
    Relationship.DOMESTIC_PARTNER: 0.50,
    Relationship.CHILD: 0.15,
    Relationship.FATHER: 0.15,
    Relationship.MOTHER: 0.15,
})


class DisabilityDegree(str, Enum):
    """Disability degree as assessed by the medical commission."""
    TOTAL = "total"
    TOTAL_TWO_THIRDS = "total_2_3"
    PARTIAL = "partial"


class Category(str, Enum):
    """Benefit categories."""
    OLD_AGE = "old_age"
    DISABILITY = "disability"
    SURVIVORSHIP = "survivorship"


class Modality(str, Enum):
    """Payment modalities."""
    STATUTORY = "statutory"
    OPTIONS = "options"
    SCHEDULED_WITHDRAWAL = "scheduled_withdrawal"
    IMMEDIATE_ANNUITY = "immediate_annuity"
    GUARANTEED_ANNUITY = "guaranteed_annuity"
    INCREASE_ANNUITY = "increase_annuity"
    COMBINED_ANNUITY = "combined_annuity"


class ScenarioType(str, Enum):
    """Scenario tags, one per engine entry point."""
    OLD_AGE_SCHEDULED_WITHDRAWAL = "old_age_scheduled_withdrawal"
    OLD_AGE_IMMEDIATE_ANNUITY = "old_age_immediate_annuity"
    OLD_AGE_GUARANTEED_ANNUITY = "old_age_guaranteed_annuity"
    OLD_AGE_INCREASE_ANNUITY = "old_age_increase_annuity"
    OLD_AGE_COMBINED_ANNUITY = "old_age_combined_annuity"

    DISABILITY = "disability"
    DISABILITY_SCHEDULED_WITHDRAWAL = "disability_scheduled_withdrawal"
    DISABILITY_IMMEDIATE_ANNUITY = "disability_immediate_annuity"
    DISABILITY_GUARANTEED_ANNUITY = "disability_guaranteed_annuity"
    DISABILITY_INCREASE_ANNUITY = "disability_increase_annuity"
    DISABILITY_COMBINED_ANNUITY = "disability_combined_annuity"

    SURVIVORSHIP = "survivorship"
    SURVIVORSHIP_OPTIONS = "survivorship_options"
    SURVIVORSHIP_SCHEDULED_WITHDRAWAL = "survivorship_scheduled_withdrawal"
    SURVIVORSHIP_IMMEDIATE_ANNUITY = "survivorship_immediate_annuity"
    SURVIVORSHIP_GUARANTEED_ANNUITY = "survivorship_guaranteed_annuity"
    SURVIVORSHIP_INCREASE_ANNUITY = "survivorship_increase_annuity"
    SURVIVORSHIP_COMBINED_ANNUITY = "survivorship_combined_annuity"

    @classmethod
    def parse(cls, tag) -> "ScenarioType":
        """Resolve a tag string, rejecting anything outside the catalog."""
        if isinstance(tag, cls):
            return tag
        try:
            return cls(str(tag).strip().lower())
        except ValueError:
            raise InvalidScenarioError(f"Unsupported scenario type: {tag!r}") from None

    @property
    def category(self) -> Category:
        if self.value.startswith("old_age"):
            return Category.OLD_AGE
        if self.value.startswith("disability"):
            return Category.DISABILITY
        return Category.SURVIVORSHIP

    @property
    def modality(self) -> Modality:
        for modality in Modality:
            if self.value.endswith(modality.value):
                return modality
        return Modality.STATUTORY


class IncreaseUnit(str, Enum):
    """Explicit unit of a temporary-increase percentage."""
    FRACTION = "fraction"
    PERCENT = "percent"


# =============================================================================
# PEOPLE
# =============================================================================

class Person(BaseModel):
    """Affiliate, causant or dependent."""
    model_config = ConfigDict(frozen=True)

    age: int = Field(..., ge=0, le=120)
    sex: Sex
    is_disabled: bool = False

    @field_validator("sex", mode="before")
    @classmethod
    def _coerce_sex(cls, value):
        return coerce_sex(value) if isinstance(value, str) else value


class Beneficiary(Person):
    """
    Dependent entitled to a survivor benefit.

    assigned_share_pct is the caller's share (fraction in (0, 1]); it weights
    the joint-life extension of the necessary unit capital. When omitted the
    relationship default applies (spouse 60%, partner 50%, others 15%).
    """
    relationship: Relationship
    assigned_share_pct: Optional[float] = Field(default=None, gt=0, le=1)

    @property
    def share(self) -> float:
        if self.assigned_share_pct is not None:
            return self.assigned_share_pct
        return DEFAULT_ASSIGNED_SHARES[self.relationship]


# =============================================================================
# SCENARIO PARAMETERS
# =============================================================================

class TemporaryIncreaseClause(BaseModel):
    """Higher benefit for the first `months` months, at an explicit unit."""
    model_config = ConfigDict(frozen=True)

    months: int = Field(..., ge=0)
    percent: float = Field(..., gt=0)
    unit: IncreaseUnit

    @property
    def fraction(self) -> float:
        if self.unit is IncreaseUnit.PERCENT:
            return self.percent / 100.0
        return self.percent

    @property
    def display_percent(self) -> float:
        return self.fraction * 100.0


class ScenarioParameters(BaseModel):
    """
    Monetary and clause inputs for one scenario.

    interest_rate and reference_index_value fall back to the engine
    configuration when omitted.
    """
    model_config = ConfigDict(frozen=True)

    accumulated_balance: float = Field(..., ge=0)
    interest_rate: Optional[float] = Field(default=None, gt=0)
    reference_index_value: Optional[float] = Field(default=None, gt=0)

    guaranteed_months: int = Field(default=0, ge=0)
    increase: Optional[TemporaryIncreaseClause] = None

    income_base: Optional[float] = Field(default=None, ge=0)
    disability_degree: DisabilityDegree = DisabilityDegree.TOTAL
    insured: bool = True

    causant_reference_pension: Optional[float] = Field(default=None, ge=0)
    causant_income_base: Optional[float] = Field(default=None, ge=0)


class ScenarioRequest(BaseModel):
    """Complete request: scenario tag, affiliate, beneficiaries, parameters."""
    model_config = ConfigDict(frozen=True)

    scenario: ScenarioType
    affiliate: Person
    beneficiaries: Tuple[Beneficiary, ...] = ()
    parameters: ScenarioParameters

    @field_validator("scenario", mode="before")
    @classmethod
    def _parse_scenario(cls, value):
        return ScenarioType.parse(value)
