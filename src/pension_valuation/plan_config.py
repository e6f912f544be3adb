"""
pension_valuation/plan_config.py - Engine Configuration

Pydantic models for the statutory parameters the engine prices with:
modality interest rates, index value, insurance premium, clause floors and
projection horizons. Defaults are the values in force in January 2025.

Usage:
    config = EngineConfig(**{'reference_index_value': 39000})
    engine = PensionEngine(config)

Author: Actuarial Pipeline Project
License: MIT
"""

from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field, model_validator
import logging

from .mortality import Sex
from .scenario import DisabilityDegree, Modality

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS FOR CONFIGURATION
# =============================================================================

class InterestRates(BaseModel):
    """Technical interest rates by modality."""
    model_config = ConfigDict(frozen=True)

    scheduled_withdrawal: float = Field(default=0.0341, gt=0, description="Scheduled withdrawal rate")
    old_age_annuity: float = Field(default=0.0279, gt=0, description="Old-age life annuity rate")
    disability_annuity: float = Field(default=0.0296, gt=0, description="Disability life annuity rate")
    survivorship_annuity: float = Field(default=0.0279, gt=0, description="Survivorship life annuity rate")


class EngineConfig(BaseModel):
    """Complete engine configuration."""
    model_config = ConfigDict(frozen=True)

    interest_rates: InterestRates = Field(default_factory=InterestRates)
    reference_index_value: float = Field(default=38500.0, gt=0, description="Currency per index unit (UF)")

    annuity_premium_rate: float = Field(default=0.03, ge=0, lt=1)
    increase_floor: float = Field(default=0.50, ge=0, le=1)
    combined_floor: float = Field(default=0.45, ge=0, le=1)

    scheduled_horizon_years: int = Field(default=45, gt=0)
    annuity_horizon_years: int = Field(default=30, gt=0)
    survivorship_horizon_years: int = Field(default=30, gt=0)

    legal_retirement_age: Dict[Sex, int] = Field(
        default_factory=lambda: {Sex.MALE: 65, Sex.FEMALE: 60}
    )
    default_income_base: float = Field(default=800000.0, gt=0)

    disability_percentages: Dict[DisabilityDegree, float] = Field(
        default_factory=lambda: {
            DisabilityDegree.TOTAL: 0.70,
            DisabilityDegree.TOTAL_TWO_THIRDS: 0.50,
            DisabilityDegree.PARTIAL: 0.35,
        }
    )
    survivorship_reference_pct: float = Field(
        default=0.70, gt=0, le=1,
        description="Share of the causant income base used as reference pension"
    )

    @model_validator(mode='after')
    def _check_tables(self) -> 'EngineConfig':
        missing = set(DisabilityDegree) - set(self.disability_percentages)
        if missing:
            raise ValueError(f"disability_percentages missing degrees: {sorted(d.value for d in missing)}")
        if set(Sex) - set(self.legal_retirement_age):
            raise ValueError("legal_retirement_age must define both sexes")
        return self

    def rate_for(self, modality: Modality, disabled: bool = False,
                 survivorship: bool = False) -> float:
        """Default interest rate for a modality."""
        rates = self.interest_rates
        if modality in (Modality.SCHEDULED_WITHDRAWAL, Modality.OPTIONS):
            return rates.scheduled_withdrawal
        if survivorship:
            return rates.survivorship_annuity
        if disabled:
            return rates.disability_annuity
        return rates.old_age_annuity

    def get_config_info(self) -> Dict[str, Any]:
        """Plain summary for logs and parameter catalogs."""
        return {
            'interest_rates': self.interest_rates.model_dump(),
            'reference_index_value': self.reference_index_value,
            'annuity_premium_rate': self.annuity_premium_rate,
            'increase_floor': self.increase_floor,
            'combined_floor': self.combined_floor,
        }


def load_config(config: Dict[str, Any] = None) -> EngineConfig:
    """Build an EngineConfig from a plain mapping (None → defaults)."""
    return EngineConfig(**(config or {}))
