"""
pension_valuation/capital.py - Necessary Unit Capital (CNU) Engine

Computes the actuarial factor such that monthly_benefit = balance / CNU
funds a life-contingent stream of monthly payments.

Mathematical Framework (technical note on necessary capitals):
- Single life:
    CNU = 12 × Σ_{t=0}^{ω-x} [l(x+t) / l(x)] × (1+i)^{-(t+0.5)}
- Joint extension, per dependent d with share s_d (paid only while the
  primary is dead and the dependent is alive):
    CNU += 12 × Σ_t [1 - tPx] × tPy × (1+i)^{-(t+0.5)} × s_d
- Survivorship (primary already deceased):
    CNU = Σ_d CNU_single(y_d) × s_d

Author: Actuarial Pipeline Project
License: MIT
"""

import numpy as np
from typing import Iterable, List, Optional, Sequence, Tuple
from dataclasses import dataclass
import logging

from .mortality import MortalityCalculator, SexLike, create_mortality_calculator
from .financials import FinancialEngine
from .scenario import Beneficiary, Person, Relationship

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependentCapital:
    """Individual CNU of one survivorship dependent and its weight."""
    relationship: Relationship
    age: int
    cnu: float
    share: float


@dataclass(frozen=True)
class SurvivorshipCapital:
    """Share-weighted survivorship CNU with its per-dependent detail."""
    total: float
    details: Tuple[DependentCapital, ...]

    @property
    def is_degenerate(self) -> bool:
        return not self.total > 0.0


class CapitalCalculator:
    """
    Present-Value Engine for single, joint and survivorship lives.

    Holds only the read-only mortality calculator; every method is a pure
    function of its arguments.
    """

    def __init__(self, mortality: Optional[MortalityCalculator] = None):
        self.mortality = mortality or create_mortality_calculator()

    def _single_life_sum(self, age: int, sex: SexLike, interest_rate: float,
                         disabled: bool) -> float:
        table = self.mortality.get_table(sex, disabled)
        horizon = table.max_age - age
        if horizon < 0:
            return 0.0
        tpx = table.survival_curve(age, horizon)
        financial = FinancialEngine(interest_rate)
        return financial.calculate_pv(np.ones(horizon + 1), tpx)

    def joint_survivor_factor(self, primary_age: int, primary_sex: SexLike,
                              dependent: Person, share: float,
                              interest_rate: float,
                              primary_disabled: bool = False) -> float:
        """
        Annual (not yet ×12) cost of paying `share` to a dependent in the
        years where the primary is dead and the dependent alive.

        Args:
            primary_age: Age of the primary life
            primary_sex: 'M' or 'F'
            dependent: Dependent person (own cohort by is_disabled)
            share: Fraction of the primary's benefit paid to the dependent
            interest_rate: Technical interest rate
            primary_disabled: If True, the primary uses the disabled table

        Returns:
            Σ_t [1 - tPx] × tPy × v^{t+0.5} × share
        """
        primary_table = self.mortality.get_table(primary_sex, primary_disabled)
        dependent_table = self.mortality.get_table(dependent.sex, dependent.is_disabled)

        # Full horizon of both lives on the general-lives scale
        general_max = self.mortality.max_age(primary_sex)
        horizon = max(general_max - primary_age, dependent_table.max_age - dependent.age)
        if horizon < 0:
            return 0.0

        primary_dead = 1.0 - primary_table.survival_curve(primary_age, horizon)
        dependent_alive = dependent_table.survival_curve(dependent.age, horizon)

        financial = FinancialEngine(interest_rate)
        return financial.calculate_pv(np.full(horizon + 1, share),
                                      primary_dead * dependent_alive)

    def calculate_cnu(self, age: int, sex: SexLike, interest_rate: float,
                      beneficiaries: Optional[Sequence[Beneficiary]] = None,
                      disabled: bool = False) -> float:
        """
        Necessary unit capital for a primary life, optionally extended to
        cover dependents after the primary's death.

        Args:
            age: Primary age
            sex: 'M' or 'F'
            interest_rate: Technical interest rate
            beneficiaries: Dependents covered by the joint extension
            disabled: If True, the primary uses the disabled-lives table

        Returns:
            CNU (0.0 when the primary is past the table horizon)
        """
        total = self._single_life_sum(age, sex, interest_rate, disabled)

        for beneficiary in beneficiaries or ():
            total += self.joint_survivor_factor(
                age, sex, beneficiary, beneficiary.share, interest_rate,
                primary_disabled=disabled
            )

        cnu = total * 12.0
        logger.debug(f"CNU age={age} sex={sex} i={interest_rate:.4f} "
                     f"disabled={disabled} dependents={len(beneficiaries or ())}: {cnu:.4f}")
        return cnu

    def single_life_cnu(self, age: int, sex: SexLike, interest_rate: float,
                        disabled: bool = False) -> float:
        """CNU of one life with no dependents."""
        return self._single_life_sum(age, sex, interest_rate, disabled) * 12.0

    def survivorship_cnu(self, weighted_dependents: Iterable[Tuple[Beneficiary, float]],
                         interest_rate: float) -> SurvivorshipCapital:
        """
        Share-weighted survivorship CNU for an already-deceased causant.

        Each dependent's individual CNU uses its own age, sex and cohort;
        no contingency on the causant applies.

        Args:
            weighted_dependents: (beneficiary, statutory share) pairs
            interest_rate: Technical interest rate

        Returns:
            SurvivorshipCapital; total is 0.0 when there are no dependents
        """
        total = 0.0
        details: List[DependentCapital] = []

        for beneficiary, share in weighted_dependents:
            individual = self.single_life_cnu(
                beneficiary.age, beneficiary.sex, interest_rate, beneficiary.is_disabled
            )
            total += individual * share
            details.append(DependentCapital(
                relationship=beneficiary.relationship,
                age=beneficiary.age,
                cnu=individual,
                share=share,
            ))

        return SurvivorshipCapital(total=total, details=tuple(details))


def create_capital_calculator(mortality: Optional[MortalityCalculator] = None) -> CapitalCalculator:
    """Factory function for the present-value engine."""
    return CapitalCalculator(mortality)


if __name__ == "__main__":
    print("=" * 60)
    print("NECESSARY UNIT CAPITAL CHECKS")
    print("=" * 60)

    calc = create_capital_calculator()

    print("\nSingle life, scheduled-withdrawal rate 3.41%")
    for age, sex in [(60, 'F'), (65, 'M'), (70, 'M'), (80, 'F')]:
        cnu = calc.calculate_cnu(age, sex, 0.0341)
        print(f"  Age {age} {sex}: CNU = {cnu:8.4f}")

    print("\nJoint extension with a spouse (60% share), annuity rate 2.79%")
    spouse = Beneficiary(age=62, sex='F', relationship=Relationship.SPOUSE)
    single = calc.calculate_cnu(65, 'M', 0.0279)
    joint = calc.calculate_cnu(65, 'M', 0.0279, [spouse])
    print(f"  Single: {single:8.4f}  Joint: {joint:8.4f}  Extension: {joint - single:8.4f}")
