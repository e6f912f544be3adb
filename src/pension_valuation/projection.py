"""
pension_valuation/projection.py - Yearly Benefit Projections

Year-by-year benefit trajectories for the modalities whose payment changes
over time (or that the caller wants to chart).

Mathematical Framework:
- Scheduled withdrawal, recomputed each year at the attained age:
    W_t = B_t / CNU(x+t) × 12
    B_{t+1} = max(0, (B_t - W_t) × (1+i))
  stopping once the balance is exhausted.
- Temporary increase: the increased amount for the first ⌈n/12⌉ years,
  the steady-state amount afterwards (presentation only; no re-solve).
- Level benefit: constant monthly amount with cumulative payments.

Every call builds a fresh sequence; nothing is cached across calls.

Author: Actuarial Pipeline Project
License: MIT
"""

import math
from typing import List, Tuple
from dataclasses import dataclass
import logging

from .capital import CapitalCalculator
from .distribution import Distribution
from .financials import FinancialEngine, round_currency
from .mortality import SexLike
from .results import ProjectionPhase, ProjectionPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Projection:
    """Projected trajectory plus the balance left after the last modeled year."""
    points: Tuple[ProjectionPoint, ...]
    ending_balance: float

    @property
    def exhausted(self) -> bool:
        return self.ending_balance <= 0.0


def _withdrawal_point(year: int, age: int, balance: float, annual: float,
                      cumulative: float) -> ProjectionPoint:
    return ProjectionPoint(
        year_index=year + 1,
        age=age,
        monthly_benefit=round_currency(annual / 12.0),
        remaining_balance=round_currency(balance),
        cumulative_withdrawn=round_currency(cumulative),
        phase=ProjectionPhase.DECLINING,
    )


def project_scheduled_withdrawal(capital: CapitalCalculator, balance: float,
                                 age: int, sex: SexLike, interest_rate: float,
                                 horizon_years: int = 45,
                                 disabled: bool = False) -> Projection:
    """
    Declining-balance withdrawal for a single life.

    Args:
        capital: Present-value engine
        balance: Starting balance (first point's remaining_balance)
        age: Age at the start of the first year
        sex: 'M' or 'F'
        interest_rate: Withdrawal interest rate
        horizon_years: Year cap; the mortality horizon applies if sooner
        disabled: If True, CNU uses the disabled-lives table

    Returns:
        Projection with one point per modeled year
    """
    financial = FinancialEngine(interest_rate)
    max_age = capital.mortality.max_age(sex, disabled)
    last_year = min(horizon_years, max_age - age)

    points: List[ProjectionPoint] = []
    remaining = balance
    cumulative = 0.0

    for year in range(last_year + 1):
        attained = age + year
        cnu = capital.single_life_cnu(attained, sex, interest_rate, disabled)
        if cnu <= 0:
            break

        annual = remaining / cnu * 12.0
        points.append(_withdrawal_point(year, attained, remaining, annual, cumulative))

        remaining = financial.roll_forward(remaining, annual)
        cumulative += annual
        if remaining <= 0:
            break

    logger.debug(f"Scheduled withdrawal projection: {len(points)} years, "
                 f"ending balance {remaining:,.0f}")
    return Projection(points=tuple(points), ending_balance=remaining)


def project_survivorship_withdrawal(capital: CapitalCalculator, balance: float,
                                    distribution: Distribution, interest_rate: float,
                                    horizon_years: int = 30) -> Projection:
    """
    Declining-balance withdrawal shared by the survivors.

    The survivorship CNU is recomputed every year with each dependent one
    year older. Point ages follow the first eligible dependent.
    """
    financial = FinancialEngine(interest_rate)
    if distribution.is_empty:
        return Projection(points=(), ending_balance=balance)

    lead_age = distribution.shares[0].beneficiary.age
    points: List[ProjectionPoint] = []
    remaining = balance
    cumulative = 0.0

    for year in range(horizon_years + 1):
        aged = distribution.aged(year)
        cnu = capital.survivorship_cnu(aged.weighted_dependents(), interest_rate).total
        if cnu <= 0:
            break

        annual = remaining / cnu * 12.0
        points.append(_withdrawal_point(year, lead_age + year, remaining, annual, cumulative))

        remaining = financial.roll_forward(remaining, annual)
        cumulative += annual
        if remaining <= 0:
            break

    return Projection(points=tuple(points), ending_balance=remaining)


def project_temporary_increase(age: int, increased_monthly: float,
                               steady_monthly: float, increase_months: int,
                               horizon_years: int = 30) -> Tuple[ProjectionPoint, ...]:
    """
    Two-phase annuity trajectory: increased amount while within the clause,
    steady-state amount afterwards.
    """
    increase_years = math.ceil(increase_months / 12)
    increased = round_currency(increased_monthly)
    steady = round_currency(steady_monthly)

    return tuple(
        ProjectionPoint(
            year_index=year + 1,
            age=age + year,
            monthly_benefit=increased if year < increase_years else steady,
            remaining_balance=0.0,
            cumulative_withdrawn=0.0,
            phase=ProjectionPhase.INCREASE if year < increase_years else ProjectionPhase.STEADY,
        )
        for year in range(max(0, horizon_years))
    )


def project_level_benefit(age: int, monthly: float,
                          horizon_years: int) -> Tuple[ProjectionPoint, ...]:
    """Constant monthly benefit with cumulative payments by year."""
    return tuple(
        ProjectionPoint(
            year_index=year + 1,
            age=age + year,
            monthly_benefit=round_currency(monthly),
            remaining_balance=0.0,
            cumulative_withdrawn=round_currency(monthly * 12.0 * (year + 1)),
            phase=ProjectionPhase.STEADY,
        )
        for year in range(max(0, horizon_years))
    )
