"""
pension_valuation/adjustments.py - Benefit-Adjustment Solvers

Scalar reduction factors for the contractual clauses an annuity can carry.

Mathematical Framework:
- Guaranteed period: piecewise-linear table of (months → factor)
    f(m) = f_lo + (f_hi - f_lo) × (m - m_lo) / (m_hi - m_lo)
- Temporary increase: cost of paying the increment for n months
    C = Σ_{m=1}^{n} (P × pct) × (1+i)^{-m/12}
  Reduction factor k = max(1 - C / (B × (1 - premium)), 0.50)
- Combined clause: guarantee first, then the increase cost on the
  already-reduced base
    k = max(f(m) - C' / (B × (1 - premium)), 0.45)

Floors are a conservative cap: an unaffordable increase never takes the
steady-state benefit below the floor share of the base annuity.

Author: Actuarial Pipeline Project
License: MIT
"""

import numpy as np
from typing import Tuple
from types import MappingProxyType
from dataclasses import dataclass
import logging

from .financials import FinancialEngine

logger = logging.getLogger(__name__)


# Guaranteed-period reduction factors (months → factor)
GUARANTEED_PERIOD_FACTORS = MappingProxyType({
    0: 1.000,
    60: 0.985,
    120: 0.970,
    180: 0.950,
    240: 0.925,
    300: 0.900,
    360: 0.875,
})

_GUARANTEE_MONTHS = np.array(sorted(GUARANTEED_PERIOD_FACTORS), dtype=np.float64)
_GUARANTEE_FACTORS = np.array([GUARANTEED_PERIOD_FACTORS[m] for m in sorted(GUARANTEED_PERIOD_FACTORS)])

DEFAULT_PREMIUM_RATE = 0.03
INCREASE_FLOOR = 0.50
COMBINED_FLOOR = 0.45


def guaranteed_period_factor(months: float) -> float:
    """
    Reduction factor for a guaranteed payment period.

    Breakpoints return the table value exactly; months between breakpoints
    interpolate linearly; ≤0 months → 1.0; at/above the last breakpoint
    the last factor applies.
    """
    if months <= _GUARANTEE_MONTHS[0]:
        return 1.0
    if months >= _GUARANTEE_MONTHS[-1]:
        return float(_GUARANTEE_FACTORS[-1])

    hi = int(np.searchsorted(_GUARANTEE_MONTHS, months, side='left'))
    if _GUARANTEE_MONTHS[hi] == months:
        return float(_GUARANTEE_FACTORS[hi])

    lo = hi - 1
    m_lo, m_hi = _GUARANTEE_MONTHS[lo], _GUARANTEE_MONTHS[hi]
    f_lo, f_hi = _GUARANTEE_FACTORS[lo], _GUARANTEE_FACTORS[hi]
    return float(f_lo + (f_hi - f_lo) * (months - m_lo) / (m_hi - m_lo))


def increase_cost(monthly_base: float, increase_fraction: float, months: int,
                  interest_rate: float) -> float:
    """
    Present value of paying monthly_base × increase_fraction for `months`
    months, discounted month by month at (1+i)^{-m/12}.
    """
    increment = monthly_base * increase_fraction
    discount = FinancialEngine(interest_rate).get_monthly_discount_vector(months)
    return float(np.sum(increment * discount))


def _cost_ratio(cost: float, balance: float, premium_rate: float) -> float:
    fundable = balance * (1.0 - premium_rate)
    if fundable <= 0:
        return 0.0
    return cost / fundable


@dataclass(frozen=True)
class ClauseAdjustment:
    """
    Solved clause: applied factor plus the resulting benefit levels.

    Attributes:
        factor: Factor applied to the base annuity (after the floor)
        raw_factor: Factor before the floor
        floor_applied: True when the floor was binding
        guarantee_factor: Guaranteed-period factor folded into `factor`
        increase_cost: Present value of the increment
        steady_amount: Base annuity × factor (unrounded)
        increased_amount: steady_amount × (1 + pct), 0 without an increase
    """
    factor: float
    raw_factor: float
    floor_applied: bool
    guarantee_factor: float
    increase_cost: float
    steady_amount: float
    increased_amount: float


def solve_guaranteed_period(monthly_base: float, months: int) -> ClauseAdjustment:
    """Guaranteed-period clause alone: a table factor, never floored."""
    factor = guaranteed_period_factor(months)
    return ClauseAdjustment(
        factor=factor,
        raw_factor=factor,
        floor_applied=False,
        guarantee_factor=factor,
        increase_cost=0.0,
        steady_amount=monthly_base * factor,
        increased_amount=0.0,
    )


def solve_temporary_increase(monthly_base: float, balance: float,
                             increase_fraction: float, months: int,
                             interest_rate: float,
                             premium_rate: float = DEFAULT_PREMIUM_RATE,
                             floor: float = INCREASE_FLOOR) -> ClauseAdjustment:
    """
    Temporary-increase clause funded by lowering the steady-state benefit.

    Args:
        monthly_base: Unadjusted immediate-annuity monthly amount
        balance: Accumulated balance funding the annuity
        increase_fraction: Increase as a fraction (0.20 = +20%)
        months: Duration of the increase
        interest_rate: Annuity interest rate
        premium_rate: Insurance premium deducted from the balance
        floor: Minimum reduction factor

    Returns:
        ClauseAdjustment with steady and increased amounts
    """
    cost = increase_cost(monthly_base, increase_fraction, months, interest_rate)
    raw_factor = 1.0 - _cost_ratio(cost, balance, premium_rate)
    factor = max(raw_factor, floor)

    if factor > raw_factor:
        logger.warning(f"Increase of {increase_fraction:.0%} for {months} months not affordable; "
                       f"floor {floor:.2f} applied (raw factor {raw_factor:.4f})")

    steady = monthly_base * factor
    return ClauseAdjustment(
        factor=factor,
        raw_factor=raw_factor,
        floor_applied=factor > raw_factor,
        guarantee_factor=1.0,
        increase_cost=cost,
        steady_amount=steady,
        increased_amount=steady * (1.0 + increase_fraction),
    )


def solve_combined_clause(monthly_base: float, balance: float,
                          guaranteed_months: int, increase_fraction: float,
                          increase_months: int, interest_rate: float,
                          premium_rate: float = DEFAULT_PREMIUM_RATE,
                          floor: float = COMBINED_FLOOR) -> ClauseAdjustment:
    """
    Guaranteed period plus temporary increase.

    The guaranteed-period factor is applied first; the increase cost is
    then computed against the already-reduced base and subtracted from it.
    """
    guarantee = guaranteed_period_factor(guaranteed_months)
    reduced_base = monthly_base * guarantee

    cost = increase_cost(reduced_base, increase_fraction, increase_months, interest_rate)
    raw_factor = guarantee - _cost_ratio(cost, balance, premium_rate)
    factor = max(raw_factor, floor)

    if factor > raw_factor:
        logger.warning(f"Combined clause not affordable; floor {floor:.2f} applied "
                       f"(raw factor {raw_factor:.4f})")

    steady = monthly_base * factor
    return ClauseAdjustment(
        factor=factor,
        raw_factor=raw_factor,
        floor_applied=factor > raw_factor,
        guarantee_factor=guarantee,
        increase_cost=cost,
        steady_amount=steady,
        increased_amount=steady * (1.0 + increase_fraction),
    )


def describe_months(months: int) -> str:
    """Render a month count as years and months ('10 years', '1 year 6 months')."""
    years, rest = divmod(int(months), 12)
    parts = []
    if years:
        parts.append(f"{years} year{'s' if years != 1 else ''}")
    if rest or not years:
        parts.append(f"{rest} month{'s' if rest != 1 else ''}")
    return " ".join(parts)


def supported_guarantee_months() -> Tuple[int, ...]:
    """Guaranteed-period lengths offered to callers (positive breakpoints)."""
    return tuple(m for m in GUARANTEED_PERIOD_FACTORS if m > 0)
