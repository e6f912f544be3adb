"""
pension_valuation/financials.py - Financial Mathematics Engine

Implements the time-value-of-money primitives shared by the capital,
clause-solver and projection modules.

Mathematical Framework:
- Annual discount factors (mid-year payment timing): v^{t+0.5} = (1+i)^{-(t+0.5)}
- Monthly discount factors: (1+i)^{-m/12}
- Contingent present value: PV = Σ CF_t × S_t × v^{t+0.5}
- Balance roll-forward: B_{t+1} = max(0, (B_t - W_t) × (1+i))

Author: Actuarial Pipeline Project
License: MIT
"""

import numpy as np
from dataclasses import dataclass


@dataclass(frozen=True)
class FinancialEngine:
    """
    Discounting engine for a single technical interest rate.

    The mid-year convention (t + 0.5) models monthly payments spread across
    each policy year and must be preserved exactly in every annuity factor.

    Attributes:
        interest_rate: Annual technical interest rate (e.g. 0.0341)
    """

    interest_rate: float

    def __post_init__(self):
        if self.interest_rate <= -1.0:
            raise ValueError(f"Interest rate must exceed -100%, got {self.interest_rate:.2%}")

    def get_discount_factor(self, years: float, mid_year: bool = True) -> float:
        """
        Calculate present value discount factor.

        Formula: v^t = 1 / (1+i)^t

        Args:
            years: Number of years from the calculation date
            mid_year: If True, apply mid-year convention (t + 0.5)

        Returns:
            Discount factor
        """
        t = years + 0.5 if mid_year else years
        return float(1.0 / np.power(1.0 + self.interest_rate, t))

    def get_discount_factor_vector(self, max_years: int,
                                   mid_year: bool = True) -> np.ndarray:
        """
        Vector of annual discount factors [DF_0, DF_1, ..., DF_n].
        """
        years = np.arange(max_years + 1, dtype=np.float64)
        if mid_year:
            years = years + 0.5
        return 1.0 / np.power(1.0 + self.interest_rate, years)

    def get_monthly_discount_vector(self, months: int) -> np.ndarray:
        """
        Vector of monthly discount factors for months 1..n.

        Formula: DF_m = 1 / (1+i)^{m/12}
        """
        if months <= 0:
            return np.zeros(0)
        m = np.arange(1, months + 1, dtype=np.float64)
        return 1.0 / np.power(1.0 + self.interest_rate, m / 12.0)

    def calculate_pv(self, cash_flows: np.ndarray,
                     survival_probs: np.ndarray,
                     mid_year: bool = True) -> float:
        """
        Calculate present value of a stream of contingent cash flows.

        Formula: PV = Σ CF_t × S_t × v^{t+0.5}

        Args:
            cash_flows: Array of projected cash flows (one per year)
            survival_probs: Array of payment probabilities
            mid_year: If True, use mid-year discounting

        Returns:
            Present value of cash flow stream
        """
        discount_factors = self.get_discount_factor_vector(len(cash_flows) - 1, mid_year)
        return float(np.sum(np.asarray(cash_flows) * np.asarray(survival_probs) * discount_factors))

    def roll_forward(self, balance: float, withdrawal: float) -> float:
        """
        Balance after one year: withdraw, then compound the remainder.

        Formula: B_{t+1} = max(0, (B_t - W_t) × (1+i))
        """
        return max(0.0, (balance - withdrawal) * (1.0 + self.interest_rate))


def create_financial_engine(interest_rate: float) -> FinancialEngine:
    """Factory function for a FinancialEngine at the given rate."""
    return FinancialEngine(interest_rate=interest_rate)


# =============================================================================
# ROUNDING
# =============================================================================

def round_currency(amount: float) -> float:
    """Round half-up to whole currency units."""
    return float(np.floor(amount + 0.5))


def round_index_units(amount: float) -> float:
    """Round an index-unit (UF) amount to 4 decimals."""
    return float(np.floor(amount * 1e4 + 0.5) / 1e4)


def round_share(share: float) -> float:
    """Round a share or rate to 6 decimals."""
    return float(np.floor(share * 1e6 + 0.5) / 1e6)
