"""
tests/test_capital.py - Necessary Unit Capital Tests

Validates the CNU engine:
1. Single-life CNU positivity and its terminal-age value
2. Joint extension for dependents against a brute-force year loop
3. Survivorship CNU as the share-weighted sum of individual CNUs
4. Degenerate inputs (ages past the horizon, empty dependent lists)

Author: Actuarial Pipeline Project
License: MIT
"""

import pytest
import numpy as np
from pension_valuation.capital import CapitalCalculator, create_capital_calculator
from pension_valuation.distribution import allocate_shares
from pension_valuation.mortality import create_mortality_calculator
from pension_valuation.scenario import Beneficiary, Relationship


def spouse(age=62, sex='F', share=None):
    return Beneficiary(age=age, sex=sex, relationship=Relationship.SPOUSE,
                       assigned_share_pct=share)


class TestSingleLifeCNU:
    """
    CNU = 12 × Σ tPx × (1+i)^-(t+0.5)
    """

    def test_positive_over_domain(self):
        """CNU is strictly positive at every age of the general tables."""
        capital = create_capital_calculator()
        for sex in ('M', 'F'):
            for age in range(0, 111, 5):
                cnu = capital.calculate_cnu(age, sex, 0.0341)
                assert cnu > 0, f"CNU({age}, {sex}) = {cnu}"

    def test_terminal_age_single_payment(self):
        """At the terminal age only the first half-year-discounted year remains."""
        capital = create_capital_calculator()
        cnu = capital.calculate_cnu(110, 'M', 0.0341)
        expected = 12.0 / (1.0341 ** 0.5)

        assert abs(cnu - expected) < 1e-9, \
            f"Expected CNU(110) = {expected:.6f}, got {cnu:.6f}"

    def test_past_horizon_is_zero(self):
        """Disabled lives past 81 carry no capital."""
        capital = create_capital_calculator()
        assert capital.calculate_cnu(85, 'M', 0.0296, disabled=True) == 0.0
        assert capital.calculate_cnu(81, 'M', 0.0296, disabled=True) > 0.0

    def test_decreases_with_age(self):
        """Older lives need less capital per unit of benefit."""
        capital = create_capital_calculator()
        cnus = [capital.calculate_cnu(age, 'F', 0.0279) for age in range(40, 100, 5)]
        assert all(a > b for a, b in zip(cnus, cnus[1:])), \
            f"CNU not decreasing with age: {cnus}"

    def test_higher_rate_lowers_capital(self):
        """Discounting at a higher rate shrinks the CNU."""
        capital = create_capital_calculator()
        low = capital.calculate_cnu(65, 'M', 0.02)
        high = capital.calculate_cnu(65, 'M', 0.05)
        assert high < low, f"CNU at 5% ({high:.2f}) not below CNU at 2% ({low:.2f})"

    def test_manual_summation(self):
        """Vectorized CNU matches an explicit year loop."""
        capital = create_capital_calculator()
        mortality = capital.mortality
        rate = 0.0341

        manual = 0.0
        base = mortality.survival_count(70, 'M')
        for t in range(0, 111 - 70):
            tpx = mortality.survival_count(70 + t, 'M') / base
            manual += tpx * (1 + rate) ** -(t + 0.5)
        manual *= 12.0

        cnu = capital.single_life_cnu(70, 'M', rate)
        assert abs(cnu - manual) < 1e-8, f"Expected {manual:.8f}, got {cnu:.8f}"


class TestJointExtension:
    """
    Dependents add 12 × Σ (1 - tPx) × tPy × v^(t+0.5) × share each.
    """

    def test_dependent_increases_cnu(self):
        """Covering a spouse costs more than the single life."""
        capital = create_capital_calculator()
        single = capital.calculate_cnu(65, 'M', 0.0279)
        joint = capital.calculate_cnu(65, 'M', 0.0279, [spouse()])

        assert joint > single, f"Joint {joint:.2f} not above single {single:.2f}"

    def test_larger_share_costs_more(self):
        """The extension scales linearly with the dependent's share."""
        capital = create_capital_calculator()
        single = capital.calculate_cnu(65, 'M', 0.0279)
        half = capital.calculate_cnu(65, 'M', 0.0279, [spouse(share=0.3)]) - single
        full = capital.calculate_cnu(65, 'M', 0.0279, [spouse(share=0.6)]) - single

        assert abs(full - 2 * half) < 1e-9, \
            f"Extension not linear in share: {half:.6f} vs {full:.6f}"

    def test_default_share_by_relationship(self):
        """An unassigned spouse weighs 60% in the extension."""
        capital = create_capital_calculator()
        default = capital.calculate_cnu(65, 'M', 0.0279, [spouse()])
        explicit = capital.calculate_cnu(65, 'M', 0.0279, [spouse(share=0.6)])
        assert abs(default - explicit) < 1e-12

    def test_brute_force_joint_factor(self):
        """Joint factor matches a year-by-year loop over both lives."""
        capital = create_capital_calculator()
        mortality = capital.mortality
        rate = 0.0279
        dependent = spouse(age=60)

        horizon = max(110 - 65, 110 - 60)
        manual = 0.0
        for t in range(horizon + 1):
            primary_alive = mortality.survival_count(65 + t, 'M') / mortality.survival_count(65, 'M')
            dependent_alive = mortality.survival_count(60 + t, 'F') / mortality.survival_count(60, 'F')
            manual += (1 - primary_alive) * dependent_alive * (1 + rate) ** -(t + 0.5) * 0.6

        factor = capital.joint_survivor_factor(65, 'M', dependent, 0.6, rate)
        assert abs(factor - manual) < 1e-9, f"Expected {manual:.8f}, got {factor:.8f}"

    def test_disabled_dependent_uses_own_table(self):
        """A disabled child is priced on the disabled-lives table."""
        capital = create_capital_calculator()
        healthy = Beneficiary(age=30, sex='M', relationship=Relationship.CHILD)
        disabled = Beneficiary(age=30, sex='M', relationship=Relationship.CHILD, is_disabled=True)

        healthy_factor = capital.joint_survivor_factor(65, 'F', healthy, 0.15, 0.0279)
        disabled_factor = capital.joint_survivor_factor(65, 'F', disabled, 0.15, 0.0279)
        assert disabled_factor < healthy_factor, \
            f"Disabled dependent ({disabled_factor:.4f}) not cheaper than healthy ({healthy_factor:.4f})"


class TestSurvivorshipCNU:
    """
    Survivorship CNU = Σ CNU_single(y_d) × share_d
    """

    def test_single_spouse(self):
        """One spouse: 60% of the spouse's own CNU."""
        capital = create_capital_calculator()
        widow = spouse(age=58)
        distribution = allocate_shares([widow])

        result = capital.survivorship_cnu(distribution.weighted_dependents(), 0.0279)
        expected = 0.6 * capital.single_life_cnu(58, 'F', 0.0279)

        assert abs(result.total - expected) < 1e-9, \
            f"Expected {expected:.6f}, got {result.total:.6f}"
        assert len(result.details) == 1
        assert result.details[0].share == 0.6

    def test_weighted_sum(self):
        """Spouse and two children sum their weighted individual CNUs."""
        capital = create_capital_calculator()
        beneficiaries = [
            spouse(age=50),
            Beneficiary(age=15, sex='M', relationship=Relationship.CHILD),
            Beneficiary(age=12, sex='F', relationship=Relationship.CHILD),
        ]
        distribution = allocate_shares(beneficiaries)
        result = capital.survivorship_cnu(distribution.weighted_dependents(), 0.0279)

        expected = (0.50 * capital.single_life_cnu(50, 'F', 0.0279)
                    + 0.15 * capital.single_life_cnu(15, 'M', 0.0279)
                    + 0.15 * capital.single_life_cnu(12, 'F', 0.0279))
        assert abs(result.total - expected) < 1e-9, \
            f"Expected {expected:.6f}, got {result.total:.6f}"

    def test_empty_is_degenerate(self):
        """No dependents yields a zero, degenerate capital."""
        capital = CapitalCalculator(create_mortality_calculator())
        result = capital.survivorship_cnu([], 0.0279)

        assert result.total == 0.0
        assert result.is_degenerate
        assert result.details == ()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
