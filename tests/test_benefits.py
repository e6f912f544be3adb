"""
tests/test_benefits.py - Benefit Formula End-to-End Tests

Prices complete requests through the engine and checks each category:
1. Old age: scheduled withdrawal and the annuity family
2. Disability: statutory percentage with insurance top-up
3. Survivorship: reference pension split by statutory shares
4. Error results for requests with nobody to pay

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import pytest
from pension_valuation.engine import PensionEngine
from pension_valuation.financials import round_currency, round_index_units
from pension_valuation.results import (
    CombinedClauseResult, DisabilityResult, ErrorResult, GuaranteedAnnuityResult,
    ImmediateAnnuityResult, ScheduledWithdrawalResult, SurvivorshipResult,
    TemporaryIncreaseResult
)
from pension_valuation.scenario import InvalidScenarioError, ScenarioType


ENGINE = PensionEngine()


def request(scenario, age=65, sex='M', beneficiaries=(), **parameters):
    parameters.setdefault('accumulated_balance', 50_000_000)
    return {
        'scenario': scenario,
        'affiliate': {'age': age, 'sex': sex},
        'beneficiaries': list(beneficiaries),
        'parameters': parameters,
    }


SPOUSE = {'age': 62, 'sex': 'F', 'relationship': 'spouse'}
INCREASE_20_24 = {'months': 24, 'percent': 20, 'unit': 'percent'}


class TestOldAgeScheduledWithdrawal:
    """
    Monthly benefit = balance / CNU at the withdrawal rate (3.41%).
    """

    def test_monthly_is_balance_over_cnu(self):
        """50,000,000 at 65 (male) pays round(balance / CNU)."""
        result = ENGINE.calculate(request('old_age_scheduled_withdrawal'))
        cnu = ENGINE.capital.calculate_cnu(65, 'M', 0.0341)

        assert isinstance(result, ScheduledWithdrawalResult)
        assert result.interest_rate_used == 0.0341
        assert abs(result.necessary_unit_capital - cnu) < 1e-9
        assert result.monthly_benefit == round_currency(50_000_000 / cnu), \
            f"Expected {round_currency(50_000_000 / cnu)}, got {result.monthly_benefit}"

    def test_derived_amounts(self):
        """Annual and index-unit amounts derive from the unrounded monthly."""
        result = ENGINE.calculate(request('old_age_scheduled_withdrawal'))
        amount = 50_000_000 / ENGINE.capital.calculate_cnu(65, 'M', 0.0341)

        assert result.annual_benefit == round_currency(amount * 12)
        assert result.benefit_in_index_units == round_index_units(amount / 38500)

    def test_projection_exhausts_balance(self):
        """The projection starts at the full balance and ends empty."""
        result = ENGINE.calculate(request('old_age_scheduled_withdrawal'))

        assert result.yearly_projection[0].remaining_balance == 50_000_000
        assert result.yearly_projection[0].monthly_benefit == result.monthly_benefit
        assert result.ending_balance == 0.0

    def test_life_expectancy_reported(self):
        result = ENGINE.calculate(request('old_age_scheduled_withdrawal'))
        assert result.life_expectancy_years == ENGINE.mortality.get_life_expectancy(65, 'M')

    def test_idempotent(self):
        """The same request always gives the same result."""
        first = ENGINE.calculate(request('old_age_scheduled_withdrawal'))
        second = ENGINE.calculate(request('old_age_scheduled_withdrawal'))
        assert first == second


class TestOldAgeAnnuities:
    """
    Immediate annuity = (balance - 3% premium) / CNU at the annuity rate (2.79%),
    with clause factors applied on the rounded immediate amount.
    """

    def test_immediate_annuity(self):
        result = ENGINE.calculate(request('old_age_immediate_annuity'))
        cnu = ENGINE.capital.calculate_cnu(65, 'M', 0.0279)

        assert isinstance(result, ImmediateAnnuityResult)
        assert result.interest_rate_used == 0.0279
        assert result.premium_rate == 0.03
        assert result.monthly_benefit == round_currency((50_000_000 - 50_000_000 * 0.03) / cnu)

    def test_spouse_lowers_annuity(self):
        """Covering a spouse after death costs part of the monthly amount."""
        single = ENGINE.calculate(request('old_age_immediate_annuity'))
        joint = ENGINE.calculate(request('old_age_immediate_annuity', beneficiaries=[SPOUSE]))

        assert joint.monthly_benefit < single.monthly_benefit
        assert joint.necessary_unit_capital > single.necessary_unit_capital

    def test_guaranteed_annuity(self):
        """Ten-year guarantee applies the 0.970 factor."""
        immediate = ENGINE.calculate(request('old_age_immediate_annuity'))
        result = ENGINE.calculate(request('old_age_guaranteed_annuity', guaranteed_months=120))

        assert isinstance(result, GuaranteedAnnuityResult)
        assert result.adjustment_factor == 0.970
        assert result.monthly_benefit == round_currency(immediate.monthly_benefit * 0.970)
        assert result.label == "Annuity with 10 years guarantee"

    def test_increase_annuity(self):
        """A 20% increase for two years: increased = steady × 1.2."""
        result = ENGINE.calculate(request('old_age_increase_annuity', increase=INCREASE_20_24))
        increase = result.temporary_increase

        assert isinstance(result, TemporaryIncreaseResult)
        assert result.label == "Annuity +20% for 2 years"
        assert increase.months == 24 and increase.percent == 20
        assert increase.increased_amount > increase.steady_state_amount
        assert result.monthly_benefit == increase.increased_amount
        assert abs(increase.increased_amount - increase.steady_state_amount * 1.2) <= 2.0

    def test_increase_projection(self):
        """Two increased years, then the steady amount."""
        result = ENGINE.calculate(request('old_age_increase_annuity', increase=INCREASE_20_24))
        projection = result.yearly_projection

        assert len(projection) == 30
        assert projection[1].monthly_benefit == result.temporary_increase.increased_amount
        assert projection[2].monthly_benefit == result.temporary_increase.steady_state_amount

    def test_fraction_and_percent_units_agree(self):
        """percent=20 (percent) and percent=0.2 (fraction) price identically."""
        as_percent = ENGINE.calculate(request('old_age_increase_annuity', increase=INCREASE_20_24))
        as_fraction = ENGINE.calculate(request(
            'old_age_increase_annuity',
            increase={'months': 24, 'percent': 0.2, 'unit': 'fraction'}
        ))
        assert as_percent.monthly_benefit == as_fraction.monthly_benefit
        assert as_percent.adjustment_factor == as_fraction.adjustment_factor

    def test_combined_annuity(self):
        """Guarantee and increase together."""
        result = ENGINE.calculate(request('old_age_combined_annuity', guaranteed_months=120,
                                          increase=INCREASE_20_24))

        assert isinstance(result, CombinedClauseResult)
        assert result.guaranteed_months == 120
        assert result.guarantee_factor == 0.970
        assert result.adjustment_factor < 0.970
        assert result.label == "Annuity +20% for 2 years + 10 years guarantee"

    def test_increase_without_clause_rejected(self):
        """Increase modalities need an increase clause."""
        with pytest.raises(InvalidScenarioError):
            ENGINE.calculate(request('old_age_increase_annuity'))

    def test_early_retirement_note(self):
        """A 55-year-old woman is flagged as retiring early."""
        result = ENGINE.calculate(request('old_age_immediate_annuity', age=55, sex='F'))
        assert "Early retirement: legal retirement age is 60" in result.advisory_notes

    def test_explicit_rate_overrides_default(self):
        result = ENGINE.calculate(request('old_age_immediate_annuity', interest_rate=0.035))
        assert result.interest_rate_used == 0.035


class TestDisability:
    """
    Statutory disability pension on the disabled-lives tables.

    Insured: pay income_base × degree %; the insurer covers any shortfall.
    Uninsured: balance / CNU.
    """

    def test_insured_shortfall_covered(self):
        """Small balance, total disability: the 70% reference is paid."""
        result = ENGINE.calculate(request('disability', age=45, accumulated_balance=10_000_000,
                                          income_base=800_000))

        assert isinstance(result, DisabilityResult)
        assert result.monthly_benefit == 560000, f"Got {result.monthly_benefit}"
        assert result.reference_amount == 560000
        assert result.insurance_shortfall > 0
        assert result.is_subsidized
        assert result.label == "Disability pension, Total (70%)"

    def test_shortfall_amount(self):
        """Shortfall = reference × CNU - balance."""
        result = ENGINE.calculate(request('disability', age=45, accumulated_balance=10_000_000,
                                          income_base=800_000))
        expected = round_currency(560000 * result.necessary_unit_capital - 10_000_000)
        assert abs(result.insurance_shortfall - expected) <= 1.0

    def test_large_balance_self_funds(self):
        """A balance above reference × CNU pays balance / CNU."""
        result = ENGINE.calculate(request('disability', age=45, accumulated_balance=1_000_000_000,
                                          income_base=800_000))
        cnu = ENGINE.capital.calculate_cnu(45, 'M', 0.0296, disabled=True)

        assert result.insurance_shortfall == 0
        assert not result.is_subsidized
        assert result.monthly_benefit == round_currency(1_000_000_000 / cnu)

    def test_uninsured(self):
        """Without insurance the balance alone funds the benefit."""
        result = ENGINE.calculate(request('disability', age=45, accumulated_balance=10_000_000,
                                          income_base=800_000, insured=False))
        cnu = ENGINE.capital.calculate_cnu(45, 'M', 0.0296, disabled=True)

        assert result.monthly_benefit == round_currency(10_000_000 / cnu)
        assert result.insurance_shortfall == 0

    def test_degree_percentages(self):
        """Total 2/3 pays 50% of the income base."""
        result = ENGINE.calculate(request('disability', age=45, accumulated_balance=0,
                                          income_base=1_000_000,
                                          disability_degree='total_2_3'))
        assert result.reference_amount == 500000
        assert result.disability_pct == 0.50

    def test_default_income_base(self):
        """A missing income base falls back to the configured default."""
        result = ENGINE.calculate(request('disability', age=45, accumulated_balance=0))
        assert result.income_base == 800000

    def test_disabled_life_expectancy(self):
        """Life expectancy comes from the disabled-lives table."""
        result = ENGINE.calculate(request('disability', age=45, accumulated_balance=10_000_000))
        assert result.life_expectancy_years == ENGINE.mortality.get_life_expectancy(45, 'M', True)

    def test_disability_annuity_rate_and_label(self):
        result = ENGINE.calculate(request('disability_immediate_annuity', age=50))

        assert result.interest_rate_used == 0.0296
        assert result.label == "Disability immediate life annuity"
        assert any("I-H-2020" in note for note in result.advisory_notes)

    def test_past_disabled_horizon(self):
        """Beyond the disabled table the CNU is zero and an error result is returned."""
        result = ENGINE.calculate(request('disability', age=85))

        assert isinstance(result, ErrorResult)
        assert result.monthly_benefit == 0


class TestSurvivorship:
    """
    Survivor pension = causant reference pension × statutory shares.
    """

    def test_spouse_receives_sixty_percent(self):
        """Reference 70% × 1,000,000 = 700,000; spouse alone gets 420,000."""
        result = ENGINE.calculate(request('survivorship', age=70, beneficiaries=[SPOUSE],
                                          causant_income_base=1_000_000))

        assert isinstance(result, SurvivorshipResult)
        assert result.reference_pension == 700000
        assert result.monthly_benefit == 420000, f"Got {result.monthly_benefit}"
        assert result.beneficiary_breakdown[0].monthly_amount == 420000
        assert result.beneficiary_breakdown[0].share_pct == 0.6

    def test_explicit_reference_pension(self):
        """An explicit causant pension takes precedence."""
        result = ENGINE.calculate(request(
            'survivorship', beneficiaries=[SPOUSE, {'age': 10, 'sex': 'M', 'relationship': 'child'}],
            causant_reference_pension=1_000_000, causant_income_base=5_000_000
        ))
        amounts = [b.monthly_amount for b in result.beneficiary_breakdown]

        assert result.reference_pension == 1_000_000
        assert amounts == [500000, 150000]
        assert result.monthly_benefit == 650000

    def test_reference_from_balance(self):
        """Without income data the reference is the causant's balance / CNU."""
        result = ENGINE.calculate(request('survivorship', age=70, beneficiaries=[SPOUSE],
                                          insured=False))
        cnu = ENGINE.capital.calculate_cnu(70, 'M', 0.0279)
        assert result.reference_pension == round_currency(50_000_000 / cnu)

    def test_no_beneficiaries(self):
        """Nobody eligible gives an error result, not an exception."""
        result = ENGINE.calculate(request('survivorship', causant_income_base=1_000_000))

        assert isinstance(result, ErrorResult)
        assert result.is_error
        assert result.monthly_benefit == 0
        assert result.scenario is ScenarioType.SURVIVORSHIP
        assert result.advisory_notes

    def test_clause_without_beneficiaries(self):
        """Clause modalities return the error result unchanged."""
        result = ENGINE.calculate(request('survivorship_guaranteed_annuity', guaranteed_months=120))

        assert isinstance(result, ErrorResult)
        assert result.scenario is ScenarioType.SURVIVORSHIP_GUARANTEED_ANNUITY

    def test_immediate_annuity_uses_survivorship_cnu(self):
        """(balance - premium) / (0.6 × CNU of the spouse)."""
        result = ENGINE.calculate(request('survivorship_immediate_annuity', beneficiaries=[SPOUSE]))
        cnu = 0.6 * ENGINE.capital.single_life_cnu(62, 'F', 0.0279)

        assert abs(result.necessary_unit_capital - cnu) < 1e-9
        assert result.monthly_benefit == round_currency((50_000_000 - 50_000_000 * 0.03) / cnu)
        assert result.label == "Survivorship immediate life annuity"

    def test_options(self):
        """Options entry point returns withdrawal and annuity side by side."""
        results = ENGINE.calculate(request('survivorship_options', beneficiaries=[SPOUSE]))

        assert isinstance(results, list) and len(results) == 2
        assert results[0].scenario is ScenarioType.SURVIVORSHIP_SCHEDULED_WITHDRAWAL
        assert results[1].scenario is ScenarioType.SURVIVORSHIP_IMMEDIATE_ANNUITY
        assert results[0].interest_rate_used == 0.0341
        assert results[1].interest_rate_used == 0.0279

    def test_options_without_beneficiaries(self):
        results = ENGINE.calculate(request('survivorship_options'))

        assert len(results) == 1
        assert results[0].is_error

    def test_withdrawal_projection_follows_spouse(self):
        result = ENGINE.calculate(request('survivorship_scheduled_withdrawal', beneficiaries=[SPOUSE]))

        assert result.yearly_projection[0].age == 62
        assert result.yearly_projection[0].remaining_balance == 50_000_000

    def test_statutory_past_table_horizon(self):
        """A sole dependent beyond the table has no unit capital: error result, not a benefit."""
        father = {'age': 112, 'sex': 'M', 'relationship': 'father'}
        statutory = ENGINE.calculate(request('survivorship', beneficiaries=[father],
                                             causant_income_base=1_000_000))
        annuity = ENGINE.calculate(request('survivorship_immediate_annuity', beneficiaries=[father],
                                           causant_income_base=1_000_000))

        assert isinstance(statutory, ErrorResult), \
            f"Expected ErrorResult, got {type(statutory).__name__} paying {statutory.monthly_benefit}"
        assert statutory.is_error
        assert statutory.monthly_benefit == 0
        assert statutory.scenario is ScenarioType.SURVIVORSHIP
        assert isinstance(annuity, ErrorResult)


class TestSurvivorshipReferencePension:
    """
    Only the statutory pension requires an insured causant before the
    income base sets the reference; priced options use it whenever given.
    """

    def test_uninsured_annuity_uses_income_base(self):
        result = ENGINE.calculate(request('survivorship_immediate_annuity', beneficiaries=[SPOUSE],
                                          causant_income_base=1_000_000, insured=False))

        assert result.reference_pension == 700000, f"Got {result.reference_pension}"

    def test_uninsured_options_use_income_base(self):
        results = ENGINE.calculate(request('survivorship_options', beneficiaries=[SPOUSE],
                                           causant_income_base=1_000_000, insured=False))

        assert [r.reference_pension for r in results] == [700000, 700000]

    def test_uninsured_statutory_ignores_income_base(self):
        result = ENGINE.calculate(request('survivorship', age=70, beneficiaries=[SPOUSE],
                                          causant_income_base=1_000_000, insured=False))
        cnu = ENGINE.capital.calculate_cnu(70, 'M', 0.0279)

        assert result.reference_pension == round_currency(50_000_000 / cnu)


class TestSurvivorLifeExpectancy:
    """
    Priced options report the first eligible dependent's expectancy;
    the statutory pension reports the mean over all dependents.
    """

    FAMILY = [SPOUSE, {'age': 10, 'sex': 'M', 'relationship': 'child'}]

    def test_options_follow_first_dependent(self):
        spouse = ENGINE.mortality.get_life_expectancy(62, 'F')
        for scenario in ('survivorship_immediate_annuity', 'survivorship_scheduled_withdrawal'):
            result = ENGINE.calculate(request(scenario, beneficiaries=self.FAMILY))
            assert abs(result.life_expectancy_years - spouse) < 1e-9, \
                f"{scenario}: {result.life_expectancy_years} vs {spouse}"

    def test_statutory_uses_mean(self):
        expected = (ENGINE.mortality.get_life_expectancy(62, 'F')
                    + ENGINE.mortality.get_life_expectancy(10, 'M')) / 2
        result = ENGINE.calculate(request('survivorship', beneficiaries=self.FAMILY,
                                          causant_income_base=1_000_000))

        assert abs(result.life_expectancy_years - expected) < 1e-9


class TestUnusualRateWarning:
    """
    An out-of-range technical rate is logged once per priced request,
    not once per unit-capital evaluation.
    """

    def test_warned_once_per_request(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pension_valuation"):
            ENGINE.calculate(request('old_age_scheduled_withdrawal', interest_rate=0.25))

        warnings = [r for r in caplog.records if "Unusual interest rate" in r.getMessage()]
        assert len(warnings) == 1, f"Got {len(warnings)} warnings"

    def test_configured_rates_are_quiet(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pension_valuation"):
            ENGINE.calculate(request('old_age_scheduled_withdrawal'))

        assert not any("Unusual interest rate" in r.getMessage() for r in caplog.records)



class TestResultSerialization:
    """
    Plain-data view of results for collaborators.
    """

    def test_to_dict(self):
        result = ENGINE.calculate(request('old_age_guaranteed_annuity', guaranteed_months=60))
        data = result.to_dict()

        assert data['kind'] == 'guaranteed_annuity'
        assert data['scenario'] == 'old_age_guaranteed_annuity'
        assert data['is_error'] is False
        assert data['guaranteed_months'] == 60

    def test_error_to_dict(self):
        data = ENGINE.calculate(request('survivorship')).to_dict()

        assert data['kind'] == 'error'
        assert data['is_error'] is True
        assert data['monthly_benefit'] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
