"""
pension_valuation/benefits.py - Benefit Formula Library

One method per (category × modality). Each combines the present-value
engine, the clause solvers and the survivor distribution into a final
monthly benefit and returns an immutable result variant.

Structure shared by every formula:
1. Resolve the mortality cohort (disabled tables for disability benefits)
2. Compute the base CNU
3. Apply the modality rule:
   - Scheduled withdrawal: balance / CNU, re-solved yearly in the projection
   - Immediate annuity: (balance - premium) / CNU
   - Guaranteed / increase / combined: clause factors on the rounded
     immediate-annuity amount
4. Disability: statutory percentage of the income base, with the insurer
   covering any shortfall when insured
5. Survivorship: statutory shares applied to the causant reference pension

Insufficient beneficiaries and non-positive CNU return an ErrorResult
instead of raising.

Author: Actuarial Pipeline Project
License: MIT
"""

import numpy as np
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
import logging

from .adjustments import (
    ClauseAdjustment, describe_months, solve_combined_clause,
    solve_guaranteed_period, solve_temporary_increase,
)
from .capital import CapitalCalculator
from .distribution import Distribution, allocate_shares
from .financials import round_currency, round_index_units, round_share
from .plan_config import EngineConfig
from .projection import (
    project_level_benefit, project_scheduled_withdrawal,
    project_survivorship_withdrawal, project_temporary_increase,
)
from .reporting import format_currency, format_percent
from .results import (
    BeneficiaryBenefit, CombinedClauseResult, DisabilityResult, ErrorResult,
    GuaranteedAnnuityResult, ImmediateAnnuityResult, ScenarioResult,
    ScheduledWithdrawalResult, SurvivorshipResult, TemporaryIncrease,
    TemporaryIncreaseResult, error_result,
)
from .scenario import (
    Beneficiary, Category, DisabilityDegree, InvalidScenarioError, Modality,
    Person, ScenarioParameters, ScenarioType, TemporaryIncreaseClause,
)

logger = logging.getLogger(__name__)

# Technical rates at or above this are logged as unusual
UNUSUAL_RATE = 0.20

Beneficiaries = Sequence[Beneficiary]
Outcome = Union[ScenarioResult, List[ScenarioResult]]

DISABILITY_DEGREE_LABELS = {
    DisabilityDegree.TOTAL: "Total",
    DisabilityDegree.TOTAL_TWO_THIRDS: "Total 2/3",
    DisabilityDegree.PARTIAL: "Partial",
}

SURVIVOR_DISTRIBUTION_NOTE = "Distributed by statutory survivor shares"


@dataclass(frozen=True)
class AnnuityBase:
    """
    Immediate-annuity pricing that the clause formulas build on.

    Attributes:
        scenario: Scenario tag of the result being produced
        cnu: Necessary unit capital
        amount: Unrounded immediate-annuity monthly amount
        interest_rate: Rate used for the CNU and clause costs
        life_expectancy: Reported life expectancy
        balance: Accumulated balance
        start_age: Age of the first projected year
        horizon_years: Years in clause projections
        distribution: Survivor shares (survivorship only)
        reference_pension: Causant reference pension (survivorship only)
    """
    scenario: ScenarioType
    cnu: float
    amount: float
    interest_rate: float
    life_expectancy: float
    balance: float
    start_age: int
    horizon_years: int
    distribution: Optional[Distribution] = None
    reference_pension: Optional[float] = None

    @property
    def rounded_amount(self) -> float:
        return round_currency(self.amount)


def require_increase(params: ScenarioParameters) -> TemporaryIncreaseClause:
    """Increase clause of the request, rejecting requests that omit it."""
    if params.increase is None:
        raise InvalidScenarioError("Increase modalities require an increase clause (months, percent, unit)")
    return params.increase


# =============================================================================
# SHARED FORMULA MACHINERY
# =============================================================================

class BenefitCalculator:
    """
    Formulas common to every category.

    Subclasses set the category, the mortality cohort and the label prefix.
    """

    category: Category = Category.OLD_AGE
    disabled: bool = False
    label_prefix: str = ""

    def __init__(self, config: EngineConfig, capital: CapitalCalculator):
        self.config = config
        self.capital = capital
        self.mortality = capital.mortality

    # -- dispatch ----------------------------------------------------------

    def handlers(self) -> Dict[Modality, Callable[[Person, Beneficiaries, ScenarioParameters], Outcome]]:
        return {
            Modality.SCHEDULED_WITHDRAWAL: self.scheduled_withdrawal,
            Modality.IMMEDIATE_ANNUITY: self.immediate_annuity,
            Modality.GUARANTEED_ANNUITY: self.guaranteed_annuity,
            Modality.INCREASE_ANNUITY: self.increase_annuity,
            Modality.COMBINED_ANNUITY: self.combined_annuity,
        }

    def calculate(self, modality: Modality, person: Person,
                  beneficiaries: Beneficiaries, params: ScenarioParameters) -> Outcome:
        handler = self.handlers().get(modality)
        if handler is None:
            raise InvalidScenarioError(f"{self.category.value} has no {modality.value} modality")
        return handler(person, beneficiaries, params)

    # -- helpers -----------------------------------------------------------

    def scenario_for(self, modality: Modality) -> ScenarioType:
        if modality is Modality.STATUTORY:
            return ScenarioType(self.category.value)
        return ScenarioType(f"{self.category.value}_{modality.value}")

    def interest_rate(self, params: ScenarioParameters, modality: Modality) -> float:
        if params.interest_rate is not None:
            rate = params.interest_rate
        else:
            rate = self.config.rate_for(
                modality, disabled=self.disabled,
                survivorship=self.category is Category.SURVIVORSHIP
            )
        if not 0 < rate < UNUSUAL_RATE:
            logger.warning(f"Unusual interest rate for {self.scenario_for(modality).value}: {rate:.2%}")
        return rate

    def index_value(self, params: ScenarioParameters) -> float:
        return params.reference_index_value or self.config.reference_index_value

    def label(self, text: str) -> str:
        full = self.label_prefix + text
        return full[:1].upper() + full[1:]

    def amount_fields(self, amount: float, params: ScenarioParameters) -> Dict[str, float]:
        return {
            'monthly_benefit': round_currency(amount),
            'benefit_in_index_units': round_index_units(amount / self.index_value(params)),
            'annual_benefit': round_currency(amount * 12.0),
        }

    def net_of_premium(self, balance: float) -> float:
        return balance - balance * self.config.annuity_premium_rate

    def breakdown(self, distribution: Optional[Distribution],
                  amount: float) -> Tuple[BeneficiaryBenefit, ...]:
        if distribution is None:
            return ()
        return tuple(
            BeneficiaryBenefit(
                relationship=share.relationship,
                share_pct=round_share(share.adjusted_share),
                monthly_amount=round_currency(amount * share.adjusted_share),
            )
            for share in distribution
        )

    def context_notes(self, person: Optional[Person]) -> List[str]:
        return []

    def degenerate(self, scenario: ScenarioType, rate: float) -> ErrorResult:
        return error_result(
            scenario, "Error: necessary unit capital",
            "Necessary unit capital is not positive; check ages and mortality cohort",
            rate,
        )

    def _common_fields(self, base: AnnuityBase, amount: float, params: ScenarioParameters,
                       label: str, notes: List[str]) -> Dict:
        return dict(
            scenario=base.scenario,
            label=label,
            **self.amount_fields(amount, params),
            necessary_unit_capital=base.cnu,
            interest_rate_used=base.interest_rate,
            life_expectancy_years=base.life_expectancy,
            advisory_notes=tuple(notes),
            beneficiary_breakdown=self.breakdown(base.distribution, amount),
            reference_pension=base.reference_pension,
        )

    # -- annuity base (category specific) ------------------------------------

    def annuity_base(self, person: Person, beneficiaries: Beneficiaries,
                     params: ScenarioParameters,
                     modality: Modality) -> Union[AnnuityBase, ErrorResult]:
        """Immediate-annuity pricing for a single life with optional dependents."""
        rate = self.interest_rate(params, modality)
        scenario = self.scenario_for(modality)

        cnu = self.capital.calculate_cnu(person.age, person.sex, rate,
                                         beneficiaries, disabled=self.disabled)
        if not cnu > 0:
            return self.degenerate(scenario, rate)

        return AnnuityBase(
            scenario=scenario,
            cnu=cnu,
            amount=self.net_of_premium(params.accumulated_balance) / cnu,
            interest_rate=rate,
            life_expectancy=self.mortality.get_life_expectancy(person.age, person.sex, self.disabled),
            balance=params.accumulated_balance,
            start_age=person.age,
            horizon_years=self.annuity_horizon(person),
        )

    def annuity_horizon(self, person: Person) -> int:
        return self.config.annuity_horizon_years

    # -- modality formulas ---------------------------------------------------

    def immediate_annuity(self, person: Person, beneficiaries: Beneficiaries,
                          params: ScenarioParameters) -> ScenarioResult:
        """Level life annuity: (balance - premium) / CNU."""
        base = self.annuity_base(person, beneficiaries, params, Modality.IMMEDIATE_ANNUITY)
        if isinstance(base, ErrorResult):
            return base

        premium = self.config.annuity_premium_rate
        notes = [
            "Fixed pension for life",
            f"Insurance premium of {format_percent(premium)} deducted from the balance",
        ] + self.context_notes(person)

        logger.debug(f"{base.scenario.value}: CNU={base.cnu:.4f}, monthly={base.amount:,.2f}")
        return ImmediateAnnuityResult(
            **self._common_fields(base, base.amount, params,
                                  self.label("immediate life annuity"), notes),
            premium_rate=premium,
        )

    def guaranteed_annuity(self, person: Person, beneficiaries: Beneficiaries,
                           params: ScenarioParameters) -> ScenarioResult:
        """Immediate annuity reduced by the guaranteed-period factor."""
        base = self.annuity_base(person, beneficiaries, params, Modality.GUARANTEED_ANNUITY)
        if isinstance(base, ErrorResult):
            return base
        return self._guaranteed_result(base, params, person)

    def increase_annuity(self, person: Person, beneficiaries: Beneficiaries,
                         params: ScenarioParameters) -> ScenarioResult:
        """Immediate annuity with a temporary increase funded by a lower steady state."""
        clause = require_increase(params)
        base = self.annuity_base(person, beneficiaries, params, Modality.INCREASE_ANNUITY)
        if isinstance(base, ErrorResult):
            return base

        adjustment = solve_temporary_increase(
            base.rounded_amount, base.balance, clause.fraction, clause.months,
            base.interest_rate, self.config.annuity_premium_rate, self.config.increase_floor
        )
        return self._increase_result(base, adjustment, clause, params, person)

    def combined_annuity(self, person: Person, beneficiaries: Beneficiaries,
                         params: ScenarioParameters) -> ScenarioResult:
        """Guaranteed period and temporary increase on the same annuity."""
        clause = require_increase(params)
        base = self.annuity_base(person, beneficiaries, params, Modality.COMBINED_ANNUITY)
        if isinstance(base, ErrorResult):
            return base

        adjustment = solve_combined_clause(
            base.rounded_amount, base.balance, params.guaranteed_months,
            clause.fraction, clause.months, base.interest_rate,
            self.config.annuity_premium_rate, self.config.combined_floor
        )
        return self._increase_result(base, adjustment, clause, params, person,
                                     guaranteed_months=params.guaranteed_months)

    def scheduled_withdrawal(self, person: Person, beneficiaries: Beneficiaries,
                             params: ScenarioParameters) -> ScenarioResult:
        """Declining-balance withdrawal: balance / CNU, re-solved every year."""
        rate = self.interest_rate(params, Modality.SCHEDULED_WITHDRAWAL)
        scenario = self.scenario_for(Modality.SCHEDULED_WITHDRAWAL)
        balance = params.accumulated_balance

        cnu = self.capital.calculate_cnu(person.age, person.sex, rate,
                                         beneficiaries, disabled=self.disabled)
        if not cnu > 0:
            return self.degenerate(scenario, rate)

        amount = balance / cnu
        projection = project_scheduled_withdrawal(
            self.capital, balance, person.age, person.sex, rate,
            horizon_years=self.config.scheduled_horizon_years, disabled=self.disabled
        )

        notes = ["Pension declines over time",
                 f"Balance projected over {len(projection.points)} years"] + self.context_notes(person)

        logger.debug(f"{scenario.value}: CNU={cnu:.4f}, monthly={amount:,.2f}")
        return ScheduledWithdrawalResult(
            scenario=scenario,
            label=self.label("scheduled withdrawal"),
            **self.amount_fields(amount, params),
            necessary_unit_capital=cnu,
            interest_rate_used=rate,
            life_expectancy_years=self.mortality.get_life_expectancy(person.age, person.sex, self.disabled),
            advisory_notes=tuple(notes),
            yearly_projection=projection.points,
            ending_balance=round_currency(projection.ending_balance),
        )

    # -- clause result builders ----------------------------------------------

    def _guaranteed_result(self, base: AnnuityBase, params: ScenarioParameters,
                           person: Optional[Person]) -> GuaranteedAnnuityResult:
        months = params.guaranteed_months
        adjustment = solve_guaranteed_period(base.rounded_amount, months)
        period = describe_months(months)

        notes = [
            f"Guaranteed period: {period} ({months} months)",
            "If the pensioner dies within the period, beneficiaries receive 100% of the pension",
            f"Applied factor: {adjustment.factor:.1%}",
        ] + self.context_notes(person)

        return GuaranteedAnnuityResult(
            **self._common_fields(base, adjustment.steady_amount, params,
                                  self.label(f"annuity with {period} guarantee"), notes),
            guaranteed_months=months,
            adjustment_factor=adjustment.factor,
        )

    def _increase_result(self, base: AnnuityBase, adjustment: ClauseAdjustment,
                         clause: TemporaryIncreaseClause, params: ScenarioParameters,
                         person: Optional[Person],
                         guaranteed_months: Optional[int] = None) -> TemporaryIncreaseResult:
        increased = adjustment.increased_amount
        steady = adjustment.steady_amount
        pct = f"{clause.display_percent:g}%"
        period = describe_months(clause.months)

        notes = [
            f"Increase of {pct} for {period}",
            f"Pension during the increase: {format_currency(increased)}",
            f"Pension after the increase: {format_currency(steady)}",
            f"Applied factor: {adjustment.factor:.1%}",
        ]
        if adjustment.floor_applied:
            notes.append(f"Increase not fully fundable; reduction capped at the {adjustment.factor:.0%} floor")
        notes += self.context_notes(person)

        increase = TemporaryIncrease(
            months=clause.months,
            percent=round(clause.display_percent, 6),
            increased_amount=round_currency(increased),
            steady_state_amount=round_currency(steady),
        )
        projection = project_temporary_increase(
            base.start_age, increased, steady, clause.months, base.horizon_years
        )

        if guaranteed_months is None:
            return TemporaryIncreaseResult(
                **self._common_fields(base, increased, params,
                                      self.label(f"annuity +{pct} for {period}"), notes),
                temporary_increase=increase,
                adjustment_factor=adjustment.factor,
                floor_applied=adjustment.floor_applied,
                yearly_projection=projection,
            )

        guarantee = describe_months(guaranteed_months)
        notes.insert(1, f"Guaranteed period: {guarantee}")
        return CombinedClauseResult(
            **self._common_fields(base, increased, params,
                                  self.label(f"annuity +{pct} for {period} + {guarantee} guarantee"),
                                  notes),
            temporary_increase=increase,
            adjustment_factor=adjustment.factor,
            floor_applied=adjustment.floor_applied,
            yearly_projection=projection,
            guaranteed_months=guaranteed_months,
            guarantee_factor=adjustment.guarantee_factor,
        )


# =============================================================================
# OLD AGE
# =============================================================================

class OldAgeCalculator(BenefitCalculator):
    """Old-age benefits priced on the general-lives tables."""

    category = Category.OLD_AGE
    disabled = False
    label_prefix = ""

    def context_notes(self, person: Optional[Person]) -> List[str]:
        if person is None:
            return []
        legal_age = self.config.legal_retirement_age[person.sex]
        if person.age < legal_age:
            return [f"Early retirement: legal retirement age is {legal_age}"]
        return []


# =============================================================================
# DISABILITY
# =============================================================================

class DisabilityCalculator(BenefitCalculator):
    """Disability benefits priced on the disabled-lives tables."""

    category = Category.DISABILITY
    disabled = True
    label_prefix = "disability "

    def handlers(self):
        handlers = super().handlers()
        handlers[Modality.STATUTORY] = self.statutory
        return handlers

    def context_notes(self, person: Optional[Person]) -> List[str]:
        return ["Priced with the disabled-lives mortality tables (I-H-2020 / I-M-2020)"]

    def annuity_horizon(self, person: Person) -> int:
        max_age = self.mortality.max_age(person.sex, disabled=True)
        return max(0, min(self.config.annuity_horizon_years, max_age - person.age))

    def statutory(self, person: Person, beneficiaries: Beneficiaries,
                  params: ScenarioParameters) -> ScenarioResult:
        """
        Statutory-percentage disability pension.

        Insured: the reference amount (income base × degree percentage) is
        paid; when the balance cannot fund it, the insurer covers the
        shortfall reference × CNU - balance. Uninsured: balance / CNU.
        """
        rate = self.interest_rate(params, Modality.STATUTORY)
        scenario = self.scenario_for(Modality.STATUTORY)
        balance = params.accumulated_balance

        degree = params.disability_degree
        pct = self.config.disability_percentages[degree]
        income_base = (params.income_base if params.income_base is not None
                       else self.config.default_income_base)
        reference = income_base * pct

        cnu = self.capital.calculate_cnu(person.age, person.sex, rate,
                                         beneficiaries, disabled=True)
        if not cnu > 0:
            return self.degenerate(scenario, rate)

        shortfall = 0.0
        if params.insured:
            required = reference * cnu
            if balance >= required:
                amount = balance / cnu
            else:
                shortfall = required - balance
                amount = reference
        else:
            amount = balance / cnu

        degree_label = f"{DISABILITY_DEGREE_LABELS[degree]} ({format_percent(pct)})"
        notes = [
            f"Disability degree: {degree_label}",
            f"Income base: {format_currency(income_base)}",
            f"Reference pension: {format_currency(reference)}",
        ]
        if shortfall > 0:
            notes.append(f"Insurance covers a capital shortfall of {format_currency(shortfall)}")
        if not params.insured:
            notes.append("Not covered by disability insurance; benefit is self-funded")
        notes += self.context_notes(person)

        max_age = self.mortality.max_age(person.sex, disabled=True)
        horizon = min(self.config.scheduled_horizon_years, max_age - person.age)

        logger.debug(f"disability: reference={reference:,.0f}, CNU={cnu:.4f}, "
                     f"monthly={amount:,.2f}, shortfall={shortfall:,.0f}")
        return DisabilityResult(
            scenario=scenario,
            label=f"Disability pension, {degree_label}",
            **self.amount_fields(amount, params),
            necessary_unit_capital=cnu,
            interest_rate_used=rate,
            life_expectancy_years=self.mortality.get_life_expectancy(person.age, person.sex, True),
            advisory_notes=tuple(notes),
            disability_degree=degree,
            income_base=income_base,
            disability_pct=pct,
            reference_amount=round_currency(reference),
            insurance_shortfall=round_currency(shortfall),
            yearly_projection=project_level_benefit(person.age, amount, horizon),
        )


# =============================================================================
# SURVIVORSHIP
# =============================================================================

class SurvivorshipCalculator(BenefitCalculator):
    """
    Survivor benefits for the dependents of a deceased causant.

    The `person` argument of every formula is the causant; the dependents
    are priced on their own ages, sexes and cohorts.
    """

    category = Category.SURVIVORSHIP
    disabled = False
    label_prefix = "survivorship "

    def handlers(self):
        handlers = super().handlers()
        handlers[Modality.STATUTORY] = self.statutory
        handlers[Modality.OPTIONS] = self.options
        return handlers

    def context_notes(self, person: Optional[Person]) -> List[str]:
        return [SURVIVOR_DISTRIBUTION_NOTE]

    def no_beneficiaries(self, scenario: ScenarioType, rate: float) -> ErrorResult:
        return error_result(
            scenario, "Error: no beneficiaries",
            "At least one eligible beneficiary is required for a survivorship pension",
            rate,
            "Eligible: spouse, domestic partner, children, or parents when none of those exist",
        )

    def reference_pension(self, causant: Person, params: ScenarioParameters,
                          interest_rate: float, require_insured: bool = False) -> float:
        """
        Reference pension of the causant: explicit value, else 70% of the
        income base, else the causant's own balance / CNU.

        Only the statutory pension requires the causant to be insured before
        the income base is used.
        """
        if params.causant_reference_pension:
            return params.causant_reference_pension
        if params.causant_income_base and (params.insured or not require_insured):
            return params.causant_income_base * self.config.survivorship_reference_pct

        cnu = self.capital.calculate_cnu(causant.age, causant.sex, interest_rate)
        if not cnu > 0:
            return 0.0
        return params.accumulated_balance / cnu

    def survivor_life_expectancy(self, distribution: Distribution,
                                 lead_only: bool = False) -> float:
        """Mean expectancy over eligible dependents, or the first one's with lead_only."""
        if distribution.is_empty:
            return 0.0
        shares = distribution.shares[:1] if lead_only else distribution.shares
        return float(np.mean([
            self.mortality.get_life_expectancy(s.beneficiary.age, s.beneficiary.sex,
                                               s.beneficiary.is_disabled)
            for s in shares
        ]))

    def _priced_distribution(self, beneficiaries: Beneficiaries, params: ScenarioParameters,
                             modality: Modality):
        rate = self.interest_rate(params, modality)
        scenario = self.scenario_for(modality)
        distribution = allocate_shares(beneficiaries)
        if distribution.is_empty:
            return scenario, rate, distribution, self.no_beneficiaries(scenario, rate)

        capital = self.capital.survivorship_cnu(distribution.weighted_dependents(), rate)
        if capital.is_degenerate:
            return scenario, rate, distribution, self.degenerate(scenario, rate)
        return scenario, rate, distribution, capital.total

    def annuity_base(self, person: Person, beneficiaries: Beneficiaries,
                     params: ScenarioParameters,
                     modality: Modality) -> Union[AnnuityBase, ErrorResult]:
        """Immediate survivorship annuity: (balance - premium) / Σ CNU_d × share_d."""
        scenario, rate, distribution, cnu = self._priced_distribution(beneficiaries, params, modality)
        if isinstance(cnu, ErrorResult):
            return cnu

        return AnnuityBase(
            scenario=scenario,
            cnu=cnu,
            amount=self.net_of_premium(params.accumulated_balance) / cnu,
            interest_rate=rate,
            life_expectancy=self.survivor_life_expectancy(distribution, lead_only=True),
            balance=params.accumulated_balance,
            start_age=distribution.shares[0].beneficiary.age,
            horizon_years=self.config.survivorship_horizon_years,
            distribution=distribution,
            reference_pension=round_currency(self.reference_pension(person, params, rate)),
        )

    def statutory(self, person: Person, beneficiaries: Beneficiaries,
                  params: ScenarioParameters) -> ScenarioResult:
        """Reference pension distributed by statutory shares (capped at 100%)."""
        rate = self.interest_rate(params, Modality.STATUTORY)
        scenario = self.scenario_for(Modality.STATUTORY)

        distribution = allocate_shares(beneficiaries)
        if distribution.is_empty:
            return self.no_beneficiaries(scenario, rate)

        reference = self.reference_pension(person, params, rate, require_insured=True)
        capital = self.capital.survivorship_cnu(distribution.weighted_dependents(), rate)
        if capital.is_degenerate:
            return self.degenerate(scenario, rate)
        amount = reference * distribution.paid_share
        breakdown = tuple(
            BeneficiaryBenefit(
                relationship=share.relationship,
                share_pct=round_share(share.adjusted_share),
                monthly_amount=round_currency(reference * share.adjusted_share),
            )
            for share in distribution
        )

        notes = [
            f"Reference pension: {format_currency(reference)}",
            f"Total shares: {format_percent(distribution.total_share)}",
        ] + [
            f"{b.relationship.label}: {format_percent(b.share_pct)} = {format_currency(b.monthly_amount)}"
            for b in breakdown
        ]

        return SurvivorshipResult(
            scenario=scenario,
            label="Survivorship pension",
            **self.amount_fields(amount, params),
            necessary_unit_capital=capital.total,
            interest_rate_used=rate,
            life_expectancy_years=self.survivor_life_expectancy(distribution),
            advisory_notes=tuple(notes),
            beneficiary_breakdown=breakdown,
            reference_pension=round_currency(reference),
            total_share=round_share(distribution.total_share),
            scaling_factor=distribution.scaling_factor,
        )

    def scheduled_withdrawal(self, person: Person, beneficiaries: Beneficiaries,
                             params: ScenarioParameters) -> ScenarioResult:
        """Survivorship withdrawal: balance / Σ CNU_d × share_d, re-solved yearly."""
        scenario, rate, distribution, cnu = self._priced_distribution(
            beneficiaries, params, Modality.SCHEDULED_WITHDRAWAL
        )
        if isinstance(cnu, ErrorResult):
            return cnu

        balance = params.accumulated_balance
        amount = balance / cnu
        projection = project_survivorship_withdrawal(
            self.capital, balance, distribution, rate,
            horizon_years=self.config.survivorship_horizon_years
        )

        return ScheduledWithdrawalResult(
            scenario=scenario,
            label=self.label("scheduled withdrawal"),
            **self.amount_fields(amount, params),
            necessary_unit_capital=cnu,
            interest_rate_used=rate,
            life_expectancy_years=self.survivor_life_expectancy(distribution, lead_only=True),
            advisory_notes=("Pension declines over time", SURVIVOR_DISTRIBUTION_NOTE),
            beneficiary_breakdown=self.breakdown(distribution, amount),
            reference_pension=round_currency(self.reference_pension(person, params, rate)),
            yearly_projection=projection.points,
            ending_balance=round_currency(projection.ending_balance),
        )

    def options(self, person: Person, beneficiaries: Beneficiaries,
                params: ScenarioParameters) -> List[ScenarioResult]:
        """
        Both survivorship options side by side: scheduled withdrawal at the
        withdrawal rate and immediate annuity at the survivorship rate.
        """
        scenario = self.scenario_for(Modality.OPTIONS)
        if allocate_shares(beneficiaries).is_empty:
            return [self.no_beneficiaries(scenario, self.interest_rate(params, Modality.OPTIONS))]

        return [
            self.scheduled_withdrawal(person, beneficiaries, params),
            self.immediate_annuity(person, beneficiaries, params),
        ]
