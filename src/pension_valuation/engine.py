"""
pension_valuation/engine.py - Pension Benefit Engine

Entry point that maps a scenario tag to a benefit formula and evaluates
one request, a batch of independent requests, or the full comparison set of
a benefit category.

The engine is stateless between calls: it holds only the configuration and
the read-only mortality tables, so requests may be evaluated concurrently.

Usage:
    engine = create_engine({'reference_index_value': 38500})
    result = engine.calculate({
        'scenario': 'old_age_scheduled_withdrawal',
        'affiliate': {'age': 65, 'sex': 'M'},
        'parameters': {'accumulated_balance': 50_000_000},
    })

Author: Actuarial Pipeline Project
License: MIT
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import logging

from pydantic import ValidationError

from .adjustments import supported_guarantee_months
from .benefits import (
    BenefitCalculator, DisabilityCalculator, OldAgeCalculator, Outcome,
    SurvivorshipCalculator,
)
from .capital import CapitalCalculator
from .distribution import SURVIVOR_SHARE_RULES
from .mortality import MortalityCalculator, create_mortality_calculator
from .plan_config import EngineConfig, load_config
from .results import ScenarioResult, error_result
from .scenario import (
    Category, InvalidScenarioError, Modality, ScenarioRequest, ScenarioType,
)

logger = logging.getLogger(__name__)

RequestLike = Union[ScenarioRequest, Mapping[str, Any]]

SUPPORTED_INCREASE_MONTHS = tuple(range(12, 121, 12))
SUPPORTED_INCREASE_PERCENTS = tuple(range(10, 101, 10))


def _as_request(request: RequestLike) -> ScenarioRequest:
    if isinstance(request, ScenarioRequest):
        return request
    return ScenarioRequest.model_validate(request)


class PensionEngine:
    """Scenario dispatch over the benefit formula library."""

    def __init__(self, config: Optional[EngineConfig] = None,
                 mortality: Optional[MortalityCalculator] = None):
        self.config = config or EngineConfig()
        self.mortality = mortality or create_mortality_calculator()
        self.capital = CapitalCalculator(self.mortality)

        self.calculators: Dict[Category, BenefitCalculator] = {
            Category.OLD_AGE: OldAgeCalculator(self.config, self.capital),
            Category.DISABILITY: DisabilityCalculator(self.config, self.capital),
            Category.SURVIVORSHIP: SurvivorshipCalculator(self.config, self.capital),
        }

        rates = self.config.interest_rates
        logger.info(f"PensionEngine initialized: withdrawal={rates.scheduled_withdrawal:.2%}, "
                    f"old-age annuity={rates.old_age_annuity:.2%}, "
                    f"disability annuity={rates.disability_annuity:.2%}, "
                    f"survivorship annuity={rates.survivorship_annuity:.2%}, "
                    f"UF={self.config.reference_index_value:,.0f}")

    def calculate(self, request: RequestLike) -> Outcome:
        """
        Evaluate one request.

        Returns a single result, or a list for the survivorship options
        entry point. Raises InvalidScenarioError or pydantic ValidationError
        for requests that cannot be evaluated.
        """
        request = _as_request(request)
        scenario = request.scenario
        calculator = self.calculators[scenario.category]

        logger.debug(f"Evaluating {scenario.value} for age={request.affiliate.age} "
                     f"sex={request.affiliate.sex.value}")
        return calculator.calculate(scenario.modality, request.affiliate,
                                    request.beneficiaries, request.parameters)

    def calculate_options(self, request: RequestLike) -> List[ScenarioResult]:
        """Survivorship withdrawal and annuity side by side for one causant."""
        request = _as_request(request)
        survivorship = self.calculators[Category.SURVIVORSHIP]
        return survivorship.options(request.affiliate, request.beneficiaries, request.parameters)

    def _safe_calculate(self, request: RequestLike) -> Outcome:
        try:
            return self.calculate(request)
        except (InvalidScenarioError, ValidationError) as e:
            scenario = None
            if isinstance(request, ScenarioRequest):
                scenario = request.scenario
            elif isinstance(request, Mapping):
                try:
                    scenario = ScenarioType.parse(request.get('scenario'))
                except InvalidScenarioError:
                    scenario = None
            return error_result(scenario, "Error: invalid request", str(e), 0.0)

    def run_batch(self, requests: Sequence[RequestLike],
                  max_workers: Optional[int] = None) -> List[Outcome]:
        """
        Evaluate independent requests, one outcome per slot, in input order.

        A rejected request becomes an ErrorResult in its slot; siblings
        still complete. With max_workers > 1 the requests run on a thread pool.
        """
        logger.info(f"Running batch of {len(requests)} scenarios")

        if max_workers and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outcomes = list(pool.map(self._safe_calculate, requests))
        else:
            outcomes = [self._safe_calculate(r) for r in requests]

        failed = sum(1 for o in outcomes if isinstance(o, ScenarioResult) and o.is_error)
        logger.info(f"Batch complete: {len(outcomes)} scenarios, {failed} flagged as errors")
        return outcomes

    def comparison_scenarios(self, request: RequestLike) -> List[ScenarioType]:
        """Scenario tags of the request's category that its parameters can price."""
        request = _as_request(request)
        category = request.scenario.category
        has_increase = request.parameters.increase is not None

        scenarios = []
        for scenario in ScenarioType:
            if scenario.category is not category or scenario.modality is Modality.OPTIONS:
                continue
            if scenario.modality in (Modality.INCREASE_ANNUITY, Modality.COMBINED_ANNUITY) and not has_increase:
                continue
            scenarios.append(scenario)
        return scenarios

    def compare(self, request: RequestLike, max_workers: Optional[int] = None) -> List[ScenarioResult]:
        """Every modality of the request's category, flattened into one list."""
        request = _as_request(request)
        requests = [request.model_copy(update={'scenario': scenario})
                    for scenario in self.comparison_scenarios(request)]

        results: List[ScenarioResult] = []
        for outcome in self.run_batch(requests, max_workers=max_workers):
            if isinstance(outcome, list):
                results.extend(outcome)
            else:
                results.append(outcome)
        return results

    def describe_parameters(self) -> Dict[str, Any]:
        """Parameter catalog for collaborators that build input forms."""
        catalog = self.config.get_config_info()
        catalog.update({
            'legal_retirement_age': {sex.value: age for sex, age in self.config.legal_retirement_age.items()},
            'disability_degrees': {d.value: pct for d, pct in self.config.disability_percentages.items()},
            'survivor_shares': dict(SURVIVOR_SHARE_RULES),
            'guaranteed_months': supported_guarantee_months(),
            'increase_months': SUPPORTED_INCREASE_MONTHS,
            'increase_percents': SUPPORTED_INCREASE_PERCENTS,
            'scenarios': {
                category.value: [s.value for s in ScenarioType if s.category is category]
                for category in Category
            },
        })
        return catalog


def create_engine(config: Optional[Dict[str, Any]] = None) -> PensionEngine:
    """Factory: engine from a plain configuration mapping."""
    return PensionEngine(load_config(config))
