"""
pension_valuation/reporting.py - Tabular Views and Text Summaries

Turns result variants into pandas DataFrames and a plain-text comparison
for console use. Also holds the currency, index-unit and percentage
formatters used by advisory notes.

No numeric work happens here; results are already rounded.

Author: Actuarial Pipeline Project
License: MIT
"""

import pandas as pd
from typing import Iterable, List, Optional, Sequence
import logging

from .financials import round_currency
from .results import ProjectionPoint, ScenarioResult

logger = logging.getLogger(__name__)


# =============================================================================
# FORMATTERS
# =============================================================================

def format_currency(amount: float) -> str:
    """Whole currency units with thousands separators ('$1,234,567')."""
    return f"${round_currency(amount):,.0f}"


def format_index_units(amount: float) -> str:
    """Index units to two decimals ('12.34 UF')."""
    return f"{amount:,.2f} UF"


def format_percent(value: float, decimals: int = 0) -> str:
    """Fraction as a percentage ('0.6' → '60%')."""
    return f"{value:.{decimals}%}"


# =============================================================================
# DATAFRAMES
# =============================================================================

RESULT_COLUMNS = [
    'Scenario', 'Kind', 'Label', 'MonthlyBenefit', 'BenefitUF', 'AnnualBenefit',
    'CNU', 'InterestRate', 'LifeExpectancy', 'IsError',
]

PROJECTION_COLUMNS = [
    'Year', 'Age', 'MonthlyBenefit', 'RemainingBalance', 'CumulativeWithdrawn', 'Phase',
]


def results_to_dataframe(results: Iterable[ScenarioResult]) -> pd.DataFrame:
    """One row per result with the fields common to every variant."""
    rows = [
        {
            'Scenario': r.scenario.value if r.scenario else None, 'Kind': r.kind, 'Label': r.label,
            'MonthlyBenefit': r.monthly_benefit, 'BenefitUF': r.benefit_in_index_units,
            'AnnualBenefit': r.annual_benefit, 'CNU': r.necessary_unit_capital,
            'InterestRate': r.interest_rate_used, 'LifeExpectancy': r.life_expectancy_years,
            'IsError': r.is_error,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def projection_to_dataframe(points: Sequence[ProjectionPoint]) -> pd.DataFrame:
    """Yearly projection as a DataFrame indexed by year."""
    df = pd.DataFrame(
        [
            {
                'Year': p.year_index, 'Age': p.age, 'MonthlyBenefit': p.monthly_benefit,
                'RemainingBalance': p.remaining_balance,
                'CumulativeWithdrawn': p.cumulative_withdrawn, 'Phase': p.phase.value,
            }
            for p in points
        ],
        columns=PROJECTION_COLUMNS,
    )
    return df.set_index('Year')


def beneficiaries_to_dataframe(result: ScenarioResult) -> pd.DataFrame:
    """Per-survivor breakdown of a result (empty when it has none)."""
    return pd.DataFrame(
        [
            {'Relationship': b.relationship.label, 'Share': b.share_pct, 'MonthlyAmount': b.monthly_amount}
            for b in result.beneficiary_breakdown
        ],
        columns=['Relationship', 'Share', 'MonthlyAmount'],
    )


# =============================================================================
# TEXT SUMMARY
# =============================================================================

def format_scenario_comparison(results: Sequence[ScenarioResult],
                               title: Optional[str] = None) -> str:
    """Fixed-width comparison of several results, best monthly benefit first."""
    lines: List[str] = []
    lines.append("=" * 81)
    lines.append(title or "PENSION SCENARIO COMPARISON")
    lines.append("=" * 81)
    lines.append(f"{'Option':<44}{'Monthly':>14}{'Index':>13}{'CNU':>10}")
    lines.append("-" * 81)

    ranked = sorted(results, key=lambda r: (r.is_error, -r.monthly_benefit))
    for r in ranked:
        if r.is_error:
            lines.append(f"{r.label:<44}{'n/a':>14}{'':>13}{'':>10}")
            continue
        lines.append(f"{r.label[:43]:<44}{format_currency(r.monthly_benefit):>14}"
                     f"{format_index_units(r.benefit_in_index_units):>13}{r.necessary_unit_capital:>10.2f}")

    for r in ranked:
        if r.advisory_notes:
            lines.append("")
            lines.append(f"{r.label}:")
            lines.extend(f"  - {note}" for note in r.advisory_notes)

    lines.append("=" * 81)
    return "\n".join(lines)


def print_scenario_comparison(results: Sequence[ScenarioResult],
                              title: Optional[str] = None) -> None:
    """Print the comparison produced by format_scenario_comparison."""
    print(format_scenario_comparison(results, title))
