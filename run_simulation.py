#!/usr/bin/env python3
"""
run_simulation.py - Pension Benefit Simulation Runner

Builds one calculation request from command-line flags (or a JSON request
file) and prices it:
1. Validate the request
2. Evaluate one scenario, or every modality of its category (--compare)
3. Print the comparison, the yearly projection and the survivor breakdown
4. Optionally write the results as JSON

Usage:
    python run_simulation.py --scenario old_age_scheduled_withdrawal \\
        --age 65 --sex M --balance 50000000

    python run_simulation.py --scenario survivorship --age 70 --sex M \\
        --balance 40000000 --causant-income-base 1000000 \\
        --beneficiary spouse:66:F --beneficiary child:17:M

    python run_simulation.py --request request.json --compare --json results.json

Author: Actuarial Pipeline Project
License: MIT
"""

import argparse
import json
import sys
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_beneficiary(value: str) -> Dict[str, Any]:
    """Parse 'relationship:age:sex[:share]' (e.g. 'spouse:62:F' or 'child:10:M:0.15')."""
    parts = value.split(':')
    if len(parts) not in (3, 4):
        raise argparse.ArgumentTypeError(
            f"Beneficiary must be relationship:age:sex[:share], got {value!r}")

    beneficiary = {
        'relationship': parts[0].strip().lower(),
        'age': int(parts[1]),
        'sex': parts[2].strip(),
    }
    if len(parts) == 4:
        beneficiary['assigned_share_pct'] = float(parts[3])
    if beneficiary['relationship'].endswith('_disabled'):
        beneficiary['relationship'] = beneficiary['relationship'][:-len('_disabled')]
        beneficiary['is_disabled'] = True
    return beneficiary


def build_request(args: argparse.Namespace) -> Dict[str, Any]:
    """Assemble a request mapping from parsed flags."""
    if args.request:
        with open(args.request) as f:
            request = json.load(f)
        if args.scenario:
            request['scenario'] = args.scenario
        return request

    parameters: Dict[str, Any] = {
        'accumulated_balance': args.balance,
        'guaranteed_months': args.guaranteed_months,
        'disability_degree': args.degree,
        'insured': not args.uninsured,
    }
    optional = {
        'interest_rate': args.rate,
        'reference_index_value': args.index_value,
        'income_base': args.income_base,
        'causant_income_base': args.causant_income_base,
        'causant_reference_pension': args.causant_pension,
    }
    parameters.update({k: v for k, v in optional.items() if v is not None})

    if args.increase_months is not None or args.increase_percent is not None:
        parameters['increase'] = {
            'months': args.increase_months or 0,
            'percent': args.increase_percent or 0,
            'unit': args.increase_unit,
        }

    return {
        'scenario': args.scenario,
        'affiliate': {'age': args.age, 'sex': args.sex},
        'beneficiaries': args.beneficiary or [],
        'parameters': parameters,
    }


def run_simulation(request: Dict[str, Any], compare: bool = False,
                   config: Optional[Dict[str, Any]] = None,
                   json_path: Optional[str] = None) -> List[Any]:
    """
    Price a request and print the results.

    Args:
        request: Request mapping (scenario, affiliate, beneficiaries, parameters)
        compare: Evaluate every modality of the request's category
        config: Engine configuration overrides
        json_path: Write the results to this file as JSON

    Returns:
        List of ScenarioResult
    """
    from pension_valuation import create_engine, print_scenario_comparison, projection_to_dataframe
    from pension_valuation.reporting import beneficiaries_to_dataframe

    engine = create_engine(config)

    print("=" * 70)
    print("PENSION BENEFIT SIMULATION")
    print("=" * 70)
    print(f"Scenario:    {request.get('scenario')}")
    print(f"Affiliate:   {request.get('affiliate')}")
    print(f"Balance:     ${request.get('parameters', {}).get('accumulated_balance', 0):,.0f}")
    print(f"Dependents:  {len(request.get('beneficiaries') or [])}")
    print()

    # =========================================================================
    # STEP 1: Evaluate
    # =========================================================================
    if compare:
        results = engine.compare(request)
    else:
        outcome = engine.calculate(request)
        results = outcome if isinstance(outcome, list) else [outcome]
    logger.info(f"Priced {len(results)} option(s) for {request.get('scenario')}")

    # =========================================================================
    # STEP 2: Comparison
    # =========================================================================
    print_scenario_comparison(results)
    print()

    # =========================================================================
    # STEP 3: Detail of the best option
    # =========================================================================
    priced = [r for r in results if not r.is_error]
    if priced:
        best = max(priced, key=lambda r: r.monthly_benefit)
        projection = getattr(best, 'yearly_projection', ())
        if projection:
            print(f"Yearly projection: {best.label}")
            print(projection_to_dataframe(projection).to_string())
            print()
        if best.beneficiary_breakdown:
            print(f"Survivor breakdown: {best.label}")
            print(beneficiaries_to_dataframe(best).to_string(index=False))
            print()

    # =========================================================================
    # STEP 4: JSON output
    # =========================================================================
    if json_path:
        Path(json_path).write_text(json.dumps([r.to_dict() for r in results], indent=2))
        print(f"Results saved to: {json_path}")

    return results


def main():
    parser = argparse.ArgumentParser(
        description='Simulate individual-account pension benefits',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Old-age scheduled withdrawal
  python run_simulation.py --scenario old_age_scheduled_withdrawal \\
      --age 65 --sex M --balance 50000000

  # Annuity with a 20% increase for 24 months, compared against every old-age option
  python run_simulation.py --scenario old_age_increase_annuity \\
      --age 65 --sex F --balance 80000000 \\
      --increase-months 24 --increase-percent 20 --compare

  # Total disability with insurance top-up
  python run_simulation.py --scenario disability --age 45 --sex M \\
      --balance 10000000 --income-base 800000 --degree total

  # Survivorship from a JSON request, results written to disk
  python run_simulation.py --request survivorship.json --json results.json
"""
    )

    parser.add_argument('--scenario', type=str, help='Scenario tag (e.g. old_age_immediate_annuity)')
    parser.add_argument('--request', type=str, help='JSON request file (overrides the flags below)')
    parser.add_argument('--config', type=str, help='JSON engine configuration overrides')
    parser.add_argument('--age', type=int, help='Affiliate (or causant) age')
    parser.add_argument('--sex', type=str, choices=['M', 'F'], help='Affiliate (or causant) sex')
    parser.add_argument('--balance', type=float, help='Accumulated balance')
    parser.add_argument('--rate', type=float, help='Interest rate override (e.g. 0.0341)')
    parser.add_argument('--index-value', type=float, help='Currency per index unit (UF)')
    parser.add_argument('--income-base', type=float, help='Disability income base')
    parser.add_argument('--degree', type=str, default='total',
                        choices=['total', 'total_2_3', 'partial'], help='Disability degree')
    parser.add_argument('--uninsured', action='store_true', help='No disability/survivorship insurance')
    parser.add_argument('--guaranteed-months', type=int, default=0, help='Guaranteed period in months')
    parser.add_argument('--increase-months', type=int, help='Temporary increase duration in months')
    parser.add_argument('--increase-percent', type=float, help='Temporary increase size')
    parser.add_argument('--increase-unit', type=str, default='percent',
                        choices=['percent', 'fraction'], help='Unit of --increase-percent')
    parser.add_argument('--beneficiary', type=parse_beneficiary, action='append',
                        help='relationship:age:sex[:share], repeatable (child_disabled for disabled dependents)')
    parser.add_argument('--causant-income-base', type=float, help='Causant income base (survivorship)')
    parser.add_argument('--causant-pension', type=float, help='Causant reference pension (survivorship)')
    parser.add_argument('--compare', action='store_true', help='Evaluate every modality of the category')
    parser.add_argument('--json', type=str, help='Write results to this JSON file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Check required arguments
    if not args.request:
        required = ['scenario', 'age', 'sex', 'balance']
        missing = [arg for arg in required if getattr(args, arg) is None]
        if missing:
            print(f"ERROR: Missing required arguments: {', '.join(missing)}")
            print("Use --request for a JSON request file or --help for usage.")
            sys.exit(1)

    config = None
    if args.config:
        with open(args.config) as f:
            config = json.load(f)

    from pydantic import ValidationError
    from pension_valuation import InvalidScenarioError

    try:
        run_simulation(build_request(args), compare=args.compare,
                       config=config, json_path=args.json)
    except (InvalidScenarioError, ValidationError) as e:
        print(f"ERROR: Invalid request\n{e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
