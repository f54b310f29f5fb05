import argparse
import logging

import pandas as pd

from engine import RetirementProjector
from utils.currency import format_currency_output
from utils.input_adapter import get_planner_inputs
from utils.xml_loader import parse_overrides_xml, parse_portfolio_xml

# Columns printed for each year
SUMMARY_COLUMNS = [
    "age", "phase", "spending", "rmd", "tax",
    "savings_end", "pretax401k_end", "rothIra_end", "total_balance", "residual",
]


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Deterministic retirement projection with tax-aware withdrawals",
        epilog="""
Examples:
  python retirement_projection.py
  python retirement_projection.py --accounts my_accounts.xml --overrides my_overrides.xml
  python retirement_projection.py --order rothIra,savings,pretax401k -v
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--accounts", help="Accounts XML (defaults to config/default_accounts.xml)")
    parser.add_argument("--overrides", help="Per-age overrides XML")
    parser.add_argument("--order", help="Comma-separated withdrawal order")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-year detail")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.overrides:
        overrides.update(parse_overrides_xml(args.overrides))
    if args.order:
        overrides["withdrawal_order"] = args.order
    accounts = parse_portfolio_xml(args.accounts) if args.accounts else None

    inputs = get_planner_inputs(accounts, **overrides)
    results = RetirementProjector(inputs).run()

    df = results.to_dataframe()
    with pd.option_context("display.max_rows", None, "display.width", 200,
                           "display.float_format", "{:,.0f}".format):
        print(df[[c for c in SUMMARY_COLUMNS if c in df.columns]])

    summary = results.summary()
    print(f"\nFinal balance: {format_currency_output(summary['final_balance'])}")
    print(f"Total federal tax: {format_currency_output(summary['total_tax'])}")
    if summary["first_shortfall_age"] is not None:
        print(f"Spending first falls short at age {summary['first_shortfall_age']} "
              f"({summary['shortfall_years']} short year(s))")
    for warning in results.warnings:
        print(f"Warning: {warning}")


if __name__ == "__main__":
    main()
