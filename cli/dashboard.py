#!/usr/bin/env python3

from cli.users import current_user
from logger import get_logger
from models.money import format_amount
from models.month import Month

logger = get_logger()


def cmd_summary(args, services):
    """Show the monthly dashboard (recurring transactions are generated first)."""
    user = current_user(args, services)
    month = args.month or str(Month.current(services.clock()))
    summary = services.dashboard.get_summary(user.id, month)
    currency = user.currency

    logger.info(f"\nSummary for {summary.month}")
    logger.info("=" * 80)
    logger.info(f"Income:   {format_amount(summary.total_income, currency):>18}")
    logger.info(f"Expenses: {format_amount(summary.total_expenses, currency):>18}")
    logger.info(f"Balance:  {format_amount(summary.balance, currency):>18}")

    if summary.expenses_by_category:
        logger.info("\nExpenses by category:")
        for item in summary.expenses_by_category:
            logger.info(f"  {item.category_name:<30} {format_amount(item.total, currency):>18}")

    if summary.income_by_category:
        logger.info("\nIncome by category:")
        for item in summary.income_by_category:
            logger.info(f"  {item.category_name:<30} {format_amount(item.total, currency):>18}")

    if summary.expenses_by_payment_method:
        logger.info("\nExpenses by payment method:")
        for item in summary.expenses_by_payment_method:
            logger.info(
                f"  {item.payment_method_name:<30} {format_amount(item.total, currency):>18}"
            )

    counts = summary.transactions_count
    logger.info(
        f"\nTransactions: {counts.total} ({counts.income} income, "
        f"{counts.expenses} expenses, {counts.pending} pending)"
    )


def setup_parser(subparsers):
    """Setup dashboard subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "dashboard",
        help="Monthly dashboard",
        description="Monthly income, expenses and breakdowns",
    )

    dashboard_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available dashboard commands",
        dest="subcommand",
        required=True,
    )

    summary_parser = dashboard_subparsers.add_parser(
        "summary", help="Show the monthly summary"
    )
    summary_parser.add_argument("--month", help="Month (YYYY-MM), defaults to current")
    summary_parser.set_defaults(func=cmd_summary)
