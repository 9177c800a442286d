#!/usr/bin/env python3

from cli.users import current_user
from logger import get_logger
from models.money import format_amount
from models.month import Month
from tools.transactions import get_period_summary

logger = get_logger()


def cmd_period(args, services):
    """Show income, expenses and net per month over a range of months."""
    user = current_user(args, services)
    start = Month.parse(args.start)
    end = Month.parse(args.end)
    summary = get_period_summary(
        services, user.id, start, end, category_ids=args.category or None
    )

    if not summary:
        logger.info("Empty period: end month is before start month.")
        return

    names = {c.id: c.name for c in services.categories.find_all(user.id)}
    currency = user.currency

    logger.info(f"\nPeriod {start} to {end}")
    logger.info("=" * 80)
    for month_key, data in summary.items():
        logger.info(
            f"{month_key}  income {format_amount(data['income_total'], currency):>16}  "
            f"expenses {format_amount(data['expense_total'], currency):>16}  "
            f"net {format_amount(data['net'], currency):>16}"
        )
        if args.by_category:
            for category_id, total in sorted(
                data["expenses_by_category"].items(), key=lambda item: -item[1]
            ):
                name = names.get(category_id, "Uncategorized")
                logger.info(f"    {name:<30} {format_amount(total, currency):>16}")


def setup_parser(subparsers):
    """Setup reports subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "reports",
        help="Reports over several months",
        description="Summaries across a range of months",
    )

    reports_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available report commands",
        dest="subcommand",
        required=True,
    )

    period_parser = reports_subparsers.add_parser(
        "period", help="Monthly totals over a range of months"
    )
    period_parser.add_argument("--from", dest="start", required=True, help="YYYY-MM")
    period_parser.add_argument("--to", dest="end", required=True, help="YYYY-MM")
    period_parser.add_argument(
        "--category", type=int, action="append", default=[], help="Category ID (repeatable)"
    )
    period_parser.add_argument(
        "--by-category", action="store_true", help="Show expenses by category"
    )
    period_parser.set_defaults(func=cmd_period)
