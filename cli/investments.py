#!/usr/bin/env python3

from datetime import date
from decimal import Decimal, InvalidOperation

from cli.users import current_user
from errors import ValidationError
from logger import get_logger
from models.money import format_amount, parse_amount
from models.schemas import (
    INVESTMENT_SORTABLE_COLUMNS,
    CreateInvestmentInput,
    ListInvestmentsParams,
    UpdateInvestmentInput,
    parse_input,
)

logger = get_logger()


def _parse_rate(value):
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValidationError(f"Invalid rate: {value!r}")


def _log_investment(investment, currency, today):
    kind = "compound" if investment.is_compound else "simple"
    if investment.days is None:
        term = "open-ended"
    elif investment.has_ended(today):
        term = f"{investment.days}d, ended"
    else:
        term = f"{investment.days}d, {investment.days_remaining(today)}d left"
    logger.info(
        f"{investment.id:>5}  {investment.started_on.isoformat()}  "
        f"{format_amount(investment.principal, currency):>18}  "
        f"{investment.tna:>6.2f}%  {investment.platform} / {investment.title} "
        f"({kind}, {term})"
    )


def cmd_list(args, services):
    """List investments with filters and pagination."""
    user = current_user(args, services)
    params = parse_input(
        ListInvestmentsParams,
        q=args.q,
        active=args.active,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
        page=args.page,
        page_size=args.page_size,
    )
    result = services.investments.list(user.id, params)

    if not result.items:
        logger.info("No investments found.")
        return

    today = services.clock()
    logger.info("\nInvestments:")
    logger.info("=" * 80)
    for investment in result.items:
        _log_investment(investment, user.currency, today)
    logger.info("=" * 80)
    logger.info(
        f"Page {result.page} of {result.total_pages} ({result.total} investments), "
        f"total invested: "
        f"{format_amount(services.investments.total_invested(user.id), user.currency)}"
    )


def cmd_show(args, services):
    """Show an investment and its yield."""
    user = current_user(args, services)
    investment = services.investments.require(args.investment_id, user.id)
    result = services.investments.calculate_yield(investment)

    _log_investment(investment, user.currency, services.clock())
    if investment.notes:
        logger.info(f"  Notes: {investment.notes}")
    logger.info(
        f"  Yield over {result.days} days: {format_amount(result.yield_amount, user.currency)}"
    )
    logger.info(f"  Total: {format_amount(result.total, user.currency)}")


def cmd_add(args, services):
    """Record a new investment."""
    user = current_user(args, services)
    data = parse_input(
        CreateInvestmentInput,
        platform=args.platform,
        title=args.title,
        principal=parse_amount(args.principal),
        tna=_parse_rate(args.tna),
        days=args.days,
        is_compound=args.compound,
        started_on=date.fromisoformat(args.started) if args.started else services.clock(),
        notes=args.notes,
    )
    investment = services.investments.create(user.id, data)

    logger.info(f"\n✓ Investment created successfully with ID: {investment.id}")
    _log_investment(investment, user.currency, services.clock())


def cmd_update(args, services):
    """Update an investment."""
    user = current_user(args, services)

    changes = {}
    if args.platform is not None:
        changes["platform"] = args.platform
    if args.title is not None:
        changes["title"] = args.title
    if args.principal is not None:
        changes["principal"] = parse_amount(args.principal)
    if args.tna is not None:
        changes["tna"] = _parse_rate(args.tna)
    if args.days is not None:
        changes["days"] = args.days
    if args.started is not None:
        changes["started_on"] = date.fromisoformat(args.started)
    if args.notes is not None:
        changes["notes"] = args.notes

    if not changes:
        logger.info("Nothing to update.")
        return

    investment = services.investments.update(
        args.investment_id, user.id, parse_input(UpdateInvestmentInput, **changes)
    )
    logger.info(f"✓ Investment {investment.id} updated")
    _log_investment(investment, user.currency, services.clock())


def cmd_rates(args, services):
    """Set the rate for every investment on a platform."""
    user = current_user(args, services)
    updated = services.investments.update_rates(user.id, args.platform, _parse_rate(args.tna))
    logger.info(f"✓ {updated} investment(s) on {args.platform} now at {args.tna}%")


def cmd_delete(args, services):
    """Delete an investment by ID."""
    user = current_user(args, services)
    investment = services.investments.require(args.investment_id, user.id)

    if not args.yes:
        _log_investment(investment, user.currency, services.clock())
        confirm = input("\nDelete this investment? (yes/no): ").strip().lower()
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    services.investments.delete(investment.id, user.id)
    logger.info(f"✓ Investment {investment.id} deleted successfully.")


def cmd_calc(args, services):
    """Calculate a yield without saving anything."""
    user = current_user(args, services)
    result = services.investments.calculator.calculate(
        parse_amount(args.principal), _parse_rate(args.tna), args.days, args.compound
    )
    logger.info(f"Yield: {format_amount(result.yield_amount, user.currency)}")
    logger.info(f"Total: {format_amount(result.total, user.currency)}")


def setup_parser(subparsers):
    """Setup investments subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "investments",
        help="Track investments",
        description="Record fixed-rate investments and calculate their yield",
    )

    inv_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available investment commands",
        dest="subcommand",
        required=True,
    )

    # investments list
    list_parser = inv_subparsers.add_parser("list", help="List investments")
    list_parser.add_argument("-q", help="Search text in title, platform or notes")
    status = list_parser.add_mutually_exclusive_group()
    status.add_argument(
        "--active", dest="active", action="store_const", const=True, help="Only running investments"
    )
    status.add_argument(
        "--ended", dest="active", action="store_const", const=False, help="Only ended investments"
    )
    list_parser.add_argument(
        "--sort-by", default="started_on", choices=INVESTMENT_SORTABLE_COLUMNS
    )
    list_parser.add_argument("--sort-order", default="desc", choices=["asc", "desc"])
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--page-size", type=int, default=20)
    list_parser.set_defaults(func=cmd_list)

    # investments show
    show_parser = inv_subparsers.add_parser("show", help="Show an investment and its yield")
    show_parser.add_argument("investment_id", type=int)
    show_parser.set_defaults(func=cmd_show)

    # investments add
    add_parser = inv_subparsers.add_parser("add", help="Record an investment")
    add_parser.add_argument("platform")
    add_parser.add_argument("title")
    add_parser.add_argument("principal", help="Amount, e.g. 100000.00")
    add_parser.add_argument("tna", help="Nominal annual rate in percent, e.g. 45.5")
    add_parser.add_argument("--days", type=int, help="Duration (required unless --compound)")
    add_parser.add_argument(
        "--compound", action="store_true", help="Daily capitalization"
    )
    add_parser.add_argument("--started", help="Start date (YYYY-MM-DD), defaults to today")
    add_parser.add_argument("--notes")
    add_parser.set_defaults(func=cmd_add)

    # investments update
    update_parser = inv_subparsers.add_parser("update", help="Update an investment")
    update_parser.add_argument("investment_id", type=int)
    update_parser.add_argument("--platform")
    update_parser.add_argument("--title")
    update_parser.add_argument("--principal")
    update_parser.add_argument("--tna")
    update_parser.add_argument("--days", type=int)
    update_parser.add_argument("--started", help="Start date (YYYY-MM-DD)")
    update_parser.add_argument("--notes")
    update_parser.set_defaults(func=cmd_update)

    # investments rates
    rates_parser = inv_subparsers.add_parser(
        "rates", help="Set the rate of all investments on a platform"
    )
    rates_parser.add_argument("platform")
    rates_parser.add_argument("tna", help="Nominal annual rate in percent")
    rates_parser.set_defaults(func=cmd_rates)

    # investments delete
    delete_parser = inv_subparsers.add_parser("delete", help="Delete an investment")
    delete_parser.add_argument("investment_id", type=int)
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    # investments calc
    calc_parser = inv_subparsers.add_parser("calc", help="Calculate a yield")
    calc_parser.add_argument("principal", help="Amount, e.g. 100000.00")
    calc_parser.add_argument("tna", help="Nominal annual rate in percent")
    calc_parser.add_argument("days", type=int)
    calc_parser.add_argument("--compound", action="store_true")
    calc_parser.set_defaults(func=cmd_calc)
