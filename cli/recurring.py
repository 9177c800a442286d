#!/usr/bin/env python3

from cli.transactions import add_split_argument, build_splits
from cli.users import current_user
from logger import get_logger
from models.money import format_amount, parse_amount
from models.month import Month
from models.schemas import (
    CreateRecurringRuleInput,
    UpdateRecurringRuleInput,
    parse_input,
)

logger = get_logger()


def _window(rule):
    end = str(rule.active_to_month) if rule.active_to_month else "open"
    return f"{rule.active_from_month} → {end}"


def _log_rule(rule, currency):
    state = "" if rule.is_active else " (inactive)"
    logger.info(f"ID: {rule.id}{state}")
    logger.info(f"Title: {rule.title}")
    if rule.description:
        logger.info(f"Description: {rule.description}")
    logger.info(f"Kind: {rule.kind}")
    logger.info(f"Amount: {format_amount(rule.amount, currency)}")
    logger.info(f"Day of month: {rule.day_of_month}")
    logger.info(f"Status: {rule.status or 'default'} → {rule.materialized_status()}")
    logger.info(f"Window: {_window(rule)}")
    if rule.payment_method_id:
        logger.info(f"Payment method ID: {rule.payment_method_id}")
    for split in rule.categories:
        logger.info(
            f"  Category {split.category_id}: "
            f"{format_amount(split.allocated_amount, currency)}"
        )


def cmd_list(args, services):
    """List recurring rules."""
    user = current_user(args, services)
    if args.month:
        rules = services.recurring_rules.list_active_for_user(
            user.id, Month.parse(args.month)
        )
    else:
        rules = services.recurring_rules.find_all(user.id)

    if not rules:
        logger.info("No recurring rules found.")
        return

    logger.info("\nRecurring rules:")
    logger.info("=" * 80)
    for rule in rules:
        state = " " if rule.is_active else "x"
        logger.info(
            f"{rule.id:>5} {state} day {rule.day_of_month:>2}  {rule.kind:<8} "
            f"{format_amount(rule.amount, user.currency):>16}  {rule.title} "
            f"[{_window(rule)}]"
        )

    logger.info(f"\nTotal rules: {len(rules)}")


def cmd_show(args, services):
    user = current_user(args, services)
    rule = services.recurring_rules.require(args.rule_id, user.id)
    logger.info("")
    _log_rule(rule, user.currency)


def cmd_create(args, services):
    """Create a recurring rule."""
    user = current_user(args, services)
    amount = parse_amount(args.amount)
    active_from = args.start or str(Month.current(services.clock()))

    data = parse_input(
        CreateRecurringRuleInput,
        title=args.title,
        description=args.description,
        amount=amount,
        kind=args.kind,
        day_of_month=args.day,
        status=args.status,
        payment_method_id=args.payment_method,
        active_from_month=active_from,
        active_to_month=args.end,
        categories=build_splits(args.split, amount),
    )
    rule = services.recurring_rules.create(user.id, data)

    logger.info(f"\n✓ Recurring rule created successfully with ID: {rule.id}")
    _log_rule(rule, user.currency)


def cmd_update(args, services):
    """Update a recurring rule; running rules get a new version."""
    user = current_user(args, services)
    existing = services.recurring_rules.require(args.rule_id, user.id)

    changes = {}
    if args.title is not None:
        changes["title"] = args.title
    if args.description is not None:
        changes["description"] = args.description
    if args.amount is not None:
        changes["amount"] = parse_amount(args.amount)
    if args.day is not None:
        changes["day_of_month"] = args.day
    if args.status is not None:
        changes["status"] = args.status
    if args.payment_method is not None:
        changes["payment_method_id"] = args.payment_method
    if args.start is not None:
        changes["active_from_month"] = args.start
    if args.end is not None:
        changes["active_to_month"] = args.end
    if args.split:
        changes["categories"] = build_splits(
            args.split, changes.get("amount", existing.amount)
        )

    if not changes:
        logger.info("Nothing to update.")
        return

    data = parse_input(UpdateRecurringRuleInput, **changes)
    rule = services.recurring_rules.update(existing.id, user.id, data)

    if rule.id != existing.id:
        logger.info(
            f"\n✓ Rule {existing.id} closed; new version created with ID: {rule.id}"
        )
    else:
        logger.info(f"\n✓ Rule {rule.id} updated")
    _log_rule(rule, user.currency)


def cmd_deactivate(args, services):
    user = current_user(args, services)
    rule = services.recurring_rules.deactivate(args.rule_id, user.id)
    logger.info(f"✓ Recurring rule '{rule.title}' deactivated")


def cmd_activate(args, services):
    user = current_user(args, services)
    rule = services.recurring_rules.activate(args.rule_id, user.id)
    logger.info(f"✓ Recurring rule '{rule.title}' activated")


def cmd_delete(args, services):
    """Delete a rule, or close it at the previous month when still running."""
    user = current_user(args, services)
    closed = services.recurring_rules.delete(args.rule_id, user.id)
    if closed:
        logger.info(
            f"✓ Recurring rule '{closed.title}' closed at {closed.active_to_month}"
        )
    else:
        logger.info(f"✓ Recurring rule {args.rule_id} deleted")


def cmd_generate(args, services):
    """Materialize recurring transactions for a month."""
    user = current_user(args, services)
    month = args.month or str(Month.current(services.clock()))
    result = services.materializer.materialize(user.id, month)

    logger.info(f"\nRecurring transactions for {result.month}:")
    logger.info("=" * 80)
    for transaction in result.created:
        logger.info(
            f"✓ {transaction.occurred_on.isoformat()}  "
            f"{format_amount(transaction.amount, user.currency):>16}  "
            f"{transaction.title} ({transaction.status})"
        )
    logger.info(f"\nCreated: {result.created_count}")
    logger.info(f"Already present: {len(result.skipped_rule_ids)}")


def _add_rule_arguments(parser, required: bool):
    parser.add_argument("--description")
    parser.add_argument("--day", type=int, required=required, help="Day of month (1-31)")
    parser.add_argument(
        "--status",
        choices=["pending", "paid"],
        help="Status of generated transactions (default: pending expenses, paid income)",
    )
    parser.add_argument("--payment-method", type=int, help="Payment method ID")
    parser.add_argument("--start", help="First month (YYYY-MM)")
    parser.add_argument("--end", help="Last month (YYYY-MM), open-ended if omitted")
    add_split_argument(parser)


def setup_parser(subparsers):
    """Setup recurring subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "recurring",
        help="Manage recurring rules",
        description="Define monthly income/expense rules and generate their transactions",
    )

    recurring_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available recurring rule commands",
        dest="subcommand",
        required=True,
    )

    list_parser = recurring_subparsers.add_parser("list", help="List recurring rules")
    list_parser.add_argument(
        "--month", help="Only active rules applying to this month (YYYY-MM)"
    )
    list_parser.set_defaults(func=cmd_list)

    show_parser = recurring_subparsers.add_parser("show", help="Show a recurring rule")
    show_parser.add_argument("rule_id", type=int)
    show_parser.set_defaults(func=cmd_show)

    create_parser = recurring_subparsers.add_parser(
        "create", help="Create a recurring rule"
    )
    create_parser.add_argument("kind", choices=["income", "expense"])
    create_parser.add_argument("amount", help="Amount, e.g. 1500.50")
    create_parser.add_argument("title")
    _add_rule_arguments(create_parser, required=True)
    create_parser.set_defaults(func=cmd_create)

    update_parser = recurring_subparsers.add_parser(
        "update", help="Update a recurring rule"
    )
    update_parser.add_argument("rule_id", type=int)
    update_parser.add_argument("--title")
    update_parser.add_argument("--amount")
    _add_rule_arguments(update_parser, required=False)
    update_parser.set_defaults(func=cmd_update)

    deactivate_parser = recurring_subparsers.add_parser(
        "deactivate", help="Stop generating transactions for a rule"
    )
    deactivate_parser.add_argument("rule_id", type=int)
    deactivate_parser.set_defaults(func=cmd_deactivate)

    activate_parser = recurring_subparsers.add_parser(
        "activate", help="Resume generating transactions for a rule"
    )
    activate_parser.add_argument("rule_id", type=int)
    activate_parser.set_defaults(func=cmd_activate)

    delete_parser = recurring_subparsers.add_parser(
        "delete", help="Delete (or close) a recurring rule"
    )
    delete_parser.add_argument("rule_id", type=int)
    delete_parser.set_defaults(func=cmd_delete)

    generate_parser = recurring_subparsers.add_parser(
        "generate", help="Generate recurring transactions for a month"
    )
    generate_parser.add_argument("--month", help="Month (YYYY-MM), defaults to current")
    generate_parser.set_defaults(func=cmd_generate)
