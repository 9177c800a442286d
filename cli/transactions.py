#!/usr/bin/env python3

import json
from datetime import date

from cli.users import current_user
from errors import ValidationError
from logger import get_logger
from models.money import format_amount, parse_amount
from models.month import Month
from models.schemas import (
    CreateTransactionInput,
    ListTransactionsParams,
    SORTABLE_COLUMNS,
    parse_input,
)

logger = get_logger()


def add_split_argument(parser):
    parser.add_argument(
        "--split",
        action="append",
        default=[],
        metavar="CATEGORY_ID[=AMOUNT]",
        help=(
            "Category allocation; repeat for several categories. "
            "A single split without an amount takes the whole amount."
        ),
    )


def build_splits(raw_splits, amount: int) -> list:
    """Turn --split arguments into split payloads (amounts in cents).

    Raises:
        ValidationError: If a split is malformed, or several splits omit
            their amount.
    """
    splits = []
    for raw in raw_splits:
        category_part, _, amount_part = raw.partition("=")
        try:
            category_id = int(category_part)
        except ValueError:
            raise ValidationError(f"Invalid category ID in split: {raw!r}")

        if amount_part:
            allocated = parse_amount(amount_part)
        elif len(raw_splits) == 1:
            allocated = amount
        else:
            raise ValidationError(
                "Each split needs an amount when more than one category is given"
            )
        splits.append({"category_id": category_id, "allocated_amount": allocated})
    return splits


def _parse_date(value):
    return date.fromisoformat(value) if value else None


def _log_transaction(transaction, currency):
    marker = "⟳" if transaction.is_generated else " "
    status = "✓" if transaction.status == "paid" else "…"
    sign = "+" if transaction.kind == "income" else "-"
    logger.info(
        f"{transaction.id:>6} {marker} {transaction.occurred_on.isoformat()}  "
        f"{status} {sign}{format_amount(transaction.amount, currency):>16}  "
        f"{transaction.title}"
    )


def cmd_list(args, services):
    """List transactions with filters and pagination."""
    user = current_user(args, services)
    params = parse_input(
        ListTransactionsParams,
        month=args.month,
        kind=args.kind,
        status=args.status,
        payment_method_id=args.payment_method,
        category_ids=args.category or None,
        q=args.q,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
        page=args.page,
        page_size=args.page_size,
    )
    result = services.transactions.list(user.id, params)

    if args.json:
        print(json.dumps([t.to_dict() for t in result.items], indent=2))
        return

    if not result.items:
        logger.info("No transactions found.")
        return

    logger.info("\nTransactions:")
    logger.info("=" * 80)
    for transaction in result.items:
        _log_transaction(transaction, user.currency)
    logger.info("=" * 80)
    logger.info(
        f"Page {result.page} of {result.total_pages} ({result.total} transactions)"
    )


def cmd_add(args, services):
    """Record a manual transaction."""
    user = current_user(args, services)
    amount = parse_amount(args.amount)
    occurred_on = _parse_date(args.date) or services.clock()

    data = parse_input(
        CreateTransactionInput,
        kind=args.kind,
        title=args.title,
        description=args.description,
        amount=amount,
        payment_method_id=args.payment_method,
        is_fixed=args.fixed,
        status=args.status,
        occurred_on=occurred_on,
        due_on=_parse_date(args.due),
        paid_on=_parse_date(args.paid_on),
        split=build_splits(args.split, amount),
    )
    transaction = services.transactions.create(user.id, data)

    logger.info(f"\n✓ Transaction created successfully with ID: {transaction.id}")
    _log_transaction(transaction, user.currency)


def cmd_pay(args, services):
    """Mark a pending transaction as paid."""
    user = current_user(args, services)
    transaction = services.transactions.mark_paid(
        args.transaction_id, user.id, paid_on=_parse_date(args.paid_on)
    )
    logger.info(
        f"✓ Transaction {transaction.id} paid on {transaction.paid_on.isoformat()}"
    )


def cmd_delete(args, services):
    """Delete a transaction by ID."""
    user = current_user(args, services)
    transaction = services.transactions.require(args.transaction_id, user.id)

    if not args.yes:
        _log_transaction(transaction, user.currency)
        confirm = input("\nDelete this transaction? (yes/no): ").strip().lower()
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    services.transactions.delete(transaction.id, user.id)
    logger.info(f"✓ Transaction {transaction.id} deleted successfully.")


def cmd_summary(args, services):
    """Show paid vs pending expenses for a month."""
    user = current_user(args, services)
    month = Month.parse(args.month) if args.month else Month.current(services.clock())
    summary = services.transactions.get_expense_status_summary(user.id, month)

    logger.info(f"\nExpenses for {summary.month}:")
    logger.info("=" * 80)
    logger.info(
        f"Paid:    {format_amount(summary.total_paid, user.currency):>18} "
        f"({summary.paid_count})"
    )
    logger.info(
        f"Pending: {format_amount(summary.total_pending, user.currency):>18} "
        f"({summary.pending_count})"
    )


def setup_parser(subparsers):
    """Setup transactions subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "transactions",
        help="Manage transactions",
        description="Record, list, pay and delete transactions",
    )

    transactions_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available transaction commands",
        dest="subcommand",
        required=True,
    )

    # transactions list
    list_parser = transactions_subparsers.add_parser("list", help="List transactions")
    list_parser.add_argument("--month", help="Month (YYYY-MM)")
    list_parser.add_argument("--kind", choices=["income", "expense"])
    list_parser.add_argument("--status", choices=["pending", "paid"])
    list_parser.add_argument("--payment-method", type=int, help="Payment method ID")
    list_parser.add_argument(
        "--category", type=int, action="append", default=[], help="Category ID (repeatable)"
    )
    list_parser.add_argument("-q", help="Search text in title or description")
    list_parser.add_argument(
        "--sort-by", default="occurred_on", choices=SORTABLE_COLUMNS
    )
    list_parser.add_argument("--sort-order", default="desc", choices=["asc", "desc"])
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--page-size", type=int, default=20)
    list_parser.add_argument("--json", action="store_true", help="Print the page as JSON")
    list_parser.set_defaults(func=cmd_list)

    # transactions add
    add_parser = transactions_subparsers.add_parser("add", help="Record a transaction")
    add_parser.add_argument("kind", choices=["income", "expense"])
    add_parser.add_argument("amount", help="Amount, e.g. 1500.50")
    add_parser.add_argument("title")
    add_parser.add_argument("--description")
    add_parser.add_argument("--date", help="Date (YYYY-MM-DD), defaults to today")
    add_parser.add_argument(
        "--status", choices=["pending", "paid"], default="paid"
    )
    add_parser.add_argument("--due", help="Due date for pending transactions (YYYY-MM-DD)")
    add_parser.add_argument("--paid-on", help="Payment date (YYYY-MM-DD)")
    add_parser.add_argument("--payment-method", type=int, help="Payment method ID")
    add_parser.add_argument("--fixed", action="store_true", help="Mark as a fixed entry")
    add_split_argument(add_parser)
    add_parser.set_defaults(func=cmd_add)

    # transactions pay
    pay_parser = transactions_subparsers.add_parser(
        "pay", help="Mark a transaction as paid"
    )
    pay_parser.add_argument("transaction_id", type=int)
    pay_parser.add_argument("--paid-on", help="Payment date (YYYY-MM-DD), defaults to today")
    pay_parser.set_defaults(func=cmd_pay)

    # transactions delete
    delete_parser = transactions_subparsers.add_parser(
        "delete", help="Delete a transaction"
    )
    delete_parser.add_argument("transaction_id", type=int)
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    # transactions summary
    summary_parser = transactions_subparsers.add_parser(
        "summary", help="Paid vs pending expenses for a month"
    )
    summary_parser.add_argument("--month", help="Month (YYYY-MM), defaults to current")
    summary_parser.set_defaults(func=cmd_summary)
