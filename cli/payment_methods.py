#!/usr/bin/env python3

from cli.users import current_user
from logger import get_logger
from models.schemas import (
    CreatePaymentMethodInput,
    UpdatePaymentMethodInput,
    parse_input,
)

logger = get_logger()


def cmd_list(args, services):
    """List the user's payment methods."""
    user = current_user(args, services)
    payment_methods = services.payment_methods.find_all(
        user.id, is_active=None if args.all else True
    )

    if not payment_methods:
        logger.info("No payment methods found.")
        return

    logger.info("\nPayment methods:")
    logger.info("=" * 80)
    for method in payment_methods:
        flags = []
        if method.is_default:
            flags.append("default")
        if not method.is_active:
            flags.append("inactive")
        suffix = f" ({', '.join(flags)})" if flags else ""
        logger.info(f"{method.id:>5}  {method.name}{suffix}")

    logger.info(f"\nTotal payment methods: {len(payment_methods)}")


def cmd_create(args, services):
    user = current_user(args, services)
    data = parse_input(CreatePaymentMethodInput, name=args.name)
    method = services.payment_methods.create(user.id, data)
    logger.info(f"\n✓ Payment method created successfully with ID: {method.id}")
    logger.info(f"  Name: {method.name}")


def cmd_rename(args, services):
    user = current_user(args, services)
    data = parse_input(UpdatePaymentMethodInput, name=args.name)
    method = services.payment_methods.update(args.payment_method_id, user.id, data)
    logger.info(f"✓ Payment method {method.id} renamed to '{method.name}'")


def cmd_deactivate(args, services):
    user = current_user(args, services)
    data = parse_input(UpdatePaymentMethodInput, is_active=False)
    method = services.payment_methods.update(args.payment_method_id, user.id, data)
    logger.info(f"✓ Payment method '{method.name}' deactivated")


def cmd_activate(args, services):
    user = current_user(args, services)
    data = parse_input(UpdatePaymentMethodInput, is_active=True)
    method = services.payment_methods.update(args.payment_method_id, user.id, data)
    logger.info(f"✓ Payment method '{method.name}' activated")


def cmd_delete(args, services):
    """Delete a payment method by ID."""
    user = current_user(args, services)
    method = services.payment_methods.find(args.payment_method_id, user.id)
    if not method:
        logger.error(f"Payment method with ID {args.payment_method_id} not found.")
        return

    if not args.yes:
        confirm = (
            input(f"\nDelete payment method '{method.name}'? (yes/no): ").strip().lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    services.payment_methods.delete(method.id, user.id)
    logger.info(f"✓ Payment method '{method.name}' deleted successfully.")


def setup_parser(subparsers):
    """Setup payment-methods subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "payment-methods",
        help="Manage payment methods",
        description="Create, list, rename and delete payment methods",
    )

    pm_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available payment method commands",
        dest="subcommand",
        required=True,
    )

    list_parser = pm_subparsers.add_parser("list", help="List payment methods")
    list_parser.add_argument(
        "--all", action="store_true", help="Include inactive payment methods"
    )
    list_parser.set_defaults(func=cmd_list)

    create_parser = pm_subparsers.add_parser("create", help="Create a payment method")
    create_parser.add_argument("name")
    create_parser.set_defaults(func=cmd_create)

    rename_parser = pm_subparsers.add_parser("rename", help="Rename a payment method")
    rename_parser.add_argument("payment_method_id", type=int)
    rename_parser.add_argument("name")
    rename_parser.set_defaults(func=cmd_rename)

    deactivate_parser = pm_subparsers.add_parser(
        "deactivate", help="Deactivate a payment method"
    )
    deactivate_parser.add_argument("payment_method_id", type=int)
    deactivate_parser.set_defaults(func=cmd_deactivate)

    activate_parser = pm_subparsers.add_parser(
        "activate", help="Activate a payment method"
    )
    activate_parser.add_argument("payment_method_id", type=int)
    activate_parser.set_defaults(func=cmd_activate)

    delete_parser = pm_subparsers.add_parser("delete", help="Delete a payment method")
    delete_parser.add_argument("payment_method_id", type=int)
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)
