#!/usr/bin/env python3

from logger import get_logger

logger = get_logger()


def current_user(args, services):
    """Resolve the acting user from --user or the configured default user.

    Raises:
        AuthenticationError: If neither names a known user.
    """
    return services.users.authenticate(getattr(args, "user", None))


def _log_user(user):
    logger.info(f"  ID: {user.id}")
    logger.info(f"  Email: {user.email}")
    if user.name:
        logger.info(f"  Name: {user.name}")
    logger.info(f"  Currency: {user.currency}")


def cmd_create(args, services):
    """Register a new user with default categories and payment methods."""
    currency = args.currency or services.config.default_currency
    user = services.users.create(args.email, name=args.name, currency=currency)

    categories = services.categories.find_all(user.id)
    payment_methods = services.payment_methods.find_all(user.id)

    logger.info("\n✓ User created successfully")
    _log_user(user)
    logger.info(
        f"  Seeded {len(categories)} categories and "
        f"{len(payment_methods)} payment methods"
    )


def cmd_show(args, services):
    """Show the acting user."""
    user = current_user(args, services)
    logger.info("\nUser:")
    _log_user(user)


def cmd_update(args, services):
    """Update the acting user's name and/or currency."""
    user = current_user(args, services)
    updated = services.users.update_profile(
        user.id, name=args.name, currency=args.currency
    )
    logger.info("\n✓ Profile updated")
    _log_user(updated)


def setup_parser(subparsers):
    """Setup users subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "users",
        help="Manage users",
        description="Register users and update profiles",
    )

    users_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available user commands",
        dest="subcommand",
        required=True,
    )

    # users create
    create_parser = users_subparsers.add_parser("create", help="Register a new user")
    create_parser.add_argument("email", help="Email address (login identity)")
    create_parser.add_argument("--name", help="Display name")
    create_parser.add_argument(
        "--currency", help="ISO 4217 currency code (defaults to the configured one)"
    )
    create_parser.set_defaults(func=cmd_create)

    # users show
    show_parser = users_subparsers.add_parser("show", help="Show the current user")
    show_parser.set_defaults(func=cmd_show)

    # users update
    update_parser = users_subparsers.add_parser(
        "update", help="Update the current user's profile"
    )
    update_parser.add_argument("--name", help="New display name")
    update_parser.add_argument("--currency", help="New ISO 4217 currency code")
    update_parser.set_defaults(func=cmd_update)
