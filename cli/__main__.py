#!/usr/bin/env python3
"""
Cifra CLI - Unified command-line interface for personal finances.

Usage:
    python -m cli [--user EMAIL] <command> <subcommand> [options]

Commands:
    users            Register users and update profiles
    categories       Manage income and expense categories
    payment-methods  Manage payment methods
    recurring        Manage recurring rules and generate their transactions
    transactions     Record and manage transactions
    dashboard        Monthly summary
    investments      Track investments and their yield
    reports          Reports over several months
    migrate          Database migrations

Examples:
    python -m cli migrate apply
    python -m cli users create ana@example.com --name Ana
    python -m cli --user ana@example.com recurring create expense 250000 Rent --day 5 --split 3
    python -m cli --user ana@example.com recurring generate --month 2025-06
    python -m cli --user ana@example.com dashboard summary --month 2025-06
"""

import sys
import argparse
from cli import (
    categories,
    dashboard,
    investments,
    migrate,
    payment_methods,
    recurring,
    reports,
    transactions,
    users,
)
from config import load_config
from errors import normalize_error
from services.base import Services
from db.manager import DatabaseManager
from logger import get_logger, setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Cifra - Personal finance tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--user",
        help="Email of the acting user (defaults to default_user from the config)",
    )

    # Create subparsers for each command
    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # Register each command's subparser
    users.setup_parser(subparsers)
    categories.setup_parser(subparsers)
    payment_methods.setup_parser(subparsers)
    recurring.setup_parser(subparsers)
    transactions.setup_parser(subparsers)
    dashboard.setup_parser(subparsers)
    investments.setup_parser(subparsers)
    reports.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    # Parse arguments and execute
    args = parser.parse_args()

    # Call the appropriate handler function
    if hasattr(args, "func"):
        try:
            # Load configuration
            config = load_config()

            # Set up logging
            setup_logging(config)

            if args.command == "migrate":
                # Migrate commands need db_manager for raw database operations
                args.func(args, DatabaseManager(config))
            else:
                args.user = args.user or config.default_user
                # Create services container for dependency injection
                args.func(args, Services(config))
        except Exception as e:
            error = normalize_error(e)
            get_logger().debug("Command failed", exc_info=True)
            print(f"Error [{error['code']}]: {error['message']}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
