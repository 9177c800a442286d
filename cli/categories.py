#!/usr/bin/env python3

from cli.users import current_user
from logger import get_logger
from models.schemas import CreateCategoryInput, UpdateCategoryInput, parse_input

logger = get_logger()


def cmd_list(args, services):
    """List the user's categories."""
    user = current_user(args, services)
    is_active = None if args.all else True
    categories = services.categories.find_all(
        user.id, kind=args.kind, is_active=is_active
    )

    if not categories:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in categories:
        flags = []
        if category.is_default:
            flags.append("default")
        if not category.is_active:
            flags.append("inactive")
        suffix = f" ({', '.join(flags)})" if flags else ""
        logger.info(f"{category.id:>5}  {category.kind:<8} {category.name}{suffix}")

    logger.info(f"\nTotal categories: {len(categories)}")


def cmd_create(args, services):
    """Create a new category."""
    user = current_user(args, services)
    data = parse_input(CreateCategoryInput, kind=args.kind, name=args.name)
    category = services.categories.create(user.id, data)

    logger.info(f"\n✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Kind: {category.kind}")


def cmd_rename(args, services):
    """Rename a category."""
    user = current_user(args, services)
    data = parse_input(UpdateCategoryInput, name=args.name)
    category = services.categories.update(args.category_id, user.id, data)
    logger.info(f"✓ Category {category.id} renamed to '{category.name}'")


def cmd_deactivate(args, services):
    """Deactivate a category so it is hidden from new entries."""
    user = current_user(args, services)
    data = parse_input(UpdateCategoryInput, is_active=False)
    category = services.categories.update(args.category_id, user.id, data)
    logger.info(f"✓ Category '{category.name}' deactivated")


def cmd_activate(args, services):
    """Re-activate a category."""
    user = current_user(args, services)
    data = parse_input(UpdateCategoryInput, is_active=True)
    category = services.categories.update(args.category_id, user.id, data)
    logger.info(f"✓ Category '{category.name}' activated")


def cmd_delete(args, services):
    """Delete a category by ID."""
    user = current_user(args, services)
    category = services.categories.find(args.category_id, user.id)
    if not category:
        logger.error(f"Category with ID {args.category_id} not found.")
        return

    if not args.yes:
        confirm = (
            input(f"\nDelete category '{category.name}'? (yes/no): ").strip().lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    services.categories.delete(category.id, user.id)
    logger.info(f"✓ Category '{category.name}' deleted successfully.")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, rename and delete income and expense categories",
    )

    # Add subcommands for categories
    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser("list", help="List categories")
    list_parser.add_argument("--kind", choices=["income", "expense"])
    list_parser.add_argument(
        "--all", action="store_true", help="Include inactive categories"
    )
    list_parser.set_defaults(func=cmd_list)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category"
    )
    create_parser.add_argument("kind", choices=["income", "expense"])
    create_parser.add_argument("name", help="Category name")
    create_parser.set_defaults(func=cmd_create)

    # categories rename
    rename_parser = categories_subparsers.add_parser("rename", help="Rename a category")
    rename_parser.add_argument("category_id", type=int)
    rename_parser.add_argument("name", help="New name")
    rename_parser.set_defaults(func=cmd_rename)

    # categories deactivate / activate
    deactivate_parser = categories_subparsers.add_parser(
        "deactivate", help="Deactivate a category"
    )
    deactivate_parser.add_argument("category_id", type=int)
    deactivate_parser.set_defaults(func=cmd_deactivate)

    activate_parser = categories_subparsers.add_parser(
        "activate", help="Activate a category"
    )
    activate_parser.add_argument("category_id", type=int)
    activate_parser.set_defaults(func=cmd_activate)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument(
        "category_id",
        type=int,
        help="ID of the category to delete",
    )
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)
