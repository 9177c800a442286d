"""Helper utilities for tests."""

from datetime import date
from pathlib import Path
import sqlite3

from models.schemas import (
    CreateInvestmentInput,
    CreateRecurringRuleInput,
    CreateTransactionInput,
    parse_input,
)


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    migration_files = sorted(migrations_dir.glob("*.sql"))

    for migration_file in migration_files:
        conn.executescript(migration_file.read_text())

    conn.commit()


def rule_input(category_id=None, **overrides) -> CreateRecurringRuleInput:
    """Build a recurring rule payload; the whole amount goes to category_id if given."""
    data = {
        "title": "Rent",
        "amount": 250000,
        "kind": "expense",
        "day_of_month": 5,
        "active_from_month": "2025-01",
    }
    data.update(overrides)
    if category_id is not None and "categories" not in overrides:
        data["categories"] = [
            {"category_id": category_id, "allocated_amount": data["amount"]}
        ]
    return parse_input(CreateRecurringRuleInput, **data)


def transaction_input(category_id, **overrides) -> CreateTransactionInput:
    """Build a manual transaction payload split entirely into one category."""
    data = {
        "kind": "expense",
        "title": "Groceries",
        "amount": 15050,
        "status": "paid",
        "occurred_on": date(2025, 6, 10),
    }
    data.update(overrides)
    if "split" not in overrides:
        data["split"] = [{"category_id": category_id, "allocated_amount": data["amount"]}]
    return parse_input(CreateTransactionInput, **data)


def investment_input(**overrides) -> CreateInvestmentInput:
    """Build a 30-day simple-interest investment payload."""
    data = {
        "platform": "Banco Nación",
        "title": "Plazo fijo",
        "principal": 10000000,
        "tna": "36.5",
        "days": 30,
        "started_on": date(2025, 6, 1),
    }
    data.update(overrides)
    return parse_input(CreateInvestmentInput, **data)
