"""Shared pytest fixtures for all tests."""

import sqlite3
from datetime import date
from pathlib import Path

import pytest

from cli.migrate import apply_pending
from config import Config, get_migrations_dir
from db.manager import DatabaseManager
from services.base import Services
from tests.helpers import run_migrations

# Fixed "today" for every test: mid June 2025
TODAY = date(2025, 6, 15)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary database.

    Args:
        tmp_path: pytest tmp_path fixture for temporary directory.

    Returns:
        Config: Test configuration object.
    """
    return Config(
        base_dir=tmp_path / "cifra",
        db_data_dir=tmp_path / "cifra" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "cifra" / "logs",
        default_user=None,
        default_currency="ARS",
        enable_reset=False,
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with schema already set up.

    This fixture provides a DatabaseManager that uses an in-memory database
    with all migrations already applied.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        DatabaseManager: Database manager with schema ready.
    """
    run_migrations(test_db, get_migrations_dir())

    class TestDatabaseManager:
        """Test database manager that uses in-memory connection."""

        def __init__(self, conn):
            self.conn = conn

        def connect(self):
            """Return a context manager for the test connection."""
            return _TestConnectionContext(self.conn)

        def get_db_path(self):
            """Return a fake path for the test database."""
            return Path(":memory:")

        def get_migrations_dir(self):
            """Get the migrations directory path."""
            return get_migrations_dir()

    class _TestConnectionContext:
        """Context manager for test database connections."""

        def __init__(self, conn):
            self.conn = conn

        def __enter__(self):
            return self.conn

        def __exit__(self, exc_type, exc_val, exc_tb):
            # Don't close the connection - let the fixture handle it
            pass

    return TestDatabaseManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Create a Services container with test database and a fixed clock.

    Returns:
        Services: Services container for testing.
    """
    return Services(test_config, db_manager=db_manager_with_schema, clock=lambda: TODAY)


@pytest.fixture
def file_services(test_config):
    """Services backed by a real SQLite file, for tests using several connections."""
    db_manager = DatabaseManager(test_config)
    apply_pending(db_manager)
    return Services(test_config, db_manager=db_manager, clock=lambda: TODAY)


@pytest.fixture
def user(services):
    """A registered user with the default categories and payment methods."""
    return services.users.create("ana@example.com", name="Ana")


@pytest.fixture
def other_user(services):
    return services.users.create("bruno@example.com", name="Bruno")


@pytest.fixture
def rent_category(services, user):
    return services.categories.find_by_name(user.id, "expense", "Rent")


@pytest.fixture
def utilities_category(services, user):
    return services.categories.find_by_name(user.id, "expense", "Utilities")


@pytest.fixture
def salary_category(services, user):
    return services.categories.find_by_name(user.id, "income", "Salary")


@pytest.fixture
def cash(services, user):
    return services.payment_methods.find_by_name(user.id, "Cash")
