"""User service for registration and identity lookups."""

import sqlite3
from datetime import datetime
from typing import Optional

from db.seeds import DEFAULT_PAYMENT_METHODS, default_categories
from errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from models.user import User

_USER_SELECT_FIELDS = "id, email, name, currency, created_at"


class UserService:
    """Service for managing users."""

    def __init__(self, db_manager):
        """Initialize the user service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(
        self, email: str, name: Optional[str] = None, currency: str = "ARS"
    ) -> User:
        """Register a new user and seed their default categories and payment methods.

        The user row and all seeds are written in a single database transaction.

        Args:
            email: Login identity (stored lowercase).
            name: Optional display name.
            currency: ISO 4217 currency code.

        Returns:
            The created User object.

        Raises:
            ValidationError: If the email or currency is malformed.
            ConflictError: If a user with that email already exists.
        """
        email = self._normalize_email(email)
        currency = self._normalize_currency(currency)

        with self.db_manager.connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (email, name, currency) VALUES (?, ?, ?)",
                    (email, name, currency),
                )
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise ConflictError(f"A user with email {email} already exists") from e

            user_id = cursor.lastrowid

            conn.executemany(
                """
                INSERT INTO categories (user_id, kind, name, is_default)
                VALUES (?, ?, ?, 1)
                """,
                [(user_id, kind, category_name) for kind, category_name in default_categories()],
            )
            conn.executemany(
                """
                INSERT INTO payment_methods (user_id, name, is_default)
                VALUES (?, ?, 1)
                """,
                [(user_id, method_name) for method_name in DEFAULT_PAYMENT_METHODS],
            )
            conn.commit()

            row = conn.execute(
                f"SELECT {_USER_SELECT_FIELDS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return self._row_to_user(row)

    def find(self, user_id: int) -> Optional[User]:
        """Get a single user by ID.

        Args:
            user_id: The user ID to find.

        Returns:
            User object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_USER_SELECT_FIELDS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return self._row_to_user(row) if row else None

    def find_by_email(self, email: str) -> Optional[User]:
        """Get a single user by email (case-insensitive)."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_USER_SELECT_FIELDS} FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
            return self._row_to_user(row) if row else None

    def authenticate(self, email: Optional[str]) -> User:
        """Resolve the acting user from an identity supplied by the caller.

        Args:
            email: Identity of the caller.

        Returns:
            The matching User.

        Raises:
            AuthenticationError: If no identity was given or it is unknown.
        """
        if not email or not email.strip():
            raise AuthenticationError("No user given; pass --user or set default_user")

        user = self.find_by_email(email)
        if not user:
            raise AuthenticationError(f"Unknown user: {email}")
        return user

    def update_profile(
        self,
        user_id: int,
        name: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> User:
        """Update a user's display name and/or currency.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: If the currency is malformed.
        """
        existing = self.find(user_id)
        if not existing:
            raise NotFoundError("User", user_id)

        new_name = name if name is not None else existing.name
        new_currency = (
            self._normalize_currency(currency) if currency is not None else existing.currency
        )

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE users
                SET name = ?, currency = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (new_name, new_currency, user_id),
            )
            conn.commit()

        return User(
            id=existing.id,
            email=existing.email,
            name=new_name,
            currency=new_currency,
            created_at=existing.created_at,
        )

    def _normalize_email(self, email: str) -> str:
        email = (email or "").strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError(f"Invalid email: {email!r}")
        return email

    def _normalize_currency(self, currency: str) -> str:
        currency = (currency or "").strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"Invalid currency code: {currency!r}")
        return currency

    def _row_to_user(self, row: tuple) -> User:
        """Convert a database row to a User object."""
        return User(
            id=row[0],
            email=row[1],
            name=row[2],
            currency=row[3],
            created_at=datetime.fromisoformat(row[4]) if row[4] else None,
        )
