"""Payment method service for database operations."""

from typing import List, Optional

from errors import ConflictError, DomainError, NotFoundError
from models.payment_method import PaymentMethod
from models.schemas import CreatePaymentMethodInput, UpdatePaymentMethodInput

_PAYMENT_METHOD_SELECT_FIELDS = "id, user_id, name, is_active, is_default"


class PaymentMethodService:
    """Service for managing payment methods."""

    def __init__(self, db_manager):
        """Initialize the payment method service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(
        self, user_id: int, *, is_active: Optional[bool] = None
    ) -> List[PaymentMethod]:
        """Get a user's payment methods, ordered by name."""
        query = f"SELECT {_PAYMENT_METHOD_SELECT_FIELDS} FROM payment_methods WHERE user_id = ?"
        params: list = [user_id]

        if is_active is not None:
            query += " AND is_active = ?"
            params.append(1 if is_active else 0)

        query += " ORDER BY name"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_payment_method(row) for row in rows]

    def find(self, payment_method_id: int, user_id: int) -> Optional[PaymentMethod]:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_PAYMENT_METHOD_SELECT_FIELDS} FROM payment_methods
                WHERE id = ? AND user_id = ?
                """,
                (payment_method_id, user_id),
            ).fetchone()
            return self._row_to_payment_method(row) if row else None

    def find_by_name(self, user_id: int, name: str) -> Optional[PaymentMethod]:
        """Get a payment method by name (case-insensitive)."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_PAYMENT_METHOD_SELECT_FIELDS} FROM payment_methods
                WHERE user_id = ? AND lower(name) = lower(?)
                """,
                (user_id, name),
            ).fetchone()
            return self._row_to_payment_method(row) if row else None

    def create(self, user_id: int, data: CreatePaymentMethodInput) -> PaymentMethod:
        """Create a new payment method.

        Raises:
            ConflictError: If a payment method with that name already exists.
        """
        if self.find_by_name(user_id, data.name):
            raise ConflictError(f'A payment method named "{data.name}" already exists')

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO payment_methods (user_id, name, is_active) VALUES (?, ?, ?)",
                (user_id, data.name, 1 if data.is_active else 0),
            )
            conn.commit()

            return PaymentMethod(
                id=cursor.lastrowid,
                user_id=user_id,
                name=data.name,
                is_active=data.is_active,
            )

    def update(
        self, payment_method_id: int, user_id: int, data: UpdatePaymentMethodInput
    ) -> PaymentMethod:
        """Rename and/or (de)activate a payment method.

        Raises:
            NotFoundError: If the payment method does not exist.
            DomainError: If it is a default payment method.
            ConflictError: If the new name is already taken.
        """
        existing = self.find(payment_method_id, user_id)
        if not existing:
            raise NotFoundError("Payment method", payment_method_id)

        if existing.is_default:
            raise DomainError("Default payment methods cannot be edited")

        name = data.name if data.name is not None else existing.name
        is_active = data.is_active if data.is_active is not None else existing.is_active

        duplicate = self.find_by_name(user_id, name)
        if duplicate and duplicate.id != payment_method_id:
            raise ConflictError(f'A payment method named "{name}" already exists')

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE payment_methods
                SET name = ?, is_active = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND user_id = ?
                """,
                (name, 1 if is_active else 0, payment_method_id, user_id),
            )
            conn.commit()

        return PaymentMethod(
            id=existing.id,
            user_id=user_id,
            name=name,
            is_active=is_active,
            is_default=existing.is_default,
        )

    def is_in_use(self, payment_method_id: int) -> bool:
        """Check whether any transaction or recurring rule references the payment method."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                """
                SELECT EXISTS (
                    SELECT 1 FROM transactions WHERE payment_method_id = ?
                ) OR EXISTS (
                    SELECT 1 FROM recurring_rules WHERE payment_method_id = ?
                )
                """,
                (payment_method_id, payment_method_id),
            ).fetchone()
            return bool(row[0])

    def delete(self, payment_method_id: int, user_id: int) -> None:
        """Delete a payment method.

        Raises:
            NotFoundError: If the payment method does not exist.
            DomainError: If it is a default payment method.
            ConflictError: If transactions or rules reference it.
        """
        payment_method = self.find(payment_method_id, user_id)
        if not payment_method:
            raise NotFoundError("Payment method", payment_method_id)

        if not payment_method.can_be_deleted():
            raise DomainError("Default payment methods cannot be deleted")

        if self.is_in_use(payment_method_id):
            raise ConflictError(
                "The payment method has associated transactions or recurring rules; "
                "deactivate it instead"
            )

        with self.db_manager.connect() as conn:
            conn.execute(
                "DELETE FROM payment_methods WHERE id = ? AND user_id = ?",
                (payment_method_id, user_id),
            )
            conn.commit()

    def _row_to_payment_method(self, row: tuple) -> PaymentMethod:
        return PaymentMethod(
            id=row[0],
            user_id=row[1],
            name=row[2],
            is_active=bool(row[3]),
            is_default=bool(row[4]),
        )
