"""Category service for database operations."""

from typing import List, Optional

from errors import ConflictError, DomainError, NotFoundError
from models.category import Category
from models.schemas import CreateCategoryInput, UpdateCategoryInput

_CATEGORY_SELECT_FIELDS = "id, user_id, kind, name, is_active, is_default"


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(
        self,
        user_id: int,
        *,
        kind: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Category]:
        """Get a user's categories.

        Args:
            user_id: Owning user.
            kind: Optional 'income' or 'expense' filter.
            is_active: Optional active flag filter.

        Returns:
            List of Category objects, ordered by kind then name.
        """
        query = f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE user_id = ?"
        params: list = [user_id]

        if kind is not None:
            query += " AND kind = ?"
            params.append(kind)

        if is_active is not None:
            query += " AND is_active = ?"
            params.append(1 if is_active else 0)

        query += " ORDER BY kind, name"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_category(row) for row in rows]

    def find(self, category_id: int, user_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.
            user_id: Owning user; categories of other users are not returned.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ? AND user_id = ?",
                (category_id, user_id),
            ).fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def find_by_name(self, user_id: int, kind: str, name: str) -> Optional[Category]:
        """Get a category by name within a kind (case-insensitive).

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS} FROM categories
                WHERE user_id = ? AND kind = ? AND lower(name) = lower(?)
                """,
                (user_id, kind, name),
            ).fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def create(self, user_id: int, data: CreateCategoryInput) -> Category:
        """Create a new category.

        Args:
            user_id: Owning user.
            data: Validated category payload.

        Returns:
            The created Category object with id populated.

        Raises:
            ConflictError: If a category with the same name and kind exists.
        """
        if self.find_by_name(user_id, data.kind, data.name):
            raise ConflictError(
                f'An {data.kind} category named "{data.name}" already exists'
            )

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO categories (user_id, kind, name) VALUES (?, ?, ?)",
                (user_id, data.kind, data.name),
            )
            conn.commit()

            return Category(
                id=cursor.lastrowid,
                user_id=user_id,
                kind=data.kind,
                name=data.name,
            )

    def update(
        self, category_id: int, user_id: int, data: UpdateCategoryInput
    ) -> Category:
        """Rename and/or (de)activate a category.

        Raises:
            NotFoundError: If the category does not exist.
            DomainError: If the category is a default category.
            ConflictError: If the new name clashes with another category.
        """
        existing = self.find(category_id, user_id)
        if not existing:
            raise NotFoundError("Category", category_id)

        if existing.is_default:
            raise DomainError("Default categories cannot be edited")

        name = data.name if data.name is not None else existing.name
        is_active = data.is_active if data.is_active is not None else existing.is_active

        if name.lower() != existing.name.lower():
            duplicate = self.find_by_name(user_id, existing.kind, name)
            if duplicate and duplicate.id != category_id:
                raise ConflictError(f'Another category named "{name}" already exists')

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE categories
                SET name = ?, is_active = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND user_id = ?
                """,
                (name, 1 if is_active else 0, category_id, user_id),
            )
            conn.commit()

        return Category(
            id=existing.id,
            user_id=user_id,
            kind=existing.kind,
            name=name,
            is_active=is_active,
            is_default=existing.is_default,
        )

    def is_in_use(self, category_id: int) -> bool:
        """Check whether any transaction split or recurring rule references the category."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                """
                SELECT EXISTS (
                    SELECT 1 FROM transaction_categories WHERE category_id = ?
                ) OR EXISTS (
                    SELECT 1 FROM recurring_rule_categories WHERE category_id = ?
                )
                """,
                (category_id, category_id),
            ).fetchone()
            return bool(row[0])

    def delete(self, category_id: int, user_id: int) -> None:
        """Delete a category.

        Raises:
            NotFoundError: If the category does not exist.
            DomainError: If the category is a default category.
            ConflictError: If the category is referenced; deactivate it instead.
        """
        category = self.find(category_id, user_id)
        if not category:
            raise NotFoundError("Category", category_id)

        if not category.can_be_deleted():
            raise DomainError("Default categories cannot be deleted")

        if self.is_in_use(category_id):
            raise ConflictError(
                "The category has associated transactions or recurring rules; "
                "deactivate it instead"
            )

        with self.db_manager.connect() as conn:
            conn.execute(
                "DELETE FROM categories WHERE id = ? AND user_id = ?",
                (category_id, user_id),
            )
            conn.commit()

    def _row_to_category(self, row: tuple) -> Category:
        return Category(
            id=row[0],
            user_id=row[1],
            kind=row[2],
            name=row[3],
            is_active=bool(row[4]),
            is_default=bool(row[5]),
        )
