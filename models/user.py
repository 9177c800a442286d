"""User model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class User:
    """Represents a registered user.

    Attributes:
        id: Unique identifier (auto-generated).
        email: Login identity (unique, stored lowercase).
        name: Optional display name.
        currency: ISO 4217 currency code used for display.
        created_at: Registration timestamp.
    """

    id: int
    email: str
    name: Optional[str]
    currency: str
    created_at: Optional[datetime] = None
