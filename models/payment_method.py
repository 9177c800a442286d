from dataclasses import dataclass


@dataclass
class PaymentMethod:
    id: int
    user_id: int
    name: str  # unique per user, e.g. "Cash", "Visa Credit"
    is_active: bool = True
    is_default: bool = False  # seeded at registration

    def can_be_deleted(self) -> bool:
        return not self.is_default
