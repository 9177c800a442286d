"""Default categories and payment methods seeded for every new user."""

DEFAULT_EXPENSE_CATEGORIES = [
    "Rent",
    "Building Fees",
    "Utilities",
    "Credit Cards",
    "Groceries",
    "Transport",
    "Health",
    "Education",
    "Entertainment",
    "Taxes",
    "Subscriptions",
    "Other",
]

DEFAULT_INCOME_CATEGORIES = [
    "Salary",
    "Freelance",
    "Extra Income",
    "Investment Returns",
    "Other",
]

DEFAULT_PAYMENT_METHODS = [
    "Cash",
    "Bank Transfer",
    "Debit Card",
    "Visa Credit",
    "Mastercard Credit",
    "Other",
]


def default_categories():
    """Get (kind, name) pairs for all default categories."""
    return [("expense", name) for name in DEFAULT_EXPENSE_CATEGORIES] + [
        ("income", name) for name in DEFAULT_INCOME_CATEGORIES
    ]
