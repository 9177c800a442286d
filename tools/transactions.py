"""Transaction analysis tools."""

from typing import Dict, List, Optional

from models.month import Month, months_between
from models.transaction import Transaction


def get_period_transactions(
    services,
    user_id: int,
    start_month: Month,
    end_month: Month,
    category_ids: Optional[List[int]] = None,
) -> Dict[str, List[Transaction]]:
    """Get a user's transactions for a period, organized by month.

    Args:
        services: Services container with transaction service.
        user_id: User whose transactions to fetch.
        start_month: First month of the period.
        end_month: Last month of the period (inclusive).
        category_ids: Optional list of category IDs; only transactions with a
            split in one of them are kept.

    Returns:
        Dictionary of month keys (format: "YYYY-MM") mapped to transaction
        lists. Every month in the range is present, even when empty.

    Example:
        {
            "2025-01": [Transaction(...), ...],
            "2025-02": [],
        }
    """
    result = {}
    wanted = set(category_ids) if category_ids else None

    for month in months_between(start_month, end_month):
        transactions = services.transactions.find_by_month(user_id, month)
        if wanted is not None:
            transactions = [
                t for t in transactions if wanted.intersection(t.category_ids)
            ]
        result[str(month)] = transactions

    return result


def get_period_summary(
    services,
    user_id: int,
    start_month: Month,
    end_month: Month,
    category_ids: Optional[List[int]] = None,
) -> Dict[str, Dict]:
    """Get summarized transaction data for a period, organized by month.

    Returns aggregated income, expenses, and category breakdowns for each month.
    All amounts are in cents.

    Args:
        services: Services container with transaction service.
        user_id: User whose transactions to summarize.
        start_month: First month of the period.
        end_month: Last month of the period (inclusive).
        category_ids: Optional list of category IDs to filter by.

    Returns:
        Dictionary of month keys (format: "YYYY-MM") mapped to summary dictionaries:
        - "income_total": Total income for the month
        - "expense_total": Total expenses for the month
        - "net": Net amount (income - expenses)
        - "expenses_by_category": Dict mapping category_id to the amount
          allocated to it (category_id=0 for any unallocated remainder)

    Example:
        {
            "2025-01": {
                "income_total": 100000,
                "expense_total": 50000,
                "net": 50000,
                "expenses_by_category": {
                    1: 20000,  # Food category
                    2: 30000,  # Transportation category
                }
            },
            "2025-02": {...},
        }
    """
    transactions_data = get_period_transactions(
        services, user_id, start_month, end_month, category_ids
    )

    result = {}

    for month_key, transactions in transactions_data.items():
        income_total = 0
        expense_total = 0
        expenses_by_category: Dict[int, int] = {}

        for transaction in transactions:
            if transaction.kind == "income":
                income_total += transaction.amount
                continue

            expense_total += transaction.amount

            allocated = 0
            for split in transaction.splits:
                expenses_by_category[split.category_id] = (
                    expenses_by_category.get(split.category_id, 0)
                    + split.allocated_amount
                )
                allocated += split.allocated_amount

            # Generated transactions from rules without splits are uncategorized
            if allocated < transaction.amount:
                expenses_by_category[0] = (
                    expenses_by_category.get(0, 0) + transaction.amount - allocated
                )

        result[month_key] = {
            "income_total": income_total,
            "expense_total": expense_total,
            "net": income_total - expense_total,
            "expenses_by_category": expenses_by_category,
        }

    return result
