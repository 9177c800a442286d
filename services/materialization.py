"""Recurring materialization: turn recurring rules into monthly transactions."""

from dataclasses import dataclass, field
from typing import List

from errors import DomainError
from logger import get_logger
from models.month import Month
from models.transaction import Transaction

logger = get_logger()


@dataclass
class MaterializationResult:
    """Outcome of materializing one user's rules for one month.

    Attributes:
        user_id: User whose rules were processed.
        month: Target month.
        created: Transactions written by this call.
        skipped_rule_ids: Rules that already had a transaction for the month
            (or lost a concurrent race to create it).
    """

    user_id: int
    month: Month
    created: List[Transaction] = field(default_factory=list)
    skipped_rule_ids: List[int] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)


class RecurringMaterializationEngine:
    """Creates the transactions a user's recurring rules imply for a month.

    The engine only talks to its two stores:

    - ``rule_store.list_active_for_user(user_id, month)``
    - ``transaction_store.exists_for_rule_and_month(rule_id, month)``
    - ``transaction_store.create_from_rule(rule, month, due_date, status)``,
      an insert-if-absent that returns None when the pair already exists.

    Calling ``materialize`` any number of times, sequentially or
    concurrently, leaves exactly one transaction per (rule, month).
    """

    def __init__(self, rule_store, transaction_store):
        self.rule_store = rule_store
        self.transaction_store = transaction_store

    def materialize(self, user_id: int, target_month: str) -> MaterializationResult:
        """Generate missing transactions for a user's rules in a month.

        Args:
            user_id: User whose rules to process.
            target_month: Month as a strict "YYYY-MM" string.

        Returns:
            MaterializationResult listing created transactions and skipped rules.

        Raises:
            ValidationError: If the month is malformed; nothing is created.
            DomainError: If a rule's stored splits do not add up to its amount.
        """
        month = Month.parse(target_month)
        result = MaterializationResult(user_id=user_id, month=month)

        rules = self.rule_store.list_active_for_user(user_id, month)
        for rule in sorted(rules, key=lambda r: r.id):
            if not rule.covers(month):
                continue

            if self.transaction_store.exists_for_rule_and_month(rule.id, month):
                result.skipped_rule_ids.append(rule.id)
                continue

            if not rule.splits_match_amount():
                raise DomainError(
                    f"Recurring rule {rule.id} category amounts do not add up to {rule.amount}"
                )

            due_date = month.clamp_day(rule.day_of_month)
            transaction = self.transaction_store.create_from_rule(
                rule, month, due_date, rule.materialized_status()
            )
            if transaction is None:
                result.skipped_rule_ids.append(rule.id)
                continue

            logger.debug(
                f"Materialized rule {rule.id} for {month}: transaction {transaction.id} "
                f"due {due_date.isoformat()} ({transaction.status})"
            )
            result.created.append(transaction)

        logger.info(
            f"Materialized {result.created_count} transaction(s) for user {user_id} "
            f"in {month} ({len(result.skipped_rule_ids)} already present)"
        )
        return result
