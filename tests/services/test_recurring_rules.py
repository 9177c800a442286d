import pytest

from errors import ConflictError, NotFoundError, ValidationError
from models.month import Month
from models.schemas import UpdateRecurringRuleInput, parse_input
from models.split import CategorySplit
from tests.helpers import rule_input


def _update(**data):
    return parse_input(UpdateRecurringRuleInput, **data)


class TestCreateRecurringRule:
    """Tests for RecurringRuleService.create."""

    def test_create_rule_with_splits(self, services, user, rent_category, utilities_category):
        """Test creating a rule split across two categories."""
        rule = services.recurring_rules.create(
            user.id,
            rule_input(
                categories=[
                    {"category_id": rent_category.id, "allocated_amount": 200000},
                    {"category_id": utilities_category.id, "allocated_amount": 50000},
                ]
            ),
        )

        found = services.recurring_rules.find(rule.id, user.id)

        assert found.id > 0
        assert found.title == "Rent"
        assert found.amount == 250000
        assert found.active_from_month == Month(2025, 1)
        assert found.active_to_month is None
        assert found.status is None
        assert found.is_active is True
        assert found.categories == [
            CategorySplit(rent_category.id, 200000),
            CategorySplit(utilities_category.id, 50000),
        ]

    def test_split_total_must_match_amount(self, services, user, rent_category):
        """Test that splits not adding up to the amount are rejected."""
        with pytest.raises(ValidationError):
            services.recurring_rules.create(
                user.id,
                rule_input(
                    categories=[{"category_id": rent_category.id, "allocated_amount": 1000}]
                ),
            )

        assert services.recurring_rules.find_all(user.id) == []

    def test_duplicate_split_category_rejected(self, services, user, rent_category):
        """Test that the same category cannot appear twice."""
        with pytest.raises(ValidationError):
            services.recurring_rules.create(
                user.id,
                rule_input(
                    categories=[
                        {"category_id": rent_category.id, "allocated_amount": 125000},
                        {"category_id": rent_category.id, "allocated_amount": 125000},
                    ]
                ),
            )

    def test_foreign_category_rejected(self, services, user, other_user):
        """Test that another user's category cannot be referenced."""
        foreign = services.categories.find_by_name(other_user.id, "expense", "Rent")

        with pytest.raises(ValidationError):
            services.recurring_rules.create(user.id, rule_input(foreign.id))

    def test_category_kind_must_match(self, services, user, rent_category):
        """Test that an income rule cannot use an expense category."""
        with pytest.raises(ValidationError):
            services.recurring_rules.create(
                user.id, rule_input(rent_category.id, kind="income")
            )

    def test_foreign_payment_method_rejected(self, services, user, other_user):
        """Test that another user's payment method cannot be referenced."""
        foreign = services.payment_methods.find_by_name(other_user.id, "Cash")

        with pytest.raises(ValidationError):
            services.recurring_rules.create(
                user.id, rule_input(payment_method_id=foreign.id)
            )

    def test_end_before_start_rejected(self, services, user):
        """Test that the window cannot end before it starts."""
        with pytest.raises(ValidationError):
            services.recurring_rules.create(
                user.id,
                rule_input(active_from_month="2025-05", active_to_month="2025-04"),
            )

    def test_malformed_month_rejected(self, services, user):
        """Test that the input schema rejects non YYYY-MM months."""
        with pytest.raises(ValidationError):
            rule_input(active_from_month="2025-5")

    def test_day_out_of_range_rejected(self, services, user):
        with pytest.raises(ValidationError):
            rule_input(day_of_month=32)


class TestFindRecurringRules:
    """Tests for rule lookups."""

    def test_list_active_for_month(self, services, user):
        """Test that only active rules covering the month are listed."""
        open_rule = services.recurring_rules.create(user.id, rule_input(title="Open"))
        services.recurring_rules.create(
            user.id,
            rule_input(title="Ended", active_from_month="2025-01", active_to_month="2025-03"),
        )
        services.recurring_rules.create(
            user.id, rule_input(title="Future", active_from_month="2025-09")
        )
        inactive = services.recurring_rules.create(user.id, rule_input(title="Inactive"))
        services.recurring_rules.deactivate(inactive.id, user.id)

        rules = services.recurring_rules.list_active_for_user(user.id, Month(2025, 6))

        assert [rule.id for rule in rules] == [open_rule.id]

    def test_list_active_without_month(self, services, user):
        """Test listing every active rule regardless of window."""
        services.recurring_rules.create(user.id, rule_input(title="Open"))
        services.recurring_rules.create(
            user.id, rule_input(title="Future", active_from_month="2025-09")
        )

        rules = services.recurring_rules.list_active_for_user(user.id)

        assert len(rules) == 2

    def test_find_other_users_rule_returns_none(self, services, user, other_user):
        """Test that rules are scoped to their owner."""
        rule = services.recurring_rules.create(user.id, rule_input())

        assert services.recurring_rules.find(rule.id, other_user.id) is None
        with pytest.raises(NotFoundError):
            services.recurring_rules.require(rule.id, other_user.id)


class TestUpdateRecurringRule:
    """Tests for RecurringRuleService.update and its versioning."""

    def test_content_change_creates_new_version(self, services, user, rent_category):
        """Test that editing a running rule closes it and starts a new version."""
        rule = services.recurring_rules.create(user.id, rule_input(rent_category.id))

        new_rule = services.recurring_rules.update(
            rule.id, user.id, _update(title="Rent (new lease)")
        )

        old_rule = services.recurring_rules.find(rule.id, user.id)
        assert new_rule.id != rule.id
        assert old_rule.active_to_month == Month(2025, 5)
        assert old_rule.title == "Rent"
        assert new_rule.title == "Rent (new lease)"
        assert new_rule.active_from_month == Month(2025, 6)
        assert new_rule.active_to_month is None
        assert services.recurring_rules.find_splits(new_rule.id) == [
            CategorySplit(rent_category.id, 250000)
        ]

    def test_versions_materialize_by_month(self, services, user):
        """Test that past months keep using the old version."""
        rule = services.recurring_rules.create(user.id, rule_input())
        may = services.materializer.materialize(user.id, "2025-05").created[0]

        new_rule = services.recurring_rules.update(rule.id, user.id, _update(amount=270000))
        june = services.materializer.materialize(user.id, "2025-06").created[0]

        assert may.source_recurring_rule_id == rule.id
        assert june.source_recurring_rule_id == new_rule.id
        assert june.amount == 270000
        assert services.materializer.materialize(user.id, "2025-05").created_count == 0

    def test_amount_change_requires_matching_splits(self, services, user, rent_category):
        """Test that changing the amount re-validates the existing splits."""
        rule = services.recurring_rules.create(user.id, rule_input(rent_category.id))

        with pytest.raises(ValidationError):
            services.recurring_rules.update(rule.id, user.id, _update(amount=260000))

        assert services.recurring_rules.find(rule.id, user.id).active_to_month is None

    def test_amount_change_with_new_splits(self, services, user, rent_category):
        rule = services.recurring_rules.create(user.id, rule_input(rent_category.id))

        new_rule = services.recurring_rules.update(
            rule.id,
            user.id,
            _update(
                amount=260000,
                categories=[{"category_id": rent_category.id, "allocated_amount": 260000}],
            ),
        )

        assert new_rule.amount == 260000
        assert new_rule.categories == [CategorySplit(rent_category.id, 260000)]

    def test_already_materialized_month_is_not_duplicated(self, services, user):
        """Test that a new version does not regenerate a month the old one produced."""
        rule = services.recurring_rules.create(user.id, rule_input())
        june = services.materializer.materialize(user.id, "2025-06").created[0]

        new_rule = services.recurring_rules.update(rule.id, user.id, _update(amount=270000))
        result = services.materializer.materialize(user.id, "2025-06")

        generated = [
            t
            for t in services.transactions.find_by_month(user.id, Month(2025, 6))
            if t.is_generated
        ]
        assert result.created_count == 0
        assert result.skipped_rule_ids == [new_rule.id]
        assert [t.id for t in generated] == [june.id]
        assert services.materializer.materialize(user.id, "2025-07").created[0].amount == 270000

    def test_start_month_rejected_with_content_change(self, services, user):
        """Test that a versioned update refuses a caller-supplied start month."""
        rule = services.recurring_rules.create(user.id, rule_input())

        with pytest.raises(ValidationError):
            services.recurring_rules.update(
                rule.id, user.id, _update(title="Renamed", active_from_month="2025-03")
            )

        assert len(services.recurring_rules.find_all(user.id)) == 1

    def test_end_before_new_start_rejected(self, services, user):
        """Test that a new version cannot end before the current month."""
        rule = services.recurring_rules.create(user.id, rule_input())

        with pytest.raises(ValidationError):
            services.recurring_rules.update(
                rule.id, user.id, _update(title="Renamed", active_to_month="2025-04")
            )

        unchanged = services.recurring_rules.find(rule.id, user.id)
        assert unchanged.active_to_month is None
        assert len(services.recurring_rules.find_all(user.id)) == 1

    def test_new_version_keeps_requested_end(self, services, user):
        rule = services.recurring_rules.create(user.id, rule_input())

        new_rule = services.recurring_rules.update(
            rule.id, user.id, _update(title="Renamed", active_to_month="2025-12")
        )

        assert new_rule.active_to_month == Month(2025, 12)

    def test_closed_rule_is_updated_in_place(self, services, user):
        """Test that rules with an end month are edited without versioning."""
        rule = services.recurring_rules.create(
            user.id, rule_input(active_to_month="2025-12")
        )

        updated = services.recurring_rules.update(rule.id, user.id, _update(title="Renamed"))

        assert updated.id == rule.id
        assert services.recurring_rules.find(rule.id, user.id).title == "Renamed"
        assert len(services.recurring_rules.find_all(user.id)) == 1

    def test_rule_starting_this_month_is_updated_in_place(self, services, user):
        """Test that a rule with no past months is edited without versioning."""
        rule = services.recurring_rules.create(
            user.id, rule_input(active_from_month="2025-06")
        )

        updated = services.recurring_rules.update(rule.id, user.id, _update(day_of_month=10))

        assert updated.id == rule.id
        assert updated.day_of_month == 10
        assert len(services.recurring_rules.find_all(user.id)) == 1

    def test_window_only_change_is_in_place(self, services, user):
        """Test that setting only the end month closes the rule in place."""
        rule = services.recurring_rules.create(user.id, rule_input())

        updated = services.recurring_rules.update(
            rule.id, user.id, _update(active_to_month="2025-08")
        )

        assert updated.id == rule.id
        assert updated.active_to_month == Month(2025, 8)

    def test_clear_description(self, services, user):
        """Test that an explicit None clears the description."""
        rule = services.recurring_rules.create(
            user.id, rule_input(description="Apartment", active_to_month="2025-12")
        )

        updated = services.recurring_rules.update(rule.id, user.id, _update(description=None))

        assert updated.description is None

    def test_update_unknown_rule(self, services, user):
        with pytest.raises(NotFoundError):
            services.recurring_rules.update(9999, user.id, _update(title="x"))


class TestActivation:
    def test_deactivate_and_activate(self, services, user):
        """Test toggling the active flag."""
        rule = services.recurring_rules.create(user.id, rule_input())

        services.recurring_rules.deactivate(rule.id, user.id)
        assert services.recurring_rules.find(rule.id, user.id).is_active is False

        services.recurring_rules.activate(rule.id, user.id)
        assert services.recurring_rules.find(rule.id, user.id).is_active is True


class TestDeleteRecurringRule:
    """Tests for RecurringRuleService.delete."""

    def test_running_rule_is_closed(self, services, user):
        """Test that deleting an open-ended rule closes it at the previous month."""
        rule = services.recurring_rules.create(user.id, rule_input())

        closed = services.recurring_rules.delete(rule.id, user.id)

        assert closed.active_to_month == Month(2025, 5)
        assert services.recurring_rules.find(rule.id, user.id).active_to_month == Month(2025, 5)
        assert services.materializer.materialize(user.id, "2025-06").created_count == 0

    def test_closed_rule_is_removed(self, services, user, rent_category):
        """Test that a closed rule without generated transactions is removed."""
        rule = services.recurring_rules.create(
            user.id, rule_input(rent_category.id, active_to_month="2025-03")
        )

        assert services.recurring_rules.delete(rule.id, user.id) is None
        assert services.recurring_rules.find(rule.id, user.id) is None
        assert services.recurring_rules.find_splits(rule.id) == []

    def test_closed_rule_with_transactions_conflicts(self, services, user):
        """Test that rules with generated transactions are kept."""
        rule = services.recurring_rules.create(
            user.id, rule_input(active_to_month="2025-03")
        )
        services.materializer.materialize(user.id, "2025-02")

        assert services.recurring_rules.has_generated_transactions(rule.id)
        with pytest.raises(ConflictError):
            services.recurring_rules.delete(rule.id, user.id)

    def test_rule_starting_this_month_is_removed(self, services, user):
        rule = services.recurring_rules.create(
            user.id, rule_input(active_from_month="2025-06")
        )

        assert services.recurring_rules.delete(rule.id, user.id) is None
        assert services.recurring_rules.find(rule.id, user.id) is None

    def test_delete_unknown_rule(self, services, user):
        with pytest.raises(NotFoundError):
            services.recurring_rules.delete(9999, user.id)
