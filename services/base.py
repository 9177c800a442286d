"""Base services container for dependency injection."""

from datetime import date
from typing import Callable, Optional

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject a test database or a fixed clock.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
        clock: Optional callable returning today's date.
    """

    def __init__(
        self,
        config: Config,
        db_manager=None,
        clock: Optional[Callable[[], date]] = None,
    ):
        """Initialize services with configuration.

        Args:
            config: Config object containing application configuration.
            db_manager: Optional database manager for dependency injection (testing).
                       If None, creates DatabaseManager from config.
            clock: Callable returning today's date; defaults to date.today.
        """
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)
        self.clock = clock or date.today

        # Lazy import to avoid circular dependencies
        from services.users import UserService
        from services.categories import CategoryService
        from services.payment_methods import PaymentMethodService
        from services.transactions import TransactionService
        from services.recurring_rules import RecurringRuleService
        from services.materialization import RecurringMaterializationEngine
        from services.dashboard import DashboardService
        from services.investments import InvestmentService

        self.users = UserService(self.db_manager)
        self.categories = CategoryService(self.db_manager)
        self.payment_methods = PaymentMethodService(self.db_manager)
        self.transactions = TransactionService(self.db_manager, clock=self.clock)
        self.recurring_rules = RecurringRuleService(self.db_manager, clock=self.clock)
        self.materializer = RecurringMaterializationEngine(
            rule_store=self.recurring_rules,
            transaction_store=self.transactions,
        )
        self.dashboard = DashboardService(self.db_manager, self.materializer)
        self.investments = InvestmentService(self.db_manager, clock=self.clock)
