"""Public interface for the ``spending_insights`` package.

Exposes the enrichment and insights functions plus the public models as the
stable import surface. There is no runtime logic here, only re-exports.
"""

from .aggregation import (
    calculate_budget_usage,
    calculate_spending_by_category,
    merge_budgets_with_spending,
)
from .api import build_insights
from .category_mapper import GENERIC_CATEGORIES, is_generic_category, map_category_to_info
from .category_rules import CATEGORY_COLORS, KNOWN_CATEGORIES, infer_category
from .config import InsightsSettings, load_settings
from .enrichment import (
    EnrichmentCache,
    enrich_transaction,
    enrich_transactions,
    get_category_from_transaction,
)
from .models import (
    Budget,
    BudgetedSpendingCategory,
    BudgetUsage,
    CategoryInfo,
    EnrichedTransaction,
    Goal,
    IncomeExpenseSummary,
    InsightsReport,
    InsightsSummary,
    RecurringCharge,
    RecurringExpense,
    SpendingCategory,
    TimeWindow,
    TransactionRecord,
)
from .recurring import calculate_recurring_total, detect_recurring_expenses
from .summary import (
    calculate_goal_progress,
    calculate_income_expenses,
    calculate_overall_goal_progress,
    estimate_months_to_goal,
)
from .time_windows import days_remaining_in_month, filter_transactions_by_time

__all__ = [
    # API
    "build_insights",
    "enrich_transaction",
    "enrich_transactions",
    "get_category_from_transaction",
    "infer_category",
    "map_category_to_info",
    "is_generic_category",
    "calculate_spending_by_category",
    "merge_budgets_with_spending",
    "calculate_budget_usage",
    "detect_recurring_expenses",
    "calculate_recurring_total",
    "filter_transactions_by_time",
    "days_remaining_in_month",
    "calculate_income_expenses",
    "calculate_goal_progress",
    "estimate_months_to_goal",
    "calculate_overall_goal_progress",
    "load_settings",
    # Constants
    "CATEGORY_COLORS",
    "GENERIC_CATEGORIES",
    "KNOWN_CATEGORIES",
    # Models / types
    "EnrichmentCache",
    "InsightsSettings",
    "TransactionRecord",
    "TimeWindow",
    "CategoryInfo",
    "EnrichedTransaction",
    "SpendingCategory",
    "BudgetedSpendingCategory",
    "RecurringCharge",
    "RecurringExpense",
    "IncomeExpenseSummary",
    "BudgetUsage",
    "InsightsSummary",
    "InsightsReport",
    "Budget",
    "Goal",
]
