"""Public interface for the ``spending_analysis`` package.

This module re-exports the package's functions and models as the stable import
surface. There is no runtime logic here, only symbol re-exports.
"""

from .csv_import import (
    CsvTable,
    detect_column_headers,
    load_csv_table,
    map_columns_to_transaction,
    parse_amount,
    parse_csv_to_transactions,
    parse_date,
    validate_transaction_row,
)
from .filters import (
    compose_filters,
    filter_by_amount_range,
    filter_by_categories,
    filter_by_category,
    filter_by_date_range,
    filter_by_max_amount,
    filter_by_min_amount,
    filter_by_month,
    filter_categorized,
    filter_current_month,
    filter_last_n_days,
    filter_uncategorized,
    search_by_description,
    sort_by_amount,
    sort_by_date,
)
from .ledger import Ledger, load_ledger, write_ledger
from .models import (
    Category,
    CategorySpending,
    ColumnMapping,
    InvalidRow,
    MappedRow,
    ParetoAnalysisResult,
    ParseResult,
    SortOrder,
    SpendingStats,
    Transaction,
    TransactionFilter,
    ValidatedTransaction,
    ValidationResult,
)
from .pareto import calculate_pareto_analysis, get_pareto_count, is_pareto_category
from .statistics import (
    calculate_daily_average,
    calculate_monthly_average,
    calculate_spending_stats,
    calculate_standard_deviation,
    calculate_stats_by_category,
    find_outliers,
)

__all__ = [
    # Filters / sorting
    "filter_by_date_range",
    "filter_by_category",
    "filter_by_categories",
    "filter_by_min_amount",
    "filter_by_max_amount",
    "filter_by_amount_range",
    "search_by_description",
    "filter_uncategorized",
    "filter_categorized",
    "sort_by_date",
    "sort_by_amount",
    "filter_current_month",
    "filter_by_month",
    "filter_last_n_days",
    "compose_filters",
    # Statistics
    "calculate_spending_stats",
    "calculate_stats_by_category",
    "calculate_daily_average",
    "calculate_monthly_average",
    "calculate_standard_deviation",
    "find_outliers",
    # Pareto
    "calculate_pareto_analysis",
    "get_pareto_count",
    "is_pareto_category",
    # CSV import
    "detect_column_headers",
    "CsvTable",
    "load_csv_table",
    "map_columns_to_transaction",
    "parse_amount",
    "parse_csv_to_transactions",
    "parse_date",
    "validate_transaction_row",
    # Ledger
    "Ledger",
    "load_ledger",
    "write_ledger",
    # Models / types
    "Transaction",
    "Category",
    "TransactionFilter",
    "SortOrder",
    "SpendingStats",
    "CategorySpending",
    "ParetoAnalysisResult",
    "ColumnMapping",
    "MappedRow",
    "ValidatedTransaction",
    "ValidationResult",
    "InvalidRow",
    "ParseResult",
]
