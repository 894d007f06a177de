"""Query engine: pure filter, sort, group and aggregate functions over catalog records."""

from .aggregates import (
    CatalogSummary,
    NumericStats,
    ValueCounts,
    aggregate_by_field,
    average_field,
    catalog_statistics,
    count_by_field,
    most_common_value,
    numeric_stats,
    sum_field,
    unique_values,
    value_range,
)
from .filters import (
    Absent,
    AllOf,
    AnyOf,
    CompoundFilter,
    Contains,
    Equals,
    FieldFilter,
    Includes,
    Not,
    Present,
    Range,
    ValuePredicate,
    apply_filters,
    exclude_where,
    filter_by_field,
    filter_by_status,
    filter_records,
)
from .grouping import (
    flatten_groups,
    group_by_custom,
    group_by_date_period,
    group_by_field,
    group_by_status,
    sorted_group_keys,
)
from .sorting import SortKey, compare_values, element_count, first_element, sort_by_field, sort_by_fields
from .utility import Page, create_compound_filter, paginate, unique_values_for_field

__all__ = [
    "Absent",
    "AllOf",
    "AnyOf",
    "CatalogSummary",
    "CompoundFilter",
    "Contains",
    "Equals",
    "FieldFilter",
    "Includes",
    "Not",
    "NumericStats",
    "Page",
    "Present",
    "Range",
    "SortKey",
    "ValueCounts",
    "ValuePredicate",
    "aggregate_by_field",
    "apply_filters",
    "average_field",
    "catalog_statistics",
    "compare_values",
    "count_by_field",
    "create_compound_filter",
    "element_count",
    "exclude_where",
    "filter_by_field",
    "filter_by_status",
    "filter_records",
    "first_element",
    "flatten_groups",
    "group_by_custom",
    "group_by_date_period",
    "group_by_field",
    "group_by_status",
    "most_common_value",
    "numeric_stats",
    "paginate",
    "sort_by_field",
    "sort_by_fields",
    "sorted_group_keys",
    "sum_field",
    "unique_values",
    "unique_values_for_field",
    "value_range",
]
