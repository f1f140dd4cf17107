"""
Pure domain layer.

This module contains project records, report configuration types and
coercion helpers with NO dependencies on:
- Persistence
- Time/clock (except the injectable Clock abstraction)
- I/O

All domain objects are immutable and deterministic.
"""

from sitebook_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from sitebook_kernel.domain.coercion import (
    as_text,
    get_field,
    parse_instant,
    to_decimal_or_zero,
    to_number_or_none,
)
from sitebook_kernel.domain.records import (
    ChangeOrderItem,
    Contact,
    ContractLineItem,
    DailyLog,
    DailyLogStatus,
    EstimateLineItem,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
    InspectionRequest,
    InspectionStatus,
    InvoiceState,
    ManagedRfiItem,
    Project,
    RfiManager,
    RfiStatus,
    TimeEntry,
    TimeEntryStatus,
)
from sitebook_kernel.domain.reports import (
    Aggregation,
    CustomReport,
    DataSourceSpec,
    FieldSpec,
    FieldType,
    Filter,
    FilterOperator,
    Grouping,
    ReportDataSource,
    ReportResult,
)

__all__ = [
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Coercion
    "as_text",
    "get_field",
    "parse_instant",
    "to_decimal_or_zero",
    "to_number_or_none",
    # Records
    "ChangeOrderItem",
    "Contact",
    "ContractLineItem",
    "DailyLog",
    "DailyLogStatus",
    "EstimateLineItem",
    "Expense",
    "ExpenseCategory",
    "ExpenseStatus",
    "InspectionRequest",
    "InspectionStatus",
    "InvoiceState",
    "ManagedRfiItem",
    "Project",
    "RfiManager",
    "RfiStatus",
    "TimeEntry",
    "TimeEntryStatus",
    # Reports
    "Aggregation",
    "CustomReport",
    "DataSourceSpec",
    "FieldSpec",
    "FieldType",
    "Filter",
    "FilterOperator",
    "Grouping",
    "ReportDataSource",
    "ReportResult",
]
