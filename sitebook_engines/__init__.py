"""
Module: sitebook_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    service layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import sitebook_kernel (and sibling engine modules).
    MUST NOT import sitebook_config or sitebook_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Report timestamps are stamped by services from an injected Clock.
    - Decimal arithmetic: monetary amounts are computed as ``Decimal`` and
      never rounded inside an engine.
    - Determinism: identical inputs always produce identical outputs.
    - Inputs are never mutated; every result is a new immutable value.

Failure modes:
    - UnknownReportError from the report engine for an unregistered canned
      report identifier.  Everything else degrades to zero / "no match".

Usage:
    from sitebook_engines.invoicing import calculate_payment_application
    from sitebook_engines.reporting import process_report
    from sitebook_engines.schedule_of_values import bill_expenses
    from sitebook_engines.project_summary import calculate_financial_summary
"""

from sitebook_engines.invoicing import (
    LineItemCalculation,
    PaymentApplication,
    calculate_line_item,
    calculate_payment_application,
    net_change_by_change_orders,
    original_contract_sum,
    percentage_complete,
)
from sitebook_engines.project_summary import (
    DashboardMetrics,
    FinancialSummary,
    calculate_dashboard_metrics,
    calculate_financial_summary,
)
from sitebook_engines.reporting import (
    ReportFinding,
    aggregate,
    apply_filters,
    evaluate_filter,
    expand_canned_report,
    group_and_aggregate,
    process_report,
    resolve_data_source,
    resolve_report_config,
    validate_custom_report,
)
from sitebook_engines.schedule_of_values import (
    BillingUpdate,
    bill_expenses,
    bill_time_entries,
    line_items_from_estimate,
    line_items_from_expenses,
    line_items_from_time_entries,
    schedule_from_estimate,
    select_billable_expenses,
    select_billable_time_entries,
)
from sitebook_engines.tracer import traced_engine

__all__ = [
    # Invoicing
    "LineItemCalculation",
    "PaymentApplication",
    "calculate_line_item",
    "calculate_payment_application",
    "net_change_by_change_orders",
    "original_contract_sum",
    "percentage_complete",
    # Project summary
    "DashboardMetrics",
    "FinancialSummary",
    "calculate_dashboard_metrics",
    "calculate_financial_summary",
    # Reporting
    "ReportFinding",
    "aggregate",
    "apply_filters",
    "evaluate_filter",
    "expand_canned_report",
    "group_and_aggregate",
    "process_report",
    "resolve_data_source",
    "resolve_report_config",
    "validate_custom_report",
    # Schedule of values
    "BillingUpdate",
    "bill_expenses",
    "bill_time_entries",
    "line_items_from_estimate",
    "line_items_from_expenses",
    "line_items_from_time_entries",
    "schedule_from_estimate",
    "select_billable_expenses",
    "select_billable_time_entries",
    # Tracing
    "traced_engine",
]
