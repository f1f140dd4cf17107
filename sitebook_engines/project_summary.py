"""
Project financial summary and dashboard metrics.

Pure functions with deterministic behavior. No I/O.

The financial summary backs the ``financialSummary`` canned report.  It spans
invoicing and expenses rather than a single reportable collection, so it is
computed here instead of through the filter / group report engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sitebook_kernel.domain.coercion import ZERO, as_text, to_decimal_or_zero
from sitebook_kernel.domain.records import InspectionStatus, Project, RfiStatus
from sitebook_kernel.logging_config import get_logger
from sitebook_engines.invoicing import (
    net_change_by_change_orders,
    original_contract_sum,
)
from sitebook_engines.tracer import traced_engine

logger = get_logger("engines.project_summary")

OPEN_RFI_STATUSES = frozenset({RfiStatus.DRAFT.value, RfiStatus.SENT.value})
PENDING_INSPECTION_STATUSES = frozenset(
    {InspectionStatus.OPEN.value, InspectionStatus.SCHEDULED.value}
)


@dataclass(frozen=True)
class FinancialSummary:
    original_contract_sum: Decimal
    net_change_by_change_orders: Decimal
    contract_sum_to_date: Decimal
    total_billed_to_date: Decimal
    total_expenses: Decimal


@dataclass(frozen=True)
class DashboardMetrics:
    """Project dashboard counters plus the financial summary."""

    open_rfis: int
    pending_inspections: int
    failed_inspection_ids: tuple[str, ...]
    financials: FinancialSummary


@traced_engine("project_summary", "1.0")
def calculate_financial_summary(project: Project) -> FinancialSummary:
    """
    Contract sums, amount billed to date and expenses logged.

    Total billed counts work billed (previous plus this period); stored
    materials are not billed work.
    """
    invoice = project.invoicing
    contract_sum = original_contract_sum(invoice)
    change_orders = net_change_by_change_orders(invoice)

    total_billed = sum(
        (
            to_decimal_or_zero(item.prev_billed) + to_decimal_or_zero(item.this_period)
            for item in invoice.line_items
        ),
        ZERO,
    )
    total_expenses = sum(
        (to_decimal_or_zero(e.amount) for e in project.expenses), ZERO
    )

    return FinancialSummary(
        original_contract_sum=contract_sum,
        net_change_by_change_orders=change_orders,
        contract_sum_to_date=contract_sum + change_orders,
        total_billed_to_date=total_billed,
        total_expenses=total_expenses,
    )


def calculate_dashboard_metrics(project: Project) -> DashboardMetrics:
    """Open RFIs, pending inspections and failed inspections lacking a follow-up."""
    open_rfis = sum(
        1 for rfi in project.rfi_manager.managed_rfis
        if as_text(rfi.status) in OPEN_RFI_STATUSES
    )
    pending = sum(
        1 for i in project.inspections if as_text(i.status) in PENDING_INSPECTION_STATUSES
    )
    failed = tuple(
        i.id for i in project.inspections
        if i.status == InspectionStatus.FAILED.value and not i.related_inspection_id
    )

    metrics = DashboardMetrics(
        open_rfis=open_rfis,
        pending_inspections=pending,
        failed_inspection_ids=failed,
        financials=calculate_financial_summary(project),
    )
    logger.debug("dashboard_metrics_calculated", extra={
        "project_id": project.id,
        "open_rfis": open_rfis,
        "pending_inspections": pending,
        "failed_inspections": len(failed),
    })
    return metrics
