"""
Payment Application (Invoice) Calculation Engine.

Pure functions with deterministic behavior. No I/O.

Computes every derived figure of an AIA G702/G703-style payment
application from one project's ``InvoiceState``: contract sums, per-line
completion and retainage, and the current payment due.

Order of calculation:

    1. original_contract_sum       = sum(line.scheduled_value)
    2. net_change_by_change_orders = sum(co.value)                 (signed)
    3. contract_sum_to_date        = 1 + 2
    4. per line item:
         total_completed_and_stored = prev_billed + this_period + stored_materials
         percentage_complete        = total / scheduled_value * 100  (0 if scheduled is 0)
         balance_to_finish          = scheduled_value - total
         work_completed             = prev_billed + this_period
         retainage_on_work          = work_completed * retainage% / 100
         retainage_on_materials     = stored_materials * materials_retainage% / 100
         total_retainage            = retainage_on_work + retainage_on_materials
    5. total_completed_and_stored  = sum over lines
    6. total_retainage             = sum over lines
    7. total_earned_less_retainage = 5 - 6
    8. current_payment_due         = 7 - previous_payments
    9. balance_to_finish_including_retainage = 3 - 7

No rounding is applied; display rounding is the caller's concern.  Missing or
non-numeric inputs are read as zero, so the engine is total over its input
domain and never raises on numeric content.

Usage:
    from sitebook_engines.invoicing import calculate_payment_application

    application = calculate_payment_application(project.invoicing)
    print(application.current_payment_due)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sitebook_kernel.domain.coercion import ZERO, to_decimal_or_zero
from sitebook_kernel.domain.records import ContractLineItem, InvoiceState
from sitebook_kernel.logging_config import get_logger
from sitebook_engines.tracer import traced_engine

logger = get_logger("engines.invoicing")

_HUNDRED = Decimal("100")


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class LineItemCalculation:
    """
    Continuation-sheet row: the original line item plus its derived figures.
    """

    line_item: ContractLineItem
    total_completed_and_stored: Decimal
    percentage_complete: Decimal
    balance_to_finish: Decimal
    work_completed: Decimal
    retainage_on_work: Decimal
    retainage_on_materials: Decimal
    total_retainage: Decimal


@dataclass(frozen=True)
class PaymentApplication:
    """
    Complete payment-application result.

    Attributes:
        original_contract_sum: Sum of scheduled values.
        net_change_by_change_orders: Signed sum of change orders.
        contract_sum_to_date: Original sum plus change orders.
        total_completed_and_stored: Work completed plus stored materials.
        total_retainage: Retainage on work plus retainage on materials.
        total_earned_less_retainage: Completed and stored less retainage.
        previous_payments: Cumulative payments certified before this period.
        current_payment_due: Earned less retainage less previous payments.
        balance_to_finish_including_retainage: Contract sum to date less
            earned-less-retainage.
        line_items: Per-line breakdown, in schedule order.
    """

    original_contract_sum: Decimal
    net_change_by_change_orders: Decimal
    contract_sum_to_date: Decimal
    total_completed_and_stored: Decimal
    total_retainage: Decimal
    total_earned_less_retainage: Decimal
    previous_payments: Decimal
    current_payment_due: Decimal
    balance_to_finish_including_retainage: Decimal
    line_items: tuple[LineItemCalculation, ...]

    @property
    def total_retainage_on_work(self) -> Decimal:
        return sum((li.retainage_on_work for li in self.line_items), ZERO)

    @property
    def total_retainage_on_materials(self) -> Decimal:
        return sum((li.retainage_on_materials for li in self.line_items), ZERO)


# ============================================================================
# Core Functions
# ============================================================================


def percentage_complete(completed: Decimal, scheduled_value: Decimal) -> Decimal:
    """Completion percentage, defined as zero for a zero scheduled value."""
    if scheduled_value == ZERO:
        return ZERO
    return completed / scheduled_value * _HUNDRED


def calculate_line_item(
    line_item: ContractLineItem,
    retainage_percentage: Decimal,
    materials_retainage_percentage: Decimal,
) -> LineItemCalculation:
    """
    Derive the continuation-sheet figures for one line item.

    Retainage on work and retainage on stored materials are computed
    independently: each depends only on its own percentage.
    """
    scheduled_value = to_decimal_or_zero(line_item.scheduled_value)
    prev_billed = to_decimal_or_zero(line_item.prev_billed)
    this_period = to_decimal_or_zero(line_item.this_period)
    stored_materials = to_decimal_or_zero(line_item.stored_materials)

    total_completed_and_stored = prev_billed + this_period + stored_materials
    work_completed = prev_billed + this_period
    retainage_on_work = work_completed * (retainage_percentage / _HUNDRED)
    retainage_on_materials = stored_materials * (
        materials_retainage_percentage / _HUNDRED
    )

    return LineItemCalculation(
        line_item=line_item,
        total_completed_and_stored=total_completed_and_stored,
        percentage_complete=percentage_complete(
            total_completed_and_stored, scheduled_value
        ),
        balance_to_finish=scheduled_value - total_completed_and_stored,
        work_completed=work_completed,
        retainage_on_work=retainage_on_work,
        retainage_on_materials=retainage_on_materials,
        total_retainage=retainage_on_work + retainage_on_materials,
    )


def original_contract_sum(invoice: InvoiceState) -> Decimal:
    """Sum of scheduled values over the schedule of values."""
    return sum(
        (to_decimal_or_zero(item.scheduled_value) for item in invoice.line_items),
        ZERO,
    )


def net_change_by_change_orders(invoice: InvoiceState) -> Decimal:
    """Signed sum of change orders."""
    return sum(
        (to_decimal_or_zero(co.value) for co in invoice.change_orders),
        ZERO,
    )


@traced_engine("invoicing", "1.0", fingerprint_fields=("invoice",))
def calculate_payment_application(invoice: InvoiceState) -> PaymentApplication:
    """
    Calculate the full payment application for one invoice state.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        invoice: The project's running invoice state.

    Returns:
        PaymentApplication with invoice-level aggregates and the per-line
        breakdown.
    """
    retainage_percentage = to_decimal_or_zero(invoice.retainage_percentage)
    materials_retainage_percentage = to_decimal_or_zero(
        invoice.materials_retainage_percentage
    )
    previous_payments = to_decimal_or_zero(invoice.previous_payments)

    contract_sum = original_contract_sum(invoice)
    change_orders = net_change_by_change_orders(invoice)
    contract_sum_to_date = contract_sum + change_orders

    lines = tuple(
        calculate_line_item(
            item, retainage_percentage, materials_retainage_percentage
        )
        for item in invoice.line_items
    )

    total_completed_and_stored = sum(
        (li.total_completed_and_stored for li in lines), ZERO
    )
    total_retainage = sum((li.total_retainage for li in lines), ZERO)
    total_earned_less_retainage = total_completed_and_stored - total_retainage
    current_payment_due = total_earned_less_retainage - previous_payments

    result = PaymentApplication(
        original_contract_sum=contract_sum,
        net_change_by_change_orders=change_orders,
        contract_sum_to_date=contract_sum_to_date,
        total_completed_and_stored=total_completed_and_stored,
        total_retainage=total_retainage,
        total_earned_less_retainage=total_earned_less_retainage,
        previous_payments=previous_payments,
        current_payment_due=current_payment_due,
        balance_to_finish_including_retainage=(
            contract_sum_to_date - total_earned_less_retainage
        ),
        line_items=lines,
    )

    logger.info("payment_application_calculated", extra={
        "application_number": invoice.application_number,
        "line_item_count": len(lines),
        "change_order_count": len(invoice.change_orders),
        "contract_sum_to_date": str(result.contract_sum_to_date),
        "current_payment_due": str(result.current_payment_due),
    })

    return result
