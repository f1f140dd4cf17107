"""
Schedule of Values builders.

Pure functions with deterministic behavior. No I/O.

Builds ``ContractLineItem`` rows for the schedule of values from the three
sources a project bills from:

- a priced estimate (one scheduled line per estimate item),
- billable reimbursable expenses (``invoicable`` and still ``Pending``),
- approved time entries (one labor line per employee, hours x billable rate).

Expense and labor lines carry a zero scheduled value and bill their whole
amount in the current period; they keep a link back to their source records.

Identifiers that the application would derive from the wall clock are taken
as an explicit ``batch_id`` argument instead.

Usage:
    from sitebook_engines.schedule_of_values import bill_expenses

    update = bill_expenses(project.invoicing, project.expenses, {"exp-1"})
    project = replace(project, invoicing=update.invoice, expenses=update.expenses)
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from sitebook_kernel.domain.coercion import ZERO, to_decimal_or_zero
from sitebook_kernel.domain.records import (
    Contact,
    ContractLineItem,
    EstimateLineItem,
    Expense,
    ExpenseStatus,
    InvoiceState,
    TimeEntry,
    TimeEntryStatus,
)
from sitebook_kernel.logging_config import get_logger

logger = get_logger("engines.schedule_of_values")

EXPENSE_ITEM_NUMBER = "EXP"
LABOR_ITEM_NUMBER = "LABOR"


@dataclass(frozen=True)
class BillingUpdate:
    """New invoice state plus the source records marked as invoiced."""

    invoice: InvoiceState
    expenses: tuple[Expense, ...] = ()
    time_entries: tuple[TimeEntry, ...] = ()


def format_item_number(index: int) -> str:
    """Zero-padded, 1-based schedule item number (``001``, ``002``...)."""
    return f"{index + 1:03d}"


# ============================================================================
# Estimate
# ============================================================================


def line_items_from_estimate(
    estimate_items: Sequence[EstimateLineItem],
    batch_id: str,
) -> tuple[ContractLineItem, ...]:
    """One scheduled line per estimate item, valued at the item's line total."""
    return tuple(
        ContractLineItem(
            id=f"sov-{batch_id}-{index}",
            item_number=format_item_number(index),
            description=item.item,
            scheduled_value=to_decimal_or_zero(item.line_total),
            prev_billed=ZERO,
            this_period=ZERO,
            stored_materials=ZERO,
        )
        for index, item in enumerate(estimate_items)
    )


def schedule_from_estimate(
    invoice: InvoiceState,
    estimate_items: Sequence[EstimateLineItem],
    batch_id: str,
) -> InvoiceState:
    """Replace the schedule of values with lines built from an estimate."""
    line_items = line_items_from_estimate(estimate_items, batch_id)
    logger.info("schedule_built_from_estimate", extra={
        "line_item_count": len(line_items),
        "original_contract_sum": str(
            sum((to_decimal_or_zero(li.scheduled_value) for li in line_items), ZERO)
        ),
    })
    return replace(invoice, line_items=line_items)


# ============================================================================
# Reimbursable expenses
# ============================================================================


def select_billable_expenses(expenses: Iterable[Expense]) -> tuple[Expense, ...]:
    """Invoicable expenses that have not been billed yet."""
    return tuple(
        e for e in expenses
        if e.invoicable and e.status == ExpenseStatus.PENDING.value
    )


def line_items_from_expenses(
    expenses: Iterable[Expense],
) -> tuple[ContractLineItem, ...]:
    """One reimbursable line per expense, billed in full this period."""
    return tuple(
        ContractLineItem(
            id=f"li-exp-{expense.id}",
            item_number=EXPENSE_ITEM_NUMBER,
            description=(
                f"Reimbursable Expense: {expense.vendor} - {expense.description}"
            ),
            scheduled_value=ZERO,
            prev_billed=ZERO,
            this_period=to_decimal_or_zero(expense.amount),
            stored_materials=ZERO,
            source_expense_id=expense.id,
        )
        for expense in expenses
    )


def bill_expenses(
    invoice: InvoiceState,
    expenses: Sequence[Expense],
    selected_ids: Collection[str],
) -> BillingUpdate:
    """
    Append reimbursable lines for the selected expenses.

    Selected expenses are returned with status ``Invoiced``.  An empty
    selection returns the inputs unchanged.
    """
    selected = [e for e in expenses if e.id in selected_ids]
    if not selected:
        return BillingUpdate(invoice=invoice, expenses=tuple(expenses))

    new_items = line_items_from_expenses(selected)
    updated_expenses = tuple(
        replace(e, status=ExpenseStatus.INVOICED.value) if e.id in selected_ids else e
        for e in expenses
    )

    logger.info("expenses_billed", extra={
        "expense_count": len(selected),
        "amount": str(sum((to_decimal_or_zero(li.this_period) for li in new_items), ZERO)),
    })

    return BillingUpdate(
        invoice=replace(invoice, line_items=invoice.line_items + new_items),
        expenses=updated_expenses,
    )


# ============================================================================
# Labor
# ============================================================================


def select_billable_time_entries(
    time_entries: Iterable[TimeEntry],
) -> tuple[TimeEntry, ...]:
    """Approved time entries, ready to bill."""
    return tuple(
        e for e in time_entries if e.status == TimeEntryStatus.APPROVED.value
    )


def _labor_description(name: str, hours: Decimal, rate: Decimal) -> str:
    return f"Labor: {name} - {hours:.2f} hours @ ${rate:,.2f}/hr"


def line_items_from_time_entries(
    time_entries: Iterable[TimeEntry],
    contacts: Iterable[Contact],
    batch_id: str,
) -> tuple[ContractLineItem, ...]:
    """
    One labor line per employee: total hours x the contact's billable rate.

    Employees appear in first-seen order.  An unknown contact or missing
    rate bills at zero.
    """
    by_id = {c.id: c for c in contacts}

    by_employee: dict[str, list[TimeEntry]] = {}
    for entry in time_entries:
        by_employee.setdefault(entry.employee_id, []).append(entry)

    items: list[ContractLineItem] = []
    for employee_id, entries in by_employee.items():
        contact = by_id.get(employee_id)
        rate = to_decimal_or_zero(contact.billable_rate) if contact else ZERO
        total_hours = sum((to_decimal_or_zero(e.hours) for e in entries), ZERO)
        amount = total_hours * rate
        name = contact.name if contact and contact.name else "Unknown"

        items.append(ContractLineItem(
            id=f"li-time-{employee_id}-{batch_id}",
            item_number=LABOR_ITEM_NUMBER,
            description=_labor_description(name, total_hours, rate),
            scheduled_value=ZERO,
            prev_billed=ZERO,
            this_period=amount,
            stored_materials=ZERO,
            source_time_entry_ids=tuple(e.id for e in entries),
            original_this_period_amount=amount,
        ))
    return tuple(items)


def bill_time_entries(
    invoice: InvoiceState,
    time_entries: Sequence[TimeEntry],
    contacts: Iterable[Contact],
    selected_ids: Collection[str],
    batch_id: str,
) -> BillingUpdate:
    """
    Append one labor line per employee for the selected time entries.

    Selected entries are returned with status ``Invoiced``.  An empty
    selection returns the inputs unchanged.
    """
    selected = [e for e in time_entries if e.id in selected_ids]
    if not selected:
        return BillingUpdate(invoice=invoice, time_entries=tuple(time_entries))

    new_items = line_items_from_time_entries(selected, contacts, batch_id)
    updated_entries = tuple(
        replace(e, status=TimeEntryStatus.INVOICED.value) if e.id in selected_ids else e
        for e in time_entries
    )

    logger.info("time_entries_billed", extra={
        "time_entry_count": len(selected),
        "labor_line_count": len(new_items),
    })

    return BillingUpdate(
        invoice=replace(invoice, line_items=invoice.line_items + new_items),
        time_entries=updated_entries,
    )
