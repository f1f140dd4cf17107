"""
Invoicing Service (``sitebook_services.invoicing_service``).

Responsibility
--------------
Orchestrates the payment-application workflow on a project: calculating the
current application, and building schedule-of-values lines from an estimate,
from billable expenses and from approved time entries.  All figures come
from the pure engines in ``sitebook_engines.invoicing`` and
``sitebook_engines.schedule_of_values``.

Architecture position
---------------------
**Services layer** -- thin orchestration.  Constructor: ``clock``.  The clock
supplies the batch identifier stamped into generated line item ids.

Invariants enforced
-------------------
* The project passed in is never mutated; every write returns a NEW
  ``Project`` built with ``dataclasses.replace``.
* Billing an empty selection returns the project unchanged.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import replace

from sitebook_kernel.domain.clock import Clock, SystemClock
from sitebook_kernel.domain.records import Contact, EstimateLineItem, Project
from sitebook_kernel.logging_config import LogContext, get_logger

from sitebook_engines.invoicing import PaymentApplication, calculate_payment_application
from sitebook_engines.schedule_of_values import (
    bill_expenses,
    bill_time_entries,
    schedule_from_estimate,
)

logger = get_logger("services.invoicing")


class InvoicingService:
    """Payment-application calculation and schedule-of-values maintenance."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    def _batch_id(self) -> str:
        return str(int(self._clock.now().timestamp() * 1000))

    def calculate(self, project: Project) -> PaymentApplication:
        """Calculate the current payment application for ``project``."""
        with LogContext.bind(project_id=project.id):
            return calculate_payment_application(project.invoicing)

    def create_schedule_from_estimate(
        self,
        project: Project,
        items: Sequence[EstimateLineItem],
    ) -> Project:
        """Replace the schedule of values with the estimate's lines."""
        with LogContext.bind(project_id=project.id):
            invoice = schedule_from_estimate(project.invoicing, items, self._batch_id())
        return replace(project, invoicing=invoice, uses_schedule_of_values=True)

    def bill_expenses(self, project: Project, expense_ids: Collection[str]) -> Project:
        """Bill the selected expenses as reimbursable line items."""
        with LogContext.bind(project_id=project.id):
            update = bill_expenses(project.invoicing, project.expenses, expense_ids)
        if update.invoice is project.invoicing:
            return project
        return replace(project, invoicing=update.invoice, expenses=update.expenses)

    def bill_time_entries(
        self,
        project: Project,
        time_entry_ids: Collection[str],
        contacts: Iterable[Contact],
    ) -> Project:
        """Bill the selected time entries as one labor line per employee."""
        with LogContext.bind(project_id=project.id):
            update = bill_time_entries(
                project.invoicing,
                project.time_entries,
                contacts,
                time_entry_ids,
                self._batch_id(),
            )
        if update.invoice is project.invoicing:
            return project
        return replace(
            project, invoicing=update.invoice, time_entries=update.time_entries
        )
