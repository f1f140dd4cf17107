"""
Project records -- schedule of values, invoicing and reportable collections.

All records are frozen dataclasses.  Monetary and percentage fields hold
whatever the caller supplied (int, float, str, Decimal or None); the engines
coerce them with ``to_decimal_or_zero`` at the point of use, mirroring the
forgiving numeric input handling of the project forms.

``from_dict`` constructors accept the application's camelCase JSON keys as
well as snake_case keys.  Missing keys fall back to the field defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from sitebook_kernel.domain.reports import CustomReport

NumberLike = Union[Decimal, int, float, str, None]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _pick(data: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Read ``name`` in snake_case or camelCase spelling."""
    if name in data:
        return data[name]
    return data.get(_camel(name), default)


def _tuple(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


# ============================================================================
# Status vocabularies
# ============================================================================


class ExpenseStatus(str, Enum):
    PENDING = "Pending"
    INVOICED = "Invoiced"


class ExpenseCategory(str, Enum):
    SUPPLIES = "Supplies"
    FUEL = "Fuel"
    MEALS = "Meals"
    EQUIPMENT_RENTAL = "Equipment Rental"
    TRAVEL = "Travel"
    OTHER = "Other"


class DailyLogStatus(str, Enum):
    DRAFT = "Draft"
    SIGNED = "Signed"


class RfiStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    ANSWERED = "Answered"
    CLOSED = "Closed"


class InspectionStatus(str, Enum):
    OPEN = "Open"
    SCHEDULED = "Scheduled"
    PASSED = "Passed"
    FAILED = "Failed"
    CLOSED = "Closed"


class TimeEntryStatus(str, Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    INVOICED = "Invoiced"


# ============================================================================
# Invoicing
# ============================================================================


@dataclass(frozen=True)
class ContractLineItem:
    """
    One billable work item in a schedule of values.

    ``prev_billed`` absorbs prior ``this_period`` amounts when a billing
    period closes; that carry-forward happens outside the engines.
    Reimbursable expense and labor lines have a zero ``scheduled_value``.
    """

    id: str
    item_number: str = ""
    description: str = ""
    scheduled_value: NumberLike = Decimal("0")
    prev_billed: NumberLike = Decimal("0")
    this_period: NumberLike = Decimal("0")
    stored_materials: NumberLike = Decimal("0")
    source_expense_id: str | None = None
    source_time_entry_ids: tuple[str, ...] = ()
    original_this_period_amount: NumberLike = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContractLineItem:
        return cls(
            id=_pick(data, "id", ""),
            item_number=_pick(data, "item_number", ""),
            description=_pick(data, "description", ""),
            scheduled_value=_pick(data, "scheduled_value", Decimal("0")),
            prev_billed=_pick(data, "prev_billed", Decimal("0")),
            this_period=_pick(data, "this_period", Decimal("0")),
            stored_materials=_pick(data, "stored_materials", Decimal("0")),
            source_expense_id=_pick(data, "source_expense_id"),
            source_time_entry_ids=_tuple(_pick(data, "source_time_entry_ids")),
            original_this_period_amount=_pick(data, "original_this_period_amount"),
        )


@dataclass(frozen=True)
class ChangeOrderItem:
    """A signed adjustment to contract value (negative is a deduction)."""

    id: str
    description: str = ""
    value: NumberLike = Decimal("0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChangeOrderItem:
        return cls(
            id=_pick(data, "id", ""),
            description=_pick(data, "description", ""),
            value=_pick(data, "value", Decimal("0")),
        )


@dataclass(frozen=True)
class InvoiceState:
    """
    One project's running payment-application record.

    Each billing period overwrites the live state; no historical snapshots
    are kept.  Retainage percentages are expected in [0, 100] but are not
    range-checked here.
    """

    project_name: str = ""
    application_number: int = 1
    period_to: str = ""
    architects_project_number: str = ""
    line_items: tuple[ContractLineItem, ...] = ()
    change_orders: tuple[ChangeOrderItem, ...] = ()
    retainage_percentage: NumberLike = Decimal("0")
    materials_retainage_percentage: NumberLike = Decimal("0")
    previous_payments: NumberLike = Decimal("0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InvoiceState:
        return cls(
            project_name=_pick(data, "project_name", ""),
            application_number=_pick(data, "application_number", 1),
            period_to=_pick(data, "period_to", ""),
            architects_project_number=_pick(data, "architects_project_number", ""),
            line_items=tuple(
                ContractLineItem.from_dict(item)
                for item in _pick(data, "line_items") or ()
            ),
            change_orders=tuple(
                ChangeOrderItem.from_dict(co)
                for co in _pick(data, "change_orders") or ()
            ),
            retainage_percentage=_pick(data, "retainage_percentage", Decimal("0")),
            materials_retainage_percentage=_pick(
                data, "materials_retainage_percentage", Decimal("0")
            ),
            previous_payments=_pick(data, "previous_payments", Decimal("0")),
        )


# ============================================================================
# Reportable collections
# ============================================================================


@dataclass(frozen=True)
class Expense:
    id: str
    date: str = ""
    vendor: str = ""
    amount: NumberLike = Decimal("0")
    category: str = ExpenseCategory.OTHER.value
    description: str = ""
    invoicable: bool = False
    status: str = ExpenseStatus.PENDING.value
    source_receipt_id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Expense:
        return cls(
            id=_pick(data, "id", ""),
            date=_pick(data, "date", ""),
            vendor=_pick(data, "vendor", ""),
            amount=_pick(data, "amount", Decimal("0")),
            category=_pick(data, "category", ExpenseCategory.OTHER.value),
            description=_pick(data, "description", ""),
            invoicable=bool(_pick(data, "invoicable", False)),
            status=_pick(data, "status", ExpenseStatus.PENDING.value),
            source_receipt_id=_pick(data, "source_receipt_id", ""),
        )


@dataclass(frozen=True)
class DailyLog:
    """A field daily report.  Structured sections are kept as raw mappings."""

    id: str
    date: str = ""
    status: str = DailyLogStatus.DRAFT.value
    raw_notes: str = ""
    manpower: tuple[Mapping[str, Any], ...] = ()
    work_completed: tuple[Mapping[str, Any], ...] = ()
    delays: tuple[Mapping[str, Any], ...] = ()
    notes: tuple[Mapping[str, Any], ...] = ()
    photo_ids: tuple[str, ...] = ()
    signed_by: str | None = None
    signed_at: str | None = None
    revision_of: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DailyLog:
        return cls(
            id=_pick(data, "id", ""),
            date=_pick(data, "date", ""),
            status=_pick(data, "status", DailyLogStatus.DRAFT.value),
            raw_notes=_pick(data, "raw_notes", ""),
            manpower=_tuple(_pick(data, "manpower")),
            work_completed=_tuple(_pick(data, "work_completed")),
            delays=_tuple(_pick(data, "delays")),
            notes=_tuple(_pick(data, "notes")),
            photo_ids=_tuple(_pick(data, "photo_ids")),
            signed_by=_pick(data, "signed_by"),
            signed_at=_pick(data, "signed_at"),
            revision_of=_pick(data, "revision_of"),
        )


@dataclass(frozen=True)
class ManagedRfiItem:
    id: str
    subject: str = ""
    question: str = ""
    status: str = RfiStatus.DRAFT.value
    answer: str | None = None
    analysis: str | None = None
    log: tuple[Mapping[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ManagedRfiItem:
        return cls(
            id=_pick(data, "id", ""),
            subject=_pick(data, "subject", ""),
            question=_pick(data, "question", ""),
            status=_pick(data, "status", RfiStatus.DRAFT.value),
            answer=_pick(data, "answer"),
            analysis=_pick(data, "analysis"),
            log=_tuple(_pick(data, "log")),
        )


@dataclass(frozen=True)
class InspectionRequest:
    id: str
    inspection_number: int = 0
    type: str = ""
    recipient_name: str = ""
    recipient_email: str = ""
    requested_date: str = ""
    scheduled_date: str | None = None
    status: str = InspectionStatus.OPEN.value
    outcome_notes: str | None = None
    related_inspection_id: str | None = None
    is_signed: bool = False
    signed_by: str | None = None
    signed_at: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InspectionRequest:
        return cls(
            id=_pick(data, "id", ""),
            inspection_number=_pick(data, "inspection_number", 0),
            type=_pick(data, "type", ""),
            recipient_name=_pick(data, "recipient_name", ""),
            recipient_email=_pick(data, "recipient_email", ""),
            requested_date=_pick(data, "requested_date", ""),
            scheduled_date=_pick(data, "scheduled_date"),
            status=_pick(data, "status", InspectionStatus.OPEN.value),
            outcome_notes=_pick(data, "outcome_notes"),
            related_inspection_id=_pick(data, "related_inspection_id"),
            is_signed=bool(_pick(data, "is_signed", False)),
            signed_by=_pick(data, "signed_by"),
            signed_at=_pick(data, "signed_at"),
        )


# ============================================================================
# Billing sources
# ============================================================================


@dataclass(frozen=True)
class TimeEntry:
    id: str
    employee_id: str
    date: str = ""
    hours: NumberLike = Decimal("0")
    cost_code: str = ""
    description: str | None = None
    status: str = TimeEntryStatus.DRAFT.value
    invoice_id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TimeEntry:
        return cls(
            id=_pick(data, "id", ""),
            employee_id=_pick(data, "employee_id", ""),
            date=_pick(data, "date", ""),
            hours=_pick(data, "hours", Decimal("0")),
            cost_code=_pick(data, "cost_code", ""),
            description=_pick(data, "description"),
            status=_pick(data, "status", TimeEntryStatus.DRAFT.value),
            invoice_id=_pick(data, "invoice_id"),
        )


@dataclass(frozen=True)
class Contact:
    id: str
    name: str = ""
    company: str = ""
    role: str = ""
    email: str = ""
    phone: str = ""
    billable_rate: NumberLike = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Contact:
        return cls(
            id=_pick(data, "id", ""),
            name=_pick(data, "name", ""),
            company=_pick(data, "company", ""),
            role=_pick(data, "role", ""),
            email=_pick(data, "email", ""),
            phone=_pick(data, "phone", ""),
            billable_rate=_pick(data, "billable_rate"),
        )


@dataclass(frozen=True)
class EstimateLineItem:
    """One priced line of a generated estimate."""

    item: str
    unit: str = ""
    qty: NumberLike = Decimal("0")
    unit_price: NumberLike = None
    line_total: NumberLike = None
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EstimateLineItem:
        return cls(
            item=_pick(data, "item", ""),
            unit=_pick(data, "unit", ""),
            qty=_pick(data, "qty", Decimal("0")),
            unit_price=_pick(data, "unit_price"),
            line_total=_pick(data, "line_total"),
            notes=_pick(data, "notes", ""),
        )


# ============================================================================
# Project aggregate
# ============================================================================


@dataclass(frozen=True)
class RfiManager:
    managed_rfis: tuple[ManagedRfiItem, ...] = ()


@dataclass(frozen=True)
class Project:
    """
    The project aggregate.

    Only the collections the engines read are modelled.  Engines borrow read
    access and never retain references into the aggregate.
    """

    id: str
    name: str = ""
    address: str = ""
    client_name: str = ""
    contact_ids: tuple[str, ...] = ()
    uses_schedule_of_values: bool = False
    expenses: tuple[Expense, ...] = ()
    daily_logs: tuple[DailyLog, ...] = ()
    rfi_manager: RfiManager = RfiManager()
    inspections: tuple[InspectionRequest, ...] = ()
    invoicing: InvoiceState = InvoiceState()
    time_entries: tuple[TimeEntry, ...] = ()
    custom_reports: tuple[CustomReport, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Project:
        rfi_manager = _pick(data, "rfi_manager") or {}
        return cls(
            id=_pick(data, "id", ""),
            name=_pick(data, "name", ""),
            address=_pick(data, "address", ""),
            client_name=_pick(data, "client_name", ""),
            contact_ids=_tuple(_pick(data, "contact_ids")),
            uses_schedule_of_values=bool(_pick(data, "uses_schedule_of_values", False)),
            expenses=tuple(Expense.from_dict(e) for e in _pick(data, "expenses") or ()),
            daily_logs=tuple(
                DailyLog.from_dict(log) for log in _pick(data, "daily_logs") or ()
            ),
            rfi_manager=RfiManager(
                managed_rfis=tuple(
                    ManagedRfiItem.from_dict(rfi)
                    for rfi in _pick(rfi_manager, "managed_rfis") or ()
                )
            ),
            inspections=tuple(
                InspectionRequest.from_dict(i) for i in _pick(data, "inspections") or ()
            ),
            invoicing=InvoiceState.from_dict(_pick(data, "invoicing") or {}),
            time_entries=tuple(
                TimeEntry.from_dict(t) for t in _pick(data, "time_entries") or ()
            ),
            custom_reports=tuple(
                CustomReport.from_dict(r) for r in _pick(data, "custom_reports") or ()
            ),
        )
