"""
Pytest fixtures for the SiteBook test suite.

Provides:
- Structured logging setup and log capture
- A deterministic clock
- A sample project exercising every reportable collection
- The compiled default configuration set

No database or network is required.
"""

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from io import StringIO

import pytest

from sitebook_config import get_active_config
from sitebook_kernel.domain.clock import DeterministicClock
from sitebook_kernel.domain.records import (
    ChangeOrderItem,
    Contact,
    ContractLineItem,
    DailyLog,
    Expense,
    InspectionRequest,
    InvoiceState,
    ManagedRfiItem,
    Project,
    RfiManager,
    TimeEntry,
)
from sitebook_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture sitebook logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            process_report(project, "rfiLog", canned)
            logs = captured_logs()
            assert any(r["message"] == "report_processed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("sitebook")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 3, 15, 9, 30, tzinfo=UTC))


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture(scope="session")
def default_config():
    """The shipped default configuration set."""
    return get_active_config()


@pytest.fixture
def canned_reports(default_config):
    return default_config.canned_reports


# =============================================================================
# Project fixtures
# =============================================================================


@pytest.fixture
def expenses():
    return (
        Expense(
            id="e1", date="2024-03-01", vendor="Shell", amount=Decimal("50"),
            category="Fuel", description="Truck fuel", invoicable=True,
            status="Pending",
        ),
        Expense(
            id="e2", date="2024-03-02", vendor="Home Depot", amount=Decimal("10"),
            category="Tools", description="Drill bits", invoicable=False,
            status="Pending",
        ),
        Expense(
            id="e3", date="2024-03-05", vendor="Chevron", amount=Decimal("30"),
            category="Fuel", description="Generator fuel", invoicable=True,
            status="Invoiced",
        ),
    )


@pytest.fixture
def contacts():
    return (
        Contact(id="c1", name="Dana Reyes", role="Foreman", billable_rate=Decimal("85")),
        Contact(id="c2", name="Sam Ortiz", role="Laborer", billable_rate=Decimal("55.50")),
    )


@pytest.fixture
def invoice():
    return InvoiceState(
        project_name="Harbor Lofts",
        application_number=3,
        period_to="2024-03-31",
        line_items=(
            ContractLineItem(
                id="li1", item_number="001", description="Sitework",
                scheduled_value=Decimal("100000"), prev_billed=Decimal("20000"),
                this_period=Decimal("10000"), stored_materials=Decimal("5000"),
            ),
            ContractLineItem(
                id="li2", item_number="002", description="Framing",
                scheduled_value=Decimal("50000"), prev_billed=Decimal("0"),
                this_period=Decimal("5000"),
            ),
        ),
        change_orders=(
            ChangeOrderItem(id="co1", description="Added drainage", value=Decimal("7500")),
            ChangeOrderItem(id="co2", description="Deleted fence", value=Decimal("-2500")),
        ),
        retainage_percentage=Decimal("10"),
        materials_retainage_percentage=Decimal("5"),
        previous_payments=Decimal("18000"),
    )


@pytest.fixture
def project(expenses, invoice):
    """A project with records in every reportable collection."""
    return Project(
        id="p1",
        name="Harbor Lofts",
        client_name="Harbor Holdings",
        contact_ids=("c1", "c2"),
        uses_schedule_of_values=True,
        expenses=expenses,
        daily_logs=(
            DailyLog(id="d1", date="2024-03-01", status="Signed", signed_by="Dana Reyes"),
            DailyLog(id="d2", date="2024-03-02", status="Draft"),
        ),
        rfi_manager=RfiManager(
            managed_rfis=(
                ManagedRfiItem(id="r1", subject="Beam size", question="W10 or W12?", status="Sent"),
                ManagedRfiItem(
                    id="r2", subject="Paint color", question="Which white?",
                    status="Answered", answer="Swiss Coffee",
                ),
                ManagedRfiItem(id="r3", subject="Slab depth", question="4 or 6 in?", status="Draft"),
            )
        ),
        inspections=(
            InspectionRequest(
                id="i1", inspection_number=1, type="Footing",
                requested_date="2024-02-20", status="Passed",
            ),
            InspectionRequest(
                id="i2", inspection_number=2, type="Framing",
                requested_date="2024-03-10", status="Failed",
            ),
            InspectionRequest(
                id="i3", inspection_number=3, type="Electrical",
                requested_date="2024-03-20", status="Scheduled",
            ),
        ),
        invoicing=invoice,
        time_entries=(
            TimeEntry(id="t1", employee_id="c1", date="2024-03-04", hours=Decimal("8"), status="Approved"),
            TimeEntry(id="t2", employee_id="c2", date="2024-03-04", hours=Decimal("6.5"), status="Approved"),
            TimeEntry(id="t3", employee_id="c1", date="2024-03-05", hours=Decimal("4"), status="Approved"),
            TimeEntry(id="t4", employee_id="c2", date="2024-03-05", hours=Decimal("8"), status="Draft"),
        ),
    )
