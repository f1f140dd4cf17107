"""
Hypothesis property tests for the invoice and report engines.

Properties:
- Invoice additivity: contract sum to date and earned-less-retainage are
  exact sums, with no rounding drift.
- Zero scheduled value never divides.
- Retainage on work and on materials vary independently.
- Filters combine with AND; adding a filter never grows the result.
- Summed group aggregates conserve the filtered total.
- Per-group avg equals sum / count.
"""

from dataclasses import replace
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from sitebook_kernel.domain.records import ChangeOrderItem, ContractLineItem, InvoiceState
from sitebook_kernel.domain.reports import Filter, Grouping
from sitebook_engines.invoicing import calculate_line_item, calculate_payment_application
from sitebook_engines.reporting import (
    aggregate,
    apply_filters,
    group_and_aggregate,
    group_records,
)

CATEGORIES = ["Fuel", "Tools", "Meals", "Travel"]
STATUSES = ["Pending", "Invoiced"]


def amounts(max_value="1000000"):
    return st.decimals(
        min_value=Decimal("0"),
        max_value=Decimal(max_value),
        places=2,
        allow_nan=False,
        allow_infinity=False,
    )


def percentages():
    return st.decimals(
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        places=2,
        allow_nan=False,
        allow_infinity=False,
    )


@composite
def line_items(draw):
    return ContractLineItem(
        id=f"li-{draw(st.integers(min_value=0, max_value=10_000))}",
        scheduled_value=draw(amounts()),
        prev_billed=draw(amounts()),
        this_period=draw(amounts()),
        stored_materials=draw(amounts()),
    )


@composite
def invoices(draw):
    return InvoiceState(
        line_items=tuple(draw(st.lists(line_items(), max_size=8))),
        change_orders=tuple(
            ChangeOrderItem(id=f"co-{i}", value=value)
            for i, value in enumerate(
                draw(st.lists(
                    st.decimals(
                        min_value=Decimal("-50000"), max_value=Decimal("50000"),
                        places=2, allow_nan=False, allow_infinity=False,
                    ),
                    max_size=4,
                ))
            )
        ),
        retainage_percentage=draw(percentages()),
        materials_retainage_percentage=draw(percentages()),
        previous_payments=draw(amounts()),
    )


@composite
def expense_rows(draw):
    return {
        "category": draw(st.sampled_from(CATEGORIES)),
        "status": draw(st.sampled_from(STATUSES)),
        "invoicable": draw(st.booleans()),
        "amount": draw(amounts("10000")),
    }


_COMPARISONS = {
    "equals": lambda left, right: left == right,
    "not_equals": lambda left, right: left != right,
    "greater_than": lambda left, right: left > right,
    "less_than": lambda left, right: left < right,
}


def _row_matches(row, report_filter):
    """Plain-Python reading of one generated filter against one generated row."""
    return _COMPARISONS[report_filter.operator](row[report_filter.field], report_filter.value)


@composite
def filters(draw):
    kind = draw(st.sampled_from(["category", "status", "invoicable", "amount"]))
    if kind == "category":
        return Filter("category", draw(st.sampled_from(["equals", "not_equals"])),
                      draw(st.sampled_from(CATEGORIES)))
    if kind == "status":
        return Filter("status", "equals", draw(st.sampled_from(STATUSES)))
    if kind == "invoicable":
        return Filter("invoicable", "equals", draw(st.booleans()))
    return Filter("amount", draw(st.sampled_from(["greater_than", "less_than"])),
                  draw(amounts("10000")))


class TestInvoiceProperties:
    """Invoice engine invariants."""

    @given(invoice=invoices())
    @settings(max_examples=100, deadline=None)
    def test_additivity(self, invoice):
        result = calculate_payment_application(invoice)

        assert result.contract_sum_to_date == (
            result.original_contract_sum + result.net_change_by_change_orders
        )
        assert result.total_earned_less_retainage == (
            result.total_completed_and_stored - result.total_retainage
        )
        assert result.total_retainage == (
            result.total_retainage_on_work + result.total_retainage_on_materials
        )
        assert result.total_completed_and_stored == sum(
            (li.total_completed_and_stored for li in result.line_items), Decimal("0")
        )

    @given(this_period=amounts(), retainage=percentages())
    @settings(max_examples=50, deadline=None)
    def test_zero_scheduled_value_safety(self, this_period, retainage):
        item = ContractLineItem(id="li", scheduled_value=Decimal("0"), this_period=this_period)
        calc = calculate_line_item(item, retainage, Decimal("0"))

        assert calc.percentage_complete == Decimal("0")
        assert calc.percentage_complete.is_finite()

    @given(item=line_items(), work=percentages(), first=percentages(), second=percentages())
    @settings(max_examples=100, deadline=None)
    def test_materials_rate_never_moves_work_retainage(self, item, work, first, second):
        a = calculate_line_item(item, work, first)
        b = calculate_line_item(item, work, second)

        assert a.retainage_on_work == b.retainage_on_work

    @given(invoice=invoices(), rate=percentages())
    @settings(max_examples=50, deadline=None)
    def test_work_rate_never_moves_materials_retainage(self, invoice, rate):
        before = calculate_payment_application(invoice)
        after = calculate_payment_application(replace(invoice, retainage_percentage=rate))

        assert before.total_retainage_on_materials == after.total_retainage_on_materials


class TestReportProperties:
    """Report engine invariants."""

    @given(rows=st.lists(expense_rows(), max_size=30), fs=st.lists(filters(), max_size=4))
    @settings(max_examples=100, deadline=None)
    def test_and_semantics(self, rows, fs):
        kept = apply_filters(rows, fs)
        expected = [r for r in rows if all(_row_matches(r, f) for f in fs)]

        assert list(kept) == expected

    @given(rows=st.lists(expense_rows(), max_size=30), fs=st.lists(filters(), max_size=3),
           extra=filters())
    @settings(max_examples=100, deadline=None)
    def test_adding_a_filter_never_grows_result(self, rows, fs, extra):
        assert len(apply_filters(rows, [*fs, extra])) <= len(apply_filters(rows, fs))

    @given(rows=st.lists(expense_rows(), max_size=30), fs=st.lists(filters(), max_size=2))
    @settings(max_examples=100, deadline=None)
    def test_sum_conservation(self, rows, fs):
        kept = apply_filters(rows, fs)
        grouped = group_and_aggregate(kept, Grouping("category", "sum", "amount"))

        assert sum((g["amount"] for g in grouped), Decimal("0")) == sum(
            (r["amount"] for r in kept), Decimal("0")
        )

    @given(rows=st.lists(expense_rows(), min_size=1, max_size=30))
    @settings(max_examples=100, deadline=None)
    def test_avg_is_sum_over_count(self, rows):
        for items in group_records(rows, "category").values():
            total = aggregate(items, "sum", "amount")
            count = aggregate(items, "count", "amount")
            assert aggregate(items, "avg", "amount") == total / count
