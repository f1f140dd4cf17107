"""
Tests for the filter / group / aggregate report engine.

Covers canned report expansion, every filter operator, AND semantics,
grouping and aggregation, and the forgiving handling of missing fields,
unknown operators and malformed values.
"""

from datetime import date
from decimal import Decimal

import pytest

from sitebook_kernel.domain.records import Expense
from sitebook_kernel.domain.reports import CustomReport, Filter, Grouping
from sitebook_kernel.exceptions import UnknownReportError
from sitebook_engines.reporting import (
    aggregate,
    apply_filters,
    evaluate_filter,
    expand_canned_report,
    group_and_aggregate,
    process_report,
    resolve_data_source,
    resolve_report_config,
)


def _expense_report(filters=(), grouping=None, fields=("vendor", "amount")):
    return CustomReport(
        id="r1",
        name="Expenses",
        data_source="expenses",
        fields=fields,
        filters=tuple(filters),
        grouping=grouping,
    )


# ============================================================================
# Config resolution
# ============================================================================


class TestCannedReports:
    """Tests for canned report expansion."""

    def test_billable_expenses_expands_to_filters(self, canned_reports):
        report = expand_canned_report("billableExpenses", canned_reports)

        assert report.data_source == "expenses"
        assert [(f.field, f.operator, f.value) for f in report.filters] == [
            ("invoicable", "equals", True),
            ("status", "equals", "Pending"),
        ]

    def test_expense_by_category_is_grouped(self, canned_reports):
        report = expand_canned_report("expenseByCategory", canned_reports)

        assert report.grouping == Grouping(field="category", aggregation="sum", agg_field="amount")

    def test_unknown_id_raises(self, canned_reports):
        with pytest.raises(UnknownReportError) as exc_info:
            expand_canned_report("doesNotExist", canned_reports)

        assert exc_info.value.report_id == "doesNotExist"
        assert exc_info.value.code == "UNKNOWN_REPORT"

    def test_financial_summary_is_not_a_filter_report(self, project, canned_reports):
        with pytest.raises(UnknownReportError):
            process_report(project, "financialSummary", canned_reports)

    def test_mapping_with_only_id_is_canned(self, canned_reports):
        report = resolve_report_config({"id": "rfiLog"}, canned_reports)
        assert report.data_source == "rfiManager"

    def test_mapping_with_data_source_is_custom(self):
        report = resolve_report_config(
            {
                "id": "custom-1",
                "name": "Big spend",
                "dataSource": "expenses",
                "filters": [{"field": "amount", "operator": "greater_than", "value": 20}],
            },
            {},
        )
        assert report.id == "custom-1"
        assert report.filters[0].operator == "greater_than"

    def test_unsupported_config_type(self):
        with pytest.raises(TypeError):
            resolve_report_config(42, {})

    def test_non_string_canned_id_is_unknown(self, canned_reports):
        with pytest.raises(UnknownReportError) as exc_info:
            resolve_report_config({"id": ["rfiLog"]}, canned_reports)
        assert exc_info.value.report_id == ["rfiLog"]


class TestDataSources:
    """Tests for data source selection."""

    def test_each_source_resolves(self, project):
        assert len(resolve_data_source(project, "expenses")) == 3
        assert len(resolve_data_source(project, "dailyLogs")) == 2
        assert len(resolve_data_source(project, "rfiManager")) == 3
        assert len(resolve_data_source(project, "inspections")) == 3

    def test_unknown_source_is_empty(self, project):
        assert resolve_data_source(project, "timesheets") == ()

    def test_unknown_source_gives_empty_report(self, project):
        report = CustomReport(id="x", name="X", data_source="timesheets", fields=("a",))
        result = process_report(project, report)

        assert result.rows == ()
        assert result.is_grouped is False

    def test_list_or_mapping_source_is_empty(self, project):
        assert resolve_data_source(project, ["expenses"]) == ()
        assert resolve_data_source(project, {"id": "expenses"}) == ()

    def test_decoded_json_with_list_source_gives_empty_report(self, project):
        result = process_report(
            project, {"id": "j", "name": "J", "dataSource": ["expenses"]},
        )
        assert result.rows == ()


# ============================================================================
# Filters
# ============================================================================


class TestFilterOperators:
    """Tests for evaluate_filter, one operator at a time."""

    @pytest.fixture
    def fuel(self):
        return Expense(
            id="e1", date="2024-03-01", vendor="Shell", amount=Decimal("50"),
            category="Fuel", description="Truck Fuel", invoicable=True,
        )

    def test_equals(self, fuel):
        assert evaluate_filter(fuel, Filter("category", "equals", "Fuel"))
        assert not evaluate_filter(fuel, Filter("category", "equals", "Tools"))

    def test_equals_numeric_string(self, fuel):
        assert evaluate_filter(fuel, Filter("amount", "equals", "50"))
        assert evaluate_filter(fuel, Filter("amount", "equals", 50.0))

    def test_equals_boolean_text(self, fuel):
        assert evaluate_filter(fuel, Filter("invoicable", "equals", "true"))
        assert not evaluate_filter(fuel, Filter("invoicable", "equals", "false"))

    def test_not_equals(self, fuel):
        assert evaluate_filter(fuel, Filter("vendor", "not_equals", "Chevron"))
        assert not evaluate_filter(fuel, Filter("vendor", "not_equals", "Shell"))

    def test_contains_is_case_insensitive(self, fuel):
        assert evaluate_filter(fuel, Filter("description", "contains", "truck"))
        assert evaluate_filter(fuel, Filter("description", "contains", "FUEL"))
        assert not evaluate_filter(fuel, Filter("description", "contains", "diesel"))

    def test_greater_than_and_less_than(self, fuel):
        assert evaluate_filter(fuel, Filter("amount", "greater_than", 20))
        assert not evaluate_filter(fuel, Filter("amount", "greater_than", 50))
        assert evaluate_filter(fuel, Filter("amount", "less_than", "75"))
        assert not evaluate_filter(fuel, Filter("amount", "less_than", 10))

    def test_is_between_inclusive(self, fuel):
        assert evaluate_filter(fuel, Filter("date", "is_between", ("2024-03-01", "2024-03-31")))
        assert evaluate_filter(fuel, Filter("date", "is_between", ["2024-02-01", "2024-03-01"]))
        assert not evaluate_filter(fuel, Filter("date", "is_between", ("2024-03-02", "2024-03-31")))

    def test_is_between_accepts_date_objects(self, fuel):
        window = (date(2024, 2, 28), date(2024, 3, 2))
        assert evaluate_filter(fuel, Filter("date", "is_between", window))

    def test_is_between_malformed_range_excludes(self, fuel):
        assert not evaluate_filter(fuel, Filter("date", "is_between", "2024-03-01"))
        assert not evaluate_filter(fuel, Filter("date", "is_between", ("2024-03-01",)))

    def test_is_between_invalid_record_date_excludes(self):
        bad = Expense(id="e9", date="someday")
        assert not evaluate_filter(bad, Filter("date", "is_between", ("2024-01-01", "2024-12-31")))

    def test_missing_field_excludes(self, fuel):
        assert not evaluate_filter(fuel, Filter("mileage", "equals", "10"))
        assert not evaluate_filter(fuel, Filter("mileage", "not_equals", "10"))

    def test_unknown_operator_excludes(self, fuel):
        assert not evaluate_filter(fuel, Filter("vendor", "starts_with", "Sh"))

    def test_list_or_mapping_operator_excludes(self, fuel):
        assert not evaluate_filter(fuel, Filter("vendor", ["equals"], "Shell"))
        assert not evaluate_filter(fuel, Filter("vendor", {"op": "equals"}, "Shell"))

    def test_list_operator_in_decoded_json_gives_empty_report(self, project):
        report = {
            "id": "j", "name": "J", "dataSource": "expenses",
            "filters": [{"field": "vendor", "operator": ["equals"], "value": "Shell"}],
        }
        assert process_report(project, report).rows == ()

    def test_contains_without_value_matches_nothing(self):
        rows = (
            Expense(id="e1", vendor="Acme"),
            Expense(id="e2", vendor="null supply"),
        )
        assert apply_filters(rows, (Filter("vendor", "contains", None),)) == ()

    def test_camel_case_field_name_resolves(self, project):
        log = project.daily_logs[0]
        assert evaluate_filter(log, Filter("signedBy", "equals", "Dana Reyes"))

    def test_mapping_records(self):
        row = {"vendor": "Shell", "amount": 50}
        assert evaluate_filter(row, Filter("amount", "greater_than", "49.99"))


class TestApplyFilters:
    """Tests for logical AND over filters."""

    def test_and_semantics(self):
        records = (
            {"invoicable": True, "status": "Pending", "amount": 50},
            {"invoicable": False, "status": "Pending", "amount": 20},
        )
        filters = (
            Filter("invoicable", "equals", True),
            Filter("status", "equals", "Pending"),
        )
        assert apply_filters(records, filters) == (records[0],)

    def test_no_filters_keeps_everything(self, expenses):
        assert apply_filters(expenses, ()) == expenses

    def test_order_preserved(self, expenses):
        kept = apply_filters(expenses, (Filter("amount", "greater_than", 5),))
        assert [e.id for e in kept] == ["e1", "e2", "e3"]


# ============================================================================
# Grouping and aggregation
# ============================================================================


class TestGrouping:
    """Tests for group_and_aggregate and aggregate."""

    @pytest.fixture
    def rows(self):
        return (
            {"category": "Fuel", "amount": 30},
            {"category": "Fuel", "amount": 20},
            {"category": "Tools", "amount": 10},
        )

    def test_sum_by_category(self, rows):
        grouped = group_and_aggregate(rows, Grouping("category", "sum", "amount"))

        assert {r["category"]: r["amount"] for r in grouped} == {
            "Fuel": Decimal("50"),
            "Tools": Decimal("10"),
        }

    def test_groups_in_first_seen_order(self, rows):
        grouped = group_and_aggregate(rows, Grouping("category", "count", "amount"))
        assert [r["category"] for r in grouped] == ["Fuel", "Tools"]

    def test_count(self, rows):
        grouped = group_and_aggregate(rows, Grouping("category", "count", "amount"))
        assert {r["category"]: r["amount"] for r in grouped} == {"Fuel": 2, "Tools": 1}

    def test_avg(self, rows):
        grouped = group_and_aggregate(rows, Grouping("category", "avg", "amount"))
        assert {r["category"]: r["amount"] for r in grouped}["Fuel"] == Decimal("25")

    def test_non_numeric_aggregate_values_count_as_zero(self):
        rows = ({"k": "a", "v": "oops"}, {"k": "a", "v": 5})
        assert aggregate(rows, "sum", "v") == Decimal("5")

    def test_unknown_aggregation_is_zero(self, rows):
        assert aggregate(rows, "median", "amount") == Decimal("0")
        assert aggregate(rows, ["sum"], "amount") == Decimal("0")

    def test_list_agg_field_keys_under_blank(self, rows):
        grouped = group_and_aggregate(rows, Grouping("category", "count", ["amount"]))
        assert grouped == ({"category": "Fuel", "": 2}, {"category": "Tools", "": 1})

    def test_list_group_field_is_ungrouped(self, project):
        report = _expense_report(grouping=Grouping(["category"], "sum", "amount"))
        result = process_report(project, report)

        assert result.is_grouped is False
        assert len(result.rows) == 3

    def test_missing_group_field_groups_under_blank(self):
        rows = ({"amount": 1}, {"amount": 2})
        grouped = group_and_aggregate(rows, Grouping("category", "sum", "amount"))
        assert grouped == ({"category": "", "amount": Decimal("3")},)

    def test_boolean_group_keys_render_as_text(self, expenses):
        grouped = group_and_aggregate(expenses, Grouping("invoicable", "count", "id"))
        assert [r["invoicable"] for r in grouped] == ["true", "false"]


# ============================================================================
# End-to-end report processing
# ============================================================================


class TestProcessReport:
    """Tests for process_report."""

    def test_billable_expenses(self, project, canned_reports):
        result = process_report(project, "billableExpenses", canned_reports)

        assert result.title == "Uninvoiced Billable Expenses"
        assert result.is_grouped is False
        assert result.columns == ("date", "vendor", "description", "amount")
        assert [e.id for e in result.rows] == ["e1"]

    def test_ungrouped_rows_are_original_records(self, project):
        result = process_report(project, _expense_report())
        assert result.rows[0] is project.expenses[0]

    def test_expense_by_category(self, project, canned_reports):
        result = process_report(project, "expenseByCategory", canned_reports)

        assert result.is_grouped is True
        assert result.columns == ("category", "amount")
        assert {r["category"]: r["amount"] for r in result.rows} == {
            "Fuel": Decimal("80"),
            "Tools": Decimal("10"),
        }

    def test_filters_apply_before_grouping(self, project):
        report = _expense_report(
            filters=(Filter("status", "equals", "Pending"),),
            grouping=Grouping("category", "sum", "amount"),
        )
        result = process_report(project, report)

        assert {r["category"]: r["amount"] for r in result.rows} == {
            "Fuel": Decimal("50"),
            "Tools": Decimal("10"),
        }

    def test_blank_grouping_field_is_ungrouped(self, project):
        report = _expense_report(grouping=Grouping("", "sum", "amount"))
        result = process_report(project, report)

        assert result.is_grouped is False
        assert result.row_count == 3

    def test_rfi_log(self, project, canned_reports):
        result = process_report(project, "rfiLog", canned_reports)
        assert [r.id for r in result.rows] == ["r1", "r2", "r3"]

    def test_inspections_by_requested_date(self, project):
        report = CustomReport(
            id="insp", name="March inspections", data_source="inspections",
            fields=("type", "status"),
            filters=(Filter("requestedDate", "is_between", ("2024-03-01", "2024-03-31")),),
        )
        result = process_report(project, report)
        assert [r.id for r in result.rows] == ["i2", "i3"]

    def test_project_not_mutated(self, project, canned_reports):
        before = project.expenses
        process_report(project, "expenseByCategory", canned_reports)

        assert project.expenses is before
        assert project.expenses[0].status == "Pending"

    def test_deterministic(self, project, canned_reports):
        first = process_report(project, "expenseByCategory", canned_reports)
        second = process_report(project, "expenseByCategory", canned_reports)
        assert first == second

    def test_emits_report_processed(self, project, canned_reports, captured_logs):
        process_report(project, "billableExpenses", canned_reports)
        logs = captured_logs()

        processed = [r for r in logs if r["message"] == "report_processed"]
        assert processed[0]["report_id"] == "canned-billableExpenses"
        assert processed[0]["filtered_count"] == 1
        assert any(r["message"] == "SITEBOOK_ENGINE_TRACE" for r in logs)
