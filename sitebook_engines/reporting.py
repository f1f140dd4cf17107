"""
sitebook_engines.reporting -- Generic filter / group / aggregate report engine.

Responsibility:
    Turn a ``(Project, report configuration)`` pair into a tabular
    ``ReportResult``: either the raw filtered records, or one aggregate row
    per group.

    1. Resolve config:   a canned report identifier is expanded through the
                         supplied registry into a ``CustomReport``.
    2. Resolve source:   select the named project collection; an unknown
                         data source yields an empty collection.
    3. Filter:           keep records passing EVERY filter (logical AND).
    4. Group/aggregate:  optional; partition by the text form of the group
                         field and compute count / sum / avg per group.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import sitebook_kernel.  The canned-report registry is passed in
    by the caller (see ``sitebook_config``), never loaded here.

Invariants enforced:
    - Purity: the project and its records are never mutated; every output
      container is newly built.  Ungrouped rows are the original records.
    - Determinism: identical inputs produce identical outputs; groups are
      emitted in first-seen order.
    - Forgiving evaluation: a missing field, unknown operator, malformed
      ``is_between`` range or unparseable date excludes the record; a
      non-numeric aggregate field counts as zero.  None of these raise.

Failure modes:
    - UnknownReportError if a canned report identifier is not in the
      registry.  This is the only fatal condition.

Usage:
    from sitebook_engines.reporting import process_report

    result = process_report(project, "billableExpenses", canned_reports)
    for row in result.rows:
        ...
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sitebook_kernel.domain.coercion import (
    ZERO,
    as_text,
    get_field,
    is_numeric,
    parse_instant,
    to_decimal_or_zero,
    to_number_or_none,
)
from sitebook_kernel.domain.records import Project
from sitebook_kernel.domain.reports import (
    Aggregation,
    CustomReport,
    DataSourceSpec,
    Filter,
    FilterOperator,
    Grouping,
    ReportDataSource,
    ReportResult,
)
from sitebook_kernel.exceptions import UnknownReportError
from sitebook_kernel.logging_config import get_logger
from sitebook_engines.tracer import traced_engine

logger = get_logger("engines.reporting")


def _plain(value: Any) -> Any:
    """Enum members are looked up by their value."""
    return value.value if isinstance(value, Enum) else value


def _name(value: Any) -> str | None:
    """Registry key for a configured name; None for anything not a string.

    Report configurations arrive as decoded JSON, so a data source,
    operator or aggregation may be a list or mapping.  Those match nothing.
    """
    value = _plain(value)
    return value if isinstance(value, str) else None


# ============================================================================
# Config and data-source resolution
# ============================================================================


def expand_canned_report(
    report_id: str,
    canned_reports: Mapping[str, CustomReport],
) -> CustomReport:
    """
    Expand a canned report identifier into its ``CustomReport``.

    Raises:
        UnknownReportError: If ``report_id`` is not in the registry.
    """
    key = _name(report_id)
    report = canned_reports.get(key) if key is not None else None
    if report is None:
        logger.warning("canned_report_not_found", extra={"report_id": report_id})
        raise UnknownReportError(report_id)
    return report


def resolve_report_config(
    config: CustomReport | Mapping[str, Any] | str,
    canned_reports: Mapping[str, CustomReport],
) -> CustomReport:
    """
    Normalize a report request into a ``CustomReport``.

    Accepts a ``CustomReport``, a canned identifier string, or a mapping.  A
    mapping carrying a data source is a full report definition; one carrying
    only an ``id`` is a canned report request.
    """
    if isinstance(config, CustomReport):
        return config
    if isinstance(config, str):
        return expand_canned_report(config, canned_reports)
    if isinstance(config, Mapping):
        if "dataSource" in config or "data_source" in config:
            return CustomReport.from_dict(config)
        return expand_canned_report(config.get("id", ""), canned_reports)
    raise TypeError(
        f"Report config must be a CustomReport, mapping or canned id, "
        f"got {type(config).__name__}"
    )


_DATA_SOURCES: dict[str, Callable[[Project], Sequence[Any]]] = {
    ReportDataSource.EXPENSES.value: lambda p: p.expenses,
    ReportDataSource.DAILY_LOGS.value: lambda p: p.daily_logs,
    ReportDataSource.RFI_MANAGER.value: lambda p: p.rfi_manager.managed_rfis,
    ReportDataSource.INSPECTIONS.value: lambda p: p.inspections,
}


def resolve_data_source(project: Project, data_source: str) -> tuple[Any, ...]:
    """Return the project collection named by ``data_source`` (empty if unknown)."""
    key = _name(data_source)
    accessor = _DATA_SOURCES.get(key) if key is not None else None
    if accessor is None:
        return ()
    return tuple(accessor(project))


# ============================================================================
# Filter operators
# ============================================================================


def values_equal(record_value: Any, filter_value: Any) -> bool:
    """
    Equality between a record field and a filter value.

    Filter values usually arrive from form inputs as strings, so a numeric
    field matches a numeric string (``50 == "50"``) and a boolean field
    matches ``"true"`` / ``"false"``.
    """
    if isinstance(record_value, bool) or isinstance(filter_value, bool):
        if isinstance(record_value, bool) and isinstance(filter_value, bool):
            return record_value is filter_value
        if isinstance(record_value, str) or isinstance(filter_value, str):
            text = record_value if isinstance(record_value, str) else filter_value
            flag = filter_value if isinstance(filter_value, bool) else record_value
            return as_text(flag) == text.strip().lower()
        left = to_number_or_none(record_value)
        right = to_number_or_none(filter_value)
        return left is not None and right is not None and left == right

    if is_numeric(record_value) or is_numeric(filter_value):
        left = to_number_or_none(record_value)
        right = to_number_or_none(filter_value)
        return left is not None and right is not None and left == right

    return _plain(record_value) == _plain(filter_value)


def compare_values(record_value: Any, filter_value: Any) -> int | None:
    """
    Order a record field against a filter value.

    Returns -1 / 0 / 1, or None when the two are not comparable.  Numbers
    (and numeric strings opposite a number) compare numerically, dates
    compare chronologically, strings compare lexically.
    """
    if is_numeric(record_value) or is_numeric(filter_value):
        left = to_number_or_none(record_value)
        right = to_number_or_none(filter_value)
    elif isinstance(record_value, (date, datetime)) or isinstance(
        filter_value, (date, datetime)
    ):
        left = parse_instant(record_value)
        right = parse_instant(filter_value)
    elif isinstance(record_value, str) and isinstance(filter_value, str):
        left, right = record_value, filter_value
    else:
        return None

    if left is None or right is None:
        return None
    return (left > right) - (left < right)


def _equals(record_value: Any, filter_value: Any) -> bool:
    return values_equal(record_value, filter_value)


def _not_equals(record_value: Any, filter_value: Any) -> bool:
    return not values_equal(record_value, filter_value)


def _contains(record_value: Any, filter_value: Any) -> bool:
    if filter_value is None:
        return False
    return as_text(filter_value).lower() in as_text(record_value).lower()


def _greater_than(record_value: Any, filter_value: Any) -> bool:
    return compare_values(record_value, filter_value) == 1


def _less_than(record_value: Any, filter_value: Any) -> bool:
    return compare_values(record_value, filter_value) == -1


def is_date_range(value: Any) -> bool:
    """True if ``value`` has the ``(start, end)`` shape ``is_between`` expects."""
    return isinstance(value, (list, tuple)) and len(value) == 2


def _is_between(record_value: Any, filter_value: Any) -> bool:
    if not is_date_range(filter_value):
        return False
    instant = parse_instant(record_value)
    start = parse_instant(filter_value[0])
    end = parse_instant(filter_value[1])
    if instant is None or start is None or end is None:
        return False
    return start <= instant <= end


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    FilterOperator.EQUALS.value: _equals,
    FilterOperator.NOT_EQUALS.value: _not_equals,
    FilterOperator.CONTAINS.value: _contains,
    FilterOperator.GREATER_THAN.value: _greater_than,
    FilterOperator.LESS_THAN.value: _less_than,
    FilterOperator.IS_BETWEEN.value: _is_between,
}


def evaluate_filter(record: Any, report_filter: Filter) -> bool:
    """
    Evaluate one filter against one record.

    A record whose field is missing or None fails regardless of operator.
    An unknown operator fails, as does ``contains`` with no value.  Never
    raises.
    """
    record_value = get_field(record, report_filter.field)
    if record_value is None:
        return False
    key = _name(report_filter.operator)
    operator = _OPERATORS.get(key) if key is not None else None
    if operator is None:
        return False
    return operator(record_value, report_filter.value)


def apply_filters(
    records: Iterable[Any],
    filters: Sequence[Filter],
) -> tuple[Any, ...]:
    """Keep the records that pass every filter (logical AND), in input order."""
    if not filters:
        return tuple(records)
    return tuple(
        record
        for record in records
        if all(evaluate_filter(record, f) for f in filters)
    )


# ============================================================================
# Grouping and aggregation
# ============================================================================


def _sum_field(records: Sequence[Any], field: str) -> Decimal:
    return sum((to_decimal_or_zero(get_field(r, field)) for r in records), ZERO)


def aggregate(records: Sequence[Any], aggregation: str, agg_field: str) -> Decimal | int:
    """
    Compute one aggregate over a non-empty group.

    ``count`` is the group size; ``sum`` and ``avg`` read ``agg_field`` with
    zero coercion.  An unknown aggregation yields zero.
    """
    kind = _name(aggregation)
    if kind == Aggregation.COUNT.value:
        return len(records)
    if kind == Aggregation.SUM.value:
        return _sum_field(records, agg_field)
    if kind == Aggregation.AVG.value:
        if not records:
            return ZERO
        return _sum_field(records, agg_field) / len(records)
    return ZERO


def group_records(records: Iterable[Any], field: str) -> dict[str, list[Any]]:
    """Partition records by the text form of ``field`` (first-seen order)."""
    groups: dict[str, list[Any]] = {}
    for record in records:
        groups.setdefault(as_text(get_field(record, field)), []).append(record)
    return groups


def group_and_aggregate(
    records: Iterable[Any],
    grouping: Grouping,
) -> tuple[dict[str, Any], ...]:
    """
    One row per group: ``{grouping.field: key, grouping.agg_field: value}``.
    """
    field = _name(grouping.field) or ""
    agg_field = _name(grouping.agg_field) or ""
    groups = group_records(records, field)
    return tuple(
        {
            field: key,
            agg_field: aggregate(items, grouping.aggregation, agg_field),
        }
        for key, items in groups.items()
    )


# ============================================================================
# Report processing
# ============================================================================


@traced_engine("reporting", "1.0", fingerprint_fields=("config",))
def process_report(
    project: Project,
    config: CustomReport | Mapping[str, Any] | str,
    canned_reports: Mapping[str, CustomReport] | None = None,
) -> ReportResult:
    """
    Produce a tabular report over one project collection.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        project: Project aggregate (read only).
        config: A ``CustomReport``, a canned report identifier, or a mapping
            form of either.
        canned_reports: Registry used to expand canned identifiers.

    Returns:
        ReportResult.  Grouped results have ``columns == (field, agg_field)``;
        ungrouped results carry the original records and the configured
        display fields.

    Raises:
        UnknownReportError: If a canned identifier is not in the registry.
    """
    report = resolve_report_config(config, canned_reports or {})
    records = resolve_data_source(project, report.data_source)
    filtered = apply_filters(records, report.filters)

    grouping = report.grouping
    if grouping is not None and _name(grouping.field):
        result = ReportResult(
            title=report.name,
            columns=(grouping.field, _name(grouping.agg_field) or ""),
            rows=group_and_aggregate(filtered, grouping),
            is_grouped=True,
            grouping=grouping,
        )
    else:
        result = ReportResult(
            title=report.name,
            columns=tuple(report.fields),
            rows=filtered,
            is_grouped=False,
        )

    logger.info("report_processed", extra={
        "report_id": report.id,
        "data_source": _plain(report.data_source),
        "source_count": len(records),
        "filtered_count": len(filtered),
        "row_count": result.row_count,
        "is_grouped": result.is_grouped,
    })
    return result


# ============================================================================
# Report builder validation
# ============================================================================


@dataclass(frozen=True)
class ReportFinding:
    """An advisory problem found in a report configuration."""

    code: str
    message: str
    field: str | None = None


def validate_custom_report(
    report: CustomReport,
    catalog: Mapping[str, DataSourceSpec],
) -> tuple[ReportFinding, ...]:
    """
    Check a report configuration against the data-source field catalog.

    Advisory only: ``process_report`` runs any configuration and degrades
    problems to "no match" / zero.  This function lets a report builder
    surface those problems before the report is saved.  Never raises.
    """
    findings: list[ReportFinding] = []

    source_id = _name(report.data_source)
    source = catalog.get(source_id) if source_id is not None else None
    if source is None:
        return (
            ReportFinding(
                code="UNKNOWN_DATA_SOURCE",
                message=f"Unknown data source: {_plain(report.data_source)!r}",
            ),
        )

    for field_id in report.fields:
        if source.get_field(field_id) is None:
            findings.append(ReportFinding(
                code="UNKNOWN_FIELD",
                message=f"{source.label} has no field {field_id!r}",
                field=field_id,
            ))

    for report_filter in report.filters:
        spec = source.get_field(report_filter.field)
        if spec is None:
            findings.append(ReportFinding(
                code="UNKNOWN_FIELD",
                message=f"Filter on unknown field {report_filter.field!r}",
                field=report_filter.field,
            ))
        elif not spec.filterable:
            findings.append(ReportFinding(
                code="FIELD_NOT_FILTERABLE",
                message=f"Field {spec.id!r} cannot be filtered",
                field=spec.id,
            ))

        operator = _name(report_filter.operator)
        if operator is None or operator not in _OPERATORS:
            findings.append(ReportFinding(
                code="UNKNOWN_OPERATOR",
                message=f"Unknown filter operator {_plain(report_filter.operator)!r}",
                field=report_filter.field,
            ))
        elif operator == FilterOperator.IS_BETWEEN.value and not is_date_range(
            report_filter.value
        ):
            findings.append(ReportFinding(
                code="MALFORMED_RANGE",
                message="is_between expects a [start, end] pair",
                field=report_filter.field,
            ))

    grouping = report.grouping
    if grouping is not None and grouping.field:
        spec = source.get_field(grouping.field)
        if spec is None or not spec.groupable:
            findings.append(ReportFinding(
                code="FIELD_NOT_GROUPABLE",
                message=f"Field {grouping.field!r} cannot be grouped",
                field=grouping.field,
            ))

        kind = _name(grouping.aggregation)
        if kind is None or kind not in {a.value for a in Aggregation}:
            findings.append(ReportFinding(
                code="UNKNOWN_AGGREGATION",
                message=f"Unknown aggregation {_plain(grouping.aggregation)!r}",
                field=grouping.agg_field,
            ))
        elif kind != Aggregation.COUNT.value:
            agg_spec = source.get_field(grouping.agg_field)
            if agg_spec is None or not agg_spec.aggregatable:
                findings.append(ReportFinding(
                    code="FIELD_NOT_AGGREGATABLE",
                    message=f"Field {grouping.agg_field!r} cannot be aggregated",
                    field=grouping.agg_field,
                ))

    return tuple(findings)
