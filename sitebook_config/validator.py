"""
Structural validation of a configuration set.

Shipped configuration is held to a stricter standard than user-built
reports: every canned report must reference a declared data source, known
fields, known operators and a known aggregation.  Errors are collected, not
raised; ``get_active_config`` raises ``ConfigurationError`` if any exist.
"""

from __future__ import annotations

from collections import Counter

from sitebook_kernel.domain.reports import (
    Aggregation,
    CustomReport,
    DataSourceSpec,
    FilterOperator,
)

_OPERATORS = frozenset(op.value for op in FilterOperator)
_AGGREGATIONS = frozenset(a.value for a in Aggregation)


def _duplicates(ids: list[str]) -> list[str]:
    return sorted(key for key, count in Counter(ids).items() if count > 1)


def validate_configuration(
    canned_reports: list[tuple[str, CustomReport]],
    data_sources: list[DataSourceSpec],
) -> list[str]:
    """Return a list of human-readable errors (empty when valid)."""
    errors: list[str] = []

    for dup in _duplicates([ds.id for ds in data_sources]):
        errors.append(f"duplicate data source id {dup!r}")
    for dup in _duplicates([canned_id for canned_id, _ in canned_reports]):
        errors.append(f"duplicate canned report id {dup!r}")

    catalog = {ds.id: ds for ds in data_sources}

    for canned_id, report in canned_reports:
        source = catalog.get(report.data_source)
        if source is None:
            errors.append(
                f"canned report {canned_id!r} uses undeclared data source "
                f"{report.data_source!r}"
            )
            continue

        for field_id in report.fields:
            if source.get_field(field_id) is None:
                errors.append(
                    f"canned report {canned_id!r} shows unknown field {field_id!r}"
                )

        for report_filter in report.filters:
            if source.get_field(report_filter.field) is None:
                errors.append(
                    f"canned report {canned_id!r} filters on unknown field "
                    f"{report_filter.field!r}"
                )
            if report_filter.operator not in _OPERATORS:
                errors.append(
                    f"canned report {canned_id!r} uses unknown operator "
                    f"{report_filter.operator!r}"
                )

        grouping = report.grouping
        if grouping is not None:
            if source.get_field(grouping.field) is None:
                errors.append(
                    f"canned report {canned_id!r} groups by unknown field "
                    f"{grouping.field!r}"
                )
            if grouping.aggregation not in _AGGREGATIONS:
                errors.append(
                    f"canned report {canned_id!r} uses unknown aggregation "
                    f"{grouping.aggregation!r}"
                )

    return errors
