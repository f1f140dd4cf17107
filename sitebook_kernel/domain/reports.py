"""
Report configuration and result types.

A ``CustomReport`` names a data source (one of the reportable project
collections), the display fields, a list of ``Filter`` objects combined with
logical AND, and an optional ``Grouping`` directive.  Canned reports are
``CustomReport`` values synthesized from a registry keyed by identifier.

Filter operators and aggregation kinds are kept as plain strings on the
records: user-built configurations may carry values the engine does not
know, and the engine degrades those to "no match" / zero instead of failing
at construction time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sitebook_kernel.domain.coercion import snake_case


class ReportDataSource(str, Enum):
    """Reportable project collections."""

    EXPENSES = "expenses"
    DAILY_LOGS = "dailyLogs"
    RFI_MANAGER = "rfiManager"
    INSPECTIONS = "inspections"


class FilterOperator(str, Enum):
    """Field-level comparison operators."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_BETWEEN = "is_between"


class Aggregation(str, Enum):
    """Per-group aggregate functions."""

    COUNT = "count"
    SUM = "sum"
    AVG = "avg"


class FieldType(str, Enum):
    """Value type of a data-source field, as shown in the report builder."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    SELECT = "select"


@dataclass(frozen=True)
class Filter:
    """
    A single field-level filter.

    ``value`` is a scalar for most operators and a two-element
    ``(start, end)`` sequence for ``is_between``.
    """

    field: str
    operator: str
    value: Any = None
    id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Filter:
        value = data.get("value")
        if isinstance(value, list):
            value = tuple(value)
        return cls(
            field=data.get("field", ""),
            operator=data.get("operator", ""),
            value=value,
            id=data.get("id", ""),
        )


@dataclass(frozen=True)
class Grouping:
    """Group-by field plus the aggregate to compute over ``agg_field``."""

    field: str
    aggregation: str
    agg_field: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Grouping:
        return cls(
            field=data.get("field", ""),
            aggregation=data.get("aggregation", ""),
            agg_field=data.get("agg_field", data.get("aggField", "")),
        )


@dataclass(frozen=True)
class CustomReport:
    """
    A report configuration, user-built or synthesized for a canned report.

    Attributes:
        id: Report identifier.
        name: Title shown above the result.
        data_source: One of ``ReportDataSource`` values.  Unknown values
            produce an empty report.
        fields: Display columns for ungrouped output (a hint, not a
            projection).
        filters: Filters combined with logical AND.
        grouping: Optional group-by / aggregate directive.
        description: Optional one-line description for report pickers.
    """

    id: str
    name: str
    data_source: str
    fields: tuple[str, ...] = ()
    filters: tuple[Filter, ...] = ()
    grouping: Grouping | None = None
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CustomReport:
        grouping = data.get("grouping")
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            data_source=data.get("data_source", data.get("dataSource", "")),
            fields=tuple(data.get("fields") or ()),
            filters=tuple(Filter.from_dict(f) for f in data.get("filters") or ()),
            grouping=Grouping.from_dict(grouping) if grouping else None,
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class FieldSpec:
    """One field of a reportable data source, as offered by the report builder."""

    id: str
    label: str
    type: FieldType
    filterable: bool = True
    groupable: bool = False
    aggregatable: bool = False
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class DataSourceSpec:
    """Field catalog for one reportable data source."""

    id: str
    label: str
    fields: tuple[FieldSpec, ...] = ()

    def get_field(self, field_id: str) -> FieldSpec | None:
        if not isinstance(field_id, str):
            return None
        for spec in self.fields:
            if spec.id == field_id or snake_case(spec.id) == snake_case(field_id):
                return spec
        return None


@dataclass(frozen=True)
class ReportResult:
    """
    Tabular report output.

    Ungrouped results carry the original records verbatim in ``rows`` and the
    configured display ``columns``.  Grouped results carry one mapping per
    group with two keys (group field and aggregate field).
    """

    title: str
    columns: tuple[str, ...]
    rows: tuple[Any, ...]
    is_grouped: bool
    grouping: Grouping | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)
