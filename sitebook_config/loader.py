"""
Configuration Loader (``sitebook_config.loader``).

Responsibility
--------------
Loads the YAML files of a configuration set and parses them into typed,
frozen domain objects (``CustomReport``, ``DataSourceSpec``).  This is
internal tooling; the single public entry point for runtime configuration is
``sitebook_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrong value shapes (e.g. unknown field type)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from sitebook_kernel.domain.reports import (
    CustomReport,
    DataSourceSpec,
    FieldSpec,
    FieldType,
    Filter,
    Grouping,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _string_tuple(value: Any, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


def parse_filter(data: dict[str, Any]) -> Filter:
    """Parse a ``Filter``; ``field`` and ``operator`` are required."""
    value = data.get("value")
    if isinstance(value, list):
        value = tuple(value)
    return Filter(
        field=data["field"],
        operator=data["operator"],
        value=value,
        id=str(data.get("id", "")),
    )


def parse_grouping(data: dict[str, Any]) -> Grouping:
    """Parse a ``Grouping``; all three keys are required."""
    return Grouping(
        field=data["field"],
        aggregation=data["aggregation"],
        agg_field=data["agg_field"],
    )


def parse_custom_report(data: dict[str, Any]) -> CustomReport:
    """
    Parse one canned report entry.

    Required keys: ``id``, ``name``, ``data_source``.
    """
    grouping = data.get("grouping")
    return CustomReport(
        id=data["id"],
        name=data["name"],
        data_source=data["data_source"],
        fields=_string_tuple(data.get("fields"), "fields"),
        filters=tuple(parse_filter(f) for f in data.get("filters") or ()),
        grouping=parse_grouping(grouping) if grouping else None,
        description=data.get("description", ""),
    )


def parse_canned_reports(data: dict[str, Any]) -> list[tuple[str, CustomReport]]:
    """Parse ``canned_reports`` into ``(canned_id, report)`` pairs, in file order."""
    return [
        (entry["canned_id"], parse_custom_report(entry))
        for entry in data.get("canned_reports") or ()
    ]


def parse_field_spec(data: dict[str, Any]) -> FieldSpec:
    """Parse a ``FieldSpec``; ``id``, ``label`` and ``type`` are required."""
    try:
        field_type = FieldType(data["type"])
    except ValueError:
        raise ValueError(
            f"Field {data['id']!r} has unknown type {data['type']!r}"
        ) from None
    return FieldSpec(
        id=data["id"],
        label=data["label"],
        type=field_type,
        filterable=bool(data.get("filterable", True)),
        groupable=bool(data.get("groupable", False)),
        aggregatable=bool(data.get("aggregatable", False)),
        options=_string_tuple(data.get("options"), f"options of {data['id']!r}"),
    )


def parse_data_source(data: dict[str, Any]) -> DataSourceSpec:
    """Parse a ``DataSourceSpec``; ``id`` and ``label`` are required."""
    return DataSourceSpec(
        id=data["id"],
        label=data["label"],
        fields=tuple(parse_field_spec(f) for f in data.get("fields") or ()),
    )


def parse_data_sources(data: dict[str, Any]) -> list[DataSourceSpec]:
    return [parse_data_source(entry) for entry in data.get("data_sources") or ()]


def compute_checksum(*documents: dict[str, Any]) -> str:
    """
    Deterministic SHA-256 over the raw YAML documents of a configuration set.

    Keys are sorted so that formatting and key order do not affect the
    checksum; values are compared by their JSON form.
    """
    canonical = json.dumps(documents, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
