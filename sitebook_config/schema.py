"""
Compiled configuration artifact.

``CompiledReportingConfig`` is the sole runtime configuration object handed
to services.  Its registries are read-only mappings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from sitebook_kernel.domain.reports import CustomReport, DataSourceSpec


@dataclass(frozen=True)
class CompiledReportingConfig:
    """
    Canned-report registry and report-builder field catalog of one config set.

    Attributes:
        config_set: Name of the configuration set directory.
        version: Version declared in ``config.yaml``.
        checksum: SHA-256 of the raw YAML documents.
        canned_reports: Canned identifier -> expanded ``CustomReport``.
        data_sources: Data-source id -> field catalog.
    """

    config_set: str
    version: int
    checksum: str
    canned_reports: Mapping[str, CustomReport]
    data_sources: Mapping[str, DataSourceSpec]

    def list_canned_reports(self) -> tuple[tuple[str, CustomReport], ...]:
        """``(canned_id, report)`` pairs in registry order."""
        return tuple(self.canned_reports.items())
