"""
Reporting Service (``sitebook_services.reporting_service``).

Responsibility
--------------
Runs canned and user-built reports over a project by bridging the compiled
configuration (canned-report registry, field catalog) to the pure report
engine in ``sitebook_engines.reporting``.  Also exposes the project
financial summary and dashboard metrics, and keeps the project's saved
custom reports.

Architecture position
---------------------
**Services layer** -- thin orchestration.  Constructor: ``config`` +
``clock``.  The engines never see the configuration loader or the clock;
this service passes registries in and stamps results on the way out.

Invariants enforced
-------------------
* Read-only for reports -- the project passed in is never mutated.
* Saving or deleting a custom report returns a NEW ``Project`` value.
* Every ``ReportRun`` carries the generation timestamp from the injected
  clock.

Failure modes
-------------
* Unknown canned report id  -> ``UnknownReportError`` propagates.
* Unknown saved report id  -> ``UnknownReportError`` propagates.

Audit relevance
---------------
Structured log events are emitted for every report run, carrying report id,
data source and row count.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from sitebook_kernel.domain.clock import Clock, SystemClock
from sitebook_kernel.domain.records import Project
from sitebook_kernel.domain.reports import CustomReport, ReportResult
from sitebook_kernel.exceptions import UnknownReportError
from sitebook_kernel.logging_config import LogContext, get_logger

from sitebook_config import get_active_config
from sitebook_config.schema import CompiledReportingConfig
from sitebook_engines.project_summary import (
    DashboardMetrics,
    FinancialSummary,
    calculate_dashboard_metrics,
    calculate_financial_summary,
)
from sitebook_engines.reporting import (
    ReportFinding,
    process_report,
    resolve_report_config,
    validate_custom_report,
)

logger = get_logger("services.reporting")


@dataclass(frozen=True)
class ReportRun:
    """A report result stamped with the report id and generation time."""

    report_id: str
    result: ReportResult
    generated_at: datetime


class ReportingService:
    """
    Report execution service.

    Contract
    --------
    * ``run`` accepts a ``CustomReport``, a canned report id, or the mapping
      form of either, and returns a ``ReportRun``.
    * Report logic lives entirely in ``sitebook_engines.reporting``.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * Configuration defaults to the shipped ``default`` set.
    """

    def __init__(
        self,
        config: CompiledReportingConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or get_active_config()
        self._clock = clock or SystemClock()

        logger.info(
            "reporting_service_initialized",
            extra={
                "config_set": self._config.config_set,
                "canned_report_count": len(self._config.canned_reports),
            },
        )

    @property
    def config(self) -> CompiledReportingConfig:
        return self._config

    # =========================================================================
    # Reports
    # =========================================================================

    def run(
        self,
        project: Project,
        report: CustomReport | Mapping[str, Any] | str,
    ) -> ReportRun:
        """Run a canned or custom report over ``project``."""
        canned = self._config.canned_reports
        resolved = resolve_report_config(report, canned)

        with LogContext.bind(project_id=project.id, report_id=resolved.id):
            result = process_report(project, resolved, canned)
            run = ReportRun(
                report_id=resolved.id,
                result=result,
                generated_at=self._clock.now(),
            )
            logger.info(
                "report_run_completed",
                extra={
                    "row_count": result.row_count,
                    "is_grouped": result.is_grouped,
                },
            )
        return run

    def run_saved(self, project: Project, report_id: str) -> ReportRun:
        """
        Run one of the project's saved custom reports by id.

        Raises:
            UnknownReportError: if the project has no report with that id.
        """
        for report in project.custom_reports:
            if report.id == report_id:
                return self.run(project, report)
        logger.warning(
            "saved_report_not_found",
            extra={"project_id": project.id, "report_id": report_id},
        )
        raise UnknownReportError(report_id)

    def list_canned_reports(self) -> tuple[tuple[str, CustomReport], ...]:
        return self._config.list_canned_reports()

    def validate(self, report: CustomReport | Mapping[str, Any]) -> tuple[ReportFinding, ...]:
        """Check a report definition against the field catalog (advisory)."""
        if not isinstance(report, CustomReport):
            report = CustomReport.from_dict(report)
        return validate_custom_report(report, self._config.data_sources)

    # =========================================================================
    # Saved custom reports
    # =========================================================================

    def save_custom_report(self, project: Project, report: CustomReport) -> Project:
        """Insert or replace (by id) a custom report on the project."""
        reports = list(project.custom_reports)
        for index, existing in enumerate(reports):
            if existing.id == report.id:
                reports[index] = report
                break
        else:
            reports.append(report)

        findings = self.validate(report)
        logger.info(
            "custom_report_saved",
            extra={
                "project_id": project.id,
                "report_id": report.id,
                "finding_count": len(findings),
            },
        )
        return replace(project, custom_reports=tuple(reports))

    def delete_custom_report(self, project: Project, report_id: str) -> Project:
        """Remove a custom report; unknown ids leave the project unchanged."""
        reports = tuple(r for r in project.custom_reports if r.id != report_id)
        if len(reports) == len(project.custom_reports):
            return project
        logger.info(
            "custom_report_deleted",
            extra={"project_id": project.id, "report_id": report_id},
        )
        return replace(project, custom_reports=reports)

    # =========================================================================
    # Summaries
    # =========================================================================

    def financial_summary(self, project: Project) -> FinancialSummary:
        return calculate_financial_summary(project)

    def dashboard(self, project: Project) -> DashboardMetrics:
        return calculate_dashboard_metrics(project)
