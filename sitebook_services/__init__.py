"""
Service layer: orchestration over the pure engines.

Services own the impure edges the engines refuse: loading configuration,
reading the clock, and producing new project values from engine results.
"""

from sitebook_services.invoicing_service import InvoicingService
from sitebook_services.reporting_service import ReportingService, ReportRun

__all__ = [
    "InvoicingService",
    "ReportRun",
    "ReportingService",
]
