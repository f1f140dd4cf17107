"""
Typed exception hierarchy for the SiteBook packages.

Every error carries a class-level ``code`` (machine-readable, API-safe) and
stores its context as attributes so it survives logging and serialization:

    try:
        result = service.run(project, "doesNotExist")
    except UnknownReportError as e:
        return {"error": e.code, "report_id": e.report_id}

Hierarchy:

    SiteBookError (base)
    |
    +-- ReportError
    |   +-- UnknownReportError
    |
    +-- ConfigurationError

The calculation engines are deliberately forgiving: malformed numbers, missing
fields, unknown operators and zero scheduled values degrade to zero / "no
match" instead of raising.  The only fatal engine condition is a canned report
identifier that is not in the registry.
"""


class SiteBookError(Exception):
    """
    Base exception for all SiteBook errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "SITEBOOK_ERROR"


# Report exceptions


class ReportError(SiteBookError):
    """Base exception for report generation errors."""

    code: str = "REPORT_ERROR"


class UnknownReportError(ReportError):
    """Canned report identifier is not present in the registry."""

    code: str = "UNKNOWN_REPORT"

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Canned report config not found for id: {report_id}")


# Configuration exceptions


class ConfigurationError(SiteBookError):
    """A configuration set failed structural validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, config_set: str, errors: list[str]):
        self.config_set = config_set
        self.errors = errors
        super().__init__(
            f"Configuration set '{config_set}' is invalid: "
            f"{len(errors)} error(s): {'; '.join(errors)}"
        )
