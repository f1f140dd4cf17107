"""
sitebook_config -- single public entrypoint for reporting configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a ``CompiledReportingConfig`` holding
    the canned-report registry and the report-builder field catalog.  YAML
    loading is internal and never exposed to callers.

Architecture position:
    Configuration -- YAML-driven, validated at load time.  This package sits
    above ``sitebook_kernel`` and below ``sitebook_services``.  Engines MUST
    NEVER import from ``sitebook_config``; services pass the compiled
    registries into the pure engine functions.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Load-time validation: canned reports must reference declared data
      sources, known fields, operators and aggregations.
    - Checksum pinning: when an APPROVED_CHECKSUM file exists, the computed
      checksum must match it.
    - Deterministic: the same YAML always produces the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- no such configuration set.
    - ``KeyError`` / ``ValueError`` -- malformed YAML entries.
    - ``ConfigurationError`` -- structural validation failures.
    - ``ConfigIntegrityError`` -- checksum mismatch against a pin file.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``SITEBOOK_CONFIG_TRACE`` log record with config set, version, checksum
    and registry sizes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType

from sitebook_kernel.exceptions import ConfigurationError
from sitebook_config.integrity import ConfigIntegrityError, verify_checksum_pin
from sitebook_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_canned_reports,
    parse_data_sources,
)
from sitebook_config.schema import CompiledReportingConfig
from sitebook_config.validator import validate_configuration

_logger = logging.getLogger("sitebook.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    config_set: str = "default",
    config_dir: Path | None = None,
) -> CompiledReportingConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_set: Name of the configuration set directory.
        config_dir: Directory containing configuration sets.  Defaults to
            the sets shipped with the package.

    Returns:
        Validated ``CompiledReportingConfig``.

    Raises:
        FileNotFoundError: if the configuration set or one of its files is
            missing.
        ConfigurationError: if structural validation fails.
        ConfigIntegrityError: if a checksum pin does not match.
    """
    base = config_dir if config_dir is not None else _DEFAULT_CONFIG_DIR
    set_dir = base / config_set
    if not set_dir.is_dir():
        raise FileNotFoundError(
            f"No configuration set {config_set!r} in {base}"
        )

    meta = load_yaml_file(set_dir / "config.yaml")
    canned_doc = load_yaml_file(set_dir / "canned_reports.yaml")
    sources_doc = load_yaml_file(set_dir / "data_sources.yaml")

    canned = parse_canned_reports(canned_doc)
    sources = parse_data_sources(sources_doc)

    errors = validate_configuration(canned, sources)
    if errors:
        _logger.error(
            "config_validation_failed",
            extra={"config_set": config_set, "errors": errors},
        )
        raise ConfigurationError(config_set, errors)

    checksum = compute_checksum(meta, canned_doc, sources_doc)
    verify_checksum_pin(set_dir, config_set, checksum)

    config = CompiledReportingConfig(
        config_set=meta.get("config_set", config_set),
        version=int(meta.get("version", 1)),
        checksum=checksum,
        canned_reports=MappingProxyType(dict(canned)),
        data_sources=MappingProxyType({ds.id: ds for ds in sources}),
    )

    _logger.info(
        "SITEBOOK_CONFIG_TRACE",
        extra={
            "trace_type": "SITEBOOK_CONFIG_TRACE",
            "config_set": config.config_set,
            "config_version": config.version,
            "checksum": checksum,
            "canned_report_count": len(config.canned_reports),
            "data_source_count": len(config.data_sources),
        },
    )
    return config


__all__ = [
    "CompiledReportingConfig",
    "ConfigIntegrityError",
    "get_active_config",
]
