"""
Configuration Integrity -- checksum pinning for approved configuration sets.

When a configuration set directory contains an APPROVED_CHECKSUM file, the
computed checksum must match the pinned value.  This prevents accidental
edits to an approved canned-report registry.

The pin file is a single line: the SHA-256 hex string produced by
``compute_checksum``.  If no pin file exists, the check is skipped
(draft/dev workflow).
"""

from __future__ import annotations

from pathlib import Path

from sitebook_kernel.exceptions import SiteBookError

PINFILE_NAME = "APPROVED_CHECKSUM"


class ConfigIntegrityError(SiteBookError):
    """Computed configuration checksum does not match the approved pin."""

    code: str = "CONFIG_INTEGRITY_MISMATCH"

    def __init__(
        self,
        config_set: str,
        expected: str,
        actual: str,
        pin_path: Path,
    ):
        self.config_set = config_set
        self.expected = expected
        self.actual = actual
        self.pin_path = pin_path
        super().__init__(
            f"Config integrity check failed for '{config_set}': "
            f"pinned checksum {expected[:16]}... != "
            f"computed checksum {actual[:16]}... "
            f"(pin file: {pin_path})"
        )


def read_pinned_checksum(config_dir: Path) -> str | None:
    """Read the APPROVED_CHECKSUM file, or None if there is none."""
    pin_path = config_dir / PINFILE_NAME
    if not pin_path.exists():
        return None
    content = pin_path.read_text().strip()
    return content or None


def verify_checksum_pin(config_dir: Path, config_set: str, checksum: str) -> None:
    """
    Verify ``checksum`` against the pin file of ``config_dir``, if present.

    Raises:
        ConfigIntegrityError: if a pin exists and does not match.
    """
    pinned = read_pinned_checksum(config_dir)
    if pinned is None:
        return
    if pinned != checksum:
        raise ConfigIntegrityError(
            config_set=config_set,
            expected=pinned,
            actual=checksum,
            pin_path=config_dir / PINFILE_NAME,
        )
