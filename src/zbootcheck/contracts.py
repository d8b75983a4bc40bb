"""zbootcheck contracts - exit codes, severity tiers and failure kinds.

Exit codes are the only process-level contract of the tool:

    0  OK                   every disk compliant, or boot path not applicable
    1  WARNING              some disks failed, some passed
    2  CRITICAL             every disk failed
    3  PRECONDITION_FAILED  reference boot code missing/unreadable, bad config
"""
from __future__ import annotations

from enum import Enum


class ExitCode(Enum):
    """Stable exit codes. Existing values are immutable."""
    OK = 0
    WARNING = 1
    CRITICAL = 2
    PRECONDITION_FAILED = 3


class Severity(Enum):
    """Aggregate tier of a multi-disk run."""
    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"

    @property
    def exit_code(self) -> ExitCode:
        return _SEVERITY_EXIT[self]


_SEVERITY_EXIT = {
    Severity.OK: ExitCode.OK,
    Severity.WARNING: ExitCode.WARNING,
    Severity.CRITICAL: ExitCode.CRITICAL,
}


class FailureKind(Enum):
    """Why a single disk failed. Remediation differs per kind."""
    IDENTITY_MISMATCH = "identity_mismatch"
    CAPABILITY_MISSING = "capability_missing"
    READ_ERROR = "read_error"

    @property
    def remediation(self) -> str:
        return REMEDIATION[self]


REMEDIATION: dict[FailureKind, str] = {
    FailureKind.IDENTITY_MISMATCH: (
        "Boot code on disk differs from the installed copy; "
        "reinstall it with 'gpart bootcode -p /boot/gptzfsboot -i <index> <disk>'."
    ),
    FailureKind.CAPABILITY_MISSING: (
        "Boot code lacks support for features the pool uses; "
        "update the boot code before rebooting."
    ),
    FailureKind.READ_ERROR: "Disk could not be read; check the device path and permissions.",
}


def classify_severity(total: int, failed: int) -> Severity:
    """Map (disks checked, disks failed) to a severity tier."""
    if total < 0 or failed < 0:
        raise ValueError(f"counts must be non-negative (total={total}, failed={failed})")
    if failed > total:
        raise ValueError(f"failed count {failed} exceeds total {total}")
    if failed == 0:
        return Severity.OK
    if failed == total:
        return Severity.CRITICAL
    return Severity.WARNING
