"""Environment gate - is this a legacy BIOS boot?

UEFI loaders ship with the base system and fail differently, so the
checks only apply when the firmware booted through gptzfsboot.
"""
from __future__ import annotations

import logging
import subprocess
from typing import Callable

from .utils import run_subprocess

LOGGER = logging.getLogger(__name__)

BIOS_SENTINEL = "BIOS"
BOOT_METHOD_SYSCTL = "machdep.bootmethod"


def read_boot_method(
    runner: Callable[..., "subprocess.CompletedProcess[str]"] = run_subprocess,
    timeout: float = 10.0,
) -> str | None:
    """Ask the kernel how it was booted. None if it cannot say."""
    try:
        result = runner(["sysctl", "-n", BOOT_METHOD_SYSCTL], timeout=timeout)
    except (OSError, subprocess.SubprocessError) as e:
        LOGGER.debug("sysctl %s unavailable: %s", BOOT_METHOD_SYSCTL, e)
        return None
    if result.returncode != 0:
        LOGGER.debug("sysctl %s exited %d: %s", BOOT_METHOD_SYSCTL,
                      result.returncode, (result.stderr or "").strip())
        return None
    value = (result.stdout or "").strip()
    return value or None


def applies(boot_method: str | None = None, override: str | None = None,
            probe: Callable[[], str | None] = read_boot_method) -> bool:
    """True only when the boot method is exactly the legacy BIOS sentinel.

    ``override`` replaces both ``boot_method`` and the probe; with
    neither given the host is queried. Never raises.
    """
    method = override if override is not None else boot_method
    if method is None:
        method = probe()
    return is_bios(method)


def is_bios(method: str | None) -> bool:
    return method is not None and method.strip() == BIOS_SENTINEL


def resolve_boot_method(override: str | None = None,
                        probe: Callable[[], str | None] = read_boot_method) -> str | None:
    """The boot method string a run will report, override first."""
    if override is not None:
        return override.strip()
    return probe()
