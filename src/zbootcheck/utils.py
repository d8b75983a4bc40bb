"""Common helpers - subprocess discipline, config home resolution."""
from __future__ import annotations

import os
import subprocess
from pathlib import Path


def get_config_home() -> Path:
    """Directory holding the global zbootcheck config.

    Order of precedence:
        1. ZBOOTCHECK_HOME environment variable
        2. ~/.zbootcheck
    """
    env_home = os.environ.get("ZBOOTCHECK_HOME")
    if env_home:
        return Path(env_home)
    return Path.home() / ".zbootcheck"


def run_subprocess(
    cmd: list[str],
    timeout: float = 30.0,
    capture_output: bool = True,
    text: bool = True,
    check: bool = False,
    **kwargs,
) -> "subprocess.CompletedProcess[str]":
    """Run a host query command with a timeout and captured output.

    Args:
        cmd: Command as list of strings (NO shell strings)
        timeout: Timeout in seconds (default 30)
        capture_output: Capture stdout/stderr (default True)
        text: Return strings not bytes (default True)
        check: Raise on non-zero exit (default False)
        **kwargs: Additional subprocess.run arguments

    Raises:
        TypeError: If cmd is not a list
        subprocess.TimeoutExpired: If timeout exceeded
        OSError: If the executable cannot be started
    """
    if isinstance(cmd, (str, bytes)):
        raise TypeError(
            "cmd must be a list of args, not a shell string. "
            "Pass ['zpool', 'list'] not 'zpool list'"
        )

    return subprocess.run(
        cmd,
        timeout=timeout,
        capture_output=capture_output,
        text=text,
        check=check,
        **kwargs,
    )


__all__ = ["get_config_home", "run_subprocess"]
