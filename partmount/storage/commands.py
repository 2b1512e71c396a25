"""External command execution and tool discovery."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from typing import Callable, Iterable, Optional, Sequence

from partmount.config.settings import ToolEnvironment
from partmount.logging import LoggerFactory

from .exceptions import CommandTimeoutError, DependencyMissingError

REQUIRED_TOOLS = ("fdisk", "mount")

log = LoggerFactory.for_system()


def run_command(
    command: Sequence[str],
    environment: Optional[ToolEnvironment] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command with the tool environment applied.

    Raises:
        CommandTimeoutError: If the command outlives the environment's timeout
        OSError: If the command cannot be executed
    """
    environment = environment or ToolEnvironment()
    command = list(command)
    log.debug(f"Running command: {shlex.join(command)}")
    try:
        result = subprocess.run(
            command,
            check=False,
            text=True,
            capture_output=True,
            env=environment.as_env(),
            timeout=environment.timeout_seconds,
        )
    except subprocess.TimeoutExpired as error:
        log.debug(f"Command timed out: {shlex.join(command)}")
        raise CommandTimeoutError(command, error.timeout) from error
    if result.stdout and (log_output or result.returncode != 0):
        log.trace(f"stdout: {result.stdout.strip()}")
    if result.stderr and (log_output or result.returncode != 0):
        log.debug(f"stderr: {result.stderr.strip()}")
    log.debug(f"Command completed with return code {result.returncode}")
    return result


def require_tools(
    tools: Iterable[str] = REQUIRED_TOOLS,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> dict[str, str]:
    """Resolve every required tool on PATH.

    Raises:
        DependencyMissingError: For the first tool that cannot be found
    """
    resolved = {}
    for tool in tools:
        path = which(tool)
        if not path:
            raise DependencyMissingError(tool)
        resolved[tool] = path
    return resolved


def find_privilege_helper(
    preferences: Iterable[str],
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Optional[str]:
    """Return the first available privilege helper in preference order."""
    for helper in preferences:
        path = which(helper)
        if path:
            log.debug(f"Using privilege helper: {path}")
            return path
    return None
