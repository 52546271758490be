"""
Docker utility functions for dockerctl.
"""

import shutil
import subprocess
from typing import List, Tuple

from dockerctl.core.errors import StartupDependencyMissing
from dockerctl.models.config import AppConfig


FZF_INSTALL_HINT = "Install fzf: https://github.com/junegunn/fzf#installation"

# docker exec exit codes for "command cannot be invoked" and "command not found"
EXEC_NOT_STARTED_CODES = (126, 127)

# stderr fragments docker prints when the runtime could not start the process
EXEC_NOT_STARTED_MARKERS = (
    "executable file not found",
    "OCI runtime exec failed",
    "no such file or directory",
)


def run_docker_command(command: List[str], binary: str = "docker", attach: bool = False) -> Tuple[int, str, str]:
    """
    Run a Docker CLI command.

    Args:
        command: Docker command to run, without the binary
        binary: Docker executable name
        attach: Leave stdin and stdout connected to the terminal, capturing only stderr

    Returns:
        Tuple[int, str, str]: Return code, stdout, stderr
    """
    command = [binary] + list(command)
    try:
        if attach:
            result = subprocess.run(command, stderr=subprocess.PIPE, text=True, check=False)
            return result.returncode, "", result.stderr or ""

        result = subprocess.run(command, capture_output=True, text=True, check=False)
        return result.returncode, result.stdout, result.stderr
    except OSError as e:
        return 1, "", str(e)


def check_dependencies(config: AppConfig) -> None:
    """
    Check that the engine CLI and the fuzzy finder are installed.

    Args:
        config: Application configuration naming both executables

    Raises:
        StartupDependencyMissing: If either executable is missing from PATH
    """
    if shutil.which(config.engine_binary) is None:
        raise StartupDependencyMissing(config.engine_binary)

    if shutil.which(config.finder_binary) is None:
        raise StartupDependencyMissing(config.finder_binary, hint=FZF_INSTALL_HINT)


def exec_not_started(returncode: int, stderr: str) -> bool:
    """
    Tell a ``docker exec`` that never started its process from one that ran and failed.

    Exit codes 126 and 127 are also ordinary exit statuses of a shell session,
    so the runtime's error message must be present too.
    """
    if returncode not in EXEC_NOT_STARTED_CODES:
        return False
    text = (stderr or "").lower()
    return any(marker.lower() in text for marker in EXEC_NOT_STARTED_MARKERS)
