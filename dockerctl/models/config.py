"""
Configuration models for dockerctl.

The configuration is built once at startup and handed to every layer that
renders or talks to the engine. Nothing in it changes while the program runs.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

from dockerctl.models.enums import ContainerStatus


logger = logging.getLogger('dockerctl.config')

FALSE_VALUES = ("0", "false", "no", "off")


def _default_icons() -> Dict[ContainerStatus, Tuple[str, str]]:
    return {
        ContainerStatus.RUNNING: ("●", "green"),
        ContainerStatus.EXITED: ("■", "red"),
        ContainerStatus.CREATED: ("○", "yellow"),
        ContainerStatus.UNKNOWN: ("?", "bright_black"),
    }


@dataclass(frozen=True)
class Theme:
    """Colours and symbols used by the terminal layer."""
    app_title: str = "Docker Container Manager"
    title_color: str = "green bold"
    container_color: str = "blue bold"
    success_color: str = "green bold"
    error_color: str = "red bold"
    warning_color: str = "yellow bold"
    info_color: str = "blue bold"
    border_style: str = "cyan"
    status_icons: Dict[ContainerStatus, Tuple[str, str]] = field(default_factory=_default_icons)

    def icon_for(self, status: ContainerStatus) -> Tuple[str, str]:
        """Return the (symbol, colour) pair for a status."""
        return self.status_icons.get(status, self.status_icons[ContainerStatus.UNKNOWN])


@dataclass(frozen=True)
class FinderOptions:
    """Options passed to the fuzzy finder."""
    header: str = "Select a container:"
    prompt: str = "Container> "
    height: str = "80%"
    preview_window: str = "right:50%:wrap"


@dataclass(frozen=True)
class AppConfig:
    """Process-wide settings."""
    engine_binary: str = "docker"
    finder_binary: str = "fzf"
    include_stopped: bool = True
    log_tail: int = 50
    shell_candidates: Tuple[Tuple[str, ...], ...] = (("bash",), ("sh",))
    default_tag: str = "latest"
    theme: Theme = field(default_factory=Theme)
    finder: FinderOptions = field(default_factory=FinderOptions)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "AppConfig":
        """
        Build the configuration, applying overrides from the environment.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            AppConfig: The configuration
        """
        environ = os.environ if environ is None else environ
        config = cls()

        include_stopped = environ.get("DOCKERCTL_INCLUDE_STOPPED")
        if include_stopped is not None:
            config = replace(config, include_stopped=include_stopped.strip().lower() not in FALSE_VALUES)

        log_tail = environ.get("DOCKERCTL_LOG_TAIL")
        if log_tail is not None:
            if log_tail.strip().isdigit() and int(log_tail) > 0:
                config = replace(config, log_tail=int(log_tail))
            else:
                logger.warning(f"Ignoring invalid DOCKERCTL_LOG_TAIL value: {log_tail!r}")

        return config
