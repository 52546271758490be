"""
Formatting utilities for dockerctl.
"""

from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from dockerctl.models.config import Theme
from dockerctl.models.container import ContainerRef, NOT_APPLICABLE


# Renders markup to ANSI escape codes for the fuzzy finder, which is not a rich console
_ansi_console = Console(force_terminal=True, color_system="standard", highlight=False, width=1000)


def format_time(timestamp: Optional[str]) -> str:
    """
    Format an engine ISO-8601 timestamp as a human-readable string.

    Args:
        timestamp: Timestamp such as 2024-05-01T10:20:30.123456789Z, or None

    Returns:
        str: Formatted time string, or N/A if the timestamp is missing
    """
    if not timestamp:
        return NOT_APPLICABLE

    # Engine timestamps carry nanoseconds, datetime accepts at most microseconds
    value = timestamp.rstrip("Z")
    if "." in value:
        whole, fraction = value.split(".", 1)
        value = f"{whole}.{fraction[:6]}"
    try:
        return datetime.fromisoformat(value).strftime('%Y-%m-%d %H:%M:%S')
    except ValueError:
        return timestamp


def format_list(items: List[str]) -> str:
    """Join list entries one per line, or return 'none' for an empty list."""
    if not items:
        return "none"
    return "\n".join(items)


def status_markup(ref: ContainerRef, theme: Theme) -> str:
    """Rich markup for a container's status icon."""
    symbol, color = theme.icon_for(ref.status)
    return f"[{color}]{symbol}[/{color}]"


def render_ansi(markup: str) -> str:
    """Render rich markup to a plain string with ANSI colour codes."""
    with _ansi_console.capture() as capture:
        _ansi_console.print(markup, end="", soft_wrap=True)
    return capture.get()


def format_row(ref: ContainerRef, theme: Theme) -> str:
    """
    Format a container as a tab-separated finder row: id, status icon and name, image.

    Args:
        ref: The container
        theme: Theme providing the status icons

    Returns:
        str: Row with ANSI colour codes
    """
    label = render_ansi(f"{status_markup(ref, theme)} {escape(ref.name)}")
    return f"{ref.id}\t{label}\t{ref.image}"
