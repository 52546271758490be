"""
Interactive terminal layer for dockerctl.

This module owns the screen: it renders the container header, the action menu,
results and log output, and reads the user's answers. The action controller
drives it and never prints on its own.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

import questionary
from questionary import Style

from dockerctl.models.config import AppConfig
from dockerctl.models.container import ActionResult, ContainerDetails, ContainerRef
from dockerctl.models.enums import LogMode
from dockerctl.utils.formatting import format_list, status_markup


# Key, label pairs in display order
MENU_ITEMS = (
    ("1", "Start container"),
    ("2", "Stop container"),
    ("3", "Restart container"),
    ("4", "Remove container"),
    ("5", "View logs"),
    ("6", "Export container to tar"),
    ("7", "Commit container to image"),
    ("8", "Exec shell"),
    ("9", "Exec custom command"),
    ("i", "Inspect container"),
    ("b", "Back to container selection"),
    ("q", "Quit"),
)

custom_style = Style([
    ('qmark', 'fg:cyan bold'),
    ('question', 'bold'),
    ('answer', 'fg:green bold'),
    ('pointer', 'fg:cyan bold'),
    ('highlighted', 'fg:cyan bold'),
    ('selected', 'fg:green bold'),
    ('instruction', 'fg:gray'),
    ('text', ''),
])


def details_table(details: ContainerDetails) -> Table:
    """Build the inspect summary table shown in the preview pane and by the inspect action."""
    table = Table(show_header=False, box=box.SIMPLE, padding=(0, 1))
    table.add_column("Field", style="bold cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("ID", details.id)
    table.add_row("Name", escape(details.name))
    table.add_row("Created", details.created)
    table.add_row("Status", details.status)
    table.add_row("Health", details.health)
    table.add_row("Image", escape(details.image))
    table.add_row("Restart policy", details.restart_policy)
    table.add_row("Mounts", escape(format_list(details.mounts)))
    table.add_row("Ports", format_list(details.ports))
    table.add_row("Networks", escape(format_list(details.networks)))
    return table


class Terminal:
    """Rich and questionary backed implementation of the controller's screen."""

    def __init__(self, config: AppConfig, console: Optional[Console] = None):
        self.config = config
        self.theme = config.theme
        self.console = console or Console(highlight=False)

    def _say(self, color: str, message: str):
        self.console.print(f"[{color}]{escape(message)}[/{color}]")

    def info(self, message: str):
        self._say(self.theme.info_color, message)

    def success(self, message: str):
        self._say(self.theme.success_color, message)

    def warning(self, message: str):
        self._say(self.theme.warning_color, message)

    def error(self, message: str):
        self._say(self.theme.error_color, message)

    def title(self):
        self.console.print(f"[{self.theme.title_color}]=== {self.theme.app_title} ===[/{self.theme.title_color}]")

    @contextmanager
    def status(self, message: str) -> Iterator[None]:
        """Show a spinner while an engine call is in progress."""
        with self.console.status(f"[{self.theme.info_color}]{escape(message)}", spinner="dots"):
            yield

    def show_menu(self, ref: ContainerRef):
        """Display the container header and the action menu."""
        color = self.theme.container_color
        self.console.print()
        self.console.print(
            f"[{color}]Container: {escape(ref.name)}[/{color}] "
            f"{status_markup(ref, self.theme)} {ref.status.value} "
            f"[dim]({ref.id}, {escape(ref.image)})[/dim]"
        )
        self.console.print("Choose an action:")
        for key, label in MENU_ITEMS:
            self.console.print(f"{key}) {label}")

    def read_choice(self) -> str:
        """Read one menu choice. Raises KeyboardInterrupt or EOFError like input()."""
        return Prompt.ask("Enter choice", console=self.console).strip().lower()

    def ask_log_mode(self, tail: int) -> Optional[LogMode]:
        """Ask how much of the log to show. Returns None if cancelled."""
        choices = [
            questionary.Choice(f"Show last {tail} lines", value=LogMode.TAIL),
            questionary.Choice("Follow logs (tail -f)", value=LogMode.FOLLOW),
            questionary.Choice("Show all logs", value=LogMode.ALL),
        ]
        return questionary.select("Choose log options:", choices=choices, style=custom_style).ask()

    def ask_text(self, message: str, default: str = "") -> Optional[str]:
        """Ask for a line of text. Returns None if cancelled."""
        answer = questionary.text(message, default=default, style=custom_style).ask()
        return answer.strip() if answer is not None else None

    def pause(self):
        self.console.print("\nPress Enter to continue...", style="dim")
        input()

    def show_result(self, action: str, ref: ContainerRef, result: ActionResult):
        """Report an action outcome; failures carry the engine's message."""
        if result.succeeded:
            self.success(result.message)
        else:
            self.error(f"Failed to {action} container {ref.name}: {result.message}")

    def print_log_line(self, line: str):
        self.console.print(line, markup=False, highlight=False, soft_wrap=True)

    def show_details(self, details: ContainerDetails):
        self.console.print(Panel(
            details_table(details),
            title=f"Container Inspection: {escape(details.name)}",
            border_style=self.theme.border_style,
            box=box.ROUNDED,
        ))

    def farewell(self):
        self.success("Goodbye!")
