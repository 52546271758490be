"""
Container selector for dockerctl.

Hands the container list to the fuzzy finder and maps its answer back to a
container. The finder's preview pane runs this program's hidden ``preview``
subcommand for the highlighted row, so containers are inspected lazily.
"""

import shlex
import logging
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

from dockerctl.models.config import AppConfig
from dockerctl.models.container import ContainerRef
from dockerctl.models.enums import SelectionSignal
from dockerctl.utils.formatting import format_row


logger = logging.getLogger('dockerctl.selector')

# fzf exit codes: 1 = no match, 130 = interrupted with Ctrl-C or Esc
FINDER_NO_MATCH = 1
FINDER_CANCELLED = 130

# dockerctl_cli.py sits beside the dockerctl package, in the checkout and in site-packages
LAUNCHER = Path(__file__).resolve().parents[2] / "dockerctl_cli.py"


def preview_command() -> str:
    """
    Shell command the finder runs to preview the row id in field {1}.

    Runs the launcher by absolute path, so the preview resolves the package
    whatever the working directory and whether or not it is installed.
    """
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(LAUNCHER))} preview {{1}}"


class FuzzyFinder:
    """Runs fzf over a list of rows and returns the chosen one."""

    def __init__(self, config: AppConfig):
        self.config = config

    def build_command(self, preview: Optional[str]) -> List[str]:
        options = self.config.finder
        command = [
            self.config.finder_binary,
            f"--header={options.header}",
            f"--prompt={options.prompt}",
            f"--height={options.height}",
            "--delimiter=\t",
            "--border",
            "--ansi",
            "--no-multi",
        ]
        if preview:
            command += [f"--preview={preview}", f"--preview-window={options.preview_window}"]
        return command

    def choose(self, rows: Sequence[str], preview: Optional[str] = None) -> Optional[str]:
        """
        Let the user pick one row.

        Args:
            rows: Lines to display
            preview: Shell command producing the preview for the highlighted row

        Returns:
            Optional[str]: The chosen line, or None if the user cancelled
        """
        result = subprocess.run(
            self.build_command(preview),
            input="\n".join(rows),
            stdout=subprocess.PIPE,
            text=True,
            check=False,
        )
        if result.returncode in (FINDER_NO_MATCH, FINDER_CANCELLED):
            return None
        if result.returncode != 0:
            logger.error(f"{self.config.finder_binary} exited with code {result.returncode}")
            return None

        line = result.stdout.rstrip("\n")
        return line or None


class Selector:
    """Selects exactly one container, or reports why none was selected."""

    def __init__(self, config: AppConfig, finder: Optional[FuzzyFinder] = None):
        self.config = config
        self.finder = finder or FuzzyFinder(config)

    def select_one(self, containers: Sequence[ContainerRef]) -> Union[ContainerRef, SelectionSignal]:
        """
        Select one container from the list.

        Args:
            containers: Containers to choose from

        Returns:
            Union[ContainerRef, SelectionSignal]: The chosen container, EMPTY if
            the list is empty, or CANCELLED if the user chose nothing
        """
        if not containers:
            return SelectionSignal.EMPTY

        by_id = {ref.id: ref for ref in containers}
        rows = [format_row(ref, self.config.theme) for ref in containers]

        line = self.finder.choose(rows, preview=preview_command())
        if line is None:
            return SelectionSignal.CANCELLED

        container_id = line.split("\t", 1)[0].strip()
        selected = by_id.get(container_id)
        if selected is None:
            logger.warning(f"Finder returned a row that matches no container: {line!r}")
            return SelectionSignal.CANCELLED

        logger.debug(f"Selected container {selected.id} ({selected.name})")
        return selected
