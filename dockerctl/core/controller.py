"""
Action controller for dockerctl.

The controller is a small state machine: it selects a container, shows the
action menu for it, runs the chosen action and decides where to go next.

    SELECTING_CONTAINER -> SHOWING_ACTION_MENU -> AWAITING_ACTION_INPUT
            ^                    |    ^                     |
            +--------------------+    +---------------------+

Stop and Remove go back to selection after the acknowledgment, every other
action returns to the menu of the same container. The container's name and
status are fetched again before each menu render.
"""

import shlex
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from dockerctl.core.errors import ContainerNotFound, DockerCtlError, EngineUnreachable
from dockerctl.core.gateway import EngineGateway
from dockerctl.core.selector import Selector
from dockerctl.models.config import AppConfig
from dockerctl.models.container import ContainerRef
from dockerctl.models.enums import ControllerState, LogMode, SelectionSignal


logger = logging.getLogger('dockerctl.controller')


@dataclass(frozen=True)
class MenuAction:
    """A per-container action and the state the controller moves to afterwards."""
    name: str
    handler: Callable[[ContainerRef], None]
    next_state: ControllerState = ControllerState.SHOWING_ACTION_MENU
    acknowledge: bool = True


class ActionController:
    """
    Runs the interactive selection and action loop.

    Args:
        gateway: Engine gateway used for every container operation
        selector: Container selector
        terminal: Screen implementation (see dockerctl.cli.interactive.Terminal)
        config: Application configuration
    """
    def __init__(self, gateway: EngineGateway, selector: Selector, terminal, config: AppConfig):
        self.gateway = gateway
        self.selector = selector
        self.terminal = terminal
        self.config = config

        self.state = ControllerState.SELECTING_CONTAINER
        self.current_id: Optional[str] = None
        self.exit_code = 0
        self._after_ack = ControllerState.SHOWING_ACTION_MENU

        selecting = ControllerState.SELECTING_CONTAINER
        self.actions: Dict[str, MenuAction] = {
            "1": MenuAction("start", self.start_container),
            "2": MenuAction("stop", self.stop_container, next_state=selecting),
            "3": MenuAction("restart", self.restart_container),
            "4": MenuAction("remove", self.remove_container, next_state=selecting),
            "5": MenuAction("view logs of", self.view_logs),
            "6": MenuAction("export", self.export_container),
            "7": MenuAction("commit", self.commit_container),
            "8": MenuAction("exec shell in", self.exec_shell, acknowledge=False),
            "9": MenuAction("exec command in", self.exec_custom_command),
            "i": MenuAction("inspect", self.inspect_container),
        }

    def run(self) -> int:
        """
        Run the loop until the user quits or there is nothing left to select.

        Returns:
            int: Process exit code
        """
        handlers = {
            ControllerState.SELECTING_CONTAINER: self.select_container,
            ControllerState.SHOWING_ACTION_MENU: self.show_action_menu,
            ControllerState.AWAITING_ACTION_INPUT: self.await_acknowledgment,
        }

        while self.state != ControllerState.TERMINATED:
            try:
                next_state = handlers[self.state]()
            except KeyboardInterrupt:
                self.terminal.warning("\nOperation cancelled")
                next_state = ControllerState.TERMINATED
            except EOFError:
                next_state = ControllerState.TERMINATED
            logger.debug(f"Transition {self.state.value} -> {next_state.value}")
            self.state = next_state

        return self.exit_code

    def select_container(self) -> ControllerState:
        self.current_id = None
        self.terminal.title()

        try:
            containers = self.gateway.list_containers(self.config.include_stopped)
        except EngineUnreachable as e:
            self.terminal.error(f"Error: {e}")
            self.exit_code = 1
            return ControllerState.TERMINATED

        selection = self.selector.select_one(containers)
        if selection is SelectionSignal.EMPTY:
            self.terminal.warning("No containers found")
            return ControllerState.TERMINATED
        if selection is SelectionSignal.CANCELLED:
            self.terminal.warning("No container selected. Exiting.")
            return ControllerState.TERMINATED

        self.current_id = selection.id
        return ControllerState.SHOWING_ACTION_MENU

    def show_action_menu(self) -> ControllerState:
        try:
            ref = self.gateway.get_container(self.current_id)
        except ContainerNotFound as e:
            self.terminal.warning(str(e))
            return ControllerState.SELECTING_CONTAINER
        except DockerCtlError as e:
            self.terminal.error(f"Error: {e}")
            return ControllerState.SELECTING_CONTAINER

        self.terminal.show_menu(ref)
        choice = self.terminal.read_choice()

        if choice == "b":
            return ControllerState.SELECTING_CONTAINER
        if choice == "q":
            self.terminal.farewell()
            return ControllerState.TERMINATED

        action = self.actions.get(choice)
        if action is None:
            self.terminal.error("Invalid choice. Please try again.")
            return ControllerState.SHOWING_ACTION_MENU

        self.dispatch(action, ref)
        if not action.acknowledge:
            return action.next_state
        self._after_ack = action.next_state
        return ControllerState.AWAITING_ACTION_INPUT

    def dispatch(self, action: MenuAction, ref: ContainerRef):
        """Run one action, reporting failures and interrupts instead of raising them."""
        logger.debug(f"Running action '{action.name}' on {ref.id}")
        try:
            action.handler(ref)
        except KeyboardInterrupt:
            self.terminal.warning("\nOperation cancelled")
        except DockerCtlError as e:
            self.terminal.error(f"Failed to {action.name} container {ref.name}: {e}")

    def await_acknowledgment(self) -> ControllerState:
        try:
            self.terminal.pause()
        except KeyboardInterrupt:
            pass
        return self._after_ack

    # Actions

    def start_container(self, ref: ContainerRef):
        with self.terminal.status(f"Starting container {ref.name}..."):
            result = self.gateway.start(ref.id)
        self.terminal.show_result("start", ref, result)

    def stop_container(self, ref: ContainerRef):
        with self.terminal.status(f"Stopping container {ref.name}..."):
            result = self.gateway.stop(ref.id)
        self.terminal.show_result("stop", ref, result)

    def restart_container(self, ref: ContainerRef):
        with self.terminal.status(f"Restarting container {ref.name}..."):
            result = self.gateway.restart(ref.id)
        self.terminal.show_result("restart", ref, result)

    def remove_container(self, ref: ContainerRef):
        with self.terminal.status(f"Removing container {ref.name}..."):
            result = self.gateway.remove(ref.id)
        self.terminal.show_result("remove", ref, result)

    def view_logs(self, ref: ContainerRef):
        mode = self.terminal.ask_log_mode(self.config.log_tail)
        if mode is None:
            self.terminal.warning("Operation cancelled")
            return

        self.terminal.info(f"Showing logs for {ref.name} (Press Ctrl+C to exit)")
        lines = self.gateway.stream_logs(ref.id, mode, tail=self.config.log_tail)
        try:
            for line in lines:
                self.terminal.print_log_line(line)
        except KeyboardInterrupt:
            self.terminal.warning("\nStopped log streaming")
        finally:
            lines.close()

    def export_container(self, ref: ContainerRef):
        default_path = f"{ref.name}.tar"
        path = self.terminal.ask_text("Export to file:", default=default_path)
        if path is None:
            self.terminal.warning("Operation cancelled")
            return

        path = path or default_path
        with self.terminal.status(f"Exporting container {ref.name} to {path}..."):
            result = self.gateway.export_to_file(ref.id, path)
        self.terminal.show_result("export", ref, result)

    def commit_container(self, ref: ContainerRef):
        name = self.terminal.ask_text("Image name:")
        if name is None:
            self.terminal.warning("Operation cancelled")
            return
        if not name:
            self.terminal.error("No image name entered")
            return

        tag = self.terminal.ask_text(f"Image tag (blank for {self.config.default_tag}):")
        if tag is None:
            self.terminal.warning("Operation cancelled")
            return

        tag = tag or self.config.default_tag
        with self.terminal.status(f"Committing container {ref.name} to {name}:{tag}..."):
            result = self.gateway.commit_to_image(ref.id, name, tag)
        self.terminal.show_result("commit", ref, result)

    def exec_shell(self, ref: ContainerRef):
        self.terminal.info(f"Executing shell in {ref.name}")
        self.terminal.info("Trying different shells...")
        result = self.gateway.exec_interactive(ref.id)
        if not result.succeeded:
            self.terminal.show_result("exec shell in", ref, result)

    def exec_custom_command(self, ref: ContainerRef):
        self.terminal.info(f"Execute custom command in {ref.name}")
        text = self.terminal.ask_text("Enter command:")
        if text is None:
            self.terminal.warning("Operation cancelled")
            return
        if not text:
            self.terminal.error("No command entered")
            return

        try:
            command = shlex.split(text)
        except ValueError as e:
            self.terminal.error(f"Invalid command: {e}")
            return

        self.terminal.warning(f"Executing: {text}")
        result = self.gateway.exec_interactive(ref.id, command)
        self.terminal.show_result("exec command in", ref, result)

    def inspect_container(self, ref: ContainerRef):
        with self.terminal.status(f"Inspecting container {ref.name}..."):
            details = self.gateway.inspect(ref.id)
        self.terminal.show_details(details)
