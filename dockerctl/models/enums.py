"""
Enumeration classes for dockerctl.
"""

from enum import Enum


class ContainerStatus(str, Enum):
    """Container states shown in the selector and the action menu."""
    RUNNING = "running"
    EXITED = "exited"
    CREATED = "created"
    UNKNOWN = "unknown"

    @classmethod
    def from_engine(cls, state: str) -> "ContainerStatus":
        """Map an engine state string (paused, dead, ...) onto the known statuses."""
        try:
            return cls((state or "").lower())
        except ValueError:
            return cls.UNKNOWN


class LogMode(str, Enum):
    """How much of a container's log to show."""
    TAIL = "tail"
    FOLLOW = "follow"
    ALL = "all"


class SelectionSignal(str, Enum):
    """Outcomes of a selection that did not produce a container."""
    EMPTY = "empty"
    CANCELLED = "cancelled"


class ControllerState(str, Enum):
    """States of the interactive action controller."""
    SELECTING_CONTAINER = "selecting_container"
    SHOWING_ACTION_MENU = "showing_action_menu"
    AWAITING_ACTION_INPUT = "awaiting_action_input"
    TERMINATED = "terminated"
