"""
Container models for dockerctl.
"""

from dataclasses import dataclass, field
from typing import List

from dockerctl.models.enums import ContainerStatus


NOT_APPLICABLE = "N/A"


@dataclass(frozen=True)
class ContainerRef:
    """
    One container's identity and display attributes at a point in time.
    Identity is the id; name, image and status are re-fetched before reuse.
    """
    id: str
    name: str
    image: str
    status: ContainerStatus = ContainerStatus.UNKNOWN


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a mutating engine call."""
    succeeded: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "ActionResult":
        return cls(True, message)

    @classmethod
    def failed(cls, message: str) -> "ActionResult":
        return cls(False, message)


@dataclass(frozen=True)
class ContainerDetails:
    """Inspect summary of a container, used for the preview pane and the inspect action."""
    id: str
    name: str
    created: str = NOT_APPLICABLE
    status: str = NOT_APPLICABLE
    health: str = NOT_APPLICABLE
    image: str = NOT_APPLICABLE
    restart_policy: str = NOT_APPLICABLE
    mounts: List[str] = field(default_factory=list)
    ports: List[str] = field(default_factory=list)
    networks: List[str] = field(default_factory=list)
