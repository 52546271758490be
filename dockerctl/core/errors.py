"""
Exceptions raised by dockerctl.

Failures of individual container actions are not exceptions: the gateway
returns them as failed ActionResult values so the session can continue.
"""


class DockerCtlError(Exception):
    """Base class for dockerctl errors."""


class StartupDependencyMissing(DockerCtlError):
    """A required executable is not installed or not on PATH."""

    def __init__(self, tool: str, hint: str = None):
        self.tool = tool
        self.hint = hint
        super().__init__(f"{tool} is not installed or not in PATH")


class EngineUnreachable(DockerCtlError):
    """The container engine daemon cannot be reached."""


class EngineError(DockerCtlError):
    """The engine refused or failed a read request (inspect, logs)."""


class ContainerNotFound(EngineError):
    """The container no longer exists on the engine."""

    def __init__(self, container_id: str):
        self.container_id = container_id
        super().__init__(f"Container {container_id} no longer exists")
