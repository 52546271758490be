"""
Engine gateway for dockerctl.

This module is the only place that talks to the container engine. It wraps the
Docker SDK for enumeration, lifecycle actions, logs, export, commit and
inspection, and the Docker CLI for interactive exec sessions, which need the
user's terminal.
"""

import codecs
import logging
from typing import Iterator, List, Optional, Sequence

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from dockerctl.core.errors import ContainerNotFound, EngineError, EngineUnreachable
from dockerctl.models.config import AppConfig
from dockerctl.models.container import ActionResult, ContainerDetails, ContainerRef, NOT_APPLICABLE
from dockerctl.models.enums import ContainerStatus, LogMode
from dockerctl.utils.docker_utils import exec_not_started, run_docker_command
from dockerctl.utils.formatting import format_time


logger = logging.getLogger('dockerctl.gateway')


def _engine_message(error: Exception) -> str:
    """Extract the human-readable part of an engine error."""
    explanation = getattr(error, "explanation", None)
    if explanation:
        return explanation.decode('utf-8', 'replace') if isinstance(explanation, bytes) else str(explanation)
    return str(error)


class EngineGateway:
    """
    Issues requests to the container engine and returns structured results.
    Owns no state besides the engine client.
    """
    def __init__(self, config: AppConfig, client: Optional[docker.DockerClient] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        """Docker client, created from the environment on first use."""
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException as e:
                raise EngineUnreachable(f"Docker daemon is not running: {_engine_message(e)}") from e
        return self._client

    def ping(self) -> None:
        """
        Check that the engine daemon answers.

        Raises:
            EngineUnreachable: If the daemon cannot be reached
        """
        try:
            self.client.ping()
        except (DockerException, RequestException) as e:
            raise EngineUnreachable(f"Docker daemon is not running: {_engine_message(e)}") from e

    def list_containers(self, include_stopped: bool = True) -> List[ContainerRef]:
        """
        List containers known to the engine.

        Args:
            include_stopped: Include exited and created containers

        Returns:
            List[ContainerRef]: Containers, empty if the engine reports none

        Raises:
            EngineUnreachable: If the engine cannot be queried
        """
        try:
            summaries = self.client.api.containers(all=include_stopped)
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to list containers: {str(e)}")
            raise EngineUnreachable(f"Cannot list containers: {_engine_message(e)}") from e

        containers = []
        for summary in summaries or []:
            names = summary.get('Names') or []
            containers.append(ContainerRef(
                id=summary.get('Id', '')[:12],
                name=names[0].lstrip('/') if names else summary.get('Id', '')[:12],
                image=summary.get('Image', ''),
                status=ContainerStatus.from_engine(summary.get('State', '')),
            ))

        logger.debug(f"Listed {len(containers)} containers")
        return containers

    def _get(self, container_id: str):
        try:
            return self.client.containers.get(container_id)
        except NotFound as e:
            raise ContainerNotFound(container_id) from e
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to look up container {container_id}: {str(e)}")
            raise EngineError(_engine_message(e)) from e

    def get_container(self, container_id: str) -> ContainerRef:
        """
        Re-resolve a container's current display fields.

        Args:
            container_id: Container ID

        Returns:
            ContainerRef: Current name, image and status

        Raises:
            ContainerNotFound: If the container no longer exists
        """
        container = self._get(container_id)
        attrs = container.attrs or {}
        return ContainerRef(
            id=container_id,
            name=(attrs.get('Name') or container_id).lstrip('/'),
            image=(attrs.get('Config') or {}).get('Image', ''),
            status=ContainerStatus.from_engine((attrs.get('State') or {}).get('Status', '')),
        )

    def _lifecycle(self, container_id: str, verb: str, past: str, **kwargs) -> ActionResult:
        try:
            container = self._get(container_id)
            getattr(container, verb)(**kwargs)
        except EngineError as e:
            logger.error(f"Failed to {verb} container {container_id}: {str(e)}")
            return ActionResult.failed(str(e))
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to {verb} container {container_id}: {str(e)}")
            return ActionResult.failed(_engine_message(e))

        logger.info(f"Container {container_id} {past}")
        return ActionResult.ok(f"Container {container.name} {past} successfully")

    def start(self, container_id: str) -> ActionResult:
        """Start a container."""
        return self._lifecycle(container_id, "start", "started")

    def stop(self, container_id: str) -> ActionResult:
        """Stop a container."""
        return self._lifecycle(container_id, "stop", "stopped")

    def restart(self, container_id: str) -> ActionResult:
        """Restart a container."""
        return self._lifecycle(container_id, "restart", "restarted")

    def remove(self, container_id: str) -> ActionResult:
        """Remove a container. Running containers are refused by the engine."""
        return self._lifecycle(container_id, "remove", "removed")

    def export_to_file(self, container_id: str, path: str) -> ActionResult:
        """
        Stream a container's filesystem archive to a file.

        Args:
            container_id: Container ID
            path: Destination path, overwritten if it exists

        Returns:
            ActionResult: Outcome of the export
        """
        try:
            container = self._get(container_id)
            written = 0
            with open(path, 'wb') as f:
                for chunk in container.export():
                    f.write(chunk)
                    written += len(chunk)
        except EngineError as e:
            logger.error(f"Failed to export container {container_id}: {str(e)}")
            return ActionResult.failed(str(e))
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to export container {container_id}: {str(e)}")
            return ActionResult.failed(_engine_message(e))
        except OSError as e:
            logger.error(f"Failed to write export of {container_id} to {path}: {str(e)}")
            return ActionResult.failed(f"Cannot write {path}: {e.strerror or str(e)}")

        logger.info(f"Exported container {container_id} to {path} ({written} bytes)")
        return ActionResult.ok(f"Container {container.name} exported to {path}")

    def commit_to_image(self, container_id: str, name: str, tag: str = "latest") -> ActionResult:
        """
        Commit a container to a new image.

        Args:
            container_id: Container ID
            name: Image repository name
            tag: Image tag

        Returns:
            ActionResult: Outcome of the commit
        """
        tag = tag or self.config.default_tag
        try:
            container = self._get(container_id)
            image = container.commit(repository=name, tag=tag)
        except EngineError as e:
            logger.error(f"Failed to commit container {container_id}: {str(e)}")
            return ActionResult.failed(str(e))
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to commit container {container_id}: {str(e)}")
            return ActionResult.failed(_engine_message(e))

        logger.info(f"Committed container {container_id} to {name}:{tag}")
        return ActionResult.ok(f"Container {container.name} committed to image {name}:{tag} ({image.short_id})")

    def stream_logs(self, container_id: str, mode: LogMode, tail: Optional[int] = None) -> Iterator[str]:
        """
        Stream a container's log as text lines.

        The sequence is infinite under LogMode.FOLLOW. Closing the iterator,
        as happens when the consumer is interrupted, closes the engine stream.

        Args:
            container_id: Container ID
            mode: Which part of the log to stream
            tail: Line count for LogMode.TAIL, defaults to the configured value

        Yields:
            str: Log lines without trailing newlines

        Raises:
            ContainerNotFound: If the container no longer exists
            EngineError: If the engine refuses or drops the stream
        """
        container = self._get(container_id)
        try:
            if mode == LogMode.TAIL:
                stream = container.logs(stream=True, follow=False, tail=tail or self.config.log_tail)
            elif mode == LogMode.FOLLOW:
                stream = container.logs(stream=True, follow=True)
            else:
                stream = container.logs(stream=True, follow=False, tail='all')
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to read logs of {container_id}: {str(e)}")
            raise EngineError(_engine_message(e)) from e

        # chunks may split a multibyte character
        decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        pending = ""
        try:
            for chunk in stream:
                pending += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
                *lines, pending = pending.split('\n')
                for line in lines:
                    yield line.rstrip('\r')
            pending += decoder.decode(b'', final=True)
            if pending:
                yield pending.rstrip('\r')
        except (DockerException, RequestException) as e:
            logger.error(f"Log stream of {container_id} failed: {str(e)}")
            raise EngineError(_engine_message(e)) from e
        finally:
            close = getattr(stream, 'close', None)
            if close is not None:
                close()

    def exec_interactive(self, container_id: str, command: Optional[Sequence[str]] = None) -> ActionResult:
        """
        Run an interactive command attached to the terminal.

        Without a command, the configured shells are tried in order until one starts.

        Args:
            container_id: Container ID
            command: Command and arguments to run

        Returns:
            ActionResult: Outcome of the session
        """
        if command:
            returncode, _, stderr = run_docker_command(
                ['exec', '-it', container_id] + list(command),
                binary=self.config.engine_binary,
                attach=True,
            )
            if returncode == 0:
                return ActionResult.ok("Command exited successfully")
            logger.error(f"Exec in {container_id} exited with code {returncode}: {stderr.strip()}")
            return ActionResult.failed(stderr.strip() or f"Command exited with code {returncode}")

        for shell in self.config.shell_candidates:
            returncode, _, stderr = run_docker_command(
                ['exec', '-it', container_id] + list(shell),
                binary=self.config.engine_binary,
                attach=True,
            )
            if not exec_not_started(returncode, stderr):
                logger.debug(f"Shell {' '.join(shell)} in {container_id} exited with code {returncode}")
                return ActionResult.ok(f"Shell session ({' '.join(shell)}) ended")
            logger.debug(f"Shell {' '.join(shell)} not available in {container_id}: {stderr.strip()}")

        logger.error(f"No shell available in container {container_id}")
        return ActionResult.failed("Could not execute shell in container: no shell available")

    def inspect(self, container_id: str) -> ContainerDetails:
        """
        Collect the inspect summary of a container.

        Args:
            container_id: Container ID

        Returns:
            ContainerDetails: Display fields, N/A where the engine reports nothing

        Raises:
            ContainerNotFound: If the container no longer exists
        """
        attrs = self._get(container_id).attrs or {}
        state = attrs.get('State') or {}
        host_config = attrs.get('HostConfig') or {}
        network_settings = attrs.get('NetworkSettings') or {}

        health = (state.get('Health') or {}).get('Status') or NOT_APPLICABLE
        restart_policy = (host_config.get('RestartPolicy') or {}).get('Name') or NOT_APPLICABLE

        mounts = [
            f"{m.get('Source') or m.get('Name') or NOT_APPLICABLE} -> {m.get('Destination', NOT_APPLICABLE)}"
            for m in attrs.get('Mounts') or []
        ]

        ports = []
        for container_port, bindings in sorted((network_settings.get('Ports') or {}).items()):
            for binding in bindings or []:
                ports.append(f"{container_port} (Host: {binding.get('HostPort') or NOT_APPLICABLE})")

        return ContainerDetails(
            id=attrs.get('Id', container_id)[:12],
            name=(attrs.get('Name') or container_id).lstrip('/'),
            created=format_time(attrs.get('Created')),
            status=state.get('Status') or NOT_APPLICABLE,
            health=health,
            image=(attrs.get('Config') or {}).get('Image') or NOT_APPLICABLE,
            restart_policy=restart_policy,
            mounts=mounts,
            ports=ports,
            networks=sorted((network_settings.get('Networks') or {}).keys()),
        )
