#!/usr/bin/env python3
"""
Engine gateway test suite for dockerctl

Exercises the gateway against a mocked Docker SDK client and a mocked Docker
CLI, so no daemon is required.

Usage:
  pytest test_gateway.py
"""

import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch, call

from docker.errors import APIError, DockerException, NotFound

from dockerctl.core.errors import ContainerNotFound, EngineError, EngineUnreachable
from dockerctl.core.gateway import EngineGateway
from dockerctl.models.config import AppConfig
from dockerctl.models.container import ContainerRef, NOT_APPLICABLE
from dockerctl.models.enums import ContainerStatus, LogMode

TEST_CONTAINER_ID = "abc123def456"

INSPECT_ATTRS = {
    "Id": "abc123def4567890abcdef",
    "Name": "/web",
    "Created": "2024-05-01T10:20:30.123456789Z",
    "State": {"Status": "running"},
    "Config": {"Image": "nginx:latest"},
    "HostConfig": {"RestartPolicy": {"Name": "unless-stopped", "MaximumRetryCount": 0}},
    "Mounts": [{"Type": "bind", "Source": "/srv/www", "Destination": "/usr/share/nginx/html"}],
    "NetworkSettings": {
        "Ports": {
            "80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}],
            "443/tcp": None,
        },
        "Networks": {"frontend": {}, "bridge": {}},
    },
}


class FakeLogStream:
    """Stands in for the SDK's cancellable log stream."""

    def __init__(self, chunks, interrupt=False):
        self.chunks = chunks
        self.interrupt = interrupt
        self.closed = False

    def __iter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.interrupt:
            raise KeyboardInterrupt

    def close(self):
        self.closed = True


class TestEngineGateway(unittest.TestCase):
    """Test cases for EngineGateway"""

    def setUp(self):
        self.client = MagicMock()
        self.container = MagicMock()
        self.container.name = "web"
        self.container.attrs = INSPECT_ATTRS
        self.client.containers.get.return_value = self.container
        self.gateway = EngineGateway(AppConfig(), client=self.client)

    def test_ping_failure_is_engine_unreachable(self):
        self.client.ping.side_effect = DockerException("connection refused")

        with self.assertRaises(EngineUnreachable):
            self.gateway.ping()

    def test_list_containers_converts_summaries(self):
        self.client.api.containers.return_value = [
            {"Id": "abc123def4567890", "Names": ["/web"], "Image": "nginx:latest", "State": "running"},
            {"Id": "fedcba9876543210", "Names": ["/db"], "Image": "postgres:16", "State": "exited"},
            {"Id": "0011223344556677", "Names": ["/job"], "Image": "busybox", "State": "paused"},
        ]

        containers = self.gateway.list_containers(include_stopped=True)

        self.client.api.containers.assert_called_once_with(all=True)
        self.assertEqual(containers[0], ContainerRef("abc123def456", "web", "nginx:latest", ContainerStatus.RUNNING))
        self.assertEqual(containers[1].status, ContainerStatus.EXITED)
        self.assertEqual(containers[2].status, ContainerStatus.UNKNOWN)
        # One list request, no per-container inspect
        self.client.containers.get.assert_not_called()

    def test_list_containers_empty(self):
        self.client.api.containers.return_value = []

        self.assertEqual(self.gateway.list_containers(include_stopped=False), [])
        self.client.api.containers.assert_called_once_with(all=False)

    def test_list_containers_unreachable(self):
        self.client.api.containers.side_effect = DockerException("Error while fetching server API version")

        with self.assertRaises(EngineUnreachable):
            self.gateway.list_containers()

    def test_get_container_resolves_current_fields(self):
        ref = self.gateway.get_container(TEST_CONTAINER_ID)

        self.assertEqual(ref, ContainerRef(TEST_CONTAINER_ID, "web", "nginx:latest", ContainerStatus.RUNNING))

    def test_get_container_missing(self):
        self.client.containers.get.side_effect = NotFound("No such container")

        with self.assertRaises(ContainerNotFound):
            self.gateway.get_container(TEST_CONTAINER_ID)

    def test_get_container_engine_failure(self):
        self.client.containers.get.side_effect = APIError("server error")

        with self.assertRaises(EngineError):
            self.gateway.get_container(TEST_CONTAINER_ID)

    def test_lifecycle_actions_succeed(self):
        for verb, method in (("start", self.gateway.start), ("stop", self.gateway.stop),
                             ("restart", self.gateway.restart), ("remove", self.gateway.remove)):
            with self.subTest(verb=verb):
                result = method(TEST_CONTAINER_ID)
                self.assertTrue(result.succeeded)
                self.assertIn("web", result.message)
                getattr(self.container, verb).assert_called_once_with()

    def test_lifecycle_failure_carries_engine_message(self):
        self.container.remove.side_effect = APIError(
            "409 Conflict", explanation="cannot remove container: container is running"
        )

        result = self.gateway.remove(TEST_CONTAINER_ID)

        self.assertFalse(result.succeeded)
        self.assertEqual(result.message, "cannot remove container: container is running")

    def test_double_remove_fails_cleanly(self):
        self.assertTrue(self.gateway.remove(TEST_CONTAINER_ID).succeeded)

        self.client.containers.get.side_effect = NotFound("No such container")
        result = self.gateway.remove(TEST_CONTAINER_ID)

        self.assertFalse(result.succeeded)
        self.assertIn("no longer exists", result.message)
        self.container.remove.assert_called_once_with()

    def test_export_writes_archive(self):
        self.container.export.return_value = iter([b"tar-", b"data"])

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "web.tar")
            result = self.gateway.export_to_file(TEST_CONTAINER_ID, path)

            self.assertTrue(result.succeeded)
            self.assertIn(path, result.message)
            with open(path, "rb") as f:
                self.assertEqual(f.read(), b"tar-data")

    def test_export_unwritable_path(self):
        self.container.export.return_value = iter([b"data"])

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "missing", "web.tar")
            result = self.gateway.export_to_file(TEST_CONTAINER_ID, path)

        self.assertFalse(result.succeeded)
        self.assertIn("Cannot write", result.message)

    def test_commit_blank_tag_defaults_to_latest(self):
        self.container.commit.return_value = MagicMock(short_id="sha256:0123abcd")

        result = self.gateway.commit_to_image(TEST_CONTAINER_ID, "myimage", "")

        self.container.commit.assert_called_once_with(repository="myimage", tag="latest")
        self.assertTrue(result.succeeded)
        self.assertIn("myimage:latest", result.message)

    def test_commit_failure(self):
        self.container.commit.side_effect = APIError("invalid reference format")

        result = self.gateway.commit_to_image(TEST_CONTAINER_ID, "Bad Name", "v1")

        self.assertFalse(result.succeeded)

    def test_stream_logs_tail_requests_last_lines(self):
        stream = FakeLogStream([b"one\ntw", b"o\n", b"three"])
        self.container.logs.return_value = stream

        lines = list(self.gateway.stream_logs(TEST_CONTAINER_ID, LogMode.TAIL))

        self.container.logs.assert_called_once_with(stream=True, follow=False, tail=50)
        self.assertEqual(lines, ["one", "two", "three"])
        self.assertTrue(stream.closed)

    def test_stream_logs_decodes_characters_split_across_chunks(self):
        self.container.logs.return_value = FakeLogStream([b"caf", b"\xc3", b"\xa9", b"\n", b"na\xc3", b"\xafve"])

        lines = list(self.gateway.stream_logs(TEST_CONTAINER_ID, LogMode.ALL))

        self.assertEqual(lines, ["caf\u00e9", "na\u00efve"])

    def test_stream_logs_all_is_unbounded(self):
        self.container.logs.return_value = FakeLogStream([b"a\r\nb\r\n"])

        lines = list(self.gateway.stream_logs(TEST_CONTAINER_ID, LogMode.ALL))

        self.container.logs.assert_called_once_with(stream=True, follow=False, tail="all")
        self.assertEqual(lines, ["a", "b"])

    def test_stream_logs_follow_closes_stream_on_interrupt(self):
        stream = FakeLogStream([b"first\n", b"second\n"], interrupt=True)
        self.container.logs.return_value = stream
        received = []

        with self.assertRaises(KeyboardInterrupt):
            for line in self.gateway.stream_logs(TEST_CONTAINER_ID, LogMode.FOLLOW):
                received.append(line)

        self.container.logs.assert_called_once_with(stream=True, follow=True)
        self.assertEqual(received, ["first", "second"])
        self.assertTrue(stream.closed)

    def test_stream_logs_closed_by_consumer(self):
        stream = FakeLogStream([b"1\n", b"2\n", b"3\n"])
        self.container.logs.return_value = stream

        lines = self.gateway.stream_logs(TEST_CONTAINER_ID, LogMode.FOLLOW)
        self.assertEqual(next(lines), "1")
        lines.close()

        self.assertTrue(stream.closed)

    def test_stream_logs_engine_error(self):
        self.container.logs.side_effect = APIError("configured logging driver does not support reading")

        with self.assertRaises(EngineError):
            list(self.gateway.stream_logs(TEST_CONTAINER_ID, LogMode.ALL))

    @patch("dockerctl.core.gateway.run_docker_command")
    def test_exec_shell_falls_back_to_next_candidate(self, mock_run):
        mock_run.side_effect = [(127, "", "executable file not found"), (0, "", "")]

        result = self.gateway.exec_interactive(TEST_CONTAINER_ID)

        self.assertTrue(result.succeeded)
        self.assertEqual(mock_run.call_args_list, [
            call(["exec", "-it", TEST_CONTAINER_ID, "bash"], binary="docker", attach=True),
            call(["exec", "-it", TEST_CONTAINER_ID, "sh"], binary="docker", attach=True),
        ])

    @patch("dockerctl.core.gateway.run_docker_command")
    def test_exec_shell_first_candidate_used(self, mock_run):
        # A shell that ran and exited non-zero still counts as a session
        mock_run.return_value = (1, "", "")

        result = self.gateway.exec_interactive(TEST_CONTAINER_ID)

        self.assertTrue(result.succeeded)
        self.assertEqual(mock_run.call_count, 1)

    @patch("dockerctl.core.gateway.run_docker_command")
    def test_exec_shell_exiting_with_127_is_a_finished_session(self, mock_run):
        # Last command in the session was not found; the shell itself ran
        mock_run.return_value = (127, "", "")

        result = self.gateway.exec_interactive(TEST_CONTAINER_ID)

        self.assertTrue(result.succeeded)
        mock_run.assert_called_once_with(["exec", "-it", TEST_CONTAINER_ID, "bash"], binary="docker", attach=True)

    @patch("dockerctl.core.gateway.run_docker_command")
    def test_exec_shell_none_available(self, mock_run):
        mock_run.return_value = (126, "", "OCI runtime exec failed")

        result = self.gateway.exec_interactive(TEST_CONTAINER_ID)

        self.assertFalse(result.succeeded)
        self.assertIn("no shell available", result.message)
        self.assertEqual(mock_run.call_count, 2)

    @patch("dockerctl.core.gateway.run_docker_command")
    def test_exec_custom_command(self, mock_run):
        mock_run.return_value = (0, "", "")

        result = self.gateway.exec_interactive(TEST_CONTAINER_ID, ["ls", "-la", "/tmp"])

        self.assertTrue(result.succeeded)
        mock_run.assert_called_once_with(
            ["exec", "-it", TEST_CONTAINER_ID, "ls", "-la", "/tmp"], binary="docker", attach=True
        )

    @patch("dockerctl.core.gateway.run_docker_command")
    def test_exec_custom_command_failure(self, mock_run):
        mock_run.return_value = (2, "", "")

        result = self.gateway.exec_interactive(TEST_CONTAINER_ID, ["false"])

        self.assertFalse(result.succeeded)
        self.assertIn("exited with code 2", result.message)

    def test_inspect_summary(self):
        details = self.gateway.inspect(TEST_CONTAINER_ID)

        self.assertEqual(details.id, "abc123def456")
        self.assertEqual(details.name, "web")
        self.assertEqual(details.created, "2024-05-01 10:20:30")
        self.assertEqual(details.status, "running")
        self.assertEqual(details.health, NOT_APPLICABLE)
        self.assertEqual(details.image, "nginx:latest")
        self.assertEqual(details.restart_policy, "unless-stopped")
        self.assertEqual(details.mounts, ["/srv/www -> /usr/share/nginx/html"])
        self.assertEqual(details.ports, ["80/tcp (Host: 8080)"])
        self.assertEqual(details.networks, ["bridge", "frontend"])

    def test_inspect_sparse_container(self):
        self.container.attrs = {
            "Id": "abc123def4567890",
            "Name": "/bare",
            "State": {"Status": "created", "Health": {"Status": "starting"}},
            "Config": {"Image": "alpine"},
            "HostConfig": {},
            "NetworkSettings": {"Ports": {}, "Networks": {}},
        }

        details = self.gateway.inspect(TEST_CONTAINER_ID)

        self.assertEqual(details.health, "starting")
        self.assertEqual(details.restart_policy, NOT_APPLICABLE)
        self.assertEqual(details.created, NOT_APPLICABLE)
        self.assertEqual(details.mounts, [])
        self.assertEqual(details.ports, [])
        self.assertEqual(details.networks, [])


if __name__ == '__main__':
    unittest.main()
