"""Tests for the kubectl subprocess controller."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
import yaml

from kubefunc.infra.k8s import KubectlController, run_sync

SERVICE = {
    "apiVersion": "v1",
    "kind": "Service",
    "metadata": {"name": "fn1-http", "namespace": "functions"},
}


def _completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )


class TestKubectlController:
    """Tests for KubectlController."""

    @pytest.fixture
    def controller(self) -> KubectlController:
        return KubectlController()

    @patch("subprocess.run")
    def test_current_context(self, mock_run: MagicMock, controller: KubectlController) -> None:
        mock_run.return_value = _completed(stdout="kind-dev\n")

        assert run_sync(controller.get_current_context()) == "kind-dev"
        assert mock_run.call_args.args[0] == ["kubectl", "config", "current-context"]

    @patch("subprocess.run")
    def test_current_context_unknown(
        self, mock_run: MagicMock, controller: KubectlController
    ) -> None:
        mock_run.return_value = _completed(returncode=1, stderr="no context")

        assert run_sync(controller.get_current_context()) == "unknown"

    @patch("subprocess.run")
    def test_namespace_exists(self, mock_run: MagicMock, controller: KubectlController) -> None:
        mock_run.return_value = _completed()

        assert run_sync(controller.namespace_exists("functions")) is True
        assert mock_run.call_args.args[0] == ["kubectl", "get", "namespace", "functions"]

    @patch("subprocess.run")
    def test_namespace_missing(self, mock_run: MagicMock, controller: KubectlController) -> None:
        mock_run.return_value = _completed(returncode=1, stderr="NotFound")

        assert run_sync(controller.namespace_exists("functions")) is False

    @patch("subprocess.run")
    def test_namespace_missing_from_server_message(
        self, mock_run: MagicMock, controller: KubectlController
    ) -> None:
        mock_run.return_value = _completed(
            returncode=1,
            stderr='Error from server (NotFound): namespaces "functions" not found',
        )

        assert run_sync(controller.namespace_exists("functions")) is False

    @patch("subprocess.run")
    def test_namespace_check_unreachable_cluster_raises(
        self, mock_run: MagicMock, controller: KubectlController
    ) -> None:
        mock_run.return_value = _completed(
            returncode=1,
            stderr="The connection to the server localhost:8080 was refused",
        )

        with pytest.raises(RuntimeError, match="connection to the server"):
            run_sync(controller.namespace_exists("functions"))

    @patch("subprocess.run")
    def test_namespace_check_forbidden_raises(
        self, mock_run: MagicMock, controller: KubectlController
    ) -> None:
        mock_run.return_value = _completed(
            returncode=1,
            stderr='Error from server (Forbidden): namespaces "functions" is forbidden',
        )

        with pytest.raises(RuntimeError, match="Forbidden"):
            run_sync(controller.namespace_exists("functions"))

    @patch("subprocess.run")
    def test_create_namespace(self, mock_run: MagicMock, controller: KubectlController) -> None:
        mock_run.return_value = _completed(stdout="namespace/functions created")

        result = run_sync(controller.create_namespace("functions"))

        assert result.success
        assert mock_run.call_args.args[0] == [
            "kubectl",
            "create",
            "namespace",
            "functions",
        ]

    @patch("subprocess.run")
    def test_apply_pipes_yaml_to_stdin(
        self, mock_run: MagicMock, controller: KubectlController
    ) -> None:
        mock_run.return_value = _completed(stdout="service/fn1-http created")

        result = run_sync(controller.apply_resource(SERVICE, "functions"))

        assert result.success
        call = mock_run.call_args
        assert call.args[0] == [
            "kubectl",
            "apply",
            "-f",
            "-",
            "--namespace",
            "functions",
        ]
        assert yaml.safe_load(call.kwargs["input"]) == SERVICE
        assert call.kwargs["capture_output"] is True

    @patch("subprocess.run")
    def test_apply_failure(self, mock_run: MagicMock, controller: KubectlController) -> None:
        mock_run.return_value = _completed(returncode=1, stderr="error: invalid object")

        result = run_sync(
            controller.apply_resource(SERVICE, "functions", capture_output=False)
        )

        assert not result.success
        assert result.returncode == 1
        assert result.output == "error: invalid object"
        assert mock_run.call_args.kwargs["capture_output"] is False
