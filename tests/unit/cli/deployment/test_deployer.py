"""Unit tests for the function app deployment workflow."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import yaml

from kubefunc.cli.deployment.deployer import FunctionsDeployer
from kubefunc.cli.deployment.errors import (
    ApplyError,
    BuildError,
    DeploymentStage,
    ImageInspectionFailed,
    MissingImageSource,
    NamespaceError,
    PushError,
)
from kubefunc.cli.deployment.models import DeploymentRequest, OutputFormat
from kubefunc.cli.deployment.settings import LocalSettings
from kubefunc.cli.deployment.shell_commands import CommandResult, ShellCommands
from kubefunc.infra.k8s import KubectlController

OK = CommandResult(success=True)


class TestFunctionsDeployer:
    """Tests for FunctionsDeployer."""

    @pytest.fixture
    def calls(self) -> list[str]:
        """Ordered record of collaborator calls."""
        return []

    @pytest.fixture
    def mock_commands(self, function_app: Path, calls: list[str]) -> MagicMock:
        """Shell commands whose docker image contains the fixture app."""
        commands = MagicMock()
        docker = commands.docker
        kubectl = commands.kubectl

        def record(name: str, result: Any = OK):
            def side_effect(*args: Any, **kwargs: Any) -> Any:
                calls.append(name)
                return result

            return side_effect

        def copy_app(container_id: str, source: str, destination: Path) -> CommandResult:
            calls.append("docker.cp")
            shutil.copytree(function_app, destination)
            return OK

        docker.build_image.side_effect = record("docker.build")
        docker.push_image.side_effect = record("docker.push")
        docker.create_container.side_effect = record(
            "docker.create", CommandResult(success=True, stdout="c0ffee\n")
        )
        docker.copy_from_container.side_effect = copy_app
        docker.remove_container.side_effect = record("docker.rm")
        kubectl.namespace_exists.side_effect = record("kubectl.namespace_exists", False)
        kubectl.create_namespace.side_effect = record("kubectl.create_namespace")
        kubectl.apply.side_effect = record("kubectl.apply")
        commands.dotnet.can_build.return_value = False
        return commands

    @pytest.fixture
    def emitted(self) -> list[str]:
        return []

    @pytest.fixture
    def deployer(
        self,
        function_app: Path,
        mock_commands: MagicMock,
        emitted: list[str],
    ) -> FunctionsDeployer:
        """Create a deployer over the fixture app with mocked tools."""
        return FunctionsDeployer(
            MagicMock(),
            function_app,
            commands=mock_commands,
            settings=LocalSettings(function_app),
            emit=emitted.append,
            show_output=False,
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def test_missing_image_source_touches_no_collaborator(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock, emitted: list[str]
    ) -> None:
        """A request without --registry or --image-name fails before any tool call."""
        outcome = deployer.run(DeploymentRequest(name="fn1"))

        assert isinstance(outcome.error, MissingImageSource)
        assert outcome.stage is DeploymentStage.RESOLVE
        assert mock_commands.mock_calls == []
        assert emitted == []

    def test_injected_collaborators_are_used_untouched(
        self, function_app: Path, mock_commands: MagicMock
    ) -> None:
        """Constructing the deployer neither replaces nor queries its collaborators."""
        settings = MagicMock()
        constants = MagicMock()

        deployer = FunctionsDeployer(
            MagicMock(),
            function_app,
            commands=mock_commands,
            settings=settings,
            constants=constants,
        )

        assert deployer.commands is mock_commands
        assert deployer.settings is settings
        assert deployer.constants is constants
        assert mock_commands.mock_calls == []
        assert settings.mock_calls == []
        assert constants.mock_calls == []

    def test_deploy_raises_failure(self, deployer: FunctionsDeployer) -> None:
        with pytest.raises(MissingImageSource):
            deployer.deploy(DeploymentRequest(name="fn1"))

    # -------------------------------------------------------------------------
    # Dry run
    # -------------------------------------------------------------------------

    def test_dry_run_with_build_uses_local_source_only(
        self,
        deployer: FunctionsDeployer,
        calls: list[str],
        emitted: list[str],
    ) -> None:
        """Dry run of a --registry deploy reads the project and prints manifests."""
        outcome = deployer.deploy(
            DeploymentRequest(name="fn1", registry="reg.io", dry_run=True)
        )

        assert calls == []
        assert outcome.ok
        assert outcome.applied == []
        assert emitted == [outcome.rendered]
        documents = list(yaml.safe_load_all(emitted[0]))
        images = {
            d["spec"]["template"]["spec"]["containers"][0]["image"]
            for d in documents
            if d["kind"] == "Deployment"
        }
        assert images == {"reg.io/fn1"}

    def test_dry_run_with_existing_image_inspects_image(
        self, deployer: FunctionsDeployer, calls: list[str], emitted: list[str]
    ) -> None:
        """Dry run of an --image-name deploy reads functions from the image."""
        deployer.deploy(
            DeploymentRequest(name="fn1", image_name="reg.io/fn1:v1", dry_run=True)
        )

        assert calls == ["docker.create", "docker.cp", "docker.rm"]
        assert len(emitted) == 1

    def test_dry_run_json_output(
        self, deployer: FunctionsDeployer, emitted: list[str]
    ) -> None:
        deployer.deploy(
            DeploymentRequest(
                name="fn1",
                registry="reg.io",
                dry_run=True,
                output_format=OutputFormat.JSON,
            )
        )

        assert '"kind": "List"' in emitted[0]

    # -------------------------------------------------------------------------
    # Live ordering
    # -------------------------------------------------------------------------

    def test_live_registry_deploy_ordering(
        self, deployer: FunctionsDeployer, calls: list[str]
    ) -> None:
        """Build precedes discovery; namespace and push precede every apply."""
        outcome = deployer.deploy(DeploymentRequest(name="fn1", registry="reg.io"))

        assert outcome.ok
        assert calls[:4] == ["docker.build", "docker.create", "docker.cp", "docker.rm"]
        assert calls[4:7] == [
            "kubectl.namespace_exists",
            "kubectl.create_namespace",
            "docker.push",
        ]
        assert calls[7:] == ["kubectl.apply"] * 5
        assert outcome.applied == [
            "Secret/fn1",
            "Deployment/fn1-http",
            "Deployment/fn1",
            "Service/fn1-http",
            "ScaledObject/fn1",
        ]

    def test_assembly_follows_discovery(
        self, deployer: FunctionsDeployer, calls: list[str]
    ) -> None:
        original = deployer.assemble

        def recording_assemble(*args: Any, **kwargs: Any) -> Any:
            calls.append("assemble")
            return original(*args, **kwargs)

        with patch.object(deployer, "assemble", side_effect=recording_assemble):
            deployer.deploy(DeploymentRequest(name="fn1", registry="reg.io"))

        assert calls.index("docker.build") < calls.index("docker.cp")
        assert calls.index("docker.cp") < calls.index("assemble")
        assert calls.index("assemble") < calls.index("kubectl.namespace_exists")

    def test_existing_image_is_neither_built_nor_pushed(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock, calls: list[str]
    ) -> None:
        """An --image-name deploy reads the image then applies to the cluster."""
        outcome = deployer.deploy(
            DeploymentRequest(name="fn1", image_name="reg.io/fn1:v1", namespace="prod")
        )

        assert outcome.ok
        mock_commands.docker.build_image.assert_not_called()
        mock_commands.docker.push_image.assert_not_called()
        assert calls[:3] == ["docker.create", "docker.cp", "docker.rm"]
        mock_commands.kubectl.namespace_exists.assert_called_once_with("prod")
        for call in mock_commands.kubectl.apply.call_args_list:
            resource, namespace = call.args
            assert namespace == "prod"
            assert resource["metadata"]["namespace"] == "prod"

    def test_no_docker_reads_local_source(
        self, deployer: FunctionsDeployer, calls: list[str]
    ) -> None:
        deployer.deploy(
            DeploymentRequest(name="fn1", image_name="reg.io/fn1:v1", no_docker=True)
        )

        assert "docker.create" not in calls
        assert calls[-1] == "kubectl.apply"

    def test_apply_passes_show_output(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        deployer.deploy(DeploymentRequest(name="fn1", image_name="reg.io/fn1:v1"))

        for call in mock_commands.kubectl.apply.call_args_list:
            assert call.kwargs == {"show_output": False}

    # -------------------------------------------------------------------------
    # Namespace
    # -------------------------------------------------------------------------

    def test_ensure_namespace_is_idempotent(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        """A second ensure finds the namespace and does not create it again."""
        existing: set[str] = set()
        kubectl = mock_commands.kubectl
        kubectl.namespace_exists.side_effect = lambda ns: ns in existing
        kubectl.create_namespace.side_effect = lambda ns: existing.add(ns) or OK

        assert deployer.ensure_namespace("functions") is True
        assert deployer.ensure_namespace("functions") is False
        kubectl.create_namespace.assert_called_once_with("functions")

    def test_namespace_check_failure(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        mock_commands.kubectl.namespace_exists.side_effect = RuntimeError("no cluster")

        outcome = deployer.run(DeploymentRequest(name="fn1", image_name="img:1"))

        assert isinstance(outcome.error, NamespaceError)
        assert outcome.error.details == "no cluster"
        mock_commands.kubectl.apply.assert_not_called()

    @patch("subprocess.run")
    def test_unreachable_cluster_does_not_create_namespace(
        self, mock_run: MagicMock, function_app: Path
    ) -> None:
        """A kubectl failure other than NotFound is reported, not read as absent."""
        mock_run.return_value = subprocess.CompletedProcess(
            args=[],
            returncode=1,
            stdout="",
            stderr="Unable to connect to the server: dial tcp 10.0.0.1:443: i/o timeout",
        )
        deployer = FunctionsDeployer(
            MagicMock(),
            function_app,
            commands=ShellCommands(function_app, KubectlController()),
            settings=LocalSettings(function_app),
        )

        with pytest.raises(NamespaceError) as exc_info:
            deployer.ensure_namespace("prod")

        assert "Unable to connect" in exc_info.value.details
        commands = [call.args[0] for call in mock_run.call_args_list]
        assert commands == [["kubectl", "get", "namespace", "prod"]]

    def test_namespace_create_failure_skips_push(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        mock_commands.kubectl.create_namespace.side_effect = None
        mock_commands.kubectl.create_namespace.return_value = CommandResult(
            success=False, stderr="forbidden", returncode=1
        )

        outcome = deployer.run(DeploymentRequest(name="fn1", registry="reg.io"))

        assert outcome.stage is DeploymentStage.NAMESPACE
        mock_commands.docker.push_image.assert_not_called()
        mock_commands.kubectl.apply.assert_not_called()

    # -------------------------------------------------------------------------
    # Tool failures
    # -------------------------------------------------------------------------

    def test_build_failure_stops_run(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        mock_commands.docker.build_image.side_effect = None
        mock_commands.docker.build_image.return_value = CommandResult(
            success=False, stdout="step 3/7\nCOPY failed", returncode=1
        )

        outcome = deployer.run(DeploymentRequest(name="fn1", registry="reg.io"))

        assert isinstance(outcome.error, BuildError)
        assert outcome.error.details == "step 3/7\nCOPY failed"
        mock_commands.docker.create_container.assert_not_called()
        mock_commands.kubectl.namespace_exists.assert_not_called()

    def test_push_failure_applies_nothing(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        mock_commands.docker.push_image.side_effect = None
        mock_commands.docker.push_image.return_value = CommandResult(
            success=False, stderr="denied: requested access", returncode=1
        )

        outcome = deployer.run(DeploymentRequest(name="fn1", registry="reg.io"))

        assert isinstance(outcome.error, PushError)
        assert outcome.applied == []
        mock_commands.kubectl.apply.assert_not_called()

    def test_image_inspection_failure(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        mock_commands.docker.create_container.side_effect = None
        mock_commands.docker.create_container.return_value = CommandResult(
            success=False, stderr="No such image", returncode=1
        )

        outcome = deployer.run(DeploymentRequest(name="fn1", image_name="img:1"))

        assert isinstance(outcome.error, ImageInspectionFailed)
        assert outcome.stage is DeploymentStage.DISCOVER
        mock_commands.kubectl.namespace_exists.assert_not_called()

    # -------------------------------------------------------------------------
    # Apply
    # -------------------------------------------------------------------------

    @pytest.mark.parametrize("failing_index", [0, 2, 4])
    def test_apply_stops_after_failure(
        self,
        deployer: FunctionsDeployer,
        mock_commands: MagicMock,
        failing_index: int,
    ) -> None:
        """Failure on manifest k leaves 1..k-1 applied and never attempts k+1.."""
        results = [OK] * 5
        results[failing_index] = CommandResult(
            success=False, stderr="admission webhook denied", returncode=1
        )
        mock_commands.kubectl.apply.side_effect = results

        outcome = deployer.run(DeploymentRequest(name="fn1", image_name="img:1"))

        error = outcome.error
        assert isinstance(error, ApplyError)
        assert mock_commands.kubectl.apply.call_count == failing_index + 1
        assert len(outcome.applied) == failing_index
        assert error.applied == outcome.applied
        assert len(error.pending) == 4 - failing_index
        assert f"({failing_index + 1} of 5)" in error.message
        assert "admission webhook denied" in (error.details or "")

    def test_apply_failure_lists_partial_state(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        mock_commands.kubectl.apply.side_effect = [
            OK,
            CommandResult(success=False, stderr="boom", returncode=1),
        ]

        outcome = deployer.run(DeploymentRequest(name="fn1", image_name="img:1"))

        assert "Already applied (left in the cluster):" in outcome.error.details
        assert "Secret/fn1" in outcome.error.details

    def test_first_apply_failure_reports_nothing_applied(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        mock_commands.kubectl.apply.side_effect = [
            CommandResult(success=False, stderr="boom", returncode=1)
        ]

        outcome = deployer.run(DeploymentRequest(name="fn1", image_name="img:1"))

        assert "No resources were applied." in outcome.error.details

    # -------------------------------------------------------------------------
    # End to end
    # -------------------------------------------------------------------------

    def test_registry_deploy_end_to_end(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        """--registry builds reg.io/fn1, reads it back, pushes it and applies."""
        outcome = deployer.deploy(DeploymentRequest(name="fn1", registry="reg.io"))

        mock_commands.docker.build_image.assert_called_once()
        assert mock_commands.docker.build_image.call_args.args[0] == "reg.io/fn1"
        mock_commands.docker.create_container.assert_called_once_with("reg.io/fn1")
        mock_commands.docker.push_image.assert_called_once()
        assert mock_commands.docker.push_image.call_args.args[0] == "reg.io/fn1"
        assert len(outcome.applied) == 5

    def test_dry_run_end_to_end_against_empty_cluster(
        self, deployer: FunctionsDeployer, mock_commands: MagicMock
    ) -> None:
        """Dry run never touches the cluster even when the namespace is absent."""
        outcome = deployer.deploy(
            DeploymentRequest(
                name="fn1", registry="reg.io", namespace="missing", dry_run=True
            )
        )

        assert outcome.rendered is not None
        assert "namespace: missing" in outcome.rendered
        mock_commands.kubectl.assert_not_called()
        assert mock_commands.kubectl.mock_calls == []
        assert mock_commands.docker.mock_calls == []
