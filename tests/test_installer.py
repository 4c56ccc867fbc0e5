"""Tests for the install orchestrator.

Most tests run a real child process: a fake package manager whose install
command is the current Python interpreter.
"""

import json
import re
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from raindrop_wizard.catalog import NPM, YARN
from raindrop_wizard.errors import InstallFailed
from raindrop_wizard.models import PackageManager
from raindrop_wizard.services.installer import (
    ERROR_LOG_PREFIX,
    LEGACY_PEER_DEPS_FLAG,
    CommandOutput,
    InstallOptions,
    InstallOrchestrator,
)

ERROR_LOG_RE = re.compile(rf"^{ERROR_LOG_PREFIX}\d+\.log$")


def python_manager(code: str) -> PackageManager:
    """Package manager that runs ``code`` with the package name as argv[1]."""
    return PackageManager(
        name="fake",
        label="Fake",
        install_command=(sys.executable, "-c", code),
        lockfiles=("fake.lock",),
    )


SUCCEED = (
    "import os, sys\n"
    "with open('installed.txt', 'w') as f:\n"
    "    f.write(os.getcwd() + '\\n' + sys.argv[1])\n"
)

FAIL_EACCES = (
    "import sys\n"
    "print('resolving dependencies')\n"
    "sys.stderr.write('npm ERR! code EACCES\\n')\n"
    "sys.exit(1)\n"
)


@pytest.fixture
def orchestrator(test_settings, tmp_path) -> InstallOrchestrator:
    return InstallOrchestrator(settings=test_settings, log_dir=tmp_path)


class TestInstallCommand:
    """Tests that run the install command as a child process."""

    @pytest.mark.asyncio
    async def test_successful_install(self, orchestrator, temp_workspace):
        manager = python_manager(SUCCEED)

        result = await orchestrator.install("raindrop-ai", temp_workspace, manager=manager)

        assert result.installed is True
        assert result.package_manager == manager
        cwd, package = (temp_workspace / "installed.txt").read_text().splitlines()
        assert Path(cwd).resolve() == temp_workspace.resolve()
        assert package == "raindrop-ai"

    @pytest.mark.asyncio
    async def test_failed_install_writes_error_log(
        self, test_settings, temp_workspace, tmp_path, monkeypatch
    ):
        """Test that a non-zero exit leaves the raw output in the current directory."""
        monkeypatch.chdir(tmp_path)
        orchestrator = InstallOrchestrator(settings=test_settings)

        with pytest.raises(InstallFailed) as exc_info:
            await orchestrator.install(
                "raindrop-ai", temp_workspace, manager=python_manager(FAIL_EACCES)
            )

        error = exc_info.value
        assert "EACCES" in error.message
        assert error.log_path is not None
        assert error.log_path.parent.resolve() == tmp_path.resolve()
        assert ERROR_LOG_RE.match(error.log_path.name)

        logged = json.loads(error.log_path.read_text())
        assert "EACCES" in logged["stderr"]
        assert "resolving dependencies" in logged["stdout"]

    @pytest.mark.asyncio
    async def test_missing_binary_fails(self, orchestrator, temp_workspace, tmp_path):
        manager = PackageManager(
            name="ghost",
            label="Ghost",
            install_command=("raindrop-wizard-no-such-package-manager", "add"),
            lockfiles=(),
        )

        with pytest.raises(InstallFailed) as exc_info:
            await orchestrator.install("raindrop-ai", temp_workspace, manager=manager)

        assert exc_info.value.log_path is not None
        assert exc_info.value.log_path.parent == tmp_path

    @pytest.mark.asyncio
    async def test_timeout_kills_the_command(self, test_settings, temp_workspace, tmp_path):
        settings = test_settings.model_copy(update={"install_timeout": 0.5})
        orchestrator = InstallOrchestrator(settings=settings, log_dir=tmp_path)

        with pytest.raises(InstallFailed) as exc_info:
            await orchestrator.install(
                "raindrop-ai",
                temp_workspace,
                manager=python_manager("import time\ntime.sleep(30)\n"),
            )

        assert "timeout" in exc_info.value.message.lower()

    @pytest.mark.asyncio
    async def test_environment_disables_update_checks(self, orchestrator, temp_workspace):
        code = (
            "import os\n"
            "with open('env.json', 'w') as f:\n"
            "    f.write(os.environ.get('NO_UPDATE_NOTIFIER', ''))\n"
        )

        await orchestrator.install("raindrop-ai", temp_workspace, manager=python_manager(code))

        assert (temp_workspace / "env.json").read_text() == "1"


class TestInstallPolicy:
    """Tests for the decisions taken before the command runs."""

    @pytest.fixture
    def ok_output(self) -> CommandOutput:
        return CommandOutput(returncode=0, stdout="", stderr="")

    @pytest.mark.asyncio
    async def test_declined_update_runs_nothing(
        self, test_settings, temp_workspace, scripted_prompter, ok_output
    ):
        prompter = scripted_prompter(confirm=[False])
        orchestrator = InstallOrchestrator(settings=test_settings, prompter=prompter)

        with patch.object(orchestrator, "_run", AsyncMock(return_value=ok_output)) as run:
            result = await orchestrator.install(
                "raindrop-ai",
                temp_workspace,
                manager=NPM,
                options=InstallOptions(already_installed=True),
            )

        assert result.installed is False
        assert result.package_manager is None
        run.assert_not_called()
        assert prompter.questions[0][0] == "confirm"

    @pytest.mark.asyncio
    async def test_update_without_asking(
        self, test_settings, temp_workspace, scripted_prompter, ok_output
    ):
        prompter = scripted_prompter()
        orchestrator = InstallOrchestrator(settings=test_settings, prompter=prompter)

        with patch.object(orchestrator, "_run", AsyncMock(return_value=ok_output)) as run:
            result = await orchestrator.install(
                "raindrop-ai",
                temp_workspace,
                manager=NPM,
                options=InstallOptions(already_installed=True, ask_before_updating=False),
            )

        assert result.installed is True
        run.assert_awaited_once()
        assert prompter.questions == []

    @pytest.mark.asyncio
    async def test_manager_selected_from_lockfile(self, orchestrator, temp_workspace, ok_output):
        (temp_workspace / "yarn.lock").write_text("")

        with patch.object(orchestrator, "_run", AsyncMock(return_value=ok_output)) as run:
            result = await orchestrator.install("raindrop-ai", temp_workspace)

        assert result.package_manager == YARN
        command, cwd = run.call_args.args
        assert command[:3] == ["yarn", "add", "raindrop-ai"]
        assert cwd == temp_workspace

    @pytest.mark.asyncio
    async def test_force_install_flag(self, orchestrator, temp_workspace, ok_output):
        with patch.object(orchestrator, "_run", AsyncMock(return_value=ok_output)) as run:
            await orchestrator.install(
                "raindrop-ai",
                temp_workspace,
                manager=NPM,
                options=InstallOptions(force_install=True),
            )

        assert "--force" in run.call_args.args[0]

    @pytest.mark.parametrize(
        "react_version, manager, expected",
        [
            ("^19.0.0", NPM, True),
            ("latest", NPM, True),
            ("^18.2.0", NPM, False),
            ("<19.0.0", NPM, False),
            ("^19.0.0", YARN, False),
        ],
    )
    @pytest.mark.asyncio
    async def test_legacy_peer_deps(
        self,
        orchestrator,
        temp_workspace,
        write_package_json,
        ok_output,
        react_version,
        manager,
        expected,
    ):
        """Test that npm gets --legacy-peer-deps only for React 19 projects."""
        write_package_json({"dependencies": {"react": react_version}})

        with patch.object(orchestrator, "_run", AsyncMock(return_value=ok_output)) as run:
            await orchestrator.install("raindrop-ai", temp_workspace, manager=manager)

        assert (LEGACY_PEER_DEPS_FLAG in run.call_args.args[0]) is expected

    def test_no_manifest_needs_no_legacy_flag(self, orchestrator, temp_workspace):
        assert orchestrator.needs_legacy_peer_deps(temp_workspace) is False


class TestErrorLog:
    """Tests for write_error_log()."""

    def test_log_contains_raw_output(self, orchestrator, tmp_path):
        path = orchestrator.write_error_log(CommandOutput(returncode=1, stdout="out", stderr="err"))

        assert path.parent == tmp_path
        assert json.loads(path.read_text()) == {"stdout": "out", "stderr": "err"}

    def test_unwritable_directory_returns_none(self, test_settings, tmp_path):
        orchestrator = InstallOrchestrator(settings=test_settings, log_dir=tmp_path / "missing")

        assert orchestrator.write_error_log(CommandOutput(1, "", "")) is None
