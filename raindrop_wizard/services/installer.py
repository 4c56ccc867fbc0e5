"""Dependency installation with the project's package manager.

IMPORTANT: installing a package modifies package.json. Re-read the manifest
after ``install`` before relying on its dependency scopes.
"""

import asyncio
import json
import os
import time
from dataclasses import dataclass
from pathlib import Path

from raindrop_wizard.config import Settings, get_settings
from raindrop_wizard.errors import InstallFailed, ManifestNotFound, ManifestParseError
from raindrop_wizard.models import PackageManager
from raindrop_wizard.services.manifest import PackageManifestReader
from raindrop_wizard.services.package_manager import PackageManagerDetector
from raindrop_wizard.utils.interactive import Prompter, WizardUI
from raindrop_wizard.utils.logging import get_logger
from raindrop_wizard.utils.versions import fulfills_version_range

logger = get_logger(__name__)

ERROR_LOG_PREFIX = "raindrop-wizard-installation-error-"
LEGACY_PEER_DEPS_FLAG = "--legacy-peer-deps"

# Most packages aren't compatible with React 19 yet
PEER_DEPS_SENSITIVE_PACKAGE = "react"
PEER_DEPS_SENSITIVE_VERSION = "19.0.0"


@dataclass
class InstallOptions:
    """How to install a package."""

    force_install: bool = False
    already_installed: bool = False
    ask_before_updating: bool = True
    display_label: str | None = None


@dataclass
class InstallResult:
    """Outcome of an install request."""

    package_manager: PackageManager | None
    installed: bool


@dataclass
class CommandOutput:
    """Captured output of the install command."""

    returncode: int | None
    stdout: str
    stderr: str


class InstallOrchestrator:
    """Runs the install command for a package and records failures.

    Responsibilities:
    - Ask before updating an already installed package
    - Resolve the package manager when the caller has none yet
    - Build the argument vector, including force and compatibility flags
    - Run it inside the install directory and wait for it
    - Write a diagnostic log file when it fails
    """

    def __init__(
        self,
        settings: Settings | None = None,
        detector: PackageManagerDetector | None = None,
        manifest_reader: PackageManifestReader | None = None,
        prompter: Prompter | None = None,
        ui: WizardUI | None = None,
        log_dir: Path | None = None,
    ):
        self._settings = settings or get_settings()
        self._detector = detector or PackageManagerDetector()
        self._manifest_reader = manifest_reader or PackageManifestReader()
        self._prompter = prompter
        self._ui = ui
        self._log_dir = log_dir

    async def install(
        self,
        package_name: str,
        install_dir: Path,
        manager: PackageManager | None = None,
        options: InstallOptions | None = None,
    ) -> InstallResult:
        """Install or update ``package_name`` in ``install_dir``.

        Args:
            package_name: Identifier for the package manager CLI (e.g. ``raindrop-ai@^1``)
            install_dir: Project root the command runs in
            manager: Package manager to use, selected on demand when None
            options: Install options

        Returns:
            InstallResult with the manager that was used

        Raises:
            InstallFailed: If the command cannot start, times out or exits non-zero
        """
        options = options or InstallOptions()
        install_dir = Path(install_dir)
        label = options.display_label or package_name

        if options.already_installed and options.ask_before_updating and self._prompter:
            should_update = self._prompter.confirm(
                f"The {label} package is already installed. "
                "Do you want to update it to the latest version?"
            )
            if not should_update:
                logger.info(f"Skipping update of {label}")
                return InstallResult(package_manager=None, installed=False)

        if manager is None:
            manager = self._detector.select(
                install_dir,
                interactive=self._prompter is not None,
                prompter=self._prompter,
            )

        extra_flags: tuple[str, ...] = ()
        if manager.name == "npm" and self.needs_legacy_peer_deps(install_dir):
            extra_flags = (LEGACY_PEER_DEPS_FLAG,)

        command = manager.build_command(
            package_name,
            force_install=options.force_install,
            extra_flags=extra_flags,
        )

        verb = "Updating" if options.already_installed else "Installing"
        logger.info(f"{verb} {label} with {manager.label}: {' '.join(command)}")

        if self._ui:
            with self._ui.spinner(f"{verb} {label} with {manager.label}."):
                output = await self._run(command, install_dir)
        else:
            output = await self._run(command, install_dir)

        if output.returncode != 0:
            log_path = self.write_error_log(output)
            logger.error(
                f"Install command failed with code {output.returncode}: {output.stderr[:500]}"
            )
            raise InstallFailed(
                f"Installing {label} with {manager.label} failed: "
                f"{output.stderr.strip() or output.stdout.strip() or 'unknown error'}",
                log_path=log_path,
            )

        done = "Updated" if options.already_installed else "Installed"
        logger.info(f"{done} {label} with {manager.label}")
        if self._ui:
            self._ui.success(f"{done} {label} with {manager.label}.")

        return InstallResult(package_manager=manager, installed=True)

    def needs_legacy_peer_deps(self, install_dir: Path) -> bool:
        """True if the project pins a toolchain that breaks peer dependency checks."""
        try:
            manifest = self._manifest_reader.read(install_dir)
        except (ManifestNotFound, ManifestParseError):
            return False

        version = manifest.get_version(PEER_DEPS_SENSITIVE_PACKAGE)
        if not version:
            return False

        return fulfills_version_range(
            version,
            PEER_DEPS_SENSITIVE_VERSION,
            can_be_latest=True,
        )

    async def _run(self, command: list[str], install_dir: Path) -> CommandOutput:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(install_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._get_install_env(install_dir),
            )
        except OSError as e:
            logger.error(f"Failed to start install command: {e}")
            return CommandOutput(returncode=None, stdout="", stderr=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self._settings.install_timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Install command timeout")
            process.kill()
            await process.wait()
            return CommandOutput(
                returncode=None,
                stdout="",
                stderr=f"Installation timeout exceeded ({self._settings.install_timeout:.0f} seconds)",
            )

        return CommandOutput(
            returncode=process.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )

    def write_error_log(self, output: CommandOutput) -> Path | None:
        """Persist raw stdout/stderr next to where the wizard was started.

        Returns:
            Path of the log file, or None if it could not be written
        """
        log_dir = self._log_dir or Path(os.getcwd())
        log_path = log_dir / f"{ERROR_LOG_PREFIX}{int(time.time() * 1000)}.log"

        try:
            log_path.write_text(
                json.dumps({"stdout": output.stdout, "stderr": output.stderr}),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(f"Failed to write install error log: {e}")
            return None

        logger.info(f"Wrote install error log to {log_path}")
        return log_path

    def _get_install_env(self, install_dir: Path) -> dict[str, str]:
        """Environment for the package manager process."""
        env = os.environ.copy()

        node_bin = install_dir / "node_modules" / ".bin"
        if "PATH" in env:
            env["PATH"] = f"{node_bin}{os.pathsep}{env['PATH']}"
        else:
            env["PATH"] = str(node_bin)

        # Disable update checks
        env["NO_UPDATE_NOTIFIER"] = "1"
        env["NPM_CONFIG_UPDATE_NOTIFIER"] = "false"

        return env
