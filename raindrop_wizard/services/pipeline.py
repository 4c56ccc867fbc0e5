"""The wizard pipeline.

Stages run strictly in sequence and each one either produces the input of
the next or aborts the run:

    read manifest -> detect integration -> resolve package manager
    -> install SDK -> discover files -> query service -> FileSelection
"""

import uuid
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from raindrop_wizard.catalog import (
    DUMMY_PROJECT_API_KEY,
    ISSUES_URL,
    integration_catalog,
)
from raindrop_wizard.config import Settings, get_settings
from raindrop_wizard.errors import WizardAborted, WizardError
from raindrop_wizard.models import (
    FileSelection,
    FilesToChangeResponse,
    IntegrationDefinition,
    Manifest,
    PackageManager,
    QueryRequest,
)
from raindrop_wizard.prompts import build_filter_files_prompt, get_installation_documentation
from raindrop_wizard.services.file_discovery import FileDiscoverer
from raindrop_wizard.services.installer import InstallOptions, InstallOrchestrator
from raindrop_wizard.services.integration_detector import IntegrationDetector
from raindrop_wizard.services.manifest import PackageManifestReader
from raindrop_wizard.services.package_manager import PackageManagerDetector
from raindrop_wizard.services.query_client import RemoteQueryClient
from raindrop_wizard.utils.interactive import Prompter, WizardUI
from raindrop_wizard.utils.logging import get_logger


@dataclass
class ProjectCredentials:
    """Key used for the SDK config and as bearer token for queries."""

    project_api_key: str
    is_placeholder: bool = False


class WizardPipeline:
    """Turns a project directory into the list of files to change.

    Collaborators are created from ``settings`` unless given explicitly.
    Without a prompter the pipeline never asks anything and falls back to
    deterministic defaults.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        prompter: Prompter | None = None,
        ui: WizardUI | None = None,
        manifest_reader: PackageManifestReader | None = None,
        integration_detector: IntegrationDetector | None = None,
        file_discoverer: FileDiscoverer | None = None,
        query_client: RemoteQueryClient | None = None,
        installer: InstallOrchestrator | None = None,
    ):
        self._settings = settings or get_settings()
        self._prompter = prompter if not self._settings.ci else None
        self._ui = ui or WizardUI()
        self._manifest_reader = manifest_reader or PackageManifestReader()
        self._integration_detector = integration_detector or IntegrationDetector()
        self._file_discoverer = file_discoverer or FileDiscoverer()
        self._query_client = query_client or RemoteQueryClient(settings=self._settings)
        self._installer = installer
        self.run_id = uuid.uuid4().hex[:12]

    @property
    def interactive(self) -> bool:
        return self._prompter is not None

    async def run(
        self,
        install_dir: Path | None = None,
        catalog: Sequence[IntegrationDefinition] | None = None,
        manager_catalog: Sequence[PackageManager] | None = None,
    ) -> FileSelection:
        """Run every stage and return the validated file selection.

        Args:
            install_dir: Project root (defaults to the configured directory)
            catalog: Integration definitions in detection order
            manager_catalog: Known package managers in precedence order

        Returns:
            Ordered files to create or modify

        Raises:
            WizardError: Any stage failure; nothing partial is returned
        """
        install_dir = Path(install_dir or self._settings.resolved_install_dir)
        catalog = tuple(catalog) if catalog is not None else integration_catalog()
        log = get_logger(__name__, run_id=self.run_id)
        log.info(f"Starting wizard in {install_dir}")

        manifest = self._manifest_reader.read(install_dir)
        definition = self.resolve_integration(manifest, catalog)
        log = get_logger(__name__, run_id=self.run_id, integration=definition.integration.value)

        try:
            return await self._setup(install_dir, manifest, definition, manager_catalog, log)
        except WizardError as e:
            if e.docs_url is None:
                e.docs_url = definition.docs_url
            raise

    async def _setup(
        self,
        install_dir: Path,
        manifest: Manifest,
        definition: IntegrationDefinition,
        manager_catalog: Sequence[PackageManager] | None,
        log,
    ) -> FileSelection:
        self._ui.note(
            f"The Raindrop {definition.name} wizard will help you set up Raindrop "
            "for your application.\nThank you for using Raindrop :)"
        )

        self.ask_for_ai_consent(definition)
        self.ensure_package_is_installed(manifest, definition)
        credentials = self.get_project_credentials()

        detector = PackageManagerDetector(catalog=manager_catalog)
        manager = detector.select(install_dir, self.interactive, self._prompter)
        log.info(f"Using package manager {manager.name}")

        installer = self._installer or InstallOrchestrator(
            settings=self._settings,
            detector=detector,
            manifest_reader=self._manifest_reader,
            prompter=self._prompter,
            ui=self._ui,
        )
        result = await installer.install(
            definition.sdk_package,
            install_dir,
            manager=manager,
            options=InstallOptions(
                force_install=self._settings.force_install,
                already_installed=manifest.has_dependency(definition.sdk_package),
                ask_before_updating=False,
            ),
        )
        manager = result.package_manager or manager

        # The install rewrote package.json
        manifest = self._manifest_reader.read(install_dir)
        if not manifest.has_dependency(definition.sdk_package):
            log.warning(f"{definition.sdk_package} is not declared in package.json after install")

        relevant_files = self._file_discoverer.discover(
            install_dir,
            definition.filter_patterns,
            definition.ignore_patterns,
        )
        log.info(f"Found {len(relevant_files)} candidate files")

        selection = await self.get_files_to_change(definition, relevant_files, credentials)
        log.info(f"Selected {len(selection)} files to change")
        return selection

    def resolve_integration(
        self,
        manifest: Manifest,
        catalog: Sequence[IntegrationDefinition],
    ) -> IntegrationDefinition:
        """Integration from flags, detection, or the user, in that order."""
        if self._settings.integration:
            tag = self._settings.integration.strip().lower()
            for definition in catalog:
                if definition.integration.value == tag:
                    return definition
            raise WizardError(f"Unknown integration: {self._settings.integration}")

        detected = self._integration_detector.detect(manifest, catalog)
        if detected:
            self._ui.success(f"Detected integration: {detected.name}")
            return detected

        if not self.interactive:
            raise WizardError(
                "Could not detect which integration to set up. Pass --integration to choose one."
            )

        return self._prompter.select(
            "What do you want to set up?",
            [(definition.name, definition) for definition in catalog],
        )

    def ask_for_ai_consent(self, definition: IntegrationDefinition) -> None:
        if self._settings.default or not self.interactive:
            return

        consent = self._prompter.confirm(
            "This setup wizard uses AI, are you happy to continue? ✨",
            default=True,
        )
        if not consent:
            raise WizardAborted(
                f"The {definition.name} wizard requires AI to get setup right now. "
                f"Please view the docs to setup {definition.name} manually instead: "
                f"{definition.docs_url}",
                status=0,
                docs_url=definition.docs_url,
            )

    def ensure_package_is_installed(
        self,
        manifest: Manifest,
        definition: IntegrationDefinition,
    ) -> None:
        """Check that the framework the SDK builds on is a dependency."""
        if definition.required_package is None:
            return

        package_id, package_name = definition.required_package
        if manifest.has_dependency(package_id):
            return

        if not self.interactive:
            self._ui.warning(f"{package_name} does not seem to be installed. Continuing anyway.")
            return

        proceed = self._prompter.confirm(
            f"{package_name} does not seem to be installed. Do you still want to continue?",
            default=False,
        )
        if not proceed:
            raise WizardAborted("Wizard setup cancelled.", status=0)

    def get_project_credentials(self) -> ProjectCredentials:
        """API key from flags, or asked for; placeholder when none is given."""
        if self._settings.api_key:
            self._ui.info("Using provided API key")
            return ProjectCredentials(project_api_key=self._settings.api_key)

        api_key = ""
        if self.interactive:
            api_key = self._prompter.text("Enter your project API key: ", placeholder=None)

        if api_key:
            return ProjectCredentials(project_api_key=api_key)

        get_logger(__name__, run_id=self.run_id).warning(
            "No project API key provided, using placeholder"
        )
        self._ui.error(
            "Didn't receive a project API key. This shouldn't happen :(\n\n"
            f"Please let us know if you think this is a bug in the wizard:\n{ISSUES_URL}"
        )
        self._ui.info(
            f'In the meantime, we\'ll add a dummy project API key ("{DUMMY_PROJECT_API_KEY}") '
            "for you to replace later."
        )
        return ProjectCredentials(project_api_key=DUMMY_PROJECT_API_KEY, is_placeholder=True)

    async def get_files_to_change(
        self,
        definition: IntegrationDefinition,
        relevant_files: list[str],
        credentials: ProjectCredentials,
    ) -> FileSelection:
        """Ask the query service which candidate files need changes."""
        documentation = get_installation_documentation(definition, credentials.project_api_key)
        self._ui.info(f"Reviewing Raindrop documentation for {definition.name}")

        request = QueryRequest(
            message=build_filter_files_prompt(definition, relevant_files, documentation),
            output_schema=FilesToChangeResponse,
            access_token=credentials.project_api_key,
            region=self._settings.region,
        )

        with self._ui.spinner("Selecting files to change..."):
            response = await self._query_client.query(request)

        duplicates = [path for path, count in Counter(response.files).items() if count > 1]
        if duplicates:
            get_logger(__name__, run_id=self.run_id).warning(
                f"Query service returned duplicate files: {duplicates}"
            )

        self._ui.success(f"Found {len(response.files)} files to change")
        return FileSelection(integration=definition.integration, files=tuple(response.files))
