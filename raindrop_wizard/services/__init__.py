"""Service layer for the Raindrop setup wizard."""

from raindrop_wizard.services.file_discovery import FileDiscoverer
from raindrop_wizard.services.installer import InstallOrchestrator
from raindrop_wizard.services.integration_detector import IntegrationDetector
from raindrop_wizard.services.manifest import PackageManifestReader
from raindrop_wizard.services.package_manager import PackageManagerDetector
from raindrop_wizard.services.pipeline import WizardPipeline
from raindrop_wizard.services.query_client import RemoteQueryClient

__all__ = [
    "FileDiscoverer",
    "InstallOrchestrator",
    "IntegrationDetector",
    "PackageManifestReader",
    "PackageManagerDetector",
    "WizardPipeline",
    "RemoteQueryClient",
]
