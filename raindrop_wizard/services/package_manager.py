"""Package manager detection and selection."""

from pathlib import Path
from typing import Sequence

from raindrop_wizard.catalog import DEFAULT_PACKAGE_MANAGER, package_manager_catalog
from raindrop_wizard.models import PackageManager
from raindrop_wizard.utils.interactive import Prompter
from raindrop_wizard.utils.logging import get_logger

logger = get_logger(__name__)


class PackageManagerDetector:
    """Infers the package manager(s) of a project from its lockfiles."""

    def __init__(self, catalog: Sequence[PackageManager] | None = None):
        self._catalog = tuple(catalog) if catalog is not None else package_manager_catalog()

    def detect_all(self, install_dir: Path) -> list[PackageManager]:
        """Return every manager with a lockfile in ``install_dir``.

        Each manager appears at most once, in catalog order.
        """
        install_dir = Path(install_dir)
        detected: list[PackageManager] = []
        for manager in self._catalog:
            if manager in detected:
                continue
            if any((install_dir / lockfile).is_file() for lockfile in manager.lockfiles):
                detected.append(manager)

        logger.debug(f"Detected package managers: {[m.name for m in detected]}")
        return detected

    def select(
        self,
        install_dir: Path,
        interactive: bool,
        prompter: Prompter | None = None,
    ) -> PackageManager:
        """Choose the package manager for this run.

        - exactly one detected: use it
        - non-interactive: first detected, or npm when none is found
        - interactive with zero or several: ask the prompter

        Args:
            install_dir: Project root
            interactive: Whether the user may be asked
            prompter: Asks the user when a choice is needed

        Returns:
            Selected package manager
        """
        detected = self.detect_all(install_dir)

        if len(detected) == 1:
            return detected[0]

        if not interactive or prompter is None:
            selected = detected[0] if detected else DEFAULT_PACKAGE_MANAGER
            logger.info(f"Auto-selected package manager: {selected.label}")
            return selected

        options = detected or list(self._catalog)
        message = (
            "Multiple package managers detected. Please select one:"
            if len(detected) > 1
            else "Please select your package manager."
        )
        selected = prompter.select(message, [(pm.label, pm) for pm in options])
        logger.info(f"User selected package manager: {selected.label}")
        return selected
