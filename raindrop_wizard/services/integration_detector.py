"""Integration detection from the project manifest."""

from typing import Sequence

from raindrop_wizard.models import IntegrationDefinition, Manifest
from raindrop_wizard.utils.logging import get_logger

logger = get_logger(__name__)


class IntegrationDetector:
    """Finds the integration that applies to a project.

    Catalog order is the tie-break: several predicates can match the same
    manifest and the first one in the catalog wins.
    """

    def detect(
        self,
        manifest: Manifest,
        catalog: Sequence[IntegrationDefinition],
    ) -> IntegrationDefinition | None:
        """Return the first definition whose predicate accepts ``manifest``.

        Args:
            manifest: Project manifest snapshot
            catalog: Integration definitions in precedence order

        Returns:
            Matching definition, or None if no predicate matches
        """
        for definition in catalog:
            if definition.detect(manifest):
                logger.info(f"Detected integration: {definition.name}")
                return definition

        logger.info("No integration detected")
        return None
