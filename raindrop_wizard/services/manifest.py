"""Reading and writing the project's package.json."""

import json
import os
import tempfile
from pathlib import Path

from raindrop_wizard.errors import ManifestNotFound, ManifestParseError, ManifestWriteError
from raindrop_wizard.models import Manifest
from raindrop_wizard.utils.logging import get_logger

logger = get_logger(__name__)

MANIFEST_FILENAME = "package.json"


class PackageManifestReader:
    """Loads, queries and writes package.json for an install directory."""

    def read(self, install_dir: Path) -> Manifest:
        """Read and parse package.json from ``install_dir``.

        Args:
            install_dir: Project root

        Returns:
            Manifest snapshot

        Raises:
            ManifestNotFound: If package.json does not exist or is unreadable
            ManifestParseError: If it is not a JSON object
        """
        path = Path(install_dir) / MANIFEST_FILENAME

        try:
            contents = path.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError, PermissionError) as e:
            logger.error(f"Could not read {path}: {e}")
            raise ManifestNotFound(
                "Could not find package.json. Make sure to run the wizard in the root of your app!"
            )
        except UnicodeDecodeError as e:
            logger.error(f"Failed to decode {path}: {e}")
            raise ManifestParseError(
                "Unable to parse your package.json. Make sure it has a valid format!"
            )

        try:
            data = json.loads(contents)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse {path}: {e}")
            raise ManifestParseError(
                "Unable to parse your package.json. Make sure it has a valid format!"
            )

        if not isinstance(data, dict):
            raise ManifestParseError(
                "Unable to parse your package.json. Make sure it has a valid format!"
            )

        logger.debug(f"Read manifest from {path}")
        return Manifest(path=path, data=data)

    def has_dependency(self, manifest: Manifest, name: str) -> bool:
        return manifest.has_dependency(name)

    def write(self, manifest: Manifest, install_dir: Path) -> None:
        """Write ``manifest`` to ``install_dir/package.json`` and verify it.

        The document goes to a temporary file in the same directory, is
        flushed to disk and then atomically replaces package.json. The result
        is read back and compared before returning.

        Raises:
            ManifestWriteError: On any I/O failure or if the read-back differs
        """
        install_dir = Path(install_dir)
        path = install_dir / MANIFEST_FILENAME
        payload = json.dumps(manifest.data, indent=2) + "\n"

        tmp_path: str | None = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=".package.json.", suffix=".tmp", dir=install_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None

            written = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to write {path}: {e}")
            raise ManifestWriteError("Unable to update your package.json.")
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        if written != manifest.data:
            raise ManifestWriteError("Unable to update your package.json.")

        logger.info(f"Updated {path}")
