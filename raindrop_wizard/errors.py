"""Exceptions raised by the wizard pipeline.

Every stage failure is terminal for the run. The CLI decides what the user
sees based on the exception type.
"""

from pathlib import Path


class WizardError(Exception):
    """Base class for all wizard failures."""

    def __init__(self, message: str, docs_url: str | None = None):
        super().__init__(message)
        self.message = message
        self.docs_url = docs_url


# ==========================================================================
# Manifest
# ==========================================================================
class ManifestNotFound(WizardError):
    """package.json is missing from the install directory."""


class ManifestParseError(WizardError):
    """package.json exists but is not a valid JSON object."""


class ManifestWriteError(WizardError):
    """package.json could not be written or did not read back identically."""


# ==========================================================================
# Install
# ==========================================================================
class InstallFailed(WizardError):
    """The install command failed to spawn or exited non-zero."""

    def __init__(self, message: str, log_path: Path | None = None):
        super().__init__(message)
        self.log_path = log_path


# ==========================================================================
# Remote query
# ==========================================================================
class RateLimited(WizardError):
    """The query service answered with HTTP 429."""


class InvalidResponseShape(WizardError):
    """The query service answered with a payload that fails the schema."""


class TransportError(WizardError):
    """Any other failure talking to the query service."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# ==========================================================================
# User decisions
# ==========================================================================
class WizardCancelled(WizardError):
    """The user cancelled at a prompt."""


class WizardAborted(WizardError):
    """The user declined a precondition; exit with ``status``."""

    def __init__(self, message: str, status: int = 0, docs_url: str | None = None):
        super().__init__(message, docs_url=docs_url)
        self.status = status
