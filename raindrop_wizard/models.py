"""Data models shared across the wizard pipeline.

These models define the shape of data passed between stages:
- Manifest: read-only snapshot of the project's package.json
- PackageManager: one entry of the package manager catalog
- IntegrationDefinition: one entry of the integration catalog
- QueryRequest / FilesToChangeResponse: the remote query contract
- FileSelection: the pipeline result
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from raindrop_wizard.config import CloudRegion


class Integration(str, Enum):
    """Integrations the wizard can set up."""

    TYPESCRIPT = "typescript"
    PYTHON = "python"
    HTTP_API = "http_api"
    VERCEL_AI_SDK = "vercel_ai_sdk"


DEPENDENCY_SCOPES = ("dependencies", "devDependencies")


@dataclass(frozen=True)
class Manifest:
    """Parsed package.json.

    The raw document is kept so unrelated keys survive a write. Accessors
    return copies; use ``with_dependency`` to derive an updated manifest.
    """

    path: Path
    data: dict[str, Any] = field(default_factory=dict, repr=False)

    # Equal manifests compare equal, but the mutable document is not hashable
    __hash__ = None

    def _scope(self, scope: str) -> dict[str, str]:
        value = self.data.get(scope)
        if not isinstance(value, dict):
            return {}
        return dict(value)

    @property
    def dependencies(self) -> dict[str, str]:
        return self._scope("dependencies")

    @property
    def dev_dependencies(self) -> dict[str, str]:
        return self._scope("devDependencies")

    def has_dependency(self, name: str) -> bool:
        """True if ``name`` appears in either dependency scope."""
        return any(name in self._scope(scope) for scope in DEPENDENCY_SCOPES)

    def get_version(self, name: str) -> str | None:
        """Version range declared for ``name``, production scope first."""
        for scope in DEPENDENCY_SCOPES:
            version = self._scope(scope).get(name)
            if version is not None:
                return str(version)
        return None

    def with_dependency(
        self,
        name: str,
        version_range: str,
        dev: bool = False,
    ) -> "Manifest":
        """Return a new manifest with ``name`` declared in the chosen scope."""
        data = copy.deepcopy(self.data)
        scope = "devDependencies" if dev else "dependencies"
        deps = data.get(scope)
        if not isinstance(deps, dict):
            deps = {}
        deps[name] = version_range
        data[scope] = deps
        return Manifest(path=self.path, data=data)


@dataclass(frozen=True)
class PackageManager:
    """A package manager the wizard knows how to drive."""

    name: str
    label: str
    install_command: tuple[str, ...]
    lockfiles: tuple[str, ...]
    flags: tuple[str, ...] = ()
    force_install_flag: str | None = None

    def build_command(
        self,
        package_name: str,
        force_install: bool = False,
        extra_flags: tuple[str, ...] = (),
    ) -> list[str]:
        """Build the install argument vector for ``package_name``.

        Args:
            package_name: Identifier passed to the package manager CLI
            force_install: Append the manager's force flag
            extra_flags: Additional flags appended last

        Returns:
            Command as list of strings
        """
        command = [*self.install_command, package_name, *self.flags]
        if force_install and self.force_install_flag:
            command.append(self.force_install_flag)
        command.extend(extra_flags)
        return command


@dataclass(frozen=True)
class IntegrationDefinition:
    """Catalog entry describing how to detect and set up one integration."""

    integration: Integration
    name: str
    filter_patterns: tuple[str, ...]
    ignore_patterns: tuple[str, ...]
    detect: Callable[[Manifest], bool] = field(compare=False, repr=False)
    docs_url: str
    sdk_package: str = "raindrop-ai"
    # (package id, human readable name) that should already be installed
    required_package: tuple[str, str] | None = None
    filter_files_rules: str = ""


class FilesToChangeResponse(BaseModel):
    """Files the query service wants to create or edit, new files first."""

    model_config = ConfigDict(extra="forbid")

    files: list[str] = Field(
        description="File paths in processing order: new files first, then files to update."
    )


ResponseT = TypeVar("ResponseT", bound=BaseModel)


@dataclass(frozen=True)
class QueryRequest(Generic[ResponseT]):
    """A single structured question for the query service."""

    message: str
    output_schema: type[ResponseT]
    access_token: str
    region: CloudRegion | None = None


@dataclass(frozen=True)
class FileSelection:
    """Ordered files to create or modify, as returned by the query service."""

    integration: Integration
    files: tuple[str, ...] = ()

    def __iter__(self):
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)
