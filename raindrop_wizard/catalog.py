"""Integration and package manager catalogs.

Both catalogs are fixed records plus an explicit precedence list. Detection
walks the precedence list, so when two entries match the same project the
earlier one wins.
"""

from raindrop_wizard.models import (
    Integration,
    IntegrationDefinition,
    Manifest,
    PackageManager,
)

DOCS_URL = "https://www.raindrop.ai/docs"
ISSUES_URL = "https://github.com/raindrop/wizard/issues"
DUMMY_PROJECT_API_KEY = "_YOUR_RAINDROP_PROJECT_API_KEY_"

COMMON_IGNORE_PATTERNS = ("node_modules", "dist", "build", "public", "static")


# ==========================================================================
# Package managers
# ==========================================================================
BUN = PackageManager(
    name="bun",
    label="Bun",
    install_command=("bun", "add"),
    lockfiles=("bun.lockb", "bun.lock"),
    force_install_flag="--force",
)
YARN = PackageManager(
    name="yarn",
    label="Yarn",
    install_command=("yarn", "add"),
    lockfiles=("yarn.lock",),
    flags=("--ignore-workspace-root-check",),
    force_install_flag="--ignore-engines",
)
PNPM = PackageManager(
    name="pnpm",
    label="PNPM",
    install_command=("pnpm", "add"),
    lockfiles=("pnpm-lock.yaml",),
    flags=("--ignore-workspace-root-check",),
    force_install_flag="--force",
)
NPM = PackageManager(
    name="npm",
    label="NPM",
    install_command=("npm", "add"),
    lockfiles=("package-lock.json",),
    force_install_flag="--force",
)

PACKAGE_MANAGER_CONFIG: dict[str, PackageManager] = {
    pm.name: pm for pm in (BUN, YARN, PNPM, NPM)
}

PACKAGE_MANAGER_ORDER: tuple[str, ...] = ("bun", "yarn", "pnpm", "npm")

DEFAULT_PACKAGE_MANAGER = NPM


def package_manager_catalog() -> tuple[PackageManager, ...]:
    """All known package managers in precedence order."""
    return tuple(PACKAGE_MANAGER_CONFIG[name] for name in PACKAGE_MANAGER_ORDER)


# ==========================================================================
# Integrations
# ==========================================================================
def _has(package: str):
    def detect(manifest: Manifest) -> bool:
        return manifest.has_dependency(package)

    detect.__name__ = f"has_{package}"
    return detect


INTEGRATION_CONFIG: dict[Integration, IntegrationDefinition] = {
    Integration.TYPESCRIPT: IntegrationDefinition(
        integration=Integration.TYPESCRIPT,
        name="Typescript",
        filter_patterns=("**/*.{ts,tsx}",),
        ignore_patterns=COMMON_IGNORE_PATTERNS,
        detect=_has("next"),
        docs_url=f"{DOCS_URL}/sdk/typescript",
        required_package=("typescript", "Typescript"),
    ),
    Integration.PYTHON: IntegrationDefinition(
        integration=Integration.PYTHON,
        name="Python",
        filter_patterns=("**/*.py",),
        ignore_patterns=COMMON_IGNORE_PATTERNS + ("assets",),
        detect=_has("react"),
        docs_url=f"{DOCS_URL}/sdk/python",
    ),
    Integration.HTTP_API: IntegrationDefinition(
        integration=Integration.HTTP_API,
        name="HTTP API",
        filter_patterns=("**/*.{svelte,ts,js,jsx,tsx}",),
        ignore_patterns=COMMON_IGNORE_PATTERNS,
        detect=_has("@sveltejs/kit"),
        docs_url=f"{DOCS_URL}/sdk/http-api",
    ),
    Integration.VERCEL_AI_SDK: IntegrationDefinition(
        integration=Integration.VERCEL_AI_SDK,
        name="Vercel AI SDK",
        filter_patterns=("**/*.{ts,js,jsx,tsx}",),
        ignore_patterns=COMMON_IGNORE_PATTERNS,
        detect=_has("react-native"),
        docs_url=f"{DOCS_URL}/sdk/auto-vercel-ai",
    ),
}

INTEGRATION_ORDER: tuple[Integration, ...] = (
    Integration.TYPESCRIPT,
    Integration.PYTHON,
    Integration.HTTP_API,
    Integration.VERCEL_AI_SDK,
)


def integration_catalog(
    order: tuple[Integration, ...] = INTEGRATION_ORDER,
) -> tuple[IntegrationDefinition, ...]:
    """Integration definitions in detection order."""
    return tuple(INTEGRATION_CONFIG[integration] for integration in order)
