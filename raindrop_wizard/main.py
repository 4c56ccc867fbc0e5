"""Command line entry point.

Parses flags into ``Settings``, validates CI mode, runs the pipeline and
turns its outcome into a message and an exit status.
"""

import asyncio
import sys

import click
from click.core import ParameterSource
from pydantic import ValidationError

from raindrop_wizard import __version__
from raindrop_wizard.catalog import DOCS_URL, ISSUES_URL
from raindrop_wizard.config import Settings
from raindrop_wizard.errors import (
    InstallFailed,
    ManifestNotFound,
    ManifestParseError,
    RateLimited,
    WizardAborted,
    WizardCancelled,
    WizardError,
)
from raindrop_wizard.models import FileSelection, Integration
from raindrop_wizard.services.pipeline import WizardPipeline
from raindrop_wizard.utils.interactive import ConsolePrompter, Prompter, WizardUI
from raindrop_wizard.utils.logging import get_logger, setup_logging, shutdown_logging

logger = get_logger(__name__)


def is_non_interactive_environment() -> bool:
    return not sys.stdin.isatty()


def validate_ci_settings(settings: Settings) -> str | None:
    """Error message for a CI run that is missing a required flag."""
    if not settings.region:
        return "CI mode requires --region (us or eu)"
    if not settings.api_key:
        return "CI mode requires --api-key (personal API key)"
    if not settings.install_dir:
        return "CI mode requires --install-dir (directory to install Raindrop in)"
    return None


def report_selection(ui: WizardUI, selection: FileSelection) -> None:
    if not selection.files:
        ui.outro("No files need changes.")
        return
    ui.note("\n".join(selection.files))
    ui.outro("Raindrop setup complete.")


async def run_wizard(
    settings: Settings,
    prompter: Prompter | None = None,
    ui: WizardUI | None = None,
) -> int:
    """Run the wizard once and return the process exit status."""
    ui = ui or WizardUI()
    pipeline = WizardPipeline(settings=settings, prompter=prompter, ui=ui)
    setup_logging(
        debug=settings.debug,
        log_file_path=settings.log_file_path,
        run_id=pipeline.run_id,
    )

    ui.intro("Welcome to the Raindrop setup wizard ✨")

    try:
        selection = await pipeline.run(settings.resolved_install_dir)
    except RateLimited:
        ui.error("Wizard usage limit reached. Please try again later.")
        return 1
    except InstallFailed as e:
        log_hint = f" ({e.log_path})" if e.log_path else ""
        ui.error(
            f"Encountered the following error during installation:\n\n{e.message}\n\n"
            f"The wizard has created a `raindrop-wizard-installation-error-*.log` file{log_hint}. "
            "If you think this issue is caused by the Raindrop wizard, create an issue on "
            f"GitHub and include the log file's content:\n{ISSUES_URL}"
        )
        ui.outro("Installation failed.")
        return 1
    except WizardCancelled as e:
        ui.outro(
            f"Wizard setup cancelled. You can read the documentation at "
            f"{e.docs_url or DOCS_URL} to continue with the setup manually."
        )
        return 0
    except WizardAborted as e:
        ui.outro(e.message)
        return e.status
    except (ManifestNotFound, ManifestParseError) as e:
        ui.error(e.message)
        ui.outro("Wizard setup cancelled.")
        return 1
    except WizardError as e:
        logger.error(f"Wizard failed: {e.message}")
        ui.error(
            f"Something went wrong. You can read the documentation at "
            f"{e.docs_url or DOCS_URL} to set up Raindrop manually."
        )
        return 1
    except Exception as e:
        logger.exception(f"Unexpected wizard error: {e}")
        ui.error(
            f"Something went wrong. You can read the documentation at "
            f"{DOCS_URL} to set up Raindrop manually."
        )
        return 1
    finally:
        shutdown_logging()

    report_selection(ui, selection)
    return 0


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--debug", is_flag=True, help="Enable verbose logging\nenv: RAINDROP_WIZARD_DEBUG")
@click.option(
    "--default/--no-default",
    default=True,
    help="Use default options for all prompts\nenv: RAINDROP_WIZARD_DEFAULT",
)
@click.option(
    "--signup",
    is_flag=True,
    help="Create a new Raindrop account during setup\nenv: RAINDROP_WIZARD_SIGNUP",
)
@click.option(
    "--api-key",
    help="Raindrop personal API key for authentication\nenv: RAINDROP_WIZARD_API_KEY",
)
@click.option(
    "--region",
    type=click.Choice(["us", "eu"], case_sensitive=False),
    help="Cloud region\nenv: RAINDROP_WIZARD_REGION",
)
@click.option("--ci", is_flag=True, help="Run without prompts\nenv: RAINDROP_WIZARD_CI")
@click.option(
    "--force-install",
    is_flag=True,
    help="Force install packages even if peer dependency checks fail\nenv: RAINDROP_WIZARD_FORCE_INSTALL",
)
@click.option(
    "--install-dir",
    type=click.Path(file_okay=False),
    help="Directory to install Raindrop in\nenv: RAINDROP_WIZARD_INSTALL_DIR",
)
@click.option(
    "--integration",
    type=click.Choice([i.value for i in Integration]),
    help="Integration to set up",
)
@click.version_option(__version__, "-v", "--version")
@click.pass_context
def cli(ctx: click.Context, **flags) -> None:
    """Run the Raindrop setup wizard."""
    # Only flags given on the command line override the environment
    overrides = {
        name: value
        for name, value in flags.items()
        if ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE
    }
    ui = WizardUI()
    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        ui.error(f"Invalid configuration:\n{e}")
        ctx.exit(1)

    if settings.ci:
        error = validate_ci_settings(settings)
        if error:
            ui.intro("Raindrop Wizard")
            ui.error(error)
            ctx.exit(1)
        prompter = None
    elif is_non_interactive_environment():
        ui.intro("Raindrop Wizard")
        ui.error(
            "This installer requires an interactive terminal (TTY) to run.\n"
            "It appears you are running in a non-interactive environment.\n"
            "Please run the wizard in an interactive terminal.\n\n"
            "For CI/CD environments, use --ci mode:\n"
            "  raindrop-wizard --ci --region us --api-key <key> --install-dir ."
        )
        ctx.exit(1)
    else:
        prompter = ConsolePrompter(console=ui.console)

    ctx.exit(asyncio.run(run_wizard(settings, prompter=prompter, ui=ui)))
