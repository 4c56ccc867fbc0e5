"""Prompt text sent to the query service."""

from langchain_core.prompts import PromptTemplate

from raindrop_wizard.models import IntegrationDefinition

FILTER_FILES_PROMPT = PromptTemplate(
    input_variables=[
        "documentation",
        "file_list",
        "integration_name",
        "integration_rules",
    ],
    template="""You are a Raindrop installation wizard, a master AI programming assistant that implements Raindrop for {integration_name} projects.
Given the following list of file paths from a project, determine which files are likely to require modifications
to integrate Raindrop. Use the installation documentation as a reference for what files might need modifications, do not include files that are unlikely to require modification based on the documentation.

- If you would like to create a new file, you can include the file path in your response.
- If you would like to modify an existing file, you can include the file path in your response.

You should return all files that you think will be required to look at or modify to integrate Raindrop. You should return them in the order you would like to see them processed, with new files first, followed by the files that you want to update to integrate Raindrop.

Rules:
- Only return files that you think will be required to look at or modify to integrate Raindrop.
- Do not return files that are unlikely to require modification based on the documentation.
- If you are unsure, return the file, since it's better to have more files than less.
- If two files might include the content you need to edit, return both.
- If you create a new file, it should not conflict with any existing files.
- The file structure of the project may be different than the documentation, you should follow the file structure of the project. e.g. if there is an existing file containing providers, you should edit that file instead of creating a new one.
{integration_rules}
- Look for existing files that contain providers, components, hooks, etc. and edit those files instead of creating new ones if appropriate.

Installation documentation:
{documentation}

All current files in the repository:

{file_list}""",
)


def get_installation_documentation(
    definition: IntegrationDefinition,
    project_api_key: str,
) -> str:
    """Short setup reference for the integration, embedded in the prompt."""
    return f"""==============================
FILE: raindrop setup ({definition.name})
LOCATION: wherever the application creates its AI clients
==============================
Install the `{definition.sdk_package}` package and initialise it once at startup:

    import {{ Raindrop }} from "{definition.sdk_package}";
    const raindrop = new Raindrop({{ writeKey: process.env.RAINDROP_WRITE_KEY ?? "{project_api_key}" }});

Track AI interactions where the application calls its model provider.
Full documentation: {definition.docs_url}
"""


def build_filter_files_prompt(
    definition: IntegrationDefinition,
    relevant_files: list[str],
    documentation: str,
) -> str:
    """Render the file selection prompt for an integration."""
    return FILTER_FILES_PROMPT.format(
        documentation=documentation,
        file_list="\n".join(relevant_files),
        integration_name=definition.name,
        integration_rules=definition.filter_files_rules,
    )
