"""Model-facing tool definitions for the seven dispatchable tools.

Each entry follows the Anthropic `tools` request shape: `name`, `description`,
`input_schema`. The conversation loop sends these to the model; the dispatcher
executes whatever the model calls back with.
"""

from tooldispatch.core.tool_types import ToolName


def _schema(properties: dict, required: list[str]) -> dict:
    return {"type": "object", "properties": properties, "required": required}


TOOL_DEFINITIONS = [
    {
        "name": ToolName.SEARCH.value,
        "description": (
            "Search the web for reference images and receive the images themselves. "
            "Use this to look at visual inspiration before designing components."
        ),
        "input_schema": _schema(
            {"query": {"type": "string", "description": "What to search images for"}},
            ["query"],
        ),
    },
    {
        "name": ToolName.IMAGE_FINDER.value,
        "description": (
            "Find image urls with short descriptions that can be embedded in the "
            "website. Returns a JSON list of {url, description}."
        ),
        "input_schema": _schema(
            {"query": {"type": "string", "description": "Images the page needs"}},
            ["query"],
        ),
    },
    {
        "name": ToolName.PLACEHOLDER_IMAGE.value,
        "description": (
            "Find placeholder image urls for sections that need imagery. "
            "Returns a JSON list of {url, description}."
        ),
        "input_schema": _schema(
            {
                "placeholder_image_requirements": {
                    "type": "string",
                    "description": "Subject, style and mood of the placeholder images",
                }
            },
            ["placeholder_image_requirements"],
        ),
    },
    {
        "name": ToolName.IMAGE_ANALYSIS.value,
        "description": "Analyze one or more images and answer a prompt about them.",
        "input_schema": _schema(
            {
                "image_urls": {"type": "array", "items": {"type": "string"}},
                "analysis_prompt": {"type": "string"},
            },
            ["image_urls", "analysis_prompt"],
        ),
    },
    {
        "name": ToolName.FILE_CREATOR.value,
        "description": (
            "Create a new project file seeded with planning comments. "
            f"Always follow up with {ToolName.TASK_ASSIGNER.value} for the same file."
        ),
        "input_schema": _schema(
            {
                "file_name": {"type": "string", "description": "Path relative to the project root"},
                "file_comments": {"type": "string", "description": "Planning comments for the file"},
            },
            ["file_name", "file_comments"],
        ),
    },
    {
        "name": ToolName.TASK_ASSIGNER.value,
        "description": "Assign the code-writing task for a file created with the file creator tool.",
        "input_schema": _schema(
            {
                "file_name": {"type": "string"},
                "task_guidelines": {"type": "string", "description": "What the code must do"},
            },
            ["file_name", "task_guidelines"],
        ),
    },
    {
        "name": ToolName.DEPLOY_PROJECT.value,
        "description": "Deploy the current project and get its public link.",
        "input_schema": _schema({}, []),
    },
]
