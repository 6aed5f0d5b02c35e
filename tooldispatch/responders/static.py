"""Responders for IMAGE_ANALYSIS and DEPLOY_PROJECT.

IMAGE_ANALYSIS forwards urls and prompt verbatim to the analysis backend and wraps
the returned text. DEPLOY_PROJECT is pure string formatting over the project
folder name: no backend call, no progress event.
"""

from typing import Any

from tooldispatch.backends.protocols import ImageAnalysisBackend
from tooldispatch.core.tool_types import ContentBlock, TextBlock


async def analyze_images(
    backend: ImageAnalysisBackend,
    image_urls: Any,
    analysis_prompt: Any,
) -> list[ContentBlock]:
    analysis = await backend.analyze(image_urls, analysis_prompt)
    return [TextBlock(analysis)]


def deploy_notice(project_folder_name: str, deploy_base_url: str) -> list[ContentBlock]:
    """Return the deployment link text for `project_folder_name`."""
    base = deploy_base_url.rstrip("/")
    return [TextBlock(f"Your project has been deployed on the link: {base}/{project_folder_name}")]
