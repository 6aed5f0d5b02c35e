"""Runtime configuration for the dispatch core.

Values come from environment variables (after `load_dotenv()`) and are resolved
when a `DispatchConfig` is constructed, so adapters and tests can build configs
after adjusting the environment.

Relevant environment variables:
    - `STORAGE_ROOT`
    - `DEPLOY_BASE_URL`
    - `IMAGE_FETCH_CONCURRENCY`
    - `IMAGE_FETCH_TIMEOUT_SECONDS`
    - `STRICT_TASK_ASSIGNMENT`
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DispatchConfig:
    storage_root: str = field(default_factory=lambda: os.getenv("STORAGE_ROOT", "projects"))
    deploy_base_url: str = field(
        default_factory=lambda: os.getenv("DEPLOY_BASE_URL", "https://shipstation.ai").strip()
    )
    image_fetch_concurrency: int = field(
        default_factory=lambda: max(1, int(os.getenv("IMAGE_FETCH_CONCURRENCY", "1")))
    )
    image_fetch_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("IMAGE_FETCH_TIMEOUT_SECONDS", "20"))
    )
    strict_task_assignment: bool = field(
        default_factory=lambda: _env_flag("STRICT_TASK_ASSIGNMENT")
    )
