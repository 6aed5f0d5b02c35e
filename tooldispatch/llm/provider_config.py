"""Provider/runtime configuration for the LLM-backed collaborators.

Architectural role:
    Centralizes model/provider selection and credential lookup for `client`,
    `analysis` and `codegen`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; `client.LLMClient` turns it into
    a `RuntimeError` at request time.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Primary model routing controls.
PROVIDER = os.getenv("PROVIDER", "local")
MODEL_NAME = os.getenv("MODEL_NAME", "qwen2.5:3b")
CODEGEN_MODEL_NAME = os.getenv("CODEGEN_MODEL_NAME", MODEL_NAME)
REQUEST_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))
MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "4096"))

# OpenAI-compatible and provider-specific endpoint map.
PROVIDERS = {

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_file": None
    },

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_file": "config/openai.key"
    },

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "key_file": "config/groq.key"
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_file": "config/openrouter.key"
    },

    "anthropic": {
        "url": "https://api.anthropic.com/v1/messages",
        "key_file": "config/anthropic.key"
    },

}

ANTHROPIC_VERSION = "2023-06-01"


# System instructions for the two LLM-backed collaborators.
ANALYSIS_SYSTEM_MESSAGE = (
    "You analyze reference images for a web design team.\n"
    "Describe layout, color palette, typography and notable components.\n"
    "Answer the user's analysis prompt precisely and without repetition.\n"
)

CODEGEN_SYSTEM_MESSAGE = (
    "You are a senior engineer writing one file of a website project.\n"
    "The message starts with the file path and task guidelines, followed by the\n"
    "file's current content (usually planning comments).\n"
    "Reply with the complete file content inside a single fenced code block,\n"
    "then one short paragraph describing what the file contains.\n"
)


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/openai.key` -> `OPENAI_API_KEY`).
        2. Raw file contents at `path`.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip()
