"""LLM access package.

Module split:
    - `provider_config`: environment-driven provider and model configuration.
    - `client`: provider-specific HTTP transport (the backend client handle).
    - `analysis`: image-analysis collaborator.
    - `codegen`: code-generation collaborator.
"""
