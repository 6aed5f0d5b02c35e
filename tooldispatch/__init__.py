"""Tool-dispatch engine for an AI coding-agent runtime.

Architectural role:
    Executes one model tool invocation (image search, image analysis, file
    scaffolding, delegated code generation, deployment notice) and returns a
    normalized `tool_result` envelope for the model conversation.

Package split:
    - `core`: data contracts, tool definitions and the dispatcher.
    - `images`: search-result normalization and ordered image fetching.
    - `files`: FILE_CREATOR -> TASK_ASSIGNER pipeline.
    - `responders`: IMAGE_ANALYSIS and DEPLOY_PROJECT.
    - `backends`: collaborator contracts and default implementations.
    - `llm`: provider transport plus LLM-backed analysis and code generation.
    - `api`: HTTP and CLI adapters.
"""
