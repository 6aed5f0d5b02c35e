"""Core dispatch package.

Composition:
    - `tool_types`: invocation/result data contracts and wire serialization.
    - `tool_definitions`: model-facing tool schemas.
    - `dispatcher`: name-based routing and result envelope construction.

Package import is side-effect free.
"""
