"""Adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation and response shaping.
- Delegates tool execution to `tooldispatch.core.dispatcher`.
"""
