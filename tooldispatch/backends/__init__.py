"""Collaborator contracts and default implementations.

Scope:
    - `protocols`: interfaces the dispatch core calls.
    - `search_client`: provider-backed image search.
    - `storage`: local file storage and file lifecycle registry.
    - `progress`: progress-event sinks.
"""
