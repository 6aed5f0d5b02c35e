"""Image search result processing.

Scope:
    - `ordered`: ordered iteration with per-item failure isolation.
    - `processor`: hit normalization, whitelisted fetch + base64 encoding, listings.
"""
