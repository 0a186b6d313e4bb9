"""Core utilities and shared application primitives.

Modules in this package are framework-agnostic where possible and hold
the user record helpers: projection, validation, sanitization, cloning,
default merging and timestamp handling. ``config`` and ``middleware``
serve the HTTP layer only.
"""
