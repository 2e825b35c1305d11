"""
=============================================================================
HANDLERS MODULE
=============================================================================

A handler is the application side of the server: a plain function that
receives a ParsedRequest and returns a ResponseSpec.

    ┌─────────┐           ┌─────────┐           ┌──────────────┐
    │ GET /   │ ────────▶ │ handler │ ────────▶ │ ResponseSpec │
    └─────────┘           └─────────┘           └──────────────┘

The session adds Connection/Keep-Alive headers and encodes the result, so a
handler only describes status, body and any extra headers.

=============================================================================
"""

from .demo import demo_handler

__all__ = [
    "demo_handler",
]
