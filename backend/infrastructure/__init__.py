from __future__ import annotations

"""
Infrastructure layer (no HTTP semantics).

Storage backends for the library (relational, document, in-process) plus the
factory that wires them into a `LibraryStorage` bundle.
"""

__all__ = [
    "config",
    "library",
    "persistence",
]
