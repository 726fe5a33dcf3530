from __future__ import annotations


class LibraryError(Exception):
    """Base class for errors raised by the library stores and services."""


class ValidationError(LibraryError):
    """Malformed or out-of-range input, raised before any write."""


class NotFoundError(LibraryError):
    """A referenced id does not exist."""


class ConflictError(LibraryError):
    """A write would violate a uniqueness constraint."""


class DuplicateError(ConflictError):
    """The (user, media) pair is already present in an activity store."""


class DependencyError(LibraryError):
    """The underlying store is unreachable.

    Callers may retry these, unlike NotFoundError/ConflictError which are
    logical outcomes.
    """
