"""Domain exceptions shared by repositories and services.

The HTTP layer renders them as `{"error": "..."}` responses.
"""


class NotFoundError(LookupError):
    """A lookup by id found nothing."""


class ConflictError(Exception):
    """The requested change conflicts with existing data."""
