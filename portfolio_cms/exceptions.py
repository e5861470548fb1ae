"""Exceptions raised by the content store services."""


class CmsError(Exception):
    """Base exception for content store errors."""

    pass


class ValidationError(CmsError):
    """Raised when caller input is rejected before any database access.

    ``field`` names the offending argument (``id``, ``title``, ``slug``,
    ``media.data``, ``query``, ...).
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(CmsError):
    """Raised when a Content item, Media item or Markdown page is missing.

    ``resource_id`` is the identifier the caller looked up: a content ID, a
    media ID, or a markdown page ID or slug.
    """

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} '{resource_id}' not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class DuplicateError(CmsError):
    """Raised when a content ID or markdown slug is already taken."""

    def __init__(self, resource_type: str, field: str, value: str):
        super().__init__(f"{resource_type} with {field} '{value}' already exists")
        self.resource_type = resource_type
        self.field = field
        self.value = value


class DatabaseError(CmsError):
    """Raised when a database operation fails; wraps the driver error."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error
