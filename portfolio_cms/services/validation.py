"""Input validation for content items, media and markdown pages."""

from typing import Any

from portfolio_cms.exceptions import ValidationError


class ContentValidator:
    """Validates identifiers and required fields according to store rules."""

    # Validation constants
    ID_MAX_LENGTH = 255
    TITLE_MAX_LENGTH = 500
    SLUG_MAX_LENGTH = 255

    @staticmethod
    def validate_id(value: Any, field: str = "id", label: str = "Content ID") -> None:
        """
        Validate an identifier.

        Args:
            value: Identifier to validate
            field: Field name reported in the error
            label: Human-readable name used in the message

        Raises:
            ValidationError: If the identifier is not a non-empty string of
                             at most ID_MAX_LENGTH characters
        """
        if not isinstance(value, str):
            raise ValidationError(f"{label} must be a string", field)
        if not value or not value.strip():
            raise ValidationError(f"{label} cannot be empty", field)
        if len(value) > ContentValidator.ID_MAX_LENGTH:
            raise ValidationError(
                f"{label} must be at most {ContentValidator.ID_MAX_LENGTH} characters", field
            )

    @staticmethod
    def validate_title(title: Any) -> None:
        """
        Validate a content title.

        Raises:
            ValidationError: If title is invalid
        """
        if not isinstance(title, str):
            raise ValidationError("Title must be a string", "title")
        if not title.strip():
            raise ValidationError("Title is required and cannot be empty", "title")
        if len(title) > ContentValidator.TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Title must be at most {ContentValidator.TITLE_MAX_LENGTH} characters", "title"
            )

    @staticmethod
    def validate_slug(slug: Any) -> None:
        """
        Validate a markdown page slug.

        Raises:
            ValidationError: If slug is missing or too long
        """
        if not isinstance(slug, str) or not slug.strip():
            raise ValidationError("Slug is required", "slug")
        if len(slug) > ContentValidator.SLUG_MAX_LENGTH:
            raise ValidationError(
                f"Slug must be at most {ContentValidator.SLUG_MAX_LENGTH} characters", "slug"
            )
