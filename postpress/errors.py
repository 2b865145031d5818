"""Exceptions raised while turning a content directory into HTML and a feed."""

from __future__ import annotations

from pathlib import Path


class PostpressError(Exception):
    """Base exception for all postpress errors."""


class ConfigError(PostpressError):
    """Raised when the build configuration is invalid."""


# --- Identity ---


class IdentityError(PostpressError):
    """Base exception for content identity resolution."""


class InvalidFilename(IdentityError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Content has an invalid filename: {path}")
        self.path = path


class InvalidParentDirectory(IdentityError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Parent directory of content has an invalid directory name: {path}")
        self.path = path


# --- Metadata ---


class MetadataParseError(PostpressError):
    """Base exception for the metadata block of a document."""


class NoDelimiter(MetadataParseError):
    def __init__(self, line: str) -> None:
        super().__init__(f"Could not find delimiter in string `{line}`")
        self.line = line


class UnknownTag(MetadataParseError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Tag `{key}` is unknown")
        self.key = key


class MetadataValueError(MetadataParseError):
    def __init__(self, key: str, cause: Exception) -> None:
        super().__init__(f"Could not extract value out of tag `{key}`: {cause}")
        self.key = key
        self.cause = cause


class MissingMetadata(MetadataParseError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Metadata block has no `{key}`")
        self.key = key


class DuplicateMetadata(MetadataParseError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Metadata block has more than one `{key}`")
        self.key = key


# --- Slug ---


class SlugValidationError(PostpressError):
    """Base exception for deriving a slug out of a content identity."""

    message = "Invalid content id"

    def __init__(self, identity: str) -> None:
        super().__init__(f"{self.message}: `{identity}`")
        self.identity = identity


class NoYear(SlugValidationError):
    message = "Could not find year in content id"


class ConvertYear(SlugValidationError):
    message = "Could not extract year from content id"


class YearMismatch(SlugValidationError):
    message = "Year from content id mismatches with year from content metadata"


class NoMonth(SlugValidationError):
    message = "Could not find month in content id"


class ConvertMonth(SlugValidationError):
    message = "Could not extract month from content id"


class MonthMismatch(SlugValidationError):
    message = "Month from content id mismatches with month from content metadata"


class NoDay(SlugValidationError):
    message = "Could not find day in content id"


class ConvertDay(SlugValidationError):
    message = "Could not extract day from content id"


class DayMismatch(SlugValidationError):
    message = "Day from content id mismatches with day from content metadata"


class EmptySlug(SlugValidationError):
    message = "Content id has no title after its date"


# --- Rendering ---


class RenderError(PostpressError):
    """Base exception for HTML generation."""


class UnknownMarkdownEvent(RenderError):
    def __init__(self, event: object) -> None:
        super().__init__(f"unhandled markdown event: {event!r}")
        self.event = event


# --- Batch ---


class ContentError(PostpressError):
    """A single content file could not be loaded or rendered."""

    def __init__(self, source: Path | str, cause: Exception) -> None:
        super().__init__(f"{source}: {cause}")
        self.source = source
        self.cause = cause
