"""
Error taxonomy shared by the scraping, indexing and lifecycle layers.

"Course not found" is not an error: scrape functions return None for it.
"""

from __future__ import annotations


class CourseSearchError(Exception):
    """Base class for every error raised by this package."""


class TransportError(CourseSearchError):
    """Network failure, timeout or non-2xx answer from the portal."""


class ExtractionError(CourseSearchError):
    """
    A page did not contain an element whose presence was assumed.

    `field` names the logical field that could not be located.
    """

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Error parsing HTML at {field}")


class QueryError(CourseSearchError):
    """The free-text query could not be parsed (user input, not a fault)."""


class InternalError(CourseSearchError):
    """Index storage or coordination failure."""
