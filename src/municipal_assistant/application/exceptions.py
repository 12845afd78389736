"""Application-level exceptions.

These are business-logic errors, not HTTP errors. The presentation layer
(FastAPI routes) translates them into appropriate HTTP responses.
"""

from __future__ import annotations


class ExtractionError(ValueError):
    """Base class for a save marker whose payload could not be recovered.

    ``raw`` holds the text that failed so it can be logged for offline debugging.
    """

    kind = "extraction_failed"

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class MalformedRecordError(ExtractionError):
    """The save marker is present but no ``{`` follows it."""

    kind = "malformed_record"


class IncompleteRecordError(ExtractionError):
    """An opening brace was found but no closing ``}`` exists anywhere after it."""

    kind = "incomplete_record"


class InvalidJsonError(ExtractionError):
    """The brace-delimited slice is not valid JSON."""

    kind = "invalid_json"


class PersistenceError(RuntimeError):
    """The complaint store rejected or failed to write a record."""


class GenerationError(RuntimeError):
    """The text-generation service errored or returned no text."""


class KnowledgeUnavailableError(RuntimeError):
    """One or more knowledge documents could not be loaded."""


class ComplaintNotFoundError(LookupError):
    """No complaint exists for the given report ID."""


class InvalidStatusError(ValueError):
    """A staff status update used a value outside the allowed set."""


class EmptyMessageError(ValueError):
    """Raised when the caller submits a blank message."""


class InvalidKnowledgeEntryError(ValueError):
    """An uploaded knowledge entry lacks a required field."""
