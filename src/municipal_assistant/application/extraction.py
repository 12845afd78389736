"""Extraction of the embedded complaint record from generated text.

The assistant signals a completed complaint by writing the save marker
followed by a single JSON object, e.g.::

    ठीक है। SAVE_COMPLAINT_DATA:{"complaint_type": "WATER", ...} Thank you

The generator is not a structured-output API, so the object may be
followed by commentary or be slightly mangled.  The closing brace is found
by a depth-counting scan over the text (nested ``complaint_location`` /
``complainant`` objects are expected); only when the scan never closes
does the extractor fall back to the last ``}`` in the text.

Only the first marker in a response is considered.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from loguru import logger

from municipal_assistant.application.exceptions import (
    IncompleteRecordError,
    InvalidJsonError,
    MalformedRecordError,
)
from municipal_assistant.domain.models import CandidateRecord

SAVE_MARKER = "SAVE_COMPLAINT_DATA:"


@dataclass
class ExtractedRecord:
    """A parsed candidate record plus the user-visible part of the response."""

    record: CandidateRecord
    cleaned_text: str


def find_matching_brace(text: str, start: int) -> int | None:
    """Return the index of the ``}`` that closes the ``{`` at *start*.

    Scans forward keeping a depth counter.  Braces inside JSON string
    literals are ignored, including escaped quotes within them.  Returns
    ``None`` when the object never closes.
    """
    if start >= len(text) or text[start] != "{":
        raise ValueError(f"no opening brace at index {start}")

    depth = 0
    in_string = False
    escaped = False

    for pos in range(start, len(text)):
        char = text[pos]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return pos

    return None


def extract_complaint_record(text: str) -> ExtractedRecord | None:
    """Locate and parse the record following the save marker.

    Returns:
        ``None`` when the text contains no marker (the assistant is still
        collecting fields), otherwise the parsed record and the text that
        preceded the marker, stripped.

    Raises:
        MalformedRecordError: marker present but no ``{`` after it.
        IncompleteRecordError: no closing ``}`` after the opening brace.
        InvalidJsonError: the delimited slice is not valid JSON.
    """
    marker_at = text.find(SAVE_MARKER)
    if marker_at == -1:
        return None

    payload_start = marker_at + len(SAVE_MARKER)
    open_at = text.find("{", payload_start)
    if open_at == -1:
        raise MalformedRecordError(
            "Save marker found but no JSON object follows it", raw=text[payload_start:]
        )

    close_at = find_matching_brace(text, open_at)
    if close_at is None:
        close_at = text.rfind("}", open_at)
        if close_at == -1:
            raise IncompleteRecordError(
                "JSON object after save marker is never closed", raw=text[open_at:]
            )
        logger.warning("Unbalanced braces after save marker, using last closing brace")

    raw_json = text[open_at : close_at + 1]
    try:
        data = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise InvalidJsonError(f"Complaint payload is not valid JSON: {exc}", raw=raw_json) from exc

    return ExtractedRecord(
        record=CandidateRecord(data),
        cleaned_text=text[:marker_at].strip(),
    )
