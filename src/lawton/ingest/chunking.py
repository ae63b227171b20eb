"""Split instructional text into bounded, ordered chunks."""
from __future__ import annotations

import logging
import re
from typing import List

from .models import AUTO_SECTION, TextChunk

LOGGER = logging.getLogger(__name__)

SECTION_MARKERS: tuple[str, ...] = (
    "Rule",
    "Examples",
    "Drill",
    "Exercise",
    "Assessment",
    "Dialogue",
    "Audio",
)

# The line break is consumed; the marker itself stays with the following segment.
_SECTION_BOUNDARY_RE = re.compile(
    r"\n(?=(?:" + "|".join(SECTION_MARKERS) + r"))",
    re.IGNORECASE,
)

DEFAULT_MAX_CHARS = 1000


def split_sections(text: str) -> List[str]:
    """Return the segments of *text* separated at section-marker lines."""

    return _SECTION_BOUNDARY_RE.split(text)


def chunk_text(text: str, max_size: int = DEFAULT_MAX_CHARS) -> List[TextChunk]:
    """Split *text* into chunks of at most ``max_size`` characters.

    Segments produced by :func:`split_sections` are sliced into consecutive,
    non-overlapping windows. ``order_in_doc`` counts across the whole
    document. When nothing is produced the full text is returned as a single
    chunk.
    """

    if max_size <= 0:
        raise ValueError("max_size must be a positive integer")

    chunks: List[TextChunk] = []
    order = 0
    for segment in split_sections(text):
        for start in range(0, len(segment), max_size):
            chunks.append(
                TextChunk(
                    text=segment[start : start + max_size],
                    section=AUTO_SECTION,
                    order_in_doc=order,
                )
            )
            order += 1

    if not chunks:
        LOGGER.debug("No chunks produced for %d characters; using whole text", len(text))
        return [TextChunk(text=text, section=AUTO_SECTION, order_in_doc=0)]
    return chunks


__all__ = ["DEFAULT_MAX_CHARS", "SECTION_MARKERS", "chunk_text", "split_sections"]
