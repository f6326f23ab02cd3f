"""
Attachment reference scanning and fuzzy filename matching.
"""
import re
from typing import Iterable, List, Optional
from rapidfuzz import fuzz
import logging

from .config import ExtractionConfig, default_config

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp")


class AttachmentScanner:
    """Finds ``<attached: FILENAME.ext>`` markers for image files."""

    def __init__(self, extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS):
        self.extensions = tuple(ext.lower().lstrip('.') for ext in extensions)
        alternation = "|".join(re.escape(ext) for ext in self.extensions)
        self.pattern = re.compile(
            rf"<attached:\s*(?P<filename>[\w\-.]+\.(?:{alternation}))\s*>",
            re.IGNORECASE,
        )

    def scan(self, transcript: str) -> List[str]:
        """
        Collect unique attachment filenames in first-seen order.

        Every line is scanned, whether or not it holds a payment.

        Args:
            transcript: Full chat export text

        Returns:
            List of filenames
        """
        if not transcript:
            return []

        filenames = []
        seen = set()
        for match in self.pattern.finditer(transcript):
            filename = match.group('filename')
            if filename not in seen:
                seen.add(filename)
                filenames.append(filename)

        logger.debug(f"Found {len(filenames)} attachment references")
        return filenames

    def first_in(self, text: str) -> Optional[str]:
        """Filename of the first attachment marker in a line, if any."""
        match = self.pattern.search(text or "")
        return match.group('filename') if match else None

    def strip(self, text: str) -> str:
        """Remove attachment markers from text."""
        return self.pattern.sub('', text or "")


def scan_attachments(transcript: str,
                     extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS) -> List[str]:
    """
    Convenience function to list image attachments referenced in a transcript.

    Args:
        transcript: Full chat export text
        extensions: Image extensions to accept

    Returns:
        Unique filenames in first-seen order
    """
    return AttachmentScanner(extensions).scan(transcript)


def match_image_reference(filename: str, references: Iterable[str],
                          config: Optional[ExtractionConfig] = None) -> Optional[str]:
    """
    Find which referenced attachment an uploaded file corresponds to.

    Exact and containment matches (case-insensitive) win outright; otherwise
    the closest reference by fuzzy ratio is accepted if it reaches the
    configured ``attachment_match_threshold``.

    Args:
        filename: Name of the uploaded image
        references: Filenames found in the transcript
        config: Extraction configuration supplying the threshold (0-100)

    Returns:
        Matching reference, or None
    """
    if not filename:
        return None

    fuzzy_threshold = (config or default_config()).attachment_match_threshold
    target = filename.lower()
    best_match = None
    best_score = 0.0

    for reference in references:
        candidate = reference.lower()
        if candidate == target or candidate in target or target in candidate:
            return reference

        score = fuzz.ratio(candidate, target)
        if score > best_score and score >= fuzzy_threshold:
            best_score = score
            best_match = reference

    if best_match:
        logger.debug(f"Matched {filename!r} to {best_match!r} with score {best_score:.1f}")
    return best_match
