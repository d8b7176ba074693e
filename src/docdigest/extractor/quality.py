"""Text normalization and garble detection for extraction output.

Two levels of cleanup:

- ``strip_control_chars``: removes NUL and other C0 control characters that
  PDF and DOCX parsers leak from font tables and field codes.  Plain text and
  Markdown are never stripped.
- ``normalize_text``: full cleanup for parser output (PDF, DOCX) -- unified
  line endings, per-line trailing whitespace trimmed, runs of blank lines
  collapsed, outer whitespace stripped.

``garble_ratio`` measures the share of replacement / control characters.
A high ratio means the decoder produced noise or a plain-text file is really
binary; the text is still kept (replace-and-continue) but a warning is logged.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Matches Unicode replacement char, NULL, and non-printable control chars
_GARBLE_PATTERN = re.compile(r"[\ufffd\x00-\x08\x0b\x0c\x0e-\x1f]")

# C0 controls except tab, LF, CR; form feed is handled as a line break
_CONTROL_PATTERN = re.compile(r"[\x00-\x08\x0b\x0e-\x1f\x7f]")

_TRAILING_WS_PATTERN = re.compile(r"[ \t]+$", re.MULTILINE)
_BLANK_RUN_PATTERN = re.compile(r"\n{3,}")


def strip_control_chars(text: str) -> str:
    """Remove C0 control characters, keeping tab and line breaks."""
    text = text.replace("\x0c", "\n")
    return _CONTROL_PATTERN.sub("", text)


def normalize_text(text: str) -> str:
    """Normalize parser output into clean LF-delimited text."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = strip_control_chars(text)
    text = _TRAILING_WS_PATTERN.sub("", text)
    text = _BLANK_RUN_PATTERN.sub("\n\n", text)
    return text.strip()


def garble_ratio(text: str) -> float:
    """Fraction of characters that are replacement or control characters."""
    if not text:
        return 0.0
    return len(_GARBLE_PATTERN.findall(text)) / len(text)


def check_garble(text: str, threshold: float, file_name: str) -> bool:
    """Log a warning when *text* looks garbled.

    Args:
        text: Extracted text as handed to the merger.  Parser output has
            already lost its control characters, so for PDF and DOCX only
            replacement characters count.
        threshold: Maximum acceptable garble ratio.
        file_name: Source file name for the log message.

    Returns:
        True if the ratio is within *threshold*, False otherwise.
    """
    ratio = garble_ratio(text)
    if ratio > threshold:
        logger.warning(
            "Garbled text in %s: %.3f > %.3f threshold "
            "(replacement/control characters kept)",
            file_name,
            ratio,
            threshold,
        )
        return False
    return True
