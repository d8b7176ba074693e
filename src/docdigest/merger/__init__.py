"""Corpus assembly: merge successful extractions into one prompt body.

Concatenates extracted texts in discovery order, each under a delimiter
header naming the source file (base name only, never the full path)::

    --- Document 1: notes.txt ---

    <extracted text>

    --- Document 2: plan.md ---

    <extracted text>

The rendered corpus never exceeds ``MergeOptions.max_corpus_chars``.  When
the next section would overflow the budget, its text is cut to the remaining
space, the corpus is marked truncated, and no further sections are added.

Public API:
    merge(results, options) -> MergedCorpus
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from docdigest.errors import CorpusBudgetError, MergeError
from docdigest.extractor.types import ExtractionResult

logger = logging.getLogger(__name__)

__all__ = ["CorpusSection", "MergeOptions", "MergedCorpus", "merge"]

SECTION_SEPARATOR = "\n\n"
_HEADER_BODY_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class MergeOptions:
    """Corpus budget.

    The default is a tunable starting point sized for 8k-32k token context
    windows; raise it for models with larger contexts.
    """

    max_corpus_chars: int = 100_000

    def __post_init__(self) -> None:
        if self.max_corpus_chars <= 0:
            raise ValueError("max_corpus_chars must be positive")


@dataclass(frozen=True)
class CorpusSection:
    """One document's contribution to the corpus."""

    file_name: str
    text: str


@dataclass
class MergedCorpus:
    """The single text blob submitted to the model.

    Attributes:
        sections: Included sections, in discovery order.
        text: Rendered corpus (headers, separators and section text).
        truncated: Whether the character budget cut the corpus short.
        omitted: File names of successful extractions left out by truncation.
    """

    sections: tuple[CorpusSection, ...]
    text: str
    truncated: bool = False
    omitted: list[str] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.sections)

    @property
    def total_characters(self) -> int:
        return len(self.text)


def section_header(index: int, file_name: str) -> str:
    """Return the delimiter line that opens section *index* (1-based)."""
    return f"--- Document {index}: {file_name} ---"


def _unique_name(name: str, seen: dict[str, int]) -> str:
    """Disambiguate repeated base names deterministically: a.txt, a.txt (2), ..."""
    count = seen.get(name, 0) + 1
    seen[name] = count
    return name if count == 1 else f"{name} ({count})"


def merge(
    results: Sequence[ExtractionResult],
    options: MergeOptions | None = None,
) -> MergedCorpus:
    """Merge successful extraction results into a bounded corpus.

    Args:
        results: Extraction results in discovery order.  Non-success results
            are skipped; the caller records them as failures.
        options: Character budget; defaults to ``MergeOptions()``.

    Returns:
        MergedCorpus with ``total_characters <= options.max_corpus_chars``.

    Raises:
        MergeError: If no result is a success.
        CorpusBudgetError: If the budget cannot hold even the first section
            header.
    """
    options = options or MergeOptions()
    budget = options.max_corpus_chars

    included = [result for result in results if result.success]
    if not included:
        raise MergeError(
            f"Nothing to summarize: all {len(results)} document(s) failed extraction"
        )

    seen: dict[str, int] = {}
    sections: list[CorpusSection] = []
    parts: list[str] = []
    used = 0
    truncated = False
    omitted: list[str] = []

    for position, result in enumerate(included):
        file_name = _unique_name(result.file_name, seen)

        if truncated:
            omitted.append(file_name)
            continue

        prefix = SECTION_SEPARATOR if parts else ""
        head = (
            prefix
            + section_header(len(sections) + 1, file_name)
            + _HEADER_BODY_SEPARATOR
        )
        remaining = budget - used - len(head)

        if remaining >= len(result.text):
            body = result.text
        else:
            truncated = True
            if remaining <= 0:
                omitted.append(file_name)
                logger.warning(
                    "Corpus budget exhausted before %s (%d/%d chars used)",
                    file_name,
                    used,
                    budget,
                )
                continue
            # str slicing cuts on code points, never inside a UTF-8 sequence
            body = result.text[:remaining]
            logger.warning(
                "Truncated %s from %d to %d chars to fit the %d-char corpus budget",
                file_name,
                len(result.text),
                len(body),
                budget,
            )

        sections.append(CorpusSection(file_name=file_name, text=body))
        parts.append(head + body)
        used += len(head) + len(body)
        logger.debug(
            "Added section %d/%d: %s (%d chars, %d total)",
            position + 1,
            len(included),
            file_name,
            len(body),
            used,
        )

    if not sections:
        raise CorpusBudgetError(
            f"Corpus budget of {budget} chars is too small to hold any document"
        )

    corpus = MergedCorpus(
        sections=tuple(sections),
        text="".join(parts),
        truncated=truncated,
        omitted=omitted,
    )
    logger.info(
        "Merged %d document(s) into %d chars (truncated=%s, omitted=%d)",
        corpus.file_count,
        corpus.total_characters,
        corpus.truncated,
        len(corpus.omitted),
    )
    return corpus
