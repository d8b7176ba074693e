"""Prompt template management for corpus summarization.

Loads the prompt template from disk (or takes it inline from settings),
computes a version hash for traceability, and fills the ``{file_count}`` and
``{documents}`` placeholders with the merged corpus.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from docdigest.config.settings import (
    DEFAULT_PROMPT_TEMPLATE,
    PROJECT_ROOT,
    SummarizerSettings,
)
from docdigest.merger import MergedCorpus

logger = logging.getLogger(__name__)

REQUIRED_PLACEHOLDER = "{documents}"


def template_version(template: str) -> str:
    """Return the first 12 hex characters of the template's SHA-256 digest."""
    return hashlib.sha256(template.encode("utf-8")).hexdigest()[:12]


def validate_template(template: str) -> str:
    """Check that *template* has a ``{documents}`` slot and formats cleanly.

    Raises:
        ValueError: If the placeholder is missing or the template references
            fields other than ``file_count`` and ``documents``.
    """
    if REQUIRED_PLACEHOLDER not in template:
        raise ValueError(f"Prompt template must contain {REQUIRED_PLACEHOLDER}")
    try:
        template.format(file_count=0, documents="")
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(f"Invalid prompt template: {e!r}") from e
    return template


def load_prompt_template(template_path: Path) -> tuple[str, str]:
    """Load prompt template from disk and compute its version hash.

    Args:
        template_path: Absolute or relative path to the template file.

    Returns:
        Tuple of (template_content, version_hash).

    Raises:
        FileNotFoundError: If the template file does not exist.
        ValueError: If the template is malformed.
    """
    if not template_path.exists():
        msg = f"Prompt template not found: {template_path}"
        raise FileNotFoundError(msg)

    content = validate_template(template_path.read_text(encoding="utf-8"))
    version_hash = template_version(content)
    logger.info(
        "Loaded prompt template: %s (version %s, %d chars)",
        template_path.name,
        version_hash,
        len(content),
    )
    return content, version_hash


def resolve_prompt_template(settings: SummarizerSettings) -> tuple[str, str]:
    """Return (template, version_hash) from the inline override or the file."""
    if settings.prompt_template:
        template = validate_template(settings.prompt_template)
        return template, template_version(template)

    # Relative paths: current directory first, then the project root
    template_path = Path(settings.template_path)
    if not template_path.is_absolute() and not template_path.exists():
        template_path = PROJECT_ROOT / template_path

    default_path = SummarizerSettings.model_fields["template_path"].default
    if not template_path.exists() and settings.template_path == default_path:
        # Installed without the config/ tree: fall back to the built-in prompt
        logger.warning(
            "Default prompt template %s not found, using built-in template",
            template_path,
        )
        return DEFAULT_PROMPT_TEMPLATE, template_version(DEFAULT_PROMPT_TEMPLATE)
    return load_prompt_template(template_path)


def build_prompt(template: str, corpus: MergedCorpus) -> str:
    """Fill template placeholders with the document count and corpus text.

    Only the template is formatted; braces inside the corpus are inserted
    verbatim.
    """
    return template.format(
        file_count=corpus.file_count,
        documents=corpus.text,
    )
