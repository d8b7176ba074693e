"""Filesystem discovery of input documents.

Walks a root directory and returns the regular files whose suffix is in the
recognized extension set, in lexicographic path order.  Every call re-scans
the filesystem; nothing is cached between calls.

Public API:
    discover_paths(root_dir, extensions)      -> list[Path]
    discover_documents(root_dir, extensions)  -> Iterator[Document]
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from docdigest.discovery.models import (
    Document,
    DocumentFormat,
    detect_format,
    load_document,
)
from docdigest.errors import DiscoveryError

logger = logging.getLogger(__name__)

__all__ = [
    "Document",
    "DocumentFormat",
    "detect_format",
    "discover_documents",
    "discover_paths",
    "load_document",
    "normalize_extensions",
]


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lowercase suffixes and give each a leading dot.

    Raises:
        DiscoveryError: If no usable suffix remains.
    """
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    if not normalized:
        raise DiscoveryError("At least one file extension must be configured")
    return frozenset(normalized)


def _check_root(root_dir: Path) -> Path:
    if not root_dir.exists():
        raise DiscoveryError(f"Root directory does not exist: {root_dir}")
    if not root_dir.is_dir():
        raise DiscoveryError(f"Root path is not a directory: {root_dir}")
    if not os.access(root_dir, os.R_OK | os.X_OK):
        raise DiscoveryError(f"Root directory is not readable: {root_dir}")
    return root_dir.resolve()


def discover_paths(root_dir: str | Path, extensions: Iterable[str]) -> list[Path]:
    """Return matching regular files under *root_dir*, sorted by path.

    Directories, symlinks and files without a recognized suffix are skipped
    silently.  Symlinked directories are not followed.  Sub-directories that
    cannot be listed are logged and skipped.

    Args:
        root_dir: Directory to scan recursively.
        extensions: Recognized suffixes, matched case-insensitively.

    Returns:
        Absolute paths in lexicographic order of their POSIX form.  Empty when
        nothing matches.

    Raises:
        DiscoveryError: If *root_dir* is missing, not a directory, or
            unreadable, or if *extensions* is empty.
    """
    suffixes = normalize_extensions(extensions)
    root = _check_root(Path(root_dir))

    def _on_walk_error(exc: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc)

    found: list[Path] = []
    skipped = 0
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        for filename in filenames:
            path = Path(dirpath) / filename
            if path.is_symlink() or not path.is_file():
                skipped += 1
                continue
            if path.suffix.lower() not in suffixes:
                skipped += 1
                continue
            found.append(path)

    found.sort(key=lambda p: p.as_posix())
    logger.info(
        "Discovered %d document(s) under %s (%d other entries skipped)",
        len(found),
        root,
        skipped,
    )
    return found


def _load_lazily(paths: list[Path]) -> Iterator[Document]:
    for path in paths:
        yield load_document(path)


def discover_documents(
    root_dir: str | Path,
    extensions: Iterable[str],
) -> Iterator[Document]:
    """Scan *root_dir* now and load each matching Document on demand.

    The scan itself runs eagerly so that DiscoveryError surfaces at call
    time; file bytes are read only as the iterator is consumed.
    """
    return _load_lazily(discover_paths(root_dir, extensions))
