"""Corpus indexer — enumerates every file under the local context directory."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def list_corpus_files(root: str | Path) -> list[Path]:
    """Collect all regular files below *root*, depth first.

    Uses an explicit work stack instead of recursion so that very deep
    trees cannot exhaust the interpreter's stack. Entries of each
    directory are visited in name order, which keeps the result
    deterministic across runs. Files are collected regardless of
    extension. Symbolic links are never followed, so a link cycle
    cannot make the walk revisit a directory.

    Args:
        root: Directory to scan.

    Returns:
        Flat list of file paths. Empty when *root* does not exist or is
        not a directory; unreadable subdirectories and entries are skipped.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        return []

    files: list[Path] = []
    stack: list[Path] = [root_path]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            logger.warning("Cannot list directory: %s", current)
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(current / entry.name)
                elif entry.is_file(follow_symlinks=False):
                    files.append(current / entry.name)
            except OSError:
                logger.debug("Cannot inspect entry: %s", entry.path)

    return files
