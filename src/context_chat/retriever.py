"""Local retriever — lexical scoring of line windows from the corpus."""

import logging
import re
from pathlib import Path

from context_chat.config import AIConfig
from context_chat.corpus import list_corpus_files
from context_chat.models import ScoredSnippet
from context_chat.tokenizer import tokenize

logger = logging.getLogger(__name__)

# Common words that match almost any line and drown out real signal.
STOP_WORDS = frozenset(
    {
        "about", "after", "also", "because", "before", "between", "could",
        "compare", "from", "have", "here", "internal", "into", "just", "like",
        "many", "more", "most", "notes", "online", "only", "other", "our",
        "over", "same", "should", "some", "than", "that", "their", "there",
        "these", "they", "this", "tips", "very", "what", "when", "where",
        "which", "with", "would", "your",
    }
)

# The generic fallback notes file loses ties to specifically named files.
_CATCH_ALL_RE = re.compile(r"knowledge\.txt$", re.IGNORECASE)
_CATCH_ALL_PENALTY = 1

_PATH_SEPARATORS_RE = re.compile(r"[\\/._-]")

_WINDOW_LINES = 3
_LINE_WEIGHT = 3
_SOURCE_WEIGHT = 2


def query_terms(query: str) -> set[str]:
    """Return the significant terms of *query*.

    Stop words are removed unless that would leave nothing, in which
    case the unfiltered tokens are used instead.
    """
    raw = tokenize(query)
    filtered = [token for token in raw if token not in STOP_WORDS]
    return set(filtered or raw)


def _source_label(file_path: Path, relative_to: Path) -> str:
    try:
        return file_path.relative_to(relative_to).as_posix()
    except ValueError:
        return file_path.as_posix()


def _score_file(
    file_path: Path,
    terms: set[str],
    source: str,
) -> list[ScoredSnippet]:
    """Score every non-blank line window of one file."""
    content = file_path.read_text(encoding="utf-8", errors="replace")
    lines = content.split("\n")
    source_tokens = set(tokenize(_PATH_SEPARATORS_RE.sub(" ", source)))
    penalty = _CATCH_ALL_PENALTY if _CATCH_ALL_RE.search(file_path.name) else 0

    snippets: list[ScoredSnippet] = []
    for index, line in enumerate(lines):
        if not line.strip():
            continue

        preview = "\n".join(lines[index : index + _WINDOW_LINES]).strip()
        overlap = terms.intersection(tokenize(preview))
        if not overlap:
            continue

        source_overlap = len(overlap & source_tokens)
        score = len(overlap) * _LINE_WEIGHT + source_overlap * _SOURCE_WEIGHT - penalty
        snippets.append(
            ScoredSnippet(score=score, source=source, line=index + 1, text=preview)
        )
    return snippets


def retrieve_local_context(
    query: str,
    corpus_dir: str | Path,
    config: AIConfig | None = None,
    relative_to: str | Path | None = None,
) -> list[ScoredSnippet]:
    """Find the corpus line windows that best match *query*.

    Each non-blank line is previewed together with the two lines after
    it. A window scores three points per query term it contains and two
    more per matched term that also appears in the file's path. Files
    above the configured size cap, and files that cannot be read, are
    skipped without failing the whole retrieval.

    Args:
        query: The user's message.
        corpus_dir: Directory holding the local notes.
        config: Supplies ``rag_top_k`` and ``rag_max_file_bytes``.
            Uses defaults if not provided.
        relative_to: Base directory that ``source`` paths are reported
            relative to. Defaults to *corpus_dir*.

    Returns:
        At most ``rag_top_k`` snippets, best first. Ties are broken by
        source path, then line number.
    """
    cfg = config or AIConfig()
    terms = query_terms(query)
    if not terms:
        return []

    base = Path(relative_to) if relative_to is not None else Path(corpus_dir)
    scored: list[ScoredSnippet] = []

    for file_path in list_corpus_files(corpus_dir):
        try:
            if file_path.stat().st_size > cfg.rag_max_file_bytes:
                logger.debug("Skipping oversized file: %s", file_path)
                continue
            scored.extend(_score_file(file_path, terms, _source_label(file_path, base)))
        except OSError:
            logger.debug("Skipping unreadable file: %s", file_path, exc_info=True)
            continue

    scored.sort(key=lambda s: (-s.score, s.source, s.line))
    return scored[: cfg.rag_top_k]
