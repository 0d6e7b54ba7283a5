"""Tokenizer — normalizes text into significant lowercase terms."""

import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")

# Tokens of this length or shorter carry too little signal to score on.
_MIN_TOKEN_LEN = 3


def tokenize(text: str | None) -> list[str]:
    """Split text into lowercase alphanumeric tokens.

    Every character outside ``[a-z0-9]`` and whitespace becomes a space
    before splitting, so ``"C++ vs. Rust-lang"`` yields ``["rust", "lang"]``.

    Args:
        text: Arbitrary input. ``None`` is treated as an empty string.

    Returns:
        Tokens in input order, duplicates kept. Empty for blank input.
    """
    normalized = _NON_ALNUM_RE.sub(" ", (text or "").lower())
    return [token for token in normalized.split() if len(token) >= _MIN_TOKEN_LEN]
