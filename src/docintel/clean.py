from __future__ import annotations

import math
import re

from .clean_profiles import DEFAULT_PROFILE, CleaningProfile, apply_cleaning


_re_whitespace = re.compile(r"\s+")
_re_multispace = re.compile(r"[ \t]+")
_re_multi_newlines = re.compile(r"\n{3,}")

# Split after terminal punctuation, except after a lone capital initial ("A. Smith").
_re_sentence_break = re.compile(r"(?<=[.!?])(?<!\b[A-Z]\.)\s+")

# 1 token ~ 0.75 words; close enough without a real tokenizer
WORDS_PER_TOKEN = 0.75


def normalize_text(text: str, profile: CleaningProfile | None = None) -> str:
    """Flatten text to a single line of clean prose.

    Collapses every whitespace run (newlines included) to one space, strips
    form-feed/vertical-tab controls, straightens curly quotes and removes
    bracketed artifacts such as ``[Page 3]`` or ``[CONFIDENTIAL]``.
    """
    prof = profile or DEFAULT_PROFILE
    text = apply_cleaning(text, prof)
    if prof.collapse_whitespace:
        text = _re_whitespace.sub(" ", text)
    return text.strip()


def normalize_lines(text: str, profile: CleaningProfile | None = None) -> str:
    """Same cleanup as normalize_text but keeps line structure for heading detection."""
    prof = profile or DEFAULT_PROFILE
    text = apply_cleaning(text, prof)
    if prof.collapse_whitespace:
        text = _re_multispace.sub(" ", text)
        text = _re_multi_newlines.sub("\n\n", text)
    # Trim whitespace on each line
    text = "\n".join(line.strip() for line in text.splitlines())
    return text.strip()


def split_sentences(text: str) -> list[str]:
    """Split on . ! ? followed by whitespace; punctuation stays with its sentence."""
    if not text:
        return []
    parts = _re_sentence_break.split(text)
    return [p.strip() for p in parts if p.strip()]


def count_words(text: str) -> int:
    return len(text.split())


def estimate_tokens(text: str) -> int:
    return math.ceil(count_words(text) / WORDS_PER_TOKEN)


def words_for_tokens(tokens: int) -> int:
    """Inverse of estimate_tokens: how many words fit a token budget."""
    return math.ceil(tokens * WORDS_PER_TOKEN)


def simple_tokenize(text: str) -> list[str]:
    """Lowercased word tokens (no punctuation) for BM25 and keyword overlap."""
    return re.findall(r"\w+", text.lower(), flags=re.UNICODE)
