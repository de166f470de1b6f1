from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..clean import estimate_tokens, normalize_text, split_sentences, words_for_tokens
from ..clean_profiles import DEFAULT_PROFILE, CleaningProfile
from .base import Chunk, ChunkingOptions, chunk_metadata


_re_word = re.compile(r"\S+")


def _sentence_spans(text: str, sentences: list[str]) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    cursor = 0
    for s in sentences:
        start = text.find(s, cursor)
        if start < 0:
            # split_sentences only strips whitespace, so this should not happen
            start = cursor
        end = start + len(s)
        spans.append((start, end))
        cursor = end
    return spans


def _word_spans(text: str) -> list[tuple[int, int]]:
    return [(m.start(), m.end()) for m in _re_word.finditer(text)]


def _make_chunk(text: str, index: int, start: int, end: int) -> Chunk:
    content = text[start:end]
    return Chunk(
        content=content,
        index=index,
        start_offset=start,
        end_offset=end,
        metadata=chunk_metadata(content),
    )


@dataclass
class SentenceWindowChunker:
    """Token-bounded, overlapping chunks that never split a sentence.

    Algorithm:
      1) Normalize the text and split it into sentences.
      2) Greedily grow a buffer while its estimated token count stays within
         `target_size`.
      3) On overflow emit the buffer, then start the next one with the last
         ~`overlap_size` tokens' worth of words plus the current sentence.
      4) A buffer still below the minimum size absorbs the sentence instead of
         being emitted, and a small trailing buffer is merged into the previous
         chunk.

    A sentence longer than `target_size` still becomes (part of) one chunk.
    Offsets index into the normalized text, so
    ``normalized[c.start_offset:c.end_offset] == c.content``.
    """

    options: ChunkingOptions = field(default_factory=ChunkingOptions)
    profile: CleaningProfile = DEFAULT_PROFILE

    def chunk(self, text: str, options: ChunkingOptions | None = None) -> list[Chunk]:
        opts = options or self.options
        clean = normalize_text(text, self.profile)
        if not clean:
            return []

        if opts.preserve_sentences:
            units = _sentence_spans(clean, split_sentences(clean))
        else:
            units = _word_spans(clean)
        if not units:
            return []

        min_size = opts.effective_min_chunk_size
        chunks: list[Chunk] = []
        buf_start: int | None = None
        buf_end = 0

        for u_start, u_end in units:
            if buf_start is None:
                buf_start, buf_end = u_start, u_end
                continue

            if estimate_tokens(clean[buf_start:u_end]) <= opts.target_size:
                buf_end = u_end
                continue

            if estimate_tokens(clean[buf_start:buf_end]) < min_size:
                # too small to stand alone; let it run over the target instead
                buf_end = u_end
                continue

            chunks.append(_make_chunk(clean, len(chunks), buf_start, buf_end))
            overlap_start = self._overlap_start(clean, buf_start, buf_end, opts.overlap_size)
            buf_start = overlap_start if overlap_start is not None else u_start
            buf_end = u_end

        if buf_start is not None:
            tail = clean[buf_start:buf_end]
            if not chunks or estimate_tokens(tail) >= min_size:
                chunks.append(_make_chunk(clean, len(chunks), buf_start, buf_end))
            else:
                prev = chunks[-1]
                chunks[-1] = _make_chunk(clean, prev.index, prev.start_offset, buf_end)

        return chunks

    @staticmethod
    def _overlap_start(text: str, start: int, end: int, overlap_tokens: int) -> int | None:
        """Offset where the overlap tail of text[start:end] begins (None: no overlap)."""
        n_words = words_for_tokens(overlap_tokens) if overlap_tokens > 0 else 0
        if n_words <= 0:
            return None
        words = _word_spans(text[start:end])
        if len(words) <= n_words:
            return start
        return start + words[-n_words][0]
