from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Mapping, Protocol

from ..clean import count_words


DEFAULT_TARGET_SIZE = 500
DEFAULT_OVERLAP_SIZE = 50
DEFAULT_MIN_CHUNK_SIZE = 100

MIN_TARGET_SIZE = 50
MAX_TARGET_SIZE = 2000


@dataclass(frozen=True)
class ChunkMetadata:
    word_count: int
    char_count: int
    has_numbers: bool
    has_questions: bool
    section: str | None = None


@dataclass(frozen=True)
class Chunk:
    content: str
    index: int
    start_offset: int
    end_offset: int
    metadata: ChunkMetadata

    def with_section(self, index: int, section: str) -> "Chunk":
        return replace(self, index=index, metadata=replace(self.metadata, section=section))


def chunk_metadata(content: str, section: str | None = None) -> ChunkMetadata:
    return ChunkMetadata(
        word_count=count_words(content),
        char_count=len(content),
        has_numbers=bool(re.search(r"\d", content)),
        has_questions="?" in content,
        section=section,
    )


@dataclass(frozen=True)
class ChunkingOptions:
    """Chunk sizes are in estimated tokens (see clean.estimate_tokens)."""

    target_size: int = DEFAULT_TARGET_SIZE
    overlap_size: int = DEFAULT_OVERLAP_SIZE
    preserve_sentences: bool = True
    min_chunk_size: int | None = None

    @property
    def effective_min_chunk_size(self) -> int:
        if self.min_chunk_size is not None:
            return self.min_chunk_size
        return min(DEFAULT_MIN_CHUNK_SIZE, self.target_size // 2)


def options_from_cfg(cfg: Mapping | None) -> ChunkingOptions:
    """Build options from a config mapping.

    Accepts snake_case keys and the camelCase names used by older configs
    (chunkSize, overlapSize, minChunkSize).
    """
    cfg = cfg or {}

    def pick(*keys, default=None):
        for k in keys:
            if k in cfg and cfg[k] is not None:
                return cfg[k]
        return default

    min_size = pick("min_chunk_size", "minChunkSize")
    return ChunkingOptions(
        target_size=int(pick("target_size", "chunk_size", "chunkSize", "targetSize", default=DEFAULT_TARGET_SIZE)),
        overlap_size=int(pick("overlap_size", "overlap", "overlapSize", default=DEFAULT_OVERLAP_SIZE)),
        preserve_sentences=bool(pick("preserve_sentences", "preserveSentences", default=True)),
        min_chunk_size=int(min_size) if min_size is not None else None,
    )


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def validate_options(options: ChunkingOptions | Mapping) -> ValidationResult:
    """Check chunking parameters. Never raises; problems are listed in `errors`."""
    if not isinstance(options, ChunkingOptions):
        options = options_from_cfg(options)

    errors: list[str] = []
    if options.target_size < MIN_TARGET_SIZE:
        errors.append(f"Chunk size too small (minimum {MIN_TARGET_SIZE} tokens)")
    if options.target_size > MAX_TARGET_SIZE:
        errors.append(f"Chunk size too large (maximum {MAX_TARGET_SIZE} tokens)")
    if options.overlap_size >= options.target_size:
        errors.append("Overlap size must be smaller than chunk size")
    if options.overlap_size < 0:
        errors.append("Overlap size cannot be negative")
    if options.min_chunk_size is not None and options.min_chunk_size >= options.target_size:
        errors.append("Minimum chunk size must be smaller than chunk size")

    return ValidationResult(is_valid=not errors, errors=errors)


def optimal_chunk_size(content_length: int) -> int:
    """Suggested target size (tokens) for a document of `content_length` chars."""
    if content_length < 2_000:
        return 300
    if content_length < 10_000:
        return 500
    if content_length < 50_000:
        return 750
    return 1000


class Chunker(Protocol):
    def chunk(self, text: str) -> list[Chunk]: ...
