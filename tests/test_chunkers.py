"""Tests for sentence-window chunking, option validation and structured chunking."""

import pytest

from docintel.chunkers.base import (
    ChunkingOptions,
    optimal_chunk_size,
    options_from_cfg,
    validate_options,
)
from docintel.chunkers.sentence_window import SentenceWindowChunker
from docintel.chunkers.structured import StructuredSectionChunker, chunk_with_structure
from docintel.clean import estimate_tokens, normalize_text


SCENARIO_TEXT = "A simple sentence. Another one here. And a third sentence to pad length."


def long_text(n_sentences: int = 40) -> str:
    return " ".join(
        f"Sentence number {i} describes one part of the delivery plan in plain words."
        for i in range(n_sentences)
    )


class TestSentenceWindowChunker:
    def test_small_target_produces_overlapping_chunks(self) -> None:
        chunks = SentenceWindowChunker().chunk(SCENARIO_TEXT, ChunkingOptions(target_size=10, overlap_size=2))

        assert len(chunks) >= 2
        assert chunks[0].content == "A simple sentence. Another one here."
        assert chunks[1].content.startswith("one here.")
        assert chunks[1].content.split()[:2] == chunks[0].content.split()[-2:]

    def test_empty_input_returns_no_chunks(self) -> None:
        chunker = SentenceWindowChunker()
        assert chunker.chunk("") == []
        assert chunker.chunk("   \n\t ") == []

    def test_offsets_index_normalized_text(self) -> None:
        raw = long_text(30).replace(". ", ".\n\n")
        clean = normalize_text(raw)
        chunks = SentenceWindowChunker().chunk(raw, ChunkingOptions(target_size=60, overlap_size=10))

        assert len(chunks) > 1
        for i, c in enumerate(chunks):
            assert c.index == i
            assert clean[c.start_offset : c.end_offset] == c.content

    def test_chunks_after_first_meet_minimum_size(self) -> None:
        opts = ChunkingOptions(target_size=60, overlap_size=10)
        chunks = SentenceWindowChunker().chunk(long_text(40), opts)

        assert len(chunks) > 2
        for c in chunks[1:]:
            assert estimate_tokens(c.content) >= opts.effective_min_chunk_size

    def test_sentences_are_not_split(self) -> None:
        chunks = SentenceWindowChunker().chunk(long_text(20), ChunkingOptions(target_size=60, overlap_size=0))
        for c in chunks:
            assert c.content.startswith("Sentence number")
            assert c.content.endswith(".")

    def test_short_document_is_a_single_chunk(self) -> None:
        chunks = SentenceWindowChunker().chunk("Short doc.")
        assert len(chunks) == 1
        assert chunks[0].content == "Short doc."
        assert chunks[0].metadata.word_count == 2

    def test_word_windows_when_sentences_not_preserved(self) -> None:
        text = " ".join(f"w{i}" for i in range(100))
        opts = ChunkingOptions(target_size=20, overlap_size=0, preserve_sentences=False)
        chunks = SentenceWindowChunker().chunk(text, opts)

        assert len(chunks) == 7
        assert chunks[0].metadata.word_count == 15
        assert " ".join(c.content for c in chunks) == text

    def test_rechunking_reconstructed_text_is_stable(self) -> None:
        opts = ChunkingOptions(target_size=60, overlap_size=0)
        chunker = SentenceWindowChunker()
        first = chunker.chunk(long_text(25), opts)
        rebuilt = " ".join(c.content for c in first)
        second = chunker.chunk(rebuilt, opts)

        assert [c.content for c in second] == [c.content for c in first]

    def test_metadata_flags(self) -> None:
        chunks = SentenceWindowChunker().chunk("Is the budget 25 million? We think so.")
        meta = chunks[0].metadata
        assert meta.has_numbers
        assert meta.has_questions
        assert meta.char_count == len(chunks[0].content)


class TestChunkingOptions:
    def test_effective_min_chunk_size(self) -> None:
        assert ChunkingOptions(target_size=500).effective_min_chunk_size == 100
        assert ChunkingOptions(target_size=10).effective_min_chunk_size == 5
        assert ChunkingOptions(target_size=500, min_chunk_size=7).effective_min_chunk_size == 7

    def test_options_from_camel_case_config(self) -> None:
        opts = options_from_cfg({"chunkSize": 300, "overlapSize": 30, "minChunkSize": 60})
        assert opts == ChunkingOptions(target_size=300, overlap_size=30, min_chunk_size=60)

    def test_overlap_larger_than_chunk_is_invalid(self) -> None:
        result = validate_options({"chunkSize": 30, "overlapSize": 40})

        assert result.is_valid is False
        assert "Overlap size must be smaller than chunk size" in result.errors
        assert "Chunk size too small (minimum 50 tokens)" in result.errors

    def test_defaults_are_valid(self) -> None:
        result = validate_options(ChunkingOptions())
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize(
        "opts, message",
        [
            (ChunkingOptions(target_size=3000, overlap_size=10), "Chunk size too large (maximum 2000 tokens)"),
            (ChunkingOptions(target_size=200, overlap_size=-1), "Overlap size cannot be negative"),
            (
                ChunkingOptions(target_size=200, overlap_size=10, min_chunk_size=200),
                "Minimum chunk size must be smaller than chunk size",
            ),
        ],
    )
    def test_invalid_options(self, opts, message) -> None:
        result = validate_options(opts)
        assert not result.is_valid
        assert message in result.errors

    @pytest.mark.parametrize(
        "length, expected",
        [(1_000, 300), (5_000, 500), (20_000, 750), (100_000, 1000)],
    )
    def test_optimal_chunk_size(self, length, expected) -> None:
        assert optimal_chunk_size(length) == expected


STRUCTURED_TEXT = """1. Introduction
This proposal describes our approach. It covers the scope of the work in detail.
2. Pricing
Our pricing is based on annual subscriptions. Discounts apply to multi-year commitments.
"""


class TestStructuredSectionChunker:
    def test_chunks_stay_within_sections(self) -> None:
        chunks = StructuredSectionChunker().chunk(STRUCTURED_TEXT)

        assert [c.metadata.section for c in chunks] == ["1. Introduction", "2. Pricing"]
        assert [c.index for c in chunks] == [0, 1]
        assert chunks[1].content.startswith("Our pricing")

    def test_offsets_are_relative_to_section(self) -> None:
        chunks = chunk_with_structure(STRUCTURED_TEXT)
        assert chunks[1].start_offset == 0
        assert chunks[1].end_offset == len(chunks[1].content)

    def test_empty_text(self) -> None:
        assert chunk_with_structure("") == []
