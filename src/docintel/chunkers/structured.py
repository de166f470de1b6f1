from __future__ import annotations

from dataclasses import dataclass, field

from ..sections import Section, SectionSegmenter
from .base import Chunk, ChunkingOptions
from .sentence_window import SentenceWindowChunker


@dataclass
class StructuredSectionChunker:
    """Chunk by detected sections, then window each section independently.

    Chunks never cross a section boundary. Indices run over the whole
    document; offsets stay relative to the owning section's normalized content.
    """

    segmenter: SectionSegmenter = field(default_factory=SectionSegmenter)
    chunker: SentenceWindowChunker = field(default_factory=SentenceWindowChunker)

    def chunk(self, text: str, options: ChunkingOptions | None = None) -> list[Chunk]:
        return self.chunk_sections(self.segmenter.segment(text), options)

    def chunk_sections(self, sections: list[Section], options: ChunkingOptions | None = None) -> list[Chunk]:
        chunks: list[Chunk] = []
        for section in sections:
            for c in self.chunker.chunk(section.content, options):
                chunks.append(c.with_section(len(chunks), section.title))
        return chunks


def chunk_with_structure(text: str, options: ChunkingOptions | None = None) -> list[Chunk]:
    return StructuredSectionChunker().chunk(text, options)
