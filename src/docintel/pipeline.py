"""Per-document processing and batch ingestion.

``DocumentPipeline.process`` runs classification, profiling, segmentation,
chunking and knowledge/requirement extraction on one document. ``ingest``
does the same for many documents, optionally on a thread pool, recording a
failure per document instead of aborting the batch. Cancellation is checked
before each document starts.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Sequence, Union

from .chunkers.base import Chunk
from .chunkers.sentence_window import SentenceWindowChunker
from .chunkers.structured import StructuredSectionChunker
from .classify import DocumentClassifier, DocumentProfile
from .config import PipelineConfig
from .documents import Document, DocumentType, ExtractedText, category_for
from .errors import DocIntelError
from .extract.base import KnowledgeEntry, Requirement
from .extract.knowledge import KnowledgeExtractor
from .extract.requirements import RequirementExtractor
from .extract_pages import extract_text
from .index.embed import Embedder
from .index.retrievers import index_items
from .index.store import ChunkStore, IndexedItem
from .sections import Section, SectionSegmenter

logger = logging.getLogger(__name__)

BatchItem = Union[Document, Path]


@dataclass(frozen=True)
class ProcessedDocument:
    document: Document
    profile: DocumentProfile
    sections: list[Section]
    chunks: list[Chunk]
    knowledge: list[KnowledgeEntry]
    requirements: list[Requirement]
    quality_score: float

    @property
    def category(self) -> str:
        return self.document.category or category_for(self.profile.document_type)


@dataclass(frozen=True)
class BatchFailure:
    name: str
    error_type: str
    message: str


@dataclass
class BatchResult:
    processed: list[ProcessedDocument] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)
    # names of documents never started because the batch was cancelled
    skipped: list[str] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return bool(self.skipped)


def extraction_quality(sections: Sequence[Section], knowledge: Sequence[KnowledgeEntry]) -> float:
    """0.5 baseline, plus mean section/knowledge confidence and coverage bonuses."""
    score = 0.5
    if sections:
        score += 0.3 * sum(s.confidence for s in sections) / len(sections)
    if knowledge:
        score += 0.3 * sum(k.confidence for k in knowledge) / len(knowledge)
    if len(sections) >= 3:
        score += 0.1
    if len(knowledge) >= 5:
        score += 0.1
    return min(score, 1.0)


def document_from_file(path: Path, extractor: Callable[[Path], ExtractedText] = extract_text) -> Document:
    extracted = extractor(path)
    return Document(name=path.name, content=extracted.text)


class DocumentPipeline:
    def __init__(
        self,
        config: PipelineConfig | None = None,
        knowledge_base: Sequence[KnowledgeEntry] | None = None,
        extractor: Callable[[Path], ExtractedText] = extract_text,
    ):
        self.config = config or PipelineConfig()
        # company knowledge that requirements are matched against
        self.knowledge_base = list(knowledge_base or [])
        self.extractor = extractor

        cfg = self.config
        self.segmenter = SectionSegmenter(profile=cfg.cleaning)
        self.chunker = StructuredSectionChunker(
            segmenter=self.segmenter,
            chunker=SentenceWindowChunker(options=cfg.chunking, profile=cfg.cleaning),
        )
        self.classifier = DocumentClassifier()
        self.knowledge_extractor = KnowledgeExtractor(cfg.indicators)
        self.requirement_extractor = RequirementExtractor(cfg.indicators)

    def process(self, document: Document) -> ProcessedDocument:
        t0 = time.perf_counter()
        doc_type = self.classifier.classify(document)
        profile = self.classifier.profile(document, doc_type)
        sections = self.segmenter.segment(document.content) if document.content.strip() else []
        chunks = self.chunker.chunk_sections(sections)
        knowledge = self.knowledge_extractor.extract(sections, document, profile)

        if doc_type is DocumentType.RFP or self.config.requirements_for_all:
            requirements = self.requirement_extractor.extract(sections, self.knowledge_base)
        else:
            requirements = []

        quality = extraction_quality(sections, knowledge)
        logger.info(
            "Processed %s as %s in %.1f ms: %d sections, %d chunks, %d knowledge, %d requirements, quality %.2f",
            document.name,
            doc_type.value,
            (time.perf_counter() - t0) * 1000,
            len(sections),
            len(chunks),
            len(knowledge),
            len(requirements),
            quality,
        )
        return ProcessedDocument(
            document=document,
            profile=profile,
            sections=sections,
            chunks=chunks,
            knowledge=knowledge,
            requirements=requirements,
            quality_score=quality,
        )

    def ingest(
        self,
        items: Iterable[BatchItem],
        cancel: threading.Event | None = None,
        max_workers: int | None = None,
    ) -> BatchResult:
        """Process documents (or files) independently; one failure never stops the rest."""
        items = list(items)
        workers = max_workers or self.config.max_workers
        if workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(lambda it: self._run_one(it, cancel), items))
        else:
            outcomes = [self._run_one(it, cancel) for it in items]

        result = BatchResult()
        for item, outcome in zip(items, outcomes):
            if outcome is None:
                result.skipped.append(_item_name(item))
            elif isinstance(outcome, BatchFailure):
                result.failures.append(outcome)
            else:
                result.processed.append(outcome)

        logger.info(
            "Batch done: %d processed, %d failed, %d skipped",
            len(result.processed),
            len(result.failures),
            len(result.skipped),
        )
        return result

    def _run_one(
        self, item: BatchItem, cancel: threading.Event | None
    ) -> ProcessedDocument | BatchFailure | None:
        if cancel is not None and cancel.is_set():
            return None
        name = _item_name(item)
        try:
            document = item if isinstance(item, Document) else document_from_file(Path(item), self.extractor)
            return self.process(document)
        except DocIntelError as exc:
            logger.warning("Failed to ingest %s: %s", name, exc)
            return BatchFailure(name=name, error_type=type(exc).__name__, message=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while ingesting %s", name)
            return BatchFailure(name=name, error_type=type(exc).__name__, message=str(exc))

    def index(
        self,
        processed: Sequence[ProcessedDocument],
        store: ChunkStore,
        embedder: Embedder | None = None,
        include_knowledge: bool = False,
    ) -> int:
        """Store chunks (and optionally knowledge entries) of the given documents.

        Vectors of previously indexed items are refreshed so all share one space.
        """
        items: list[IndexedItem] = []
        for p in processed:
            doc = p.document
            for c in p.chunks:
                items.append(
                    IndexedItem(
                        item_id=f"{doc.doc_id}:{c.index}",
                        content=c.content,
                        category=p.category,
                        doc_id=doc.doc_id,
                        reference=c,
                        metadata={"document": doc.name, "section": c.metadata.section, "kind": "chunk"},
                    )
                )
            if include_knowledge:
                for k in p.knowledge:
                    items.append(
                        IndexedItem(
                            item_id=k.id,
                            content=k.content,
                            category=k.type.value,
                            doc_id=doc.doc_id,
                            reference=k,
                            metadata={"document": doc.name, "section": k.section_title, "kind": "knowledge"},
                        )
                    )
        n = index_items(store, items, embedder)
        logger.info("Indexed %d items from %d documents", n, len(processed))
        return n


def _item_name(item: BatchItem) -> str:
    return item.name if isinstance(item, Document) else Path(item).name
