"""Tests for per-document processing, batch ingestion and indexing."""

import threading
from pathlib import Path

import pytest

from docintel.config import PipelineConfig
from docintel.documents import Document, DocumentType, ExtractedText, Industry
from docintel.errors import ExtractionError
from docintel.extract.base import Criticality, RequirementCategory
from docintel.index.embed import TfidfEmbedder
from docintel.index.retrievers import LexicalScorer, Retriever, VectorScorer
from docintel.index.store import InMemoryStore
from docintel.pipeline import DocumentPipeline, extraction_quality
from docintel.sections import Section


@pytest.fixture
def pipeline() -> DocumentPipeline:
    return DocumentPipeline()


class TestProcess:
    def test_rfp_document(self, pipeline, rfp_text) -> None:
        doc = Document(name="feedback_rfp.txt", content=rfp_text)
        result = pipeline.process(doc)

        assert result.profile.document_type is DocumentType.RFP
        assert result.profile.industry is Industry.HEALTHCARE
        assert result.category == "rfp"
        assert [s.title for s in result.sections] == [
            "1. Introduction",
            "2. Technical Requirements",
            "3. Pricing",
        ]
        assert [c.metadata.section for c in result.chunks] == [s.title for s in result.sections]

        reqs = {r.category: r for r in result.requirements}
        assert set(reqs) == {
            RequirementCategory.SECURITY,
            RequirementCategory.INTEGRATION,
            RequirementCategory.PERFORMANCE,
        }
        assert reqs[RequirementCategory.INTEGRATION].criticality is Criticality.SHOULD_HAVE
        assert all(r.section_title == "2. Technical Requirements" for r in result.requirements)
        assert 0.5 <= result.quality_score <= 1.0

    def test_requirements_only_for_rfps(self, pipeline, rfp_text) -> None:
        text = rfp_text.replace("Request for Proposal", "Customer Feedback")
        text = text.replace("evaluation criteria", "details")
        result = pipeline.process(Document(name="brief.txt", content=text))

        assert result.profile.document_type is not DocumentType.RFP
        assert result.requirements == []

    def test_requirements_for_all_documents(self, rfp_text) -> None:
        text = rfp_text.replace("Request for Proposal", "Customer Feedback")
        text = text.replace("evaluation criteria", "details")
        pipeline = DocumentPipeline(PipelineConfig(requirements_for_all=True))
        result = pipeline.process(Document(name="brief.txt", content=text))
        assert len(result.requirements) == 3

    def test_explicit_category_wins(self, pipeline, pricing_text) -> None:
        result = pipeline.process(Document(name="p.txt", content=pricing_text, category="sales"))
        assert result.category == "sales"

    def test_empty_document(self, pipeline) -> None:
        result = pipeline.process(Document(name="empty.txt", content=""))

        assert result.sections == []
        assert result.chunks == []
        assert result.knowledge == []
        assert result.requirements == []
        assert result.quality_score == pytest.approx(0.5)


class TestExtractionQuality:
    def test_baseline(self) -> None:
        assert extraction_quality([], []) == pytest.approx(0.5)

    def test_section_confidence_and_coverage(self) -> None:
        sections = [Section(title=f"s{i}", content="x", confidence=1.0) for i in range(3)]
        # 0.5 + 0.3 * 1.0 + 0.1 for three sections
        assert extraction_quality(sections, []) == pytest.approx(0.9)


def fake_extractor(texts: dict[str, str]):
    def extract(path: Path) -> ExtractedText:
        if path.name not in texts:
            raise ExtractionError(f"cannot read {path.name}")
        return ExtractedText(text=texts[path.name])

    return extract


class TestIngest:
    def test_failures_are_isolated(self, rfp_text, pricing_text) -> None:
        pipeline = DocumentPipeline(
            extractor=fake_extractor({"rfp.txt": rfp_text, "pricing.txt": pricing_text})
        )
        result = pipeline.ingest([Path("rfp.txt"), Path("broken.pdf"), Path("pricing.txt")])

        assert [p.document.name for p in result.processed] == ["rfp.txt", "pricing.txt"]
        assert len(result.failures) == 1
        assert result.failures[0].name == "broken.pdf"
        assert result.failures[0].error_type == "ExtractionError"
        assert not result.cancelled

    def test_thread_pool_keeps_input_order(self, rfp_text, pricing_text) -> None:
        docs = [Document(name=f"d{i}.txt", content=rfp_text if i % 2 else pricing_text) for i in range(6)]
        result = DocumentPipeline().ingest(docs, max_workers=3)

        assert [p.document.name for p in result.processed] == [d.name for d in docs]
        assert result.failures == []

    def test_unexpected_errors_are_recorded(self, pricing_text) -> None:
        def explode(path: Path) -> ExtractedText:
            raise RuntimeError("disk on fire")

        result = DocumentPipeline(extractor=explode).ingest([Path("a.txt")])
        assert result.failures[0].error_type == "RuntimeError"
        assert result.processed == []

    def test_cancel_before_start(self, pricing_text) -> None:
        cancel = threading.Event()
        cancel.set()
        docs = [Document(name="a.txt", content=pricing_text), Document(name="b.txt", content=pricing_text)]
        result = DocumentPipeline().ingest(docs, cancel=cancel)

        assert result.processed == []
        assert result.skipped == ["a.txt", "b.txt"]
        assert result.cancelled

    def test_cancel_between_documents(self, pricing_text) -> None:
        cancel = threading.Event()

        def extract_then_cancel(path: Path) -> ExtractedText:
            cancel.set()
            return ExtractedText(text=pricing_text)

        pipeline = DocumentPipeline(extractor=extract_then_cancel)
        result = pipeline.ingest([Path("a.txt"), Path("b.txt")], cancel=cancel)

        # the running document finishes; the next one never starts
        assert [p.document.name for p in result.processed] == ["a.txt"]
        assert result.skipped == ["b.txt"]


class TestIndex:
    def test_chunks_indexed_with_document_category(self, pipeline, rfp_text, pricing_text) -> None:
        processed = [
            pipeline.process(Document(name="rfp.txt", content=rfp_text)),
            pipeline.process(Document(name="pricing.txt", content=pricing_text)),
        ]
        store = InMemoryStore()
        n = pipeline.index(processed, store)

        assert n == sum(len(p.chunks) for p in processed)
        assert {it.category for it in store.query()} == {"rfp", "pricing"}

        results = Retriever(store, LexicalScorer()).search("pricing packages", category="pricing")
        assert [store.get(r.item_id).metadata["document"] for r in results] == ["pricing.txt"]

    def test_knowledge_and_vectors(self, pipeline, pricing_text) -> None:
        processed = [pipeline.process(Document(name="pricing.txt", content=pricing_text))]
        store = InMemoryStore()
        pipeline.index(processed, store, TfidfEmbedder(), include_knowledge=True)

        kinds = [it.metadata["kind"] for it in store.query()]
        assert "chunk" in kinds
        assert all(it.vector is not None for it in store.query())

    def test_vector_search_after_indexing_in_two_calls(self, pipeline, rfp_text, pricing_text) -> None:
        store = InMemoryStore()
        embedder = TfidfEmbedder()
        pipeline.index([pipeline.process(Document(name="rfp.txt", content=rfp_text))], store, embedder)
        pipeline.index([pipeline.process(Document(name="pricing.txt", content=pricing_text))], store, embedder)

        assert len({it.vector.shape[0] for it in store.query()}) == 1
        results = Retriever(store, VectorScorer(embedder)).search("pricing packages")
        assert results
        assert store.get(results[0].item_id).metadata["document"] == "pricing.txt"
