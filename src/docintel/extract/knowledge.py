from __future__ import annotations

from typing import Iterable

from ..classify import DocumentProfile
from ..clean import split_sentences
from ..documents import DealSizeRange, Document, Industry
from ..sections import Section
from .base import BusinessImpact, KnowledgeEntry, KnowledgeMetadata, KnowledgeType
from .indicators import DEFAULT_TABLES, IndicatorTables, PhraseTable, compile_phrases


class KnowledgeExtractor:
    """Sentence-level knowledge mining over classified sections.

    A sentence becomes a KnowledgeEntry when it contains one of the knowledge
    indicators; its type, confidence and business impact come from the
    indicator tables. Low-confidence entries are still returned.
    """

    def __init__(self, tables: IndicatorTables = DEFAULT_TABLES):
        self.tables = tables
        self._indicators = compile_phrases(tables.knowledge_indicators)
        self._types = PhraseTable(tables.knowledge_types)
        self._boosts = [(compile_phrases(phrases), delta) for phrases, delta in tables.knowledge_boosts]
        self._high_impact = compile_phrases(tables.high_impact_indicators)

    def extract(
        self,
        sections: Iterable[Section],
        document: Document,
        profile: DocumentProfile | None = None,
    ) -> list[KnowledgeEntry]:
        industry = profile.industry if profile else Industry.OTHER
        deal_size = profile.deal_size if profile else DealSizeRange.MEDIUM

        entries: list[KnowledgeEntry] = []
        for section in sections:
            for sentence in split_sentences(section.content):
                if not self.is_knowledge(sentence):
                    continue
                entries.append(
                    KnowledgeEntry(
                        content=sentence,
                        type=self.categorize(sentence),
                        source_document_ids=[document.doc_id],
                        confidence=self.score(sentence, section),
                        metadata=KnowledgeMetadata(
                            industry_relevance=[industry],
                            deal_size_applicability=deal_size,
                            business_impact=self.business_impact(sentence),
                        ),
                        section_title=section.title,
                    )
                )
        return entries

    def is_knowledge(self, sentence: str) -> bool:
        if len(sentence) <= self.tables.min_sentence_chars or self._indicators is None:
            return False
        return bool(self._indicators.search(sentence))

    def categorize(self, sentence: str) -> KnowledgeType:
        return self._types.first(sentence, KnowledgeType.CAPABILITY)

    def score(self, sentence: str, section: Section) -> float:
        confidence = self.tables.base_confidence
        for rx, delta in self._boosts:
            if rx is not None and rx.search(sentence):
                confidence += delta
        if section.confidence > self.tables.section_confidence_threshold:
            confidence += self.tables.section_confidence_boost
        return min(confidence, 1.0)

    def business_impact(self, sentence: str) -> BusinessImpact:
        if self._high_impact is not None and self._high_impact.search(sentence):
            return BusinessImpact.HIGH
        return BusinessImpact.MEDIUM
