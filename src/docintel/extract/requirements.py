from __future__ import annotations

import re
from typing import Iterable, Sequence

from ..clean import simple_tokenize, split_sentences
from ..sections import Section
from .base import CapabilityMatch, Criticality, KnowledgeEntry, MatchStatus, Requirement, RequirementCategory
from .indicators import DEFAULT_TABLES, IndicatorTables, PhraseTable, compile_phrases


FULL_MATCH_SCORE = 80
PARTIAL_MATCH_SCORE = 40

# words too common in solicitations to count as capability keywords
_KEYWORD_STOPWORDS = frozenset(
    {
        "must", "shall", "should", "will", "need", "needs", "require", "requires", "required",
        "mandatory", "essential", "vendor", "vendors", "provider", "solution", "system", "with",
        "that", "this", "from", "have", "their", "they", "which", "into", "able", "also",
        "provide", "provides", "support", "supports", "ensure", "including", "within", "each",
    }
)


def requirement_keywords(text: str) -> list[str]:
    """Distinctive words of a requirement, in order of first appearance."""
    seen: list[str] = []
    for tok in simple_tokenize(text):
        if len(tok) > 3 and tok not in _KEYWORD_STOPWORDS and tok not in seen:
            seen.append(tok)
    return seen


def match_capability(text: str, knowledge: Sequence[KnowledgeEntry]) -> CapabilityMatch:
    """Score how well the best knowledge entry covers the requirement's keywords."""
    keywords = requirement_keywords(text)
    if not knowledge or not keywords:
        return CapabilityMatch()

    best_covered: set[str] = set()
    for entry in knowledge:
        entry_tokens = set(simple_tokenize(entry.content))
        covered = {k for k in keywords if k in entry_tokens}
        if len(covered) > len(best_covered):
            best_covered = covered

    score = round(100 * len(best_covered) / len(keywords))
    if score >= FULL_MATCH_SCORE:
        status = MatchStatus.FULL_MATCH
    elif score >= PARTIAL_MATCH_SCORE:
        status = MatchStatus.PARTIAL_MATCH
    else:
        status = MatchStatus.NO_MATCH
    return CapabilityMatch(
        score=score,
        status=status,
        gaps=[k for k in keywords if k not in best_covered],
    )


class RequirementExtractor:
    """Pulls obligation statements out of requirement-typed sections.

    A sentence is a requirement only if it carries an obligation indicator and
    its section is tagged requirements, technical specifications or
    compliance requirements.
    """

    def __init__(self, tables: IndicatorTables = DEFAULT_TABLES):
        self.tables = tables
        self._obligations = [re.compile(p, re.IGNORECASE) for p in tables.obligation_patterns]
        self._categories = PhraseTable(tables.requirement_categories)
        self._criticality = PhraseTable(tables.criticality_levels)
        self._mandatory = compile_phrases(tables.compliance_mandatory_indicators)
        self._risks = [
            (label, [[compile_phrases([p]) for p in alt] for alt in alternatives])
            for label, alternatives in tables.risk_rules
        ]

    def extract(
        self,
        sections: Iterable[Section],
        knowledge: Sequence[KnowledgeEntry] | None = None,
    ) -> list[Requirement]:
        requirements: list[Requirement] = []
        for section in sections:
            if not section.is_requirement_section:
                continue
            for sentence in split_sentences(section.content):
                if not self.is_requirement(sentence):
                    continue
                requirements.append(self.build(sentence, section, knowledge))
        return requirements

    def build(
        self,
        sentence: str,
        section: Section,
        knowledge: Sequence[KnowledgeEntry] | None = None,
    ) -> Requirement:
        criticality = self.criticality(sentence)
        mandatory = self.is_compliance_mandatory(sentence)
        return Requirement(
            text=sentence,
            category=self.categorize(sentence),
            criticality=criticality,
            compliance_mandatory=mandatory,
            capability_match=match_capability(sentence, knowledge or []),
            risk_factors=self.risk_factors(sentence),
            confidence=self.score(criticality, mandatory, section),
            section_title=section.title,
        )

    def is_requirement(self, sentence: str) -> bool:
        if len(sentence) <= self.tables.min_sentence_chars:
            return False
        return any(rx.search(sentence) for rx in self._obligations)

    def categorize(self, sentence: str) -> RequirementCategory:
        return self._categories.first(sentence, RequirementCategory.FUNCTIONAL)

    def criticality(self, sentence: str) -> Criticality:
        return self._criticality.first(sentence, Criticality.UNKNOWN)

    def is_compliance_mandatory(self, sentence: str) -> bool:
        return self._mandatory is not None and bool(self._mandatory.search(sentence))

    def risk_factors(self, sentence: str) -> list[str]:
        found: list[str] = []
        for label, alternatives in self._risks:
            if any(all(rx is not None and rx.search(sentence) for rx in alt) for alt in alternatives):
                found.append(label)
        return found

    def score(self, criticality: Criticality, mandatory: bool, section: Section) -> float:
        t = self.tables
        confidence = t.base_confidence
        if criticality is not Criticality.UNKNOWN:
            confidence += t.explicit_criticality_boost
        if mandatory:
            confidence += t.compliance_mandatory_boost
        if section.confidence > t.section_confidence_threshold:
            confidence += t.section_confidence_boost
        return min(confidence, 1.0)
