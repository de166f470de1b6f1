"""Tests for rule-based knowledge and requirement extraction."""

import pytest

from docintel.classify import DocumentProfile
from docintel.documents import DealSizeRange, Document, DocumentType, Industry
from docintel.extract.base import (
    BusinessImpact,
    Criticality,
    KnowledgeEntry,
    KnowledgeType,
    MatchStatus,
    RequirementCategory,
)
from docintel.extract.indicators import tables_from_cfg
from docintel.extract.knowledge import KnowledgeExtractor
from docintel.extract.requirements import RequirementExtractor, match_capability, requirement_keywords
from docintel.sections import Section, SectionType


def compliance_section(content: str, confidence: float = 0.9) -> Section:
    return Section(title="Compliance", content=content, type=SectionType.COMPLIANCE_REQUIREMENTS, confidence=confidence)


def knowledge_entry(content: str) -> KnowledgeEntry:
    return KnowledgeEntry(content=content, type=KnowledgeType.CAPABILITY, source_document_ids=["kb"], confidence=0.8)


class TestRequirementExtractor:
    def test_security_requirement_in_compliance_section(self) -> None:
        section = compliance_section("Zenloop provides 2FA authentication, a mandatory security requirement.")
        reqs = RequirementExtractor().extract([section])

        assert len(reqs) == 1
        req = reqs[0]
        assert req.category is RequirementCategory.SECURITY
        assert req.criticality is Criticality.MUST_HAVE
        assert req.compliance_mandatory is True
        assert req.confidence == pytest.approx(0.9)
        assert req.section_title == "Compliance"

    def test_only_requirement_sections_are_read(self) -> None:
        section = Section(
            title="About",
            content="Zenloop provides 2FA authentication, a mandatory security requirement.",
            type=SectionType.GENERAL,
        )
        assert RequirementExtractor().extract([section]) == []

    def test_sentence_needs_an_obligation(self) -> None:
        section = compliance_section("Our team enjoys working with hospitals across Europe.")
        assert RequirementExtractor().extract([section]) == []

    def test_risk_factors(self) -> None:
        extractor = RequirementExtractor()
        req = extractor.build("A custom integration is urgent and must ship first.", compliance_section(""))
        assert req.risk_factors == ["Custom development required", "Timeline pressure"]
        assert req.category is RequirementCategory.INTEGRATION

        req = extractor.build("The budget is limited, so vendors should keep costs low.", compliance_section(""))
        assert req.risk_factors == ["Budget constraints"]
        assert req.category is RequirementCategory.PRICING
        assert req.criticality is Criticality.SHOULD_HAVE

    def test_fallbacks(self) -> None:
        section = compliance_section("Vendors will offer dark mode as a nice extra.", confidence=0.5)
        (req,) = RequirementExtractor().extract([section])

        assert req.category is RequirementCategory.FUNCTIONAL
        assert req.criticality is Criticality.NICE_TO_HAVE
        assert req.compliance_mandatory is False
        assert req.confidence == pytest.approx(0.7)
        assert req.capability_match.status is MatchStatus.UNKNOWN

    def test_tables_can_be_overridden(self) -> None:
        tables = tables_from_cfg({"criticality_levels": {"must_have": ["required"]}})
        extractor = RequirementExtractor(tables)
        assert extractor.criticality("Single sign-on is required.") is Criticality.MUST_HAVE
        assert extractor.criticality("Vendors must comply.") is Criticality.UNKNOWN

    def test_risk_rules_can_be_overridden(self) -> None:
        tables = tables_from_cfg({"risk_rules": {"Vendor lock-in": [["proprietary", "format"]]}})
        extractor = RequirementExtractor(tables)
        assert extractor.risk_factors("Exports must use a proprietary format.") == ["Vendor lock-in"]
        assert extractor.risk_factors("Exports must be proprietary.") == []

    def test_unknown_table_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            tables_from_cfg({"bogus": []})


class TestCapabilityMatch:
    def test_keywords_skip_common_words(self) -> None:
        assert requirement_keywords("The platform must provide encrypted storage.") == [
            "platform",
            "encrypted",
            "storage",
        ]

    def test_partial_match(self) -> None:
        kb = [knowledge_entry("We provide encrypted storage and single sign-on for every account.")]
        match = match_capability("The platform must provide encrypted storage and audit logging.", kb)

        assert match.score == 40
        assert match.status is MatchStatus.PARTIAL_MATCH
        assert match.gaps == ["platform", "audit", "logging"]

    def test_full_match(self) -> None:
        kb = [
            knowledge_entry("Dashboards refresh every minute."),
            knowledge_entry("We provide encrypted storage in EU regions."),
        ]
        match = match_capability("Encrypted storage is mandatory.", kb)
        assert match.score == 100
        assert match.status is MatchStatus.FULL_MATCH
        assert match.gaps == []

    def test_no_match(self) -> None:
        kb = [knowledge_entry("Dashboards refresh every minute.")]
        match = match_capability("Encrypted storage is mandatory.", kb)
        assert match.status is MatchStatus.NO_MATCH
        assert match.score == 0

    def test_without_knowledge_base(self) -> None:
        match = match_capability("Encrypted storage is mandatory.", [])
        assert match.status is MatchStatus.UNKNOWN
        assert match.score == 0

    def test_extractor_uses_knowledge_base(self) -> None:
        kb = [knowledge_entry("We provide encrypted storage in EU regions.")]
        section = compliance_section("Encrypted storage is mandatory.")
        (req,) = RequirementExtractor().extract([section], kb)
        assert req.capability_match.status is MatchStatus.FULL_MATCH


class TestKnowledgeExtractor:
    def test_extracts_indicator_sentences(self) -> None:
        doc = Document(name="company.txt", content="")
        section = Section(
            title="About",
            content="We provide certified onboarding with 10 years of experience. The weather is nice today.",
        )
        entries = KnowledgeExtractor().extract([section], doc)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.content == "We provide certified onboarding with 10 years of experience."
        assert entry.type is KnowledgeType.CAPABILITY
        assert entry.confidence == pytest.approx(0.85)
        assert entry.source_document_ids == [doc.doc_id]
        assert entry.metadata.business_impact is BusinessImpact.MEDIUM
        assert entry.section_title == "About"

    def test_type_and_impact(self) -> None:
        extractor = KnowledgeExtractor()
        assert extractor.categorize("Our solution pricing starts at 10 euros per seat.") is KnowledgeType.PRICING
        assert extractor.categorize("Our API is fully documented.") is KnowledgeType.TECHNICAL_SPEC
        assert extractor.categorize("A unique advantage is speed.") is KnowledgeType.DIFFERENTIATOR
        assert extractor.business_impact("This is a critical capability.") is BusinessImpact.HIGH

    def test_section_confidence_boost(self) -> None:
        strong = Section(title="Overview", content="x", type=SectionType.EXECUTIVE_SUMMARY, confidence=0.9)
        assert KnowledgeExtractor().score("Our solution is proven.", strong) == pytest.approx(0.8)

    def test_boosts_can_be_overridden(self) -> None:
        tables = tables_from_cfg({"knowledge_boosts": [{"phrases": ["proven"], "delta": 0.3}]})
        strong = Section(title="Overview", content="x", type=SectionType.EXECUTIVE_SUMMARY, confidence=0.9)
        extractor = KnowledgeExtractor(tables)
        assert extractor.score("Our solution is proven.", strong) == pytest.approx(0.9)
        assert extractor.score("Our solution is certified.", strong) == pytest.approx(0.6)

    def test_profile_sets_metadata(self) -> None:
        doc = Document(name="case.txt", content="")
        profile = DocumentProfile(
            document_type=DocumentType.CASE_STUDY,
            industry=Industry.HEALTHCARE,
            complexity=2.0,
            language="en",
            deal_size=DealSizeRange.LARGE,
        )
        section = Section(title="Results", content="Our solution cut patient wait times in half.")
        (entry,) = KnowledgeExtractor().extract([section], doc, profile)

        assert entry.metadata.industry_relevance == [Industry.HEALTHCARE]
        assert entry.metadata.deal_size_applicability is DealSizeRange.LARGE

    def test_record_use_returns_new_entry(self) -> None:
        entry = knowledge_entry("We provide audits.")
        used = entry.record_use()
        assert used.usage_count == 1
        assert entry.usage_count == 0
        assert used.id == entry.id

    def test_no_sections(self) -> None:
        assert KnowledgeExtractor().extract([], Document(name="x", content="")) == []
