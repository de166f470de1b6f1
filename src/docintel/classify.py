from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence

from .documents import DealSizeRange, Document, DocumentType, Industry


# Checked top to bottom; the first tier with any indicator in the name or body wins.
DEFAULT_TYPE_TIERS: tuple[tuple[DocumentType, tuple[str, ...]], ...] = (
    (
        DocumentType.RFP,
        (
            "request for proposal",
            "rfp",
            "proposal submission",
            "bid request",
            "evaluation criteria",
            "submission requirements",
            "proposal requirements",
        ),
    ),
    (
        DocumentType.RFP_RESPONSE,
        (
            "proposal response",
            "rfp response",
            "our proposal",
            "technical proposal",
            "executive summary",
            "company overview",
            "proposed solution",
        ),
    ),
    (
        DocumentType.CASE_STUDY,
        (
            "case study",
            "customer success",
            "implementation",
            "results achieved",
            "challenge",
            "solution",
            "outcome",
            "customer story",
        ),
    ),
    (
        DocumentType.PRICING_SHEET,
        ("pricing", "price list", "cost", "quote", "rates", "fees", "subscription", "package", "plan", "tier"),
    ),
    (
        DocumentType.TECHNICAL_DOC,
        (
            "api documentation",
            "technical specification",
            "integration guide",
            "developer guide",
            "architecture",
            "system requirements",
        ),
    ),
    (
        DocumentType.COMPLIANCE_DOC,
        ("compliance", "regulation", "gdpr", "hipaa", "sox", "iso", "certification", "audit", "security policy"),
    ),
)

DEFAULT_INDUSTRY_KEYWORDS: dict[Industry, tuple[str, ...]] = {
    Industry.HEALTHCARE: ("patient", "medical", "healthcare", "hospital", "clinic", "emr", "ehr", "hipaa"),
    Industry.FINANCE: ("financial", "bank", "investment", "trading", "payment", "credit", "loan", "sox"),
    Industry.TECHNOLOGY: ("software", "api", "cloud", "saas", "platform", "integration", "development"),
    Industry.GOVERNMENT: ("government", "ministry", "municipal", "federal", "public sector", "agency"),
    Industry.EDUCATION: ("university", "school", "student", "campus", "education"),
    Industry.RETAIL: ("retail", "store", "shopper", "e-commerce", "merchandise"),
    Industry.ENERGY: ("energy", "utility", "utilities", "grid", "renewable", "oil and gas"),
    Industry.MANUFACTURING: ("manufacturing", "factory", "plant", "supply chain", "production line"),
}

TECHNICAL_TERMS = ("api", "integration", "architecture", "protocol", "algorithm")
COMPLIANCE_TERMS = (
    "gdpr", "hipaa", "sox", "pci", "iso", "compliance", "regulation",
    "audit", "certification", "standard", "policy",
)
ENGLISH_STOPWORDS = ("the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with")
COMPETITORS = (
    "salesforce", "hubspot", "microsoft", "oracle", "sap", "workday",
    "servicenow", "tableau", "power bi", "qlik", "looker",
)

_COMPANY_PATTERNS = (
    re.compile(r"\b([A-Z][a-z]+\s+(?:Inc|Corp|Ltd|LLC|Company|Corporation))\b"),
    re.compile(r"\b([A-Z][a-z]+\s+[A-Z][a-z]+\s+(?:Inc|Corp|Ltd|LLC))\b"),
)
_BUDGET_PATTERNS = (
    re.compile(r"[$€][\d,]+(?:\.\d+)?\s?[KMB]?\b"),
    re.compile(r"budget\s+of\s+[$€\d,]+", re.IGNORECASE),
    re.compile(r"value\s+[$€\d,]+", re.IGNORECASE),
)
_AMOUNT_RE = re.compile(r"[$€]([\d,]+(?:\.\d+)?)\s?([KMB])?\b")
_MULTIPLIERS = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(k in text for k in keywords)


def _count_terms(text: str, terms: Sequence[str]) -> int:
    return sum(len(re.findall(rf"\b{re.escape(t)}\b", text)) for t in terms)


@dataclass(frozen=True)
class DocumentProfile:
    document_type: DocumentType
    industry: Industry
    complexity: float
    language: str
    client_indicators: list[str] = field(default_factory=list)
    deal_size_indicators: list[str] = field(default_factory=list)
    competitor_mentions: list[str] = field(default_factory=list)
    deal_size: DealSizeRange = DealSizeRange.MEDIUM


def largest_amount(text: str) -> float | None:
    """Largest currency amount mentioned in the text ("$1.5M" -> 1_500_000)."""
    best: float | None = None
    for m in _AMOUNT_RE.finditer(text):
        digits = m.group(1).replace(",", "")
        if not digits or digits == ".":
            continue
        value = float(digits) * _MULTIPLIERS.get((m.group(2) or "").upper(), 1)
        if best is None or value > best:
            best = value
    return best


def deal_size_for(amount: float | None) -> DealSizeRange:
    if amount is None:
        return DealSizeRange.MEDIUM
    if amount < 100_000:
        return DealSizeRange.SMALL
    if amount < 1_000_000:
        return DealSizeRange.MEDIUM
    if amount < 10_000_000:
        return DealSizeRange.LARGE
    return DealSizeRange.ENTERPRISE


class DocumentClassifier:
    """Coarse document-type routing by indicator phrases.

    Overlaps are resolved by tier order, not match counts: a document that
    mentions both pricing and compliance is always a pricing sheet.
    """

    def __init__(
        self,
        tiers: Sequence[tuple[DocumentType, Sequence[str]]] = DEFAULT_TYPE_TIERS,
        industry_keywords: dict[Industry, Sequence[str]] | None = None,
    ):
        self.tiers = tuple((t, tuple(k.lower() for k in kws)) for t, kws in tiers)
        self.industry_keywords = {
            ind: tuple(kws) for ind, kws in (industry_keywords or DEFAULT_INDUSTRY_KEYWORDS).items()
        }

    def classify(self, document: Document) -> DocumentType:
        content = document.content.lower()
        name = document.name.lower()
        for doc_type, indicators in self.tiers:
            if _contains_any(content, indicators) or _contains_any(name, indicators):
                return doc_type
        return DocumentType.COMPANY_DOC

    def detect_industry(self, text: str) -> Industry:
        lowered = text.lower()
        best, best_score = Industry.OTHER, 0
        for industry, keywords in self.industry_keywords.items():
            score = _count_terms(lowered, keywords)
            if score > best_score:
                best, best_score = industry, score
        return best

    def profile(self, document: Document, doc_type: DocumentType | None = None) -> DocumentProfile:
        text = document.content
        lowered = text.lower()
        return DocumentProfile(
            document_type=doc_type or self.classify(document),
            industry=self.detect_industry(text),
            complexity=self._complexity(lowered),
            language="en" if _count_terms(lowered, ENGLISH_STOPWORDS) > 10 else "unknown",
            client_indicators=self._client_indicators(text),
            deal_size_indicators=[m.group(0) for rx in _BUDGET_PATTERNS for m in rx.finditer(text)],
            competitor_mentions=[c for c in COMPETITORS if c in lowered],
            deal_size=deal_size_for(largest_amount(text)),
        )

    @staticmethod
    def _complexity(lowered: str) -> float:
        complexity = 1.0
        if len(lowered) > 10_000:
            complexity += 2
        if len(lowered) > 50_000:
            complexity += 3
        complexity += min(_count_terms(lowered, TECHNICAL_TERMS) / 10, 3)
        complexity += min(_count_terms(lowered, COMPLIANCE_TERMS) / 5, 2)
        return min(complexity, 10.0)

    @staticmethod
    def _client_indicators(text: str) -> list[str]:
        found: list[str] = []
        for rx in _COMPANY_PATTERNS:
            for m in rx.finditer(text):
                if m.group(1) not in found:
                    found.append(m.group(1))
        return found
