from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum


class DocumentType(str, Enum):
    RFP = "rfp"
    RFP_RESPONSE = "rfp_response"
    CASE_STUDY = "case_study"
    PRICING_SHEET = "pricing_sheet"
    TECHNICAL_DOC = "technical_doc"
    COMPLIANCE_DOC = "compliance_doc"
    COMPANY_DOC = "company_doc"


class Industry(str, Enum):
    HEALTHCARE = "healthcare"
    FINANCE = "finance"
    TECHNOLOGY = "technology"
    MANUFACTURING = "manufacturing"
    EDUCATION = "education"
    GOVERNMENT = "government"
    RETAIL = "retail"
    ENERGY = "energy"
    OTHER = "other"


class DealSizeRange(str, Enum):
    SMALL = "small"  # < $100K
    MEDIUM = "medium"  # $100K - $1M
    LARGE = "large"  # $1M - $10M
    ENTERPRISE = "enterprise"  # > $10M


# Routing category stored with indexed fragments, used by category-filtered search.
CATEGORY_BY_TYPE: dict[DocumentType, str] = {
    DocumentType.RFP: "rfp",
    DocumentType.RFP_RESPONSE: "rfp_response",
    DocumentType.CASE_STUDY: "case_study",
    DocumentType.PRICING_SHEET: "pricing",
    DocumentType.TECHNICAL_DOC: "technical",
    DocumentType.COMPLIANCE_DOC: "compliance",
    DocumentType.COMPANY_DOC: "company",
}


def category_for(doc_type: DocumentType) -> str:
    return CATEGORY_BY_TYPE[doc_type]


@dataclass(frozen=True)
class Document:
    """A document whose text has already been extracted."""

    name: str
    content: str
    doc_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    # explicit routing category; None means "derive from the classified type"
    category: str | None = None


@dataclass(frozen=True)
class ExtractedText:
    text: str
    page_count: int | None = None
