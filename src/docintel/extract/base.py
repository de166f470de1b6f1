from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum

from ..documents import DealSizeRange, Industry


class KnowledgeType(str, Enum):
    CAPABILITY = "capability"
    PRICING = "pricing"
    CASE_STUDY = "case_study"
    TECHNICAL_SPEC = "technical_spec"
    COMPLIANCE = "compliance"
    DIFFERENTIATOR = "differentiator"


class ValidationStatus(str, Enum):
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"
    OUTDATED = "outdated"


class BusinessImpact(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RequirementCategory(str, Enum):
    FUNCTIONAL = "functional"
    TECHNICAL = "technical"
    PERFORMANCE = "performance"
    SECURITY = "security"
    COMPLIANCE = "compliance"
    INTEGRATION = "integration"
    SUPPORT = "support"
    PRICING = "pricing"


class Criticality(str, Enum):
    MUST_HAVE = "must_have"
    SHOULD_HAVE = "should_have"
    NICE_TO_HAVE = "nice_to_have"
    UNKNOWN = "unknown"


class MatchStatus(str, Enum):
    FULL_MATCH = "full_match"
    PARTIAL_MATCH = "partial_match"
    NO_MATCH = "no_match"
    UNKNOWN = "unknown"


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class KnowledgeMetadata:
    industry_relevance: list[Industry] = field(default_factory=lambda: [Industry.OTHER])
    deal_size_applicability: DealSizeRange = DealSizeRange.MEDIUM
    business_impact: BusinessImpact = BusinessImpact.MEDIUM


@dataclass(frozen=True)
class KnowledgeEntry:
    content: str
    type: KnowledgeType
    source_document_ids: list[str]
    confidence: float
    metadata: KnowledgeMetadata = field(default_factory=KnowledgeMetadata)
    validation_status: ValidationStatus = ValidationStatus.PENDING
    usage_count: int = 0
    section_title: str | None = None
    id: str = field(default_factory=new_id)

    def record_use(self) -> "KnowledgeEntry":
        """Copy with usage_count bumped; entries themselves never change."""
        return replace(self, usage_count=self.usage_count + 1)


@dataclass(frozen=True)
class CapabilityMatch:
    score: int = 0  # 0-100
    status: MatchStatus = MatchStatus.UNKNOWN
    gaps: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Requirement:
    text: str
    category: RequirementCategory = RequirementCategory.FUNCTIONAL
    criticality: Criticality = Criticality.UNKNOWN
    compliance_mandatory: bool = False
    capability_match: CapabilityMatch = field(default_factory=CapabilityMatch)
    risk_factors: list[str] = field(default_factory=list)
    confidence: float = 0.5
    section_title: str | None = None
    id: str = field(default_factory=new_id)
