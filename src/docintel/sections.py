"""Heading-based document segmentation.

Heuristic, not a structural parse: heading patterns are tried in a fixed
order and the first one that matches more than one line partitions the
document. There is no arbitration between competing patterns.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

from .clean import normalize_lines
from .clean_profiles import DEFAULT_PROFILE, CleaningProfile


NOISE_THRESHOLD = 50  # chars; shorter section bodies are dropped
FALLBACK_TITLE = "Document Content"
PREAMBLE_TITLE = "Preamble"

BASE_CONFIDENCE = 0.5
PATTERN_CONFIDENCE_STEP = 0.2


class SectionType(str, Enum):
    EXECUTIVE_SUMMARY = "executive_summary"
    REQUIREMENTS = "requirements"
    EVALUATION_CRITERIA = "evaluation_criteria"
    SUBMISSION_GUIDELINES = "submission_guidelines"
    TECHNICAL_SPECIFICATIONS = "technical_specifications"
    COMPLIANCE_REQUIREMENTS = "compliance_requirements"
    PRICING_INFORMATION = "pricing_information"
    COMPANY_BACKGROUND = "company_background"
    CASE_STUDY = "case_study"
    TIMELINE = "timeline"
    GENERAL = "general"


REQUIREMENT_SECTION_TYPES = frozenset(
    {
        SectionType.REQUIREMENTS,
        SectionType.TECHNICAL_SPECIFICATIONS,
        SectionType.COMPLIANCE_REQUIREMENTS,
    }
)


@dataclass(frozen=True)
class Section:
    title: str
    content: str
    type: SectionType = SectionType.GENERAL
    confidence: float = BASE_CONFIDENCE

    @property
    def is_requirement_section(self) -> bool:
        return self.type in REQUIREMENT_SECTION_TYPES


# Heading detectors, in priority order. Group 1 is the title.
HEADING_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    # "1. OVERVIEW", "2.3 Scope of Work"
    ("numbered", re.compile(r"^(\d+(?:\.\d+)*\.?[ \t]+[A-Z][^:\n]*):?[ \t]*$", re.MULTILINE)),
    # "TECHNICAL REQUIREMENTS"
    ("all_caps", re.compile(r"^([A-Z][A-Z \t&/-]{3,}?):?[ \t]*$", re.MULTILINE)),
    # "SECTION 4: Pricing"
    ("section_marker", re.compile(r"^(SECTION[ \t]+\d+\b[^\n]*?)[ \t]*$", re.MULTILINE | re.IGNORECASE)),
    # "Executive Summary"
    ("title_case", re.compile(r"^([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*):?[ \t]*$", re.MULTILINE)),
)


# Section type detectors, in priority order (first type whose pattern hits wins).
DEFAULT_SECTION_PATTERNS: dict[SectionType, tuple[str, ...]] = {
    SectionType.EXECUTIVE_SUMMARY: (r"executive\s+summary", r"\boverview\b", r"\bintroduction\b"),
    SectionType.COMPLIANCE_REQUIREMENTS: (
        r"\bcompliance\b",
        r"\bregulat\w*",
        r"\bgdpr\b",
        r"\bhipaa\b",
        r"\bcertification\b",
        r"security\s+polic\w*",
    ),
    SectionType.TECHNICAL_SPECIFICATIONS: (
        r"technical\s+(?:specifications?|requirements?)",
        r"\barchitecture\b",
        r"\bintegrations?\b",
        r"\binfrastructure\b",
    ),
    SectionType.EVALUATION_CRITERIA: (
        r"evaluation\s+criteria",
        r"\bscoring\b",
        r"\bassessment\b",
        r"selection\s+criteria",
    ),
    SectionType.REQUIREMENTS: (r"\brequirements?\b", r"\bspecifications?\b", r"must\s+have"),
    SectionType.SUBMISSION_GUIDELINES: (r"\bsubmission\b", r"\bdeadline\b", r"proposal\s+format"),
    SectionType.PRICING_INFORMATION: (r"\bpricing\b", r"\bprice\b", r"\bcosts?\b", r"\bfees?\b"),
    SectionType.CASE_STUDY: (r"case\s+stud(?:y|ies)", r"customer\s+success", r"\breferences?\b"),
    SectionType.TIMELINE: (r"\btimeline\b", r"\bschedule\b", r"\bmilestones?\b"),
    SectionType.COMPANY_BACKGROUND: (r"about\s+us", r"company\s+(?:background|overview|profile)", r"\bhistory\b"),
}


@dataclass
class SectionSegmenter:
    min_section_chars: int = NOISE_THRESHOLD
    profile: CleaningProfile = DEFAULT_PROFILE
    section_patterns: Mapping[SectionType, Sequence[str]] = field(
        default_factory=lambda: dict(DEFAULT_SECTION_PATTERNS)
    )

    def __post_init__(self) -> None:
        self._type_table: list[tuple[SectionType, list[re.Pattern]]] = [
            (stype, [re.compile(p, re.IGNORECASE) for p in patterns])
            for stype, patterns in self.section_patterns.items()
        ]

    def segment(self, text: str) -> list[Section]:
        text = normalize_lines(text, self.profile)
        if not text:
            return []

        sections: list[Section] = []
        for _name, pattern in HEADING_PATTERNS:
            matches = list(pattern.finditer(text))
            if len(matches) <= 1:
                continue

            preamble = text[: matches[0].start()].strip()
            if len(preamble) > self.min_section_chars:
                sections.append(self.tag(PREAMBLE_TITLE, preamble))

            for i, m in enumerate(matches):
                end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
                content = text[m.end() : end].strip()
                if len(content) > self.min_section_chars:
                    sections.append(self.tag(m.group(1).strip(), content))
            # first pattern that segments wins
            break

        if not sections:
            sections.append(self.tag(FALLBACK_TITLE, text))
        return sections

    def tag(self, title: str, content: str) -> Section:
        """Build a Section, assigning its type and confidence from the pattern table."""
        stype, patterns = self._detect_type(title, content)
        if stype is SectionType.GENERAL:
            return Section(title=title, content=content, type=stype, confidence=BASE_CONFIDENCE)

        haystack = f"{title}\n{content}"
        hits = sum(1 for p in patterns if p.search(haystack))
        confidence = min(BASE_CONFIDENCE + PATTERN_CONFIDENCE_STEP * hits, 1.0)
        return Section(title=title, content=content, type=stype, confidence=confidence)

    def _detect_type(self, title: str, content: str) -> tuple[SectionType, list[re.Pattern]]:
        # Titles are the strong signal; only look at the opening of the body if the title says nothing.
        for haystack in (title, content[:200]):
            for stype, patterns in self._type_table:
                if any(p.search(haystack) for p in patterns):
                    return stype, patterns
        return SectionType.GENERAL, []
