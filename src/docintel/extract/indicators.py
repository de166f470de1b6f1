"""Indicator tables driving rule-based knowledge and requirement extraction.

Every list and confidence delta lives here rather than in control flow, so a
caller can swap in its own tables (per tenant, per language) without touching
the extractors. The deltas are hand-tuned defaults and have not been
calibrated against labelled data.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from typing import Mapping, Sequence, TypeVar

from .base import Criticality, KnowledgeType, RequirementCategory


E = TypeVar("E")


@dataclass(frozen=True)
class IndicatorTables:
    # -- knowledge --
    knowledge_indicators: tuple[str, ...] = (
        "we provide",
        "our solution",
        "zenloop offers",
        "capability",
        "capabilities",
        "feature",
        "benefit",
        "advantage",
        "compliance",
        "compliant",
        "certified",
        "proven",
        "experience",
    )
    # first matching type wins; CAPABILITY when none match
    knowledge_types: tuple[tuple[KnowledgeType, tuple[str, ...]], ...] = (
        (KnowledgeType.PRICING, ("price", "pricing", "cost")),
        (KnowledgeType.COMPLIANCE, ("compliance", "compliant", "regulation")),
        (KnowledgeType.CASE_STUDY, ("case study", "customer")),
        (KnowledgeType.TECHNICAL_SPEC, ("technical", "api")),
        (KnowledgeType.DIFFERENTIATOR, ("advantage", "unique")),
    )
    knowledge_boosts: tuple[tuple[tuple[str, ...], float], ...] = (
        (("certified", "proven"), 0.2),
        (("years of experience",), 0.15),
    )
    high_impact_indicators: tuple[str, ...] = ("critical", "essential", "key", "primary")

    # -- requirements --
    obligation_patterns: tuple[str, ...] = (
        r"\b(?:must|shall|will|should|needs?|requires?)\b",
        r"\bis\s+required\b",
        r"\bmandatory\b",
        r"\bessential\b",
    )
    # first matching category wins; FUNCTIONAL when none match
    requirement_categories: tuple[tuple[RequirementCategory, tuple[str, ...]], ...] = (
        (RequirementCategory.SECURITY, ("security", "encrypt", "authentication", "2fa", "access control")),
        (RequirementCategory.PERFORMANCE, ("performance", "speed", "latency", "uptime", "response time")),
        (RequirementCategory.COMPLIANCE, ("compliance", "compliant", "regulation", "gdpr", "hipaa")),
        (RequirementCategory.INTEGRATION, ("integration", "integrate", "api")),
        (RequirementCategory.PRICING, ("price", "pricing", "cost", "budget", "invoice")),
        (RequirementCategory.SUPPORT, ("support", "training", "helpdesk", "sla")),
        (RequirementCategory.TECHNICAL, ("technical", "architecture", "infrastructure", "hosting")),
    )
    # first matching criticality wins; UNKNOWN when none match
    criticality_levels: tuple[tuple[Criticality, tuple[str, ...]], ...] = (
        (Criticality.MUST_HAVE, ("must", "mandatory", "shall")),
        (Criticality.SHOULD_HAVE, ("should", "preferred")),
        (Criticality.NICE_TO_HAVE, ("nice", "optional")),
    )
    compliance_mandatory_indicators: tuple[str, ...] = ("mandatory", "required", "must comply", "shall comply")
    # label -> alternatives; an alternative fires when all of its phrases occur
    risk_rules: tuple[tuple[str, tuple[tuple[str, ...], ...]], ...] = (
        ("Custom development required", (("custom",), ("proprietary",))),
        ("Timeline pressure", (("tight timeline",), ("urgent",))),
        ("Budget constraints", (("budget", "limited"),)),
    )

    # -- confidence --
    base_confidence: float = 0.5
    section_confidence_threshold: float = 0.8
    section_confidence_boost: float = 0.1
    explicit_criticality_boost: float = 0.2
    compliance_mandatory_boost: float = 0.1

    min_sentence_chars: int = 10


DEFAULT_TABLES = IndicatorTables()

_LIST_FIELDS = (
    "knowledge_indicators",
    "high_impact_indicators",
    "obligation_patterns",
    "compliance_mandatory_indicators",
)
_ENUM_TABLE_FIELDS: dict[str, type] = {
    "knowledge_types": KnowledgeType,
    "requirement_categories": RequirementCategory,
    "criticality_levels": Criticality,
}


def tables_from_cfg(cfg: Mapping | None, base: IndicatorTables = DEFAULT_TABLES) -> IndicatorTables:
    """Override tables from a config mapping.

    Plain lists replace the default list; enum tables are given as
    ``{value: [phrases...]}`` mappings and keep the mapping's order.
    ``knowledge_boosts`` rows are ``{phrases: [...], delta: x}``; ``risk_rules``
    map a label to a list of alternatives, each a list of phrases that must all
    occur. Scalars (confidences, thresholds) are coerced to the default's type.
    """
    cfg = cfg or {}
    known = {f.name for f in fields(IndicatorTables)}
    unknown = set(cfg) - known
    if unknown:
        raise ValueError(f"Unknown indicator table(s): {sorted(unknown)}")

    updates: dict = {}
    for key, value in cfg.items():
        if key in _LIST_FIELDS:
            updates[key] = tuple(str(v) for v in value)
        elif key in _ENUM_TABLE_FIELDS:
            enum_cls = _ENUM_TABLE_FIELDS[key]
            updates[key] = tuple((enum_cls(k), tuple(str(p) for p in v)) for k, v in value.items())
        elif key == "knowledge_boosts":
            updates[key] = tuple(
                (tuple(str(p) for p in row["phrases"]), float(row["delta"])) for row in value
            )
        elif key == "risk_rules":
            updates[key] = tuple(
                (str(label), tuple(tuple(str(p) for p in alt) for alt in alternatives))
                for label, alternatives in value.items()
            )
        elif key in ("base_confidence", "section_confidence_threshold", "section_confidence_boost",
                     "explicit_criticality_boost", "compliance_mandatory_boost"):
            updates[key] = float(value)
        elif key == "min_sentence_chars":
            updates[key] = int(value)
        else:
            raise ValueError(f"Indicator table {key!r} cannot be set from config")
    return replace(base, **updates)


def compile_phrases(phrases: Sequence[str]) -> re.Pattern | None:
    """One case-insensitive regex matching any phrase at a word start."""
    if not phrases:
        return None
    return re.compile("|".join(rf"\b{re.escape(p)}" for p in phrases), re.IGNORECASE)


class PhraseTable:
    """Ordered (label, phrases) table compiled once; `first` returns the first label that matches."""

    def __init__(self, rows: Sequence[tuple[E, Sequence[str]]]):
        self._rows = [(label, compile_phrases(phrases)) for label, phrases in rows]

    def first(self, text: str, default: E) -> E:
        for label, rx in self._rows:
            if rx is not None and rx.search(text):
                return label
        return default
