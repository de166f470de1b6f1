from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .chunkers.base import ChunkingOptions, options_from_cfg
from .clean_profiles import DEFAULT_PROFILE, CleaningProfile, profile_from_cfg
from .extract.indicators import DEFAULT_TABLES, IndicatorTables, tables_from_cfg
from .index.retrievers import DEFAULT_MAX_RESULTS, DEFAULT_SIMILARITY_THRESHOLD


@dataclass(frozen=True)
class RetrievalConfig:
    strategy: str = "lexical"
    max_results: int = DEFAULT_MAX_RESULTS
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    score_cap: float | None = None
    normalize: bool = False

    def as_scorer_cfg(self) -> dict:
        return {"strategy": self.strategy, "score_cap": self.score_cap, "normalize": self.normalize}


@dataclass(frozen=True)
class PipelineConfig:
    cleaning: CleaningProfile = DEFAULT_PROFILE
    chunking: ChunkingOptions = field(default_factory=ChunkingOptions)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    # passed as-is to index.embed_factory.build_embedder
    embedding: dict = field(default_factory=lambda: {"type": "tfidf"})
    indicators: IndicatorTables = DEFAULT_TABLES
    # extract requirements from every document, not only RFPs
    requirements_for_all: bool = False
    max_workers: int = 1


def retrieval_from_cfg(cfg: dict | None) -> RetrievalConfig:
    cfg = cfg or {}
    cap = cfg.get("score_cap")
    return RetrievalConfig(
        strategy=str(cfg.get("strategy", "lexical")).lower(),
        max_results=int(cfg.get("max_results", DEFAULT_MAX_RESULTS)),
        similarity_threshold=float(cfg.get("similarity_threshold", DEFAULT_SIMILARITY_THRESHOLD)),
        score_cap=float(cap) if cap is not None else None,
        normalize=bool(cfg.get("normalize", False)),
    )


def config_from_cfg(cfg: dict | None) -> PipelineConfig:
    cfg = cfg or {}
    return PipelineConfig(
        cleaning=profile_from_cfg(cfg.get("cleaning")),
        chunking=options_from_cfg(cfg.get("chunking")),
        retrieval=retrieval_from_cfg(cfg.get("retrieval")),
        embedding=dict(cfg.get("embedding") or {"type": "tfidf"}),
        indicators=tables_from_cfg(cfg.get("indicators")),
        requirements_for_all=bool(cfg.get("requirements_for_all", False)),
        max_workers=max(1, int(cfg.get("max_workers", 1))),
    )


def load_config(path: Path | None) -> PipelineConfig:
    if path is None:
        return PipelineConfig()
    cfg = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Config {path} must be a YAML mapping")
    return config_from_cfg(cfg)
