from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .embed import TfidfEmbedder


@dataclass
class STEmbedder:
    model_name: str = "all-MiniLM-L6-v2"
    batch_size: int = 64
    normalize_embeddings: bool = True
    device: str = "cpu"
    trust_remote_code: bool = False

    model: Any = None

    def __post_init__(self):
        # optional dependency: pip install docintel[st]
        from sentence_transformers import SentenceTransformer

        self.model = SentenceTransformer(
            self.model_name,
            device=self.device,
            trust_remote_code=self.trust_remote_code,
        )

    def fit_transform(self, texts: list[str]) -> np.ndarray:
        # nothing to fit; pretrained
        return self.transform(texts)

    def transform(self, texts: list[str]) -> np.ndarray:
        return self.model.encode(
            list(texts),
            batch_size=self.batch_size,
            normalize_embeddings=self.normalize_embeddings,
            convert_to_numpy=True,
            show_progress_bar=False,
        )

    def embed(self, text: str) -> np.ndarray:
        return self.transform([text])[0]


def build_embedder(cfg: dict | None):
    cfg = cfg or {}
    typ = str(cfg.get("type", "tfidf")).lower()

    if typ == "tfidf":
        return TfidfEmbedder(
            max_features=int(cfg.get("max_features", 60_000)),
            ngram_range=tuple(cfg.get("ngram_range", (1, 2))),
        )

    if typ in ("sentence_transformers", "st", "sbert"):
        model_name = cfg.get("model") or cfg.get("model_name") or "all-MiniLM-L6-v2"

        device = cfg.get("device", "auto")
        if device == "auto":
            device = "cuda" if _has_cuda() else "cpu"

        return STEmbedder(
            model_name=str(model_name),
            batch_size=int(cfg.get("batch_size", 64)),
            normalize_embeddings=bool(cfg.get("normalize_embeddings", True)),
            device=str(device),
            trust_remote_code=bool(cfg.get("trust_remote_code", False)),
        )

    raise ValueError(f"Unknown embedder type: {typ}")


def _has_cuda() -> bool:
    try:
        import torch
    except ImportError:
        return False
    return torch.cuda.is_available()
