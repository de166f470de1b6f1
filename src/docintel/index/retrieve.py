from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity


@dataclass(frozen=True)
class RetrievalResult:
    reference: Any
    relevance_score: float
    matched_excerpts: list[str] = field(default_factory=list)
    item_id: str | None = None


def cosine_scores(query_vec: np.ndarray, doc_matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of one query against every row of doc_matrix.

    Works with sparse matrices too (scikit handles it).
    """
    if query_vec.ndim == 1:
        query_vec = query_vec.reshape(1, -1)
    return cosine_similarity(query_vec, doc_matrix)[0]


def rank_indices(scores: np.ndarray, k: int | None = None) -> list[int]:
    """Indices by descending score; ties keep their original (ingestion) order."""
    order = np.argsort(-scores, kind="stable")
    if k is not None:
        order = order[:k]
    return [int(i) for i in order]
