from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol, Sequence

import numpy as np

from ..clean import simple_tokenize, split_sentences
from ..errors import EmbeddingError
from .embed import Embedder, as_dense
from .retrieve import RetrievalResult, cosine_scores, rank_indices
from .store import ChunkStore, IndexedItem


DEFAULT_MAX_RESULTS = 10
DEFAULT_SIMILARITY_THRESHOLD = 0.0
MAX_EXCERPTS = 3


@dataclass(frozen=True)
class QueryContext:
    query_text: str
    category: str | None = None
    max_results: int = DEFAULT_MAX_RESULTS
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD


class Scorer(Protocol):
    def score(self, query: str, candidates: Sequence[IndexedItem]) -> np.ndarray: ...


def query_terms(query: str) -> list[str]:
    return simple_tokenize(query)


def minmax_norm(scores: np.ndarray) -> np.ndarray:
    if scores.size == 0:
        return scores
    mn = float(scores.min())
    mx = float(scores.max())
    if mx - mn < 1e-9:
        return np.ones_like(scores, dtype=float)
    return (scores - mn) / (mx - mn)


@dataclass
class LexicalScorer:
    """Sum of literal (case-insensitive) occurrences of each query term."""

    score_cap: float | None = None

    def score(self, query: str, candidates: Sequence[IndexedItem]) -> np.ndarray:
        patterns = [re.compile(re.escape(t)) for t in query_terms(query)]
        scores = np.zeros(len(candidates), dtype=float)
        for i, item in enumerate(candidates):
            text = item.content.lower()
            scores[i] = sum(len(p.findall(text)) for p in patterns)
        if self.score_cap is not None:
            scores = np.minimum(scores, self.score_cap)
        return scores


@dataclass
class VectorScorer:
    """Cosine similarity between the embedded query and each stored vector.

    Candidates without a vector score 0 and are therefore dropped.
    """

    embedder: Embedder

    def score(self, query: str, candidates: Sequence[IndexedItem]) -> np.ndarray:
        scores = np.zeros(len(candidates), dtype=float)
        with_vec = [i for i, it in enumerate(candidates) if it.vector is not None]
        if not with_vec:
            return scores
        try:
            q = as_dense(self.embedder.transform([query]))
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Query embedding failed: {exc}") from exc

        vecs = [as_dense(candidates[i].vector)[0] for i in with_vec]
        dims = sorted({v.shape[0] for v in vecs})
        if dims != [q.shape[1]]:
            raise EmbeddingError(
                f"Query vector has {q.shape[1]} dims, stored vectors have {dims}; re-index with one embedder"
            )
        mat = np.vstack(vecs)
        scores[with_vec] = cosine_scores(q, mat)
        return scores


class BM25Index:
    """
    Lightweight BM25 using rank-bm25.
    Stores tokenized documents and exposes get_scores(query_tokens).
    """
    def __init__(self, tokenized_corpus: list[list[str]]):
        from rank_bm25 import BM25Okapi
        self._bm25 = BM25Okapi(tokenized_corpus)

    def get_scores(self, query_tokens: list[str]) -> np.ndarray:
        return np.array(self._bm25.get_scores(query_tokens), dtype=float)


@dataclass
class BM25Scorer:
    """BM25 over the (already category-filtered) candidate set.

    The index is rebuilt per query since the candidate set depends on the
    filter. With ``normalize`` the scores are min-max scaled to [0, 1]; a
    candidate that shares no term with the query is forced to 0.
    """

    normalize: bool = False

    def score(self, query: str, candidates: Sequence[IndexedItem]) -> np.ndarray:
        if not candidates:
            return np.zeros(0, dtype=float)
        q_tokens = simple_tokenize(query)
        corpus = [simple_tokenize(it.content) or [""] for it in candidates]
        scores = BM25Index(corpus).get_scores(q_tokens)

        q_set = set(q_tokens)
        overlap = np.array([bool(q_set.intersection(doc)) for doc in corpus])
        # BM25Okapi idf can go negative for very common terms; keep matches positive
        scores = np.where(overlap, np.maximum(scores, 1e-6), 0.0)
        if self.normalize:
            scores = np.where(overlap, minmax_norm(scores), 0.0)
        return scores


def matched_excerpts(query: str, content: str, limit: int = MAX_EXCERPTS) -> list[str]:
    terms = query_terms(query)
    sentences = split_sentences(content)
    hits = [s for s in sentences if any(t in s.lower() for t in terms)]
    if not hits and sentences:
        hits = sentences[:1]
    return hits[:limit]


class Retriever:
    def __init__(self, store: ChunkStore, scorer: Scorer):
        self.store = store
        self.scorer = scorer

    def search(
        self,
        query: str | QueryContext,
        category: str | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> list[RetrievalResult]:
        if isinstance(query, QueryContext):
            ctx = query
        else:
            ctx = QueryContext(
                query_text=query,
                category=category,
                max_results=max_results,
                similarity_threshold=similarity_threshold,
            )
        if not ctx.query_text.strip() or ctx.max_results <= 0:
            return []

        candidates = self.store.query(ctx.category)
        if not candidates:
            return []

        scores = self.scorer.score(ctx.query_text, candidates)
        keep = (scores > 0) & (scores >= ctx.similarity_threshold)
        kept = [i for i in range(len(candidates)) if keep[i]]
        if not kept:
            return []

        order = rank_indices(scores[kept], k=ctx.max_results)
        out: list[RetrievalResult] = []
        for j in order:
            item = candidates[kept[j]]
            out.append(
                RetrievalResult(
                    reference=item.reference if item.reference is not None else item,
                    relevance_score=float(scores[kept[j]]),
                    matched_excerpts=matched_excerpts(ctx.query_text, item.content),
                    item_id=item.item_id,
                )
            )
        return out

    def context(self, query: str | QueryContext, **kwargs) -> tuple[str, list[RetrievalResult]]:
        """Joined content of the top results, for grounding a downstream generator."""
        results = self.search(query, **kwargs)
        return "\n\n".join(_content_of(r.reference) for r in results), results


def _content_of(reference) -> str:
    if isinstance(reference, dict):
        return str(reference.get("content", ""))
    return str(getattr(reference, "content", reference))


SECTION_QUERY_KEYWORDS: dict[str, list[str]] = {
    "executive-summary": ["overview", "company", "value", "proposition"],
    "technical-approach": ["technical", "features", "api", "integration", "capabilities"],
    "pricing": ["pricing", "packages", "costs", "plans"],
    "company-overview": ["company", "history", "experience", "expertise"],
    "references": ["case", "studies", "customer", "success"],
}


def section_query(rfp_content: str, section_type: str, n_rfp_words: int = 5) -> str:
    """Query for drafting a response section: section keywords plus leading RFP words."""
    keywords = SECTION_QUERY_KEYWORDS.get(section_type, ["company"])
    rfp_words = [w for w in rfp_content.lower().split() if len(w) > 3][:n_rfp_words]
    return " ".join([*keywords, *rfp_words])


def index_items(
    store: ChunkStore,
    items: Sequence[IndexedItem],
    embedder: Embedder | None = None,
) -> int:
    """Store items, attaching vectors from ``embedder.fit_transform`` when given.

    The embedder is refitted over the new items plus every already-vectorized
    item in the store, and the stored vectors are replaced, so all vectors
    share one space. Returns the number of new items.
    """
    items = list(items)
    if embedder is None or not items:
        return store.store(items)

    new_ids = {it.item_id for it in items}
    stored = [it for it in store.query() if it.vector is not None and it.item_id not in new_ids]
    batch = stored + items
    try:
        mat = as_dense(embedder.fit_transform([it.content for it in batch]))
    except EmbeddingError:
        raise
    except Exception as exc:
        raise EmbeddingError(f"Embedding {len(batch)} items failed: {exc}") from exc
    store.store(it.with_vector(mat[i]) for i, it in enumerate(batch))
    return len(items)


def build_scorer(cfg: dict | None, embedder: Embedder | None = None) -> Scorer:
    cfg = cfg or {}
    strategy = str(cfg.get("strategy", "lexical")).lower()

    if strategy == "lexical":
        cap = cfg.get("score_cap")
        return LexicalScorer(score_cap=float(cap) if cap is not None else None)

    if strategy == "bm25":
        return BM25Scorer(normalize=bool(cfg.get("normalize", False)))

    if strategy in ("vector", "dense"):
        if embedder is None:
            raise ValueError("Vector retrieval needs an embedder")
        return VectorScorer(embedder=embedder)

    raise ValueError(f"Unknown retrieval strategy: {strategy}")
