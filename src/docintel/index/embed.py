from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import numpy as np
from sklearn.exceptions import NotFittedError
from sklearn.feature_extraction.text import TfidfVectorizer

from ..errors import EmbeddingError


class Embedder(Protocol):
    def fit_transform(self, texts: Sequence[str]): ...

    def transform(self, texts: Sequence[str]): ...


def as_dense(mat) -> np.ndarray:
    """Dense float32 2-D array from a numpy or scipy.sparse matrix."""
    if hasattr(mat, "toarray"):
        mat = mat.toarray()
    arr = np.asarray(mat, dtype=np.float32)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    return arr


@dataclass
class TfidfEmbedder:
    """Local, no-download vectors for the similarity retriever.

    TF-IDF is not a semantic embedding, but it is deterministic and needs no
    model, which makes it the default for tests and small corpora. It must be
    fitted (``fit_transform``) on the corpus before queries are embedded.
    """

    max_features: int = 60_000
    ngram_range: tuple[int, int] = (1, 2)

    def fit_transform(self, texts: Sequence[str]) -> np.ndarray:
        self.vectorizer = TfidfVectorizer(
            max_features=self.max_features,
            ngram_range=self.ngram_range,
            lowercase=True,
            strip_accents="unicode",
        )
        mat = self.vectorizer.fit_transform(texts)
        return mat.astype(np.float32)

    def transform(self, texts: Sequence[str]) -> np.ndarray:
        if getattr(self, "vectorizer", None) is None:
            raise EmbeddingError("TfidfEmbedder.transform called before fit_transform")
        try:
            mat = self.vectorizer.transform(texts)
        except NotFittedError as exc:
            raise EmbeddingError(str(exc)) from exc
        return mat.astype(np.float32)

    def embed(self, text: str) -> np.ndarray:
        return as_dense(self.transform([text]))[0]
