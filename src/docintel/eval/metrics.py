from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass
class RetrievalMetrics:
    n: int
    hit_at_1: float
    hit_at_3: float
    hit_at_5: float
    mrr: float
    avg_first_rank: float

    def summary(self) -> str:
        return (
            f"Hit@1: {self.hit_at_1:.3f}  Hit@3: {self.hit_at_3:.3f}  Hit@5: {self.hit_at_5:.3f}\n"
            f"MRR: {self.mrr:.3f}  Avg first rank: {self.avg_first_rank}"
        )


def first_hit_rank(retrieved: Sequence[str], expected: Iterable[str]) -> int | None:
    """1-based rank of the first retrieved name that is expected, else None."""
    wanted = set(expected)
    for rank, name in enumerate(retrieved, start=1):
        if name in wanted:
            return rank
    return None


def compute_metrics(first_ranks: list[int | None]) -> RetrievalMetrics:
    n = len(first_ranks)
    ranks_present = [r for r in first_ranks if r is not None]

    def hit_at(k: int) -> float:
        return sum(1 for r in ranks_present if r <= k) / n if n else 0.0

    avg_rank = sum(ranks_present) / len(ranks_present) if ranks_present else float("inf")
    return RetrievalMetrics(
        n=n,
        hit_at_1=hit_at(1),
        hit_at_3=hit_at(3),
        hit_at_5=hit_at(5),
        mrr=sum(1.0 / r for r in ranks_present) / n if n else 0.0,
        avg_first_rank=avg_rank,
    )
