from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..records import load_jsonl


@dataclass
class RetrievalQuestion:
    id: str
    question: str
    # file names of the documents that answer the question
    expected_documents: list[str]
    category: str | None = None


def load_retrieval_questions(path: Path) -> list[RetrievalQuestion]:
    raw = load_jsonl(path)
    out: list[RetrievalQuestion] = []
    for item in raw:
        out.append(
            RetrievalQuestion(
                id=str(item["id"]),
                question=str(item["question"]),
                expected_documents=[str(d) for d in (item.get("expected_documents") or [])],
                category=item.get("category"),
            )
        )
    return out
