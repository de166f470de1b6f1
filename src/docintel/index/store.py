"""Keyed, category-filterable fragment store.

The production store is an external collaborator; InMemoryStore implements
the same contract for tests, the CLI and the evaluation runner.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, Protocol

import numpy as np

from ..errors import StorageError


@dataclass(frozen=True)
class IndexedItem:
    item_id: str
    content: str
    category: str | None = None
    doc_id: str | None = None
    # the Chunk / KnowledgeEntry / record this item was built from
    reference: Any = None
    metadata: dict = field(default_factory=dict)
    vector: np.ndarray | None = field(default=None, compare=False, repr=False)

    def with_vector(self, vector: np.ndarray) -> "IndexedItem":
        return replace(self, vector=vector)


class ChunkStore(Protocol):
    def store(self, items: Iterable[IndexedItem]) -> int: ...

    def query(self, category: str | None = None) -> list[IndexedItem]: ...

    def delete(self, item_id: str) -> bool: ...


class InMemoryStore:
    """Items are kept in ingestion order; re-storing an id replaces it in place."""

    def __init__(self) -> None:
        self._items: dict[str, IndexedItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def store(self, items: Iterable[IndexedItem]) -> int:
        n = 0
        for item in items:
            if not item.item_id:
                raise StorageError("Cannot store an item without an id")
            self._items[item.item_id] = item
            n += 1
        return n

    def query(self, category: str | None = None) -> list[IndexedItem]:
        if category is None:
            return list(self._items.values())
        return [it for it in self._items.values() if it.category == category]

    def get(self, item_id: str) -> IndexedItem | None:
        return self._items.get(item_id)

    def delete(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None

    # JSONL persistence for the CLI; vectors are not saved (re-embedded on load).

    def dump(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            for it in self._items.values():
                row = {
                    "item_id": it.item_id,
                    "content": it.content,
                    "category": it.category,
                    "doc_id": it.doc_id,
                    "metadata": it.metadata,
                }
                f.write(json.dumps(row, ensure_ascii=False) + "\n")

    @classmethod
    def load(cls, path: Path) -> "InMemoryStore":
        if not path.exists():
            raise StorageError(f"Index file not found: {path}")
        store = cls()
        try:
            with path.open("r", encoding="utf-8") as f:
                rows = [json.loads(line) for line in f if line.strip()]
            items = [
                IndexedItem(
                    item_id=str(r["item_id"]),
                    content=str(r["content"]),
                    category=r.get("category"),
                    doc_id=r.get("doc_id"),
                    reference=r,
                    metadata=dict(r.get("metadata") or {}),
                )
                for r in rows
            ]
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read index {path}: {exc}") from exc
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            raise StorageError(f"Malformed row in index {path}: {exc!r}") from exc
        store.store(items)
        return store
