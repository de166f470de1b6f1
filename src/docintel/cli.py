"""Command-line entry point: ingest documents, search an index, check chunking options."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .chunkers.base import ChunkingOptions, validate_options
from .config import load_config
from .errors import DocIntelError
from .index.embed_factory import build_embedder
from .index.retrievers import QueryContext, Retriever, build_scorer, index_items
from .index.store import InMemoryStore
from .pipeline import DocumentPipeline
from .records import to_record, write_jsonl

logger = logging.getLogger(__name__)

INDEX_FILE = "index.jsonl"


def ingest(files: list[str], out: str, config: str | None, workers: int | None) -> int:
    cfg = load_config(Path(config) if config else None)
    pipeline = DocumentPipeline(cfg)
    outdir = Path(out)

    result = pipeline.ingest([Path(f) for f in files], max_workers=workers)
    for f in result.failures:
        logger.error(f"  {f.name}: {f.error_type}: {f.message}")

    docs = [
        {
            "doc_id": p.document.doc_id,
            "name": p.document.name,
            "category": p.category,
            "quality_score": p.quality_score,
            "profile": to_record(p.profile),
            "sections": [to_record(s) for s in p.sections],
        }
        for p in result.processed
    ]
    write_jsonl(docs, outdir / "documents.jsonl")
    n_chunks = write_jsonl(
        ({"doc_id": p.document.doc_id, **to_record(c)} for p in result.processed for c in p.chunks),
        outdir / "chunks.jsonl",
    )
    n_knowledge = write_jsonl(
        (to_record(k) for p in result.processed for k in p.knowledge),
        outdir / "knowledge.jsonl",
    )
    n_req = write_jsonl(
        ({"doc_id": p.document.doc_id, **to_record(r)} for p in result.processed for r in p.requirements),
        outdir / "requirements.jsonl",
    )
    if result.failures:
        write_jsonl((to_record(f) for f in result.failures), outdir / "failures.jsonl")

    store = InMemoryStore()
    pipeline.index(result.processed, store)
    store.dump(outdir / INDEX_FILE)

    print("=== Ingestion complete ===")
    print(f"Output directory: {outdir}")
    print(f"Documents: {len(result.processed)}  Failed: {len(result.failures)}")
    print(f"Chunks: {n_chunks}  Knowledge: {n_knowledge}  Requirements: {n_req}")
    return 1 if result.failures and not result.processed else 0


def search(
    index_dir: str,
    query: str,
    category: str | None,
    k: int | None,
    strategy: str | None,
    threshold: float | None,
    config: str | None,
) -> int:
    cfg = load_config(Path(config) if config else None)
    loaded = InMemoryStore.load(Path(index_dir) / INDEX_FILE)

    scorer_cfg = cfg.retrieval.as_scorer_cfg()
    if strategy:
        scorer_cfg["strategy"] = strategy

    store = loaded
    embedder = None
    if scorer_cfg["strategy"] in ("vector", "dense"):
        # vectors are not persisted; embed the loaded items again
        embedder = build_embedder(cfg.embedding)
        store = InMemoryStore()
        index_items(store, loaded.query(), embedder)

    retriever = Retriever(store, build_scorer(scorer_cfg, embedder))
    results = retriever.search(
        QueryContext(
            query_text=query,
            category=category,
            max_results=k if k is not None else cfg.retrieval.max_results,
            similarity_threshold=threshold if threshold is not None else cfg.retrieval.similarity_threshold,
        )
    )

    if not results:
        print("No results.")
        return 0
    for rank, r in enumerate(results, start=1):
        item = store.get(r.item_id) if r.item_id else None
        meta = item.metadata if item else {}
        print(f"{rank:>2}. [{r.relevance_score:.3f}] {meta.get('document', '?')} / {meta.get('section') or '-'}")
        for ex in r.matched_excerpts:
            print(f"      - {ex}")
    return 0


def validate_chunking(target_size: int, overlap_size: int, min_chunk_size: int | None) -> int:
    res = validate_options(
        ChunkingOptions(target_size=target_size, overlap_size=overlap_size, min_chunk_size=min_chunk_size)
    )
    if res.is_valid:
        print("Chunking options are valid.")
        return 0
    print("Invalid chunking options:")
    for e in res.errors:
        print(f"  - {e}")
    return 2


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="docintel",
        description="Chunk, classify and search business documents (RFPs, proposals, pricing sheets)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser("ingest", help="Process files and write JSONL outputs + index")
    ingest_parser.add_argument("files", nargs="+", help="PDF / text files")
    ingest_parser.add_argument("--out", required=True, help="Output directory")
    ingest_parser.add_argument("--config", help="YAML pipeline config (default: built-in defaults)")
    ingest_parser.add_argument("--workers", type=int, default=None, help="Parallel documents")

    search_parser = subparsers.add_parser("search", help="Rank indexed chunks for a query")
    search_parser.add_argument("query", help="Query text")
    search_parser.add_argument("--index", required=True, help="Directory written by 'ingest'")
    search_parser.add_argument("--category", default=None, help="Only search this category (e.g. pricing)")
    search_parser.add_argument("--k", type=int, default=None, help="Max results")
    search_parser.add_argument("--strategy", choices=["lexical", "bm25", "vector"], default=None)
    search_parser.add_argument("--threshold", type=float, default=None, help="Minimum score")
    search_parser.add_argument("--config", help="YAML pipeline config")

    val_parser = subparsers.add_parser("validate-chunking", help="Check chunking parameters")
    val_parser.add_argument("--target-size", type=int, required=True)
    val_parser.add_argument("--overlap-size", type=int, required=True)
    val_parser.add_argument("--min-chunk-size", type=int, default=None)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s" if not args.verbose else "%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "ingest":
            return ingest(args.files, args.out, args.config, args.workers)
        if args.command == "search":
            return search(args.index, args.query, args.category, args.k, args.strategy, args.threshold, args.config)
        return validate_chunking(args.target_size, args.overlap_size, args.min_chunk_size)
    except DocIntelError as exc:
        logger.error(f"{type(exc).__name__}: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
