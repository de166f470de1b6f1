from __future__ import annotations

import argparse
import csv
import json
import logging
from datetime import datetime
from pathlib import Path

import yaml

from ..config import load_config
from ..index.embed_factory import build_embedder
from ..index.retrievers import QueryContext, Retriever, build_scorer
from ..index.store import InMemoryStore
from ..pipeline import DocumentPipeline
from .datasets import load_retrieval_questions
from .metrics import compute_metrics, first_hit_rank

logger = logging.getLogger(__name__)


def collect_files(paths: list[str]) -> list[Path]:
    files: list[Path] = []
    for p in map(Path, paths):
        if p.is_dir():
            files.extend(sorted(f for f in p.iterdir() if f.is_file()))
        else:
            files.append(p)
    return files


def main() -> None:
    p = argparse.ArgumentParser(description="Evaluate chunking + retrieval via document hit rates")
    p.add_argument("--docs", nargs="+", required=True, help="Document files or directories")
    p.add_argument("--questions", required=True, help="JSONL retrieval questions")
    p.add_argument("--config", default=None, help="YAML pipeline config")
    p.add_argument("--strategy", choices=["lexical", "bm25", "vector"], default=None)
    p.add_argument("--k", type=int, default=5, help="Top-k to retrieve (default 5)")
    p.add_argument(
        "--outdir",
        default="results/runs",
        help="Output directory for run artifacts (default results/runs)",
    )
    args = p.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    cfg_path = Path(args.config) if args.config else None
    cfg = load_config(cfg_path)
    scorer_cfg = cfg.retrieval.as_scorer_cfg()
    if args.strategy:
        scorer_cfg["strategy"] = args.strategy

    pipeline = DocumentPipeline(cfg)
    batch = pipeline.ingest(collect_files(args.docs))
    for f in batch.failures:
        logger.warning(f"Skipping {f.name}: {f.message}")

    embedder = build_embedder(cfg.embedding) if scorer_cfg["strategy"] == "vector" else None
    store = InMemoryStore()
    n_items = pipeline.index(batch.processed, store, embedder)
    retriever = Retriever(store, build_scorer(scorer_cfg, embedder))

    questions = load_retrieval_questions(Path(args.questions))
    first_ranks: list[int | None] = []
    per_q: list[dict] = []

    for q in questions:
        results = retriever.search(
            QueryContext(
                query_text=q.question,
                category=q.category,
                max_results=args.k,
                similarity_threshold=cfg.retrieval.similarity_threshold,
            )
        )

        retrieved = []
        doc_names: list[str] = []
        for rank, r in enumerate(results, start=1):
            item = store.get(r.item_id) if r.item_id else None
            name = item.metadata.get("document") if item else None
            doc_names.append(name or "")
            retrieved.append({
                "rank": rank,
                "score": r.relevance_score,
                "document": name,
                "section": item.metadata.get("section") if item else None,
                "excerpts": r.matched_excerpts,
            })

        hit_rank = first_hit_rank(doc_names, q.expected_documents)
        first_ranks.append(hit_rank)
        per_q.append({
            "id": q.id,
            "question": q.question,
            "expected_documents": q.expected_documents,
            "first_correct_rank": hit_rank,
            "top_k": retrieved,
        })

    metrics = compute_metrics(first_ranks)

    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(args.outdir) / f"docintel_{run_id}"
    run_dir.mkdir(parents=True, exist_ok=True)

    # Save run artifacts
    cfg_dump = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) if cfg_path else {}
    (run_dir / "config.yaml").write_text(yaml.safe_dump(cfg_dump or {}, sort_keys=False), encoding="utf-8")
    (run_dir / "metrics.json").write_text(
        json.dumps(metrics.__dict__, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    (run_dir / "per_question.json").write_text(
        json.dumps(per_q, indent=2, ensure_ascii=False), encoding="utf-8"
    )

    # Append/update summary leaderboard
    summary_dir = Path("results/summary")
    summary_dir.mkdir(parents=True, exist_ok=True)
    leaderboard = summary_dir / "leaderboard.csv"
    row = {
        "run_id": run_id,
        "strategy": scorer_cfg["strategy"],
        "target_size": cfg.chunking.target_size,
        "overlap_size": cfg.chunking.overlap_size,
        "num_documents": len(batch.processed),
        "num_chunks": n_items,
        "hit@1": metrics.hit_at_1,
        "hit@3": metrics.hit_at_3,
        "hit@5": metrics.hit_at_5,
        "mrr": metrics.mrr,
        "avg_first_rank": metrics.avg_first_rank,
        "run_dir": str(run_dir),
    }
    write_header = not leaderboard.exists()
    with leaderboard.open("a", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=list(row.keys()))
        if write_header:
            w.writeheader()
        w.writerow(row)

    print("=== Retrieval evaluation complete ===")
    print(f"Run directory: {run_dir}")
    print(f"Documents: {len(batch.processed)}  Chunks: {n_items}")
    print(metrics.summary())
    print(f"Leaderboard appended: {leaderboard}")


if __name__ == "__main__":
    main()
