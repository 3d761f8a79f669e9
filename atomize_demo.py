"""
Example: decompose a markdown file, embed its atoms and aggregate its contexts
using SQLite and either OpenAI or the static embedding provider.

Usage:
    python3 atomize_demo.py --markdown notes.md --owner me
    python3 atomize_demo.py --markdown notes.md --openai
"""

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

from atomizer.core import (
    AtomizerPipeline,
    EmbeddingAggregator,
    EmbeddingJob,
    EmbeddingWorker,
    InMemoryJobQueue,
    OpenAIEmbeddingProvider,
    SqlAlchemyAtomizerRepository,
    StaticEmbeddingProvider,
)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--markdown", required=True, type=Path, help="Path to input markdown")
    parser.add_argument("--owner", default=None, help="Owner stamped on context records")
    parser.add_argument("--db", default=Path("./data/atomizer.db"), type=Path, help="SQLite DB path")
    parser.add_argument("--openai", action="store_true", help="Embed with OpenAI instead of the static provider")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    setup_logging(args.log_level)
    if not args.markdown.exists():
        raise FileNotFoundError(f"Markdown not found: {args.markdown}")
    args.db.parent.mkdir(parents=True, exist_ok=True)

    repo = SqlAlchemyAtomizerRepository(f"sqlite+pysqlite:///{args.db}")
    pipeline = AtomizerPipeline(repo)
    document = pipeline.decompose_and_persist(args.markdown.read_text(encoding="utf-8"), owner=args.owner)

    queue = InMemoryJobQueue()
    for job_id, atom in enumerate(document.atoms, start=1):
        queue.send(
            EmbeddingJob(
                job_id=job_id,
                id=atom.id,
                schema_name="public",
                table="atoms",
                content_function="embedding_input",
                embedding_column="embedding",
            )
        )

    provider = OpenAIEmbeddingProvider() if args.openai else StaticEmbeddingProvider()
    worker = EmbeddingWorker(repository=repo, provider=provider, queue=queue)
    result = worker.drain(queue.read(len(document.atoms)))
    print(f"Embedding jobs: {result.summary}")

    aggregator = EmbeddingAggregator(repo)
    for root_id in document.root_ids:
        if repo.get_context(root_id) is None:
            continue
        aggregator.aggregate(root_id)
        tree = pipeline.retrieve(root_id)
        print(json.dumps(asdict(tree), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
