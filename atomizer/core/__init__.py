"""
Atomizer core exports.
"""

from .aggregation import EmbeddingAggregator
from .embeddings import EmbeddingProvider, OpenAIEmbeddingProvider, StaticEmbeddingProvider
from .engine import MarkdownParsingEngine, ParsingEngine, parse_markdown
from .enrich import ContentEnricher, enrich_tree, to_content_node
from .errors import (
    AtomizerError,
    CancellationError,
    CycleDetectedError,
    DimensionMismatchError,
    JobError,
    NotFoundError,
    ParseError,
    StoreLookupError,
)
from .formatting import record_to_markdown
from .job_queue import (
    InMemoryJobQueue,
    RedisJobQueue,
    RQTaskQueue,
    WorkerConfig,
    run_context_embedding,
    run_embedding_batch,
)
from .models import Atom, ContentNode, Context, ContextRef, Node, NodeType, StructureNode
from .pipeline import AtomizerPipeline, DecomposedDocument
from .reducers import reduce_to_atoms, reduce_to_contexts
from .rehydrate import ContextRetriever, rehydrate_contexts
from .repository import AtomizerRepository, InMemoryAtomizerRepository, SqlAlchemyAtomizerRepository
from .schemas import ContextEmbeddingRequest, EmbeddingJob, FailedEmbeddingJob, parse_jobs
from .worker import CancellationToken, DrainResult, EmbeddingWorker, JobQueue

__all__ = [
    "Atom",
    "AtomizerError",
    "AtomizerPipeline",
    "AtomizerRepository",
    "CancellationError",
    "CancellationToken",
    "ContentEnricher",
    "ContentNode",
    "Context",
    "ContextEmbeddingRequest",
    "ContextRef",
    "ContextRetriever",
    "CycleDetectedError",
    "DecomposedDocument",
    "DimensionMismatchError",
    "DrainResult",
    "EmbeddingAggregator",
    "EmbeddingJob",
    "EmbeddingProvider",
    "EmbeddingWorker",
    "FailedEmbeddingJob",
    "InMemoryAtomizerRepository",
    "InMemoryJobQueue",
    "JobQueue",
    "JobError",
    "MarkdownParsingEngine",
    "Node",
    "NodeType",
    "NotFoundError",
    "OpenAIEmbeddingProvider",
    "ParseError",
    "ParsingEngine",
    "RQTaskQueue",
    "RedisJobQueue",
    "SqlAlchemyAtomizerRepository",
    "StaticEmbeddingProvider",
    "StoreLookupError",
    "StructureNode",
    "WorkerConfig",
    "enrich_tree",
    "parse_jobs",
    "parse_markdown",
    "reduce_to_atoms",
    "reduce_to_contexts",
    "record_to_markdown",
    "rehydrate_contexts",
    "run_context_embedding",
    "run_embedding_batch",
    "to_content_node",
]
