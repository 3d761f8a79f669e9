"""
Request schemas for embedding work.

Pydantic models for job descriptors handed to the drainer and the context
aggregator. Field aliases keep the camelCase wire names used by the queue.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class EmbeddingJob(BaseModel):
    """A queued request to embed one row's content into one of its columns."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    job_id: int = Field(alias="jobId", description="Queue message id, used to delete the job")
    id: Union[str, int] = Field(description="Target row id")
    schema_name: str = Field(alias="schema", description="Schema holding the target table")
    table: str = Field(description="Target table")
    content_function: str = Field(alias="contentFunction", description="Accessor producing the text to embed")
    embedding_column: str = Field(alias="embeddingColumn", description="Column that receives the vector")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class FailedEmbeddingJob(EmbeddingJob):
    error: str


class ContextEmbeddingRequest(BaseModel):
    id: str


_jobs_adapter = TypeAdapter(List[EmbeddingJob])


def parse_jobs(payload: Iterable[Any]) -> List[EmbeddingJob]:
    """Validate a raw list of job descriptors. Raises pydantic.ValidationError."""
    return _jobs_adapter.validate_python(list(payload))
