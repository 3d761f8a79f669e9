"""Embedding providers: OpenAI-backed, plus a deterministic static one for demos and tests."""

from __future__ import annotations

import hashlib
import logging
from typing import List, Optional, Protocol

from openai import OpenAI

from .errors import DimensionMismatchError

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"


class EmbeddingProvider(Protocol):
    def embed(self, text: str) -> List[float]:
        ...


class OpenAIEmbeddingProvider:
    """
    Generates embeddings through the OpenAI embeddings endpoint. The client is
    created lazily so constructing the provider needs no network or API key.
    """

    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        api_key: Optional[str] = None,
        expected_dim: Optional[int] = None,
    ):
        self.model = model
        self.api_key = api_key
        self.expected_dim = expected_dim
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def embed(self, text: str) -> List[float]:
        logger.info("Requesting embedding for text (length=%d)", len(text))
        response = self._get_client().embeddings.create(model=self.model, input=text)
        if not response.data:
            logger.error("Failed to generate embedding: no data returned")
            raise RuntimeError("failed to generate embedding")

        embedding = list(response.data[0].embedding)
        if self.expected_dim is not None and len(embedding) != self.expected_dim:
            raise DimensionMismatchError(self.expected_dim, len(embedding))
        logger.info("Received embedding (length=%d)", len(embedding))
        return embedding


class StaticEmbeddingProvider:
    """
    Maps text to a fixed-size vector derived from its SHA-256 digest. Same text,
    same vector; useful wherever a real model is not wanted.
    """

    def __init__(self, dim: int = 8):
        self.dim = dim

    def embed(self, text: str) -> List[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [digest[i % len(digest)] / 255.0 for i in range(self.dim)]
