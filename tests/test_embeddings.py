"""Tests for embedding providers with a mocked OpenAI client."""

from unittest.mock import MagicMock, patch

import pytest

from atomizer.core import DimensionMismatchError, OpenAIEmbeddingProvider, StaticEmbeddingProvider


def _response(*vectors):
    response = MagicMock()
    response.data = []
    for vector in vectors:
        item = MagicMock()
        item.embedding = vector
        response.data.append(item)
    return response


def test_openai_provider_returns_first_embedding():
    provider = OpenAIEmbeddingProvider(model="text-embedding-3-small", expected_dim=3)
    with patch.object(OpenAIEmbeddingProvider, "_get_client") as mock_get_client:
        client = MagicMock()
        client.embeddings.create.return_value = _response([0.1, 0.2, 0.3])
        mock_get_client.return_value = client

        assert provider.embed("hello") == [0.1, 0.2, 0.3]
        client.embeddings.create.assert_called_once_with(model="text-embedding-3-small", input="hello")


def test_openai_provider_dimension_validation():
    provider = OpenAIEmbeddingProvider(expected_dim=1536)
    with patch.object(OpenAIEmbeddingProvider, "_get_client") as mock_get_client:
        client = MagicMock()
        client.embeddings.create.return_value = _response([0.1] * 512)
        mock_get_client.return_value = client

        with pytest.raises(DimensionMismatchError):
            provider.embed("hello")


def test_openai_provider_empty_response():
    provider = OpenAIEmbeddingProvider()
    with patch.object(OpenAIEmbeddingProvider, "_get_client") as mock_get_client:
        client = MagicMock()
        client.embeddings.create.return_value = _response()
        mock_get_client.return_value = client

        with pytest.raises(RuntimeError, match="failed to generate embedding"):
            provider.embed("hello")


def test_openai_provider_propagates_api_failure():
    provider = OpenAIEmbeddingProvider()
    with patch.object(OpenAIEmbeddingProvider, "_get_client") as mock_get_client:
        client = MagicMock()
        client.embeddings.create.side_effect = Exception("API Error")
        mock_get_client.return_value = client

        with pytest.raises(Exception, match="API Error"):
            provider.embed("hello")


def test_static_provider_is_deterministic():
    provider = StaticEmbeddingProvider(dim=5)
    first = provider.embed("same text")
    assert first == provider.embed("same text")
    assert len(first) == 5
    assert first != provider.embed("other text")
    assert all(0.0 <= value <= 1.0 for value in first)
