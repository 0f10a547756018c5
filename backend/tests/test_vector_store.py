"""Tests for the document vector index with an in-memory Chroma client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import chromadb
import pytest

from study_assistant.services.vector_store import VectorStore


VECTORS = {
    "carbon": [1.0, 0.0, 0.0],
    "Notes about carbon taxes": [0.9, 0.1, 0.0],
    "Renaissance art history": [0.0, 1.0, 0.0],
}


def fake_openai():
    async def create(model, input):
        return SimpleNamespace(data=[SimpleNamespace(embedding=VECTORS[text]) for text in input])

    return SimpleNamespace(embeddings=SimpleNamespace(create=AsyncMock(side_effect=create)))


@pytest.fixture
def store(tmp_path):
    vector_store = VectorStore(
        persist_dir=tmp_path / "chroma",
        openai_client=fake_openai(),
        chroma_client=chromadb.EphemeralClient(),
    )
    vector_store.clear()
    return vector_store


@pytest.mark.asyncio
async def test_add_returns_embedding(store):
    vector = await store.add_document("d1", "Notes about carbon taxes", {"filename": "tax.md"})

    assert vector == VECTORS["Notes about carbon taxes"]
    assert store.collection.count() == 1


@pytest.mark.asyncio
async def test_search_filters_by_score(store):
    await store.add_document("d1", "Notes about carbon taxes", {"filename": "tax.md", "folder_id": "f"})
    await store.add_document("d2", "Renaissance art history", {"filename": "art.md", "folder_id": "f"})

    results = await store.search("carbon", n_results=2, min_score=0.5)

    assert [r["document_id"] for r in results] == ["d1"]
    assert results[0]["metadata"]["filename"] == "tax.md"
    assert results[0]["score"] > 0.9


@pytest.mark.asyncio
async def test_delete_removes_vectors(store):
    await store.add_document("d1", "Notes about carbon taxes", {"filename": "tax.md"})

    store.delete(["d1"])

    assert store.collection.count() == 0


@pytest.mark.asyncio
async def test_content_truncated_before_embedding(store):
    store.max_chars = 6

    vector = await store.add_document("d1", "carbon pricing in depth", {"filename": "x.md"})

    assert vector == VECTORS["carbon"]
    assert store.openai.embeddings.create.await_args.kwargs["input"] == ["carbon"]
