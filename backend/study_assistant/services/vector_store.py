import chromadb
from chromadb.config import Settings as ChromaSettings
from openai import AsyncOpenAI
from pathlib import Path
from typing import List, Optional

import study_assistant.core.config as config_module

# Singleton instance
_vector_store_instance: Optional["VectorStore"] = None


class VectorStore:
    """Vector store using ChromaDB with OpenAI embeddings.

    One vector per document, computed from the first ``embedding_max_chars``
    characters of its content.
    """

    def __init__(
        self,
        persist_dir: Path | None = None,
        openai_client: AsyncOpenAI | None = None,
        chroma_client=None,
    ):
        settings = config_module.settings
        if persist_dir is None:
            persist_dir = Path(settings.chroma_dir)

        self.client = chroma_client or chromadb.PersistentClient(
            path=str(persist_dir), settings=ChromaSettings(anonymized_telemetry=False)
        )
        self.collection = self.client.get_or_create_collection(
            name="documents", metadata={"hnsw:space": "cosine"}
        )

        # Embeddings go through the OpenAI provider's base URL and key
        if openai_client is None:
            client_config = {"api_key": settings.openai_api_key, "max_retries": 0}
            if settings.openai_base_url:
                client_config["base_url"] = settings.openai_base_url
            openai_client = AsyncOpenAI(**client_config)
        self.openai = openai_client
        self.model = settings.embedding_model
        self.max_chars = settings.embedding_max_chars

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings using OpenAI."""
        response = await self.openai.embeddings.create(
            model=self.model, input=[t[: self.max_chars] for t in texts]
        )
        return [e.embedding for e in response.data]

    async def add_document(self, document_id: str, content: str, metadata: dict) -> List[float]:
        """Embed one document and upsert it. Returns the vector."""
        embedding = (await self.embed([content]))[0]
        self.collection.upsert(
            ids=[document_id],
            embeddings=[embedding],
            documents=[content[: self.max_chars]],
            metadatas=[metadata],
        )
        return embedding

    async def search(self, query: str, n_results: int = 5, min_score: float = 0.5) -> List[dict]:
        """Search for similar documents, dropping matches below min_score."""
        query_embedding = (await self.embed([query]))[0]
        results = self.collection.query(
            query_embeddings=[query_embedding],
            n_results=n_results,
            include=["documents", "metadatas", "distances"],
        )

        if not results["documents"] or not results["documents"][0]:
            return []

        matches = [
            {
                "document_id": doc_id,
                "text": doc,
                "metadata": meta,
                "score": 1 - dist,  # Convert distance to similarity
            }
            for doc_id, doc, meta, dist in zip(
                results["ids"][0],
                results["documents"][0],
                results["metadatas"][0],
                results["distances"][0],
            )
        ]
        return [m for m in matches if m["score"] >= min_score]

    def delete(self, document_ids: List[str]) -> None:
        """Remove vectors for the given documents."""
        if document_ids:
            self.collection.delete(ids=document_ids)

    def clear(self) -> None:
        """Clear all documents from the collection."""
        self.client.delete_collection("documents")
        self.collection = self.client.get_or_create_collection(
            name="documents", metadata={"hnsw:space": "cosine"}
        )


def get_vector_store() -> VectorStore:
    """Get the singleton VectorStore instance."""
    global _vector_store_instance
    if _vector_store_instance is None:
        _vector_store_instance = VectorStore()
    return _vector_store_instance


def reset_vector_store() -> None:
    """Reset the singleton instance (useful for testing)."""
    global _vector_store_instance
    _vector_store_instance = None
