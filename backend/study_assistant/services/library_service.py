"""Folder and document operations: upload, parse, embed, delete, search."""

import logging
from typing import Awaitable, Callable, List, Optional, Tuple

import databases

from study_assistant.core.errors import ConfigurationError, DocumentParseError
from study_assistant.core.events import AppEvent, EventType
from study_assistant.db.queries import documents as document_queries
from study_assistant.db.queries import folders as folder_queries
from study_assistant.schemas.library import Document, Folder, LibraryStats
from study_assistant.services.document_parser import DocumentParser
from study_assistant.services.object_storage import LocalObjectStorage
from study_assistant.services.vector_store import VectorStore, get_vector_store

logger = logging.getLogger(__name__)

EventCallback = Callable[[AppEvent], Awaitable[None]]


class LibraryService:
    """Service for folder and document operations."""

    def __init__(
        self,
        db: databases.Database,
        user_id: str,
        storage: LocalObjectStorage,
        parser: Optional[DocumentParser] = None,
        embeddings_enabled: bool = False,
        vector_store_factory: Callable[[], VectorStore] = get_vector_store,
        on_event: Optional[EventCallback] = None,
    ):
        self.db = db
        self.user_id = user_id
        self.storage = storage
        self.parser = parser or DocumentParser()
        self.embeddings_enabled = embeddings_enabled
        self.vector_store_factory = vector_store_factory
        self.on_event = on_event

    # ── Folders ───────────────────────────────────────────────────────

    async def create_folder(self, name: str) -> Folder:
        """Create an empty folder."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Folder name cannot be empty")
        folder = await folder_queries.create_folder(self.db, self.user_id, name)
        logger.info("Created folder %s (%s)", folder.name, folder.id)
        return folder

    async def list_folders(self) -> List[Folder]:
        """List folders with their documents, both in stored order."""
        folders = await folder_queries.list_folders(self.db, self.user_id)
        for folder in folders:
            folder.documents = await document_queries.list_documents_for_folder(self.db, folder.id)
        return folders

    async def delete_folder(self, folder_id: str) -> bool:
        """Delete a folder, its documents, stored objects and vectors."""
        documents = await document_queries.list_documents_for_folder(self.db, folder_id)
        deleted = await folder_queries.delete_folder(self.db, folder_id)
        if not deleted:
            return False

        self._remove_objects([d.storage_path for d in documents if d.storage_path])
        self._drop_vectors([d.id for d in documents])
        logger.info("Deleted folder %s with %d documents", folder_id, len(documents))
        return True

    # ── Documents ─────────────────────────────────────────────────────

    async def upload_documents(self, folder_id: str, files: List[Tuple[str, bytes]]) -> List[Document]:
        """Store, parse and record each file, strictly one after another.

        A file that fails to parse is still recorded with status ``failed``;
        the batch itself never fails because of one file.
        """
        if await folder_queries.get_folder(self.db, folder_id) is None:
            raise LookupError(f"Folder not found: {folder_id}")

        documents = []
        for filename, content in files:
            documents.append(await self._ingest_file(folder_id, filename, content))
        return documents

    async def _ingest_file(self, folder_id: str, filename: str, content: bytes) -> Document:
        logger.info("Upload received: filename=%s size=%d", filename, len(content))

        storage_path = None
        try:
            key = self.storage.build_key(self.user_id, folder_id, filename)
            storage_path = self.storage.upload(key, content)
        except (OSError, ValueError):
            logger.exception("Failed to store object for %s", filename)

        text = ""
        parse_status = "success"
        parse_error = None
        try:
            text = self.parser.parse(content, filename)
        except DocumentParseError as e:
            logger.warning("Parsing %s failed: %s", filename, e)
            parse_status, parse_error = "failed", str(e)
        except Exception as e:
            logger.exception("Unexpected error parsing %s", filename)
            parse_status, parse_error = "failed", f"Failed to parse {filename}: {e}"

        document = await document_queries.create_document(
            self.db,
            user_id=self.user_id,
            folder_id=folder_id,
            file_name=filename,
            file_type=self.parser.file_type(filename),
            file_size=len(content),
            storage_path=storage_path,
            content=text,
            parse_status=parse_status,
            parse_error=parse_error,
        )

        if document.is_text:
            document = await self._embed(document)

        if self.on_event is not None:
            await self.on_event(AppEvent.create(
                EventType.DOCUMENT_INGESTED,
                document.id,
                {"file_name": filename, "parse_status": parse_status},
            ))
        return document

    async def _embed(self, document: Document) -> Document:
        """Attach an embedding; failures are logged and leave the document as is."""
        if not self.embeddings_enabled:
            logger.warning("No OpenAI API key configured, skipping embedding for %s", document.file_name)
            return document

        try:
            vector_store = self.vector_store_factory()
            embedding = await vector_store.add_document(
                document.id,
                document.content,
                {
                    "document_id": document.id,
                    "folder_id": document.folder_id,
                    "filename": document.file_name,
                },
            )
            await document_queries.set_embedding(self.db, document.id, embedding)
        except Exception:
            logger.exception("Failed to embed document %s", document.id)
            return document

        logger.info("Embedded document %s (%d dims)", document.id, len(embedding))
        return document.model_copy(update={"embedding": embedding})

    async def delete_document(self, document_id: str) -> bool:
        """Remove a document's stored object, vector and record."""
        document = await document_queries.get_document(self.db, document_id)
        if document is None:
            return False

        if document.storage_path:
            self._remove_objects([document.storage_path])
        self._drop_vectors([document.id])
        await document_queries.delete_document(self.db, document_id)
        return True

    def _remove_objects(self, keys: List[str]) -> None:
        try:
            self.storage.remove(keys)
        except (OSError, ValueError):
            logger.exception("Failed to remove %d stored objects", len(keys))

    def _drop_vectors(self, document_ids: List[str]) -> None:
        if not self.embeddings_enabled or not document_ids:
            return
        try:
            self.vector_store_factory().delete(document_ids)
        except Exception:
            logger.exception("Failed to remove vectors for %d documents", len(document_ids))

    async def get_stats(self) -> LibraryStats:
        return await document_queries.get_stats(self.db, self.user_id)

    async def search(self, query: str, n_results: int = 5, min_score: float = 0.5) -> List[dict]:
        """Similarity search over document embeddings."""
        if not self.embeddings_enabled:
            raise ConfigurationError("Document search needs an OpenAI API key for embeddings.")
        return await self.vector_store_factory().search(query, n_results=n_results, min_score=min_score)
