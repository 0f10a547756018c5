"""Folder and document HTTP routes."""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from study_assistant.api.deps import get_library_service
from study_assistant.schemas.library import Document, Folder, LibraryStats
from study_assistant.services.library_service import LibraryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["library"])


class CreateFolderRequest(BaseModel):
    name: str


class FoldersResponse(BaseModel):
    folders: List[Folder]


class UploadResponse(BaseModel):
    documents: List[Document]
    failed_count: int


@router.get("/folders", response_model=FoldersResponse)
async def list_folders(library: LibraryService = Depends(get_library_service)):
    """List folders with their documents."""
    return FoldersResponse(folders=await library.list_folders())


@router.post("/folders", response_model=Folder)
async def create_folder(
    body: CreateFolderRequest,
    library: LibraryService = Depends(get_library_service),
):
    """Create an empty folder."""
    try:
        return await library.create_folder(body.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/folders/{folder_id}")
async def delete_folder(folder_id: str, library: LibraryService = Depends(get_library_service)):
    """Delete a folder and everything in it."""
    if not await library.delete_folder(folder_id):
        raise HTTPException(status_code=404, detail=f"Folder not found: {folder_id}")
    return {"status": "deleted", "folder_id": folder_id}


@router.post("/folders/{folder_id}/documents", response_model=UploadResponse)
async def upload_documents(
    folder_id: str,
    files: List[UploadFile] = File(...),
    library: LibraryService = Depends(get_library_service),
):
    """Upload files into a folder. Files that fail to parse are kept with a failed status."""
    batch = []
    for upload in files:
        if not upload.filename:
            raise HTTPException(status_code=400, detail="No filename provided.")
        batch.append((upload.filename, await upload.read()))

    try:
        documents = await library.upload_documents(folder_id, batch)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return UploadResponse(
        documents=documents,
        failed_count=sum(1 for d in documents if d.parse_status == "failed"),
    )


@router.delete("/documents/{document_id}")
async def delete_document(document_id: str, library: LibraryService = Depends(get_library_service)):
    """Delete a single document."""
    if not await library.delete_document(document_id):
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    return {"status": "deleted", "document_id": document_id}


@router.get("/documents/stats", response_model=LibraryStats)
async def document_stats(library: LibraryService = Depends(get_library_service)):
    """Document count and stored bytes."""
    return await library.get_stats()
