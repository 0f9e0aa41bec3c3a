"""Reference document library endpoints."""

from typing import Any

from fastapi import APIRouter, status

from layoutforge.api.v1.dependencies import References
from layoutforge.schemas.api import LibraryUploadRequest

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, summary="Upload a reference document")
async def upload_document(payload: LibraryUploadRequest, library: References) -> dict[str, Any]:
    """Store a document whose text is offered to the writer as context."""
    document = await library.add_document(
        file_name=payload.file_name,
        content=payload.content,
        mime_type=payload.mime_type,
    )
    return document.model_dump(by_alias=True, mode="json")


@router.get("", summary="List reference documents")
async def list_documents(library: References) -> list[dict[str, Any]]:
    return [
        document.model_dump(by_alias=True, mode="json")
        for document in await library.list_documents()
    ]


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a document")
async def delete_document(document_id: str, library: References) -> None:
    await library.delete_document(document_id)
