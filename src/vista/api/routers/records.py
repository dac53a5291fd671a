"""Record management endpoints."""

from fastapi import APIRouter, Depends

from vista.api.deps import get_vectorstore
from vista.api.errors import to_http_exception
from vista.api.schemas import ClearRecordsResponse, DeleteRecordResponse
from vista.errors import VistaError
from vista.vectorstore.store import VectorStore

router = APIRouter(prefix="/api/records", tags=["records"])


@router.delete("", response_model=ClearRecordsResponse)
async def clear_records(
    store: VectorStore = Depends(get_vectorstore),
) -> ClearRecordsResponse:
    """Remove every record, keeping the index schema."""
    try:
        removed = await store.count()
        await store.clear()
    except VistaError as e:
        raise to_http_exception(e) from e
    return ClearRecordsResponse(removed=removed)


@router.delete("/{record_id}", response_model=DeleteRecordResponse)
async def delete_record(
    record_id: str,
    store: VectorStore = Depends(get_vectorstore),
) -> DeleteRecordResponse:
    """Delete one record. Deleting an unknown id is not an error."""
    try:
        deleted = await store.delete(record_id)
    except VistaError as e:
        raise to_http_exception(e) from e
    return DeleteRecordResponse(deleted=deleted)
