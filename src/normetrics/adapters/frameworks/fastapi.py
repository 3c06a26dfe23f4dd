"""FastAPI adapter exposing stored records."""

from fastapi import APIRouter, Query, Response

from normetrics.core.encoding.ndjson import encode_records
from normetrics.core.ports import RecordStoragePort


def create_records_router(storage: RecordStoragePort) -> APIRouter:
    """Create a FastAPI router with a /records endpoint.

    Args:
        storage: Storage adapter implementing RecordStoragePort.

    Returns:
        APIRouter with /records configured.
    """
    router = APIRouter()

    @router.get("/records")
    async def get_records(since: int = Query(default=0, ge=0)) -> Response:
        """Return records in NDJSON format.

        Args:
            since: Nanoseconds since the epoch. Returns records with
                timestamp > since.
        """
        records = [r async for r in storage.read(since=since)]
        return Response(
            content=encode_records(records),
            media_type="application/x-ndjson",
        )

    return router
