from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fingerprint_service.api.dependencies import (
    get_app_settings,
    get_blob_archive,
    get_db_session,
    read_limited_body,
)
from fingerprint_service.application.use_cases import archive_payload as archive_uc
from fingerprint_service.core.config import Settings
from fingerprint_service.domain.schemas.fingerprint import ArchiveResponse
from fingerprint_service.infrastructure.archive.blob_archive import BlobArchive

router = APIRouter(prefix="/v1/finger", tags=["Archive"])


@router.post(
    "/collect/{key}",
    response_model=ArchiveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def collect_endpoint(
    key: str,
    http_request: Request,
    db: AsyncSession = Depends(get_db_session),
    archive: BlobArchive = Depends(get_blob_archive),
    settings: Settings = Depends(get_app_settings),
) -> ArchiveResponse:
    payload = await read_limited_body(http_request, settings.server.max_body_bytes)

    return await archive_uc.archive_payload(
        session=db,
        archive=archive,
        key=key,
        payload=payload,
    )
