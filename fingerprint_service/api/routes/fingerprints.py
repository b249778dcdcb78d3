from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from fingerprint_service.api.dependencies import get_db_session, get_duplicate_policy
from fingerprint_service.application.use_cases import (
    query_fingerprints as query_uc,
    submit_fingerprint as submit_uc,
)
from fingerprint_service.core.config import DuplicatePolicy
from fingerprint_service.domain.schemas.fingerprint import (
    CountResponse,
    FingerprintResponse,
    FingerprintSubmission,
)

router = APIRouter(prefix="/v1/finger", tags=["Fingerprints"])


@router.post(
    "/fingerprint",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
)
async def submit_fingerprint_endpoint(
    request: FingerprintSubmission,
    http_request: Request,
    db: AsyncSession = Depends(get_db_session),
    policy: DuplicatePolicy = Depends(get_duplicate_policy),
) -> Response:
    await submit_uc.submit_fingerprint(
        session=db,
        policy=policy,
        submission=request,
        user_agent=http_request.headers.get("User-Agent"),
    )
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("/count", response_model=CountResponse)
async def count_endpoint(
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    return await query_uc.count_fingerprints(session=db)


@router.get("/fingerprint", response_model=FingerprintResponse)
async def get_fingerprint_endpoint(
    row: int = Query(..., ge=0, description="Row number assigned at insert time"),
    db: AsyncSession = Depends(get_db_session),
) -> FingerprintResponse:
    return await query_uc.get_fingerprint_by_row(session=db, row=row)
