import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fingerprint_service.application.services.normalizer import normalize_components
from fingerprint_service.core.exceptions import (
    ComponentsParseError,
    NotFoundError,
    StorageError,
)
from fingerprint_service.domain.schemas.fingerprint import (
    CountResponse,
    FingerprintResponse,
)
from fingerprint_service.infrastructure.database.repositories import (
    FingerprintRepository,
)

logger = logging.getLogger(__name__)


async def count_fingerprints(session: AsyncSession) -> CountResponse:
    try:
        count = await FingerprintRepository(session).count()
    except SQLAlchemyError as e:
        logger.error(f"Failed to count fingerprints: {e}", exc_info=True)
        raise StorageError("Failed to count fingerprints") from e
    return CountResponse(count=count)


async def get_fingerprint_by_row(
    session: AsyncSession, row: int
) -> FingerprintResponse:
    try:
        record = await FingerprintRepository(session).get_by_row(row)
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch fingerprint row {row}: {e}", exc_info=True)
        raise StorageError("Failed to fetch fingerprint") from e

    if record is None:
        raise NotFoundError(f"Fingerprint row {row} not found")

    try:
        components = normalize_components(record.components)
    except ComponentsParseError as e:
        logger.error(f"Stored components for row {row} are malformed: {e.reason}")
        raise

    return FingerprintResponse(
        row=record.id,
        visitor_id=record.visitor_id,
        user_agent=record.user_agent,
        dpr=record.dpr,
        created_at=record.created_at,
        updated_at=record.updated_at,
        components=components,
    )
