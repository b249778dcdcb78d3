import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fingerprint_service.core.config import DuplicatePolicy
from fingerprint_service.core.exceptions import DuplicateError, StorageError
from fingerprint_service.domain.schemas.fingerprint import FingerprintSubmission
from fingerprint_service.infrastructure.database.repositories import (
    FingerprintRepository,
    WriteOutcome,
)

logger = logging.getLogger(__name__)


async def submit_fingerprint(
    session: AsyncSession,
    policy: DuplicatePolicy,
    submission: FingerprintSubmission,
    user_agent: str | None = None,
) -> WriteOutcome:
    repo = FingerprintRepository(session, policy)

    try:
        outcome = await repo.write(
            visitor_id=submission.visitor_id,
            user_agent=submission.user_agent or user_agent or "",
            components=submission.components,
            dpr=submission.dpr,
        )
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(
            f"Failed to save fingerprint {submission.visitor_id}: {e}", exc_info=True
        )
        raise StorageError("Failed to save fingerprint") from e

    if outcome is WriteOutcome.DUPLICATE:
        logger.info(f"Rejected duplicate fingerprint {submission.visitor_id}")
        raise DuplicateError("Fingerprint with this visitor_id already exists")

    logger.info(
        f"Fingerprint {submission.visitor_id} {outcome.value} (policy={policy.value})"
    )
    return outcome
