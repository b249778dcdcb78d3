import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from fingerprint_service.core.exceptions import (
    DuplicateError,
    InvalidInputError,
    StorageError,
)
from fingerprint_service.domain.schemas.fingerprint import ArchiveResponse
from fingerprint_service.infrastructure.archive.blob_archive import BlobArchive
from fingerprint_service.infrastructure.database.repositories import (
    ArchiveIndexRepository,
    validate_key,
)

logger = logging.getLogger(__name__)


async def archive_payload(
    session: AsyncSession,
    archive: BlobArchive,
    key: str,
    payload: bytes,
) -> ArchiveResponse:
    if not key or not key.strip():
        raise InvalidInputError("Missing key parameter in URL")
    validate_key("key", key)

    index_repo = ArchiveIndexRepository(session)

    try:
        already_indexed = await index_repo.exists(key)
    except SQLAlchemyError as e:
        logger.error(f"Archive index lookup failed for key {key}: {e}", exc_info=True)
        raise StorageError("Database query failed") from e

    if already_indexed:
        logger.info(f"Duplicate archive submission for key {key}")
        raise DuplicateError()

    filename = archive.new_filename()

    try:
        await run_in_threadpool(archive.write, filename, payload)
    except OSError as e:
        logger.error(f"Failed to write archive file {filename}: {e}", exc_info=True)
        raise StorageError("Failed to save profile file") from e

    # File and index are separate resources; undo the file if indexing fails
    try:
        inserted = await index_repo.insert(key, filename)
        await session.commit()
    except Exception as e:
        logger.error(
            f"Failed to index archive file {filename} for key {key}: {e}",
            exc_info=True,
        )
        await run_in_threadpool(archive.discard, filename)
        raise StorageError("Failed to save fingerprint to database") from e
    except BaseException:
        # Cancelled mid-insert: remove the file without awaiting again
        logger.warning(f"Archiving for key {key} cancelled, discarding {filename}")
        archive.discard(filename)
        raise

    if not inserted:
        logger.info(f"Key {key} was archived concurrently, discarding {filename}")
        await run_in_threadpool(archive.discard, filename)
        raise DuplicateError()

    logger.info(f"Archived {len(payload)} bytes for key {key} as {filename}")
    return ArchiveResponse(filename=filename, key=key, duplicate=False)
