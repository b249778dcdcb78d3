"""
Repository Layer - Data Access
All database operations using async SQLAlchemy 2.0.
Duplicate handling is always a single conditional insert, never read-then-write.
"""
import enum
import logging
import math
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from fingerprint_service.core.config import DuplicatePolicy
from fingerprint_service.core.exceptions import InvalidInputError
from fingerprint_service.infrastructure.database.models import (
    KEY_MAX_LENGTH,
    ArchiveEntry,
    FingerprintRecord,
)

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class WriteOutcome(str, enum.Enum):
    """Result of a policy-gated write."""

    CREATED = "created"
    UPDATED = "updated"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


def _conditional_insert(session: AsyncSession, model):
    """Pick the dialect insert construct that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[dialect](model)
    except KeyError:
        raise RuntimeError(
            f"Unsupported database dialect for conditional writes: {dialect}"
        ) from None


def parse_device_pixel_ratio(dpr: Union[str, float, int, None]) -> float:
    """Parse a pixel ratio reported as a string or number; must be finite."""
    if dpr is None or isinstance(dpr, bool):
        raise InvalidInputError("dpr is required")
    try:
        value = float(dpr.strip() if isinstance(dpr, str) else dpr)
    except (TypeError, ValueError):
        raise InvalidInputError(f"dpr must be a number, got {dpr!r}") from None
    if not math.isfinite(value):
        raise InvalidInputError(f"dpr must be finite, got {dpr!r}")
    return value


def validate_key(name: str, key: str) -> None:
    """Reject empty or over-long dedup keys before they reach the database."""
    if not key or not key.strip():
        raise InvalidInputError(f"{name} must not be empty")
    if len(key) > KEY_MAX_LENGTH:
        raise InvalidInputError(
            f"{name} must be at most {KEY_MAX_LENGTH} characters"
        )


class FingerprintRepository:
    """
    Repository for fingerprint records.
    The policy only governs write(); reads ignore it.
    """

    def __init__(
        self,
        session: AsyncSession,
        policy: DuplicatePolicy = DuplicatePolicy.REJECT,
    ):
        self.session = session
        self.policy = policy

    async def write(
        self,
        visitor_id: str,
        user_agent: str,
        components: str,
        dpr: Union[str, float, None],
    ) -> WriteOutcome:
        """
        Store a fingerprint according to the configured policy.

        Args:
            visitor_id: Dedup key, must be non-empty
            user_agent: Submitter User-Agent
            components: Serialized component bundle, stored verbatim
            dpr: Device pixel ratio as reported by the client

        Returns:
            WriteOutcome describing what the single statement did

        Raises:
            InvalidInputError: Empty or over-long visitor_id, unparseable dpr
        """
        validate_key("visitor_id", visitor_id)
        pixel_ratio = parse_device_pixel_ratio(dpr)

        stmt = _conditional_insert(self.session, FingerprintRecord).values(
            visitor_id=visitor_id,
            user_agent=user_agent or "",
            components=components,
            dpr=pixel_ratio,
            revision=1,
        )

        if self.policy is DuplicatePolicy.UPSERT:
            stmt = stmt.on_conflict_do_update(
                index_elements=[FingerprintRecord.visitor_id],
                set_={
                    "user_agent": stmt.excluded.user_agent,
                    "components": stmt.excluded.components,
                    "dpr": stmt.excluded.dpr,
                    "revision": FingerprintRecord.revision + 1,
                    "updated_at": func.current_timestamp(),
                },
            ).returning(FingerprintRecord.revision)
            result = await self.session.execute(stmt)
            revision = result.scalar_one()
            return WriteOutcome.CREATED if revision == 1 else WriteOutcome.UPDATED

        stmt = stmt.on_conflict_do_nothing(
            index_elements=[FingerprintRecord.visitor_id]
        ).returning(FingerprintRecord.id)
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none() is not None:
            return WriteOutcome.CREATED

        if self.policy is DuplicatePolicy.REJECT:
            return WriteOutcome.DUPLICATE
        return WriteOutcome.IGNORED

    async def count(self) -> int:
        """Count stored fingerprints."""
        result = await self.session.execute(
            select(func.count()).select_from(FingerprintRecord)
        )
        return result.scalar_one()

    async def get_by_row(self, row: int) -> Optional[FingerprintRecord]:
        """Get fingerprint by its stable row number."""
        if row < 1:
            return None
        result = await self.session.execute(
            select(FingerprintRecord).where(FingerprintRecord.id == row)
        )
        return result.scalar_one_or_none()

    async def exists_by_key(self, visitor_id: str) -> bool:
        result = await self.session.execute(
            select(FingerprintRecord.id).where(
                FingerprintRecord.visitor_id == visitor_id
            )
        )
        return result.scalar_one_or_none() is not None


class ArchiveIndexRepository:
    """Repository for the archived payload index."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, key: str) -> bool:
        result = await self.session.execute(
            select(ArchiveEntry.id).where(ArchiveEntry.key == key)
        )
        return result.scalar_one_or_none() is not None

    async def insert(self, key: str, filename: str) -> bool:
        """Index an archived file; False when the key was taken concurrently."""
        stmt = (
            _conditional_insert(self.session, ArchiveEntry)
            .values(key=key, filename=filename)
            .on_conflict_do_nothing(index_elements=[ArchiveEntry.key])
            .returning(ArchiveEntry.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
