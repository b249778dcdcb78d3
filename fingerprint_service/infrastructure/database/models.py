"""
SQLAlchemy 2.0 Async Models
Fingerprint records and the raw payload archive index.
"""
from datetime import datetime

from sqlalchemy import (
    Float,
    Integer,
    String,
    Text,
    TIMESTAMP,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Upper bound for caller-supplied keys (visitor_id, archive key)
KEY_MAX_LENGTH = 255


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# ==========================================
# 1. FINGERPRINTS TABLE
# ==========================================


class FingerprintRecord(Base):
    """
    Fingerprints table - one row per visitor identity.
    The surrogate id is the stable row number used for ordinal lookups.
    """

    __tablename__ = "fingerprints"

    # Surrogate row number, never reused (AUTOINCREMENT on SQLite)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Dedup key
    visitor_id: Mapped[str] = mapped_column(String(KEY_MAX_LENGTH), nullable=False, unique=True)

    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="")
    components: Mapped[str] = mapped_column(Text, nullable=False)  # stored verbatim
    dpr: Mapped[float] = mapped_column(Float, nullable=False)

    # 1 on insert, +1 on every upsert overwrite
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.current_timestamp(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )

    __table_args__ = {"sqlite_autoincrement": True}


# ==========================================
# 2. ARCHIVE INDEX TABLE
# ==========================================


class ArchiveEntry(Base):
    """
    Archive index table - maps a caller-supplied key to the archived file.
    """

    __tablename__ = "fingerprint_archive"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(KEY_MAX_LENGTH), nullable=False, unique=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.current_timestamp(),
        nullable=False,
    )

    __table_args__ = {"sqlite_autoincrement": True}
