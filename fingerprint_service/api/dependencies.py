"""
FastAPI Dependencies
Per-request access to the objects built once at startup.
"""
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import ClientDisconnect

from fingerprint_service.core.config import DuplicatePolicy, Settings
from fingerprint_service.core.exceptions import InvalidInputError, PayloadTooLargeError
from fingerprint_service.infrastructure.archive.blob_archive import BlobArchive
from fingerprint_service.infrastructure.database.connection import Database


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to get database session.
    Yields a database session and ensures proper cleanup.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session


def get_duplicate_policy(
    settings: Settings = Depends(get_app_settings),
) -> DuplicatePolicy:
    return settings.fingerprints.duplicate_policy


def get_blob_archive(request: Request) -> BlobArchive:
    return request.app.state.archive


async def read_limited_body(request: Request, max_bytes: int) -> bytes:
    """
    Read the raw request body, stopping as soon as it exceeds max_bytes.

    Raises:
        PayloadTooLargeError: Body larger than max_bytes
        InvalidInputError: Client went away before the body was read
    """
    body = bytearray()
    try:
        async for chunk in request.stream():
            body.extend(chunk)
            if len(body) > max_bytes:
                raise PayloadTooLargeError(max_bytes)
    except ClientDisconnect:
        raise InvalidInputError("Failed to read request body") from None
    return bytes(body)
