"""Tests for the raw payload archive and its compensating cleanup."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

from fingerprint_service.application.services.identity import parse_identity
from fingerprint_service.application.use_cases.archive_payload import archive_payload
from fingerprint_service.core.config import Settings
from fingerprint_service.core.exceptions import (
    DuplicateError,
    InvalidInputError,
    StorageError,
)
from fingerprint_service.infrastructure.archive import blob_archive as blob_archive_module
from fingerprint_service.infrastructure.archive.blob_archive import BlobArchive
from fingerprint_service.infrastructure.database.connection import Database
from fingerprint_service.infrastructure.database.models import KEY_MAX_LENGTH
from fingerprint_service.infrastructure.database.repositories import (
    ArchiveIndexRepository,
)


@pytest.fixture()
def archive(settings: Settings) -> BlobArchive:
    return BlobArchive(settings.profile_dir / "archive", version=4)


def _archived_files(archive: BlobArchive) -> list[Path]:
    if not archive.directory.exists():
        return []
    return sorted(archive.directory.iterdir())


async def _store(database: Database, archive: BlobArchive, key: str, payload: bytes):
    async with database.session() as session:
        return await archive_payload(session, archive, key, payload)


async def _indexed(database: Database, key: str) -> bool:
    async with database.session() as session:
        return await ArchiveIndexRepository(session).exists(key)


def _failing_insert(*args, **kwargs):
    raise OperationalError("INSERT INTO fingerprint_archive", {}, Exception("disk I/O error"))


def test_write_creates_directory_on_demand(tmp_path: Path) -> None:
    archive = BlobArchive(tmp_path / "a" / "b", version=1)

    path = archive.write("payload.enc", b"data")

    assert path.read_bytes() == b"data"
    archive.ensure_directory()  # idempotent


@pytest.mark.asyncio
async def test_archive_payload_writes_file_and_index(database: Database, archive: BlobArchive) -> None:
    response = await _store(database, archive, "key-1", b'{"components": {}}')

    assert response.key == "key-1"
    assert response.duplicate is False
    assert parse_identity(response.filename).version == 4
    assert response.filename.endswith(".enc")
    assert (archive.directory / response.filename).read_bytes() == b'{"components": {}}'
    assert await _indexed(database, "key-1") is True


@pytest.mark.asyncio
async def test_duplicate_key_has_no_side_effects(database: Database, archive: BlobArchive) -> None:
    await _store(database, archive, "key-1", b"first")

    with pytest.raises(DuplicateError):
        await _store(database, archive, "key-1", b"second")

    files = _archived_files(archive)
    assert len(files) == 1
    assert files[0].read_bytes() == b"first"


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["", "  "])
async def test_empty_key_is_invalid(database: Database, archive: BlobArchive, key: str) -> None:
    with pytest.raises(InvalidInputError):
        await _store(database, archive, key, b"payload")

    assert _archived_files(archive) == []


@pytest.mark.asyncio
async def test_failed_index_insert_removes_written_file(
    database: Database, archive: BlobArchive, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(ArchiveIndexRepository, "insert", _failing_insert)

    with pytest.raises(StorageError):
        await _store(database, archive, "key-1", b"payload")

    assert _archived_files(archive) == []
    assert await _indexed(database, "key-1") is False


@pytest.mark.asyncio
async def test_failed_cleanup_is_logged_not_escalated(
    database: Database,
    archive: BlobArchive,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """The caller still sees StorageError; the orphan file stays on disk."""

    def _failing_remove(path):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(ArchiveIndexRepository, "insert", _failing_insert)
    monkeypatch.setattr(blob_archive_module.os, "remove", _failing_remove)
    caplog.set_level(logging.ERROR)

    with pytest.raises(StorageError):
        await _store(database, archive, "key-1", b"payload")

    assert len(_archived_files(archive)) == 1
    assert "Failed to remove orphaned archive file" in caplog.text


@pytest.mark.asyncio
async def test_key_taken_concurrently_discards_file(
    database: Database, archive: BlobArchive, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Losing the race at the index insert is reported as a duplicate."""
    await _store(database, archive, "key-1", b"winner")

    async def _not_indexed_yet(self, key: str) -> bool:
        return False

    monkeypatch.setattr(ArchiveIndexRepository, "exists", _not_indexed_yet)

    with pytest.raises(DuplicateError):
        await _store(database, archive, "key-1", b"loser")

    files = _archived_files(archive)
    assert len(files) == 1
    assert files[0].read_bytes() == b"winner"


@pytest.mark.asyncio
async def test_over_long_key_is_invalid(database: Database, archive: BlobArchive) -> None:
    with pytest.raises(InvalidInputError):
        await _store(database, archive, "k" * (KEY_MAX_LENGTH + 1), b"payload")

    assert _archived_files(archive) == []


@pytest.mark.asyncio
async def test_index_timeout_removes_written_file(
    database: Database, archive: BlobArchive, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Non-database failures after the write still clean up the file."""

    async def _timed_out(self, key: str, filename: str) -> bool:
        raise asyncio.TimeoutError()

    monkeypatch.setattr(ArchiveIndexRepository, "insert", _timed_out)

    with pytest.raises(StorageError):
        await _store(database, archive, "key-1", b"payload")

    assert _archived_files(archive) == []
    assert await _indexed(database, "key-1") is False


@pytest.mark.asyncio
async def test_cancelled_index_insert_removes_written_file(
    database: Database, archive: BlobArchive, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def _cancelled(self, key: str, filename: str) -> bool:
        raise asyncio.CancelledError()

    monkeypatch.setattr(ArchiveIndexRepository, "insert", _cancelled)

    with pytest.raises(asyncio.CancelledError):
        await _store(database, archive, "key-1", b"payload")

    assert _archived_files(archive) == []
