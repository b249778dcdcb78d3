"""Pytest configuration for the fingerprint service test suite."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any


def _ensure_test_env() -> None:
    """Keep a developer's local config.yaml out of the test settings."""
    os.environ["FINGERPRINT_CONFIG"] = str(Path(__file__).parent / "missing-config.yaml")


_ensure_test_env()

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from fingerprint_service.core.config import Settings  # noqa: E402
from fingerprint_service.infrastructure.database.connection import Database  # noqa: E402


def make_settings(tmp_path: Path, server: dict[str, Any] | None = None, **fingerprints: Any) -> Settings:
    """Build settings that keep every file and the SQLite database under tmp_path."""
    return Settings(
        LOG_LEVEL="WARNING",
        server=server or {},
        fingerprints={"profile_path": str(tmp_path / "profiles"), **fingerprints},
    )


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture()
async def database(settings: Settings):
    """A fresh SQLite database with the schema created."""
    settings.profile_dir.mkdir(parents=True, exist_ok=True)
    db = Database.from_settings(settings)
    await db.create_all()
    yield db
    await db.dispose()
