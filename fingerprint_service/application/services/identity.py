"""
Identity Generation Service
Generates unique, sortable names for archived fingerprint payloads.
"""
import hashlib
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

_IDENTITY_PATTERN = re.compile(
    r"^(?P<digest>[0-9a-f]{32})_VERSION_(?P<version>\d+)_(?P<date>\d{8})(?:\.[^.]+)?$"
)


@dataclass(frozen=True)
class IdentityParts:
    digest: str
    version: int
    date: date


def generate_identity(version: int, now: Optional[datetime] = None) -> str:
    """
    Generate an identity from a random UUID, the current time and a version tag.

    Args:
        version: Format version tag embedded in the name
        now: Timestamp to use (defaults to the current local time)

    Returns:
        "{md5 hex}_VERSION_{version}_{YYYYMMDD}"
    """
    now = now or datetime.now()

    hash_input = str(uuid.uuid4()) + now.strftime("%Y-%m-%d %H:%M:%S")
    # MD5 is a content digest here, uniqueness comes from the UUID
    digest = hashlib.md5(hash_input.encode("utf-8"), usedforsecurity=False).hexdigest()

    return f"{digest}_VERSION_{version}_{now.strftime('%Y%m%d')}"


def archive_filename(version: int, extension: str = ".enc") -> str:
    """Generate an identity and append the archive file extension."""
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return generate_identity(version) + extension


def parse_identity(name: str) -> IdentityParts:
    """
    Split a generated identity (or archive filename) into its parts.

    Raises:
        ValueError: If the name does not follow the identity format
    """
    match = _IDENTITY_PATTERN.match(name)
    if not match:
        raise ValueError(f"Not a fingerprint identity: {name!r}")
    return IdentityParts(
        digest=match.group("digest"),
        version=int(match.group("version")),
        date=datetime.strptime(match.group("date"), "%Y%m%d").date(),
    )
