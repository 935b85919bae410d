"""Core data types for Inkwell."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inkwell.core.utils import format_iso_utc, utc_now_iso

T = TypeVar("T")


class Post(BaseModel):
    """A short markdown document stored as one file in the backing repository."""

    identity: str | None = None
    title: str
    body: str
    tags: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    revision: str | None = None

    @field_validator("title", "body")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return value


class ShareLink(BaseModel):
    """Grants external read access to exactly one post. Never mutated after creation."""

    model_config = ConfigDict(populate_by_name=True)

    link_id: str = Field(alias="id")
    document_ref: str = Field(alias="blogId")
    resource_url: str = Field(alias="rawUrl")
    expires_at: str | None = Field(default=None, alias="expiresAt")
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    is_active: bool = Field(default=True, alias="isActive")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Advisory expiry check. Stores never apply it; callers decide."""
        if not self.expires_at:
            return False
        current = format_iso_utc(now or datetime.now(UTC))
        return _normalize_iso(self.expires_at) <= current


class ClickEvent(BaseModel):
    """One resolution of a share link. Append-only."""

    model_config = ConfigDict(populate_by_name=True)

    link_id: str = Field(alias="linkId")
    timestamp: str = Field(default_factory=utc_now_iso)
    address: str = Field(alias="ip")
    client_signature: str = Field(alias="userAgent")
    location: str | None = None


def _normalize_iso(value: str) -> str:
    try:
        return format_iso_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return value


class LookupStatus(str, Enum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Tri-state result of a remote read: found, absent, or failed."""

    status: LookupStatus
    value: T | None = None
    error: Exception | None = None

    @classmethod
    def found(cls, value: T) -> "Lookup[T]":
        return cls(status=LookupStatus.FOUND, value=value)

    @classmethod
    def absent(cls) -> "Lookup[T]":
        return cls(status=LookupStatus.ABSENT)

    @classmethod
    def failed(cls, error: Exception) -> "Lookup[T]":
        return cls(status=LookupStatus.FAILED, error=error)

    @property
    def is_found(self) -> bool:
        return self.status == LookupStatus.FOUND

    @property
    def is_absent(self) -> bool:
        return self.status == LookupStatus.ABSENT

    @property
    def is_failed(self) -> bool:
        return self.status == LookupStatus.FAILED

    def unwrap_or_none(self) -> T | None:
        return self.value if self.is_found else None
