"""
Schema definitions for timecapsule.

This module defines the Pydantic models used throughout timecapsule:
- MediaRef: Reference to an externally stored attachment
- CapsuleRecord: The persisted capsule (content is always sealed)
- CapsuleCreate/CapsuleUpdate: Caller input for create and update
- CapsuleView: What callers get back (plaintext or locked placeholder)
- CapsuleSummary: Per-owner counts

Design Decisions:
    - Inputs are frozen and forbid unknown fields
    - All timestamps are normalised to aware UTC datetimes
    - Input models allow missing required values so the service can raise
      its own classified ValidationError
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timecapsule.unlock import ensure_utc

DEFAULT_TITLE = "My Time Capsule"
DEFAULT_MEDIA_TITLE = "Media Time Capsule"
UNREADABLE_CONTENT = "⚠ Content could not be decrypted"


# =============================================================================
# Enums
# =============================================================================


class MediaType(str, Enum):
    """Kind of attachment stored by the media service."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    RAW = "raw"


class CapsuleState(str, Enum):
    """Lifecycle state of a capsule."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"


# =============================================================================
# Capsule Models
# =============================================================================


class MediaRef(BaseModel):
    """
    Reference to an attachment held by the media service.

    Attributes:
        url: Where the attachment can be fetched
        type: Kind of attachment
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(..., description="Attachment URL", min_length=1)
    type: MediaType = Field(default=MediaType.RAW, description="Attachment kind")


class CapsuleRecord(BaseModel):
    """
    A capsule as persisted by the store.

    ``content`` holds the sealed token, never plaintext.

    Attributes:
        id: Store-assigned identifier (empty until inserted)
        owner_id: Creating user
        title: Display title
        content: Sealed content token, if any
        media: Attachment reference, if any
        unlock_at: Disclosure deadline
        unlocked: Persisted unlock flag (one-way)
        created_at: Creation time
        updated_at: Time of the last mutation
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default="", description="Capsule identifier")
    owner_id: str = Field(..., description="Creating user", min_length=1)
    title: str = Field(default=DEFAULT_TITLE, description="Display title")
    content: str | None = Field(default=None, description="Sealed content token")
    media: MediaRef | None = Field(default=None, description="Attachment reference")
    unlock_at: datetime = Field(..., description="Disclosure deadline")
    unlocked: bool = Field(default=False, description="Persisted unlock flag")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last mutation time")

    @field_validator("unlock_at", "created_at", "updated_at")
    @classmethod
    def normalise_timestamp(cls, v: datetime) -> datetime:
        """Store every timestamp as aware UTC."""
        return ensure_utc(v)


class CapsuleCreate(BaseModel):
    """
    Input for creating a capsule.

    At least one of ``content`` and ``media`` is required, as is
    ``unlock_at``; the service enforces both.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str | None = Field(default=None, description="Display title")
    content: str | None = Field(default=None, description="Plaintext content")
    media: MediaRef | None = Field(default=None, description="Attachment reference")
    unlock_at: datetime | None = Field(default=None, description="Disclosure deadline")

    @field_validator("unlock_at")
    @classmethod
    def normalise_unlock_at(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


class CapsuleUpdate(BaseModel):
    """Fields that may change while a capsule is locked."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str | None = Field(default=None, description="New display title")
    unlock_at: datetime | None = Field(default=None, description="New deadline")
    content: str | None = Field(default=None, description="New plaintext content")

    @field_validator("unlock_at")
    @classmethod
    def normalise_unlock_at(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    def is_empty(self) -> bool:
        """Whether no field carries a value; empty strings count as absent."""
        return not self.title and self.unlock_at is None and not self.content


class CapsuleView(BaseModel):
    """
    A capsule as returned to its owner.

    For a locked capsule ``content`` is the locked placeholder (when the
    capsule has content at all) and ``media`` is withheld.

    Attributes:
        decrypt_failed: True when the capsule is disclosed but its sealed
            content could not be opened
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    owner_id: str
    title: str
    content: str | None = None
    media: MediaRef | None = None
    unlock_at: datetime
    unlocked: bool
    created_at: datetime
    updated_at: datetime
    decrypt_failed: bool = False

    @property
    def state(self) -> CapsuleState:
        """Lifecycle state shown by this view."""
        return CapsuleState.UNLOCKED if self.unlocked else CapsuleState.LOCKED


class CapsuleSummary(BaseModel):
    """
    Per-owner capsule counts.

    Attributes:
        total: Number of capsules
        locked: Capsules not yet disclosable
        unlocked: Disclosable capsules
        next_unlock_at: Earliest deadline among locked capsules
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    owner_id: str
    total: int = Field(default=0, ge=0)
    locked: int = Field(default=0, ge=0)
    unlocked: int = Field(default=0, ge=0)
    next_unlock_at: datetime | None = None
