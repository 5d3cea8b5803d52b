"""
Capsule service for timecapsule.

The CapsuleService is the lifecycle layer. It coordinates between:
- CryptoBox: Seals content on write, opens it on disclosed reads
- CapsuleStore: Persists records
- MediaService: Holds attachments (optional)

Lifecycle:
    locked --(deadline observed on read | force_unlock)--> unlocked

    ``unlocked`` is terminal. Only locked, not yet due capsules accept
    update. Every read re-evaluates disclosure and persists the transition
    the first time it sees the deadline has passed.

Design Principles:
    - Owner scoping: a record owned by someone else is reported as not found
    - Sealed at rest: plaintext never reaches the store
    - Best-effort side writes: a failed lazy unlock or media release is
      logged and does not fail the caller's operation
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from timecapsule.crypto import CryptoBox
from timecapsule.errors import (
    CollaboratorError,
    ConfigError,
    DecryptionError,
    NotFoundError,
    StateError,
    ValidationError,
)
from timecapsule.media.base import MediaService
from timecapsule.schema import (
    DEFAULT_MEDIA_TITLE,
    DEFAULT_TITLE,
    UNREADABLE_CONTENT,
    CapsuleCreate,
    CapsuleRecord,
    CapsuleSummary,
    CapsuleUpdate,
    CapsuleView,
    MediaRef,
)
from timecapsule.store.base import CapsuleStore
from timecapsule.unlock import ensure_utc, is_disclosable, locked_placeholder

logger = logging.getLogger("timecapsule.service")


def utc_now() -> datetime:
    """Current time as aware UTC."""
    return datetime.now(UTC)


class CapsuleService:
    """
    Create, read, update, unlock and delete capsules for their owners.

    Usage:
        service = CapsuleService(store=CapsuleDB(":memory:"), crypto=CryptoBox(key))
        view = service.create("alice", CapsuleCreate(content="hi", unlock_at=when))
        service.get("alice", view.id)

    Attributes:
        store: Record persistence
        crypto: Content sealing
        media: Attachment backend, if configured
        clock: Source of the current time
    """

    def __init__(
        self,
        store: CapsuleStore,
        crypto: CryptoBox,
        media: MediaService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.crypto = crypto
        self.media = media
        self.clock = clock

    def close(self) -> None:
        """Close the store and media service."""
        self.store.close()
        if self.media is not None:
            self.media.close()

    def __enter__(self) -> "CapsuleService":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _now(self) -> datetime:
        return ensure_utc(self.clock())

    # =========================================================================
    # Create
    # =========================================================================

    def create(self, owner_id: str, data: CapsuleCreate) -> CapsuleView:
        """
        Create a locked capsule.

        Args:
            owner_id: Verified id of the caller
            data: Capsule input

        Returns:
            View of the new capsule carrying the plaintext as supplied

        Raises:
            ValidationError: If unlock_at is missing or neither content nor
                media is given
        """
        if data.unlock_at is None:
            raise ValidationError(
                message="unlock_at is required",
                field_name="unlock_at",
            )
        if not data.content and data.media is None:
            raise ValidationError(
                message="A capsule needs content or a media attachment",
                field_name="content",
            )

        now = self._now()
        record = CapsuleRecord(
            owner_id=owner_id,
            title=data.title or DEFAULT_TITLE,
            content=self.crypto.seal(data.content) if data.content else None,
            media=data.media,
            unlock_at=data.unlock_at,
            unlocked=False,
            created_at=now,
            updated_at=now,
        )
        record.id = self.store.insert(record)
        logger.info("Created capsule %s for %s (unlocks %s)", record.id, owner_id, record.unlock_at.isoformat())

        return self._view(record, content=data.content or None, media=record.media)

    def create_with_media(
        self,
        owner_id: str,
        data: bytes,
        filename: str,
        unlock_at: datetime | None,
        title: str | None = None,
        message: str | None = None,
    ) -> CapsuleView:
        """
        Upload an attachment and create a capsule around it.

        If the capsule cannot be persisted the upload is released again.

        Raises:
            ConfigError: If no media service is configured
            ValidationError: If unlock_at is missing or the file is rejected
            MediaError: If the upload fails
        """
        if self.media is None:
            raise ConfigError(
                setting="media",
                message="No media service configured",
                suggestion="Set media.backend in the settings file",
            )
        if unlock_at is None:
            raise ValidationError(
                message="unlock_at is required",
                field_name="unlock_at",
            )

        ref = self.media.upload(data, filename)
        try:
            return self.create(
                owner_id,
                CapsuleCreate(
                    title=title or DEFAULT_MEDIA_TITLE,
                    content=message or None,
                    media=ref,
                    unlock_at=unlock_at,
                ),
            )
        except Exception:
            self._release_media(ref, capsule_id=None)
            raise

    # =========================================================================
    # Read
    # =========================================================================

    def list(self, owner_id: str) -> list[CapsuleView]:
        """
        List an owner's capsules, unlocking those whose deadline has passed.

        Each record is opened independently: one undecryptable record is
        marked on its own view and does not affect the others.
        """
        now = self._now()
        return [self._disclose(record, now) for record in self.store.find_by_owner(owner_id)]

    def get(self, owner_id: str, capsule_id: str) -> CapsuleView:
        """
        Read one capsule.

        Raises:
            NotFoundError: If no capsule matches id and owner
        """
        record = self._load(owner_id, capsule_id)
        return self._disclose(record, self._now())

    def summary(self, owner_id: str) -> CapsuleSummary:
        """Count an owner's locked and unlocked capsules."""
        views = self.list(owner_id)
        locked = [v for v in views if not v.unlocked]
        return CapsuleSummary(
            owner_id=owner_id,
            total=len(views),
            locked=len(locked),
            unlocked=len(views) - len(locked),
            next_unlock_at=min((v.unlock_at for v in locked), default=None),
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def update(self, owner_id: str, capsule_id: str, data: CapsuleUpdate) -> CapsuleView:
        """
        Change title, deadline or content of a locked capsule.

        ``unlock_at`` may be moved into the past; the capsule then opens on
        the next read.

        Raises:
            NotFoundError: If no capsule matches id and owner
            StateError: If the capsule is disclosable now
        """
        record = self._load(owner_id, capsule_id)
        now = self._now()
        if is_disclosable(now, record.unlock_at, record.unlocked):
            raise StateError(capsule_id=capsule_id)

        if data.is_empty():
            return self._open_view(record)

        # Empty strings leave the stored value untouched.
        fields: dict[str, Any] = {"updated_at": now}
        if data.title:
            fields["title"] = data.title
        if data.unlock_at is not None:
            fields["unlock_at"] = data.unlock_at
        if data.content:
            fields["content"] = self.crypto.seal(data.content)

        self.store.update_fields(capsule_id, fields)
        record = record.model_copy(update=fields)
        logger.info("Updated capsule %s (%s)", capsule_id, ", ".join(sorted(fields)))

        if data.content:
            return self._view(record, content=data.content, media=record.media)
        return self._open_view(record)

    def force_unlock(self, owner_id: str, capsule_id: str) -> CapsuleView:
        """
        Unlock a capsule now, regardless of its deadline.

        Repeating the call is harmless.

        Raises:
            NotFoundError: If no capsule matches id and owner
        """
        record = self._load(owner_id, capsule_id)
        if not record.unlocked:
            now = self._now()
            if self.store.mark_unlocked(capsule_id, now):
                record = record.model_copy(update={"updated_at": now})
                logger.info("Force-unlocked capsule %s", capsule_id)
            record = record.model_copy(update={"unlocked": True})
        return self._open_view(record)

    def delete(self, owner_id: str, capsule_id: str) -> None:
        """
        Delete a capsule and release its attachment.

        A failed release is logged; the record is deleted regardless.

        Raises:
            NotFoundError: If no capsule matches id and owner
        """
        record = self._load(owner_id, capsule_id)
        if record.media is not None:
            self._release_media(record.media, capsule_id=capsule_id)
        self.store.delete(capsule_id)
        logger.info("Deleted capsule %s", capsule_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, owner_id: str, capsule_id: str) -> CapsuleRecord:
        record = self.store.find_by_id(capsule_id)
        if record is None or record.owner_id != owner_id:
            raise NotFoundError(capsule_id=capsule_id)
        return record

    def _disclose(self, record: CapsuleRecord, now: datetime) -> CapsuleView:
        """Apply the read-time gate, persisting a due transition."""
        if not is_disclosable(now, record.unlock_at, record.unlocked):
            return self._view(
                record,
                content=locked_placeholder(record.unlock_at) if record.content else None,
                media=None,
            )

        if not record.unlocked:
            try:
                if self.store.mark_unlocked(record.id, now):
                    record = record.model_copy(update={"updated_at": now})
                    logger.debug("Capsule %s reached its deadline; marked unlocked", record.id)
            except CollaboratorError as e:
                # Retried on the next read.
                logger.warning("Could not persist unlock of capsule %s: %s", record.id, e)
            record = record.model_copy(update={"unlocked": True})

        return self._open_view(record)

    def _open_view(self, record: CapsuleRecord) -> CapsuleView:
        """View of a disclosed record with its content decrypted."""
        if record.content is None:
            return self._view(record, content=None, media=record.media)
        try:
            plaintext = self.crypto.open(record.content)
        except DecryptionError as e:
            logger.error("Could not decrypt capsule %s: %s", record.id, e)
            return self._view(record, content=UNREADABLE_CONTENT, media=record.media, decrypt_failed=True)
        return self._view(record, content=plaintext, media=record.media)

    def _view(
        self,
        record: CapsuleRecord,
        content: str | None,
        media: MediaRef | None,
        decrypt_failed: bool = False,
    ) -> CapsuleView:
        return CapsuleView(
            id=record.id,
            owner_id=record.owner_id,
            title=record.title,
            content=content,
            media=media,
            unlock_at=record.unlock_at,
            unlocked=record.unlocked,
            created_at=record.created_at,
            updated_at=record.updated_at,
            decrypt_failed=decrypt_failed,
        )

    def _release_media(self, ref: MediaRef, capsule_id: str | None) -> None:
        if self.media is None:
            logger.warning("No media service configured; attachment %s of capsule %s not released", ref.url, capsule_id)
            return
        try:
            self.media.release(ref)
        except Exception as e:
            logger.warning("Could not release attachment %s of capsule %s: %s", ref.url, capsule_id, e)
