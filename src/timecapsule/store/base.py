"""
Store interface for timecapsule.

The store persists capsule records. It does not enforce ownership: the
service checks ``owner_id`` before acting on a record it fetched by id.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from timecapsule.schema import CapsuleRecord

# Fields accepted by update_fields
UPDATABLE_FIELDS = frozenset({"title", "content", "media", "unlock_at", "unlocked", "updated_at"})


class CapsuleStore(ABC):
    """
    Abstract base class for capsule persistence.

    Implementations raise CollaboratorError subclasses on failure.
    """

    @abstractmethod
    def insert(self, record: CapsuleRecord) -> str:
        """Persist a new record and return its assigned id."""
        ...

    @abstractmethod
    def find_by_id(self, capsule_id: str) -> CapsuleRecord | None:
        """Return the record with this id, or None."""
        ...

    @abstractmethod
    def find_by_owner(self, owner_id: str) -> list[CapsuleRecord]:
        """Return all records of an owner, earliest deadline first."""
        ...

    @abstractmethod
    def update_fields(self, capsule_id: str, fields: dict[str, Any]) -> None:
        """
        Overwrite the given fields of a record.

        Args:
            capsule_id: Record to update
            fields: Mapping of field name to new value; names must be in
                UPDATABLE_FIELDS and ``unlocked`` may only be set to True
        """
        ...

    @abstractmethod
    def delete(self, capsule_id: str) -> None:
        """Remove a record. Removing a missing id is a no-op."""
        ...

    @abstractmethod
    def mark_unlocked(self, capsule_id: str, now: datetime) -> bool:
        """
        Set ``unlocked`` to True if it is still False, in one atomic write.

        Returns:
            True if this call performed the transition
        """
        ...

    def close(self) -> None:
        """Release any held resources."""
