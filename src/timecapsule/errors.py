"""
Exception hierarchy for timecapsule.

All timecapsule exceptions inherit from TimeCapsuleError, allowing callers to
catch every classified failure with a single except clause.

Exception Categories:
    - ValidationError: Missing or contradictory input
    - NotFoundError: No capsule for the given id and owner
    - StateError: Mutation attempted on a disclosable capsule
    - DecryptionError: Sealed content could not be opened
    - ConfigError: Invalid key, settings or missing collaborator
    - CollaboratorError: Store or media service failure

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (capsule id, field, operation where applicable)
    - Errors are both human-readable and machine-parseable
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Validation errors: 1xxx
ERROR_VALIDATION = 1001
ERROR_VALIDATION_MEDIA = 1002

# Lookup errors: 2xxx
ERROR_NOT_FOUND = 2001

# Lifecycle errors: 3xxx
ERROR_STATE = 3001

# Crypto and configuration errors: 4xxx
ERROR_DECRYPTION = 4001
ERROR_CONFIG = 4101

# Collaborator errors: 5xxx
ERROR_COLLABORATOR = 5000
ERROR_STORAGE_CONNECTION = 5001
ERROR_STORAGE_READ = 5002
ERROR_STORAGE_WRITE = 5003
ERROR_MEDIA = 5101


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class TimeCapsuleError(Exception):
    """
    Base exception for all timecapsule errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Input Errors
# =============================================================================


@dataclass
class ValidationError(TimeCapsuleError):
    """
    Raised when capsule input is missing required fields or contradicts itself.

    Attributes:
        field_name: The offending field, if a single one is to blame
    """

    field_name: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Invalid capsule input"
        if self.code == 0:
            self.code = ERROR_VALIDATION
        self.context["field"] = self.field_name


@dataclass
class NotFoundError(TimeCapsuleError):
    """
    Raised when no capsule matches the id and owner.

    An ownership mismatch raises exactly the same error as a missing id.
    """

    capsule_id: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Capsule not found: {self.capsule_id}"
        if self.code == 0:
            self.code = ERROR_NOT_FOUND
        self.context["capsule_id"] = self.capsule_id


@dataclass
class StateError(TimeCapsuleError):
    """Raised when a disclosable capsule would be modified."""

    capsule_id: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Cannot modify a disclosable capsule"
        if self.code == 0:
            self.code = ERROR_STATE
        if not self.suggestion:
            self.suggestion = "Capsules are read-only once unlocked; create a new one instead"
        self.context["capsule_id"] = self.capsule_id


# =============================================================================
# Crypto and Configuration Errors
# =============================================================================


@dataclass
class DecryptionError(TimeCapsuleError):
    """Raised when sealed content is malformed or was sealed with another key."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Decryption failed: invalid key or corrupted data"
        if self.code == 0:
            self.code = ERROR_DECRYPTION


@dataclass
class ConfigError(TimeCapsuleError):
    """Raised for an invalid key, unreadable settings, or a missing collaborator."""

    setting: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration: {self.setting}"
        if self.code == 0:
            self.code = ERROR_CONFIG
        self.context["setting"] = self.setting


# =============================================================================
# Collaborator Errors
# =============================================================================


@dataclass
class CollaboratorError(TimeCapsuleError):
    """
    Base class for failures of the store or the media service.

    Attributes:
        operation: The operation that failed (e.g., "insert", "upload")
        underlying_error: String form of the original exception
    """

    operation: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"{self.operation or 'Collaborator'} failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_COLLABORATOR
        self.context.update({
            "operation": self.operation,
            "underlying_error": self.underlying_error,
        })


@dataclass
class StorageConnectionError(CollaboratorError):
    """Raised when the database connection fails."""

    db_path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to connect to database: {self.db_path}"
        if self.code == 0:
            self.code = ERROR_STORAGE_CONNECTION
        if not self.suggestion:
            self.suggestion = "Check that the database path is valid and writable"
        super().__post_init__()
        self.context["db_path"] = self.db_path


@dataclass
class StorageReadError(CollaboratorError):
    """Raised when a read operation fails."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database read failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_READ
        super().__post_init__()


@dataclass
class StorageWriteError(CollaboratorError):
    """Raised when a write operation fails."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database write failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_WRITE
        super().__post_init__()


@dataclass
class MediaError(CollaboratorError):
    """Raised when the media service rejects or fails a request."""

    url: str | None = None
    status_code: int | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Media service {self.operation} failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_MEDIA
        super().__post_init__()
        self.context.update({
            "url": self.url,
            "status_code": self.status_code,
        })
