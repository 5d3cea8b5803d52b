"""
timecapsule - Encrypted records that stay sealed until a chosen moment.

A capsule holds text and/or a media attachment together with an unlock
time. Until then its owner only sees a locked placeholder; afterwards the
content is disclosed and the capsule becomes read-only for good.

It provides:
- Content sealed at rest with a process-wide key
- Lazy unlocking evaluated on every read
- Forced early unlock
- SQLite persistence and pluggable media backends

Example usage:
    $ timecapsule keygen
    $ timecapsule create --content "hello" --unlock-at 2030-01-01T00:00:00Z
    $ timecapsule list
"""

__version__ = "0.1.0"
__author__ = "timecapsule contributors"

from timecapsule.crypto import CryptoBox
from timecapsule.errors import (
    CollaboratorError,
    ConfigError,
    DecryptionError,
    NotFoundError,
    StateError,
    TimeCapsuleError,
    ValidationError,
)
from timecapsule.schema import CapsuleCreate, CapsuleUpdate, CapsuleView, MediaRef, MediaType
from timecapsule.service import CapsuleService
from timecapsule.unlock import is_disclosable

__all__ = [
    "__version__",
    "__author__",
    "CapsuleCreate",
    "CapsuleService",
    "CapsuleUpdate",
    "CapsuleView",
    "CollaboratorError",
    "ConfigError",
    "CryptoBox",
    "DecryptionError",
    "MediaRef",
    "MediaType",
    "NotFoundError",
    "StateError",
    "TimeCapsuleError",
    "ValidationError",
    "is_disclosable",
]
