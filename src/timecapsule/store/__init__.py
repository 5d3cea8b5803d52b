"""
Storage module for timecapsule.

This module provides persistence for capsule records behind the
CapsuleStore interface, with a SQLite implementation.

Tables:
    - capsules: One row per capsule; content is stored sealed

Design principles:
    - The store does not check ownership; the service does
    - The unlock flag is one-way
    - Each transition is a single committed statement
"""

from timecapsule.store.base import UPDATABLE_FIELDS, CapsuleStore
from timecapsule.store.db import CapsuleDB, generate_id

__all__ = [
    "CapsuleDB",
    "CapsuleStore",
    "UPDATABLE_FIELDS",
    "generate_id",
]
