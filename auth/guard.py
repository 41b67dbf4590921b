"""
auth/guard.py -- Ownership check before mutating an owned resource.

owner_id must come from server-side storage (e.g. the chirp row), never from
a field in the same request. caller_id must come from a validated credential.
The check itself is plain UUID equality.

Layer rule: no imports from api/, chirps/, or core/.
"""

from __future__ import annotations

from uuid import UUID

from auth.errors import OwnershipMismatch


def is_owner(caller_id: UUID, owner_id: UUID) -> bool:
    return caller_id == owner_id


def authorize(caller_id: UUID, owner_id: UUID) -> None:
    """Return None if caller_id owns the resource, else raise OwnershipMismatch (403)."""
    if not is_owner(caller_id, owner_id):
        raise OwnershipMismatch()
