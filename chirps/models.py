"""
chirps/models.py -- Domain dataclass for chirps (short text posts).

user_id is the owner. It is set from the author's validated access token at
creation and is the value auth.guard.authorize() compares against on delete.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class Chirp:
    id: UUID
    body: str
    user_id: UUID
    created_at: datetime
    updated_at: datetime
