"""User profile model."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class UserProfile:
    """Profile record keyed by user id."""

    user_id: str
    name: str
    email: str
    created_at: datetime
    updated_at: datetime | None = None
