"""
Domain: the authenticated caller of a service operation.

Authentication itself (sessions, tokens) belongs to Supabase Auth; the core
only needs to know who is asking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    user_id: str
    email: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id is required")
