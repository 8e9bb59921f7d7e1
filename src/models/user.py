"""User identity as reported by the authentication collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class User:
    id: str
    display_name: str = "User"
    email: Optional[str] = None
