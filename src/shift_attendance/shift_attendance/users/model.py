from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Read-only here; identity and roles are owned by the auth service.
    """

    user_id: int
    first_name: str
    last_name: Optional[str]
    role: Role
    telegram_chat_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def has_channel(self) -> bool:
        return bool(self.telegram_chat_id)
