from dataclasses import dataclass
from datetime import datetime

from foodlink.core.policy import Role


@dataclass(frozen=True)
class Session:
    """Authenticated caller, passed explicitly to every identity-bound operation."""
    user_id: str
    token_id: str
    token_expires: datetime
    profile: dict

    @property
    def profile_id(self) -> str:
        return self.profile["_id"]

    @property
    def role(self) -> Role:
        return Role(self.profile["role"])
