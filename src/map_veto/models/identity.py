"""Viewer identity models.

Identity is derived locally from the entry route and persisted credentials.
It is never derived from a match snapshot.
"""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    CAPTAIN = "captain"
    SPECTATOR = "spectator"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class IdentityContext:
    """Who is viewing a match and what they may prove."""

    match_id: str
    team_index: Optional[int] = None
    role: Role = Role.UNKNOWN
    credential: Optional[str] = None

    @classmethod
    def spectator(cls, match_id: str) -> "IdentityContext":
        return cls(match_id=match_id, team_index=None, role=Role.SPECTATOR, credential=None)

    @property
    def is_spectator(self) -> bool:
        return self.role == Role.SPECTATOR


@dataclass
class StoredCredential:
    """Persisted captain record, stored as JSON under a per-match, per-team key."""

    role: Optional[str] = Role.CAPTAIN.value
    team: Optional[int] = None
    token: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self))
