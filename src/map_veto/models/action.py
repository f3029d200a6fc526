"""Action models produced by the turn gate."""

from dataclasses import dataclass
from enum import Enum


class ActionKind(str, Enum):
    BAN = "ban"
    PICK = "pick"


@dataclass(frozen=True)
class ValidatedAction:
    """An action that passed every gate check against the latest snapshot."""

    match_id: str
    team_index: int
    action_kind: ActionKind
    map_id: int
    credential: str
