"""Data models for the map veto client."""

from map_veto.models.action import ActionKind, ValidatedAction
from map_veto.models.identity import IdentityContext, Role, StoredCredential
from map_veto.models.match import (
    MapInfo,
    MatchPhase,
    MatchSnapshot,
    PickSlot,
    SeriesType,
    Team,
    parse_snapshot,
)

__all__ = [
    "ActionKind",
    "ValidatedAction",
    "IdentityContext",
    "Role",
    "StoredCredential",
    "MapInfo",
    "MatchPhase",
    "MatchSnapshot",
    "PickSlot",
    "SeriesType",
    "Team",
    "parse_snapshot",
]
