"""Match state models exchanged with the match server.

Snapshots are immutable and replaced wholesale on every server-side change.
The server encodes phases as integers and uses camelCase keys.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from map_veto.errors import SnapshotDecodeError

UNASSIGNED_MAP_ID = 0
TEAM_COUNT = 2


class MatchPhase(int, Enum):
    """Veto phases, owned and advanced by the server."""

    BAN = 0
    PICK = 1
    COMPLETED = 2


PHASE_LABELS: dict[MatchPhase, str] = {
    MatchPhase.BAN: "Ban Phase",
    MatchPhase.PICK: "Pick Phase",
    MatchPhase.COMPLETED: "Completed",
}


class SeriesType(str, Enum):
    BO1 = "bo1"
    BO3 = "bo3"


class WireModel(BaseModel):
    """Frozen base for payloads that arrive in camelCase."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class MapInfo(WireModel):
    """A map in the match catalog."""

    id: int = Field(gt=UNASSIGNED_MAP_ID)
    name: str


class PickSlot(WireModel):
    """Legacy pick record; map_id 0 means the slot is still unassigned."""

    map_id: int = Field(default=UNASSIGNED_MAP_ID, ge=UNASSIGNED_MAP_ID)


class Team(WireModel):
    name: str
    banned_map_ids: tuple[int, ...] = ()
    picked_map_ids: tuple[int, ...] = ()
    slots: tuple[PickSlot, ...] = ()

    @property
    def picks(self) -> tuple[int, ...]:
        """Map ids this team picked, from pickedMapIds and assigned slots."""
        seen: list[int] = []
        for map_id in (*self.picked_map_ids, *(s.map_id for s in self.slots)):
            if map_id != UNASSIGNED_MAP_ID and map_id not in seen:
                seen.append(map_id)
        return tuple(seen)


class MatchSnapshot(WireModel):
    """Complete match state as known by the server at one point in time."""

    phase: MatchPhase
    current_turn_team: int = Field(ge=0, le=TEAM_COUNT - 1)
    series_type: Optional[SeriesType] = None
    decider_map_id: Optional[int] = None
    available_maps: tuple[MapInfo, ...] = ()
    teams: tuple[Team, ...] = Field(min_length=TEAM_COUNT, max_length=TEAM_COUNT)

    @field_validator("phase", mode="before")
    @classmethod
    def _phase_from_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.strip().isdigit():
                return int(value)
            try:
                return MatchPhase[value.strip().upper()]
            except KeyError:
                return value
        return value

    @field_validator("series_type", mode="before")
    @classmethod
    def _lowercase_series_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("decider_map_id", mode="before")
    @classmethod
    def _unassigned_decider(cls, value: Any) -> Any:
        return None if value == UNASSIGNED_MAP_ID else value

    @model_validator(mode="after")
    def _check_invariants(self) -> "MatchSnapshot":
        map_ids = [m.id for m in self.available_maps]
        if len(set(map_ids)) != len(map_ids):
            raise ValueError("availableMaps contains duplicate ids")

        banned = {map_id for team in self.teams for map_id in team.banned_map_ids}
        picked = {map_id for team in self.teams for map_id in team.picks}
        overlap = banned & picked
        if overlap:
            raise ValueError(f"maps both banned and picked: {sorted(overlap)}")

        if (
            self.phase == MatchPhase.COMPLETED
            and self.decider_map_id is not None
            and self.decider_map_id not in map_ids
        ):
            raise ValueError(f"decider {self.decider_map_id} is not in availableMaps")
        return self

    # Read helpers used by the gate and the CLI

    @property
    def phase_label(self) -> str:
        return PHASE_LABELS[self.phase]

    @property
    def current_team_name(self) -> str:
        return self.team_name(self.current_turn_team)

    @property
    def is_bo1(self) -> bool:
        return self.series_type == SeriesType.BO1

    @property
    def is_bo3(self) -> bool:
        return self.series_type == SeriesType.BO3

    @property
    def banned_map_ids(self) -> set[int]:
        return {map_id for team in self.teams for map_id in team.banned_map_ids}

    @property
    def picked_map_ids(self) -> set[int]:
        return {map_id for team in self.teams for map_id in team.picks}

    def team_name(self, team_index: int) -> str:
        if 0 <= team_index < len(self.teams):
            return self.teams[team_index].name
        return f"Team {team_index}"

    def map_by_id(self, map_id: int) -> Optional[MapInfo]:
        return next((m for m in self.available_maps if m.id == map_id), None)

    def map_by_name(self, name: str) -> Optional[MapInfo]:
        wanted = name.strip().lower()
        return next((m for m in self.available_maps if m.name.lower() == wanted), None)

    def map_name(self, map_id: Optional[int]) -> str:
        """Display name for a map id; empty for unassigned, placeholder for unknown ids."""
        if not map_id:
            return ""
        map_info = self.map_by_id(map_id)
        return map_info.name if map_info else f"Map {map_id}"

    def is_map_banned(self, map_id: int) -> bool:
        return any(map_id in team.banned_map_ids for team in self.teams)

    def is_map_picked(self, map_id: int) -> bool:
        return any(map_id in team.picks for team in self.teams)

    def is_map_available(self, map_id: int) -> bool:
        return not self.is_map_banned(map_id) and not self.is_map_picked(map_id)

    def is_decider(self, map_id: int) -> bool:
        """True only for the decider map, and only once the veto is completed."""
        return self.phase == MatchPhase.COMPLETED and self.decider_map_id == map_id

    def team_picked_map_names(self, team_index: int) -> list[str]:
        if not 0 <= team_index < len(self.teams):
            return []
        names = [self.map_name(map_id) for map_id in self.teams[team_index].picks]
        return [name for name in names if name]

    @property
    def decider_map_name(self) -> str:
        return self.map_name(self.decider_map_id)


def parse_snapshot(payload: Any) -> MatchSnapshot:
    """Validate a decoded server payload into a MatchSnapshot.

    Raises:
        SnapshotDecodeError: If the payload is not a valid snapshot.
    """
    try:
        return MatchSnapshot.model_validate(payload)
    except ValidationError as e:
        raise SnapshotDecodeError(str(e)) from e
