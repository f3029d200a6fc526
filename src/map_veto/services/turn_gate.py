"""Turn/phase gate: decide whether the viewer may act on the current snapshot.

The client observes the server's phase machine and never drives it. The gate
only maps phases to action kinds and validates a click against the snapshot
it currently holds, so state errors never require a fresh fetch.
"""

from typing import Callable, Optional, Union

from map_veto.errors import (
    MapUnavailableError,
    MatchCompletedError,
    NoActiveMatchError,
    NotCaptainError,
    UnknownMapError,
    WrongTurnError,
)
from map_veto.models.action import ActionKind, ValidatedAction
from map_veto.models.identity import IdentityContext, Role
from map_veto.models.match import MapInfo, MatchPhase, MatchSnapshot

MapRef = Union[MapInfo, int, str]

_ACTION_BY_PHASE: dict[MatchPhase, Optional[ActionKind]] = {
    MatchPhase.BAN: ActionKind.BAN,
    MatchPhase.PICK: ActionKind.PICK,
    MatchPhase.COMPLETED: None,
}


def action_kind_for_phase(phase: MatchPhase) -> Optional[ActionKind]:
    """Ban -> ban, Pick -> pick, Completed -> None."""
    return _ACTION_BY_PHASE[MatchPhase(phase)]


class TurnGate:
    """Validates viewer actions against the latest snapshot.

    Args:
        identity: The viewer's resolved identity
        snapshot_source: Callable returning the current snapshot (or None)
    """

    def __init__(
        self,
        identity: IdentityContext,
        snapshot_source: Callable[[], Optional[MatchSnapshot]],
    ):
        self.identity = identity
        self._snapshot_source = snapshot_source

    @property
    def snapshot(self) -> Optional[MatchSnapshot]:
        return self._snapshot_source()

    def current_action_kind(self) -> Optional[ActionKind]:
        snapshot = self.snapshot
        if snapshot is None:
            return None
        return action_kind_for_phase(snapshot.phase)

    def is_viewer_authorized(self) -> bool:
        identity = self.identity
        return (
            identity.role == Role.CAPTAIN
            and identity.team_index is not None
            and bool(identity.credential)
        )

    def is_viewers_turn(self) -> bool:
        snapshot = self.snapshot
        if snapshot is None or self.identity.team_index is None:
            return False
        return snapshot.current_turn_team == self.identity.team_index

    def can_act(self) -> bool:
        """Whether map controls should be enabled for this viewer right now."""
        return (
            self.is_viewer_authorized()
            and self.is_viewers_turn()
            and self.current_action_kind() is not None
        )

    def is_decider(self, map_ref: MapRef) -> bool:
        snapshot = self.snapshot
        if snapshot is None:
            return False
        map_id = _map_id(snapshot, map_ref)
        return map_id is not None and snapshot.is_decider(map_id)

    def validate_action(self, map_ref: MapRef) -> ValidatedAction:
        """Check a map click; authorization before turn, turn before completion.

        Raises:
            NoActiveMatchError: No snapshot or match id yet.
            NotCaptainError: Viewer is not an authorized captain.
            WrongTurnError: Another team is on turn.
            MatchCompletedError: The veto is over.
            UnknownMapError: The map is not in the match catalog.
            MapUnavailableError: The map is already banned or picked.
        """
        snapshot = self.snapshot
        if snapshot is None or not self.identity.match_id:
            raise NoActiveMatchError()

        if not self.is_viewer_authorized():
            raise NotCaptainError()

        if not self.is_viewers_turn():
            raise WrongTurnError(snapshot.current_team_name)

        action_kind = self.current_action_kind()
        if action_kind is None:
            raise MatchCompletedError()

        map_id = _map_id(snapshot, map_ref)
        if map_id is None or snapshot.map_by_id(map_id) is None:
            raise UnknownMapError(map_ref)
        if not snapshot.is_map_available(map_id):
            raise MapUnavailableError(snapshot.map_name(map_id))

        return ValidatedAction(
            match_id=self.identity.match_id,
            team_index=self.identity.team_index,
            action_kind=action_kind,
            map_id=map_id,
            credential=self.identity.credential,
        )


def _map_id(snapshot: MatchSnapshot, map_ref: MapRef) -> Optional[int]:
    if isinstance(map_ref, MapInfo):
        return map_ref.id
    if isinstance(map_ref, int) and not isinstance(map_ref, bool):
        return map_ref
    if isinstance(map_ref, str):
        if map_ref.strip().isdigit():
            return int(map_ref)
        found = snapshot.map_by_name(map_ref)
        return found.id if found else None
    return None
