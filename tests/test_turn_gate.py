"""Tests for the turn/phase gate."""

import pytest

from factories import make_snapshot
from map_veto.errors import (
    MapUnavailableError,
    MatchCompletedError,
    NoActiveMatchError,
    NotCaptainError,
    UnknownMapError,
    WrongTurnError,
)
from map_veto.models.action import ActionKind
from map_veto.models.identity import IdentityContext, Role
from map_veto.models.match import MatchPhase
from map_veto.services.turn_gate import TurnGate, action_kind_for_phase

TEAM_A_CAPTAIN = IdentityContext(match_id="m1", team_index=0, role=Role.CAPTAIN, credential="t0")
TEAM_B_CAPTAIN = IdentityContext(match_id="m1", team_index=1, role=Role.CAPTAIN, credential="t1")
SPECTATOR = IdentityContext.spectator("m1")


def gate_for(identity, snapshot):
    return TurnGate(identity, lambda: snapshot)


class TestActionKind:
    @pytest.mark.parametrize(
        "phase,expected",
        [(MatchPhase.BAN, ActionKind.BAN), (MatchPhase.PICK, ActionKind.PICK), (MatchPhase.COMPLETED, None)],
    )
    def test_action_kind_depends_only_on_phase(self, phase, expected):
        assert action_kind_for_phase(phase) == expected
        assert action_kind_for_phase(phase) == action_kind_for_phase(phase)

    def test_current_action_kind_ignores_turn_and_identity(self):
        for identity in (TEAM_A_CAPTAIN, TEAM_B_CAPTAIN, SPECTATOR):
            for turn in (0, 1):
                gate = gate_for(identity, make_snapshot(phase=1, turn=turn))
                assert gate.current_action_kind() == ActionKind.PICK

    def test_no_snapshot_has_no_action_kind(self):
        assert gate_for(TEAM_A_CAPTAIN, None).current_action_kind() is None


class TestAuthorization:
    def test_captain_with_credential_is_authorized(self):
        assert gate_for(TEAM_A_CAPTAIN, make_snapshot()).is_viewer_authorized()

    @pytest.mark.parametrize(
        "identity",
        [
            SPECTATOR,
            IdentityContext(match_id="m1", team_index=0, role=Role.CAPTAIN, credential=None),
            IdentityContext(match_id="m1", team_index=0, role=Role.CAPTAIN, credential=""),
            IdentityContext(match_id="m1", team_index=None, role=Role.CAPTAIN, credential="t"),
            IdentityContext(match_id="m1", team_index=0, role=Role.UNKNOWN, credential="t"),
        ],
    )
    def test_incomplete_identities_are_not_authorized(self, identity):
        assert not gate_for(identity, make_snapshot()).is_viewer_authorized()

    def test_spectator_is_never_on_turn(self):
        assert not gate_for(SPECTATOR, make_snapshot(turn=0)).is_viewers_turn()


class TestValidateAction:
    def test_no_snapshot(self):
        with pytest.raises(NoActiveMatchError) as excinfo:
            gate_for(TEAM_A_CAPTAIN, None).validate_action(1)
        assert excinfo.value.message == "Create or join a match first"

    def test_spectator_during_opponent_turn_gets_not_captain(self):
        with pytest.raises(NotCaptainError) as excinfo:
            gate_for(SPECTATOR, make_snapshot(turn=1)).validate_action(1)
        assert excinfo.value.message == "Only team captains can make picks/bans"

    def test_captain_without_credential_gets_not_captain_on_completed_match(self):
        identity = IdentityContext(match_id="m1", team_index=1, role=Role.CAPTAIN)
        with pytest.raises(NotCaptainError):
            gate_for(identity, make_snapshot(phase=2, turn=0, decider=7)).validate_action(1)

    def test_wrong_turn_names_team_on_turn(self):
        with pytest.raises(WrongTurnError) as excinfo:
            gate_for(TEAM_B_CAPTAIN, make_snapshot(phase=0, turn=0)).validate_action(3)
        assert excinfo.value.message == "It is currently Team A's turn"

    def test_wrong_turn_checked_before_completion(self):
        with pytest.raises(WrongTurnError):
            gate_for(TEAM_B_CAPTAIN, make_snapshot(phase=2, turn=0, decider=7)).validate_action(3)

    def test_completed_match(self):
        with pytest.raises(MatchCompletedError) as excinfo:
            gate_for(TEAM_A_CAPTAIN, make_snapshot(phase=2, turn=0, decider=7)).validate_action(3)
        assert excinfo.value.message == "Match is already completed"

    def test_unknown_map(self):
        with pytest.raises(UnknownMapError):
            gate_for(TEAM_A_CAPTAIN, make_snapshot()).validate_action(99)
        with pytest.raises(UnknownMapError):
            gate_for(TEAM_A_CAPTAIN, make_snapshot()).validate_action("Dust2")

    def test_already_banned_map(self):
        with pytest.raises(MapUnavailableError) as excinfo:
            gate_for(TEAM_A_CAPTAIN, make_snapshot(team_b_bans=[2])).validate_action(2)
        assert excinfo.value.message == "Ascent is no longer available"

    def test_valid_pick(self):
        snapshot = make_snapshot(phase=1, turn=0, team_a_bans=[1], team_b_bans=[2])
        gate = gate_for(TEAM_A_CAPTAIN, snapshot)

        action = gate.validate_action(snapshot.map_by_id(4))

        assert action.match_id == "m1"
        assert action.team_index == 0
        assert action.action_kind == ActionKind.PICK
        assert action.map_id == 4
        assert action.credential == "t0"

    def test_map_by_name_or_numeric_string(self):
        gate = gate_for(TEAM_A_CAPTAIN, make_snapshot())
        assert gate.validate_action("lotus").map_id == 5
        assert gate.validate_action("6").map_id == 6


class TestViewHelpers:
    def test_can_act(self):
        assert gate_for(TEAM_A_CAPTAIN, make_snapshot(turn=0)).can_act()
        assert not gate_for(TEAM_B_CAPTAIN, make_snapshot(turn=0)).can_act()
        assert not gate_for(TEAM_A_CAPTAIN, make_snapshot(phase=2, decider=7)).can_act()

    def test_is_decider(self):
        completed = gate_for(SPECTATOR, make_snapshot(phase=2, decider=7))
        assert completed.is_decider(7)
        assert not completed.is_decider(6)
        assert not gate_for(SPECTATOR, make_snapshot(phase=1, decider=7)).is_decider(7)
        assert not gate_for(SPECTATOR, None).is_decider(7)
