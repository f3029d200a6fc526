"""End-to-end session tests against the fake match server."""

import asyncio

import pytest

from factories import make_snapshot
from fakes import settle
from map_veto.models.action import ActionKind
from map_veto.models.identity import Role, StoredCredential
from map_veto.models.match import MatchPhase
from map_veto.routing import MatchRoute
from map_veto.services.veto_session import VetoSession

pytestmark = pytest.mark.anyio


@pytest.fixture
def open_session(api, channel, store, navigator):
    def _open(match_id: str, team_param=None) -> VetoSession:
        return VetoSession(
            MatchRoute(match_id, team_param),
            api=api,
            channel=channel,
            store=store,
            navigator=navigator,
            poll_interval=0.01,
            reconnect_delay=0.01,
        )

    return _open


def login(server, store, match_id: str, team_index: int) -> None:
    store.save(
        match_id,
        str(team_index),
        StoredCredential(team=team_index, token=server.tokens[(match_id, team_index)]),
    )


class TestScenarios:
    async def test_team_b_captain_on_team_a_ban_turn(self, server, store, open_session):
        match_id = server.create("Team A", "Team B", slots=1)
        login(server, store, match_id, 1)

        async with open_session(match_id, "1") as session:
            assert session.snapshot.phase == MatchPhase.BAN
            assert session.snapshot.current_turn_team == 0

            for map_info in session.snapshot.available_maps:
                assert not await session.select_map(map_info)
                assert session.error_message == "It is currently Team A's turn"

        assert server.action_requests == []

    async def test_team_a_captain_picks_on_turn(self, server, store, open_session):
        match_id = server.create("Team A", "Team B", slots=1)
        for team, map_id in [(0, 1), (1, 2), (0, 3), (1, 4)]:
            server.apply(match_id, team, "ban", map_id, server.tokens[(match_id, team)])
        login(server, store, match_id, 0)

        async with open_session(match_id, "0") as session:
            assert session.snapshot.phase == MatchPhase.PICK
            assert session.gate.current_action_kind() == ActionKind.PICK

            assert await session.select_map("Lotus")

            assert server.action_requests[-1]["action"] == "pick"
            assert server.action_requests[-1]["map"] == 5
            assert 5 in session.snapshot.teams[0].picks
            assert session.error_message == ""

    async def test_completed_match_marks_only_decider(self, server, store, open_session):
        match_id = server.create(slots=1)
        sequence = [(0, "ban", 1), (1, "ban", 2), (0, "ban", 3), (1, "ban", 4), (0, "pick", 5), (1, "pick", 6)]
        for team, action, map_id in sequence:
            server.apply(match_id, team, action, map_id, server.tokens[(match_id, team)])

        async with open_session(match_id) as session:
            assert session.snapshot.phase == MatchPhase.COMPLETED
            assert session.snapshot.decider_map_id == 7
            assert [m.id for m in session.snapshot.available_maps if session.gate.is_decider(m)] == [7]

    async def test_push_after_teardown_is_dropped(self, server, open_session, channel):
        match_id = server.create()
        session = open_session(match_id)
        await session.start()
        before = session.snapshot
        old_queue = channel._queue

        await session.close()
        old_queue.put_nowait(make_snapshot(turn=1, team_a_bans=[1]))
        await settle()

        assert session.snapshot == before
        assert not session.active


class TestIdentityAndErrors:
    async def test_spectator_gets_not_captain_during_opponent_turn(self, server, open_session, navigator):
        match_id = server.create()
        server.apply(match_id, 0, "ban", 1, server.tokens[(match_id, 0)])

        async with open_session(match_id, "0") as session:
            assert session.identity.role == Role.SPECTATOR
            assert navigator.current == f"/match/{match_id}"
            assert not await session.select_map(2)
            assert session.error_message == "Only team captains can make picks/bans"

    async def test_malformed_credential_is_rejected_by_gate(self, server, store, open_session):
        match_id = server.create()
        store.put_raw(match_id, "0", "{broken")

        async with open_session(match_id, "0") as session:
            assert session.identity.role == Role.CAPTAIN
            assert session.identity.credential is None
            assert not await session.select_map(2)
            assert session.error_message == "Only team captains can make picks/bans"

    async def test_server_rejection_keeps_snapshot(self, server, store, open_session):
        match_id = server.create()
        store.save(match_id, "0", StoredCredential(team=0, token="stale-token"))

        async with open_session(match_id, "0") as session:
            before = session.snapshot
            assert not await session.select_map(2)
            assert session.error_message == "Action rejected by server"
            assert session.snapshot == before

    async def test_latest_error_replaces_previous(self, server, store, open_session):
        match_id = server.create()
        login(server, store, match_id, 0)

        async with open_session(match_id, "0") as session:
            assert not await session.select_map("Dust2")
            assert session.error_message == "Unknown map"
            assert await session.select_map(1)
            assert session.error_message == ""
            assert not await session.select_map(2)
            assert session.error_message == "It is currently Team B's turn"

    async def test_busy_session_rejects_second_click(self, server, store, open_session):
        match_id = server.create()
        login(server, store, match_id, 0)
        server.action_gate = asyncio.Event()

        async with open_session(match_id, "0") as session:
            first = asyncio.create_task(session.select_map(1))
            await settle()
            assert session.busy

            assert not await session.select_map(2)
            assert session.error_message == "Another action is still in progress"

            server.action_gate.set()

            assert await first
            assert not session.busy
            assert len(server.action_requests) == 1

    async def test_missing_match_redirects_home(self, open_session, navigator):
        async with open_session("missing") as session:
            assert session.snapshot is None
            assert session.error_message == "Failed to load match. Redirecting..."
            assert navigator.current == "/"
            assert not await session.select_map(1)
            assert session.error_message == "Create or join a match first"

    async def test_select_after_close_sends_nothing(self, server, store, open_session):
        match_id = server.create()
        login(server, store, match_id, 0)
        session = open_session(match_id, "0")
        await session.start()
        await session.close()

        assert not await session.select_map(1)
        assert session.error_message == "Create or join a match first"
        assert server.action_requests == []
        assert server.matches[match_id]["teams"][0]["bannedMapIds"] == []
