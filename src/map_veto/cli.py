"""Terminal front end for the veto client.

Examples:
  map-veto create --team-a "Team A" --team-b "Team B" --slots 1
  map-veto login 3f2a 0 --token abc123
  map-veto watch /match/3f2a
  map-veto act /match/3f2a/0 Ascent
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from map_veto.config import settings
from map_veto.errors import VetoError
from map_veto.models.identity import StoredCredential
from map_veto.models.match import MatchPhase, MatchSnapshot
from map_veto.repositories.credential_store import FileCredentialStore
from map_veto.routing import MatchRoute, RecordingNavigator
from map_veto.services.lobby import Lobby, join_route
from map_veto.services.match_client import MatchApiClient
from map_veto.services.update_reconciler import UpdateSource
from map_veto.services.veto_session import VetoSession


def render_snapshot(snapshot: MatchSnapshot) -> str:
    """Plain-text board: phase, turn, and each map's status."""
    lines = [f"{snapshot.phase_label} | {snapshot.teams[0].name} vs {snapshot.teams[1].name}"]
    if snapshot.phase != MatchPhase.COMPLETED:
        lines.append(f"Turn: {snapshot.current_team_name}")
    for map_info in snapshot.available_maps:
        if snapshot.is_decider(map_info.id):
            status = "DECIDER"
        elif snapshot.is_map_banned(map_info.id):
            status = "banned"
        elif snapshot.is_map_picked(map_info.id):
            status = "picked"
        else:
            status = ""
        lines.append(f"  [{map_info.id:>2}] {map_info.name:<12} {status}".rstrip())
    for index, team in enumerate(snapshot.teams):
        picks = ", ".join(snapshot.team_picked_map_names(index)) or "-"
        lines.append(f"{team.name} picks: {picks}")
    if snapshot.decider_map_name and snapshot.phase == MatchPhase.COMPLETED:
        lines.append(f"Decider: {snapshot.decider_map_name}")
    return "\n".join(lines)


def _api() -> MatchApiClient:
    return MatchApiClient(
        settings.api_base_url,
        timeout=settings.request_timeout_seconds,
        max_retries=settings.max_retries,
        retry_backoff=settings.retry_backoff_seconds,
    )


async def _create(args: argparse.Namespace) -> int:
    api = _api()
    try:
        lobby = Lobby(api)
        match_id = await lobby.create_match(args.team_a, args.team_b, args.slots)
    finally:
        await api.close()
    if match_id is None:
        print(f"ERROR: {lobby.error_message}")
        return 1
    print(f"Match created: {match_id}")
    print(f"  Spectate: {MatchRoute(match_id).path}")
    for team_index in (0, 1):
        print(f"  Team {team_index}: {join_route(match_id, team_index).path}")
    return 0


def _login(args: argparse.Namespace) -> int:
    route = join_route(args.match_id, args.team)
    store = FileCredentialStore(settings.credential_store_path)
    store.save(route.match_id, route.team_param, StoredCredential(team=args.team, token=args.token))
    print(f"Stored captain credential. Enter with: {route.path}")
    return 0


async def _watch(args: argparse.Namespace) -> int:
    route = MatchRoute.parse(args.route)
    navigator = RecordingNavigator(route.path)
    session = VetoSession.from_settings(route, navigator=navigator)
    finished = asyncio.Event()

    def on_change(snapshot: MatchSnapshot, source: UpdateSource) -> None:
        print(f"\n-- update ({source.value}) --")
        print(render_snapshot(snapshot))
        if snapshot.phase == MatchPhase.COMPLETED:
            finished.set()

    session.reconciler.register.subscribe(on_change)
    try:
        if not await session.start():
            print(f"ERROR: {session.error_message}")
            return 1
        print(f"Watching {navigator.current} as {session.identity.role.value}")
        await finished.wait()
    finally:
        await session.close()
    return 0


async def _act(args: argparse.Namespace) -> int:
    route = MatchRoute.parse(args.route)
    session = VetoSession.from_settings(route)
    async with session:
        if session.snapshot is None:
            print(f"ERROR: {session.error_message}")
            return 1
        accepted = await session.select_map(args.map)
        if not accepted:
            print(f"ERROR: {session.error_message}")
            return 1
        print(render_snapshot(session.snapshot))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Map pick/ban client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a new match")
    create.add_argument("--team-a", default="Team A")
    create.add_argument("--team-b", default="Team B")
    create.add_argument("--slots", type=int, default=1, help="Pick slots per team (default: 1)")

    login = subparsers.add_parser("login", help="Store an issued captain token")
    login.add_argument("match_id")
    login.add_argument("team", type=int, choices=[0, 1])
    login.add_argument("--token", required=True)

    watch = subparsers.add_parser("watch", help="Follow a match until it completes")
    watch.add_argument("route", help="Match route, e.g. /match/<id> or /match/<id>/<team>")

    act = subparsers.add_parser("act", help="Ban or pick a map (phase decides which)")
    act.add_argument("route", help="Captain route, e.g. /match/<id>/<team>")
    act.add_argument("map", help="Map name or id")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "create":
            return asyncio.run(_create(args))
        if args.command == "login":
            return _login(args)
        if args.command == "watch":
            return asyncio.run(_watch(args))
        return asyncio.run(_act(args))
    except VetoError as e:
        print(f"ERROR: {e.message}")
        return 2
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
