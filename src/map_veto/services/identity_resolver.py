"""Resolve the viewer's identity from the entry route and stored credentials."""

import json
import logging
from typing import Optional

from map_veto.models.identity import IdentityContext, Role
from map_veto.repositories.credential_store import CredentialStore, StorageUnavailableError
from map_veto.routing import MatchRoute, Navigator, parse_team_index

logger = logging.getLogger(__name__)

_ROLES_BY_VALUE = {role.value: role for role in Role}


class IdentityResolver:
    """Derive an IdentityContext once per route entry.

    Resolution never raises and never touches the network. It fails open to
    spectator when no credential is stored, and only canonicalizes the URL
    (via the navigator) for spectator entries.
    """

    def __init__(self, store: CredentialStore, navigator: Navigator):
        self.store = store
        self.navigator = navigator

    def resolve(self, match_id: str, team_param: Optional[str]) -> IdentityContext:
        if team_param is None:
            return self._spectator(match_id)

        route_team = parse_team_index(team_param)

        try:
            raw = self.store.get_raw(match_id, team_param)
        except StorageUnavailableError as e:
            logger.warning(f"Credential storage unavailable: {e}")
            return IdentityContext(match_id=match_id, team_index=route_team, role=Role.UNKNOWN)

        if not raw:
            return self._spectator(match_id)

        try:
            stored = json.loads(raw)
            if not isinstance(stored, dict):
                raise ValueError(f"expected an object, got {type(stored).__name__}")
        except ValueError as e:
            # Surfaced as a captain without a token; the gate rejects it later
            logger.warning(f"Stored credential for match {match_id} team {team_param} is malformed: {e}")
            return IdentityContext(match_id=match_id, team_index=route_team, role=Role.CAPTAIN)

        return IdentityContext(
            match_id=match_id,
            team_index=_stored_team(stored.get("team"), route_team),
            role=_stored_role(stored.get("role")),
            credential=_stored_token(stored.get("token")),
        )

    def resolve_route(self, route: MatchRoute) -> IdentityContext:
        return self.resolve(route.match_id, route.team_param)

    def _spectator(self, match_id: str) -> IdentityContext:
        self.navigator.navigate(MatchRoute(match_id).path, replace=True)
        return IdentityContext.spectator(match_id)


def _stored_role(value: object) -> Role:
    if value is None:
        return Role.CAPTAIN
    if isinstance(value, str):
        return _ROLES_BY_VALUE.get(value.strip().lower(), Role.UNKNOWN)
    return Role.UNKNOWN


def _stored_team(value: object, fallback: Optional[int]) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
        return value
    return fallback


def _stored_token(value: object) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None
