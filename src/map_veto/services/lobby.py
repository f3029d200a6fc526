"""Entry flows: create a match or join one as a team."""

import logging
from typing import Optional

from map_veto.errors import InputError, VetoError
from map_veto.routing import MatchRoute
from map_veto.services.match_client import MatchApiClient

logger = logging.getLogger(__name__)

DEFAULT_TEAM_A_NAME = "Team A"
DEFAULT_TEAM_B_NAME = "Team B"
DEFAULT_SLOTS_PER_TEAM = 1
CREATE_FAILED_MESSAGE = "Failed to create match"


class Lobby:
    """Create/join forms. Input problems are reported before any request is made."""

    def __init__(self, api: MatchApiClient):
        self.api = api
        self.error_message = ""

    async def create_match(
        self,
        team_a: str = DEFAULT_TEAM_A_NAME,
        team_b: str = DEFAULT_TEAM_B_NAME,
        slots_per_team: int = DEFAULT_SLOTS_PER_TEAM,
    ) -> Optional[str]:
        self.error_message = ""
        if not team_a.strip() or not team_b.strip():
            self.error_message = "Enter both team names."
            return None
        if slots_per_team < 1:
            self.error_message = "Slots per team must be at least 1."
            return None
        try:
            return await self.api.create_match(team_a.strip(), team_b.strip(), slots_per_team)
        except VetoError as e:
            logger.error(f"Create match error: {e.message}")
            self.error_message = CREATE_FAILED_MESSAGE
            return None

    def join(self, match_id: str, team_index: Optional[int]) -> Optional[MatchRoute]:
        """Route for joining a match as a team, or None with error_message set."""
        self.error_message = ""
        try:
            return join_route(match_id, team_index)
        except InputError as e:
            self.error_message = e.message
            return None


def join_route(match_id: str, team_index: Optional[int]) -> MatchRoute:
    """Build the captain entry route for a match.

    Raises:
        InputError: Missing match id or a team index other than 0 or 1.
    """
    if not match_id or not match_id.strip():
        raise InputError("Enter a match ID to join.")
    if team_index not in (0, 1):
        raise InputError("Select a team index (0 or 1).")
    return MatchRoute(match_id=match_id.strip(), team_param=str(team_index))
