"""HTTP client for the match server API."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from map_veto.errors import ActionRejectedError, SnapshotDecodeError, TransportError
from map_veto.models.action import ActionKind
from map_veto.models.match import MatchSnapshot, parse_snapshot

logger = logging.getLogger(__name__)


def _is_transient(error: Exception) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return False


class MatchApiClient:
    """Async wrapper around the match server's REST endpoints.

    State reads retry transient failures with exponential backoff. Mutations
    (create, action) are sent once: a lost response must not turn into a
    second ban or pick.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the API client.

        Args:
            base_url: API root, e.g. http://localhost:8080/api
            timeout: Request timeout in seconds
            max_retries: Extra attempts for transient state-read failures
            retry_backoff: Base delay in seconds, doubled per attempt
            transport: Optional httpx transport (tests use ASGITransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        client = await self._get_client()
        response = await client.get(path, params=params)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise SnapshotDecodeError(f"Response from {path} is not JSON") from e

    async def create_match(self, team_a: str, team_b: str, slots_per_team: int) -> str:
        """Create a match and return its id."""
        try:
            data = await self._get_json(
                "/match/create",
                {"teamA": team_a, "teamB": team_b, "slots": slots_per_team},
            )
        except httpx.HTTPError as e:
            logger.error(f"Create match failed: {e}")
            raise TransportError("Failed to create match") from e

        match_id = data.get("matchId") if isinstance(data, dict) else None
        if not match_id:
            raise TransportError("Failed to create match")
        logger.info(f"Created match {match_id} ({team_a} vs {team_b}, {slots_per_team} slots)")
        return str(match_id)

    async def get_state(self, match_id: str) -> MatchSnapshot:
        """Fetch the current snapshot, retrying transient failures."""
        attempt = 0
        while True:
            try:
                data = await self._get_json("/match/state", {"id": match_id})
                return parse_snapshot(data)
            except httpx.HTTPError as e:
                if not _is_transient(e) or attempt >= self.max_retries:
                    logger.error(f"Load state for {match_id} failed: {e}")
                    raise TransportError("Failed to load state") from e
                delay = self.retry_backoff * (2 ** attempt)
                attempt += 1
                logger.warning(
                    f"Load state for {match_id} failed ({e}), retry {attempt}/{self.max_retries} in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

    async def apply_action(
        self,
        match_id: str,
        team_index: int,
        action_kind: ActionKind,
        map_id: int,
        credential: Optional[str] = None,
    ) -> MatchSnapshot:
        """Submit a ban or pick and return the post-action snapshot.

        Raises:
            ActionRejectedError: The server refused the action (4xx).
            TransportError: The request failed or timed out.
        """
        params: dict[str, Any] = {
            "id": match_id,
            "team": team_index,
            "action": ActionKind(action_kind).value,
            "map": map_id,
        }
        if credential:
            params["token"] = credential

        try:
            data = await self._get_json("/match/action", params)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Action {params['action']} map {map_id} rejected with {status}")
            if status < 500:
                raise ActionRejectedError(status, e.response.text) from e
            raise TransportError("Action failed (server error)") from e
        except httpx.HTTPError as e:
            logger.error(f"Action {params['action']} map {map_id} failed: {e}")
            raise TransportError("Action failed (server unreachable)") from e
        return parse_snapshot(data)
