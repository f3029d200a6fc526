"""Push channel client streaming match snapshots over a websocket."""

import json
import logging
from typing import Any, AsyncIterator, Optional, Protocol

import aiohttp

from map_veto.errors import SnapshotDecodeError, TransportError
from map_veto.models.match import MatchSnapshot, parse_snapshot

logger = logging.getLogger(__name__)


class PushChannel(Protocol):
    """Push-channel collaborator: one connection at a time, finite stream per connection."""

    match_id: Optional[str]

    @property
    def connected(self) -> bool: ...

    async def connect(self, match_id: str) -> None: ...

    async def disconnect(self) -> None: ...

    def updates(self) -> AsyncIterator[MatchSnapshot]: ...


def decode_frame(text: str) -> Optional[MatchSnapshot]:
    """Decode one text frame into a snapshot.

    Frames are either a bare snapshot or ``{"type": "state", "state": {...}}``.
    Other typed frames (heartbeats, notices) carry no state and return None.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError:
        logger.warning(f"Invalid JSON received: {text[:200]}")
        return None

    if isinstance(data, dict) and "type" in data:
        if data["type"] != "state":
            logger.debug(f"Ignoring {data['type']} frame")
            return None
        data = data.get("state")

    try:
        return parse_snapshot(data)
    except SnapshotDecodeError as e:
        logger.warning(f"Dropping undecodable snapshot frame: {e.detail}")
        return None


class MatchSocket:
    """aiohttp websocket wrapper for ``{base_url}/match/{match_id}``.

    aiohttp's heartbeat pings detect dead connections and end the stream,
    which is how the reconciler learns it should fall back to polling.
    """

    def __init__(
        self,
        base_url: str,
        heartbeat: Optional[float] = 15.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.heartbeat = heartbeat
        self.match_id: Optional[str] = None
        self._session = session
        self._owns_session = session is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def connect(self, match_id: str) -> None:
        """Open the channel for a match, closing any channel open for another match."""
        if self.connected and self.match_id == match_id:
            return
        if self._ws is not None:
            await self._close_ws()

        url = f"{self.base_url}/match/{match_id}"
        session = await self._get_session()
        try:
            self._ws = await session.ws_connect(url, heartbeat=self.heartbeat)
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(f"Push channel connect to {url} failed: {e}")
            raise TransportError("Live updates unavailable") from e
        self.match_id = match_id
        logger.info(f"Push channel open for match {match_id}")

    async def _close_ws(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None and not ws.closed:
            await ws.close()
        if self.match_id:
            logger.info(f"Push channel closed for match {self.match_id}")

    async def disconnect(self) -> None:
        await self._close_ws()
        self.match_id = None
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None if self._owns_session else self._session

    async def updates(self) -> AsyncIterator[MatchSnapshot]:
        """Yield snapshots until the connection closes.

        Raises:
            TransportError: If the connection reports an error frame.
        """
        ws = self._ws
        if ws is None:
            return
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                snapshot = decode_frame(msg.data)
                if snapshot is not None:
                    yield snapshot
            elif msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError("Live updates connection failed") from ws.exception()
