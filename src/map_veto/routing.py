"""Match routes and the navigation side-effect surface.

A match is addressed as ``/match/{match_id}`` (spectator) or
``/match/{match_id}/{team_index}`` (captain entry). ``/`` is the safe entry
point the client returns to when a match cannot be loaded.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import parse_qs, quote, unquote, urlsplit

logger = logging.getLogger(__name__)

HOME_ROUTE = "/"
MATCH_PREFIX = "match"


@dataclass(frozen=True)
class MatchRoute:
    """Parsed match route. team_param is kept raw, as it keys stored credentials."""

    match_id: str
    team_param: Optional[str] = None

    @property
    def path(self) -> str:
        base = f"/{MATCH_PREFIX}/{quote(self.match_id, safe='')}"
        if self.team_param is None:
            return base
        return f"{base}/{quote(self.team_param, safe='')}"

    @property
    def spectator(self) -> "MatchRoute":
        return MatchRoute(self.match_id)

    @classmethod
    def parse(cls, url: str) -> "MatchRoute":
        """Parse a route path or full URL.

        Accepts ``/match/{id}``, ``/match/{id}/{team}`` and the query form
        ``/match/{id}?team={team}``.

        Raises:
            ValueError: If the path does not address a match.
        """
        parts = urlsplit(url)
        segments = [unquote(s) for s in parts.path.split("/") if s]
        if len(segments) < 2 or segments[0] != MATCH_PREFIX or not segments[1]:
            raise ValueError(f"Not a match route: {url}")

        team_param: Optional[str] = segments[2] if len(segments) > 2 else None
        if team_param is None:
            values = parse_qs(parts.query).get("team")
            if values:
                team_param = values[-1]
        return cls(match_id=segments[1], team_param=team_param)


def parse_team_index(team_param: Optional[str]) -> Optional[int]:
    """Team index from a raw route parameter; None unless it is 0 or 1."""
    if team_param is None:
        return None
    try:
        team_index = int(team_param.strip())
    except ValueError:
        return None
    return team_index if team_index in (0, 1) else None


class Navigator(Protocol):
    """Route/navigation collaborator."""

    def navigate(self, path: str, *, replace: bool = False) -> None: ...


class RecordingNavigator:
    """Navigator that records navigations instead of driving a browser.

    Used by the CLI, where the "current URL" is only reported to the user.
    """

    def __init__(self, initial: str = HOME_ROUTE):
        self.current = initial
        self.history: list[str] = [initial]

    def navigate(self, path: str, *, replace: bool = False) -> None:
        logger.debug(f"Navigate to {path} (replace={replace})")
        if replace and self.history:
            self.history[-1] = path
        else:
            self.history.append(path)
        self.current = path
