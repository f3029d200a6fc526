"""Error taxonomy for the veto client.

Every error carries a human-readable ``message`` that the session writes into
its single error slot. Adapters translate raw transport exceptions into these
types so callers never see httpx, aiohttp or pydantic errors directly.
"""


class VetoError(Exception):
    """Base class for all errors surfaced to the viewer."""

    kind = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Input errors: reported immediately, no network call issued


class InputError(VetoError):
    kind = "input"


class NoActiveMatchError(InputError):
    def __init__(self):
        super().__init__("Create or join a match first")


class UnknownMapError(InputError):
    def __init__(self, map_ref: object):
        self.map_ref = map_ref
        super().__init__("Unknown map")


# Authorization errors: reported without dispatch


class AuthorizationError(VetoError):
    kind = "authorization"


class NotCaptainError(AuthorizationError):
    def __init__(self):
        super().__init__("Only team captains can make picks/bans")


# State errors: detected from the currently held snapshot


class StateError(VetoError):
    kind = "state"


class WrongTurnError(StateError):
    def __init__(self, team_name: str):
        self.team_name = team_name
        super().__init__(f"It is currently {team_name}'s turn")


class MatchCompletedError(StateError):
    def __init__(self):
        super().__init__("Match is already completed")


class MapUnavailableError(StateError):
    def __init__(self, map_name: str):
        self.map_name = map_name
        super().__init__(f"{map_name} is no longer available")


class DispatchInFlightError(StateError):
    def __init__(self):
        super().__init__("Another action is still in progress")


# Transport errors: network, server rejection, undecodable payloads


class TransportError(VetoError):
    kind = "transport"


class ActionRejectedError(TransportError):
    def __init__(self, status_code: int | None = None, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__("Action rejected by server")


class SnapshotDecodeError(TransportError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__("Received an invalid match state from the server")
