"""Session context for one match view.

A VetoSession is created on route entry and torn down on route exit. It owns
the viewer identity, the snapshot register (through the reconciler), the gate
and the dispatcher, and exposes a single error slot in which the latest error
replaces any earlier one. Errors never propagate to the caller.
"""

import logging
from typing import Optional

from map_veto.config import Settings, settings as default_settings
from map_veto.errors import DispatchInFlightError, NoActiveMatchError, VetoError
from map_veto.models.identity import IdentityContext
from map_veto.models.match import MatchSnapshot
from map_veto.repositories.credential_store import CredentialStore, FileCredentialStore
from map_veto.routing import MatchRoute, Navigator, RecordingNavigator
from map_veto.services.action_dispatcher import ActionDispatcher
from map_veto.services.identity_resolver import IdentityResolver
from map_veto.services.match_client import MatchApiClient
from map_veto.services.match_socket import MatchSocket, PushChannel
from map_veto.services.turn_gate import MapRef, TurnGate
from map_veto.services.update_reconciler import UpdateReconciler

logger = logging.getLogger(__name__)


class VetoSession:
    """Everything the client knows about one match while it is being viewed."""

    def __init__(
        self,
        route: MatchRoute,
        *,
        api: MatchApiClient,
        channel: PushChannel,
        store: CredentialStore,
        navigator: Navigator,
        poll_interval: float = 2.0,
        reconnect_delay: float = 3.0,
    ):
        self.route = route
        self.api = api
        self.navigator = navigator
        self.error_message = ""
        self._owns_api = False

        self.identity: IdentityContext = IdentityResolver(store, navigator).resolve_route(route)
        self.reconciler = UpdateReconciler(
            api,
            channel,
            navigator,
            poll_interval=poll_interval,
            reconnect_delay=reconnect_delay,
            on_error=self.report_error,
        )
        self.gate = TurnGate(self.identity, lambda: self.reconciler.snapshot)
        self.dispatcher = ActionDispatcher(api, self.reconciler)
        logger.info(
            f"Session for match {route.match_id} as {self.identity.role.value}"
            f" (team {self.identity.team_index})"
        )

    @classmethod
    def from_settings(
        cls,
        route: MatchRoute,
        *,
        store: Optional[CredentialStore] = None,
        navigator: Optional[Navigator] = None,
        config: Optional[Settings] = None,
    ) -> "VetoSession":
        """Build a session wired to the real HTTP and websocket clients."""
        config = config or default_settings
        api = MatchApiClient(
            config.api_base_url,
            timeout=config.request_timeout_seconds,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff_seconds,
        )
        session = cls(
            route,
            api=api,
            channel=MatchSocket(config.ws_base_url, heartbeat=config.push_heartbeat_seconds),
            store=store or FileCredentialStore(config.credential_store_path),
            navigator=navigator or RecordingNavigator(route.path),
            poll_interval=config.poll_interval_seconds,
            reconnect_delay=config.push_reconnect_delay_seconds,
        )
        session._owns_api = True
        return session

    @property
    def match_id(self) -> str:
        return self.route.match_id

    @property
    def snapshot(self) -> Optional[MatchSnapshot]:
        return self.reconciler.snapshot

    @property
    def busy(self) -> bool:
        return self.dispatcher.busy

    @property
    def active(self) -> bool:
        return self.reconciler.active

    def report_error(self, message: str) -> None:
        logger.info(f"[{self.match_id}] {message}")
        self.error_message = message

    def clear_error(self) -> None:
        self.error_message = ""

    async def start(self) -> bool:
        return await self.reconciler.start(self.match_id)

    async def refresh(self) -> bool:
        return await self.reconciler.refresh()

    async def select_map(self, map_ref: MapRef) -> bool:
        """Validate a map click against the latest snapshot and dispatch it.

        Returns:
            True if the server accepted the action.
        """
        if not self.reconciler.active:
            self.report_error(NoActiveMatchError().message)
            return False
        if self.dispatcher.busy:
            self.report_error(DispatchInFlightError().message)
            return False

        try:
            action = self.gate.validate_action(map_ref)
        except VetoError as e:
            self.report_error(e.message)
            return False

        self.clear_error()
        try:
            await self.dispatcher.dispatch(action)
        except VetoError as e:
            self.report_error(e.message)
            return False
        return True

    async def close(self) -> None:
        try:
            await self.reconciler.close()
        finally:
            if self._owns_api:
                await self.api.close()

    async def __aenter__(self) -> "VetoSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
