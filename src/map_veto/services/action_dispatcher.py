"""Dispatch validated actions to the match server."""

import logging
from typing import Optional

from map_veto.errors import DispatchInFlightError, NoActiveMatchError
from map_veto.models.action import ValidatedAction
from map_veto.models.match import MatchSnapshot
from map_veto.services.match_client import MatchApiClient
from map_veto.services.update_reconciler import UpdateReconciler, UpdateSource

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """Sends one action at a time.

    An explicit in-flight token marks an outstanding request. A second
    dispatch while it is set fails immediately instead of queuing, so the
    next attempt is always validated against the snapshot that the first one
    produced.
    """

    def __init__(self, api: MatchApiClient, reconciler: UpdateReconciler):
        self.api = api
        self.reconciler = reconciler
        self._in_flight: Optional[object] = None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    async def dispatch(self, action: ValidatedAction) -> MatchSnapshot:
        """Apply an action and feed the post-action snapshot to the reconciler.

        The previous snapshot is left untouched when the server rejects the
        action or the request fails.

        Raises:
            NoActiveMatchError: The reconciler has been closed.
            DispatchInFlightError: Another dispatch has not settled yet.
            ActionRejectedError: The server rejected the action.
            TransportError: The request failed.
        """
        if not self.reconciler.active:
            raise NoActiveMatchError()
        if self._in_flight is not None:
            raise DispatchInFlightError()

        token = object()
        self._in_flight = token
        generation = self.reconciler.generation
        logger.info(
            f"Dispatching {action.action_kind.value} of map {action.map_id} "
            f"for team {action.team_index} in match {action.match_id}"
        )
        try:
            snapshot = await self.api.apply_action(
                action.match_id,
                action.team_index,
                action.action_kind,
                action.map_id,
                action.credential,
            )
        finally:
            if self._in_flight is token:
                self._in_flight = None

        self.reconciler.apply(snapshot, UpdateSource.ACTION, generation)
        return snapshot
