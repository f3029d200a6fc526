"""Reconcile match state from bootstrap, push, fallback polling and action results.

All sources write one last-writer-wins register. The server is the single
source of truth and always sends whole snapshots, so there is no merge step:
the latest completed write replaces the previous snapshot.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from map_veto.errors import TransportError, VetoError
from map_veto.models.match import MatchSnapshot
from map_veto.routing import HOME_ROUTE, Navigator
from map_veto.services.match_client import MatchApiClient
from map_veto.services.match_socket import PushChannel

logger = logging.getLogger(__name__)

BOOTSTRAP_FAILED_MESSAGE = "Failed to load match. Redirecting..."


class UpdateSource(str, Enum):
    BOOTSTRAP = "bootstrap"
    PUSH = "push"
    POLL = "poll"
    ACTION = "action"


SnapshotListener = Callable[[MatchSnapshot, UpdateSource], None]


class SnapshotRegister:
    """Single-slot holder for the current snapshot.

    Replacing with an equal snapshot is a no-op, so the same logical state
    arriving from several sources leaves observable state unchanged.
    """

    def __init__(self):
        self._snapshot: Optional[MatchSnapshot] = None
        self._listeners: list[SnapshotListener] = []
        self.version = 0

    @property
    def snapshot(self) -> Optional[MatchSnapshot]:
        return self._snapshot

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def replace(self, snapshot: MatchSnapshot, source: UpdateSource) -> bool:
        if snapshot == self._snapshot:
            return False
        self._snapshot = snapshot
        self.version += 1
        for listener in list(self._listeners):
            # Listener errors are logged; delivery continues
            try:
                listener(snapshot, source)
            except Exception as e:
                logger.error(
                    f"Snapshot listener failed on {source.value} update: {type(e).__name__}: {e}",
                    exc_info=True,
                )
        return True


class UpdateReconciler:
    """Keeps the register current for one active match view.

    Each ``start`` begins a new generation; results belonging to an older
    generation, or arriving after ``close``, are discarded.
    """

    def __init__(
        self,
        api: MatchApiClient,
        channel: PushChannel,
        navigator: Navigator,
        register: Optional[SnapshotRegister] = None,
        *,
        poll_interval: float = 2.0,
        reconnect_delay: float = 3.0,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.api = api
        self.channel = channel
        self.navigator = navigator
        self.register = register or SnapshotRegister()
        self.poll_interval = poll_interval
        self.reconnect_delay = reconnect_delay
        self.on_error = on_error

        self.match_id: Optional[str] = None
        self.active = False
        self._generation = 0
        self._push_task: Optional[asyncio.Task] = None
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> Optional[MatchSnapshot]:
        return self.register.snapshot

    @property
    def generation(self) -> int:
        return self._generation

    def accepts(self, generation: int) -> bool:
        """Whether results from ``generation`` may still be applied."""
        return self.active and generation == self._generation

    def _report(self, message: str) -> None:
        if self.on_error:
            self.on_error(message)

    def apply(
        self,
        snapshot: MatchSnapshot,
        source: UpdateSource,
        generation: Optional[int] = None,
    ) -> bool:
        """Replace the current snapshot unless the session has moved on.

        Returns:
            True if the register changed.
        """
        if generation is None:
            generation = self._generation
        if not self.accepts(generation):
            logger.debug(f"Dropping late {source.value} snapshot for match {self.match_id}")
            return False
        changed = self.register.replace(snapshot, source)
        if changed:
            logger.debug(
                f"Snapshot v{self.register.version} from {source.value}: "
                f"{snapshot.phase_label}, turn {snapshot.current_turn_team}"
            )
        return changed

    async def start(self, match_id: str) -> bool:
        """Bootstrap state for a match and open its push channel.

        On bootstrap failure the error is reported, the navigator returns to
        the home route and the reconciler is closed.

        Returns:
            True if the initial snapshot was loaded.
        """
        if self.active:
            await self.close()

        self._generation += 1
        generation = self._generation
        self.active = True
        self.match_id = match_id

        try:
            snapshot = await self.api.get_state(match_id)
        except VetoError as e:
            if not self.accepts(generation):
                return False
            logger.error(f"Initial load of match {match_id} failed: {e.message}")
            self._report(BOOTSTRAP_FAILED_MESSAGE)
            self.navigator.navigate(HOME_ROUTE)
            await self.close()
            return False

        if not self.accepts(generation):
            return False
        self.apply(snapshot, UpdateSource.BOOTSTRAP, generation)

        try:
            await self.channel.connect(match_id)
        except TransportError as e:
            logger.warning(f"Push channel unavailable for match {match_id}, polling instead: {e.message}")
        if not self.accepts(generation):
            await self.channel.disconnect()
            return False

        self._push_task = asyncio.create_task(self._run_push(generation))
        self._poll_task = asyncio.create_task(self._run_poll_fallback(generation))
        return True

    async def refresh(self, generation: Optional[int] = None) -> bool:
        """Fetch state once and apply it as a poll result."""
        if generation is None:
            generation = self._generation
        if not self.accepts(generation) or self.match_id is None:
            return False
        try:
            snapshot = await self.api.get_state(self.match_id)
        except VetoError as e:
            if self.accepts(generation):
                self._report(e.message)
            return False
        return self.apply(snapshot, UpdateSource.POLL, generation)

    async def _run_push(self, generation: int) -> None:
        while self.accepts(generation):
            if not self.channel.connected:
                try:
                    await self.channel.connect(self.match_id)
                except TransportError as e:
                    logger.debug(f"Reconnect failed: {e.message}")
                    await asyncio.sleep(self.reconnect_delay)
                    continue

            try:
                async for snapshot in self.channel.updates():
                    self.apply(snapshot, UpdateSource.PUSH, generation)
            except TransportError as e:
                if self.accepts(generation):
                    logger.warning(f"Push channel for match {self.match_id} failed: {e.message}")
                    self._report(e.message)

            if not self.accepts(generation):
                break
            logger.info(f"Push channel for match {self.match_id} ended, reconnecting in {self.reconnect_delay}s")
            await asyncio.sleep(self.reconnect_delay)

    async def _run_poll_fallback(self, generation: int) -> None:
        while self.accepts(generation):
            await asyncio.sleep(self.poll_interval)
            if self.channel.connected:
                continue
            await self.refresh(generation)

    async def close(self) -> None:
        """Tear down: stop accepting results, cancel tasks, release the channel."""
        self.active = False
        tasks = [t for t in (self._push_task, self._poll_task) if t is not None]
        self._push_task = None
        self._poll_task = None
        current = asyncio.current_task()
        for task in tasks:
            if task is not current:
                task.cancel()
        try:
            await self.channel.disconnect()
        finally:
            pending = [t for t in tasks if t is not current]
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        if self.match_id:
            logger.info(f"Session for match {self.match_id} closed")
