"""Client services: identity, reconciliation, gating and dispatch."""

from map_veto.services.action_dispatcher import ActionDispatcher
from map_veto.services.identity_resolver import IdentityResolver
from map_veto.services.lobby import Lobby, join_route
from map_veto.services.match_client import MatchApiClient
from map_veto.services.match_socket import MatchSocket, PushChannel
from map_veto.services.turn_gate import TurnGate, action_kind_for_phase
from map_veto.services.update_reconciler import SnapshotRegister, UpdateReconciler, UpdateSource
from map_veto.services.veto_session import VetoSession

__all__ = [
    "ActionDispatcher",
    "IdentityResolver",
    "Lobby",
    "join_route",
    "MatchApiClient",
    "MatchSocket",
    "PushChannel",
    "TurnGate",
    "action_kind_for_phase",
    "SnapshotRegister",
    "UpdateReconciler",
    "UpdateSource",
    "VetoSession",
]
