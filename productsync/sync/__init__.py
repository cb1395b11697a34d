"""Diff-action sync engine module."""

from .actions import Action, ActionGroup, ActionKind, InvalidActionError
from .products import ProductSync, build_actions
from .registry import ACTION_GROUPS, DIFFERS
from .engine import SyncEngine, SyncStats, SyncStatus

__all__ = [
    "ACTION_GROUPS",
    "DIFFERS",
    "Action",
    "ActionGroup",
    "ActionKind",
    "InvalidActionError",
    "ProductSync",
    "build_actions",
    "SyncEngine",
    "SyncStats",
    "SyncStatus",
]
