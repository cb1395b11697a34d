"""Compute and apply minimal update actions for catalog products."""

from .sync import ACTION_GROUPS, Action, ActionKind, ProductSync, build_actions

__version__ = "0.1.0"

__all__ = [
    "ACTION_GROUPS",
    "Action",
    "ActionKind",
    "ProductSync",
    "build_actions",
]
