"""
Product synchronization orchestrator.

Runs every registered differ in group order and concatenates their
results into the action list of one update request. The computation is
pure: no I/O, no shared state, safe to call from several threads.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from .actions import Action, ActionGroup, actions_to_payload
from .registry import ACTION_GROUPS, DIFFERS

logger = logging.getLogger(__name__)


class ProductSync:
    """
    Computes update actions for a product.

    Usage:
        sync = ProductSync()
        actions = sync.build_actions(target, current)

        # Skip whole groups, e.g. when prices are managed elsewhere
        sync = ProductSync(ignored_groups=["prices"])
    """

    def __init__(self, ignored_groups: Iterable[str] = ()):
        """
        Initialize the orchestrator.

        Args:
            ignored_groups: Group names whose differs are not run

        Raises:
            ValueError: If a group name is unknown
        """
        ignored = frozenset(ignored_groups)
        unknown = ignored - set(ACTION_GROUPS)
        if unknown:
            raise ValueError(f"Unknown action groups: {sorted(unknown)}")
        self.ignored_groups = ignored

    def __repr__(self) -> str:
        return f"ProductSync(ignored_groups={sorted(self.ignored_groups)})"

    @property
    def active_groups(self) -> tuple[str, ...]:
        """Groups that will be diffed, in emission order."""
        return tuple(g for g in ACTION_GROUPS if g not in self.ignored_groups)

    def build_actions(
        self,
        target: Optional[Mapping[str, Any]],
        current: Optional[Mapping[str, Any]],
    ) -> list[Action]:
        """
        Compute the actions transforming ``current`` into ``target``.

        Args:
            target: Desired representation (None treated as empty)
            current: Current remote representation (None treated as empty)

        Returns:
            Actions ordered by group, then by each differ's own order.
            Empty when both representations agree on every known field.
        """
        target = target or {}
        current = current or {}

        actions: list[Action] = []
        for entry in DIFFERS:
            if entry.name in self.ignored_groups:
                continue
            group_actions = entry.differ(target, current)
            if group_actions:
                logger.debug(f"{entry.name}: {len(group_actions)} action(s)")
            actions.extend(group_actions)

        return actions

    def build_update(
        self,
        target: Optional[Mapping[str, Any]],
        current: Optional[Mapping[str, Any]],
    ) -> Optional[dict[str, Any]]:
        """
        Build the update request body, or None when nothing changed.

        The expected version is taken from the current representation.
        """
        actions = self.build_actions(target, current)
        if not actions:
            return None
        return actions_to_payload(actions, version=(current or {}).get("version"))


_default_sync = ProductSync()


def build_actions(
    target: Optional[Mapping[str, Any]],
    current: Optional[Mapping[str, Any]],
) -> list[Action]:
    """Compute update actions with every action group enabled."""
    return _default_sync.build_actions(target, current)


def actions_by_group(actions: Iterable[Action]) -> dict[ActionGroup, list[Action]]:
    """Bucket actions by the group that emitted them, in emission order."""
    buckets: dict[ActionGroup, list[Action]] = {}
    for action in actions:
        buckets.setdefault(action.group, []).append(action)
    return buckets
