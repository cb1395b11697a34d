"""
Action group registry.

Fixed, ordered table binding each action group to its differ. The order
is part of the public contract: consumers may depend on the position of
actions in the emitted list, so entries must not be reordered.
"""

from dataclasses import dataclass

from .actions import ActionGroup
from .differs import (
    Differ,
    attribute_actions,
    base_actions,
    category_actions,
    image_actions,
    price_actions,
    reference_actions,
    variant_actions,
)


@dataclass(frozen=True)
class DifferEntry:
    """A group name bound to the differ that computes its actions."""
    group: ActionGroup
    differ: Differ

    @property
    def name(self) -> str:
        return self.group.value


DIFFERS: tuple[DifferEntry, ...] = (
    DifferEntry(ActionGroup.BASE, base_actions),
    DifferEntry(ActionGroup.REFERENCES, reference_actions),
    DifferEntry(ActionGroup.PRICES, price_actions),
    DifferEntry(ActionGroup.ATTRIBUTES, attribute_actions),
    DifferEntry(ActionGroup.IMAGES, image_actions),
    DifferEntry(ActionGroup.VARIANTS, variant_actions),
    DifferEntry(ActionGroup.CATEGORIES, category_actions),
)

ACTION_GROUPS: tuple[str, ...] = tuple(entry.name for entry in DIFFERS)


def group_position(group: ActionGroup) -> int:
    """Return the position of a group in the emission order."""
    return ACTION_GROUPS.index(ActionGroup(group).value)
