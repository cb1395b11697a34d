"""
Update action model.

Actions are immutable tagged values. The set of kinds is closed: every
kind knows its wire name, the group it belongs to and the payload fields
it accepts, so a malformed action fails at construction rather than at
the API boundary.
"""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional


class InvalidActionError(ValueError):
    """Raised when an action is built with an unknown kind or a bad payload."""
    pass


class ActionGroup(str, Enum):
    """Action groups, declared in their fixed emission order."""

    BASE = "base"
    REFERENCES = "references"
    PRICES = "prices"
    ATTRIBUTES = "attributes"
    IMAGES = "images"
    VARIANTS = "variants"
    CATEGORIES = "categories"


# Groups whose actions may also be emitted inside the variants block
VARIANT_SCOPED_GROUPS = frozenset({
    ActionGroup.PRICES,
    ActionGroup.ATTRIBUTES,
    ActionGroup.IMAGES,
})


class ActionKind(Enum):
    """
    Closed enumeration of update action kinds.

    Each member's value is the action name used on the wire.
    """

    # Base attributes
    CHANGE_NAME = ("changeName", ActionGroup.BASE, ("name",), ())
    CHANGE_SLUG = ("changeSlug", ActionGroup.BASE, ("slug",), ())
    SET_DESCRIPTION = ("setDescription", ActionGroup.BASE, (), ("description",))
    SET_META_TITLE = ("setMetaTitle", ActionGroup.BASE, (), ("metaTitle",))
    SET_META_DESCRIPTION = (
        "setMetaDescription", ActionGroup.BASE, (), ("metaDescription",)
    )
    SET_META_KEYWORDS = ("setMetaKeywords", ActionGroup.BASE, (), ("metaKeywords",))
    SET_SEARCH_KEYWORDS = (
        "setSearchKeywords", ActionGroup.BASE, ("searchKeywords",), ()
    )
    SET_KEY = ("setKey", ActionGroup.BASE, (), ("key",))

    # References
    SET_TAX_CATEGORY = ("setTaxCategory", ActionGroup.REFERENCES, (), ("taxCategory",))
    TRANSITION_STATE = ("transitionState", ActionGroup.REFERENCES, ("state",), ())

    # Prices
    ADD_PRICE = ("addPrice", ActionGroup.PRICES, ("variantId", "price"), ())
    CHANGE_PRICE = (
        "changePrice", ActionGroup.PRICES, ("variantId", "priceId", "price"), ()
    )
    REMOVE_PRICE = ("removePrice", ActionGroup.PRICES, ("variantId", "priceId"), ())

    # Attributes
    SET_ATTRIBUTE = (
        "setAttribute", ActionGroup.ATTRIBUTES, ("variantId", "name", "value"), ("locale",)
    )
    REMOVE_ATTRIBUTE = (
        "removeAttribute", ActionGroup.ATTRIBUTES, ("variantId", "name"), ("locale",)
    )

    # Images
    ADD_EXTERNAL_IMAGE = (
        "addExternalImage", ActionGroup.IMAGES, ("variantId", "image"), ()
    )
    REMOVE_IMAGE = ("removeImage", ActionGroup.IMAGES, ("variantId", "imageUrl"), ())
    MOVE_IMAGE_TO_POSITION = (
        "moveImageToPosition",
        ActionGroup.IMAGES,
        ("variantId", "imageUrl", "position"),
        (),
    )
    SET_IMAGE_LABEL = (
        "setImageLabel", ActionGroup.IMAGES, ("variantId", "imageUrl"), ("label",)
    )

    # Variants
    ADD_VARIANT = (
        "addVariant",
        ActionGroup.VARIANTS,
        (),
        ("sku", "key", "prices", "attributes", "images"),
    )
    REMOVE_VARIANT = ("removeVariant", ActionGroup.VARIANTS, ("id",), ())
    SET_SKU = ("setSku", ActionGroup.VARIANTS, ("variantId",), ("sku",))

    # Categories
    ADD_TO_CATEGORY = ("addToCategory", ActionGroup.CATEGORIES, ("category",), ())
    REMOVE_FROM_CATEGORY = (
        "removeFromCategory", ActionGroup.CATEGORIES, ("category",), ()
    )

    def __new__(cls, wire_name, group, required, optional):
        obj = object.__new__(cls)
        obj._value_ = wire_name
        obj.group = group
        obj.required_fields = frozenset(required)
        obj.allowed_fields = frozenset(required) | frozenset(optional)
        return obj

    @classmethod
    def from_name(cls, name: str) -> "ActionKind":
        """Look up a kind by its wire name."""
        try:
            return cls(name)
        except ValueError:
            raise InvalidActionError(f"Unknown action kind: {name!r}") from None


@dataclass(frozen=True)
class Action:
    """
    One atomic partial update.

    Attributes:
        kind: Action kind (a wire name string is accepted and resolved)
        payload: Fields specific to the kind, typically target values
        group: Group that emitted the action; defaults to the kind's group.
            Price, attribute and image actions scoped to a non-master
            variant are emitted by the variants group.
    """
    kind: ActionKind
    payload: Mapping[str, Any] = field(default_factory=dict)
    group: Optional[ActionGroup] = None

    def __post_init__(self):
        kind = self.kind
        if not isinstance(kind, ActionKind):
            kind = ActionKind.from_name(kind)
            object.__setattr__(self, "kind", kind)

        payload = dict(self.payload)
        unknown = set(payload) - kind.allowed_fields
        if unknown:
            raise InvalidActionError(
                f"{kind.value} does not accept fields: {sorted(unknown)}"
            )
        missing = kind.required_fields - set(payload)
        if missing:
            raise InvalidActionError(
                f"{kind.value} requires fields: {sorted(missing)}"
            )
        object.__setattr__(self, "payload", MappingProxyType(copy.deepcopy(payload)))

        group = self.group
        if group is None:
            group = kind.group
        else:
            try:
                group = ActionGroup(group)
            except ValueError:
                raise InvalidActionError(f"Unknown action group: {group!r}") from None

        if group != kind.group and not (
            group == ActionGroup.VARIANTS and kind.group in VARIANT_SCOPED_GROUPS
        ):
            raise InvalidActionError(
                f"{kind.value} cannot be emitted by the {group.value} group"
            )
        object.__setattr__(self, "group", group)

    @classmethod
    def of(cls, kind: ActionKind, **payload: Any) -> "Action":
        """Build an action from keyword payload fields."""
        return cls(kind=kind, payload=payload)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Action":
        """Create an Action from its wire form ``{"action": ..., **payload}``."""
        if "action" not in data:
            raise InvalidActionError("Missing 'action' field")
        payload = {k: v for k, v in data.items() if k != "action"}
        return cls(kind=ActionKind.from_name(data["action"]), payload=payload)

    @property
    def name(self) -> str:
        """Wire name of the action kind."""
        return self.kind.value

    def in_group(self, group: ActionGroup) -> "Action":
        """Return a copy of this action attributed to another group."""
        return replace(self, group=group)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the update request wire form."""
        result = {"action": self.kind.value}
        result.update(copy.deepcopy(dict(self.payload)))
        return result

    def __repr__(self) -> str:
        return f"Action({self.kind.value}, {dict(self.payload)!r})"


def actions_to_payload(actions: list[Action], version: Optional[int] = None) -> dict[str, Any]:
    """
    Build the body of an update request.

    Args:
        actions: Actions in the order the server must apply them
        version: Expected resource version (optimistic concurrency)

    Returns:
        Dict with ``version`` (when given) and serialized ``actions``
    """
    body: dict[str, Any] = {}
    if version is not None:
        body["version"] = version
    body["actions"] = [action.to_dict() for action in actions]
    return body
