"""
Per-group differs.

Each public differ is a pure function ``(target, current) -> list[Action]``
computing the actions of one action group. Missing optional fields are
read as empty values of the appropriate kind; nothing here raises for
absent data or mutates its inputs.

Price, attribute and image differs exist in two forms: the group differs
operate on the master variant, and the ``variant_*`` forms take an
explicit variant id so the variants differ can reuse them for every
matched variant.
"""

from collections.abc import Callable, Hashable, Mapping
from typing import Any, Optional

from .actions import Action, ActionGroup, ActionKind
from .comparators import (
    is_empty,
    keyed_list_diff,
    localized_equals,
    normalize_localized,
    reference_equals,
    reference_id,
    reference_of,
    scalar_equals,
    set_diff,
    unique_by_key,
    values_equal,
)

Representation = Mapping[str, Any]
Differ = Callable[[Representation, Representation], list[Action]]

# Id the platform assigns to the master variant
MASTER_VARIANT_ID = 1

# Fields a master variant carries when a representation is flat
VARIANT_FIELDS = ("sku", "prices", "attributes", "images")

# Price fields that never take part in comparison
PRICE_IGNORED_FIELDS = ("id", "discounted")


def _blank_to_none(value: Any) -> Any:
    return None if is_empty(value) else value


# ============================================================
# Variant helpers
# ============================================================

def master_variant(representation: Representation) -> Representation:
    """
    Return the master variant of a product representation.

    Falls back to the representation itself (flat single-variant shape)
    when no ``masterVariant`` mapping is present.
    """
    master = representation.get("masterVariant")
    if isinstance(master, Mapping):
        return master
    return {k: representation[k] for k in VARIANT_FIELDS if k in representation}


def _scoped_variant_id(
    target_variant: Representation,
    current_variant: Representation,
    default: Optional[Any] = None,
) -> Any:
    """Prefer the server-side (current) variant id."""
    if current_variant.get("id") is not None:
        return current_variant["id"]
    if target_variant.get("id") is not None:
        return target_variant["id"]
    return default


def _master_variant_id(target: Representation, current: Representation) -> Any:
    return _scoped_variant_id(
        master_variant(target), master_variant(current), MASTER_VARIANT_ID
    )


# ============================================================
# base
# ============================================================

# (field, action kind, localized, required)
BASE_FIELDS = (
    ("name", ActionKind.CHANGE_NAME, True, True),
    ("slug", ActionKind.CHANGE_SLUG, True, True),
    ("description", ActionKind.SET_DESCRIPTION, True, False),
    ("metaTitle", ActionKind.SET_META_TITLE, True, False),
    ("metaDescription", ActionKind.SET_META_DESCRIPTION, True, False),
    ("metaKeywords", ActionKind.SET_META_KEYWORDS, True, False),
    ("searchKeywords", ActionKind.SET_SEARCH_KEYWORDS, False, True),
    ("key", ActionKind.SET_KEY, False, False),
)


def base_actions(target: Representation, current: Representation) -> list[Action]:
    """
    Diff simple descriptive fields.

    Every changed field emits one action carrying the target value.
    Required fields carry an empty value when the target is absent;
    optional ``set*`` fields omit their payload to clear the value.
    """
    actions = []

    for field_name, kind, localized, required in BASE_FIELDS:
        target_value = target.get(field_name)
        current_value = current.get(field_name)

        if localized:
            if localized_equals(target_value, current_value):
                continue
            empty = not normalize_localized(target_value)
        else:
            if required:
                # searchKeywords: absent and {} are the same
                target_value = target_value or {}
                if scalar_equals(target_value, current_value or {}):
                    continue
            elif scalar_equals(_blank_to_none(target_value), _blank_to_none(current_value)):
                continue
            empty = is_empty(target_value)

        if required:
            actions.append(Action.of(kind, **{field_name: target_value or {}}))
        elif empty:
            actions.append(Action.of(kind))
        else:
            actions.append(Action.of(kind, **{field_name: target_value}))

    return actions


# ============================================================
# references
# ============================================================

def reference_actions(target: Representation, current: Representation) -> list[Action]:
    """
    Diff single-valued references.

    ``taxCategory`` is set or cleared. ``state`` is only transitioned when
    the target carries one, since a state cannot be removed.
    """
    actions = []

    target_tax = target.get("taxCategory")
    current_tax = current.get("taxCategory")
    if not reference_equals(target_tax, current_tax):
        if reference_id(target_tax) is not None:
            actions.append(
                Action.of(ActionKind.SET_TAX_CATEGORY, taxCategory=reference_of(target_tax))
            )
        else:
            actions.append(Action.of(ActionKind.SET_TAX_CATEGORY))

    target_state = target.get("state")
    if reference_id(target_state) is not None and not reference_equals(
        target_state, current.get("state")
    ):
        actions.append(Action.of(ActionKind.TRANSITION_STATE, state=reference_of(target_state)))

    return actions


# ============================================================
# prices
# ============================================================

def _price_scope_key(price: Mapping[str, Any]) -> Hashable:
    value = price.get("value") or {}
    return (
        "scope",
        value.get("currencyCode"),
        price.get("country"),
        reference_id(price.get("customerGroup")),
        reference_id(price.get("channel")),
        price.get("validFrom"),
        price.get("validUntil"),
    )


def _price_id_key(price: Mapping[str, Any]) -> Hashable:
    return ("id", price.get("id"))


def price_key_fn(target_prices: list[Mapping[str, Any]]) -> Callable[[Any], Hashable]:
    """
    Choose how prices of one variant are matched.

    Prices match by id when every target price has one, otherwise every
    price of the list is matched by its scope: currency, country, customer
    group, channel and validity period. Prices sharing a scope pair up in
    list order.
    """
    if target_prices and all(p.get("id") is not None for p in target_prices):
        return _price_id_key
    return _price_scope_key


def _comparable_price(price: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in price.items() if k not in PRICE_IGNORED_FIELDS}


def variant_price_actions(
    target_variant: Representation,
    current_variant: Representation,
    variant_id: Any,
) -> list[Action]:
    """Diff the prices of one variant: removals, then additions and changes."""
    target_prices = target_variant.get("prices") or []
    current_prices = current_variant.get("prices") or []
    diff = keyed_list_diff(target_prices, current_prices, price_key_fn(target_prices))

    actions = [
        Action.of(ActionKind.REMOVE_PRICE, variantId=variant_id, priceId=price.get("id"))
        for price in diff.removed
    ]

    for target_price, current_price in diff.pairs:
        if current_price is None:
            actions.append(
                Action.of(
                    ActionKind.ADD_PRICE,
                    variantId=variant_id,
                    price=_comparable_price(target_price),
                )
            )
        elif not values_equal(_comparable_price(target_price), _comparable_price(current_price)):
            price_id = current_price.get("id")
            if price_id is None:
                price_id = target_price.get("id")
            actions.append(
                Action.of(
                    ActionKind.CHANGE_PRICE,
                    variantId=variant_id,
                    priceId=price_id,
                    price=_comparable_price(target_price),
                )
            )

    return actions


def price_actions(target: Representation, current: Representation) -> list[Action]:
    """Diff the master variant's prices."""
    return variant_price_actions(
        master_variant(target),
        master_variant(current),
        _master_variant_id(target, current),
    )


# ============================================================
# attributes
# ============================================================

def _attribute_key(attribute: Mapping[str, Any]) -> Hashable:
    return (attribute.get("name"), attribute.get("locale"))


def _attribute_payload(attribute: Mapping[str, Any], variant_id: Any) -> dict[str, Any]:
    payload = {"variantId": variant_id, "name": attribute.get("name")}
    if attribute.get("locale") is not None:
        payload["locale"] = attribute["locale"]
    return payload


def variant_attribute_actions(
    target_variant: Representation,
    current_variant: Representation,
    variant_id: Any,
) -> list[Action]:
    """
    Diff the attributes of one variant.

    An attribute with an empty target value is removed when the current
    value is set; it is never set to an empty value.
    """
    # An attribute holds one value per name and locale
    target_attributes = unique_by_key(target_variant.get("attributes"), _attribute_key)
    current_attributes = unique_by_key(current_variant.get("attributes"), _attribute_key)
    diff = keyed_list_diff(target_attributes, current_attributes, _attribute_key)

    to_remove = {
        _attribute_key(attr) for attr in diff.removed if not is_empty(attr.get("value"))
    }
    to_remove.update(
        _attribute_key(current_attr)
        for target_attr, current_attr in diff.matched
        if is_empty(target_attr.get("value")) and not is_empty(current_attr.get("value"))
    )

    actions = [
        Action.of(ActionKind.REMOVE_ATTRIBUTE, **_attribute_payload(attr, variant_id))
        for attr in current_attributes
        if _attribute_key(attr) in to_remove
    ]

    for target_attr, current_attr in diff.pairs:
        value = target_attr.get("value")
        if is_empty(value):
            continue
        if current_attr is not None and values_equal(value, current_attr.get("value")):
            continue
        actions.append(
            Action.of(
                ActionKind.SET_ATTRIBUTE,
                value=value,
                **_attribute_payload(target_attr, variant_id),
            )
        )

    return actions


def attribute_actions(target: Representation, current: Representation) -> list[Action]:
    """Diff the master variant's attributes."""
    return variant_attribute_actions(
        master_variant(target),
        master_variant(current),
        _master_variant_id(target, current),
    )


# ============================================================
# images
# ============================================================

def _image_key(image: Mapping[str, Any]) -> Hashable:
    return image.get("url")


def _addressable_images(images: Optional[list]) -> list[Mapping[str, Any]]:
    """Images are addressed by url; images without one are skipped."""
    return unique_by_key(
        [image for image in images or [] if image.get("url")], _image_key
    )


def variant_image_actions(
    target_variant: Representation,
    current_variant: Representation,
    variant_id: Any,
) -> list[Action]:
    """
    Diff the ordered image list of one variant.

    Emits removals (current order), additions appended at the end (target
    order), then the moves that bring the resulting list into target order,
    then label changes. Moves are computed against the list as it stands
    after every preceding action has been applied. Images without a url
    cannot be addressed and are left out.
    """
    target_images = _addressable_images(target_variant.get("images"))
    current_images = _addressable_images(current_variant.get("images"))
    diff = keyed_list_diff(target_images, current_images, _image_key)

    actions = [
        Action.of(ActionKind.REMOVE_IMAGE, variantId=variant_id, imageUrl=_image_key(image))
        for image in diff.removed
    ]
    actions.extend(
        Action.of(ActionKind.ADD_EXTERNAL_IMAGE, variantId=variant_id, image=image)
        for image in diff.added
    )

    removed = {_image_key(image) for image in diff.removed}
    layout = [_image_key(image) for image in current_images if _image_key(image) not in removed]
    layout.extend(_image_key(image) for image in diff.added)

    for position, image in enumerate(target_images):
        key = _image_key(image)
        if layout[position] == key:
            continue
        layout.remove(key)
        layout.insert(position, key)
        actions.append(
            Action.of(
                ActionKind.MOVE_IMAGE_TO_POSITION,
                variantId=variant_id,
                imageUrl=key,
                position=position,
            )
        )

    for target_image, current_image in diff.matched:
        label = _blank_to_none(target_image.get("label"))
        if label == _blank_to_none(current_image.get("label")):
            continue
        payload = {"variantId": variant_id, "imageUrl": _image_key(target_image)}
        if label is not None:
            payload["label"] = label
        actions.append(Action.of(ActionKind.SET_IMAGE_LABEL, **payload))

    return actions


def image_actions(target: Representation, current: Representation) -> list[Action]:
    """Diff the master variant's images."""
    return variant_image_actions(
        master_variant(target),
        master_variant(current),
        _master_variant_id(target, current),
    )


# ============================================================
# variants
# ============================================================

# Differs reused for every matched variant, in group order
VARIANT_SCOPED_DIFFERS = (
    variant_price_actions,
    variant_attribute_actions,
    variant_image_actions,
)


def _variant_key(variant: Mapping[str, Any]) -> Optional[Hashable]:
    sku = variant.get("sku")
    if sku:
        return ("sku", sku)
    if variant.get("id") is not None:
        return ("id", variant["id"])
    # Keyless variants never match
    return None


def _sku_action(
    target_variant: Representation,
    current_variant: Representation,
    variant_id: Any,
) -> Optional[Action]:
    sku = _blank_to_none(target_variant.get("sku"))
    if sku == _blank_to_none(current_variant.get("sku")):
        return None
    if sku is None:
        return Action.of(ActionKind.SET_SKU, variantId=variant_id)
    return Action.of(ActionKind.SET_SKU, variantId=variant_id, sku=sku)


def variant_actions(target: Representation, current: Representation) -> list[Action]:
    """
    Diff the variant list.

    The master variant is matched explicitly and only its SKU is compared
    here (its prices, attributes and images have their own groups). Other
    variants are matched by SKU, or by id when the SKU is absent; a target
    variant with neither is always added. Actions
    for a matched variant's prices, attributes and images are emitted in
    this group, scoped to that variant's id.
    """
    actions = []

    target_master = master_variant(target)
    current_master = master_variant(current)
    sku_action = _sku_action(
        target_master,
        current_master,
        _scoped_variant_id(target_master, current_master, MASTER_VARIANT_ID),
    )
    if sku_action is not None:
        actions.append(sku_action)

    diff = keyed_list_diff(target.get("variants"), current.get("variants"), _variant_key)

    # A current variant without an id cannot be addressed for removal
    actions.extend(
        Action.of(ActionKind.REMOVE_VARIANT, id=variant["id"])
        for variant in diff.removed
        if variant.get("id") is not None
    )

    for target_variant, current_variant in diff.pairs:
        if current_variant is None:
            payload = {
                k: v for k, v in target_variant.items()
                if k in ActionKind.ADD_VARIANT.allowed_fields
            }
            actions.append(Action.of(ActionKind.ADD_VARIANT, **payload))
            continue

        variant_id = _scoped_variant_id(target_variant, current_variant)

        for differ in VARIANT_SCOPED_DIFFERS:
            actions.extend(
                action.in_group(ActionGroup.VARIANTS)
                for action in differ(target_variant, current_variant, variant_id)
            )

    return actions


# ============================================================
# categories
# ============================================================

def _references_by_id(references: Optional[list]) -> dict[Any, Mapping[str, Any]]:
    by_id: dict[Any, Mapping[str, Any]] = {}
    for ref in references or []:
        ref_id = reference_id(ref)
        if ref_id is not None:
            by_id.setdefault(ref_id, ref)
    return by_id


def category_actions(target: Representation, current: Representation) -> list[Action]:
    """
    Diff category memberships as a set of category ids.

    Removals come first, in current order, followed by additions in
    target order.
    """
    target_refs = _references_by_id(target.get("categories"))
    current_refs = _references_by_id(current.get("categories"))
    diff = set_diff(target_refs.keys(), current_refs.keys())

    actions = [
        Action.of(ActionKind.REMOVE_FROM_CATEGORY, category=reference_of(current_refs[ref_id]))
        for ref_id in diff.to_remove
    ]
    actions.extend(
        Action.of(ActionKind.ADD_TO_CATEGORY, category=reference_of(target_refs[ref_id]))
        for ref_id in diff.to_add
    )
    return actions
