"""
Comparator primitives for the diff-action engine.

Equality helpers for scalars, localized strings and references, plus the
two collection matching strategies (set-like and keyed list) the differs
are built on. Nothing here mutates its inputs.
"""

from collections import deque
from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional


def is_empty(value: Any) -> bool:
    """Check if a value counts as absent (None, empty string or empty collection)."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value) == 0
    return False


def scalar_equals(a: Any, b: Any) -> bool:
    """
    Strict structural equality.

    Mappings are compared key by key and sequences element by element in
    order. Booleans never equal numbers; ints and floats compare numerically.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b

    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if set(a.keys()) != set(b.keys()):
            return False
        return all(scalar_equals(a[k], b[k]) for k in a)

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(scalar_equals(x, y) for x, y in zip(a, b))

    if type(a) is not type(b):
        return False

    return a == b


def normalize_localized(value: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop locales whose text is None or empty; absent becomes {}."""
    if not value:
        return {}
    return {
        locale: text
        for locale, text in value.items()
        if text is not None and text != ""
    }


def localized_equals(
    a: Optional[Mapping[str, Any]],
    b: Optional[Mapping[str, Any]],
) -> bool:
    """
    Compare two localized strings.

    Equal iff both carry the same locales with equal text. A locale whose
    text is empty counts as missing.
    """
    return scalar_equals(normalize_localized(a), normalize_localized(b))


def reference_id(ref: Any) -> Optional[Any]:
    """Return the identifier of a reference, None if absent."""
    if isinstance(ref, Mapping):
        return ref.get("id")
    return None


def reference_equals(a: Any, b: Any) -> bool:
    """References are equal when their identifiers are."""
    return reference_id(a) == reference_id(b)


def reference_of(ref: Mapping[str, Any]) -> dict[str, Any]:
    """Strip denormalized data, keeping only typeId and id."""
    return {k: ref[k] for k in ("typeId", "id") if k in ref}


def _is_reference(value: Any) -> bool:
    return isinstance(value, Mapping) and "typeId" in value and "id" in value


def _collapse_references(value: Any) -> Any:
    if _is_reference(value):
        return {"typeId": value["typeId"], "id": value["id"]}
    if isinstance(value, Mapping):
        return {k: _collapse_references(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_collapse_references(v) for v in value]
    return value


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality where nested references compare by identity only."""
    return scalar_equals(_collapse_references(a), _collapse_references(b))


@dataclass(frozen=True)
class SetDiff:
    """Result of a set-like comparison of identifiers."""
    to_add: list[Any] = field(default_factory=list)
    to_remove: list[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def _unique(ids: Iterable[Any]) -> list[Any]:
    seen = set()
    result = []
    for item in ids:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def set_diff(target_ids: Iterable[Any], current_ids: Iterable[Any]) -> SetDiff:
    """
    Compute additions and removals between two identifier lists.

    Args:
        target_ids: Identifiers in the desired state
        current_ids: Identifiers in the current state

    Returns:
        SetDiff where ``to_remove`` keeps the order of ``current_ids`` and
        ``to_add`` keeps the order of ``target_ids``. Duplicates collapse
        to their first occurrence.
    """
    target = _unique(target_ids)
    current = _unique(current_ids)
    target_set = set(target)
    current_set = set(current)

    return SetDiff(
        to_add=[i for i in target if i not in current_set],
        to_remove=[i for i in current if i not in target_set],
    )


@dataclass(frozen=True)
class KeyedListDiff:
    """
    Result of matching two lists by a natural key.

    Attributes:
        added: Target items with no current counterpart (target order)
        removed: Current items with no target counterpart (current order)
        matched: (target_item, current_item) pairs (target order)
        pairs: Every target item with its current counterpart or None
            (target order)
    """
    added: list[Any] = field(default_factory=list)
    removed: list[Any] = field(default_factory=list)
    matched: list[tuple[Any, Any]] = field(default_factory=list)
    pairs: list[tuple[Any, Optional[Any]]] = field(default_factory=list)


def unique_by_key(
    items: Optional[Sequence[Any]],
    key_fn: Callable[[Any], Hashable],
) -> list[Any]:
    """Return items with later duplicates of a key dropped, order kept."""
    return list(_index_by_key(items or [], key_fn).values())


def _index_by_key(
    items: Sequence[Any],
    key_fn: Callable[[Any], Hashable],
) -> dict[Hashable, Any]:
    index: dict[Hashable, Any] = {}
    for item in items:
        # First occurrence of a key wins
        index.setdefault(key_fn(item), item)
    return index


def keyed_list_diff(
    target: Optional[Sequence[Any]],
    current: Optional[Sequence[Any]],
    key_fn: Callable[[Any], Optional[Hashable]],
) -> KeyedListDiff:
    """
    Partition two lists into added, removed and matched elements.

    Elements sharing a key are paired by order of occurrence: the n-th
    target element with a key matches the n-th current element with that
    key, and any surplus is added or removed. An element whose key is None
    never matches anything.

    Args:
        target: Desired elements (None treated as empty)
        current: Current elements (None treated as empty)
        key_fn: Natural key of an element, None when it has none

    Returns:
        KeyedListDiff covering every element of both lists
    """
    current = list(current or [])

    waiting: dict[Hashable, deque] = {}
    for index, item in enumerate(current):
        key = key_fn(item)
        if key is not None:
            waiting.setdefault(key, deque()).append(index)

    result = KeyedListDiff()
    matched_indexes = set()

    for item in target or []:
        key = key_fn(item)
        candidates = waiting.get(key) if key is not None else None
        if candidates:
            index = candidates.popleft()
            matched_indexes.add(index)
            counterpart = current[index]
            result.matched.append((item, counterpart))
        else:
            counterpart = None
            result.added.append(item)
        result.pairs.append((item, counterpart))

    result.removed.extend(
        item for index, item in enumerate(current) if index not in matched_indexes
    )
    return result
