"""
Unit tests for the action model.
"""

import pytest

from productsync.sync.actions import (
    Action,
    ActionGroup,
    ActionKind,
    InvalidActionError,
    actions_to_payload,
)
from productsync.sync.registry import ACTION_GROUPS


class TestActionKind:
    """Tests for the closed action kind enumeration."""

    def test_lookup_by_wire_name(self):
        assert ActionKind.from_name("addToCategory") is ActionKind.ADD_TO_CATEGORY

    def test_unknown_name_rejected(self):
        with pytest.raises(InvalidActionError, match="Unknown action kind"):
            ActionKind.from_name("changeColour")

    def test_every_kind_belongs_to_a_registered_group(self):
        for kind in ActionKind:
            assert kind.group.value in ACTION_GROUPS

    def test_required_fields_are_allowed(self):
        for kind in ActionKind:
            assert kind.required_fields <= kind.allowed_fields


class TestAction:
    """Tests for Action construction and serialization."""

    def test_to_dict(self):
        action = Action.of(ActionKind.CHANGE_NAME, name={"en": "Car"})
        assert action.to_dict() == {"action": "changeName", "name": {"en": "Car"}}

    def test_kind_from_string(self):
        action = Action("changeName", {"name": {"en": "Car"}})
        assert action.kind is ActionKind.CHANGE_NAME
        assert action.name == "changeName"

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidActionError):
            Action("renameProduct", {"name": {"en": "Car"}})

    def test_invalid_action_is_value_error(self):
        with pytest.raises(ValueError):
            Action("renameProduct")

    def test_missing_required_field(self):
        with pytest.raises(InvalidActionError, match="requires fields"):
            Action.of(ActionKind.REMOVE_PRICE, variantId=1)

    def test_unknown_field(self):
        with pytest.raises(InvalidActionError, match="does not accept fields"):
            Action.of(ActionKind.CHANGE_NAME, name={"en": "Car"}, colour="red")

    def test_optional_field_may_be_omitted(self):
        action = Action.of(ActionKind.SET_DESCRIPTION)
        assert action.to_dict() == {"action": "setDescription"}

    def test_default_group_is_kind_group(self):
        action = Action.of(ActionKind.ADD_TO_CATEGORY, category={"id": "c1"})
        assert action.group is ActionGroup.CATEGORIES

    def test_variant_scoped_actions_can_move_to_variants_group(self):
        action = Action.of(ActionKind.SET_ATTRIBUTE, variantId=2, name="color", value="red")
        scoped = action.in_group(ActionGroup.VARIANTS)

        assert scoped.group is ActionGroup.VARIANTS
        assert scoped.kind.group is ActionGroup.ATTRIBUTES
        assert scoped.to_dict() == action.to_dict()

    def test_other_actions_cannot_change_group(self):
        action = Action.of(ActionKind.CHANGE_NAME, name={"en": "Car"})
        with pytest.raises(InvalidActionError, match="cannot be emitted"):
            action.in_group(ActionGroup.VARIANTS)

    def test_payload_is_read_only(self):
        action = Action.of(ActionKind.CHANGE_NAME, name={"en": "Car"})
        with pytest.raises(TypeError):
            action.payload["name"] = {"en": "Auto"}

    def test_payload_is_copied(self):
        name = {"en": "Car"}
        action = Action.of(ActionKind.CHANGE_NAME, name=name)
        name["en"] = "Auto"
        assert action.payload["name"] == {"en": "Car"}

    def test_from_dict(self):
        data = {"action": "removeFromCategory", "category": {"id": "c1"}}
        action = Action.from_dict(data)
        assert action == Action.of(ActionKind.REMOVE_FROM_CATEGORY, category={"id": "c1"})
        assert action.to_dict() == data

    def test_from_dict_requires_action(self):
        with pytest.raises(InvalidActionError, match="Missing 'action'"):
            Action.from_dict({"category": {"id": "c1"}})

    def test_equality(self):
        a = Action.of(ActionKind.SET_KEY, key="k1")
        b = Action.of(ActionKind.SET_KEY, key="k1")
        assert a == b
        assert a != Action.of(ActionKind.SET_KEY, key="k2")


class TestActionsToPayload:
    """Tests for update request bodies."""

    def test_with_version(self):
        actions = [Action.of(ActionKind.SET_KEY, key="k1")]
        assert actions_to_payload(actions, version=4) == {
            "version": 4,
            "actions": [{"action": "setKey", "key": "k1"}],
        }

    def test_without_version(self):
        assert actions_to_payload([]) == {"actions": []}
