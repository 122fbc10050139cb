"""Pin SelectionState transitions: immutability, counters, size resolution."""

import pytest
from configurator.catalog import FLAVOR_CATEGORY_ID
from configurator.logic.state import SelectionState


class TestEmptyState:
    def test_empty_state_defaults(self, tee_state):
        assert tee_state.product_id == "tee"
        assert tee_state.selections == {}
        assert tee_state.color_id is None
        assert tee_state.quantity == 1
        assert tee_state.is_empty

    def test_quantity_of_defaults_to_one(self, tee_state):
        assert tee_state.quantity_of("patch") == 1


class TestTransitions:
    def test_with_items_returns_new_state(self, tee_state):
        new_state = tee_state.with_items("extras", ["patch"])
        assert new_state is not tee_state
        assert new_state.items_in("extras") == ("patch",)
        assert tee_state.items_in("extras") == ()

    def test_with_items_empty_drops_category(self, tee_state):
        state = tee_state.with_items("extras", ["patch"]).with_items("extras", [])
        assert "extras" not in state.selections

    def test_removed_item_loses_counter(self, tee_state):
        state = tee_state.with_items("extras", ["patch"]).with_item_quantity("patch", 3)
        assert state.quantity_of("patch") == 3

        state = state.with_items("extras", [])
        assert "patch" not in state.quantities

    def test_kept_item_keeps_counter(self, tee_state):
        state = (
            tee_state.with_items("extras", ["patch"])
            .with_item_quantity("patch", 2)
            .with_items("extras", ["patch", "gift-wrap"])
        )
        assert state.quantity_of("patch") == 2

    def test_clear_item_quantity(self, tee_state):
        state = tee_state.with_item_quantity("patch", 2).with_item_quantity("patch", None)
        assert state.quantities == {}

    @pytest.mark.parametrize("requested,expected", [(3, 3), (1, 1), (0, 1), (-4, 1)])
    def test_overall_quantity_floored_at_one(self, tee_state, requested, expected):
        assert tee_state.with_quantity(requested).quantity == expected

    def test_note_is_stripped(self, tee_state):
        assert tee_state.with_note("  no onions  ").note == "no onions"
        assert tee_state.with_note(None).note == ""

    def test_color_transition(self, tee_state):
        state = tee_state.with_color("black")
        assert state.color_id == "black"
        assert state.with_color(None).color_id is None
        assert not state.is_empty

    def test_flavor_ids(self, pizza_state):
        state = pizza_state.with_items(FLAVOR_CATEGORY_ID, ["margherita", "tuna"])
        assert state.flavor_ids == ("margherita", "tuna")


class TestResolvedSize:
    def test_single_size_resolves(self, tee_entry, tee_state):
        state = tee_state.with_items("sizes", ["m"])
        assert state.resolved_size_id(tee_entry) == "m"

    def test_no_size_resolves_to_none(self, tee_entry, tee_state):
        assert tee_state.resolved_size_id(tee_entry) is None

    def test_two_sizes_resolve_to_none(self, tee_entry, tee_state):
        # Only reachable by a state built outside the validator
        state = tee_state.with_items("sizes", ["s", "m"])
        assert state.chosen_size_ids(tee_entry) == ["s", "m"]
        assert state.resolved_size_id(tee_entry) is None

    def test_add_ons_are_not_sizes(self, tee_entry, tee_state):
        state = tee_state.with_items("extras", ["patch"])
        assert state.chosen_size_ids(tee_entry) == []


class TestSerialization:
    def test_to_dict_from_dict_roundtrip(self, tee_state):
        state = (
            tee_state.with_items("sizes", ["s"])
            .with_items("extras", ["patch"])
            .with_item_quantity("patch", 2)
            .with_color("black")
            .with_note("gift")
            .with_quantity(3)
        )
        d = state.to_dict()
        assert SelectionState.from_dict(d) == state

    def test_selections_serialize_as_lists(self, tee_state):
        d = tee_state.with_items("sizes", ["s"]).to_dict()
        assert d["selections"] == {"sizes": ["s"]}

    def test_from_dict_skips_empty_categories_and_floors_quantity(self):
        state = SelectionState.from_dict({
            "product_id": "tee",
            "selections": {"sizes": [], "extras": ["patch"]},
            "quantity": 0,
        })
        assert state.selections == {"extras": ("patch",)}
        assert state.quantity == 1

    def test_from_dict_floors_counters_and_drops_unselected(self):
        state = SelectionState.from_dict({
            "product_id": "pizza",
            "selections": {"__addons__": ["soda"]},
            "quantities": {"soda": -3, "tuna": 4},
        })
        assert state.quantities == {"soda": 1}


class TestCounterBounds:
    @pytest.mark.parametrize("count", [0, -3])
    def test_counter_below_one_rejected(self, tee_state, count):
        with pytest.raises(ValueError):
            tee_state.with_items("extras", ["patch"]).with_item_quantity("patch", count)

    def test_constructor_rejects_negative_counter(self):
        with pytest.raises(ValueError):
            SelectionState(product_id="pizza", selections={"__addons__": ("soda",)}, quantities={"soda": -3})

    def test_constructor_rejects_zero_quantity(self):
        with pytest.raises(ValueError):
            SelectionState(product_id="tee", quantity=0)


class TestImmutability:
    def test_mappings_are_read_only(self, tee_state):
        state = tee_state.with_items("extras", ["patch"]).with_item_quantity("patch", 2)
        with pytest.raises(TypeError):
            state.selections["sizes"] = ("s",)
        with pytest.raises(TypeError):
            state.quantities["patch"] = 5

    def test_caller_dict_is_copied(self):
        selections = {"extras": ("patch",)}
        state = SelectionState(product_id="tee", selections=selections)
        selections["sizes"] = ("s",)
        assert state.selections == {"extras": ("patch",)}

    def test_equal_states_hash_equal(self, tee_state):
        a = tee_state.with_items("sizes", ["s"]).with_color("black")
        b = tee_state.with_color("black").with_items("sizes", ["s"])
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b, tee_state}) == 2
