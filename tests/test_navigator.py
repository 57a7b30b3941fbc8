import json
import random

import pytest

from bodymap.core.models import Branch, Leaf, Resolution
from bodymap.core.navigator import DrillDownNavigator, InvalidSelectionError
from bodymap.core.taxonomy_store import InvalidPathError


def _by_id(nav, node_id):
    return next(n for n in nav.current_view if n.id == node_id)


def _assert_consistent(nav):
    assert nav.current_view == nav.store.children_of([b.id for b in nav.history])


def _at_root(nav):
    return nav.history == () and nav.current_view == nav.store.roots and nav.resolved is None


def test_initial_state_is_root(store):
    nav = DrillDownNavigator(store)
    assert _at_root(nav)
    assert not nav.is_resolved
    assert nav.breadcrumb() == ()


def test_index_tip_scenario(store):
    """Hands & Fingers > Right Hand > Fingers (Right) > Index Tip (R) resolves to code 4."""
    calls = []
    nav = DrillDownNavigator(store, on_resolve=lambda c, l: calls.append((c, l)))
    nav.select(_by_id(nav, "hands"))
    nav.select(_by_id(nav, "hand_right"))
    nav.select(_by_id(nav, "fingers_r"))
    assert nav.breadcrumb_text() == "Hands & Fingers › Right Hand › Fingers (Right)"

    result = nav.select(_by_id(nav, "index_r_tip"))
    assert result == Resolution("4", "Index Tip (R)")
    assert nav.resolved == Resolution("4", "Index Tip (R)")
    assert calls == [("4", "Index Tip (R)")]

    nav.back()
    assert nav.resolved == Resolution("4", "Index Tip (R)")
    assert len(nav.history) == 3

    nav.reset()
    assert _at_root(nav)
    assert len(nav.current_view) == 4
    assert all(isinstance(n, Branch) for n in nav.current_view)

    nav.back()
    assert _at_root(nav)
    assert len(nav.current_view) == 4


def test_branch_select_descends(store):
    nav = DrillDownNavigator(store)
    assert nav.select(_by_id(nav, "arms")) is None
    assert nav.path == ["arms"]
    assert [n.id for n in nav.current_view] == ["arm_right", "arm_left"]
    assert nav.current_parent.label == "Arms"


def test_back_replays_history(store):
    nav = DrillDownNavigator(store)
    nav.select_id("torso")
    nav.select_id("front_body")
    nav.back()
    assert nav.path == ["torso"]
    assert [n.id for n in nav.current_view] == ["head", "front_body", "back_body"]
    nav.back()
    assert _at_root(nav)


def test_back_at_root_is_noop(store):
    nav = DrillDownNavigator(store)
    before = nav.state
    nav.back()
    assert nav.state == before


def test_leaf_is_terminal(store):
    """Once resolved, select and back do nothing until reset."""
    calls = []
    nav = DrillDownNavigator(store, on_resolve=lambda c, l: calls.append((c, l)))
    nav.select_id("legs")
    nav.select_id("leg_l")
    nav.select_id("foot_l")
    frozen = nav.state

    nav.back()
    assert nav.select(nav.current_view[0]) is None
    assert nav.select_id("thigh_l") is None
    assert nav.state is frozen
    assert calls == [("44", "Foot (L)")]

    nav.reset()
    nav.select_id("torso")
    nav.select_id("back_body")
    nav.select_id("buttock")
    assert calls == [("44", "Foot (L)"), ("54", "Buttocks")]


def test_reset_from_any_state(store):
    nav = DrillDownNavigator(store, selected_code="30")
    assert nav.is_resolved
    nav.reset()
    assert _at_root(nav)

    nav.select_id("hands")
    nav.select_id("hand_left")
    nav.reset()
    assert _at_root(nav)


def test_operations_replace_state(store):
    nav = DrillDownNavigator(store)
    first = nav.state
    nav.select_id("hands")
    assert nav.state is not first
    assert first.history == ()


def test_select_outside_view_raises(store):
    nav = DrillDownNavigator(store)
    foreign = store.find_leaf_by_code(4)
    with pytest.raises(InvalidSelectionError):
        nav.select(foreign)
    with pytest.raises(InvalidSelectionError):
        nav.select_id("fingers_r")
    assert _at_root(nav)


def test_select_malformed_node_asserts(store):
    nav = DrillDownNavigator(store)
    with pytest.raises(AssertionError):
        nav.select({"id": "hands"})


def test_path_view_consistency_random_walk(store):
    """The offered view always equals children_of(history ids)."""
    rng = random.Random(20240611)
    nav = DrillDownNavigator(store)
    for _ in range(500):
        if nav.is_resolved:
            nav.reset()
        elif nav.history and rng.random() < 0.35:
            nav.back()
        else:
            nav.select(rng.choice(nav.current_view))
        _assert_consistent(nav)
        assert list(nav.breadcrumb()) == [b.label for b in nav.history]


def test_round_trip_every_code(store):
    for leaf in store.leaves():
        nav = DrillDownNavigator(store, selected_code=str(leaf["code"]))
        assert nav.resolved == Resolution(str(leaf["code"]), leaf["label"])


def test_inbound_code_does_not_emit(store):
    calls = []
    DrillDownNavigator(store, on_resolve=lambda c, l: calls.append((c, l)), selected_code=4)
    assert calls == []


@pytest.mark.parametrize("code", ["999", "abc", "", "  ", 0])
def test_unknown_inbound_code_degrades_to_root(store, code):
    nav = DrillDownNavigator(store, selected_code=code)
    assert _at_root(nav)


def test_clear_emits_empty_pair(store):
    calls = []
    nav = DrillDownNavigator(store, on_resolve=lambda c, l: calls.append((c, l)), selected_code="4")
    nav.clear()
    assert calls == [("", "")]
    assert _at_root(nav)


def test_change_selection_returns_to_root(store):
    """Clearing a selection does not resume the previous drill-down path."""
    nav = DrillDownNavigator(store)
    nav.select_id("arms")
    nav.select_id("arm_right")
    nav.select_id("arm_r_wrist")
    nav.clear()
    assert nav.path == []


def test_restore(store):
    nav = DrillDownNavigator(store)
    nav.restore(["hands", "hand_left"])
    assert nav.breadcrumb() == ("Hands & Fingers", "Left Hand")
    assert [n.id for n in nav.current_view] == ["fingers_l", "palm_l"]
    _assert_consistent(nav)


@pytest.mark.parametrize("path", [["hands", "bogus"], ["torso", "back_body", "buttock"], ["nope"]])
def test_restore_rejects_bad_paths(store, path):
    nav = DrillDownNavigator(store)
    with pytest.raises(InvalidPathError):
        nav.restore(path)


def test_snapshot(small_store):
    nav = DrillDownNavigator(small_store)
    nav.select_id("hands")
    snap = nav.snapshot()
    assert snap["state"] == "browsing"
    assert snap["history"] == ["hands"]
    assert snap["breadcrumb"] == ["Hands & Fingers"]
    assert snap["view"] == [
        {"id": "hand_right", "label": "Right Hand", "code": None, "is_leaf": False},
        {"id": "hand_r_dorsal", "label": "Back of Hand (Dorsal)", "code": 1, "is_leaf": True},
    ]
    assert json.loads(json.dumps(snap)) == snap
    nav.select_id("hand_r_dorsal")
    assert nav.snapshot()["resolved"] == {"code": "1", "label": "Back of Hand (Dorsal)"}


def test_leaf_at_root_level(small_store):
    nav = DrillDownNavigator(small_store)
    assert nav.select_id("buttock") == Resolution("54", "Buttocks")
    assert nav.history == ()


def test_equal_node_from_another_store_is_accepted(small_store):
    """Nodes are plain values; an equal node counts as offered."""
    nav = DrillDownNavigator(small_store)
    nav.select(Leaf(id="buttock", label="Buttocks", code=54))
    assert nav.is_resolved


def test_inbound_code_resolves_to_canonical_form(store):
    """Codes match numerically; the resolved code is the leaf's own form."""
    nav = DrillDownNavigator(store, selected_code="04")
    assert nav.resolved == Resolution("4", "Index Tip (R)")
