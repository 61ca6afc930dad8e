"""Tests for column pinning, resize and drag sessions."""

import pytest

from datagrid_view.columns import ColumnRegistry
from datagrid_view.models import ColumnDef
from datagrid_view.transforms import (
    ColumnTransformManager,
    compute_pin_layout,
    format_pin_spec,
    parse_pin_spec,
)


@pytest.fixture
def registry() -> ColumnRegistry:
    return ColumnRegistry(
        [
            ColumnDef(header_name="Name", width=100),
            ColumnDef(header_name="Email", width=150),
            ColumnDef(header_name="Role"),
            ColumnDef(header_name="Age", width=80),
        ]
    )


@pytest.fixture
def manager(registry, gesture_host, clock) -> ColumnTransformManager:
    return ColumnTransformManager(registry, gesture_host=gesture_host, clock=clock)


def test_parse_pin_spec_segments(registry):
    assert parse_pin_spec("left:name,email;right:age", registry) == ([0, 1], [3])


def test_parse_pin_spec_json(registry):
    spec = '{"left": ["email", "name"], "right": ["role", "age"]}'
    assert parse_pin_spec(spec, registry) == ([0, 1], [3, 2])
    assert parse_pin_spec({"left": "age"}, registry) == ([3], [])


def test_column_on_both_sides_stays_left(registry):
    assert parse_pin_spec("left:name;right:name,role", registry) == ([0], [2])


def test_unknown_pin_tokens_are_dropped(registry):
    assert parse_pin_spec("left:ghost;right:age", registry) == ([], [3])
    assert parse_pin_spec("nonsense", registry) == ([], [])


def test_pin_offsets_accumulate_widths(registry):
    layout = compute_pin_layout(registry, [0, 1], [3, 2])
    assert [(p.key, p.offset, p.edge) for p in layout.left] == [("name", 0, False), ("email", 100, True)]
    assert [(p.key, p.offset, p.edge) for p in layout.right] == [("age", 0, False), ("role", 80, True)]
    assert layout.for_index(2).side == "right"
    assert layout.for_index(5) is None
    assert layout.spec() == "left:name,email;right:age,role"


def test_pin_offsets_follow_resized_widths(registry):
    registry.set_width(0, 180)
    layout = compute_pin_layout(registry, [0, 1], [])
    assert layout.left[1].offset == 180


def test_format_pin_spec():
    assert format_pin_spec(["a", "b"], ["c"]) == "left:a,b;right:c"
    assert format_pin_spec([], ["c"]) == "right:c"
    assert format_pin_spec([], []) == ""


def test_resize_session_commits_once(manager, gesture_host):
    commits = []
    session = manager.begin_resize(0, 500.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: commits.append((k, w)))
    assert gesture_host.bound == 1
    assert session.move(540) == 140
    assert session.end() == 140
    assert session.end() is None
    assert commits == [("name", 140)]
    assert gesture_host.unbound == 1
    assert manager.active_sessions == 0


def test_resize_under_rtl_inverts_delta_and_clamps(manager):
    session = manager.begin_resize(0, 500.0, rtl=True, on_preview=lambda k, w: None, on_commit=lambda k, w: None)
    assert session.move(540) == 72
    assert session.move(460) == 140


def test_resize_cancel_restores_start_width(manager, registry, gesture_host):
    session = manager.begin_resize(1, 0.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: None)
    session.move(100)
    assert registry.width(1) == 250
    session.cancel()
    assert registry.width(1) == 150
    assert gesture_host.unbound == 1


def test_resize_context_manager(manager, registry):
    commits = []
    with manager.begin_resize(0, 0.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: commits.append(w)) as session:
        session.move(20)
    assert commits == [120]

    with pytest.raises(RuntimeError):
        with manager.begin_resize(0, 0.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: commits.append(w)) as session:
            session.move(50)
            raise RuntimeError("interrupted")
    assert commits == [120]
    assert registry.width(0) == 120


def test_host_events_drive_the_session(manager, gesture_host):
    commits = []
    manager.begin_resize(0, 10.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: commits.append(w))
    gesture_host.on_move(40.0)
    gesture_host.on_release()
    assert commits == [130]
    assert gesture_host.unbound == 1


def test_resize_tracks_column_through_reorder(manager, registry):
    session = manager.begin_resize(0, 0.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: None)
    registry.move(0, 3)
    session.end(50)
    assert registry.width(3) == 150
    assert registry.key_at(3) == "name"


def test_release_all_unbinds_without_committing(manager, gesture_host):
    commits = []
    manager.begin_resize(0, 0.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: commits.append(w))
    manager.begin_drag(1, lambda s, t: True)
    assert manager.release_all() == 2
    assert gesture_host.unbound == 2
    assert commits == []
    assert manager.active_sessions == 0


def test_release_all_drops_previewed_width(manager, registry):
    registry.set_width(1, 90)
    first = manager.begin_resize(0, 100.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: None)
    second = manager.begin_resize(1, 100.0, rtl=False, on_preview=lambda k, w: None, on_commit=lambda k, w: None)
    first.move(180)
    second.move(300)
    assert (registry.width(0), registry.width(1)) == (180, 290)

    manager.release_all()

    assert registry.cached_width("name") is None
    assert registry.width(1) == 90
    assert first.end(400) is None
    assert registry.cached_width("name") is None


def test_drag_drop_moves_and_suppresses_activation(manager, clock):
    drops = []

    def on_drop(source, target):
        drops.append((source, target))
        return True

    session = manager.begin_drag(0, on_drop)
    session.over(2)
    assert session.drop() is True
    assert drops == [(0, 2)]
    assert manager.activation_suppressed()
    clock.advance(0.3)
    assert not manager.activation_suppressed()


def test_cancelled_drag_does_not_move(manager):
    drops = []
    session = manager.begin_drag(0, lambda s, t: drops.append((s, t)) or True)
    session.over(3)
    session.cancel()
    assert session.drop() is False
    assert drops == []


@pytest.mark.parametrize(
    ("index", "key", "rtl", "expected"),
    [
        (1, "ArrowRight", False, 2),
        (1, "ArrowRight", True, 0),
        (1, "ArrowLeft", True, 2),
        (0, "ArrowLeft", False, 0),
        (3, "ArrowRight", False, 3),
        (1, "Enter", False, None),
    ],
)
def test_keyboard_target(index, key, rtl, expected):
    assert ColumnTransformManager.keyboard_target(index, key, 4, rtl=rtl) == expected
