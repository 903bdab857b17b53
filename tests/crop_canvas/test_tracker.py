# tests/crop_canvas/test_tracker.py

from __future__ import annotations

import pytest

from cropwidgets.crop_canvas.geometry import Rect
from cropwidgets.crop_canvas.tracker import (
    Anchor,
    ArrowKey,
    InteractionMode,
    InteractionTracker,
    PointerEvent,
    PointerEventType,
    TrackerConfig,
)


def _tracker_with(rect: Rect, **config) -> InteractionTracker:
    return InteractionTracker(TrackerConfig(**config), viewport=rect)


# --- drawing ---


def test_draw_end_to_end(tracker: InteractionTracker) -> None:
    """down (5,5) -> drawing; move (50,40) -> rect (5,5)-(50,40); up -> on_end, idle."""
    ended: list[Rect] = []
    tracker.on_end(lambda r: ended.append(r.clone()))

    assert tracker.pointer_down(5, 5) is InteractionMode.DRAWING
    assert tracker.mode is InteractionMode.DRAWING

    tracker.pointer_move(50, 40)
    assert tracker.viewport == Rect(5, 5, 50, 40)

    tracker.pointer_up(50, 40)
    assert tracker.mode is InteractionMode.IDLE
    assert ended == [Rect(5, 5, 50, 40)]


def test_drawing_is_normalized_at_every_move(tracker: InteractionTracker) -> None:
    tracker.pointer_down(100, 100)
    for x, y in [(150, 150), (50, 120), (20, 20), (130, 10), (100, 100)]:
        tracker.pointer_move(x, y)
        vp = tracker.viewport
        assert vp.x <= vp.x2
        assert vp.y <= vp.y2
        assert vp.left == min(x, 100)
        assert vp.top == min(y, 100)
        assert vp.width == abs(x - 100)
        assert vp.height == abs(y - 100)


def test_draw_collapses_rect_on_pointer_down() -> None:
    """Outside an existing rect, pointer-down starts a fresh draw at the pointer."""
    t = _tracker_with(Rect(10, 10, 60, 40))
    assert t.pointer_down(200, 200) is InteractionMode.DRAWING
    assert t.viewport == Rect(200, 200, 200, 200)


def test_nothing_enabled_stays_idle() -> None:
    t = _tracker_with(Rect(10, 10, 60, 40), resizable=False, draggable=False, drawable=False)
    moved: list[Rect] = []
    t.on_move(lambda r: moved.append(r.clone()))

    assert t.pointer_down(30, 20) is InteractionMode.IDLE
    assert t.pointer_move(80, 80) == "default"
    assert t.viewport == Rect(10, 10, 60, 40)
    assert moved == []


# --- dragging ---


def test_drag_preserves_size() -> None:
    """(10,10)-(60,40) dragged by (15,-5) -> origin (25,5), size 50x30."""
    t = _tracker_with(Rect(10, 10, 60, 40))
    assert t.pointer_down(30, 20) is InteractionMode.DRAGGING
    t.pointer_move(45, 15)
    vp = t.viewport
    assert (vp.x, vp.y) == (25, 5)
    assert vp.width == 50
    assert vp.height == 30
    t.pointer_up(45, 15)
    assert t.mode is InteractionMode.IDLE


def test_drag_preserves_size_with_fractional_moves() -> None:
    t = _tracker_with(Rect(10.0, 10.0, 60.0, 40.0))
    t.pointer_down(30.3, 20.7)
    for x, y in [(31.1, 19.9), (44.44, 17.17), (12.345, 60.01), (100.9, 0.3)]:
        t.pointer_move(x, y)
        assert t.viewport.width == pytest.approx(50.0, abs=1e-9)
        assert t.viewport.height == pytest.approx(30.0, abs=1e-9)


def test_drag_disabled_inside_rect_draws() -> None:
    t = _tracker_with(Rect(10, 10, 60, 40), draggable=False)
    assert t.pointer_down(30, 20) is InteractionMode.DRAWING


# --- resizing ---


@pytest.mark.parametrize(
    "start, target, expected_anchor, expected",
    [
        ((10, 10), (20, 30), Anchor.TOP_LEFT, Rect(20, 30, 100, 100)),
        ((100, 10), (120, 30), Anchor.TOP_RIGHT, Rect(10, 30, 120, 100)),
        ((100, 100), (80, 90), Anchor.BOTTOM_RIGHT, Rect(10, 10, 80, 90)),
        ((10, 100), (0, 130), Anchor.BOTTOM_LEFT, Rect(0, 10, 100, 130)),
    ],
)
def test_resize_moves_only_the_anchor_corner(start, target, expected_anchor, expected) -> None:
    t = _tracker_with(Rect(10, 10, 100, 100))
    assert t.pointer_down(*start) is InteractionMode.RESIZING
    assert t.anchor is expected_anchor
    t.pointer_move(*target)
    assert t.viewport == expected


def test_resize_top_left_never_touches_x2_y2() -> None:
    t = _tracker_with(Rect(10, 10, 100, 100))
    t.pointer_down(10, 10)
    for pt in [(20, 30), (150, 150), (-40, 5)]:
        t.pointer_move(*pt)
        assert (t.viewport.x2, t.viewport.y2) == (100, 100)


def test_resize_disabled_falls_back_to_drag() -> None:
    t = _tracker_with(Rect(10, 10, 100, 100), resizable=False)
    assert t.pointer_down(12, 12) is InteractionMode.DRAGGING
    assert t.anchor is None


def test_anchor_priority_bottom_left_first() -> None:
    """On a rect smaller than an anchor all zones overlap; bottom-left wins."""
    t = _tracker_with(Rect(10, 10, 14, 14))
    assert t.anchor_at(12, 12) is Anchor.BOTTOM_LEFT


def test_anchor_zone_extent() -> None:
    """Zone spans half an anchor before the corner and a full anchor after it."""
    t = _tracker_with(Rect(50, 50, 150, 150), anchor_size=10)
    assert t.anchor_rect(Anchor.TOP_LEFT) == Rect(45, 45, 60, 60)
    assert t.anchor_at(45, 45) is Anchor.TOP_LEFT
    assert t.anchor_at(44, 50) is None
    assert t.anchor_at(60, 60) is Anchor.TOP_LEFT


def test_empty_viewport_has_no_anchors(tracker: InteractionTracker) -> None:
    assert tracker.anchor_at(0, 0) is None
    assert tracker.pointer_down(2, 2) is InteractionMode.DRAWING


# --- cursor advisory ---


def test_cursor_advisory() -> None:
    t = _tracker_with(Rect(50, 50, 150, 150))
    assert t.cursor_at(50, 50) == "nw-resize"
    assert t.cursor_at(150, 50) == "ne-resize"
    assert t.cursor_at(50, 150) == "sw-resize"
    assert t.cursor_at(150, 150) == "se-resize"
    assert t.cursor_at(100, 100) == "move"
    assert t.cursor_at(300, 300) == "crosshair"

    t.drawable = False
    assert t.cursor_at(300, 300) == "default"
    t.resizable = False
    assert t.cursor_at(50, 50) == "move"


def test_pointer_move_without_down_only_reports_cursor() -> None:
    t = _tracker_with(Rect(50, 50, 150, 150))
    moved: list[Rect] = []
    t.on_move(lambda r: moved.append(r.clone()))
    assert t.pointer_move(100, 100) == "move"
    assert t.viewport == Rect(50, 50, 150, 150)
    assert moved == []


def test_cursor_reported_during_gesture() -> None:
    t = _tracker_with(Rect(50, 50, 150, 150))
    t.pointer_down(100, 100)
    assert t.pointer_move(110, 110) == "move"
    assert t.viewport == Rect(60, 60, 160, 160)


# --- notifications ---


def test_notifications_sequence(tracker: InteractionTracker) -> None:
    events: list[str] = []
    tracker.on_start(lambda r: events.append("start"))
    tracker.on_move(lambda r: events.append("move"))
    tracker.on_end(lambda r: events.append("end"))

    tracker.pointer_down(0, 0)
    tracker.pointer_move(5, 5)
    tracker.pointer_move(10, 10)
    tracker.pointer_up(10, 10)
    assert events == ["start", "move", "move", "end"]


def test_pointer_up_without_down_is_ignored(tracker: InteractionTracker) -> None:
    ended: list[Rect] = []
    tracker.on_end(ended.append)
    tracker.pointer_up(1, 1)
    assert ended == []


def test_failing_handler_does_not_break_tracker(tracker: InteractionTracker) -> None:
    def boom(_r: Rect) -> None:
        raise RuntimeError("handler failure")

    seen: list[Rect] = []
    tracker.on_move(boom)
    tracker.on_move(lambda r: seen.append(r.clone()))

    tracker.pointer_down(0, 0)
    tracker.pointer_move(20, 10)
    assert seen == [Rect(0, 0, 20, 10)]
    assert tracker.is_drawing()


def test_handle_pointer_dispatch(tracker: InteractionTracker) -> None:
    tracker.handle_pointer(PointerEvent(PointerEventType.DOWN, 5, 5))
    assert tracker.is_tracking()
    cursor = tracker.handle_pointer(PointerEvent(PointerEventType.MOVE, 50, 40))
    assert isinstance(cursor, str)
    tracker.handle_pointer(PointerEvent(PointerEventType.UP, 50, 40))
    assert not tracker.is_tracking()
    assert tracker.viewport == Rect(5, 5, 50, 40)


# --- keyboard ---


@pytest.mark.parametrize(
    "key, expected",
    [
        (ArrowKey.LEFT, Rect(6, 10, 56, 40)),
        (ArrowKey.RIGHT, Rect(14, 10, 64, 40)),
        ("ArrowUp", Rect(10, 6, 60, 36)),
        ("ArrowDown", Rect(10, 14, 60, 44)),
    ],
)
def test_arrow_keys_nudge(key, expected) -> None:
    t = _tracker_with(Rect(10, 10, 60, 40))
    ended: list[Rect] = []
    t.on_end(lambda r: ended.append(r.clone()))
    assert t.key_press(key)
    assert t.viewport == expected
    assert ended == [expected]


def test_arrow_key_ignored_on_empty_rect(tracker: InteractionTracker) -> None:
    ended: list[Rect] = []
    tracker.on_end(ended.append)
    assert tracker.key_press(ArrowKey.LEFT)
    assert tracker.viewport == Rect()
    assert ended == []


def test_arrow_key_ignored_during_gesture() -> None:
    t = _tracker_with(Rect(10, 10, 60, 40))
    t.pointer_down(30, 20)
    t.key_press(ArrowKey.RIGHT)
    assert t.viewport == Rect(10, 10, 60, 40)


def test_non_arrow_key_not_handled() -> None:
    t = _tracker_with(Rect(10, 10, 60, 40))
    assert not t.key_press("Enter")
    assert t.viewport == Rect(10, 10, 60, 40)


# --- scale / set_viewport ---


def test_scale_fires_end() -> None:
    t = _tracker_with(Rect(10, 10, 60, 40))
    ended: list[Rect] = []
    t.on_end(lambda r: ended.append(r.clone()))
    t.scale(0.5)
    assert t.viewport == Rect(5.0, 5.0, 30.0, 20.0)
    assert len(ended) == 1


def test_scale_rejects_non_positive_factor(tracker: InteractionTracker) -> None:
    with pytest.raises(ValueError):
        tracker.scale(0)


def test_set_viewport_keeps_same_rect_object(tracker: InteractionTracker) -> None:
    owned = tracker.viewport
    tracker.set_viewport(Rect(1, 2, 3, 4))
    assert tracker.viewport is owned
    assert owned == Rect(1, 2, 3, 4)
