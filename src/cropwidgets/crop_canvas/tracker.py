# cropwidgets/src/cropwidgets/crop_canvas/tracker.py

"""Pointer/keyboard state machine that draws, drags and resizes a crop rectangle.

The tracker owns a single mutable :class:`Rect` (the *viewport*) in canvas
pixel coordinates. Pointer positions arrive already translated into the
same space (origin at the drawing surface's top-left).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from cropwidgets.utils.logging import get_logger
from .geometry import Point, Rect

logger = get_logger(__name__)

RectHandler = Callable[[Rect], None]


class InteractionMode(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class Anchor(str, Enum):
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


# Hit-test priority: first match wins.
ANCHOR_PRIORITY: Tuple[Anchor, ...] = (
    Anchor.BOTTOM_LEFT,
    Anchor.BOTTOM_RIGHT,
    Anchor.TOP_RIGHT,
    Anchor.TOP_LEFT,
)

ANCHOR_CURSORS: Dict[Anchor, str] = {
    Anchor.TOP_LEFT: "nw-resize",
    Anchor.TOP_RIGHT: "ne-resize",
    Anchor.BOTTOM_LEFT: "sw-resize",
    Anchor.BOTTOM_RIGHT: "se-resize",
}


class ArrowKey(str, Enum):
    LEFT = "ArrowLeft"
    RIGHT = "ArrowRight"
    UP = "ArrowUp"
    DOWN = "ArrowDown"


class PointerEventType(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"


@dataclass(frozen=True)
class PointerEvent:
    """Normalized pointer event in tracker-local pixel coordinates."""

    type: PointerEventType
    x: float
    y: float


@dataclass
class TrackerConfig:
    anchor_size: float = 10.0       # anchor hot-zone size (px)
    move_increment: float = 4.0     # arrow-key nudge (px)
    resizable: bool = True
    draggable: bool = True
    drawable: bool = True


class InteractionTracker:
    """Turns pointer-down/move/up and arrow-key events into a crop rectangle.

    Modes:
        idle      - nothing in progress
        drawing   - rubber-band a new rect from the pointer-down point
        dragging  - translate the rect, keeping the pointer's offset to each corner
        resizing  - move the corner identified by ``anchor``

    Events (via callback registration):
        on_start(handler): called as handler(viewport) on pointer-down
        on_move(handler):  called as handler(viewport) on every mutating pointer-move
        on_end(handler):   called as handler(viewport) on pointer-up, arrow-key nudge, scale
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        viewport: Rect | None = None,
    ) -> None:
        self.config = config if config is not None else TrackerConfig()

        self._viewport = viewport if viewport is not None else Rect()
        self._mode = InteractionMode.IDLE
        self._anchor: Optional[Anchor] = None
        self._pointer_down = False

        # Drawing: fixed corner. Dragging: pointer offset from each corner.
        self._start: Optional[Point] = None
        self._drag_offset: Optional[Point] = None
        self._drag_offset2: Optional[Point] = None

        self._start_handlers: List[RectHandler] = []
        self._move_handlers: List[RectHandler] = []
        self._end_handlers: List[RectHandler] = []

    # ------------- properties -------------

    @property
    def viewport(self) -> Rect:
        """The owned crop rect (canvas-space). Mutated in place by gestures."""
        return self._viewport

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def anchor(self) -> Optional[Anchor]:
        """Active anchor while resizing, else None."""
        return self._anchor

    def is_tracking(self) -> bool:
        """True between pointer-down and pointer-up."""
        return self._pointer_down

    def is_drawing(self) -> bool:
        return self._mode is InteractionMode.DRAWING

    def is_dragging(self) -> bool:
        return self._mode is InteractionMode.DRAGGING

    def is_resizing(self) -> bool:
        return self._mode is InteractionMode.RESIZING

    @property
    def resizable(self) -> bool:
        return self.config.resizable

    @resizable.setter
    def resizable(self, value: bool) -> None:
        self.config.resizable = bool(value)

    @property
    def draggable(self) -> bool:
        return self.config.draggable

    @draggable.setter
    def draggable(self, value: bool) -> None:
        self.config.draggable = bool(value)

    @property
    def drawable(self) -> bool:
        return self.config.drawable

    @drawable.setter
    def drawable(self, value: bool) -> None:
        self.config.drawable = bool(value)

    # ------------- public event registration API -------------

    def on_start(self, handler: RectHandler) -> None:
        self._start_handlers.append(handler)

    def on_move(self, handler: RectHandler) -> None:
        self._move_handlers.append(handler)

    def on_end(self, handler: RectHandler) -> None:
        self._end_handlers.append(handler)

    # ------------- public viewport API -------------

    def set_viewport(self, rect: Rect) -> None:
        """Replace the viewport corners wholesale (e.g. after zoom/rotation)."""
        self._viewport.set_corners(rect.x, rect.y, rect.x2, rect.y2)

    def scale(self, factor: float) -> None:
        """Scale the viewport about the canvas origin and notify end handlers."""
        if factor <= 0:
            raise ValueError(f"scale factor must be > 0, got {factor}")
        self._viewport.scale(factor)
        self._emit(self._end_handlers, "end")

    # ------------- hit testing -------------

    def anchor_rect(self, anchor: Anchor) -> Rect:
        """Hot-zone for ``anchor``: from half an anchor before the corner to a full anchor past it."""
        vp = self._viewport
        cx = vp.left if anchor in (Anchor.TOP_LEFT, Anchor.BOTTOM_LEFT) else vp.right
        cy = vp.top if anchor in (Anchor.TOP_LEFT, Anchor.TOP_RIGHT) else vp.bottom
        size = self.config.anchor_size
        return Rect(cx - size / 2.0, cy - size / 2.0, cx + size, cy + size)

    def anchor_at(self, x: float, y: float) -> Optional[Anchor]:
        """First anchor (in priority order) whose hot-zone contains (x, y).

        An empty viewport has no anchors.
        """
        if self._viewport.is_empty():
            return None
        for anchor in ANCHOR_PRIORITY:
            if self.anchor_rect(anchor).contains((x, y)):
                return anchor
        return None

    def cursor_at(self, x: float, y: float) -> str:
        """Advisory cursor for a pointer at (x, y). Does not mutate state."""
        if self.config.resizable:
            anchor = self.anchor_at(x, y)
            if anchor is not None:
                return ANCHOR_CURSORS[anchor]
        if (
            self.config.draggable
            and not self._viewport.is_empty()
            and self._viewport.contains((x, y))
        ):
            return "move"
        if self.config.drawable:
            return "crosshair"
        return "default"

    # ------------- pointer events -------------

    def handle_pointer(self, event: PointerEvent) -> Optional[str]:
        """Dispatch a normalized pointer event. Returns the cursor advisory for moves."""
        kind = PointerEventType(event.type)
        if kind is PointerEventType.DOWN:
            self.pointer_down(event.x, event.y)
            return None
        if kind is PointerEventType.MOVE:
            return self.pointer_move(event.x, event.y)
        self.pointer_up(event.x, event.y)
        return None

    def pointer_down(self, x: float, y: float) -> InteractionMode:
        """Start a gesture at (x, y); returns the mode chosen for it."""
        self._pointer_down = True
        self._anchor = None
        self._start = None
        self._drag_offset = None
        self._drag_offset2 = None

        vp = self._viewport
        anchor = self.anchor_at(x, y) if self.config.resizable else None

        if anchor is not None:
            self._mode = InteractionMode.RESIZING
            self._anchor = anchor
        elif self.config.draggable and not vp.is_empty() and vp.contains((x, y)):
            self._mode = InteractionMode.DRAGGING
            self._drag_offset = Point(x - vp.x, y - vp.y)
            self._drag_offset2 = Point(x - vp.x2, y - vp.y2)
        elif self.config.drawable:
            self._mode = InteractionMode.DRAWING
            vp.set_corners(x, y, x, y)
            self._start = Point(float(x), float(y))
        else:
            self._mode = InteractionMode.IDLE

        logger.debug(f"pointer_down at ({x:.1f}, {y:.1f}) -> {self._mode.value} anchor={self._anchor}")
        self._emit(self._start_handlers, "start")
        return self._mode

    def pointer_move(self, x: float, y: float) -> str:
        """Advance the active gesture to (x, y). Returns the cursor advisory."""
        cursor = self.cursor_at(x, y)

        if not self._pointer_down or self._mode is InteractionMode.IDLE:
            return cursor

        vp = self._viewport
        if self._mode is InteractionMode.RESIZING:
            self._resize(self._anchor, x, y)
        elif self._mode is InteractionMode.DRAGGING:
            vp.x = x - self._drag_offset.x
            vp.y = y - self._drag_offset.y
            vp.x2 = x - self._drag_offset2.x
            vp.y2 = y - self._drag_offset2.y
        elif self._mode is InteractionMode.DRAWING:
            sx, sy = self._start
            vp.x = min(x, sx)
            vp.y = min(y, sy)
            vp.x2 = vp.x + abs(x - sx)
            vp.y2 = vp.y + abs(y - sy)

        self._emit(self._move_handlers, "move")
        return cursor

    def pointer_up(self, x: float | None = None, y: float | None = None) -> None:
        """Finish the active gesture. A pointer-up without a pointer-down is ignored."""
        if not self._pointer_down:
            return

        finished = self._mode
        self._pointer_down = False
        self._mode = InteractionMode.IDLE
        self._anchor = None
        self._start = None
        self._drag_offset = None
        self._drag_offset2 = None

        if finished is not InteractionMode.IDLE:
            logger.debug(f"finished {finished.value}: viewport={self._viewport}")
        self._emit(self._end_handlers, "end")

    # ------------- keyboard -------------

    def key_press(self, key: Union[ArrowKey, str]) -> bool:
        """Nudge the viewport with an arrow key.

        Returns True if the key is an arrow key (handled), False otherwise.
        Ignored while a gesture is in progress or when the viewport is empty.
        """
        try:
            arrow = ArrowKey(key)
        except ValueError:
            return False

        if self._pointer_down or self._mode is not InteractionMode.IDLE:
            return True
        if self._viewport.is_empty():
            return True

        step = self.config.move_increment
        dx, dy = {
            ArrowKey.LEFT: (-step, 0.0),
            ArrowKey.RIGHT: (step, 0.0),
            ArrowKey.UP: (0.0, -step),
            ArrowKey.DOWN: (0.0, step),
        }[arrow]
        self._viewport.move(dx, dy)
        self._emit(self._end_handlers, "end")
        return True

    # ------------- internals -------------

    def _resize(self, anchor: Optional[Anchor], x: float, y: float) -> None:
        vp = self._viewport
        if anchor is Anchor.TOP_LEFT:
            vp.x, vp.y = x, y
        elif anchor is Anchor.TOP_RIGHT:
            vp.x2, vp.y = x, y
        elif anchor is Anchor.BOTTOM_RIGHT:
            vp.x2, vp.y2 = x, y
        elif anchor is Anchor.BOTTOM_LEFT:
            vp.x, vp.y2 = x, y

    def _emit(self, handlers: List[RectHandler], name: str) -> None:
        for handler in list(handlers):
            try:
                handler(self._viewport)
            except Exception:
                logger.exception(f"Error in {name} handler")
