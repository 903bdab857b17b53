# cropwidgets/src/cropwidgets/crop_canvas/viewport_mapper.py

"""Rotation- and zoom-aware mapping between canvas space and image space.

The image is drawn centred on the canvas and rotated about its centre.
Rotation is an unbounded signed accumulator in degrees (it is never wrapped
to 0..360). Whenever ``rotation % 180 != 0`` the image lies on its side and
the horizontal/vertical extents swap roles (the *axis swap*).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional

from cropwidgets.utils.logging import get_logger
from .geometry import AffineTransform, Rect
from .tracker import InteractionTracker

logger = get_logger(__name__)

DEFAULT_ROTATION_STEP = 6.0


class Extent(NamedTuple):
    width: float
    height: float


@dataclass
class ViewportState:
    """Rotation/zoom state plus the canvas and image extents it is applied to."""

    rotation_degrees: float = 0.0
    target_rotation_degrees: float = 0.0
    zoom_factor: float = 1.0
    canvas_extent: Extent = field(default_factory=lambda: Extent(0.0, 0.0))
    image_extent: Extent = field(default_factory=lambda: Extent(0.0, 0.0))


class ViewportMapper:
    """Keeps the tracker's viewport consistent with rotation and zoom.

    Rotation animation is a pollable state machine: ``request_rotation()``
    arms it and the owner calls ``step()`` once per animation tick until it
    returns False. Stopping the calls cancels the animation.
    """

    def __init__(
        self,
        tracker: InteractionTracker,
        state: ViewportState | None = None,
        *,
        rotation_step: float = DEFAULT_ROTATION_STEP,
        on_paint: Optional[Callable[[], None]] = None,
    ) -> None:
        if rotation_step <= 0:
            raise ValueError(f"rotation_step must be > 0, got {rotation_step}")
        self.tracker = tracker
        self.state = state if state is not None else ViewportState()
        self._rotation_step = float(rotation_step)
        self._increment = 0.0
        self._animating = False
        self._on_paint = on_paint

    # ------------- extents -------------

    def set_canvas_extent(self, width: float, height: float) -> None:
        self.state.canvas_extent = Extent(float(width), float(height))

    def set_image_extent(self, width: float, height: float) -> None:
        self.state.image_extent = Extent(float(width), float(height))

    # ------------- accessors -------------

    @property
    def rotation(self) -> float:
        """Rotation currently displayed (moves during animation)."""
        return self.state.rotation_degrees

    def get_rotation(self) -> float:
        """Requested rotation in degrees, unwrapped (e.g. 450 or -90 are possible)."""
        return self.state.target_rotation_degrees

    def get_zoom_factor(self) -> float:
        return self.state.zoom_factor

    def is_animating(self) -> bool:
        return self._animating

    def is_sideways(self) -> bool:
        """True when the displayed rotation is not a multiple of 180 degrees."""
        return self.state.rotation_degrees % 180 != 0

    # ------------- rotation -------------

    def request_rotation(self, target_degrees: float) -> None:
        """Start animating towards ``target_degrees``.

        An animation already in flight is superseded: the displayed rotation
        first jumps to the previously requested target, so consecutive
        requests compose from targets rather than from in-flight values.
        """
        state = self.state
        state.rotation_degrees = state.target_rotation_degrees
        state.target_rotation_degrees = float(target_degrees)

        if target_degrees < state.rotation_degrees:
            self._increment = -self._rotation_step
        else:
            self._increment = self._rotation_step
        self._animating = True
        logger.debug(
            f"request_rotation: {state.rotation_degrees} -> {target_degrees} "
            f"(step {self._increment:+g})"
        )

    def rotate_clockwise(self) -> None:
        self.request_rotation(self.state.target_rotation_degrees + 90.0)

    def rotate_anticlockwise(self) -> None:
        self.request_rotation(self.state.target_rotation_degrees - 90.0)

    def step(self) -> bool:
        """Advance the rotation animation by one tick.

        Returns True while the animation is still in progress. On the tick
        that reaches or would cross the target, the rotation snaps exactly to
        the target and the zoom is reapplied.
        """
        if not self._animating:
            return False

        state = self.state
        target = state.target_rotation_degrees
        advanced = state.rotation_degrees + self._increment

        still_short = (self._increment < 0 and advanced > target) or (
            self._increment > 0 and advanced < target
        )
        if still_short:
            state.rotation_degrees = advanced
            self._paint()
            return True

        state.rotation_degrees = target
        self._animating = False
        logger.debug(f"rotation animation finished at {target}")
        self.apply_zoom(state.zoom_factor)
        return False

    # ------------- zoom -------------

    def apply_zoom(self, factor: float) -> Rect:
        """Recompute the tracker's viewport for zoom ``factor`` at the current rotation.

        The viewport covers ``1/factor`` of the displayed image in each axis
        and is centred on it.

        Raises:
            ValueError: if ``factor`` is not > 0.
        """
        if factor <= 0:
            raise ValueError(f"zoom factor must be > 0, got {factor}")

        state = self.state
        state.zoom_factor = float(factor)

        img_w, img_h = state.image_extent
        delta_x, delta_y = self._canvas_offset()
        ratio = 1.0 / factor
        center_x = img_w / 2.0
        center_y = img_h / 2.0

        if not self.is_sideways():
            x = delta_x + (center_x - center_x * ratio)
            y = delta_y + (center_y - center_y * ratio)
            rect = Rect(x, y, x + img_w / factor, y + img_h / factor)
        else:
            x = delta_y + (center_y - center_y * ratio)
            y = delta_x + (center_x - center_x * ratio)
            rect = Rect(x, y, x + img_h / factor, y + img_w / factor)

        self.tracker.set_viewport(rect)
        logger.debug(f"apply_zoom({factor}) at rotation {state.rotation_degrees}: {rect}")
        self._paint()
        return rect

    # ------------- coordinate mapping -------------

    def to_image_space(self, canvas_rect: Rect | None = None) -> Rect:
        """Return ``canvas_rect`` (default: the tracker's viewport) re-based into image space.

        Only the origin moves; width and height are kept as canvas pixels.
        The canvas/image offset follows the axis swap while sideways.
        """
        rect = (canvas_rect if canvas_rect is not None else self.tracker.viewport).clone()
        delta_x, delta_y = self._canvas_offset()
        if not self.is_sideways():
            rect.move(-delta_x, -delta_y)
        else:
            rect.move(-delta_y, -delta_x)
        return rect

    def to_canvas_space(self, image_rect: Rect) -> Rect:
        """Inverse of :meth:`to_image_space`."""
        rect = image_rect.clone()
        delta_x, delta_y = self._canvas_offset()
        if not self.is_sideways():
            rect.move(delta_x, delta_y)
        else:
            rect.move(delta_y, delta_x)
        return rect

    def get_view_port(self) -> Rect:
        """The crop rect in image space, ready for final consumption."""
        return self.to_image_space()

    def display_transform(self) -> AffineTransform:
        """Transform taking image pixels to canvas pixels at the displayed rotation."""
        canvas_w, canvas_h = self.state.canvas_extent
        img_w, img_h = self.state.image_extent
        return (
            AffineTransform.translate(canvas_w / 2.0, canvas_h / 2.0)
            .compose(AffineTransform.rotate(self.state.rotation_degrees))
            .compose(AffineTransform.translate(-img_w / 2.0, -img_h / 2.0))
        )

    # ------------- internals -------------

    def _canvas_offset(self) -> tuple[float, float]:
        """(dx, dy) from the unrotated image origin to its drawn position on the canvas."""
        canvas_w, canvas_h = self.state.canvas_extent
        img_w, img_h = self.state.image_extent
        return canvas_w / 2.0 - img_w / 2.0, canvas_h / 2.0 - img_h / 2.0

    def _paint(self) -> None:
        if self._on_paint is None:
            return
        try:
            self._on_paint()
        except Exception:
            logger.exception("Error in paint handler")
