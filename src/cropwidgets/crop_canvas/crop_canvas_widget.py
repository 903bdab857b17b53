# cropwidgets/src/cropwidgets/crop_canvas/crop_canvas_widget.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import matplotlib
import numpy as np
from nicegui import events, ui
from PIL import Image

from cropwidgets.utils.logging import get_logger
from .geometry import Rect
from .tracker import InteractionTracker, TrackerConfig
from .viewport_mapper import ViewportMapper, ViewportState

logger = get_logger(__name__)


@dataclass
class CropCanvasConfig:
    # Initial state
    rotation: float = 0.0                   # degrees, unwrapped
    zoom: float = 1.0                       # initial crop covers 1/zoom of the image
    source_rect: Rect | None = None         # initial crop in image space (overrides zoom)

    # Crop rect appearance
    clip_stroke: str = "navy"
    drag_stroke: str = "red"
    resize_stroke: str = "green"
    background: str = "rgba(0, 0, 0, 0.1)"
    mask_colour: str = "rgba(0, 0, 0, 0.4)"
    line_width: float = 2.0
    anchor_size: float = 5.0                # anchor circle diameter / hot-zone size (px)

    # Canvas side = max(image width, height) * image_padding, leaves room to rotate
    image_padding: float = 1.55

    # Animation
    rotation_step: float = 6.0              # degrees per tick
    tick_interval: float = 1.0 / 60.0       # seconds

    # Interaction
    move_increment: float = 4.0             # arrow-key nudge (px)
    resizable: bool = True
    draggable: bool = True
    drawable: bool = True


def array_to_pil(arr: np.ndarray, cmap: str = "gray") -> Image.Image:
    """Convert a numpy image to PIL.

    2D arrays are min/max normalized and mapped through a matplotlib
    colormap; 3D arrays must be RGB or RGBA.
    """
    arr = np.asarray(arr)
    if arr.ndim == 3 and arr.shape[2] in (3, 4):
        return Image.fromarray(arr.astype(np.uint8))
    if arr.ndim != 2:
        raise ValueError(f"expected a 2D or RGB/RGBA image array, got shape {arr.shape}")

    arr = arr.astype(float)
    vmin = float(np.nanmin(arr))
    vmax = float(np.nanmax(arr))
    if vmax <= vmin:
        vmax = vmin + 1e-6
    norm = np.clip((arr - vmin) / (vmax - vmin), 0.0, 1.0)

    rgba = matplotlib.colormaps[cmap](norm)
    rgb = (rgba[..., :3] * 255).astype(np.uint8)
    return Image.fromarray(rgb)


def _safe_call(func: Callable, *args, **kwargs) -> None:
    """Call func, swallowing only NiceGUI 'client deleted' RuntimeErrors."""
    try:
        func(*args, **kwargs)
    except RuntimeError as e:
        if "deleted" not in str(e).lower():
            raise


def build_overlay_svg(
    crop: Rect,
    canvas_w: float,
    canvas_h: float,
    *,
    stroke: str,
    mask_colour: str,
    line_width: float,
    anchor_size: Optional[float],
) -> str:
    """SVG for the mask around ``crop``, its outline and (optionally) corner anchors."""
    left, top, right, bottom = crop.left, crop.top, crop.right, crop.bottom
    masks = (
        (0.0, 0.0, canvas_w, top),
        (0.0, top, left, canvas_h - top),
        (right, top, canvas_w - right, canvas_h - top),
        (left, bottom, crop.width, canvas_h - bottom),
    )
    parts: list[str] = []
    for x, y, w, h in masks:
        if w <= 0 or h <= 0:
            continue
        parts.append(
            f'<rect x="{x}" y="{y}" width="{w}" height="{h}" '
            f'fill="{mask_colour}" stroke="none" />'
        )

    parts.append(
        f'<rect x="{left}" y="{top}" width="{crop.width}" height="{crop.height}" '
        f'stroke="{stroke}" stroke-width="{line_width}" stroke-linejoin="round" '
        f'fill="none" />'
    )

    if anchor_size is not None:
        r = anchor_size / 2.0
        for cx, cy in ((left, top), (right, top), (left, bottom), (right, bottom)):
            parts.append(
                f'<circle cx="{cx}" cy="{cy}" r="{r}" fill="{stroke}" stroke="{stroke}" />'
            )
    return "".join(parts)


class CropCanvasWidget:
    """NiceGUI crop canvas: rotate/zoom an image and draw a crop rect over it.

    The image is drawn centred on a square canvas; all interaction happens in
    canvas pixels and :meth:`get_view_port` reports the crop in image space.

    Events (via callback registration):
        on_change(handler): Handler called as handler(widget) after every
            completed gesture (pointer-up, arrow-key nudge).
    """

    def __init__(
        self,
        image: Union[Image.Image, np.ndarray],
        *,
        config: CropCanvasConfig | None = None,
    ) -> None:
        if isinstance(image, Image.Image):
            self._source = image
        else:
            self._source = array_to_pil(image)
        self._canvas_image = self._source.convert("RGBA")

        self.config = config if config is not None else CropCanvasConfig()
        cfg = self.config

        self.img_width, self.img_height = self._source.size
        self.canvas_side = int(round(max(self.img_width, self.img_height) * cfg.image_padding))

        self.tracker = InteractionTracker(
            TrackerConfig(
                anchor_size=cfg.anchor_size,
                move_increment=cfg.move_increment,
                resizable=cfg.resizable,
                draggable=cfg.draggable,
                drawable=cfg.drawable,
            )
        )
        self.mapper = ViewportMapper(
            self.tracker,
            ViewportState(
                rotation_degrees=cfg.rotation,
                target_rotation_degrees=cfg.rotation,
                zoom_factor=cfg.zoom,
            ),
            rotation_step=cfg.rotation_step,
            on_paint=self._paint,
        )
        self.mapper.set_canvas_extent(self.canvas_side, self.canvas_side)
        self.mapper.set_image_extent(self.img_width, self.img_height)

        self._change_handlers: List[Callable[["CropCanvasWidget"], None]] = []

        self.tracker.on_start(lambda _rect: self._paint())
        self.tracker.on_move(lambda _rect: self._paint())
        self.tracker.on_end(self._on_tracker_end)

        # UI elements, created by render()
        self.interactive: Optional[ui.interactive_image] = None
        self._keyboard: Optional[ui.keyboard] = None
        self._timer: Optional[ui.timer] = None
        self._cursor: Optional[str] = None
        self._pointer_inside = False
        self._rendered_rotation: Optional[float] = None

        if cfg.source_rect is not None and not cfg.source_rect.is_empty():
            self.tracker.set_viewport(self.mapper.to_canvas_space(cfg.source_rect))
        else:
            self.mapper.apply_zoom(cfg.zoom)

        logger.info(
            f"CropCanvasWidget initialized: image={self.img_width}x{self.img_height}, "
            f"canvas={self.canvas_side}x{self.canvas_side}, rotation={cfg.rotation}, "
            f"zoom={cfg.zoom}"
        )

    # ------------- UI -------------

    def render(self, parent=None) -> None:
        """Create the canvas UI inside ``parent`` (or the current container)."""
        container = parent if parent is not None else ui.element("div").classes("w-full")
        with container:
            self.interactive = (
                ui.interactive_image(
                    self._render_canvas_pil(),
                    events=["mousedown", "mousemove", "mouseup", "mouseout"],
                )
                .classes("w-full")
                .style(
                    f"aspect-ratio: 1 / 1; object-fit: contain; "
                    f"background: {self.config.background};"
                )
            )
            self.interactive.on_mouse(self._on_mouse)
            self._keyboard = ui.keyboard(on_key=self._on_key)
            self._timer = ui.timer(self.config.tick_interval, self._on_tick, active=False)
        self._rendered_rotation = self.mapper.rotation
        self._redraw_overlay()

    # ------------- public event registration API -------------

    def on_change(self, handler: Callable[["CropCanvasWidget"], None]) -> None:
        """Register callback for completed crop changes.

        Handler is called with: this widget
        """
        self._change_handlers.append(handler)

    # ------------- public API -------------

    def get_view_port(self) -> Rect:
        """Crop rect in image space."""
        return self.mapper.get_view_port()

    def get_rotation(self) -> float:
        """Requested rotation in degrees (unwrapped; 450 and -90 are possible)."""
        return self.mapper.get_rotation()

    def get_zoom_factor(self) -> float:
        return self.mapper.get_zoom_factor()

    def rotate(self, degrees: float) -> None:
        """Animate the image to ``degrees``."""
        self.mapper.request_rotation(degrees)
        self._start_animation()

    def clockwise(self) -> None:
        self.mapper.rotate_clockwise()
        self._start_animation()

    def anticlockwise(self) -> None:
        self.mapper.rotate_anticlockwise()
        self._start_animation()

    def zoom(self, factor: float) -> None:
        """Reset the crop to cover 1/factor of the image, centred."""
        self.mapper.apply_zoom(factor)

    def set_resizable(self, value: bool) -> None:
        self.tracker.resizable = value
        self._paint()

    def set_draggable(self, value: bool) -> None:
        self.tracker.draggable = value

    def set_drawable(self, value: bool) -> None:
        self.tracker.drawable = value

    def stroke_colour(self) -> str:
        """Outline colour for the crop rect given the current gesture."""
        if self.tracker.is_resizing():
            return self.config.resize_stroke
        if self.tracker.is_dragging():
            return self.config.drag_stroke
        return self.config.clip_stroke

    def render_preview(self, scale: float = 1.0) -> Optional[Image.Image]:
        """Source image turned to the displayed rotation, cropped to the viewport and scaled.

        Returns None when there is no crop.
        """
        clip = self.get_view_port()
        if clip.is_empty():
            return None
        rotated = self._source.rotate(-self.mapper.rotation, expand=True)
        preview = rotated.crop(clip.as_box())
        if scale != 1.0:
            size = (
                max(1, int(round(clip.width * scale))),
                max(1, int(round(clip.height * scale))),
            )
            preview = preview.resize(size, Image.Resampling.BILINEAR)
        return preview

    # ------------- internals: rendering -------------

    def _render_canvas_pil(self) -> Image.Image:
        """Draw the image rotated about its centre onto the square canvas."""
        inverse = self.mapper.display_transform().inverse()
        return self._canvas_image.transform(
            (self.canvas_side, self.canvas_side),
            Image.Transform.AFFINE,
            data=inverse.to_pil_affine(),
            resample=Image.Resampling.BILINEAR,
            fillcolor=(0, 0, 0, 0),
        )

    def _paint(self) -> None:
        """Redraw the image (if the rotation moved) and the crop overlay."""
        if self.interactive is None:
            return
        if self._rendered_rotation != self.mapper.rotation:
            _safe_call(self.interactive.set_source, self._render_canvas_pil())
            self._rendered_rotation = self.mapper.rotation
        self._redraw_overlay()

    def _redraw_overlay(self) -> None:
        if self.interactive is None:
            return
        crop = self.tracker.viewport
        visible = (not self.mapper.is_animating() and not crop.is_empty()) or self.tracker.is_tracking()
        if visible:
            svg = build_overlay_svg(
                crop,
                self.canvas_side,
                self.canvas_side,
                stroke=self.stroke_colour(),
                mask_colour=self.config.mask_colour,
                line_width=self.config.line_width,
                anchor_size=self.config.anchor_size if self.tracker.resizable else None,
            )
        else:
            svg = ""
        self.interactive.content = svg
        _safe_call(self.interactive.update)

    def _start_animation(self) -> None:
        if self._timer is not None:
            self._timer.active = True
        self._paint()

    # ------------- internals: events -------------

    def _on_tick(self) -> None:
        if not self.mapper.step() and self._timer is not None:
            self._timer.active = False

    def _on_mouse(self, e: events.MouseEventArguments) -> None:
        """Feed NiceGUI mouse events (canvas pixels) into the tracker."""
        x, y = float(e.image_x), float(e.image_y)

        if e.type == "mouseout":
            self._pointer_inside = False
            return
        self._pointer_inside = True

        if e.type == "mousedown" and e.button == 0:
            self.tracker.pointer_down(x, y)
        elif e.type == "mousemove":
            # mouseup released outside the image never reaches us
            if self.tracker.is_tracking() and not (e.buttons & 1):
                self.tracker.pointer_up(x, y)
            self._set_cursor(self.tracker.pointer_move(x, y))
        elif e.type == "mouseup" and e.button == 0:
            self.tracker.pointer_up(x, y)

    def _on_key(self, e: events.KeyEventArguments) -> None:
        """Arrow keys nudge the crop only while the pointer is over the canvas."""
        if not e.action.keydown or not self._pointer_inside:
            return
        self.tracker.key_press(e.key.name)

    def _set_cursor(self, cursor: str) -> None:
        if cursor == self._cursor or self.interactive is None:
            return
        self._cursor = cursor
        _safe_call(self.interactive.style, f"cursor: {cursor}")

    def _on_tracker_end(self, rect: Rect) -> None:
        self._paint()
        logger.info(f"crop changed: image-space {self.get_view_port()}")
        for handler in list(self._change_handlers):
            try:
                handler(self)
            except Exception:
                logger.exception("Error in change handler")
