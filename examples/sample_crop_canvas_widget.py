from __future__ import annotations

import numpy as np
from nicegui import ui

from cropwidgets.crop_canvas.crop_canvas_widget import CropCanvasConfig, CropCanvasWidget
from cropwidgets.utils.logging import configure_logging


def create_demo_image(height: int = 240, width: int = 400) -> np.ndarray:
    """Simple demo image: diagonal sine bands + noise, wider than tall so rotation is visible."""
    yy, xx = np.mgrid[0:height, 0:width]
    img = 0.5 + 0.5 * np.sin((xx + 2 * yy) / 18.0)
    img += 0.05 * np.random.randn(height, width)
    return np.clip(img, 0.0, 1.0)


if __name__ in {"__main__", "__mp_main__"}:
    configure_logging(level="DEBUG")

    widget = CropCanvasWidget(create_demo_image(), config=CropCanvasConfig(zoom=1.5))

    with ui.row().classes("w-full gap-6"):
        with ui.column().classes("items-start gap-2 w-2/3"):
            ui.label("CropCanvasWidget demo").classes("text-lg font-bold")
            widget.render()

        with ui.column().classes("items-start gap-2 w-1/4"):
            crop_label = ui.label("")

            def show_crop(w: CropCanvasWidget) -> None:
                left, top, right, bottom = w.get_view_port().as_box()
                crop_label.text = (
                    f"crop L={left} T={top} R={right} B={bottom} "
                    f"rotation={w.get_rotation():g}"
                )

            widget.on_change(show_crop)
            show_crop(widget)

            with ui.row():
                ui.button("Rotate left", on_click=widget.anticlockwise)
                ui.button("Rotate right", on_click=widget.clockwise)

            zoom_slider = ui.slider(min=1.0, max=4.0, step=0.1, value=1.5)
            zoom_slider.on_value_change(lambda e: widget.zoom(float(e.value)))

            ui.checkbox("Resizable", value=True, on_change=lambda e: widget.set_resizable(e.value))
            ui.checkbox("Draggable", value=True, on_change=lambda e: widget.set_draggable(e.value))
            ui.checkbox("Drawable", value=True, on_change=lambda e: widget.set_drawable(e.value))

            preview = ui.image().classes("w-64")

            def update_preview() -> None:
                img = widget.render_preview(scale=0.5)
                if img is not None:
                    preview.set_source(img)

            ui.button("Preview", on_click=update_preview)

    ui.run()
