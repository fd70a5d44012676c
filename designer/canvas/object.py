from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Any, Tuple


@dataclass(eq=False)
class CanvasObject:
    """Encapsulates state for an item placed on the design canvas.

    Geometry is in canvas units. ``left``/``top`` locate the point named by
    ``origin_x``/``origin_y`` (e.g. the center for overlays created at the
    middle of the canvas, the top-left corner for the mockup background).
    ``width``/``height`` are the natural (unscaled) size of the content.
    """

    type: str  # "background", "text" or "image"

    # Identity assigned by the render surface on insertion
    object_id: Optional[int] = None

    left: float = 0.0
    top: float = 0.0
    origin_x: str = "left"  # "left", "center" or "right"
    origin_y: str = "top"   # "top", "center" or "bottom"
    scale_x: float = 1.0
    scale_y: float = 1.0
    width: float = 0.0
    height: float = 0.0

    # Interaction flags
    selectable: bool = True
    evented: bool = True
    has_controls: bool = True
    has_borders: bool = True
    hover_cursor: str = "move"

    # Text content (type == "text")
    text: str = ""
    font_family: str = "Inter"
    font_size: int = 30
    fill: str = "#000000"
    editable: bool = False
    editing: bool = False

    # Image content (type in {"image", "background"})
    source: Optional[str] = None

    # Runtime image caches (Pillow/tk)
    pil: Any = field(default=None, repr=False)    # PIL.Image.Image
    photo: Any = field(default=None, repr=False)  # ImageTk.PhotoImage
    photo_size: Optional[Tuple[int, int]] = field(default=None, repr=False)

    # Canvas item ids drawn for this object by the tk backend
    canvas_id: Optional[int] = field(default=None, repr=False)

    def is_background(self) -> bool:
        return self.type == "background"

    def is_text(self) -> bool:
        return self.type == "text"

    def scaled_size(self) -> Tuple[float, float]:
        return float(self.width) * float(self.scale_x), float(self.height) * float(self.scale_y)

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return the axis-aligned box (x0, y0, x1, y1) covered on the canvas."""
        w, h = self.scaled_size()
        if self.origin_x == "center":
            x0 = self.left - w / 2.0
        elif self.origin_x == "right":
            x0 = self.left - w
        else:
            x0 = self.left
        if self.origin_y == "center":
            y0 = self.top - h / 2.0
        elif self.origin_y == "bottom":
            y0 = self.top - h
        else:
            y0 = self.top
        return x0, y0, x0 + w, y0 + h

    def center(self) -> Tuple[float, float]:
        x0, y0, x1, y1 = self.bounds()
        return (x0 + x1) / 2.0, (y0 + y1) / 2.0

    def contains(self, x: float, y: float) -> bool:
        x0, y0, x1, y1 = self.bounds()
        return x0 <= x <= x1 and y0 <= y <= y1
