from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from designer.core.errors import ResourceLoadFailure
from designer.core.state import (
    EditorSession,
    DEFAULT_TEXT,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_TEXT_FILL,
    UPLOAD_MAX_RATIO,
)
from designer.canvas.object import CanvasObject
from designer.canvas.surface import RenderSurface
from designer.canvas.images import contain_scale, read_as_data_uri

logger = logging.getLogger(__name__)

UploadCallback = Callable[[Optional[CanvasObject], Optional[ResourceLoadFailure]], None]


class OverlayManager:
    """Create the user's text and image objects on top of the mockup.

    Readiness is checked by the caller (:class:`CanvasSelection`); the
    manager assumes a live surface.
    """

    def __init__(self, surface: RenderSurface, session: EditorSession) -> None:
        self.surface = surface
        self.session = session

    def add_text(self, text: str = DEFAULT_TEXT) -> CanvasObject:
        """Add a text object at the canvas center and start editing it.

        Editing begins after the first redraw so the inline editor has a
        drawn object to attach to.
        """
        obj = CanvasObject(
            type="text",
            left=self.surface.width / 2.0,
            top=self.surface.height / 2.0,
            origin_x="center",
            origin_y="center",
            text=text,
            font_family=DEFAULT_FONT_FAMILY,
            font_size=DEFAULT_FONT_SIZE,
            fill=DEFAULT_TEXT_FILL,
            editable=True,
            selectable=True,
            evented=True,
            has_controls=True,
            has_borders=True,
        )
        self.surface.add(obj)
        self.surface.set_active_object(obj)
        self.surface.render_all()

        def _start_editing() -> None:
            if obj in self.surface:
                self.surface.enter_editing(obj)
        self.surface.call_after_render(_start_editing)
        logger.debug(f"Added text object #{obj.object_id}")
        return obj

    def upload_image(self, blob: Any, on_done: Optional[UploadCallback] = None) -> bool:
        """Read ``blob`` and place the decoded image centered on the canvas.

        Reading and decoding both happen off the event loop; the outcome is
        reported through ``on_done``.
        """
        def _failed(err: ResourceLoadFailure) -> None:
            logger.warning(f"Upload rejected: {err}")
            if on_done is not None:
                on_done(None, err)

        def _loaded(img: CanvasObject) -> None:
            if not self.session.is_ready:
                logger.debug("Dropping uploaded image: session no longer ready")
                return
            self._place_image(img)
            if on_done is not None:
                on_done(img, None)

        def _read(data_uri: Optional[str], error: Optional[BaseException]) -> None:
            if error is not None:
                if not isinstance(error, ResourceLoadFailure):
                    error = ResourceLoadFailure(f"Failed to read upload: {error}", source="<upload>")
                _failed(error)
                return
            self.surface.load_image_async(data_uri, _loaded, _failed)

        self.surface.run_async(lambda: read_as_data_uri(blob), _read)
        return True

    def _place_image(self, img: CanvasObject) -> None:
        scale = contain_scale(self.surface.width, self.surface.height, img.width, img.height,
                              ratio=UPLOAD_MAX_RATIO)
        img.left = self.surface.width / 2.0
        img.top = self.surface.height / 2.0
        img.origin_x = "center"
        img.origin_y = "center"
        img.scale_x = scale
        img.scale_y = scale
        img.selectable = True
        img.evented = True
        img.has_controls = True
        img.has_borders = True
        self.surface.add(img)
        self.surface.set_active_object(img)
        self.surface.render_all()
        logger.debug(f"Added image object #{img.object_id} at scale {scale:.3f}")
