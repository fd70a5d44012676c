from __future__ import annotations

import logging
from typing import Callable, Optional

from designer.core.state import EditorSession
from designer.core.errors import ResourceLoadFailure
from designer.canvas.object import CanvasObject
from designer.canvas.surface import RenderSurface
from designer.canvas.images import fill_scale, mockup_source

logger = logging.getLogger(__name__)

BackgroundCallback = Callable[[Optional[CanvasObject], Optional[ResourceLoadFailure]], None]


class BackgroundManager:
    """Own the single mockup image drawn underneath every overlay.

    Each request is numbered; only the most recently requested image is
    applied, so slow loads that finish after a newer selection are dropped.
    Overlay objects are never touched.
    """

    def __init__(self, surface: RenderSurface, session: EditorSession, mockup_root: str) -> None:
        self.surface = surface
        self.session = session
        self.mockup_root = mockup_root
        self.current: Optional[CanvasObject] = None
        self._request_seq = 0

    def set_background(self, category: str, color: str, on_done: Optional[BackgroundCallback] = None) -> bool:
        """Start loading the mockup for ``category``/``color``.

        Returns False (and does nothing) while the session is not ready.
        ``on_done(obj, None)`` or ``on_done(None, error)`` is called when the
        request completes; superseded requests never call it.
        """
        if not self.session.is_ready or self.surface.is_disposed:
            return False
        self._request_seq += 1
        seq = self._request_seq
        source = mockup_source(self.mockup_root, category, color)
        logger.debug(f"Loading mockup #{seq}: {source}")

        def _loaded(img: CanvasObject) -> None:
            if not self._is_current(seq):
                return
            self._apply(img)
            if on_done is not None:
                on_done(img, None)

        def _failed(err: ResourceLoadFailure) -> None:
            if not self._is_current(seq):
                return
            logger.error(f"Mockup {category}/{color} could not be loaded; keeping previous background")
            if on_done is not None:
                on_done(None, err)

        self.surface.load_image_async(source, _loaded, _failed, object_type="background")
        return True

    def _is_current(self, seq: int) -> bool:
        if seq != self._request_seq:
            logger.debug(f"Discarding stale mockup load #{seq} (latest #{self._request_seq})")
            return False
        if not self.session.is_ready or self.surface.is_disposed:
            logger.debug(f"Discarding mockup load #{seq}: session no longer ready")
            return False
        return True

    def _apply(self, img: CanvasObject) -> None:
        sx, sy = fill_scale(self.surface.width, self.surface.height, img.width, img.height)
        img.left = 0.0
        img.top = 0.0
        img.origin_x = "left"
        img.origin_y = "top"
        img.scale_x = sx
        img.scale_y = sy
        img.selectable = False
        img.evented = False
        img.has_borders = False
        img.has_controls = False
        img.hover_cursor = "default"
        # Old layer goes first so two bottom layers never coexist
        if self.current is not None:
            self.surface.remove(self.current)
        self.surface.insert_at_bottom(img)
        self.current = img
        self.surface.render_all()
