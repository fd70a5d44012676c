from __future__ import annotations

import logging
from typing import Any, Optional, Tuple, Union

from designer.core.state import EditorSession, NOT_READY_MESSAGE
from designer.core.errors import NotReady, Rejected
from designer.canvas.object import CanvasObject
from designer.canvas.surface import RenderSurface
from designer.canvas.overlay import OverlayManager, UploadCallback

logger = logging.getLogger(__name__)

DELETE_KEYS = ("Delete", "Backspace")
# tk keysyms and browser-style names map to the same shortcut
_KEY_ALIASES = {"BackSpace": "Backspace", "KP_Delete": "Delete"}

WHEEL_STEP = 1.1


def normalize_key(key: str) -> str:
    return _KEY_ALIASES.get(key, key)


def reject_not_ready(session: EditorSession, action: str, notify: bool = True) -> Rejected:
    logger.info(f"{action} requested before the canvas was ready")
    if notify:
        session.set_message(NOT_READY_MESSAGE)
    return Rejected(NotReady(NOT_READY_MESSAGE))


class CanvasSelection:
    """Route user intents to the overlay model, enforcing readiness.

    Every mutating entry point returns :class:`Rejected` (and posts the
    "please wait" notice) instead of raising while the session is not ready.
    Pointer handlers are silently ignored in that case.
    """

    def __init__(self, session: EditorSession, surface: RenderSurface, overlays: OverlayManager) -> None:
        self.session = session
        self.surface = surface
        self.overlays = overlays
        self._drag_last: Optional[Tuple[float, float]] = None

    def _ready(self) -> bool:
        return self.session.is_ready and not self.surface.is_disposed

    def _reject(self, action: str) -> Rejected:
        return reject_not_ready(self.session, action)

    # --- Commands ---
    def add_text(self) -> Union[CanvasObject, Rejected]:
        if not self._ready():
            return self._reject("Add text")
        return self.overlays.add_text()

    def upload_image(self, blob: Any, on_done: Optional[UploadCallback] = None) -> Union[bool, None, Rejected]:
        """Add an uploaded image; ``None`` when no file was chosen."""
        if not self._ready():
            return self._reject("Upload image")
        if blob is None or blob == "" or blob == b"":
            return None
        return self.overlays.upload_image(blob, on_done)

    def delete_selected(self) -> Union[CanvasObject, None, Rejected]:
        """Remove the active object unless its text is being edited."""
        if not self._ready():
            return self._reject("Delete")
        active = self.surface.get_active_object()
        if active is None or active.editing:
            return None
        self.surface.remove(active)
        self.surface.discard_active_object()
        self.surface.render_all()
        logger.debug(f"Deleted object #{active.object_id}")
        return active

    # --- Keyboard ---
    def on_key(self, key: str) -> bool:
        """Handle a Delete/Backspace press; True means the key was consumed."""
        if normalize_key(key) not in DELETE_KEYS:
            return False
        if not self._ready():
            return False
        active = self.surface.get_active_object()
        if active is None or active.editing:
            return False
        self.delete_selected()
        return True

    # --- Pointer ---
    def on_press(self, x: float, y: float) -> Optional[CanvasObject]:
        if not self._ready():
            return None
        target = self.surface.find_at(x, y)
        if target is None or not target.selectable:
            self.surface.discard_active_object()
            self._drag_last = None
        else:
            self.surface.set_active_object(target)
            self._drag_last = None if target.editing else (x, y)
        self.surface.render_all()
        return target

    def on_drag(self, x: float, y: float) -> None:
        if not self._ready() or self._drag_last is None:
            return
        active = self.surface.get_active_object()
        if active is None:
            return
        lx, ly = self._drag_last
        self.surface.move_object(active, x - lx, y - ly)
        self._drag_last = (x, y)
        self.surface.render_all()

    def on_release(self) -> None:
        self._drag_last = None

    def on_double_click(self, x: float, y: float) -> bool:
        if not self._ready():
            return False
        target = self.surface.find_at(x, y)
        if target is None or not target.is_text():
            return False
        self.surface.set_active_object(target)
        self.surface.render_all()
        return self.surface.enter_editing(target)

    def on_wheel(self, delta: float) -> None:
        if not self._ready() or delta == 0:
            return
        active = self.surface.get_active_object()
        if active is None or active.editing:
            return
        factor = WHEEL_STEP if delta > 0 else 1.0 / WHEEL_STEP
        self.surface.scale_object(active, factor)
        self.surface.render_all()
