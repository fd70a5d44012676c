from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from designer.core.errors import InitFailure
from designer.core.state import (
    CANVAS_WIDTH,
    CANVAS_HEIGHT,
    INIT_FAILURE_MESSAGE,
    DesignerSettings,
    EditorSession,
    SessionPhase,
)
from designer.canvas.surface import RenderSurface
from designer.canvas.overlay import OverlayManager
from designer.canvas.selection import CanvasSelection, DELETE_KEYS, reject_not_ready
from designer.canvas.background import BackgroundManager, BackgroundCallback

logger = logging.getLogger(__name__)


class CanvasEditor:
    """One editing session: Uninitialized -> Initializing -> Ready -> Disposed.

    The graphics capability is injected as ``graphics_factory`` (called with
    ``(target, width, height)``) so the editor never reaches for a global
    drawing library. Components are created on :meth:`mount`; the keyboard
    subscription lives exactly as long as the Ready state.
    """

    def __init__(self, graphics_factory: Optional[Callable[..., Any]],
                 settings: Optional[DesignerSettings] = None,
                 session: Optional[EditorSession] = None,
                 width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT) -> None:
        self.graphics_factory = graphics_factory
        self.settings = settings or DesignerSettings()
        self.session = session or EditorSession()
        self.width = width
        self.height = height

        self.surface: Optional[RenderSurface] = None
        self.overlays: Optional[OverlayManager] = None
        self.selection: Optional[CanvasSelection] = None
        self.background: Optional[BackgroundManager] = None
        self._key_subscription = None
        self.init_error: Optional[InitFailure] = None
        # Receives the outcome of every background load (screen feedback)
        self.on_background_loaded: Optional[BackgroundCallback] = None

    @property
    def phase(self) -> SessionPhase:
        return self.session.phase

    def mount(self, target: Any = None) -> bool:
        """Build the surface inside ``target``; returns True once Ready.

        A missing or broken graphics capability ends the session with a
        persistent error message; no retry is attempted.
        """
        if self.session.phase is not SessionPhase.UNINITIALIZED:
            return self.session.is_ready
        self.session.set_phase(SessionPhase.INITIALIZING)
        try:
            self.surface = RenderSurface.initialize(
                target, self.width, self.height, self.graphics_factory,
                load_timeout=self.settings.request_timeout,
            )
        except InitFailure as e:
            logger.error(f"Canvas initialization failed: {e}")
            self.init_error = e
            self.session.set_message(INIT_FAILURE_MESSAGE)
            self.session.set_phase(SessionPhase.DISPOSED)
            return False

        self.overlays = OverlayManager(self.surface, self.session)
        self.selection = CanvasSelection(self.session, self.surface, self.overlays)
        self.background = BackgroundManager(self.surface, self.session, self.settings.mockup_root)
        self.session.set_phase(SessionPhase.READY)

        self._key_subscription = self.surface.subscribe_keys(DELETE_KEYS, self.selection.on_key)
        self.surface.graphics.bind_pointer(self.selection)
        self.surface.render_all()
        self.refresh_background()
        return True

    def refresh_background(self) -> bool:
        if self.background is None:
            return False
        return self.background.set_background(
            self.session.selected_category,
            self.session.selected_color,
            self._background_done,
        )

    def _background_done(self, obj, error) -> None:
        if self.on_background_loaded is not None:
            self.on_background_loaded(obj, error)

    def set_category(self, category: str) -> bool:
        changed = self.session.set_category(category)
        if changed:
            self.refresh_background()
        return changed

    def set_color(self, color: str) -> bool:
        changed = self.session.set_color(color)
        if changed:
            self.refresh_background()
        return changed

    def add_text(self):
        if self.selection is None:
            return self._not_mounted("Add text")
        return self.selection.add_text()

    def upload_image(self, blob: Any, on_done=None):
        if self.selection is None:
            return self._not_mounted("Upload image")
        return self.selection.upload_image(blob, on_done)

    def delete_selected(self):
        if self.selection is None:
            return self._not_mounted("Delete")
        return self.selection.delete_selected()

    def _not_mounted(self, action: str):
        # The initialization error stays on screen
        return reject_not_ready(self.session, action, notify=self.init_error is None)

    def acknowledge_message(self) -> None:
        self.session.clear_message()

    def dispose(self) -> None:
        """Tear the session down; repeated calls do nothing."""
        if self._key_subscription is not None:
            try:
                self._key_subscription.release()
            except Exception:
                logger.exception("Failed to release keyboard subscription")
            self._key_subscription = None
        if self.surface is not None:
            self.surface.dispose()
        if self.session.phase is not SessionPhase.DISPOSED:
            self.session.set_phase(SessionPhase.DISPOSED)
