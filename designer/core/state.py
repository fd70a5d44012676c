from __future__ import annotations

import os
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional
from dataclasses import dataclass, field

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


APP_TITLE = "T-Shirt Designer"

INTERNAL_PATH = Path.cwd() / "_internal"
ENV_PATH      = INTERNAL_PATH / "env"
PUBLIC_PATH   = Path.cwd() / "public"
MOCKUPS_PATH  = PUBLIC_PATH / "tshirt"

# Drawing region in logical units
CANVAS_WIDTH = 400
CANVAS_HEIGHT = 500

CATEGORY_OPTIONS = ("tshirt", "hoodie", "polo-tshirt")
COLOR_OPTIONS = ("white", "black", "red")
DEFAULT_CATEGORY = "tshirt"
DEFAULT_COLOR = "white"

# New text objects
DEFAULT_TEXT = "Your Design Text"
DEFAULT_FONT_FAMILY = "Inter"
DEFAULT_FONT_SIZE = 30
DEFAULT_TEXT_FILL = "#000000"

# Uploaded images never exceed this share of the canvas
UPLOAD_MAX_RATIO = 0.8

UPLOAD_FILETYPES = [("Image Files", "*.png *.jpg *.jpeg *.gif *.bmp *.webp")]

NOT_READY_MESSAGE = "Please wait, the design canvas is still loading."
INIT_FAILURE_MESSAGE = "Error: the design canvas could not be created."


@dataclass
class DesignerSettings:
    mockup_root: str = str(MOCKUPS_PATH)
    log_level: str = "DEBUG"
    request_timeout: float = 10.0


def load_settings(env_path: str | Path = ENV_PATH) -> DesignerSettings:
    """Build settings from the process environment.

    Values from the optional dotenv file at ``env_path`` are loaded first
    (existing environment variables win), then the ``DESIGNER_*`` variables
    are read. Malformed numbers keep their defaults.
    """
    p = Path(env_path)
    if p.exists():
        load_dotenv(p)

    settings = DesignerSettings()
    root = os.environ.get("DESIGNER_MOCKUP_ROOT", "").strip()
    if root:
        settings.mockup_root = root
    level = os.environ.get("DESIGNER_LOG_LEVEL", "").strip()
    if level:
        if isinstance(logging.getLevelName(level.upper()), int):
            settings.log_level = level.upper()
        else:
            logger.warning(f"Ignoring invalid DESIGNER_LOG_LEVEL={level!r}")
    timeout = os.environ.get("DESIGNER_REQUEST_TIMEOUT", "").strip()
    if timeout:
        try:
            settings.request_timeout = max(0.1, float(timeout))
        except ValueError:
            logger.warning(f"Ignoring invalid DESIGNER_REQUEST_TIMEOUT={timeout!r}")
    return settings


class SessionPhase(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    DISPOSED = "disposed"


@dataclass
class EditorSession:
    """Observable state of one editing session.

    The surrounding screen reads these fields to draw selectors, the loading
    indicator and the notice dialog, and subscribes to be told when any of
    them change. Overlay objects are not stored here: the render surface owns
    them.
    """

    selected_category: str = DEFAULT_CATEGORY
    selected_color: str = DEFAULT_COLOR
    phase: SessionPhase = SessionPhase.UNINITIALIZED
    is_loading: bool = True
    pending_message: Optional[str] = None

    _listeners: List[Callable[["EditorSession"], None]] = field(default_factory=list, repr=False, compare=False)

    @property
    def is_ready(self) -> bool:
        return self.phase is SessionPhase.READY

    def subscribe(self, listener: Callable[["EditorSession"], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener failed")

    def set_category(self, category: str) -> bool:
        """Select a garment category; returns True when the value changed."""
        if category not in CATEGORY_OPTIONS:
            raise ValueError(f"Unknown category: {category!r}")
        if category == self.selected_category:
            return False
        self.selected_category = category
        self._notify()
        return True

    def set_color(self, color: str) -> bool:
        """Select a garment color; returns True when the value changed."""
        if color not in COLOR_OPTIONS:
            raise ValueError(f"Unknown color: {color!r}")
        if color == self.selected_color:
            return False
        self.selected_color = color
        self._notify()
        return True

    def set_phase(self, phase: SessionPhase) -> None:
        if phase is self.phase:
            return
        logger.debug(f"Session phase {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.is_loading = phase is SessionPhase.INITIALIZING
        self._notify()

    def set_message(self, message: str) -> None:
        self.pending_message = message
        self._notify()

    def clear_message(self) -> None:
        if self.pending_message is None:
            return
        self.pending_message = None
        self._notify()
