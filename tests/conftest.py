import io
import sys
from collections import deque
from pathlib import Path

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent))

from designer.core.state import CATEGORY_OPTIONS, COLOR_OPTIONS, DesignerSettings, EditorSession
from designer.canvas.editor import CanvasEditor
from designer.canvas.selection import normalize_key

# Natural mockup sizes per category; none match the canvas so scaling shows
MOCKUP_SIZES = {
    "tshirt": (200, 250),
    "hoodie": (640, 480),
    "polo-tshirt": (300, 300),
}


def png_bytes(width: int, height: int, color=(255, 0, 0, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class RecordingSubscription:
    def __init__(self, graphics, keys, handler):
        self.graphics = graphics
        self.keys = tuple(keys)
        self.handler = handler
        self.released = False

    def release(self):
        self.released = True


class RecordingGraphics:
    """Graphics backend double that records calls and queues deferred work.

    Deferred callbacks only run when a test calls ``run_pending``/``run_next``
    so completion order is under the test's control.
    """

    def __init__(self, target=None, width=400, height=500):
        self.target = target
        self.width = width
        self.height = height
        self.pending = deque()
        self.frames = []
        self.edits = []
        self.ended = []
        self.subscriptions = []
        self.pointer = None
        self.destroy_calls = 0
        self.typed = {}

    # backend protocol
    def defer(self, callback):
        self.pending.append(callback)

    def run_async(self, work, on_done):
        # Work runs inline when the queued entry is run
        def _run():
            try:
                result = work()
            except Exception as e:
                on_done(None, e)
                return
            on_done(result, None)
        self.pending.append(_run)

    def draw(self, objects, active):
        self.frames.append((tuple(objects), active))

    def measure_text(self, obj):
        return len(obj.text) * obj.font_size * 0.5, obj.font_size * 1.2

    def begin_text_edit(self, obj, on_commit):
        self.edits.append((obj, on_commit))

    def end_text_edit(self, obj):
        self.ended.append(obj)
        return self.typed.pop(id(obj), None)

    def subscribe_keys(self, keys, handler):
        sub = RecordingSubscription(self, keys, handler)
        self.subscriptions.append(sub)
        return sub

    def bind_pointer(self, controller):
        self.pointer = controller

    def destroy(self):
        self.destroy_calls += 1

    # test helpers
    def run_next(self):
        self.pending.popleft()()

    def run_pending(self):
        while self.pending:
            self.pending.popleft()()

    def press(self, key):
        """Deliver a tk keysym to every live subscription; True if consumed."""
        name = normalize_key(key)
        consumed = False
        for sub in self.subscriptions:
            if not sub.released and name in sub.keys:
                consumed = bool(sub.handler(key)) or consumed
        return consumed


@pytest.fixture
def mockup_root(tmp_path):
    root = tmp_path / "mockups"
    for category in CATEGORY_OPTIONS:
        w, h = MOCKUP_SIZES[category]
        for color in COLOR_OPTIONS:
            folder = root / category
            folder.mkdir(parents=True, exist_ok=True)
            (folder / f"{color}.png").write_bytes(png_bytes(w, h))
    return root


@pytest.fixture
def settings(mockup_root):
    return DesignerSettings(mockup_root=str(mockup_root), log_level="DEBUG", request_timeout=1.0)


@pytest.fixture
def graphics():
    return RecordingGraphics()


@pytest.fixture
def make_editor(settings, graphics):
    """Build (not mount) an editor wired to the recording backend."""
    def _make(width=400, height=500, session=None):
        graphics.width, graphics.height = width, height
        return CanvasEditor(
            lambda target, w, h: graphics,
            settings=settings,
            session=session or EditorSession(),
            width=width,
            height=height,
        )
    return _make


@pytest.fixture
def editor(make_editor, graphics):
    """Mounted editor with the initial mockup already loaded."""
    ed = make_editor()
    assert ed.mount(object())
    graphics.run_pending()
    yield ed
    ed.dispose()


@pytest.fixture
def wide_editor(make_editor, graphics):
    ed = make_editor(width=800, height=500)
    assert ed.mount(object())
    graphics.run_pending()
    yield ed
    ed.dispose()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove DESIGNER_* variables and restore them after the test."""
    for name in ("DESIGNER_MOCKUP_ROOT", "DESIGNER_LOG_LEVEL", "DESIGNER_REQUEST_TIMEOUT"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
