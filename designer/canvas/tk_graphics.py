from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import tkinter as tk
import tkinter.font as tkfont
from PIL import Image, ImageTk

from designer.canvas.object import CanvasObject

logger = logging.getLogger(__name__)

BORDER_COLOR = "#4f46e5"
HANDLE_SIZE = 8
# How often the main loop checks on background work
POLL_MS = 30

# Keys of the shortcut table mapped to tk event sequences
_KEY_SEQUENCES = {
    "Delete": ("<KeyPress-Delete>", "<KeyPress-KP_Delete>"),
    "Backspace": ("<KeyPress-BackSpace>",),
}

# Object hover cursors mapped to tk cursor names
_CURSORS = {"default": "", "move": "fleur", "text": "xterm"}


class KeySubscription:
    """Root-level key bindings released together."""

    def __init__(self, widget: tk.Misc, bindings: List[Tuple[str, str]]) -> None:
        self.widget = widget
        self.bindings = bindings

    def release(self) -> None:
        bindings, self.bindings = self.bindings, []
        for seq, funcid in bindings:
            try:
                self.widget.unbind(seq, funcid)
            except tk.TclError:
                # Root already destroyed
                pass


class TkGraphics:
    """Draw the design canvas on a ``tk.Canvas``.

    Images are rendered through Pillow at their scaled size and the resulting
    PhotoImage is kept on the object so Tk does not garbage-collect it. Text
    editing uses an Entry placed over the text object.
    """

    def __init__(self, target: Optional[tk.Misc], width: int, height: int) -> None:
        self.canvas = tk.Canvas(
            target,
            width=width,
            height=height,
            bg="white",
            highlightthickness=0,
            bd=0,
        )
        self.canvas.pack()
        self.root = self.canvas.winfo_toplevel()
        self._after_ids: set = set()
        self._editor: Optional[Tuple[CanvasObject, tk.Entry, int]] = None
        self._surface = None
        self._destroyed = False

    # --- Scheduling ---
    def _schedule(self, callback: Callable[[], None], delay_ms: Optional[int] = None) -> None:
        if self._destroyed:
            return
        holder: List[str] = []

        def _run() -> None:
            if holder:
                self._after_ids.discard(holder[0])
            try:
                callback()
            except Exception:
                logger.exception("Deferred canvas callback failed")
        if delay_ms is None:
            aid = self.canvas.after_idle(_run)
        else:
            aid = self.canvas.after(delay_ms, _run)
        holder.append(aid)
        self._after_ids.add(aid)

    def defer(self, callback: Callable[[], None]) -> None:
        self._schedule(callback)

    def run_async(self, work: Callable[[], object],
                  on_done: Callable[[object, Optional[BaseException]], None]) -> None:
        """Run ``work`` on a daemon thread and report back on the Tk thread.

        The worker never touches Tk; the main loop polls for it with ``after``.
        """
        if self._destroyed:
            return
        outcome: Dict[str, object] = {}

        def _worker() -> None:
            try:
                outcome["result"] = work()
            except Exception as e:
                logger.debug(f"Background work failed: {e}")
                outcome["error"] = e

        thread = threading.Thread(target=_worker, daemon=True)
        thread.start()

        def _poll() -> None:
            if thread.is_alive():
                self._schedule(_poll, POLL_MS)
                return
            on_done(outcome.get("result"), outcome.get("error"))
        self._schedule(_poll, POLL_MS)

    # --- Drawing ---
    def measure_text(self, obj: CanvasObject) -> Tuple[float, float]:
        font = self._font(obj, 1.0)
        lines = str(obj.text or " ").split("\n")
        w = max(font.measure(line) for line in lines)
        h = font.metrics("linespace") * len(lines)
        return float(max(1, w)), float(max(1, h))

    def _font(self, obj: CanvasObject, scale: float) -> tkfont.Font:
        px = max(1, int(round(float(obj.font_size) * scale)))
        return tkfont.Font(root=self.root, family=obj.font_family, size=-px)

    def _photo(self, obj: CanvasObject) -> Optional[ImageTk.PhotoImage]:
        if obj.pil is None:
            return None
        w, h = obj.scaled_size()
        size = (max(1, int(round(w))), max(1, int(round(h))))
        if obj.photo is not None and obj.photo_size == size:
            return obj.photo
        try:
            resized = obj.pil.resize(size, Image.LANCZOS)
            obj.photo = ImageTk.PhotoImage(resized, master=self.root)
            obj.photo_size = size
        except Exception as e:
            logger.exception(f"Failed to render image object #{obj.object_id}: {e}")
            return None
        return obj.photo

    def draw(self, objects: Sequence[CanvasObject], active: Optional[CanvasObject]) -> None:
        if self._destroyed:
            return
        self.canvas.delete("design")
        for obj in objects:
            x0, y0, x1, y1 = obj.bounds()
            if obj.type in ("image", "background"):
                photo = self._photo(obj)
                if photo is None:
                    continue
                obj.canvas_id = self.canvas.create_image(x0, y0, image=photo, anchor="nw", tags=("design",))
            elif obj.is_text():
                if obj.editing:
                    continue
                cx, cy = obj.center()
                obj.canvas_id = self.canvas.create_text(
                    cx, cy,
                    text=obj.text,
                    fill=obj.fill,
                    font=self._font(obj, obj.scale_y),
                    anchor="center",
                    justify="center",
                    tags=("design",),
                )
        if active is not None:
            self._draw_selection(active)
        if self._editor is not None:
            self.canvas.tag_raise(self._editor[2])

    def _draw_selection(self, obj: CanvasObject) -> None:
        x0, y0, x1, y1 = obj.bounds()
        if obj.has_borders:
            self.canvas.create_rectangle(x0, y0, x1, y1, outline=BORDER_COLOR, dash=(4, 2), tags=("design",))
        if obj.has_controls:
            hs = HANDLE_SIZE / 2.0
            for hx, hy in ((x0, y0), (x1, y0), (x0, y1), (x1, y1)):
                self.canvas.create_rectangle(hx - hs, hy - hs, hx + hs, hy + hs,
                                             outline=BORDER_COLOR, fill="white", tags=("design",))

    # --- Text editing ---
    def begin_text_edit(self, obj: CanvasObject, on_commit: Callable[[str], None]) -> None:
        if self._destroyed:
            return
        self._close_editor()
        cx, cy = obj.center()
        entry = tk.Entry(
            self.canvas,
            font=self._font(obj, obj.scale_y),
            fg=obj.fill,
            justify="center",
            relief="flat",
            highlightthickness=1,
            highlightcolor=BORDER_COLOR,
        )
        entry.insert(0, obj.text)
        entry.select_range(0, "end")
        wid = self.canvas.create_window(cx, cy, window=entry, anchor="center")
        self._editor = (obj, entry, wid)

        def _commit(_evt=None):
            on_commit(entry.get())
            return "break"
        entry.bind("<Return>", _commit)
        entry.bind("<Escape>", _commit)
        entry.bind("<FocusOut>", _commit)
        entry.focus_set()

    def end_text_edit(self, obj: CanvasObject) -> Optional[str]:
        if self._editor is None or self._editor[0] is not obj:
            return None
        return self._close_editor()

    def _close_editor(self) -> Optional[str]:
        if self._editor is None:
            return None
        _obj, entry, wid = self._editor
        self._editor = None
        text = None
        try:
            text = entry.get()
            entry.unbind("<FocusOut>")
            self.canvas.delete(wid)
            entry.destroy()
            self.canvas.focus_set()
        except tk.TclError:
            logger.debug("Text editor already destroyed")
        return text

    # --- Input ---
    def subscribe_keys(self, keys: Sequence[str], handler: Callable[[str], bool]) -> KeySubscription:
        def _on_key(e):
            return "break" if handler(e.keysym) else None

        bindings: List[Tuple[str, str]] = []
        for key in keys:
            for seq in _KEY_SEQUENCES.get(key, (f"<KeyPress-{key}>",)):
                funcid = self.root.bind(seq, _on_key, add="+")
                bindings.append((seq, funcid))
        return KeySubscription(self.root, bindings)

    def bind_pointer(self, controller) -> None:
        c = self.canvas
        self._surface = controller.surface
        c.bind("<ButtonPress-1>", lambda e: controller.on_press(e.x, e.y))
        c.bind("<B1-Motion>", lambda e: controller.on_drag(e.x, e.y))
        c.bind("<ButtonRelease-1>", lambda _e: controller.on_release())
        c.bind("<Double-Button-1>", lambda e: controller.on_double_click(e.x, e.y))
        c.bind("<MouseWheel>", lambda e: controller.on_wheel(e.delta))
        # X11 reports wheel steps as buttons 4/5
        c.bind("<Button-4>", lambda _e: controller.on_wheel(1))
        c.bind("<Button-5>", lambda _e: controller.on_wheel(-1))
        c.bind("<Motion>", self._on_motion)

    def _on_motion(self, e) -> None:
        if self._surface is None or self._destroyed:
            return
        obj = self._surface.find_at(e.x, e.y)
        cursor = obj.hover_cursor if obj is not None else "default"
        try:
            self.canvas.configure(cursor=_CURSORS.get(cursor, cursor))
        except tk.TclError:
            logger.debug(f"Unknown cursor {cursor!r}")

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        for aid in list(self._after_ids):
            try:
                self.canvas.after_cancel(aid)
            except tk.TclError:
                pass
        self._after_ids.clear()
        self._close_editor()
        self._surface = None
        try:
            self.canvas.destroy()
        except tk.TclError:
            logger.debug("Canvas already destroyed")
