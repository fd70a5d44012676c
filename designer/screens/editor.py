import logging
from typing import Callable, Optional

import tkinter as tk
from tkinter import ttk, filedialog

from designer.core.app import Screen, App, COLOR_BG_LIGHT, COLOR_DANGER
from designer.core.state import (
    APP_TITLE,
    CATEGORY_OPTIONS,
    COLOR_OPTIONS,
    UPLOAD_FILETYPES,
    DesignerSettings,
    EditorSession,
    load_settings,
)
from designer.canvas.editor import CanvasEditor
from designer.canvas.tk_graphics import TkGraphics

logger = logging.getLogger(__name__)


class NoticeDialog(tk.Toplevel):
    """Modal box showing the session's pending message with an OK button."""

    def __init__(self, master: tk.Misc, message: str, on_close: Callable[[], None]) -> None:
        super().__init__(master)
        self.title(APP_TITLE)
        self.resizable(False, False)
        self.configure(bg=COLOR_BG_LIGHT)
        self.transient(master.winfo_toplevel())
        self._on_close = on_close
        self.label = ttk.Label(self, text=message, style="Notice.TLabel", wraplength=320, justify="center")
        self.label.pack(padx=24, pady=(20, 12))
        ttk.Button(self, text="OK", style="Accent.TButton", command=self.close).pack(pady=(0, 18))
        self.protocol("WM_DELETE_WINDOW", self.close)
        self.bind("<Return>", lambda _e: self.close())
        try:
            self.grab_set()
        except tk.TclError:
            # Window not viewable yet
            logger.debug("Notice dialog grab failed")

    def set_message(self, message: str) -> None:
        self.label.configure(text=message)

    def close(self) -> None:
        self._on_close()


class DesignerScreen(Screen):
    """Garment selectors, action buttons and the design canvas."""

    def __init__(self, master: tk.Tk, app: App,
                 settings: Optional[DesignerSettings] = None,
                 graphics_factory=TkGraphics) -> None:
        super().__init__(master, app)
        self.settings = settings or load_settings()
        self.editor = CanvasEditor(graphics_factory, settings=self.settings)
        self.editor.on_background_loaded = self._on_background_loaded
        session = self.editor.session

        self.category = tk.StringVar(value=session.selected_category)
        self.color = tk.StringVar(value=session.selected_color)
        self._notice: Optional[NoticeDialog] = None

        self.header(self, f"\U0001F9F5 {APP_TITLE}")

        row = ttk.Frame(self, style="Screen.TFrame")
        row.pack(pady=(0, 12))
        cat_box = ttk.Combobox(row, textvariable=self.category, values=CATEGORY_OPTIONS, state="readonly", width=12)
        cat_box.pack(side="left", padx=4)
        cat_box.bind("<<ComboboxSelected>>", self._on_category)
        color_box = ttk.Combobox(row, textvariable=self.color, values=COLOR_OPTIONS, state="readonly", width=8)
        color_box.pack(side="left", padx=4)
        color_box.bind("<<ComboboxSelected>>", self._on_color)
        ttk.Button(row, text="Add Text", style="Accent.TButton", command=self._add_text).pack(side="left", padx=4)
        ttk.Button(row, text="Upload Image", style="Success.TButton", command=self._upload_image).pack(side="left", padx=4)
        ttk.Button(row, text="Delete", style="Danger.TButton", command=self._delete).pack(side="left", padx=4)

        self.board = tk.Frame(self, bg="white", highlightthickness=1, highlightbackground="#d1d5db")
        self.board.pack(pady=4)

        self.status = ttk.Label(self, text="", style="Muted.TLabel")
        self.status.pack(pady=(8, 0))

        self._unsubscribe = session.subscribe(self._on_session_change)
        self._on_session_change(session)
        self.editor.mount(self.board)

    # --- Actions ---
    def _on_category(self, _evt=None):
        self.editor.set_category(self.category.get())

    def _on_color(self, _evt=None):
        self.editor.set_color(self.color.get())

    def _add_text(self):
        self.editor.add_text()

    def _upload_image(self):
        path = filedialog.askopenfilename(title="Upload Image", filetypes=UPLOAD_FILETYPES)
        if not path:
            return
        self.editor.upload_image(path, on_done=self._on_upload_done)

    def _delete(self):
        self.editor.delete_selected()

    # --- Feedback ---
    def _on_upload_done(self, obj, error):
        if error is not None:
            self.status.configure(text="That file could not be opened as an image.", foreground=COLOR_DANGER)
        else:
            self.status.configure(text="", foreground="")

    def _on_background_loaded(self, obj, error):
        if error is not None:
            self.status.configure(text="The garment mockup could not be loaded.", foreground=COLOR_DANGER)
        else:
            self.status.configure(text="", foreground="")

    def _on_session_change(self, session: EditorSession):
        if session.is_loading:
            self.status.configure(text="Loading design canvas...")
        elif self.status.cget("text") == "Loading design canvas...":
            self.status.configure(text="")
        if self.editor.init_error is not None:
            self.status.configure(text=str(self.editor.init_error), foreground=COLOR_DANGER)
        self._sync_notice(session.pending_message)

    def _sync_notice(self, message: Optional[str]):
        if message:
            if self._notice is None:
                self._notice = NoticeDialog(self, message, self.editor.acknowledge_message)
            else:
                self._notice.set_message(message)
        elif self._notice is not None:
            notice, self._notice = self._notice, None
            try:
                notice.grab_release()
                notice.destroy()
            except tk.TclError:
                logger.debug("Notice dialog already closed")

    def destroy(self):
        self._unsubscribe()
        self.editor.dispose()
        if self._notice is not None:
            try:
                self._notice.destroy()
            except tk.TclError:
                pass
            self._notice = None
        super().destroy()
