# App (Tk), ttk styles, base Screen
import tkinter as tk
from tkinter import ttk

from .state import APP_TITLE

# Shared UI colors
COLOR_BG_SCREEN = "#dbe4ff"
COLOR_BG_DARK = "#3730a3"
COLOR_BG_LIGHT = "#ffffff"
COLOR_TEXT = "#1f2937"
COLOR_ACCENT = "#4f46e5"
COLOR_SUCCESS = "#16a34a"
COLOR_DANGER = "#dc2626"


def apply_styles(root):
    style = ttk.Style(root)
    style.theme_use("clam")
    style.configure("Screen.TFrame", background=COLOR_BG_SCREEN)
    style.configure("Title.TFrame",  background=COLOR_BG_DARK)
    style.configure("Brand.TLabel",  background=COLOR_BG_DARK, foreground="white", font=("Inter", 18))
    style.configure("H1.TLabel",     background=COLOR_BG_SCREEN, foreground=COLOR_BG_DARK, font=("Inter", 26, "bold"))
    style.configure("Muted.TLabel",  background=COLOR_BG_SCREEN, foreground="#4b5563")
    style.configure("Notice.TLabel", background=COLOR_BG_LIGHT, foreground=COLOR_TEXT, font=("Inter", 13, "bold"))
    for name, color in (("Accent", COLOR_ACCENT), ("Success", COLOR_SUCCESS), ("Danger", COLOR_DANGER)):
        style.configure(f"{name}.TButton", background=color, foreground="white", padding=(12, 6))
        style.map(f"{name}.TButton", background=[("active", COLOR_BG_DARK)])


class App(tk.Tk):
    def __init__(self, title: str = APP_TITLE, size: str = "720x760"):
        super().__init__()
        self.title(title)
        self.size = (int(size.split("x")[0]), int(size.split("x")[1]))
        self.minsize(self.size[0], self.size[1])
        self.geometry(size)
        self.configure(bg=COLOR_BG_SCREEN)
        apply_styles(self)
        self.current = None

    def show_screen(self, screen_cls, **kwargs):
        if self.current is not None:
            self.current.destroy()
        self.current = screen_cls(self, self, **kwargs)
        self.current.pack(expand=True, fill="both")
        return self.current

    def quit_app(self):
        if self.current is not None:
            self.current.destroy()
            self.current = None
        self.destroy()


class Screen(ttk.Frame):
    def __init__(self, master: tk.Tk, app: App):
        super().__init__(master)
        self.app = app
        self.configure(style="Screen.TFrame")

    def brand_bar(self, parent):
        bar = ttk.Frame(parent, style="Title.TFrame", height=36)
        bar.pack(fill="x")
        bar.pack_propagate(False)
        ttk.Label(bar, text=APP_TITLE, style="Brand.TLabel").pack(side="left", padx=8)
        return bar

    def header(self, parent, title_text: str):
        self.brand_bar(parent)
        ttk.Label(parent, text=title_text, style="H1.TLabel").pack(pady=(18, 8))
