from .core.state import APP_TITLE

__version__ = "1.0.0"
