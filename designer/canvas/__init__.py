from .object import CanvasObject
from .surface import RenderSurface
from .background import BackgroundManager
from .overlay import OverlayManager
from .selection import CanvasSelection
from .editor import CanvasEditor
