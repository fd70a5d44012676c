from .errors import DesignerError, InitFailure, NotReady, ResourceLoadFailure, Rejected
from .state import (
    APP_TITLE,
    CANVAS_WIDTH,
    CANVAS_HEIGHT,
    CATEGORY_OPTIONS,
    COLOR_OPTIONS,
    EditorSession,
    SessionPhase,
    DesignerSettings,
    load_settings,
)
