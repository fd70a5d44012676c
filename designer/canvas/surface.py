from __future__ import annotations

import logging
from itertools import count
from typing import Any, Callable, Iterable, List, Optional, Tuple

from designer.core.errors import InitFailure, ResourceLoadFailure
from designer.canvas.object import CanvasObject
from designer.canvas.images import describe_source, open_image

logger = logging.getLogger(__name__)

MIN_SCALE = 0.05


class RenderSurface:
    """Ordered object list, selection and transforms of the design canvas.

    The surface keeps the model; pixels are produced by a graphics backend
    created from the factory passed to :meth:`initialize`. A backend is any
    object providing::

        draw(objects, active)
        measure_text(obj) -> (width, height)
        defer(callback)
        run_async(work, on_done)  # on_done(result, error) back on the event loop
        begin_text_edit(obj, on_commit)
        end_text_edit(obj) -> text typed so far, or None
        subscribe_keys(keys, handler) -> object with release()
        bind_pointer(controller)
        destroy()

    Mutations only become visible after :meth:`render_all`.
    """

    def __init__(self, graphics: Any, width: int, height: int, load_timeout: float = 10.0) -> None:
        self.graphics = graphics
        self.width = int(width)
        self.height = int(height)
        self.load_timeout = load_timeout
        self._objects: List[CanvasObject] = []
        self._active: Optional[CanvasObject] = None
        self._ids = count(1)
        self._disposed = False

    @classmethod
    def initialize(cls, target: Any, width: int, height: int,
                   graphics_factory: Optional[Callable[..., Any]], **kwargs) -> "RenderSurface":
        """Create the backend inside ``target`` and wrap it.

        Raises:
            InitFailure: when no graphics capability was provided or the
                backend could not be constructed.
        """
        if graphics_factory is None:
            raise InitFailure("No graphics backend available")
        try:
            graphics = graphics_factory(target, width, height)
        except Exception as e:
            raise InitFailure(f"Failed to create drawing surface: {e}") from e
        if graphics is None:
            raise InitFailure("Graphics backend returned no surface")
        return cls(graphics, width, height, **kwargs)

    # --- Object collection ---
    @property
    def objects(self) -> Tuple[CanvasObject, ...]:
        return tuple(self._objects)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def index_of(self, obj: CanvasObject) -> int:
        for i, o in enumerate(self._objects):
            if o is obj:
                return i
        return -1

    def __contains__(self, obj: CanvasObject) -> bool:
        return self.index_of(obj) >= 0

    def _prepare(self, obj: CanvasObject) -> None:
        if obj.object_id is None:
            obj.object_id = next(self._ids)
        if obj.is_text():
            w, h = self.graphics.measure_text(obj)
            obj.width, obj.height = float(w), float(h)

    def add(self, obj: CanvasObject) -> CanvasObject:
        """Insert ``obj`` above every existing object."""
        if obj in self:
            return obj
        self._prepare(obj)
        self._objects.append(obj)
        return obj

    def insert_at_bottom(self, obj: CanvasObject) -> CanvasObject:
        """Insert ``obj`` at z-index 0."""
        if obj in self:
            self._objects.remove(obj)
        self._prepare(obj)
        self._objects.insert(0, obj)
        return obj

    def remove(self, obj: CanvasObject) -> bool:
        idx = self.index_of(obj)
        if idx < 0:
            return False
        if self._active is obj:
            self.discard_active_object()
        del self._objects[idx]
        return True

    def overlays(self) -> List[CanvasObject]:
        return [o for o in self._objects if not o.is_background()]

    # --- Selection ---
    def get_active_object(self) -> Optional[CanvasObject]:
        return self._active

    def set_active_object(self, obj: CanvasObject) -> None:
        if obj not in self:
            raise ValueError("Object is not on the canvas")
        if not obj.selectable:
            raise ValueError("Object is not selectable")
        if self._active is not None and self._active is not obj and self._active.editing:
            self.exit_editing(self._active)
        self._active = obj

    def discard_active_object(self) -> None:
        active = self._active
        if active is not None and active.editing:
            self.exit_editing(active)
        self._active = None

    def find_at(self, x: float, y: float) -> Optional[CanvasObject]:
        """Return the topmost evented object under (x, y)."""
        for obj in reversed(self._objects):
            if obj.evented and obj.contains(x, y):
                return obj
        return None

    # --- Transforms ---
    def move_object(self, obj: CanvasObject, dx: float, dy: float) -> None:
        obj.left += dx
        obj.top += dy

    def scale_object(self, obj: CanvasObject, factor: float) -> None:
        if factor <= 0:
            raise ValueError("Scale factor must be positive")
        obj.scale_x = max(MIN_SCALE, obj.scale_x * factor)
        obj.scale_y = max(MIN_SCALE, obj.scale_y * factor)

    # --- Text editing ---
    def enter_editing(self, obj: CanvasObject) -> bool:
        if self._disposed or obj not in self or not obj.is_text() or not obj.editable:
            return False
        if obj.editing:
            return True
        if self._active is not obj:
            self.set_active_object(obj)
        obj.editing = True
        self.graphics.begin_text_edit(obj, lambda text: self.exit_editing(obj, text))
        return True

    def exit_editing(self, obj: CanvasObject, text: Optional[str] = None) -> None:
        if not obj.editing:
            return
        obj.editing = False
        if self._disposed:
            return
        typed = self.graphics.end_text_edit(obj)
        if text is None:
            text = typed
        if text is not None:
            obj.text = text
            w, h = self.graphics.measure_text(obj)
            obj.width, obj.height = float(w), float(h)
        self.render_all()

    # --- Scheduling and loading ---
    def call_after_render(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the pending redraw has been processed."""
        if self._disposed:
            return

        def _run() -> None:
            if self._disposed:
                return
            callback()
        self.graphics.defer(_run)

    def run_async(self, work: Callable[[], Any],
                  on_done: Callable[[Any, Optional[BaseException]], None]) -> None:
        """Run blocking ``work`` off the event loop.

        ``on_done(result, error)`` is called back on the event loop; nothing is
        called once the surface has been disposed.
        """
        if self._disposed:
            return

        def _done(result: Any, error: Optional[BaseException]) -> None:
            if self._disposed:
                logger.debug("Dropping background work completion for disposed surface")
                return
            on_done(result, error)
        self.graphics.run_async(work, _done)

    def load_image_async(self, source: Any, on_loaded: Callable[[CanvasObject], None],
                         on_failed: Optional[Callable[[ResourceLoadFailure], None]] = None,
                         object_type: str = "image") -> None:
        """Fetch and decode ``source`` on a worker.

        ``on_loaded`` receives a new, not yet inserted, CanvasObject carrying
        the Pillow image and its natural size. Completions that arrive after
        :meth:`dispose` are dropped.
        """
        timeout = self.load_timeout

        def _done(pil: Any, error: Optional[BaseException]) -> None:
            if error is not None:
                if not isinstance(error, ResourceLoadFailure):
                    error = ResourceLoadFailure(f"Failed to load image: {error}",
                                                source=describe_source(source))
                logger.warning(f"Image load failed ({error.source}): {error}")
                if on_failed is not None:
                    on_failed(error)
                return
            obj = CanvasObject(
                type=object_type,
                source=source if isinstance(source, str) else None,
                width=float(pil.width),
                height=float(pil.height),
                pil=pil,
            )
            on_loaded(obj)
        self.run_async(lambda: open_image(source, timeout=timeout), _done)

    # --- Output ---
    def render_all(self) -> None:
        if self._disposed:
            return
        self.graphics.draw(self.objects, self._active)

    def subscribe_keys(self, keys: Iterable[str], handler: Callable[[str], bool]):
        return self.graphics.subscribe_keys(tuple(keys), handler)

    def dispose(self) -> None:
        """Release the backend; further calls are no-ops."""
        if self._disposed:
            return
        self._disposed = True
        self._active = None
        for obj in self._objects:
            obj.editing = False
            obj.photo = None
            obj.photo_size = None
        self._objects.clear()
        try:
            self.graphics.destroy()
        except Exception:
            logger.exception("Failed to destroy graphics backend")
