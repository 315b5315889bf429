# backend/store.py
import logging
import threading
import uuid
from typing import Callable, Dict, List, Optional

from models import Widget

logger = logging.getLogger("widgets.store")

MAX_ID_ATTEMPTS = 10


class IdGenerationError(RuntimeError):
    """Raised when a new widget id could not be produced."""


def new_widget_id() -> str:
    return str(uuid.uuid4())


class WidgetStore:
    """
    Process-local id -> Widget map. Every read and write holds the lock,
    so concurrent requests see each operation as atomic.
    """

    def __init__(self, id_factory: Callable[[], str] = new_widget_id):
        self._widgets: Dict[str, Widget] = {}
        self._lock = threading.Lock()
        self._id_factory = id_factory

    def __len__(self) -> int:
        with self._lock:
            return len(self._widgets)

    def __contains__(self, widget_id: str) -> bool:
        with self._lock:
            return widget_id in self._widgets

    def list(self) -> List[Widget]:
        with self._lock:
            return list(self._widgets.values())

    def get(self, widget_id: str) -> Optional[Widget]:
        with self._lock:
            return self._widgets.get(widget_id)

    def create(self, name: str, description: str) -> Widget:
        with self._lock:
            widget_id = self._generate_id()
            widget = Widget(id=widget_id, name=name, description=description)
            self._widgets[widget_id] = widget
            return widget

    def update(self, widget_id: str, name: str, description: str) -> Optional[Widget]:
        with self._lock:
            current = self._widgets.get(widget_id)
            if current is None:
                return None
            widget = current.model_copy(update={"name": name, "description": description})
            self._widgets[widget_id] = widget
            return widget

    def delete(self, widget_id: str) -> Optional[Widget]:
        with self._lock:
            return self._widgets.pop(widget_id, None)

    def _generate_id(self) -> str:
        # caller holds the lock
        for _ in range(MAX_ID_ATTEMPTS):
            try:
                widget_id = str(self._id_factory()).strip()
            except Exception as e:
                raise IdGenerationError(f"unable to generate widget id: {e}") from e
            if not widget_id:
                raise IdGenerationError("unable to generate widget id: empty id")
            if widget_id not in self._widgets:
                return widget_id
            logger.warning("generated id %s already in use, retrying", widget_id)
        raise IdGenerationError("unable to generate a unique widget id")


# Single store for the running process
store = WidgetStore()


# FastAPI dependency
def get_store() -> WidgetStore:
    return store
