"""
Tablero de notas posicionadas de una tarea.

El tablero completo (lista ordenada de NoteItem) se guarda como un único
documento JSON en el campo `notes_canvas` del registro de la tarea. Cada
escritura reemplaza la lista entera: si dos sesiones editan la misma tarea,
gana la última escritura que llega al servidor.

Los errores de carga y guardado se loguean y no se propagan: el estado en
memoria es la fuente de verdad hasta el próximo guardado exitoso.
"""
from __future__ import annotations
import base64
import json
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

from core.exceptions import PBError
from core.models import NoteItem, NoteKind, SyncState

logger = logging.getLogger(__name__)

TODOS = "todos"
CANVAS_FIELD = "notes_canvas"

_IMAGE_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


def sniff_mime(data: bytes) -> str:
    for signature, mime in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def encode_data_uri(data: bytes, mime: Optional[str] = None) -> str:
    mime = mime or sniff_mime(data)
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def parse_canvas(document: Any) -> List[NoteItem]:
    """Convierte el documento guardado en NoteItems; lo malformado se descarta."""
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except ValueError:
            logger.warning("notes_canvas is not valid JSON; using empty board")
            return []
    if not isinstance(document, list):
        if document not in (None, ""):
            logger.warning("notes_canvas is not a list (%s); using empty board", type(document).__name__)
        return []
    items: List[NoteItem] = []
    seen = set()
    for entry in document:
        item = NoteItem.from_dict(entry)
        if item is None or item.id in seen:
            logger.warning("Skipping malformed note entry: %r", entry if not isinstance(entry, dict) else entry.get("id"))
            continue
        seen.add(item.id)
        items.append(item)
    return items


class NoteBoard:
    """Estado local + sincronización remota del tablero de una tarea.

    `scheduler` (opcional) es un objeto con `call_later(delay_ms, fn)` y
    `cancel(handle)`; si está, las ediciones de texto se agrupan en un solo
    guardado tras `debounce_ms` de inactividad. Sin scheduler, cada edición
    se guarda en el momento.
    """
    def __init__(self, store, task_id: str, scheduler=None, debounce_ms: int = 0,
                 on_change: Optional[Callable[[], None]] = None):
        self.store = store
        self.task_id = task_id
        self.scheduler = scheduler
        self.debounce_ms = debounce_ms
        self.on_change = on_change
        self.sync_state = SyncState.CLEAN
        self._items: List[NoteItem] = []
        self._drag_id: Optional[str] = None
        self._drag_offset: Tuple[int, int] = (0, 0)
        self._pending_handle = None
        self._last_id = 0

    # ---------- lectura ----------
    @property
    def items(self) -> Tuple[NoteItem, ...]:
        return tuple(self._items)

    @property
    def dragging_id(self) -> Optional[str]:
        return self._drag_id

    def get(self, item_id: str) -> Optional[NoteItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    # ---------- carga ----------
    def load(self) -> List[NoteItem]:
        self._cancel_pending()
        self._drag_id = None
        try:
            record = self.store.select_one(TODOS, {"id": self.task_id})
        except PBError as e:
            logger.error("Error loading notes for %s: %s", self.task_id, e)
            record = None
        self._items = parse_canvas(record.get(CANVAS_FIELD) if record else None)
        self.sync_state = SyncState.CLEAN
        return list(self._items)

    # ---------- mutaciones ----------
    def add_text(self) -> NoteItem:
        item = NoteItem.text_note(self._new_id())
        return self._append(item)

    def add_image(self, data: bytes, mime: Optional[str] = None) -> NoteItem:
        item = NoteItem.image_note(self._new_id(), encode_data_uri(data, mime))
        return self._append(item)

    def edit_content(self, item_id: str, content: str) -> bool:
        item = self.get(item_id)
        if item is None or item.kind != NoteKind.TEXT:
            return False
        item.content = content
        self._mark(item)
        if self.scheduler is not None and self.debounce_ms > 0:
            self._cancel_pending()
            self._pending_handle = self.scheduler.call_later(self.debounce_ms, self._debounced_save)
        else:
            self.save()
        return True

    def remove(self, item_id: str) -> bool:
        item = self.get(item_id)
        if item is None:
            return False
        self._items.remove(item)
        if self._drag_id == item_id:
            self._drag_id = None
        self.sync_state = SyncState.PENDING
        self.save()
        return True

    # ---------- drag ----------
    def begin_drag(self, item_id: str, pointer: Tuple[int, int]) -> bool:
        item = self.get(item_id)
        if item is None:
            return False
        self._drag_id = item_id
        self._drag_offset = (pointer[0] - item.x, pointer[1] - item.y)
        return True

    def update_drag(self, pointer: Tuple[int, int]) -> None:
        # solo estado local: se guarda al soltar
        if self._drag_id is None:
            return
        item = self.get(self._drag_id)
        if item is None:
            self._drag_id = None
            return
        item.x = pointer[0] - self._drag_offset[0]
        item.y = pointer[1] - self._drag_offset[1]

    def end_drag(self) -> bool:
        if self._drag_id is None:
            return False
        item = self.get(self._drag_id)
        self._drag_id = None
        if item is not None:
            self._mark(item)
        self.save()
        return True

    # ---------- persistencia ----------
    def flush(self) -> bool:
        """Guarda ya si hay una edición pendiente (p. ej. al perder el foco)."""
        if self._pending_handle is None:
            return False
        self._cancel_pending()
        return self.save()

    def save(self) -> bool:
        self._cancel_pending()
        document = [item.to_dict() for item in self._items]
        try:
            self.store.update(TODOS, {"id": self.task_id}, {CANVAS_FIELD: document})
        except PBError as e:
            logger.error("Error saving notes for %s: %s", self.task_id, e)
            for item in self._items:
                if item.sync_state == SyncState.PENDING:
                    item.sync_state = SyncState.FAILED
            self.sync_state = SyncState.FAILED
            return False
        for item in self._items:
            item.sync_state = SyncState.CLEAN
        self.sync_state = SyncState.CLEAN
        if self.on_change:
            self.on_change()
        return True

    def close(self):
        """Al cerrar la vista: no se pierde la última edición."""
        self.flush()
        self._drag_id = None

    # ---------- helpers ----------
    def _append(self, item: NoteItem) -> NoteItem:
        self._items.append(item)
        self._mark(item)
        self.save()
        return item

    def _mark(self, item: NoteItem):
        item.sync_state = SyncState.PENDING
        self.sync_state = SyncState.PENDING

    def _debounced_save(self):
        self._pending_handle = None
        self.save()

    def _cancel_pending(self):
        if self._pending_handle is not None and self.scheduler is not None:
            self.scheduler.cancel(self._pending_handle)
        self._pending_handle = None

    def _new_id(self) -> str:
        # basado en tiempo (ms) y único dentro del tablero
        candidate = max(time.time_ns() // 1_000_000, self._last_id + 1)
        taken = {item.id for item in self._items}
        while str(candidate) in taken:
            candidate += 1
        self._last_id = candidate
        return str(candidate)
