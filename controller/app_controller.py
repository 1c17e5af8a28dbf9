import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from core.exceptions import AuthError
from core.models import Category, Priority, Todo, TodoStatus
from services.calendar_service import CalendarAggregator
from services.links_service import LinksService
from services.notes_board import NoteBoard
from storage.pocketbase import PocketBaseClient

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
TODOS = "todos"


def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


_OPTIONAL_TEXT = ("description", "category_id", "priority", "scheduled_date", "start_time", "due_time")


def pb_datetime(value: str) -> str:
    """Fecha/hora libre -> formato de campo `date` de PocketBase (UTC).

    Sin zona horaria se asume hora local.
    """
    parsed = date_parser.parse(value)
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed.astimezone(dt.timezone.utc).strftime("%Y-%m-%d %H:%M:%S.000Z")


def local_datetime(value: Optional[str]) -> str:
    """Inverso de pb_datetime para mostrar en la UI ("YYYY-MM-DD HH:MM")."""
    if not value:
        return ""
    parsed = date_parser.parse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M")


def normalize_todo_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Limpia lo que llega de los formularios antes de mandarlo a PocketBase.

    Strings vacíos pasan a None; priority, fechas y preset se validan
    (ValueError si no tienen sentido).
    """
    out = dict(fields)
    for key in _OPTIONAL_TEXT:
        if key in out and isinstance(out[key], str):
            out[key] = out[key].strip() or None
    if "title" in out:
        out["title"] = (out["title"] or "").strip()
        if not out["title"]:
            del out["title"]
    if out.get("priority") is not None:
        out["priority"] = Priority(out["priority"]).value
    if out.get("scheduled_date") is not None:
        out["scheduled_date"] = dt.date.fromisoformat(out["scheduled_date"][:10]).isoformat()
    for key in ("start_time", "due_time"):
        if out.get(key) is not None:
            out[key] = pb_datetime(out[key])
    if "timer_preset_minutes" in out:
        minutes = out["timer_preset_minutes"]
        if isinstance(minutes, str):
            minutes = minutes.strip()
        if minutes in ("", None, 0):
            out["timer_preset_minutes"] = None
        else:
            minutes = int(minutes)
            if minutes < 0:
                raise ValueError(f"Invalid timer preset: {minutes}")
            out["timer_preset_minutes"] = minutes
    return out


class AppController:
    """Coordina la UI con el backend (PocketBase) y servicios de dominio.

    No hay polling: cada mutación exitosa avisa a los suscriptores con
    `notify(reason)` y las vistas vuelven a pedir lo que necesiten.
    """
    def __init__(self, client: PocketBaseClient, note_debounce_ms: int = 0):
        self.client = client
        self.note_debounce_ms = note_debounce_ms
        self._listeners: List[Callable[[str], None]] = []
        self._links = LinksService(client)

    # ---- invalidación ----
    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def notify(self, reason: str):
        for callback in list(self._listeners):
            try:
                callback(reason)
            except Exception:
                logger.exception("Listener failed on %s", reason)

    def current_user(self) -> Optional[str]:
        return self.client.get_current_user()

    def _require_user(self) -> str:
        user_id = self.client.get_current_user()
        if not user_id:
            raise AuthError("Not signed in")
        return user_id

    # ---- categories ----
    def load_categories(self) -> List[Category]:
        user_id = self._require_user()
        records = self.client.select_many(CATEGORIES, {"user_id": user_id}, sort="created")
        return [Category.from_record(r) for r in records]

    def add_category(self, name: str, color: Optional[str] = None) -> Optional[Category]:
        name = (name or "").strip()
        if not name:
            return None
        payload: Dict[str, Any] = {"name": name, "user_id": self._require_user()}
        if color:
            payload["color"] = color
        category = Category.from_record(self.client.insert(CATEGORIES, payload))
        self.notify("categories")
        return category

    def delete_category(self, category_id: str):
        # primero las tareas de la categoría, después la categoría
        self.client.delete(TODOS, {"category_id": category_id})
        self.client.delete(CATEGORIES, {"id": category_id})
        self.notify("categories")

    # ---- todos ----
    def list_todos(self, category_id: Optional[str] = None) -> List[Todo]:
        filters: Dict[str, Any] = {"user_id": self._require_user()}
        if category_id:
            filters["category_id"] = category_id
        records = self.client.select_many(TODOS, filters, sort="due_time,-created")
        return [Todo.from_record(r) for r in records]

    def get_todo(self, todo_id: str) -> Optional[Todo]:
        rec = self.client.select_one(TODOS, {"id": todo_id})
        return Todo.from_record(rec) if rec else None

    def add_todo(self, title: str, category_id: Optional[str] = None,
                 scheduled_date: Optional[str] = None, **fields) -> Optional[Todo]:
        title = (title or "").strip()
        if not title:
            return None
        payload: Dict[str, Any] = {
            "user_id": self._require_user(),
            "title": title,
            "status": TodoStatus.PENDING.value,
        }
        payload.update(normalize_todo_fields(dict(fields, category_id=category_id,
                                                  scheduled_date=scheduled_date)))
        todo = Todo.from_record(self.client.insert(TODOS, payload))
        self.notify("todos")
        return todo

    def update_todo(self, todo: Todo, **fields) -> None:
        """Editar/patch de una tarea; mantiene completed_at coherente con status."""
        fields = normalize_todo_fields(fields)
        if not fields:
            return
        status = fields.get("status")
        if status is not None:
            if status == TodoStatus.COMPLETED.value:
                if not todo.completed_at:
                    fields["completed_at"] = _now_iso()
            else:
                fields["completed_at"] = None
        self.client.update(TODOS, {"id": todo.id}, fields)
        for key, value in fields.items():
            if hasattr(todo, key):
                setattr(todo, key, value)
        self.notify("todos")

    def set_status(self, todo: Todo, status: str) -> None:
        self.update_todo(todo, status=TodoStatus(status).value)

    def toggle_done(self, todo: Todo) -> None:
        new_status = TodoStatus.PENDING if todo.status == TodoStatus.COMPLETED.value else TodoStatus.COMPLETED
        self.set_status(todo, new_status.value)

    def delete_todo(self, todo_id: str) -> None:
        self.client.delete(TODOS, {"id": todo_id})
        self.notify("todos")

    # ---- notes / calendar / links ----
    def open_notes(self, todo_id: str, scheduler=None) -> NoteBoard:
        board = NoteBoard(self.client, todo_id, scheduler=scheduler,
                          debounce_ms=self.note_debounce_ms if scheduler else 0,
                          on_change=lambda: self.notify("notes"))
        board.load()
        return board

    def calendar(self) -> CalendarAggregator:
        # el calendario consulta desde un hilo aparte: sesión HTTP propia
        return CalendarAggregator(self.client.fork())

    def links(self) -> LinksService:
        return self._links

    def add_link(self, todo_id: str, label: str, url: str):
        link = self._links.add(todo_id, label, url)
        if link:
            self.notify("links")
        return link

    def delete_link(self, link_id: str):
        self._links.delete(link_id)
        self.notify("links")
