from __future__ import annotations
import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class TodoStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimingResult(str, Enum):
    EARLY = "early"
    ON_TIME = "on_time"
    LATE = "late"
    NOT_COMPLETED = "not_completed"


class LinkType(str, Enum):
    WEBSITE = "website"
    YOUTUBE = "youtube"
    OTHER = "other"


class NoteKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class SyncState(str, Enum):
    CLEAN = "clean"
    PENDING = "pending"
    FAILED = "failed"


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"


@dataclass
class Category:
    id: str
    name: str
    user_id: str
    color: Optional[str] = None
    created: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Category":
        return cls(
            id=rec["id"],
            name=rec.get("name") or "",
            user_id=rec.get("user_id") or "",
            color=rec.get("color") or None,
            created=rec.get("created"),
        )


@dataclass
class Todo:
    id: str
    user_id: str
    title: str
    status: str = TodoStatus.PENDING.value
    category_id: Optional[str] = None
    description: Optional[str] = None
    scheduled_date: Optional[str] = None  # YYYY-MM-DD
    start_time: Optional[str] = None
    due_time: Optional[str] = None
    completed_at: Optional[str] = None
    priority: Optional[str] = None  # low | medium | high
    timer_preset_minutes: Optional[int] = None
    timer_custom_seconds: Optional[int] = None
    timer_sound: str = "beep"
    timing_result: str = TimingResult.NOT_COMPLETED.value
    notes_canvas: Any = None  # documento JSON opaco del tablero de notas
    created: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Todo":
        # PocketBase devuelve "" para campos vacíos; los normalizamos a None
        def opt(key):
            value = rec.get(key)
            return value if value not in ("", None) else None

        return cls(
            id=rec["id"],
            user_id=rec.get("user_id") or "",
            title=rec.get("title") or "",
            status=rec.get("status") or TodoStatus.PENDING.value,
            category_id=opt("category_id"),
            description=opt("description"),
            scheduled_date=(opt("scheduled_date") or "")[:10] or None,
            start_time=opt("start_time"),
            due_time=opt("due_time"),
            completed_at=opt("completed_at"),
            priority=opt("priority"),
            timer_preset_minutes=opt("timer_preset_minutes"),
            timer_custom_seconds=opt("timer_custom_seconds"),
            timer_sound=rec.get("timer_sound") or "beep",
            timing_result=rec.get("timing_result") or TimingResult.NOT_COMPLETED.value,
            notes_canvas=rec.get("notes_canvas"),
            created=opt("created"),
        )


@dataclass
class TodoLink:
    id: str
    todo_id: str
    user_id: str
    label: str
    url: str
    type: str = LinkType.WEBSITE.value
    created: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "TodoLink":
        return cls(
            id=rec["id"],
            todo_id=rec.get("todo_id") or "",
            user_id=rec.get("user_id") or "",
            label=rec.get("label") or "",
            url=rec.get("url") or "",
            type=rec.get("type") or LinkType.WEBSITE.value,
            created=rec.get("created"),
        )


DEFAULT_NOTE_POSITION = (100, 100)
TEXT_NOTE_SIZE = (200, 100)
IMAGE_NOTE_SIZE = (200, 200)
TEXT_NOTE_PLACEHOLDER = "New note"


@dataclass
class NoteItem:
    """Un elemento posicionado del tablero de notas de una tarea."""
    id: str
    kind: NoteKind
    content: str
    x: int = DEFAULT_NOTE_POSITION[0]
    y: int = DEFAULT_NOTE_POSITION[1]
    width: Optional[int] = None
    height: Optional[int] = None
    sync_state: SyncState = field(default=SyncState.CLEAN, compare=False)  # solo cliente

    @classmethod
    def text_note(cls, note_id: str, content: str = TEXT_NOTE_PLACEHOLDER,
                  x: int = DEFAULT_NOTE_POSITION[0], y: int = DEFAULT_NOTE_POSITION[1]) -> "NoteItem":
        w, h = TEXT_NOTE_SIZE
        return cls(id=note_id, kind=NoteKind.TEXT, content=content, x=x, y=y, width=w, height=h)

    @classmethod
    def image_note(cls, note_id: str, content: str,
                   x: int = DEFAULT_NOTE_POSITION[0], y: int = DEFAULT_NOTE_POSITION[1]) -> "NoteItem":
        w, h = IMAGE_NOTE_SIZE
        return cls(id=note_id, kind=NoteKind.IMAGE, content=content, x=x, y=y, width=w, height=h)

    @property
    def size(self):
        default = TEXT_NOTE_SIZE if self.kind == NoteKind.TEXT else IMAGE_NOTE_SIZE
        return (self.width or default[0], self.height or default[1])

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.kind.value,
            "content": self.content,
            "x": self.x,
            "y": self.y,
        }
        if self.width is not None:
            data["width"] = self.width
        if self.height is not None:
            data["height"] = self.height
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["NoteItem"]:
        """Devuelve None si la entrada guardada no tiene la forma esperada."""
        if not isinstance(data, dict):
            return None
        try:
            kind = NoteKind(data.get("type"))
            note_id = str(data["id"])
            content = data.get("content")
            if not isinstance(content, str):
                return None
            x, y = int(data.get("x", 0)), int(data.get("y", 0))
            width = int(data["width"]) if data.get("width") is not None else None
            height = int(data["height"]) if data.get("height") is not None else None
        except (KeyError, TypeError, ValueError):
            return None
        return cls(id=note_id, kind=kind, content=content, x=x, y=y, width=width, height=height)


@dataclass(frozen=True)
class CalendarWindow:
    anchor: dt.date
    mode: ViewMode
    start: dt.date
    end: dt.date
