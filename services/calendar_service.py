"""
Agregador del calendario: rango visible (mes/semana), consulta por rango y
agrupación de tareas por día.

Las semanas empiezan en domingo. En modo mes el rango cubre la grilla completa
(desde el domingo de la semana del día 1 hasta el sábado de la semana del
último día).
"""
from __future__ import annotations
import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from core.exceptions import PBError
from core.models import CalendarWindow, Todo, TodoStatus, ViewMode

logger = logging.getLogger(__name__)

TODOS = "todos"

STATUS_COLORS = {
    TodoStatus.COMPLETED.value: "#01eab9",
    TodoStatus.IN_PROGRESS.value: "#01aaff",
    TodoStatus.PENDING.value: "#ff7800",
}
DEFAULT_STATUS_COLOR = "#9a86ff"
MAX_ENTRIES_PER_DAY = 3


def week_start(day: dt.date) -> dt.date:
    # weekday(): lunes=0 ... domingo=6
    return day - dt.timedelta(days=(day.weekday() + 1) % 7)


def week_end(day: dt.date) -> dt.date:
    return week_start(day) + dt.timedelta(days=6)


def compute_range(anchor: dt.date, mode: ViewMode) -> Tuple[dt.date, dt.date]:
    mode = ViewMode(mode)
    if mode == ViewMode.WEEK:
        return week_start(anchor), week_end(anchor)
    first = anchor.replace(day=1)
    last = first + relativedelta(months=1) - dt.timedelta(days=1)
    return week_start(first), week_end(last)


def days_in_range(start: dt.date, end: dt.date) -> List[dt.date]:
    return [start + dt.timedelta(days=i) for i in range((end - start).days + 1)]


def navigate(direction: int, mode: ViewMode, anchor: dt.date) -> dt.date:
    """Corre el ancla una unidad del modo (±1 mes o ±1 semana)."""
    step = 1 if direction > 0 else -1
    if ViewMode(mode) == ViewMode.WEEK:
        return anchor + dt.timedelta(weeks=step)
    return anchor + relativedelta(months=step)


def _scheduled(task: Any) -> Optional[str]:
    value = task.get("scheduled_date") if isinstance(task, dict) else getattr(task, "scheduled_date", None)
    # PocketBase devuelve los campos date como "YYYY-MM-DD 00:00:00.000Z"
    return str(value)[:10] if value else None


def bucket_by_day(tasks: Sequence[Any], days: Sequence[dt.date]) -> Dict[dt.date, List[Any]]:
    buckets: Dict[dt.date, List[Any]] = {day: [] for day in days}
    by_key = {day.isoformat(): day for day in days}
    for task in tasks:
        day = by_key.get(_scheduled(task))
        if day is not None:
            buckets[day].append(task)
    return buckets


def status_color(status: Optional[str]) -> str:
    return STATUS_COLORS.get(status or "", DEFAULT_STATUS_COLOR)


def visible_entries(bucket: Sequence[Any], limit: int = MAX_ENTRIES_PER_DAY) -> Tuple[List[Any], int]:
    """Lo que entra en la celda del día y cuántas quedan en "+N more"."""
    shown = list(bucket[:limit])
    return shown, max(len(bucket) - limit, 0)


class CalendarAggregator:
    """Estado del calendario: ventana visible + último resultado bueno.

    Cada cambio de ancla o modo invalida la ventana; quien observa el cambio
    (la vista) vuelve a pedir los datos. Las respuestas se aplican con un
    token: si llega una respuesta vieja (de una ventana anterior) se ignora.
    Un fetch fallido deja los buckets anteriores como estaban.
    """
    def __init__(self, store, mode: ViewMode = ViewMode.MONTH, anchor: Optional[dt.date] = None):
        self.store = store
        self._mode = ViewMode(mode)
        self._anchor = anchor or dt.date.today()
        self._generation = 0
        self._tasks: List[Todo] = []
        self._buckets: Dict[dt.date, List[Todo]] = {}
        self._buckets_window: Optional[CalendarWindow] = None

    # ---------- ventana ----------
    @property
    def window(self) -> CalendarWindow:
        start, end = compute_range(self._anchor, self._mode)
        return CalendarWindow(anchor=self._anchor, mode=self._mode, start=start, end=end)

    @property
    def days(self) -> List[dt.date]:
        w = self.window
        return days_in_range(w.start, w.end)

    def set_mode(self, mode: ViewMode) -> CalendarWindow:
        self._mode = ViewMode(mode)
        return self.window

    def toggle_mode(self) -> CalendarWindow:
        return self.set_mode(ViewMode.WEEK if self._mode == ViewMode.MONTH else ViewMode.MONTH)

    def go(self, direction: int) -> CalendarWindow:
        self._anchor = navigate(direction, self._mode, self._anchor)
        return self.window

    def today(self, today: Optional[dt.date] = None) -> CalendarWindow:
        self._anchor = today or dt.date.today()
        return self.window

    # ---------- datos ----------
    @property
    def tasks(self) -> List[Todo]:
        return list(self._tasks)

    @property
    def buckets(self) -> Dict[dt.date, List[Todo]]:
        return {day: list(items) for day, items in self._buckets.items()}

    @property
    def buckets_window(self) -> Optional[CalendarWindow]:
        return self._buckets_window

    def fetch(self, user_id: str, start: dt.date, end: dt.date) -> List[Todo]:
        filters = [
            ("user_id", "=", user_id),
            ("scheduled_date", ">=", start.isoformat()),
            ("scheduled_date", "<=", end.isoformat() + " 23:59:59"),
        ]
        records = self.store.select_many(TODOS, filters, sort="scheduled_date")
        return [Todo.from_record(rec) for rec in records]

    def fetch_window(self, window: CalendarWindow) -> List[Todo]:
        """Pensado para correr fuera del hilo de la UI; propaga PBError."""
        user_id = self.store.get_current_user()
        if not user_id:
            raise PBError("No signed-in user")
        return self.fetch(user_id, window.start, window.end)

    def begin_fetch(self) -> Tuple[int, CalendarWindow]:
        self._generation += 1
        return self._generation, self.window

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def apply(self, token: int, window: CalendarWindow, tasks: Sequence[Todo]) -> bool:
        if not self.is_current(token) or window != self.window:
            logger.debug("Dropping stale calendar response (token %s)", token)
            return False
        self._tasks = list(tasks)
        self._buckets = bucket_by_day(self._tasks, days_in_range(window.start, window.end))
        self._buckets_window = window
        return True

    def fail(self, token: int, error: Exception) -> None:
        logger.warning("Calendar fetch failed (token %s); keeping previous view: %s", token, error)

    def refresh(self) -> bool:
        token, window = self.begin_fetch()
        try:
            tasks = self.fetch_window(window)
        except PBError as e:
            self.fail(token, e)
            return False
        return self.apply(token, window, tasks)
