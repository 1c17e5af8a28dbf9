import datetime as dt
import logging
import tkinter as tk
from tkinter import ttk, messagebox as mb, simpledialog

from core.config import TOPMOST, WINDOW_GEOMETRY
from core.exceptions import PBError
from controller.app_controller import AppController
from gui.calendar_view import CalendarView
from gui.task_list import ScrollableTodoList
from gui.todo_detail import TodoDetailWindow
from gui.todo_form import NewTodoDialog

logger = logging.getLogger(__name__)


class MainWindow(tk.Tk):
    def __init__(self, controller: AppController):
        super().__init__()
        self.controller = controller
        self.title("To-Do PB · Planner")
        self.geometry(WINDOW_GEOMETRY)
        self.configure(padx=8, pady=8)
        if TOPMOST:
            self.attributes("-topmost", True)

        # Top bar
        top = ttk.Frame(self)
        top.pack(fill="x", pady=(0, 6))
        ttk.Button(top, text="Sync", command=self._sync_all).pack(side="right")
        ttk.Button(top, text="Nueva categoría", command=self._on_add_category).pack(side="right", padx=(0, 6))
        ttk.Button(top, text="Nueva tarea", command=self.new_todo).pack(side="right", padx=(0, 6))
        self.status_var = tk.StringVar(value="Listo")
        ttk.Label(top, textvariable=self.status_var).pack(side="left")

        self.nb = ttk.Notebook(self)
        self.nb.pack(fill="both", expand=True)

        self.tabs = {}  # category_id -> CategoryTab
        self.calendar = CalendarView(self.nb, controller.calendar(),
                                     on_open_todo=self.open_todo, on_create_todo=self._on_create_for_day)
        self.nb.add(self.calendar, text="Calendario")
        self._build_tabs()

        # sin polling: se refresca cuando el controller avisa de un cambio
        self._unsubscribe = controller.subscribe(self._on_changed)
        self.bind("<F5>", lambda e: self._sync_all())
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    # ---------- tabs ----------
    def _build_tabs(self):
        try:
            categories = self.controller.load_categories()
        except PBError as e:
            mb.showerror("Categorías", f"No se pudieron cargar categorías: {e}")
            return
        known = set()
        for c in categories:
            known.add(c.id)
            if c.id in self.tabs:
                continue
            tab = CategoryTab(self.nb, self.controller, c.id, self.open_todo, self.new_todo)
            self.nb.insert(self.calendar, tab, text=c.name)
            self.tabs[c.id] = tab
        for cid in list(self.tabs):
            if cid not in known:
                self.nb.forget(self.tabs.pop(cid))
        self._sync_all()

    # ---------- sync ----------
    def _sync_all(self):
        total = 0
        for tab in self.tabs.values():
            total += tab.refresh()
        self.calendar.refresh()
        self.status_var.set(f"Sincronizado {dt.datetime.now().strftime('%H:%M:%S')} · {total} items")

    def _on_changed(self, reason: str):
        if reason == "categories":
            self._build_tabs()
        elif reason == "todos":
            self._sync_all()

    # ---------- actions ----------
    def open_todo(self, todo_id: str):
        try:
            todo = self.controller.get_todo(todo_id)
        except PBError as e:
            self.status_var.set(f"Error: {e}")
            return
        if todo is None:
            self.status_var.set("La tarea ya no existe")
            return
        TodoDetailWindow(self, self.controller, todo)

    def _on_add_category(self):
        name = simpledialog.askstring("Nueva categoría", "Nombre:", parent=self)
        if not name:
            return
        try:
            self.controller.add_category(name)
        except PBError as e:
            mb.showerror("Categorías", f"No se pudo crear la categoría: {e}")

    def new_todo(self, category_id=None, scheduled_date=None):
        try:
            categories = self.controller.load_categories()
        except PBError as e:
            self.status_var.set(f"Error: {e}")
            return
        dlg = NewTodoDialog(self, categories, category_id=category_id, scheduled_date=scheduled_date)
        if not dlg.result:
            return
        fields = dict(dlg.result)
        title = fields.pop("title")
        try:
            self.controller.add_todo(title, **fields)
        except ValueError as e:
            mb.showerror("Nueva tarea", f"Dato inválido:\n{e}", parent=self)
        except PBError as e:
            self.status_var.set(f"Error: {e}")

    def _on_create_for_day(self, day: dt.date):
        self.new_todo(scheduled_date=day.isoformat())

    def _on_close(self):
        self._unsubscribe()
        self.destroy()


class CategoryTab(ttk.Frame):
    def __init__(self, parent, controller: AppController, category_id: str, on_open, on_new=None):
        super().__init__(parent)
        self.controller = controller
        self.category_id = category_id
        self._todos_by_id = {}  # cache: id -> Todo

        # Header: quick add
        header = ttk.Frame(self)
        header.pack(fill="x", pady=(6, 4))
        ttk.Label(header, text="Nueva tarea:").pack(side="left")
        self.entry = ttk.Entry(header)
        self.entry.pack(side="left", fill="x", expand=True, padx=6)
        self.entry.bind("<Return>", self._on_add)
        ttk.Button(header, text="Agregar", command=self._on_add).pack(side="left")
        if on_new:
            ttk.Button(header, text="Más…", command=lambda: on_new(category_id=category_id)).pack(side="left", padx=(6, 0))
        ttk.Button(header, text="Eliminar categoría", command=self._on_delete_category).pack(side="left", padx=(6, 0))

        self.todo_list = ScrollableTodoList(
            self,
            on_toggle=self._on_toggle_cb,
            on_open=on_open,
            on_delete=self._on_delete_cb,
        )
        self.todo_list.pack(fill="both", expand=True)

    # ---------- data ----------
    def refresh(self) -> int:
        try:
            todos = self.controller.list_todos(self.category_id)
        except PBError as e:
            logger.warning("Sync error: %s", e)
            return 0
        self._todos_by_id = {t.id: t for t in todos}
        self.todo_list.set_todos(todos)
        return len(todos)

    # ---------- callbacks desde el widget ----------
    def _on_toggle_cb(self, todo_id: str, done: bool):
        todo = self._todos_by_id.get(todo_id)
        if not todo:
            return
        try:
            self.controller.toggle_done(todo)
        except PBError as e:
            logger.error("Toggle error: %s", e)
            self.refresh()

    def _on_delete_cb(self, todo_id: str):
        todo = self._todos_by_id.get(todo_id)
        if not todo or not mb.askyesno("Eliminar", f"¿Eliminar la tarea?\n\n{todo.title}"):
            return
        try:
            self.controller.delete_todo(todo_id)
        except PBError as e:
            logger.error("Delete error: %s", e)

    def _on_add(self, event=None):
        text = self.entry.get().strip()
        if not text:
            return
        try:
            self.controller.add_todo(text, category_id=self.category_id)
        except PBError as e:
            logger.error("Add error: %s", e)
        finally:
            self.entry.delete(0, "end")

    def _on_delete_category(self):
        if not mb.askyesno("Eliminar categoría", "¿Eliminar la categoría y todas sus tareas?"):
            return
        try:
            self.controller.delete_category(self.category_id)
        except PBError as e:
            mb.showerror("Categorías", f"No se pudo eliminar la categoría: {e}")
