import tkinter as tk
from tkinter import ttk, messagebox as mb, simpledialog
from typing import Dict, List, Optional

from controller.app_controller import local_datetime
from core.models import Category, Priority, Todo
from services.timer import PRESETS


class TodoFields(ttk.Frame):
    """Campos editables de una tarea (los mismos para crear y editar)."""
    def __init__(self, master, categories: List[Category], todo: Optional[Todo] = None,
                 category_id: Optional[str] = None, scheduled_date: Optional[str] = None):
        super().__init__(master)
        self._categories = {c.name: c.id for c in categories}
        names_by_id = {c.id: c.name for c in categories}

        self.vars: Dict[str, tk.StringVar] = {
            "title": tk.StringVar(value=todo.title if todo else ""),
            "category": tk.StringVar(value=names_by_id.get(todo.category_id if todo else category_id, "")),
            "priority": tk.StringVar(value=(todo.priority if todo else None) or ""),
            "scheduled_date": tk.StringVar(value=(todo.scheduled_date if todo else scheduled_date) or ""),
            "start_time": tk.StringVar(value=local_datetime(todo.start_time) if todo else ""),
            "due_time": tk.StringVar(value=local_datetime(todo.due_time) if todo else ""),
            "timer_preset_minutes": tk.StringVar(
                value=str(todo.timer_preset_minutes) if todo and todo.timer_preset_minutes else ""),
        }

        row = 0
        ttk.Label(self, text="Título:").grid(row=row, column=0, sticky="w")
        self.title_entry = ttk.Entry(self, textvariable=self.vars["title"], width=40)
        self.title_entry.grid(row=row, column=1, columnspan=3, sticky="we", pady=2)

        row += 1
        ttk.Label(self, text="Categoría:").grid(row=row, column=0, sticky="w")
        ttk.Combobox(self, textvariable=self.vars["category"], state="readonly", width=16,
                     values=[""] + list(self._categories)).grid(row=row, column=1, sticky="w", pady=2)
        ttk.Label(self, text="Prioridad:").grid(row=row, column=2, sticky="w", padx=(8, 0))
        ttk.Combobox(self, textvariable=self.vars["priority"], state="readonly", width=10,
                     values=[""] + [p.value for p in Priority]).grid(row=row, column=3, sticky="w", pady=2)

        row += 1
        ttk.Label(self, text="Fecha (YYYY-MM-DD):").grid(row=row, column=0, sticky="w")
        ttk.Entry(self, textvariable=self.vars["scheduled_date"], width=12).grid(row=row, column=1, sticky="w", pady=2)
        ttk.Label(self, text="Timer (min):").grid(row=row, column=2, sticky="w", padx=(8, 0))
        ttk.Combobox(self, textvariable=self.vars["timer_preset_minutes"], width=6,
                     values=[""] + [str(m) for m in PRESETS]).grid(row=row, column=3, sticky="w", pady=2)

        row += 1
        ttk.Label(self, text="Inicio:").grid(row=row, column=0, sticky="w")
        ttk.Entry(self, textvariable=self.vars["start_time"], width=18).grid(row=row, column=1, sticky="w", pady=2)
        ttk.Label(self, text="Vence:").grid(row=row, column=2, sticky="w", padx=(8, 0))
        ttk.Entry(self, textvariable=self.vars["due_time"], width=18).grid(row=row, column=3, sticky="w", pady=2)

        row += 1
        ttk.Label(self, text="Descripción:").grid(row=row, column=0, sticky="nw")
        self.description = tk.Text(self, height=3, width=40, wrap="word")
        self.description.grid(row=row, column=1, columnspan=3, sticky="we", pady=2)
        if todo and todo.description:
            self.description.insert("1.0", todo.description)
        self.columnconfigure(1, weight=1)

    def values(self) -> Dict[str, Optional[str]]:
        """Valores crudos; el controller los normaliza y valida."""
        return {
            "title": self.vars["title"].get(),
            "category_id": self._categories.get(self.vars["category"].get()),
            "priority": self.vars["priority"].get(),
            "scheduled_date": self.vars["scheduled_date"].get(),
            "start_time": self.vars["start_time"].get(),
            "due_time": self.vars["due_time"].get(),
            "timer_preset_minutes": self.vars["timer_preset_minutes"].get(),
            "description": self.description.get("1.0", "end-1c"),
        }


class NewTodoDialog(simpledialog.Dialog):
    """Alta completa de una tarea. `result` queda con los campos o None."""
    def __init__(self, master, categories: List[Category], category_id: Optional[str] = None,
                 scheduled_date: Optional[str] = None):
        self._categories = categories
        self._category_id = category_id
        self._scheduled_date = scheduled_date
        super().__init__(master, title="Nueva tarea")

    def body(self, master):
        self.fields = TodoFields(master, self._categories, category_id=self._category_id,
                                 scheduled_date=self._scheduled_date)
        self.fields.pack(fill="both", expand=True)
        return self.fields.title_entry

    def validate(self):
        if not self.fields.values()["title"].strip():
            mb.showwarning("Nueva tarea", "El título es obligatorio", parent=self)
            return False
        return True

    def apply(self):
        self.result = self.fields.values()
