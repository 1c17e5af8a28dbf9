"""
Scrollable todo list widget for Tkinter
---------------------------------------
Each todo is rendered as its own row (a Frame) inside a scrollable Canvas:
- a Checkbutton that toggles completed/pending
- the title (wrapping)
- colored tags (status, priority, scheduled date)
- an "open" button (detail window) and a delete button

The widget is view-only state. All changes go through the callbacks passed
in the constructor; the owner calls `set_todos()` again after a change.
"""
from __future__ import annotations
import datetime as dt
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import tkinter as tk
from tkinter import ttk

from core.models import Todo, TodoStatus
from services.calendar_service import status_color

PRIORITY_COLORS = {"high": "#B00020", "medium": "#F59E0B", "low": "#CBD5E1"}


def todo_tags(todo: Todo, today: Optional[dt.date] = None) -> List[Tuple[str, str]]:
    """Tags shown under a todo: status, priority and scheduled date."""
    today = today or dt.date.today()
    tags = [(todo.status.replace("_", " "), status_color(todo.status))]
    if todo.priority:
        tags.append((todo.priority.capitalize(), PRIORITY_COLORS.get(todo.priority, "#CBD5E1")))
    if todo.scheduled_date:
        try:
            day = dt.date.fromisoformat(todo.scheduled_date)
        except ValueError:
            tags.append((todo.scheduled_date, "#CBD5E1"))
        else:
            overdue = day < today and todo.status != TodoStatus.COMPLETED.value
            tags.append(("Overdue" if overdue else day.isoformat(), "#B00020" if overdue else "#CBD5E1"))
    return tags


class TodoRow(ttk.Frame):
    """A single todo row with checkbox, title, colored tags and action buttons."""
    def __init__(
        self,
        master,
        todo_id: str,
        text: str,
        done: bool = False,
        tags: Optional[List[Tuple[str, str]]] = None,
        on_toggle: Optional[Callable[[str, bool], None]] = None,
        on_open: Optional[Callable[[str], None]] = None,
        on_delete: Optional[Callable[[str], None]] = None,
        wrap: int = 600,
    ):
        super().__init__(master)
        self.todo_id = todo_id
        self._on_toggle = on_toggle
        self._on_open = on_open
        self._on_delete = on_delete
        self.var = tk.BooleanVar(value=done)

        self.columnconfigure(1, weight=1)

        self.chk = ttk.Checkbutton(self, variable=self.var, command=self._toggle)
        self.chk.grid(row=0, column=0, padx=(8, 6), pady=4, sticky="w")

        self.lbl = ttk.Label(self, text=text, wraplength=wrap, anchor="w", justify="left")
        self.lbl.grid(row=0, column=1, sticky="we")
        self.lbl.bind("<Double-1>", lambda e: self._open())

        self.tag_container = ttk.Frame(self)
        self.tag_container.grid(row=1, column=1, sticky="w", pady=(2, 4))

        ttk.Button(self, text="⋮", width=2, command=self._open).grid(row=0, column=2, padx=(6, 4))
        ttk.Button(self, text="×", width=2, command=self._delete).grid(row=0, column=3, padx=(0, 8))

        self._render_tags(tags or [])
        self.lbl.configure(style="Task.Done.TLabel" if done else "Task.Normal.TLabel")

    def _render_tags(self, tags: List[Tuple[str, str]]):
        for label, color in tags:
            # tk.Label to allow background color without ttk style plumbing
            tk.Label(
                self.tag_container,
                text=label,
                bg=color,
                fg=ideal_text_color(color),
                padx=4,
                pady=2,
                borderwidth=0,
            ).pack(side="left", padx=(0, 6))

    def _toggle(self):
        if self._on_toggle:
            self._on_toggle(self.todo_id, bool(self.var.get()))

    def _open(self):
        if self._on_open:
            self._on_open(self.todo_id)

    def _delete(self):
        if self._on_delete:
            self._on_delete(self.todo_id)


class ScrollableTodoList(ttk.Frame):
    """Canvas + interior Frame pattern with mousewheel support."""
    def __init__(
        self,
        master,
        on_toggle: Optional[Callable[[str, bool], None]] = None,
        on_open: Optional[Callable[[str], None]] = None,
        on_delete: Optional[Callable[[str], None]] = None,
        row_wrap: int = 600,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._on_toggle = on_toggle
        self._on_open = on_open
        self._on_delete = on_delete
        self._row_wrap = row_wrap
        self._rows: Dict[str, TodoRow] = {}

        style = ttk.Style(self)
        style.configure("Task.Normal.TLabel")
        style.configure("Task.Done.TLabel", foreground="#888888")

        self.canvas = tk.Canvas(self, highlightthickness=0)
        self.vbar = ttk.Scrollbar(self, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=self.vbar.set)
        self.canvas.grid(row=0, column=0, sticky="nsew")
        self.vbar.grid(row=0, column=1, sticky="ns")
        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)

        self.interior = ttk.Frame(self.canvas)
        self._win_id = self.canvas.create_window(0, 0, window=self.interior, anchor="nw")
        self.interior.bind("<Configure>", lambda e: self._update_scrollregion())
        self.canvas.bind("<Configure>", self._on_canvas_configure)

        self.canvas.bind("<Enter>", lambda e: self._bind_mousewheel())
        self.canvas.bind("<Leave>", lambda e: self._unbind_mousewheel())

    def set_todos(self, todos: Sequence[Todo]):
        for row in self._rows.values():
            row.destroy()
        self._rows.clear()
        today = dt.date.today()
        for i, todo in enumerate(todos):
            row = TodoRow(
                self.interior,
                todo_id=todo.id,
                text=todo.title,
                done=todo.status == TodoStatus.COMPLETED.value,
                tags=todo_tags(todo, today),
                on_toggle=self._on_toggle,
                on_open=self._on_open,
                on_delete=self._on_delete,
                wrap=self._row_wrap,
            )
            row.grid(row=i, column=0, sticky="we", padx=(8, 8), pady=(2, 2))
            self._rows[todo.id] = row
        self.interior.columnconfigure(0, weight=1)
        self._update_scrollregion()

    def _update_scrollregion(self):
        self.canvas.configure(scrollregion=self.canvas.bbox("all"))

    def _on_canvas_configure(self, event):
        # keep interior width synced to canvas for wrapping
        self.canvas.itemconfigure(self._win_id, width=event.width)
        for row in self._rows.values():
            row.lbl.configure(wraplength=max(event.width - 160, 100))

    def _bind_mousewheel(self):
        self.canvas.bind_all("<MouseWheel>", self._on_mousewheel)
        self.canvas.bind_all("<Button-4>", lambda e: self.canvas.yview_scroll(-1, "units"))
        self.canvas.bind_all("<Button-5>", lambda e: self.canvas.yview_scroll(1, "units"))

    def _unbind_mousewheel(self):
        for seq in ("<MouseWheel>", "<Button-4>", "<Button-5>"):
            self.canvas.unbind_all(seq)

    def _on_mousewheel(self, event):
        self.canvas.yview_scroll(int(-1 * (event.delta / 120)), "units")


def ideal_text_color(bg_hex: str) -> str:
    """Return black or white depending on background brightness."""
    bg_hex = bg_hex.strip().lstrip('#')
    if len(bg_hex) == 3:
        bg_hex = ''.join(c * 2 for c in bg_hex)
    try:
        r = int(bg_hex[0:2], 16)
        g = int(bg_hex[2:4], 16)
        b = int(bg_hex[4:6], 16)
    except ValueError:
        return "black"
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return "black" if luminance > 186 else "white"
