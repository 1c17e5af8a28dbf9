"""
Calendar tab: month/week grid of todos bucketed by scheduled date.

Fetches run on a worker thread; results are marshalled back with `after()`
and applied through the aggregator's token, so a late answer for a window
the user already left is dropped.
"""
from __future__ import annotations
import datetime as dt
import logging
import threading
from typing import Callable, Optional
import tkinter as tk
from tkinter import ttk

from core.exceptions import PBError
from core.models import ViewMode
from services.calendar_service import CalendarAggregator, status_color, visible_entries
from gui.task_list import ideal_text_color

logger = logging.getLogger(__name__)

WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class CalendarView(ttk.Frame):
    def __init__(self, master, aggregator: CalendarAggregator,
                 on_open_todo: Optional[Callable[[str], None]] = None,
                 on_create_todo: Optional[Callable[[dt.date], None]] = None):
        super().__init__(master)
        self.aggregator = aggregator
        self._on_open_todo = on_open_todo
        self._on_create_todo = on_create_todo

        top = ttk.Frame(self)
        top.pack(fill="x", pady=(6, 6))
        self.mode_var = tk.StringVar(value=aggregator.window.mode.value)
        ttk.Radiobutton(top, text="Month", value=ViewMode.MONTH.value, variable=self.mode_var,
                        command=self._on_mode).pack(side="left")
        ttk.Radiobutton(top, text="Week", value=ViewMode.WEEK.value, variable=self.mode_var,
                        command=self._on_mode).pack(side="left", padx=(4, 12))
        ttk.Button(top, text="←", width=3, command=lambda: self._on_go(-1)).pack(side="left")
        ttk.Button(top, text="Today", command=self._on_today).pack(side="left", padx=4)
        ttk.Button(top, text="→", width=3, command=lambda: self._on_go(1)).pack(side="left")
        self.title_var = tk.StringVar()
        ttk.Label(top, textvariable=self.title_var, font=("Segoe UI", 12, "bold")).pack(side="left", padx=12)

        self.grid_frame = ttk.Frame(self)
        self.grid_frame.pack(fill="both", expand=True)
        for col in range(7):
            self.grid_frame.columnconfigure(col, weight=1, uniform="day")

        self.render()
        self.refresh()

    # ---------- navigation ----------
    def _on_mode(self):
        self.aggregator.set_mode(ViewMode(self.mode_var.get()))
        self.render()
        self.refresh()

    def _on_go(self, direction: int):
        self.aggregator.go(direction)
        self.render()
        self.refresh()

    def _on_today(self):
        self.aggregator.today()
        self.render()
        self.refresh()

    # ---------- data ----------
    def refresh(self):
        """Fetch the visible window in the background."""
        token, window = self.aggregator.begin_fetch()

        def worker():
            try:
                tasks = self.aggregator.fetch_window(window)
            except PBError as e:
                self._post(lambda: self.aggregator.fail(token, e))
                return
            self._post(lambda: self._apply(token, window, tasks))

        threading.Thread(target=worker, daemon=True).start()

    def _post(self, callback):
        try:
            self.after(0, callback)
        except (tk.TclError, RuntimeError):
            # window already destroyed
            logger.debug("Calendar view gone; dropping response")

    def _apply(self, token, window, tasks):
        if not self.winfo_exists():
            return
        if self.aggregator.apply(token, window, tasks):
            self.render()

    # ---------- render ----------
    def render(self):
        window = self.aggregator.window
        if window.mode == ViewMode.MONTH:
            self.title_var.set(window.anchor.strftime("%B %Y"))
        else:
            self.title_var.set(f"{window.start:%b %d} – {window.end:%b %d, %Y}")

        for child in self.grid_frame.winfo_children():
            child.destroy()
        for col, name in enumerate(WEEKDAYS):
            ttk.Label(self.grid_frame, text=name, anchor="center").grid(row=0, column=col, sticky="we")

        # only draw entries computed for this exact window; otherwise empty cells until the fetch lands
        buckets = self.aggregator.buckets if self.aggregator.buckets_window == window else {}
        today = dt.date.today()
        for idx, day in enumerate(self.aggregator.days):
            row, col = divmod(idx, 7)
            in_month = window.mode == ViewMode.WEEK or day.month == window.anchor.month
            cell = tk.Frame(self.grid_frame, bg="#2b2b2b" if in_month else "#1a1a1a",
                            highlightthickness=1, highlightbackground="#3a3a3a")
            cell.grid(row=row + 1, column=col, sticky="nsew")
            self.grid_frame.rowconfigure(row + 1, weight=1)
            tk.Label(cell, text=str(day.day), bg="#01aaff" if day == today else cell["bg"],
                     fg="white" if in_month else "#666666", anchor="w").pack(fill="x")

            shown, hidden = visible_entries(buckets.get(day, []))
            for todo in shown:
                color = status_color(todo.status)
                btn = tk.Label(cell, text=todo.title, bg=color, fg=ideal_text_color(color),
                               anchor="w", cursor="hand2")
                btn.pack(fill="x", padx=2, pady=1)
                btn.bind("<Button-1>", lambda e, tid=todo.id: self._open(tid))
            if hidden:
                tk.Label(cell, text=f"+{hidden} more", bg=cell["bg"], fg="#9CA3AF", anchor="w").pack(fill="x")
            add = tk.Label(cell, text="+ Add", bg=cell["bg"], fg="#888888", anchor="w", cursor="hand2")
            add.pack(fill="x")
            add.bind("<Button-1>", lambda e, d=day: self._create(d))

    def _open(self, todo_id: str):
        if self._on_open_todo:
            self._on_open_todo(todo_id)

    def _create(self, day: dt.date):
        if self._on_create_todo:
            self._on_create_todo(day)
