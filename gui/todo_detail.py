import logging
import tkinter as tk
import webbrowser
from tkinter import ttk, messagebox as mb

from controller.app_controller import AppController
from core.exceptions import PBError
from core.models import Todo, TodoStatus
from gui.notes_canvas import NotesCanvasView, TkScheduler
from gui.todo_form import TodoFields
from services.links_service import youtube_embed_url
from services.timer import PRESETS, CountdownTimer

logger = logging.getLogger(__name__)


class TodoDetailWindow(tk.Toplevel):
    """Detalle de una tarea: datos, links, temporizador y tablero de notas."""
    def __init__(self, master, controller: AppController, todo: Todo):
        super().__init__(master)
        self.controller = controller
        self.todo = todo
        self.title(todo.title or "Todo")
        self.geometry("900x760")
        self.configure(padx=8, pady=8)
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._build_header()
        body = ttk.Frame(self)
        body.pack(fill="both", expand=True)
        left = ttk.Frame(body)
        left.pack(side="left", fill="both", expand=True)
        right = ttk.Frame(body)
        right.pack(side="right", fill="y", padx=(8, 0))

        board = controller.open_notes(todo.id, scheduler=TkScheduler(self))
        self.notes = NotesCanvasView(left, board)
        self.notes.pack(fill="both", expand=True)

        self.links = LinksPanel(right, controller, todo.id)
        self.links.pack(fill="x", pady=(0, 8))
        self.timer = TimerPanel(right, CountdownTimer(preset_minutes=todo.timer_preset_minutes,
                                                      initial_seconds=todo.timer_custom_seconds))
        self.timer.pack(fill="x")

    def _build_header(self):
        header = ttk.Frame(self)
        header.pack(fill="x", pady=(0, 8))
        try:
            categories = self.controller.load_categories()
        except PBError as e:
            logger.warning("Error loading categories: %s", e)
            categories = []
        self.fields = TodoFields(header, categories, todo=self.todo)
        self.fields.pack(side="left", fill="x", expand=True)

        side = ttk.Frame(header)
        side.pack(side="right", anchor="n", padx=(8, 0))
        ttk.Label(side, text="Estado:").pack(anchor="w")
        self.status_var = tk.StringVar(value=self.todo.status)
        ttk.Combobox(side, textvariable=self.status_var, state="readonly", width=12,
                     values=[s.value for s in TodoStatus]).pack(fill="x", pady=(0, 6))
        ttk.Button(side, text="Guardar", command=self._on_save).pack(fill="x")
        ttk.Button(side, text="Eliminar", command=self._on_delete).pack(fill="x", pady=(4, 0))

    def _on_save(self):
        try:
            self.controller.update_todo(self.todo, status=self.status_var.get(), **self.fields.values())
        except ValueError as e:
            mb.showerror("Guardar", f"Dato inválido:\n{e}", parent=self)
            return
        except PBError as e:
            mb.showerror("Guardar", f"No se pudo guardar la tarea:\n{e}", parent=self)
            return
        self.title(self.todo.title)

    def _on_delete(self):
        if not mb.askyesno("Eliminar", f"¿Eliminar la tarea?\n\n{self.todo.title}", parent=self):
            return
        self.notes.close()
        try:
            self.controller.delete_todo(self.todo.id)
        except PBError as e:
            mb.showerror("Eliminar", f"No se pudo eliminar la tarea:\n{e}", parent=self)
            return
        self.timer.stop()
        self.destroy()

    def _on_close(self):
        self.notes.close()
        self.timer.stop()
        self.destroy()


class LinksPanel(ttk.LabelFrame):
    def __init__(self, master, controller: AppController, todo_id: str):
        super().__init__(master, text="Links", padding=6)
        self.controller = controller
        self.todo_id = todo_id

        form = ttk.Frame(self)
        form.pack(fill="x")
        self.label_var = tk.StringVar()
        self.url_var = tk.StringVar()
        ttk.Entry(form, textvariable=self.label_var, width=14).pack(side="left")
        ttk.Entry(form, textvariable=self.url_var, width=22).pack(side="left", padx=4)
        ttk.Button(form, text="+", width=2, command=self._on_add).pack(side="left")

        self.rows = ttk.Frame(self)
        self.rows.pack(fill="x", pady=(6, 0))
        self.refresh()

    def refresh(self):
        for child in self.rows.winfo_children():
            child.destroy()
        try:
            links = self.controller.links().list(self.todo_id)
        except PBError as e:
            logger.warning("Error loading links for %s: %s", self.todo_id, e)
            return
        if not links:
            ttk.Label(self.rows, text="No links added yet").pack(anchor="w")
        for link in links:
            row = ttk.Frame(self.rows)
            row.pack(fill="x", pady=1)
            target = youtube_embed_url(link.url) or link.url
            lbl = ttk.Label(row, text=f"{link.label} →", foreground="#2563EB", cursor="hand2")
            lbl.pack(side="left")
            lbl.bind("<Button-1>", lambda e, url=target: webbrowser.open(url))
            ttk.Button(row, text="×", width=2,
                       command=lambda lid=link.id: self._on_delete(lid)).pack(side="right")

    def _on_add(self):
        try:
            link = self.controller.add_link(self.todo_id, self.label_var.get(), self.url_var.get())
        except PBError as e:
            logger.error("Error adding link: %s", e)
            return
        if link:
            self.label_var.set("")
            self.url_var.set("")
        self.refresh()

    def _on_delete(self, link_id: str):
        if not mb.askyesno("Links", "¿Eliminar este link?", parent=self):
            return
        try:
            self.controller.delete_link(link_id)
        except PBError as e:
            logger.error("Error deleting link: %s", e)
        self.refresh()


class TimerPanel(ttk.LabelFrame):
    def __init__(self, master, timer: CountdownTimer):
        super().__init__(master, text="Timer", padding=6)
        self.timer = timer
        self.timer.on_complete = self._on_complete
        self._after_id = None

        self.display_var = tk.StringVar(value=timer.display)
        ttk.Label(self, textvariable=self.display_var, font=("Segoe UI", 24, "bold")).pack(pady=4)

        buttons = ttk.Frame(self)
        buttons.pack()
        ttk.Button(buttons, text="Start", command=self._on_start).pack(side="left")
        ttk.Button(buttons, text="Pause", command=self._on_pause).pack(side="left", padx=2)
        ttk.Button(buttons, text="Resume", command=self._on_resume).pack(side="left")
        ttk.Button(buttons, text="Reset", command=self._on_reset).pack(side="left", padx=2)

        presets = ttk.Frame(self)
        presets.pack(pady=(6, 0))
        for minutes in PRESETS:
            ttk.Button(presets, text=str(minutes), width=3,
                       command=lambda m=minutes: self._set(lambda: self.timer.set_preset(m))).pack(side="left")

        custom = ttk.Frame(self)
        custom.pack(pady=(6, 0))
        self.min_var = tk.StringVar()
        self.sec_var = tk.StringVar()
        ttk.Entry(custom, textvariable=self.min_var, width=4).pack(side="left")
        ttk.Label(custom, text="m").pack(side="left")
        ttk.Entry(custom, textvariable=self.sec_var, width=4).pack(side="left")
        ttk.Label(custom, text="s").pack(side="left")
        ttk.Button(custom, text="Set", command=self._on_custom).pack(side="left", padx=4)

    def _set(self, change):
        self.stop()
        change()
        self.display_var.set(self.timer.display)

    def _on_custom(self):
        minutes = int(self.min_var.get()) if self.min_var.get().isdigit() else 0
        seconds = int(self.sec_var.get()) if self.sec_var.get().isdigit() else 0
        self._set(lambda: self.timer.set_custom(minutes, seconds))

    def _on_start(self):
        if self.timer.start():
            self._schedule()

    def _on_pause(self):
        self.timer.pause()
        self.stop()

    def _on_resume(self):
        self.timer.resume()
        if self.timer.running:
            self._schedule()

    def _on_reset(self):
        self._set(self.timer.reset)

    def _schedule(self):
        self.stop()
        self._after_id = self.after(1000, self._tick)

    def _tick(self):
        self._after_id = None
        self.timer.tick()
        self.display_var.set(self.timer.display)
        if self.timer.running:
            self._schedule()

    def _on_complete(self):
        self.bell()

    def stop(self):
        if self._after_id is not None:
            self.after_cancel(self._after_id)
            self._after_id = None
