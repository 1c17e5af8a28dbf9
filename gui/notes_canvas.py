"""
Notes canvas view: draggable text/image notes of one todo, drawn on a tk.Canvas.

All state lives in services.notes_board.NoteBoard; this widget only forwards
pointer/keyboard events to it and redraws.
"""
from __future__ import annotations
import logging
from typing import Dict, Optional
import tkinter as tk
from tkinter import ttk, filedialog

from core.models import NoteItem, NoteKind, SyncState
from services.notes_board import NoteBoard

logger = logging.getLogger(__name__)

SYNC_BADGES = {
    SyncState.CLEAN: ("Saved", "#10B981"),
    SyncState.PENDING: ("Saving…", "#F59E0B"),
    SyncState.FAILED: ("Not saved", "#B00020"),
}


class TkScheduler:
    """Adapter so NoteBoard can debounce writes on the Tk event loop."""
    def __init__(self, widget: tk.Misc):
        self.widget = widget

    def call_later(self, delay_ms: int, callback):
        return self.widget.after(delay_ms, callback)

    def cancel(self, handle):
        try:
            self.widget.after_cancel(handle)
        except tk.TclError:
            pass


class NotesCanvasView(ttk.Frame):
    def __init__(self, master, board: NoteBoard, height: int = 380):
        super().__init__(master)
        self.board = board
        self._windows: Dict[str, int] = {}
        self._images: Dict[str, tk.PhotoImage] = {}

        header = ttk.Frame(self)
        header.pack(fill="x", pady=(0, 4))
        ttk.Label(header, text="Notes Canvas", font=("Segoe UI", 11, "bold")).pack(side="left")
        ttk.Button(header, text="+ Image", command=self._on_add_image).pack(side="right")
        ttk.Button(header, text="+ Text Note", command=self._on_add_text).pack(side="right", padx=(0, 6))
        self.sync_lbl = tk.Label(header, padx=4)
        self.sync_lbl.pack(side="right", padx=(0, 10))

        self.canvas = tk.Canvas(self, height=height, bg="#242424", highlightthickness=1,
                                highlightbackground="#3a3a3a")
        self.canvas.pack(fill="both", expand=True)
        self.redraw()

    # ---------- render ----------
    def redraw(self):
        # delete("all") solo quita los items; los widgets embebidos hay que destruirlos
        for child in self.canvas.winfo_children():
            child.destroy()
        self.canvas.delete("all")
        self._windows.clear()
        self._images.clear()
        if not self.board.items:
            self.canvas.create_text(20, 20, anchor="nw", fill="#888888",
                                    text='Click "+ Text Note" or "+ Image" to add notes')
        for item in self.board.items:
            self._draw_item(item)
        self._render_sync()

    def _draw_item(self, item: NoteItem):
        width, height = item.size
        frame = tk.Frame(self.canvas, bg="#1a1a1a", highlightthickness=2, highlightbackground="#3a3a3a")
        handle = tk.Frame(frame, bg="#2b2b2b", height=14, cursor="fleur")
        handle.pack(fill="x")
        close = tk.Label(handle, text="×", bg="#ff7800", fg="white", padx=4, cursor="hand2")
        close.pack(side="right")
        close.bind("<Button-1>", lambda e, i=item.id: self._on_remove(i))

        if item.kind == NoteKind.TEXT:
            text = tk.Text(frame, bg="#1a1a1a", fg="white", insertbackground="white",
                           relief="flat", wrap="word")
            text.insert("1.0", item.content)
            text.edit_modified(False)
            text.pack(fill="both", expand=True)
            text.bind("<<Modified>>", lambda e, i=item.id, w=text: self._on_text_modified(i, w))
            text.bind("<FocusOut>", lambda e: self._on_flush())
        else:
            photo = _photo_from_data_uri(item.content, width, height)
            if photo is not None:
                self._images[item.id] = photo
                tk.Label(frame, image=photo, bg="#1a1a1a").pack(fill="both", expand=True)
            else:
                tk.Label(frame, text="[image]", bg="#1a1a1a", fg="#888888").pack(fill="both", expand=True)

        for widget in (handle, frame):
            widget.bind("<ButtonPress-1>", lambda e, i=item.id: self._on_press(i, e))
            widget.bind("<B1-Motion>", self._on_motion)
            widget.bind("<ButtonRelease-1>", self._on_release)

        self._windows[item.id] = self.canvas.create_window(
            item.x, item.y, window=frame, anchor="nw", width=width, height=height)

    def _render_sync(self):
        text, color = SYNC_BADGES[self.board.sync_state]
        self.sync_lbl.configure(text=text, bg=color, fg="white")

    # ---------- pointer ----------
    def _pointer(self, event):
        x = self.canvas.canvasx(event.x_root - self.canvas.winfo_rootx())
        y = self.canvas.canvasy(event.y_root - self.canvas.winfo_rooty())
        return int(x), int(y)

    def _on_press(self, item_id: str, event):
        self.board.begin_drag(item_id, self._pointer(event))

    def _on_motion(self, event):
        item_id = self.board.dragging_id
        if item_id is None:
            return
        self.board.update_drag(self._pointer(event))
        item = self.board.get(item_id)
        if item is not None and item_id in self._windows:
            self.canvas.coords(self._windows[item_id], item.x, item.y)

    def _on_release(self, _event):
        if self.board.end_drag():
            self._render_sync()

    # ---------- actions ----------
    def _on_add_text(self):
        self.board.add_text()
        self.redraw()

    def _on_add_image(self):
        path = filedialog.askopenfilename(
            parent=self, title="Add image",
            filetypes=[("Images", "*.png *.gif *.jpg *.jpeg *.webp"), ("All files", "*.*")])
        if not path:
            return
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            logger.error("Could not read image %s: %s", path, e)
            return
        self.board.add_image(data)
        self.redraw()

    def _on_remove(self, item_id: str):
        self.board.remove(item_id)
        self.redraw()

    def _on_text_modified(self, item_id: str, widget: tk.Text):
        if not widget.edit_modified():
            return
        widget.edit_modified(False)
        self.board.edit_content(item_id, widget.get("1.0", "end-1c"))
        self._render_sync()
        # the debounced save happens later; refresh the badge then
        self.after(self.board.debounce_ms + 50, self._render_sync_if_alive)

    def _on_flush(self):
        self.board.flush()
        self._render_sync()

    def _render_sync_if_alive(self):
        if self.winfo_exists():
            self._render_sync()

    def close(self):
        self.board.close()


def _photo_from_data_uri(content: str, width: int, height: int) -> Optional[tk.PhotoImage]:
    # Tk only decodes PNG/GIF natively; anything else shows a placeholder
    if not content.startswith(("data:image/png;base64,", "data:image/gif;base64,")):
        return None
    try:
        photo = tk.PhotoImage(data=content.split(",", 1)[1])
    except tk.TclError:
        return None
    factor = max(1, -(-photo.width() // max(width, 1)), -(-photo.height() // max(height - 14, 1)))
    return photo.subsample(factor) if factor > 1 else photo
