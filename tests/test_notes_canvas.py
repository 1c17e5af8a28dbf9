"""
Tests for the notes canvas widget. They need a display; without one they
are skipped.
"""
import pytest

tk = pytest.importorskip("tkinter")

from gui.notes_canvas import NotesCanvasView  # noqa: E402
from services.notes_board import NoteBoard  # noqa: E402


@pytest.fixture
def root():
    try:
        r = tk.Tk()
    except tk.TclError as e:
        pytest.skip(f"no display: {e}")
    r.withdraw()
    yield r
    r.destroy()


@pytest.fixture
def view(root, store):
    store.seed("todos", id="t1", user_id="user1", title="Write report")
    board = NoteBoard(store, "t1")
    board.load()
    v = NotesCanvasView(root, board)
    v.pack()
    return v


def test_redraw_keeps_one_widget_set_per_note(view):
    for _ in range(5):
        view._on_add_text()
    assert len(view.board.items) == 5
    assert len(view.canvas.winfo_children()) == 5


def test_removed_note_widgets_are_destroyed(view):
    view._on_add_text()
    view._on_add_text()
    first = view.board.items[0]
    view._on_remove(first.id)
    assert len(view.canvas.winfo_children()) == 1
    assert list(view._windows) == [view.board.items[0].id]
