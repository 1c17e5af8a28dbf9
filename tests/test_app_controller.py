"""Tests for AppController: CRUD over the store and change notifications."""
import pytest

from controller.app_controller import AppController, local_datetime, normalize_todo_fields
from core.exceptions import AuthError
from core.models import SyncState


@pytest.fixture
def controller(store):
    return AppController(store)


@pytest.fixture
def events(controller):
    seen = []
    controller.subscribe(seen.append)
    return seen


def test_categories_crud(controller, store, events):
    work = controller.add_category("  Work ", "#2E86DE")
    home = controller.add_category("Home")
    store.seed("categories", name="Not mine", user_id="someone-else")
    assert [c.name for c in controller.load_categories()] == ["Work", "Home"]
    assert work.color == "#2E86DE" and home.color is None
    assert controller.add_category("   ") is None
    assert events == ["categories", "categories"]


def test_delete_category_removes_its_todos(controller, store):
    cat = controller.add_category("Work")
    controller.add_todo("a", category_id=cat.id)
    keep = controller.add_todo("b")
    controller.delete_category(cat.id)
    assert controller.load_categories() == []
    assert [t.id for t in controller.list_todos()] == [keep.id]


def test_add_todo_defaults(controller, events):
    todo = controller.add_todo(" Call bank ", scheduled_date="2024-03-10", priority="high")
    assert todo.title == "Call bank"
    assert todo.status == "pending"
    assert todo.scheduled_date == "2024-03-10"
    assert todo.priority == "high"
    assert todo.user_id == "user1"
    assert controller.add_todo("") is None
    assert events == ["todos"]


def test_list_todos_by_category(controller):
    cat = controller.add_category("Work")
    a = controller.add_todo("a", category_id=cat.id)
    controller.add_todo("b")
    assert [t.id for t in controller.list_todos(cat.id)] == [a.id]


def test_completed_at_follows_status(controller, store):
    todo = controller.add_todo("a")
    controller.toggle_done(todo)
    rec = store.tables["todos"][todo.id]
    assert rec["status"] == "completed"
    stamp = rec["completed_at"]
    assert stamp and todo.completed_at == stamp

    controller.set_status(todo, "completed")
    assert store.tables["todos"][todo.id]["completed_at"] == stamp

    controller.toggle_done(todo)
    assert store.tables["todos"][todo.id]["status"] == "pending"
    assert store.tables["todos"][todo.id]["completed_at"] is None


def test_set_status_rejects_unknown_value(controller):
    todo = controller.add_todo("a")
    with pytest.raises(ValueError):
        controller.set_status(todo, "archived")


def test_get_and_delete_todo(controller, events):
    todo = controller.add_todo("a")
    assert controller.get_todo(todo.id).title == "a"
    controller.delete_todo(todo.id)
    assert controller.get_todo(todo.id) is None
    assert events == ["todos", "todos"]


def test_requires_signed_in_user(controller, store):
    store.user_id = None
    with pytest.raises(AuthError):
        controller.load_categories()


def test_open_notes_notifies_on_save(controller, store, events):
    todo = controller.add_todo("a")
    board = controller.open_notes(todo.id)
    board.add_text()
    assert board.sync_state == SyncState.CLEAN
    assert events[-1] == "notes"


def test_links_notify(controller, events):
    todo = controller.add_todo("a")
    link = controller.add_link(todo.id, "Docs", "https://example.com")
    controller.delete_link(link.id)
    assert events[-2:] == ["links", "links"]


def test_unsubscribe_and_failing_listener(controller):
    seen = []

    def broken(reason):
        raise RuntimeError("listener bug")

    controller.subscribe(broken)
    unsubscribe = controller.subscribe(seen.append)
    controller.notify("todos")
    unsubscribe()
    controller.notify("todos")
    assert seen == ["todos"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Full task fields
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_add_todo_with_all_fields_round_trips(controller, store):
    cat = controller.add_category("Work")
    todo = controller.add_todo(
        "Quarterly report", category_id=cat.id, scheduled_date="2024-03-10",
        description="  numbers for Q1 ", priority="medium",
        start_time="2024-03-10T09:00:00+00:00", due_time="2024-03-10T17:30:00+02:00",
        timer_preset_minutes="25",
    )
    again = controller.get_todo(todo.id)
    assert again.category_id == cat.id
    assert again.description == "numbers for Q1"
    assert again.priority == "medium"
    assert again.start_time == "2024-03-10 09:00:00.000Z"
    assert again.due_time == "2024-03-10 15:30:00.000Z"
    assert again.timer_preset_minutes == 25


def test_update_todo_edits_every_field(controller, store, events):
    todo = controller.add_todo("a")
    controller.update_todo(todo, title=" b ", description="details", priority="high",
                           due_time="2024-05-01T12:00:00Z", timer_preset_minutes=45,
                           scheduled_date="2024-05-01")
    rec = store.tables["todos"][todo.id]
    assert rec["title"] == "b"
    assert rec["description"] == "details"
    assert rec["priority"] == "high"
    assert rec["due_time"] == "2024-05-01 12:00:00.000Z"
    assert rec["timer_preset_minutes"] == 45
    assert rec["scheduled_date"] == "2024-05-01"
    assert todo.priority == "high" and todo.title == "b"
    assert events[-1] == "todos"


def test_update_todo_clears_blank_fields(controller, store):
    todo = controller.add_todo("a", priority="low", description="x", timer_preset_minutes=10)
    controller.update_todo(todo, title="", priority="", description="  ", timer_preset_minutes="")
    rec = store.tables["todos"][todo.id]
    assert rec["title"] == "a"
    assert rec["priority"] is None
    assert rec["description"] is None
    assert rec["timer_preset_minutes"] is None


@pytest.mark.parametrize("fields", [
    {"priority": "urgent"},
    {"scheduled_date": "10/03/2024"},
    {"due_time": "xyz"},
    {"timer_preset_minutes": "-5"},
    {"timer_preset_minutes": "abc"},
])
def test_invalid_fields_are_rejected_before_writing(controller, store, fields):
    todo = controller.add_todo("a")
    with pytest.raises(ValueError):
        controller.update_todo(todo, **fields)
    assert store.calls.count("update") == 0


def test_normalize_keeps_untouched_keys():
    assert normalize_todo_fields({"status": "completed"}) == {"status": "completed"}


def test_local_datetime_of_empty_value():
    assert local_datetime(None) == ""
    assert local_datetime("") == ""


def test_calendar_gets_its_own_client(controller, store):
    controller.calendar()
    assert "fork" in store.calls
