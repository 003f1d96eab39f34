"""
Tests for the application context: entry points and the end-to-end scenarios.
"""
from atlas.app import AtlasApp, normalize_priority_filter, normalize_project_filter
from atlas.modal import CANCEL, CONFIRM
from atlas.resolver import MATCH_TITLE
from atlas.schema import TaskStatus
from atlas.storage import MemoryStorage, SqliteStorage
from atlas.store import AtlasStore

from conftest import TODAY

S = TaskStatus


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Scenarios
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_first_load_then_reload(storage, config):
    """Empty storage → seed persisted; a second context reads the same set."""
    first = AtlasApp(storage, config=config, today=TODAY)
    second = AtlasApp(storage, config=config, today=TODAY)
    try:
        assert len(first.store.tasks) == 13
        assert [t.id for t in second.store.tasks] == [t.id for t in first.store.tasks]
        assert len(second.store.projects) == 3
    finally:
        first.close()
        second.close()


def test_create_task_appears_once_and_resolves(app):
    app.open_add_task_modal("planning")
    assert app.modal.submit({"title": "Order tile", "project": "kitchen", "priority": "high"})

    matches = [t for t in app.store.tasks if t.title == "Order tile"]
    assert len(matches) == 1
    task = matches[0]
    assert task.status is S.PLANNING
    assert task.id.startswith("t")
    assert app.page.column(S.PLANNING).task_ids.count(task.id) == 1
    assert app.page.badges[S.PLANNING] == 3

    res = app.resolver.resolve("Order tile")
    assert res.task is task
    assert res.match == MATCH_TITLE
    assert app.page.toasts[-1] == "Order tile added to Research & Planning"


def test_drag_planning_to_blocked(app):
    app.board.pointer_down("t4", 0, 0)
    app.board.pointer_move(0, 30)
    app.board.pointer_up("blocked")

    assert app.store.get_task("t4").status is S.BLOCKED
    assert app.page.badges[S.PLANNING] == 1
    assert app.page.badges[S.BLOCKED] == 3
    assert "t4" in app.page.column(S.BLOCKED).task_ids
    assert app.page.toasts[-1] == "Get quote: egress window moved to Waiting on External"


def test_delete_after_confirm(app):
    dialog = app.delete_task("t4")
    assert dialog.kind == "confirm"
    assert app.store.get_task("t4") is not None

    app.page.click(CONFIRM)
    assert app.store.get_task("t4") is None
    assert "t4" not in app.index
    assert not app.resolver.resolve("t4").resolved
    assert "t4" not in app.page.column(S.PLANNING).task_ids
    assert app.page.toasts[-1] == "Get quote: egress window deleted"


def test_delete_cancelled_keeps_task(app):
    app.delete_task("t4")
    app.page.click(CANCEL)
    assert app.store.get_task("t4") is not None
    assert not app.modal.is_open


def test_second_context_follows_without_refresh(storage, config):
    """Context A moves a task to done; context B re-renders from the sync signal."""
    a = AtlasApp(storage, config=config, today=TODAY)
    b = AtlasApp(storage, config=config, today=TODAY)
    try:
        a.board.start_drag("t7")
        a.board.drop("done")

        assert b.store.get_task("t7").status is S.DONE
        assert "t7" in b.page.column(S.DONE).task_ids
        assert "t7" not in b.page.column(S.IN_PROGRESS).task_ids
        assert b.page.badges[S.DONE] == 4
    finally:
        a.close()
        b.close()


def test_second_process_follows_via_check(db_path, config):
    a = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    b = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    try:
        a.move_task("t7", S.DONE)
        assert b.store.get_task("t7").status is S.IN_PROGRESS
        assert b.bus.check()
        assert "t7" in b.page.column(S.DONE).task_ids
    finally:
        a.close()
        b.close()


def test_pending_change_applies_before_next_edit(db_path, config):
    """A flagged foreign change waits for the owner, then lands before its edit."""
    a = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    b = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    try:
        a.move_task("t7", S.DONE)
        tasks_before = b.store.tasks
        b.bus.signal()
        assert b.store.tasks is tasks_before
        assert b.store.get_task("t7").status is S.IN_PROGRESS

        b.create_task({"title": "Patch drywall", "project": "basement"})

        fresh = AtlasStore(SqliteStorage(db_path), today=TODAY)
        fresh.load()
        assert fresh.get_task("t7").status is S.DONE
        assert [t.title for t in fresh.tasks].count("Patch drywall") == 1
        assert not b.pump()
    finally:
        a.close()
        b.close()


def test_pump_refreshes_board(db_path, config):
    a = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    b = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    try:
        a.remove_task("t3")
        b.bus.signal()
        assert "t3" in b.page.column(S.PLANNING).task_ids
        assert b.pump()
        assert "t3" not in b.page.column(S.PLANNING).task_ids
    finally:
        a.close()
        b.close()


def test_drop_applies_pending_change_first(db_path, config):
    a = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    b = AtlasApp(SqliteStorage(db_path), config=config, today=TODAY)
    try:
        a.move_task("t7", S.DONE)
        b.bus.signal()
        b.board.start_drag("t3")
        b.board.drop("blocked")

        fresh = AtlasStore(SqliteStorage(db_path), today=TODAY)
        fresh.load()
        assert fresh.get_task("t7").status is S.DONE
        assert fresh.get_task("t3").status is S.BLOCKED
    finally:
        a.close()
        b.close()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Opening tasks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_open_task_by_name_shows_details(app):
    res = app.open_task("schedule tile install")
    assert res.task.id == "t5"
    content = app.page.dialog.content
    assert "Schedule tile install" in content
    assert "Kitchen Renovation" in content
    assert "Permitted &amp; Ready" in content


def test_open_unknown_name_shows_placeholder(app):
    res = app.open_task("Buy paint for nursery")
    assert not res.resolved
    assert "This appears to be a template item not yet created." in app.page.dialog.content


def test_dependencies_render_missing_placeholder(app):
    app.store.update_task("t5", dependencies=["t3", "t99"])
    app.open_task("t5")
    content = app.page.dialog.content
    assert "Order backsplash tiles" in content
    assert "Missing task t99" in content


def test_board_click_opens_task(app):
    assert app.board.click("t9")
    assert "Wait for electrical inspection" in app.page.dialog.content


def test_add_button_opens_form_for_its_column(app):
    assert app.board.add_task_clicked("ready")
    assert app.page.dialog.title == "Add Task"
    app.modal.submit({"title": "Buy grout"})
    task = app.resolver.resolve("Buy grout").task
    assert task.status is S.READY
    assert task.project == "kitchen"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Edit / move / projects
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_edit_task(app):
    app.open_edit_task_modal("t6")
    assert 'value="Purchase vanity hardware"' in app.page.dialog.content
    assert app.modal.submit({"title": "Purchase vanity pulls", "project": "bathroom",
                             "priority": "low", "labels": "hardware"})
    task = app.store.get_task("t6")
    assert task.title == "Purchase vanity pulls"
    assert task.status is S.READY
    assert app.index.ids_for_title("purchase vanity pulls") == ["t6"]


def test_edit_rejects_blank_title(app):
    app.open_edit_task_modal("t6")
    assert not app.modal.submit({"title": ""})
    assert "Title is required" in app.page.dialog.content
    assert app.store.get_task("t6").title == "Purchase vanity hardware"


def test_edit_missing_task(app):
    app.open_edit_task_modal("nope")
    assert "could not be found" in app.page.dialog.content


def test_move_task_modal(app):
    app.open_move_task_modal("t1")
    assert app.modal.submit({"status": "done"})
    assert app.store.get_task("t1").status is S.DONE
    assert app.page.toasts[-1] == "Replace attic insulation moved to Done Done"


def test_new_project(app):
    app.open_new_project_modal()
    assert not app.modal.submit({"name": "Garage"})
    assert "Budget is required" in app.page.dialog.content

    assert app.modal.submit({"name": "Garage", "budget": "5000", "priority": "high"})
    project = app.store.projects[-1]
    assert project.id.startswith("project-")
    assert project.budget == 5000
    assert project.progress == 0
    assert app.page.toasts[-1] == "Project Garage created successfully!"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Filters
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_filter_normalization():
    assert normalize_project_filter("All Projects") == "all"
    assert normalize_project_filter("Kitchen") == "kitchen"
    assert normalize_project_filter("Guest  Bath") == "guest-bath"
    assert normalize_project_filter("Hallway") == "hallway"
    assert normalize_project_filter(None) == "all"
    assert normalize_priority_filter("High Priority") == "high"
    assert normalize_priority_filter("Everything") == "all"


def test_filter_entry_points(app):
    app.filter_by_project("Bathroom")
    app.filter_by_priority("High Priority")
    assert {t.id for t in app.board.visible_tasks()} == {"t9", "t12"}
    app.filter_by_project("All Projects")
    assert app.page.badges[S.DONE] == 2


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Calendar & documents
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_events_for_date(app):
    dialog = app.open_events_for_date("2025-03-12")
    assert "Tile delivery" in dialog.content
    assert "Contractor meeting" in dialog.content
    assert "All day" in dialog.content

    assert app.open_events_for_date("2025-03-01") is None
    assert app.page.toasts[-1] == "No events for this date."


def test_calendar_entry_points(app):
    assert app.change_month(-3) == "December 2024"
    assert app.change_month(1) == "January 2025"
    assert app.go_to_today() == "March 2025"
    assert not app.change_calendar_view("week")
    assert app.page.toasts[-1] == "Week and Day views are under development."
    assert app.change_calendar_view("month")


def test_events_for_date_follow_calendar_filter(app):
    assert app.filter_calendar_by_project("Basement") == "basement"
    dialog = app.open_events_for_date("2025-03-12")
    assert "Contractor meeting" in dialog.content
    assert "Tile delivery" not in dialog.content
    # the board filter is independent
    assert app.board.project_filter == "all"

    dialog = app.open_events_for_date("2025-03-12", project="All Projects")
    assert "Tile delivery" in dialog.content


def test_open_event_and_add_event(app):
    assert "Electrical inspection" in app.open_event("e1").content
    app.open_add_event_modal("2025-03-20")
    assert 'value="2025-03-20"' in app.page.dialog.content
    assert not app.modal.submit({"title": "Drywall delivery", "date": "next week"})
    assert app.modal.submit({"title": "Drywall delivery", "date": "2025-03-20", "project": "basement"})
    assert [e.title for e in app.store.events_on("2025-03-20")] == ["Drywall delivery"]


def test_open_document(app):
    dialog = app.open_document("file-2")
    assert dialog.title == "File Details"
    assert "Photo set preview (12 items)" in dialog.content
    assert "could not be found" in app.open_document("doc-9").content


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Pages without a board
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_static_page_has_no_board(storage, config):
    ctx = AtlasApp(storage, page="calendar", config=config, today=TODAY)
    try:
        assert ctx.page.columns == {}
        assert ctx.page.badges == {}
        assert ctx.open_task("t1").resolved
        assert ctx.modal.is_open
    finally:
        ctx.close()


def test_index_page_fails_closed(storage, config):
    ctx = AtlasApp(storage, page="index", config=config, today=TODAY)
    try:
        assert ctx.open_task("t1").resolved
        assert not ctx.modal.is_open
        ctx.toast("hello")
        assert list(ctx.page.toasts) == []
    finally:
        ctx.close()


def test_close_detaches_from_storage(storage, config):
    a = AtlasApp(storage, config=config, today=TODAY)
    b = AtlasApp(storage, config=config, today=TODAY)
    b.close()
    a.move_task("t1", S.READY)
    assert b.store.get_task("t1").status is S.SOMEDAY
    a.close()

    fresh = AtlasStore(storage, today=TODAY)
    fresh.load()
    assert fresh.get_task("t1").status is S.READY
