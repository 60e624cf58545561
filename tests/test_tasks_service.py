from datetime import datetime, timezone

import pytest

from taskboard.services.categories import CategoryService
from taskboard.services.projects import ProjectService
from taskboard.services.tasks import TaskService
from taskboard.services.time_blocks import TimeBlockService, blocks_key
from taskboard.storage.store import MemoryStore, StorageError


@pytest.fixture()
def tasks(store):
    return TaskService(store)


def test_add_and_list(tasks):
    task = tasks.add("  Buy milk ", due_date="2025-05-17", priority="HIGH")
    assert task.title == "Buy milk"
    assert task.priority == "high"
    assert [t.id for t in tasks.list()] == [task.id]


def test_add_rejects_empty_title_and_bad_date(tasks):
    with pytest.raises(ValueError):
        tasks.add("   ")
    with pytest.raises(ValueError):
        tasks.add("x", due_date="someday")
    assert tasks.list() == []


def test_add_returns_none_when_store_fails(failing_store_cls):
    service = TaskService(failing_store_cls(fail_save=True))
    assert service.add("x") is None


def test_update_toggle_and_unknown_fields(tasks):
    task = tasks.add("Write")
    assert tasks.toggle(task.id).status == "completed"
    assert tasks.toggle(task.id).status == "pending"
    assert tasks.update(task.id, due_time="09:00").due_time == "09:00"
    with pytest.raises(ValueError):
        tasks.update(task.id, color="red")
    with pytest.raises(ValueError):
        tasks.update(task.id, status="archived")
    assert tasks.update("missing", title="x") is None


def test_events_fire_and_listener_errors_are_contained(tasks):
    seen = []

    def broken(_task_id):
        raise RuntimeError("boom")

    tasks.subscribe("after_create", seen.append)
    tasks.subscribe("after_create", broken)
    task = tasks.add("Hello")
    assert seen == [task.id]

    tasks.unsubscribe("after_create", seen.append)
    tasks.add("Again")
    assert seen == [task.id]
    with pytest.raises(ValueError):
        tasks.subscribe("after_explode", seen.append)


def test_subtask_inherits_from_parent(tasks):
    parent = tasks.add("Trip", due_date="2025-07-01", priority="low", categories=["c1"], project_id="p1")
    child = tasks.add_subtask(parent.id, "Pack")
    assert child.parent_id == parent.id
    assert (child.due_date, child.priority, child.categories, child.project_id) == (
        "2025-07-01",
        "low",
        ["c1"],
        "p1",
    )
    assert [t.id for t in tasks.subtasks(parent.id)] == [child.id]
    assert tasks.add_subtask("missing", "x") is None


def test_delete_removes_whole_subtree(tasks):
    root = tasks.add("Root")
    child = tasks.add_subtask(root.id, "Child")
    grandchild = tasks.add_subtask(child.id, "Grandchild")
    other = tasks.add("Other")

    removed = tasks.delete(root.id)

    assert removed == sorted([root.id, child.id, grandchild.id])
    assert [t.id for t in tasks.list()] == [other.id]
    assert tasks.delete(root.id) == []


def test_timer_records_elapsed_minutes(tasks):
    task = tasks.add("Focus")
    start = datetime(2025, 5, 17, 9, 0, tzinfo=timezone.utc)
    tasks.start_timer(task.id, start)
    stopped = tasks.stop_timer(task.id, datetime(2025, 5, 17, 9, 25, 59, tzinfo=timezone.utc))
    assert stopped.timer.started_at == "2025-05-17T09:00:00Z"
    assert stopped.timer.completed_at == "2025-05-17T09:25:59Z"
    assert stopped.timer.actual_minutes == 25


def test_set_estimate_rejects_negative(tasks):
    task = tasks.add("Estimate")
    assert tasks.set_estimate(task.id, 15).estimated_minutes == 15
    with pytest.raises(ValueError):
        tasks.set_estimate(task.id, -1)


def test_category_validation_and_cascade(store, tasks):
    categories = CategoryService(store, tasks)
    work = categories.add("Work", "#ff0000")
    assert work.color == "#FF0000"
    with pytest.raises(ValueError):
        categories.add("", "#ff0000")
    with pytest.raises(ValueError):
        categories.add("x" * 41, "#ff0000")
    with pytest.raises(ValueError):
        categories.add("Home", "red")

    task = tasks.add("Report", categories=[work.id, "other"])
    assert categories.update(work.id, name="Office").name == "Office"
    assert categories.delete(work.id) is True
    assert tasks.get(task.id).categories == ["other"]
    assert categories.delete(work.id) is False


def test_project_delete_detaches_tasks(store, tasks):
    projects = ProjectService(store, tasks)
    project = projects.add("Launch", "Ship v1", priority="Critical", color="#123456")
    assert project.priority == "critical"
    task = tasks.add("Landing page", project_id=project.id)

    assert projects.update(project.id, status="active").status == "active"
    with pytest.raises(ValueError):
        projects.update(project.id, owner="someone")

    assert projects.delete(project.id) is True
    assert tasks.get(task.id).project_id is None
    assert projects.list() == []


def test_time_blocks_per_day(store):
    blocks = TimeBlockService(store)
    first = blocks.add("2025-06-01", start_time="9:00", end_time="10:30", title="Deep work")
    second = blocks.add("2025-06-01", start_time="14:00", end_time="15:00")
    blocks.add("2025-06-02", start_time="08:00", end_time="08:30")

    assert first.start_time == "09:00"
    assert blocks_key("2025-06-01") == "timeBlocks_2025-06-01"
    assert [b.id for b in blocks.list("2025-06-01")] == [first.id, second.id]
    assert len(blocks.list("2025-06-02")) == 1

    with pytest.raises(ValueError):
        blocks.add("2025-06-01", start_time="late", end_time="10:00")

    assert blocks.update("2025-06-01", second.id, title="Admin").title == "Admin"
    assert blocks.delete("2025-06-01", second.id) is True
    assert blocks.delete("2025-06-01", second.id) is False


def test_task_sits_in_one_block_at_most(store):
    blocks = TimeBlockService(store)
    a = blocks.add("2025-06-01", start_time="09:00", end_time="10:00")
    b = blocks.add("2025-06-01", start_time="10:00", end_time="11:00")

    blocks.assign_task("2025-06-01", "t1", a.id)
    result = blocks.assign_task("2025-06-01", "t1", b.id)
    assert [blk.task_ids for blk in result] == [[], ["t1"]]

    result = blocks.assign_task("2025-06-01", "t1", None)
    assert [blk.task_ids for blk in result] == [[], []]
    with pytest.raises(ValueError):
        blocks.assign_task("2025-06-01", "t1", "nope")


def test_unreadable_tasks_survive_a_write(store):
    legacy = {"id": "legacy", "dueDate": "2025-05-17"}
    store.save("tasks", [legacy])
    service = TaskService(store)

    task = service.add("New")

    stored = store.load("tasks")
    assert stored[0]["id"] == task.id
    assert stored[1:] == [legacy]
    assert [t.id for t in service.list()] == [task.id]


def test_non_list_tasks_payload_is_not_overwritten(store):
    store.save("tasks", {"version": 2})
    assert TaskService(store).add("New") is None
    assert store.load("tasks") == {"version": 2}


def test_unreadable_blocks_and_categories_survive_a_write(store):
    store.save("timeBlocks_2025-06-01", [{"id": "half", "title": "no times"}])
    store.save("categories", [{"id": "c-old"}])

    block = TimeBlockService(store).add("2025-06-01", start_time="09:00", end_time="10:00")
    category = CategoryService(store).add("Work", "#123456")

    assert [b["id"] for b in store.load("timeBlocks_2025-06-01")] == [block.id, "half"]
    assert [c["id"] for c in store.load("categories")] == [category.id, "c-old"]


def test_planned_days_come_from_stored_keys(store):
    blocks = TimeBlockService(store)
    blocks.add("2025-06-02", start_time="08:00", end_time="08:30")
    blocks.add("2025-06-01", start_time="09:00", end_time="10:00")
    store.save("tasks", [])
    assert blocks.days() == ["2025-06-01", "2025-06-02"]


def test_context_tag(tasks):
    task = tasks.add("Call the bank", context="phone-call")
    assert task.context == "phone-call"
    assert tasks.set_context(task.id, "home").context == "home"
    assert tasks.set_context(task.id, None).context is None
    with pytest.raises(ValueError):
        tasks.set_context(task.id, "car")
    with pytest.raises(ValueError):
        tasks.add("Somewhere", context="beach")
    assert tasks.get(task.id).context is None


class CategoryWriteFails(MemoryStore):
    def __init__(self, initial=None):
        self.locked = False
        super().__init__(initial)
        self.locked = True

    def save(self, key, value):
        if self.locked and key == "categories":
            raise StorageError(f"cannot write {key}")
        super().save(key, value)


def test_category_delete_keeps_tasks_when_save_fails():
    store = CategoryWriteFails({"categories": [{"id": "c1", "name": "Work", "color": "#FF0000"}]})
    tasks = TaskService(store)
    task = tasks.add("Report", categories=["c1"])
    categories = CategoryService(store, tasks)

    assert categories.delete("c1") is False
    assert tasks.get(task.id).categories == ["c1"]
    assert [c.id for c in categories.list()] == ["c1"]
