"""
Тесты для Service Layer (бизнес-логика).

Проверяем:
- формат ID и различие InvalidIdError / NotFoundError
- правило "дедлайн строго в будущем" при создании и обновлении
- семантику частичного обновления
- статистику и её инварианты
"""

from datetime import timedelta

import pytest

from src.core.exceptions import (
    InvalidDueDateError,
    InvalidIdError,
    NotFoundError,
    ValidationError,
)
from src.models import TaskPriority, utc_now
from src.repositories import TaskFilters
from src.services import TaskService

# Всё, кроме updated_at
SNAPSHOT_FIELDS = (
    "id",
    "title",
    "description",
    "is_completed",
    "priority",
    "due_date",
    "tags",
    "created_at",
)


def snapshot(task) -> dict:
    return {field: getattr(task, field) for field in SNAPSHOT_FIELDS}


# ============================================================================
# CREATE
# ============================================================================


@pytest.mark.asyncio
async def test_create_task_defaults(test_db):
    """Test: без dueDate задача не просрочена и считается pending."""
    service = TaskService(test_db)

    task = await service.create_task(title="Write report")
    await test_db.commit()

    assert task.due_date is None
    assert task.priority == TaskPriority.MEDIUM
    assert task.is_completed is False

    stats = await service.get_task_stats()
    assert stats.pending == 1
    assert stats.overdue == 0


@pytest.mark.asyncio
async def test_create_task_due_date_in_past(test_db, yesterday):
    """Test: дедлайн в прошлом -> InvalidDueDateError, запись не создана."""
    service = TaskService(test_db)

    with pytest.raises(InvalidDueDateError, match="must be in the future"):
        await service.create_task(title="Pay rent", priority="high", due_date=yesterday)

    assert (await service.get_task_stats()).total == 0


@pytest.mark.asyncio
async def test_create_task_due_date_now_is_rejected(test_db):
    """Test: дедлайн == сейчас тоже отклоняется (строго в будущем)."""
    now = utc_now()
    service = TaskService(test_db, clock=lambda: now)

    with pytest.raises(InvalidDueDateError):
        await service.create_task(title="Now", due_date=now)


@pytest.mark.asyncio
async def test_create_task_store_validation_propagates(test_db):
    """Test: ошибки модели не проглатываются сервисом."""
    service = TaskService(test_db)

    with pytest.raises(ValidationError, match="title is required"):
        await service.create_task(title="   ")

    with pytest.raises(ValidationError, match="cannot exceed 200"):
        await service.create_task(title="x" * 201)

    with pytest.raises(ValidationError, match="low, medium, or high"):
        await service.create_task(title="Task", priority="urgent")


@pytest.mark.asyncio
async def test_create_then_get_round_trip(test_db, tomorrow):
    """Test: create -> get возвращает ту же задачу."""
    service = TaskService(test_db)

    created = await service.create_task(
        title="Pay rent",
        description="Transfer to landlord",
        priority="high",
        due_date=tomorrow,
        tags=["home", "money", "home"],
    )
    await test_db.commit()
    expected = snapshot(created)

    test_db.expunge_all()
    loaded = await service.get_task(created.id)

    assert snapshot(loaded) == expected
    assert loaded.tags == ["home", "money", "home"]
    assert loaded.updated_at == created.updated_at


# ============================================================================
# GET
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_id", ["stats", "123", "z" * 24, "a" * 25, ""])
async def test_get_task_invalid_id(test_db, bad_id):
    """Test: неверный формат ID -> InvalidIdError (не NotFound)."""
    service = TaskService(test_db)

    with pytest.raises(InvalidIdError, match="Invalid task ID format"):
        await service.get_task(bad_id)


@pytest.mark.asyncio
async def test_get_task_not_found(test_db):
    """Test: корректный, но несуществующий ID -> NotFoundError."""
    service = TaskService(test_db)

    with pytest.raises(NotFoundError, match="Task not found"):
        await service.get_task("0123456789abcdef01234567")


@pytest.mark.asyncio
async def test_get_task_accepts_uppercase_hex(test_db):
    service = TaskService(test_db)

    task = await service.create_task(title="Task")
    await test_db.commit()

    assert (await service.get_task(task.id.upper())).id == task.id


# ============================================================================
# UPDATE
# ============================================================================


@pytest.mark.asyncio
async def test_update_is_completed_false_keeps_other_fields(test_db, tomorrow):
    """Test: {is_completed: False} на незавершённой задаче меняет только updated_at."""
    service = TaskService(test_db)

    task = await service.create_task(
        title="Task", description="Notes", priority="low", due_date=tomorrow, tags=["x"]
    )
    await test_db.commit()
    before = snapshot(task)
    updated_at = task.updated_at

    updated = await service.update_task(task.id, {"is_completed": False})
    await test_db.commit()

    assert snapshot(updated) == before
    assert updated.updated_at > updated_at


@pytest.mark.asyncio
async def test_update_empty_patch(test_db):
    """Test: пустой patch меняет только updated_at."""
    service = TaskService(test_db)

    task = await service.create_task(title="Task", tags=["a", "b"])
    await test_db.commit()
    before = snapshot(task)
    updated_at = task.updated_at

    updated = await service.update_task(task.id, {})
    await test_db.commit()

    assert snapshot(updated) == before
    assert updated.updated_at > updated_at


@pytest.mark.asyncio
async def test_update_absent_key_vs_false(test_db):
    """Test: отсутствующий is_completed не трогает статус, явный False - применяется."""
    service = TaskService(test_db)

    task = await service.create_task(title="Task")
    await service.mark_completed(task.id)
    await test_db.commit()

    updated = await service.update_task(task.id, {"title": "Renamed"})
    assert updated.is_completed is True

    updated = await service.update_task(task.id, {"is_completed": False})
    assert updated.is_completed is False
    assert updated.title == "Renamed"


@pytest.mark.asyncio
async def test_update_null_clears_optional_fields(test_db, tomorrow):
    """Test: явный null очищает description и due_date."""
    service = TaskService(test_db)

    task = await service.create_task(title="Task", description="Notes", due_date=tomorrow)
    await test_db.commit()

    updated = await service.update_task(task.id, {"description": None, "due_date": None})

    assert updated.description is None
    assert updated.due_date is None


@pytest.mark.asyncio
async def test_update_due_date_in_past(test_db, yesterday):
    """Test: дедлайн в прошлом при обновлении -> InvalidDueDateError, задача не изменена."""
    service = TaskService(test_db)

    task = await service.create_task(title="Task")
    await test_db.commit()
    before = snapshot(task)
    updated_at = task.updated_at

    with pytest.raises(InvalidDueDateError):
        await service.update_task(task.id, {"due_date": yesterday, "title": "Changed"})

    test_db.expunge_all()
    reloaded = await service.get_task(task.id)
    assert snapshot(reloaded) == before
    assert reloaded.updated_at == updated_at


@pytest.mark.asyncio
async def test_due_date_must_be_datetime(test_db):
    """Test: dueDate не datetime -> ValidationError, а не падение сервиса."""
    service = TaskService(test_db)

    with pytest.raises(ValidationError, match="must be a date-time") as exc_info:
        await service.create_task(title="Task", due_date="2099-01-01T00:00:00Z")
    assert exc_info.value.field == "dueDate"

    task = await service.create_task(title="Task")
    await test_db.commit()
    before = snapshot(task)

    with pytest.raises(ValidationError, match="must be a date-time"):
        await service.update_task(task.id, {"due_date": "tomorrow", "title": "Changed"})

    test_db.expunge_all()
    assert snapshot(await service.get_task(task.id)) == before


@pytest.mark.asyncio
async def test_failed_update_does_not_leak_into_next_update(test_db):
    """Test: отклонённый patch не всплывает при следующем обновлении."""
    service = TaskService(test_db)

    task = await service.create_task(title="Original")
    await test_db.commit()

    with pytest.raises(ValidationError):
        await service.update_task(task.id, {"title": "Leaked", "priority": "critical"})

    await service.update_task(task.id, {"is_completed": True})
    await test_db.commit()
    test_db.expunge_all()

    reloaded = await service.get_task(task.id)
    assert reloaded.title == "Original"
    assert reloaded.is_completed is True


@pytest.mark.asyncio
async def test_update_invalid_id_and_not_found(test_db):
    service = TaskService(test_db)

    with pytest.raises(InvalidIdError):
        await service.update_task("nope", {"title": "x"})

    with pytest.raises(NotFoundError):
        await service.update_task("0123456789abcdef01234567", {"title": "x"})


@pytest.mark.asyncio
async def test_update_store_validation_propagates(test_db):
    service = TaskService(test_db)

    task = await service.create_task(title="Task")
    await test_db.commit()

    with pytest.raises(ValidationError, match="cannot exceed 1000"):
        await service.update_task(task.id, {"description": "d" * 1001})


@pytest.mark.asyncio
async def test_mark_completed_and_pending(test_db):
    """Test: задачу можно свободно переключать completed <-> pending."""
    service = TaskService(test_db)

    task = await service.create_task(title="Task")

    assert (await service.mark_completed(task.id)).is_completed is True
    assert (await service.mark_pending(task.id)).is_completed is False
    assert (await service.mark_completed(task.id)).is_completed is True


# ============================================================================
# DELETE
# ============================================================================


@pytest.mark.asyncio
async def test_delete_twice(test_db):
    """Test: первое удаление успешно, второе -> NotFoundError."""
    service = TaskService(test_db)

    task = await service.create_task(title="Task")
    await test_db.commit()

    await service.delete_task(task.id)
    await test_db.commit()

    with pytest.raises(NotFoundError):
        await service.delete_task(task.id)

    with pytest.raises(NotFoundError):
        await service.get_task(task.id)


@pytest.mark.asyncio
async def test_delete_invalid_id(test_db):
    service = TaskService(test_db)

    with pytest.raises(InvalidIdError):
        await service.delete_task("stats")


# ============================================================================
# LIST
# ============================================================================


@pytest.mark.asyncio
async def test_list_tasks_completion_filter(test_db):
    """Test: is_completed=False никогда не возвращает выполненные, без фильтра - все."""
    service = TaskService(test_db)

    for i in range(3):
        await service.create_task(title=f"Open {i}")
    for i in range(2):
        task = await service.create_task(title=f"Done {i}")
        await service.mark_completed(task.id)
    await test_db.commit()

    pending = await service.list_tasks(TaskFilters(is_completed=False))
    completed = await service.list_tasks(TaskFilters(is_completed=True))
    everything = await service.list_tasks(TaskFilters())

    assert len(pending) == 3
    assert all(not t.is_completed for t in pending)
    assert len(completed) == 2
    assert all(t.is_completed for t in completed)
    assert len(everything) == 5
    assert len(await service.list_tasks()) == 5


@pytest.mark.asyncio
async def test_list_tasks_search(test_db):
    """Test: поиск ровно по title/description без учёта регистра."""
    service = TaskService(test_db)

    in_title = await service.create_task(title="ABC report")
    in_description = await service.create_task(title="Other", description="contains xabcx")
    await service.create_task(title="Unrelated", description="nothing here")
    await test_db.commit()

    found = await service.list_tasks(TaskFilters(search="abc"))

    assert {t.id for t in found} == {in_title.id, in_description.id}


@pytest.mark.asyncio
async def test_list_tasks_blank_search_is_ignored(test_db):
    service = TaskService(test_db)

    await service.create_task(title="One")
    await service.create_task(title="Two")
    await test_db.commit()

    assert len(await service.list_tasks(TaskFilters(search="   "))) == 2


@pytest.mark.asyncio
async def test_list_tasks_priority_filter(test_db):
    service = TaskService(test_db)

    high = await service.create_task(title="High", priority="high")
    await service.create_task(title="Low", priority="low")
    await test_db.commit()

    assert [t.id for t in await service.list_tasks(TaskFilters(priority="high"))] == [high.id]


# ============================================================================
# STATISTICS
# ============================================================================


@pytest.mark.asyncio
async def test_stats_invariants(test_db, tomorrow):
    """Test: completed + pending == total, overdue <= pending."""
    service = TaskService(test_db)

    for i in range(4):
        await service.create_task(title=f"Task {i}", due_date=tomorrow)
    done = await service.create_task(title="Done", due_date=tomorrow)
    await service.mark_completed(done.id)
    await service.create_task(title="No due date")
    await test_db.commit()

    # Через два дня все задачи с дедлайном "завтра" просрочены
    later = TaskService(test_db, clock=lambda: utc_now() + timedelta(days=2))
    stats = await later.get_task_stats()

    assert stats.as_dict() == {"total": 6, "completed": 1, "pending": 5, "overdue": 4}
    assert stats.completed + stats.pending == stats.total
    assert stats.overdue <= stats.pending


@pytest.mark.asyncio
async def test_pay_rent_scenario(test_db, yesterday, tomorrow):
    """Test: сценарий "Pay rent" - просрочка появляется только после дедлайна."""
    service = TaskService(test_db)

    with pytest.raises(InvalidDueDateError):
        await service.create_task(title="Pay rent", priority="high", due_date=yesterday)

    task = await service.create_task(title="Pay rent", priority="high", due_date=tomorrow)
    await test_db.commit()

    stats = await service.get_task_stats()
    assert stats.overdue == 0
    assert stats.pending == 1

    # Время прошло, задача не выполнена
    after_due = TaskService(test_db, clock=lambda: task.due_date + timedelta(minutes=1))
    stats = await after_due.get_task_stats()
    assert stats.overdue == 1

    # Выполненная задача не бывает просроченной
    await service.mark_completed(task.id)
    stats = await after_due.get_task_stats()
    assert stats.overdue == 0
    assert stats.completed == 1


@pytest.mark.asyncio
async def test_stats_are_not_atomic_under_concurrent_writes(test_db):
    """
    Test: четыре независимых запроса, без общего снимка.

    Запись между подсчётами total и pending даёт completed + pending != total.
    Это принятое поведение, а не ошибка.
    """
    service = TaskService(test_db)
    other_writer = TaskService(test_db)

    original_count = service.task_repo.count
    calls = []

    async def count_with_interleaved_write(filters=None, **kwargs):
        result = await original_count(filters, **kwargs)
        calls.append(filters)
        if len(calls) == 1:
            # Другой клиент создаёт задачу сразу после подсчёта total
            await other_writer.create_task(title="Created mid-stats")
        return result

    service.task_repo.count = count_with_interleaved_write

    stats = await service.get_task_stats()

    assert len(calls) == 4
    assert stats.total == 0
    assert stats.pending == 1
    assert stats.completed + stats.pending != stats.total
