"""SqliteTaskStore 单元测试

测试内容：
1. task_id 全库唯一递增
2. 归属 + 软删除谓词对所有读写生效
3. 排序：created_at 倒序，相同时 task_id 倒序
4. tags 编码只发生在存储边界
5. 底层错误包装为 StoreFailureError
6. 关闭连接后重新打开数据不丢失
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
import pytest
from taskmaster.core.exceptions import StoreFailureError
from taskmaster.core.models import NewTask, TaskLifecycle, TaskPriority, TaskStatus
from taskmaster.core.store import create_store_group, scoped_predicate
from taskmaster.core.store.sqlite_init import verify_wal_mode

BASE = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)


def _new_task(owner_id: int, title: str, created_at: datetime = BASE, **overrides) -> NewTask:
    return NewTask(
        owner_id=owner_id,
        title=title,
        created_at=created_at,
        updated_at=created_at,
        **overrides,
    )


class TestCreateAndRead:
    async def test_ids_unique_across_owners(self, store_group, alice, bob):
        store = store_group.task_store
        a1 = await store.create_task(_new_task(alice.user_id, "a1"))
        b1 = await store.create_task(_new_task(bob.user_id, "b1"))
        a2 = await store.create_task(_new_task(alice.user_id, "a2"))
        assert len({a1.task_id, b1.task_id, a2.task_id}) == 3
        assert a1.task_id < b1.task_id < a2.task_id

    async def test_get_returns_full_record(self, store_group, alice):
        store = store_group.task_store
        created = await store.create_task(
            _new_task(
                alice.user_id,
                "Plan sprint",
                description="two weeks",
                priority=TaskPriority.HIGH,
                status=TaskStatus.IN_PROGRESS,
                tags=["work", "计划"],
                due_date=BASE + timedelta(days=3),
            )
        )
        fetched = await store.get_task(alice.user_id, created.task_id)
        assert fetched == created
        assert fetched.tags == ["work", "计划"]
        assert fetched.lifecycle == TaskLifecycle.ACTIVE

    async def test_get_scoped_to_owner(self, store_group, alice, bob):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "private"))
        assert await store.get_task(bob.user_id, task.task_id) is None

    async def test_get_missing_returns_none(self, store_group, alice):
        assert await store_group.task_store.get_task(alice.user_id, 12345) is None

    async def test_tags_stored_as_json_text(self, store_group, alice):
        task = await store_group.task_store.create_task(
            _new_task(alice.user_id, "tags", tags=["b", "a", "b"])
        )
        cursor = await store_group.conn.execute(
            "SELECT tags FROM tasks WHERE task_id = ?", (task.task_id,)
        )
        row = await cursor.fetchone()
        assert row[0] == '["b", "a", "b"]'


class TestListing:
    async def test_order_newest_first(self, store_group, alice):
        store = store_group.task_store
        old = await store.create_task(_new_task(alice.user_id, "old", BASE))
        new = await store.create_task(_new_task(alice.user_id, "new", BASE + timedelta(hours=1)))
        mid = await store.create_task(_new_task(alice.user_id, "mid", BASE + timedelta(minutes=30)))
        tasks = await store.list_tasks(alice.user_id)
        assert [t.task_id for t in tasks] == [new.task_id, mid.task_id, old.task_id]

    async def test_ties_broken_by_id_descending(self, store_group, alice):
        store = store_group.task_store
        ids = [
            (await store.create_task(_new_task(alice.user_id, f"t{i}", BASE))).task_id
            for i in range(4)
        ]
        first = [t.task_id for t in await store.list_tasks(alice.user_id)]
        second = [t.task_id for t in await store.list_tasks(alice.user_id)]
        assert first == sorted(ids, reverse=True)
        assert first == second

    async def test_whole_second_sorts_before_fraction(self, store_group, alice):
        store = store_group.task_store
        whole = await store.create_task(_new_task(alice.user_id, "whole", BASE))
        frac = await store.create_task(
            _new_task(alice.user_id, "frac", BASE + timedelta(microseconds=1))
        )
        tasks = await store.list_tasks(alice.user_id)
        assert [t.task_id for t in tasks] == [frac.task_id, whole.task_id]

    async def test_filters_compose_with_owner_scope(self, store_group, alice, bob):
        store = store_group.task_store
        mine = await store.create_task(
            _new_task(alice.user_id, "mine", status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH)
        )
        await store.create_task(_new_task(alice.user_id, "other", status=TaskStatus.TODO))
        await store.create_task(
            _new_task(bob.user_id, "bobs", status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH)
        )

        by_status = await store.list_tasks(alice.user_id, status=TaskStatus.COMPLETED)
        by_priority = await store.list_tasks(alice.user_id, priority=TaskPriority.HIGH)
        assert [t.task_id for t in by_status] == [mine.task_id]
        assert [t.task_id for t in by_priority] == [mine.task_id]

    async def test_empty_list_for_new_user(self, store_group, alice):
        assert await store_group.task_store.list_tasks(alice.user_id) == []


class TestMutations:
    async def test_update_writes_mutable_fields(self, store_group, alice):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "draft"))
        changed = task.model_copy(
            update={
                "title": "final",
                "tags": ["x"],
                "status": TaskStatus.COMPLETED,
                "updated_at": BASE + timedelta(minutes=5),
            }
        )
        assert await store.update_task(changed) is True
        fetched = await store.get_task(alice.user_id, task.task_id)
        assert fetched.title == "final"
        assert fetched.tags == ["x"]
        assert fetched.status == TaskStatus.COMPLETED
        assert fetched.created_at == task.created_at
        assert fetched.updated_at == BASE + timedelta(minutes=5)

    async def test_update_with_foreign_owner_misses(self, store_group, alice, bob):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "mine"))
        hijack = task.model_copy(update={"owner_id": bob.user_id, "title": "stolen"})
        assert await store.update_task(hijack) is False
        raw = await store.inspect_task(task.task_id)
        assert raw.owner_id == alice.user_id
        assert raw.title == "mine"

    async def test_soft_delete_hides_but_keeps_row(self, store_group, alice):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "temp"))
        deleted_at = BASE + timedelta(hours=2)

        assert await store.soft_delete_task(alice.user_id, task.task_id, deleted_at) is True
        assert await store.get_task(alice.user_id, task.task_id) is None
        assert await store.list_tasks(alice.user_id) == []

        raw = await store.inspect_task(task.task_id)
        assert raw is not None
        assert raw.lifecycle == TaskLifecycle.DELETED
        assert raw.deleted_at == deleted_at
        assert raw.updated_at == deleted_at

    async def test_soft_delete_twice_misses(self, store_group, alice):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "temp"))
        assert await store.soft_delete_task(alice.user_id, task.task_id, BASE) is True
        assert await store.soft_delete_task(alice.user_id, task.task_id, BASE) is False

    async def test_update_deleted_misses(self, store_group, alice):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "temp"))
        await store.soft_delete_task(alice.user_id, task.task_id, BASE)
        assert await store.update_task(task.model_copy(update={"title": "back"})) is False

    @pytest.mark.parametrize("task_id", [2**63, -(2**63) - 1])
    async def test_out_of_range_id_misses(self, store_group, alice, task_id):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "temp"))
        assert await store.get_task(alice.user_id, task_id) is None
        assert await store.inspect_task(task_id) is None
        assert await store.update_task(task.model_copy(update={"task_id": task_id})) is False
        assert await store.soft_delete_task(alice.user_id, task_id, BASE) is False


class TestScopedPredicate:
    def test_base_predicate(self):
        where, params = scoped_predicate(7)
        assert where == "owner_id = ? AND lifecycle = ?"
        assert params == [7, "active"]

    def test_none_filters_skipped(self):
        where, params = scoped_predicate(7, status=None, priority=TaskPriority.LOW)
        assert where == "owner_id = ? AND lifecycle = ? AND priority = ?"
        assert params == [7, "active", "low"]

    def test_unknown_column_rejected(self):
        with pytest.raises(ValueError):
            scoped_predicate(7, owner_id=8)

    def test_lifecycle_cannot_be_overridden(self):
        with pytest.raises(ValueError):
            scoped_predicate(7, lifecycle="deleted")


class TestStoreFailure:
    async def test_write_error_wrapped(self, store_group, alice, monkeypatch):
        async def failing_execute(*args, **kwargs):
            raise aiosqlite.OperationalError("disk I/O error")

        monkeypatch.setattr(store_group.conn, "execute", failing_execute)
        with pytest.raises(StoreFailureError) as exc_info:
            await store_group.task_store.create_task(_new_task(alice.user_id, "x"))
        assert exc_info.value.operation == "create_task"
        assert exc_info.value.recoverable is False
        assert isinstance(exc_info.value.original_error, aiosqlite.OperationalError)

    async def test_read_error_wrapped(self, store_group, alice, monkeypatch):
        async def failing_execute(*args, **kwargs):
            raise aiosqlite.OperationalError("database is locked")

        monkeypatch.setattr(store_group.conn, "execute", failing_execute)
        with pytest.raises(StoreFailureError):
            await store_group.task_store.list_tasks(alice.user_id)

    async def test_corrupted_tags_column(self, store_group, alice):
        store = store_group.task_store
        task = await store.create_task(_new_task(alice.user_id, "x"))
        await store_group.conn.execute(
            "UPDATE tasks SET tags = ? WHERE task_id = ?", ("not-json", task.task_id)
        )
        await store_group.conn.commit()
        with pytest.raises(StoreFailureError):
            await store.get_task(alice.user_id, task.task_id)

    async def test_foreign_key_violation_wrapped(self, store_group):
        with pytest.raises(StoreFailureError):
            await store_group.task_store.create_task(_new_task(424242, "orphan"))


class TestDurability:
    async def test_data_survives_reopen(self, tmp_path: Path):
        db_path = str(tmp_path / "durability.db")

        first = await create_store_group(db_path)
        user = await first.user_store.create_user("d@example.com", "D", BASE)
        task = await first.task_store.create_task(_new_task(user.user_id, "persist", tags=["a"]))
        assert await verify_wal_mode(first.conn)
        await first.conn.close()

        second = await create_store_group(db_path)
        try:
            fetched = await second.task_store.get_task(user.user_id, task.task_id)
            assert fetched == task
        finally:
            await second.conn.close()
