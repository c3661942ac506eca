"""core 测试配置 -- 引擎 fixture"""

import pytest
from taskmaster.core.mutation import TaskMutationEngine
from taskmaster.core.query import TaskQueryEngine
from taskmaster.core.store import StoreGroup


class UntouchableStore:
    """任何属性访问都视为测试失败，用于断言「未访问存储」"""

    def __getattr__(self, name: str):
        raise AssertionError(f"store accessed: {name}")


@pytest.fixture
def untouchable_store() -> UntouchableStore:
    return UntouchableStore()


@pytest.fixture
def query_engine(store_group: StoreGroup) -> TaskQueryEngine:
    return TaskQueryEngine(store_group.task_store)


@pytest.fixture
def mutation_engine(store_group: StoreGroup, clock) -> TaskMutationEngine:
    return TaskMutationEngine(store_group.task_store, clock=clock)
