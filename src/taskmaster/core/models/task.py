"""Task Domain Model

tasks 表中的每一行对应一个 Task。
tags 在领域模型中是有序字符串列表，仅在存储边界编码为 JSON 文本。
completed 不单独存储，由 status 推导。
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    computed_field,
    field_validator,
    model_validator,
)

from .enums import TaskLifecycle, TaskPriority, TaskStatus

TITLE_MAX_LENGTH = 255
TAG_MAX_LENGTH = 50

TagName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=TAG_MAX_LENGTH),
]


def ensure_utc(value: datetime | None) -> datetime | None:
    """统一转换为 UTC；naive 时间视为 UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class NewTask(BaseModel):
    """尚未落库的任务记录（task_id 由存储层分配）"""

    owner_id: int = Field(description="所属用户 ID，创建后不可变")
    title: str = Field(description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="当前状态")
    tags: list[str] = Field(default_factory=list, description="有序标签列表")
    due_date: datetime | None = Field(default=None, description="截止时间")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Task(NewTask):
    """Task 数据模型

    lifecycle=deleted 的记录对所有读取和变更操作不可见，但行仍保留在库中。
    """

    task_id: int = Field(description="唯一标识，全库唯一且不复用")
    lifecycle: TaskLifecycle = Field(default=TaskLifecycle.ACTIVE, description="生命周期")
    deleted_at: datetime | None = Field(default=None, description="软删除时间")

    @field_validator("deleted_at")
    @classmethod
    def _normalize_deleted_at(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completed(self) -> bool:
        """是否已完成 -- status 的只读视图"""
        return self.status == TaskStatus.COMPLETED

    @property
    def is_deleted(self) -> bool:
        return self.lifecycle == TaskLifecycle.DELETED


class TaskDraft(BaseModel):
    """创建任务的输入

    未提供的字段使用默认值：priority=medium, status=todo, tags=[]。
    completed 是 status 的快捷写法，由 Mutation Engine 统一折算。
    """

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus | None = None
    tags: list[TagName] = Field(default_factory=list)
    due_date: datetime | None = None
    completed: bool | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags_as_empty(cls, value: Any) -> Any:
        # 显式 null 与缺省相同：没有标签
        return [] if value is None else value

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


# 只有这些字段允许显式置空
_NULLABLE_PATCH_FIELDS = frozenset({"description", "due_date"})


class TaskPatch(BaseModel):
    """更新任务的输入 -- merge patch 语义

    只有显式提供的字段（model_fields_set）会覆盖原值。
    owner_id / task_id / created_at 等未知字段直接忽略。
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    tags: list[TagName] | None = None
    due_date: datetime | None = None
    completed: bool | None = None

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _reject_null_for_required_fields(self) -> "TaskPatch":
        for name in self.model_fields_set:
            if name in _NULLABLE_PATCH_FIELDS:
                continue
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """返回显式提供的字段"""
        return {name: getattr(self, name) for name in self.model_fields_set}
