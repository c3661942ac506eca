"""任务路由

GET    /api/tasks                       当前用户的任务列表
POST   /api/tasks                       创建任务
GET    /api/tasks/status/{status}       按状态筛选
GET    /api/tasks/priority/{priority}   按优先级筛选
GET    /api/tasks/{task_id}             任务详情
PUT    /api/tasks/{task_id}             更新任务（merge 语义，PATCH 同）
DELETE /api/tasks/{task_id}             软删除任务

请求/响应字段使用 camelCase；错误由 main 中注册的异常处理器统一映射。
"""

import json
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from taskmaster.core.models import (
    Principal,
    Task,
    TaskDraft,
    TaskPatch,
    TaskPriority,
    TaskStatus,
)
from taskmaster.core.mutation import TaskMutationEngine
from taskmaster.core.query import TaskQueryEngine

from ..deps import get_current_principal, get_mutation_engine, get_query_engine

router = APIRouter()

_CAMEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


def decode_tags_input(value: Any) -> Any:
    """兼容旧表单客户端：tags 可以是 JSON 编码的字符串数组"""
    if not isinstance(value, str):
        return value
    if not value.strip():
        return []
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError("tags must be a list of strings or its JSON encoding") from e


class TaskCreateRequest(TaskDraft):
    """创建任务请求体"""

    model_config = _CAMEL_CONFIG

    @field_validator("tags", mode="before")
    @classmethod
    def _decode_tags(cls, value: Any) -> Any:
        return decode_tags_input(value)


class TaskUpdateRequest(TaskPatch):
    """更新任务请求体 -- 所有字段可选"""

    model_config = _CAMEL_CONFIG

    @field_validator("tags", mode="before")
    @classmethod
    def _decode_tags(cls, value: Any) -> Any:
        return decode_tags_input(value)


class TaskResponse(BaseModel):
    """任务响应"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    owner_id: int
    title: str
    description: str | None
    priority: TaskPriority
    status: TaskStatus
    completed: bool
    tags: list[str]
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.task_id,
            owner_id=task.owner_id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            completed=task.completed,
            tags=task.tags,
            due_date=task.due_date,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class DeleteTaskResponse(BaseModel):
    """删除响应 -- 附带删除前的任务快照"""

    message: str
    task: TaskResponse


def _to_responses(tasks: list[Task]) -> list[TaskResponse]:
    return [TaskResponse.from_task(t) for t in tasks]


@router.get("/api/tasks", response_model=list[TaskResponse])
async def list_tasks(
    principal: Principal = Depends(get_current_principal),
    engine: TaskQueryEngine = Depends(get_query_engine),
):
    """当前用户的全部任务，按创建时间倒序"""
    return _to_responses(await engine.list_tasks(principal))


@router.post("/api/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    body: TaskCreateRequest,
    principal: Principal = Depends(get_current_principal),
    engine: TaskMutationEngine = Depends(get_mutation_engine),
):
    """创建任务"""
    task = await engine.create_task(principal, body)
    return TaskResponse.from_task(task)


@router.get("/api/tasks/status/{status}", response_model=list[TaskResponse])
async def list_tasks_by_status(
    status: str,
    principal: Principal = Depends(get_current_principal),
    engine: TaskQueryEngine = Depends(get_query_engine),
):
    """按状态筛选"""
    return _to_responses(await engine.list_by_status(principal, status))


@router.get("/api/tasks/priority/{priority}", response_model=list[TaskResponse])
async def list_tasks_by_priority(
    priority: str,
    principal: Principal = Depends(get_current_principal),
    engine: TaskQueryEngine = Depends(get_query_engine),
):
    """按优先级筛选"""
    return _to_responses(await engine.list_by_priority(principal, priority))


@router.get("/api/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    principal: Principal = Depends(get_current_principal),
    engine: TaskQueryEngine = Depends(get_query_engine),
):
    """任务详情"""
    return TaskResponse.from_task(await engine.get_task(principal, task_id))


@router.api_route(
    "/api/tasks/{task_id}",
    methods=["PUT", "PATCH"],
    response_model=TaskResponse,
)
async def update_task(
    task_id: int,
    body: TaskUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    engine: TaskMutationEngine = Depends(get_mutation_engine),
):
    """更新任务，只覆盖请求中出现的字段"""
    task = await engine.update_task(principal, task_id, body)
    return TaskResponse.from_task(task)


@router.delete("/api/tasks/{task_id}", response_model=DeleteTaskResponse)
async def delete_task(
    task_id: int,
    principal: Principal = Depends(get_current_principal),
    engine: TaskMutationEngine = Depends(get_mutation_engine),
):
    """软删除任务"""
    snapshot = await engine.delete_task(principal, task_id)
    return DeleteTaskResponse(
        message="Task deleted successfully",
        task=TaskResponse.from_task(snapshot),
    )
