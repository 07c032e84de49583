from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from record_keeper.api.deps import get_context
from record_keeper.context import ServerContext
from record_keeper.models import Task

router = APIRouter(tags=["tasks"])


@router.post("/task")
def create_task(task: Task, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.tasks.insert(task)
    return Response(status_code=200)


@router.get("/tasks", response_model=list[Task])
def read_all_tasks(ctx: ServerContext = Depends(get_context)) -> list[Task]:
    with ctx.read() as store:
        return store.tasks.list()


@router.get("/task/{task_id}", response_model=Task)
def read_task(task_id: int, ctx: ServerContext = Depends(get_context)) -> Task:
    with ctx.read() as store:
        task = store.tasks.get(task_id)
    if task is None:
        raise HTTPException(status_code=404)
    return task


@router.put("/task")
def update_task(task: Task, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.tasks.update(task.id, task)
    return Response(status_code=200)


@router.delete("/task/{task_id}")
def delete_task(task_id: int, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.tasks.delete(task_id)
    return Response(status_code=200)
