from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from record_keeper.api.deps import get_context
from record_keeper.context import ServerContext
from record_keeper.models import FitnessProgress

router = APIRouter(prefix="/progress", tags=["progress"])


@router.post("")
def create_progress(entry: FitnessProgress, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.progress.insert(entry)
    return Response(status_code=200)


@router.get("/all", response_model=list[FitnessProgress])
def read_all_progress(ctx: ServerContext = Depends(get_context)) -> list[FitnessProgress]:
    with ctx.read() as store:
        return store.progress.list()


@router.get("/{entry_id}", response_model=FitnessProgress)
def read_progress(entry_id: int, ctx: ServerContext = Depends(get_context)) -> FitnessProgress:
    with ctx.read() as store:
        entry = store.progress.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404)
    return entry


@router.put("")
def update_progress(entry: FitnessProgress, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.progress.update(entry.id, entry)
    return Response(status_code=200)


@router.delete("/{entry_id}")
def delete_progress(entry_id: int, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.progress.delete(entry_id)
    return Response(status_code=200)
