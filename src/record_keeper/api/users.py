from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse

from record_keeper.api.deps import get_context
from record_keeper.context import ServerContext
from record_keeper.models import LoginRequest, User

router = APIRouter(tags=["users"])


@router.post("/register")
def register_user(user: User, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.users.insert(user)
    return Response(status_code=200)


@router.post("/login", response_class=PlainTextResponse)
def login_user(payload: LoginRequest, ctx: ServerContext = Depends(get_context)) -> PlainTextResponse:
    with ctx.read() as store:
        stored = store.get_user_by_username(payload.username)
    # Unknown user and wrong password get the same answer.
    if stored is None or stored.password != payload.password:
        return PlainTextResponse("Login failed", status_code=401)
    return PlainTextResponse("Login successful")


@router.get("/user/{user_id}", response_model=User)
def read_user(user_id: int, ctx: ServerContext = Depends(get_context)) -> User:
    with ctx.read() as store:
        user = store.users.get(user_id)
    if user is None:
        raise HTTPException(status_code=404)
    return user


@router.put("/user")
def update_user(user: User, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.users.update(user.id, user)
    return Response(status_code=200)


@router.delete("/user/{user_id}")
def delete_user(user_id: int, ctx: ServerContext = Depends(get_context)) -> Response:
    with ctx.mutate() as store:
        store.users.delete(user_id)
    return Response(status_code=200)
