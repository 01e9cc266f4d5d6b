"""
Todo endpoints. All of them require a bearer token and only ever touch the
caller's own todos.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlmodel import Session

from todo_api import todos
from todo_api.auth import get_current_user
from todo_api.database import get_session
from todo_api.models import User
from todo_api.schemas import (
    MessageResponse,
    TodoCreate,
    TodoMessageResponse,
    TodoPageResponse,
    TodoRead,
    TodoResponse,
    TodoStatsResponse,
)
from todo_api.todos import TodoQuery

router = APIRouter(prefix="/todos", tags=["Todos"])


@router.get("", response_model=TodoPageResponse)
def list_todos(
    status_filter: Optional[str] = Query(None, alias="status", description="completed or pending; anything else is ignored"),
    search: Optional[str] = Query(None, description="Substring to look for in the title"),
    sort_by: Optional[str] = Query(None, description="created_at, due_date or title"),
    sort_order: Optional[str] = Query(None, description="asc or desc"),
    per_page: Optional[int] = Query(None, ge=1),
    page: Optional[int] = Query(None, ge=1, le=todos.MAX_PAGE),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    query = TodoQuery.from_params(
        status=status_filter,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        per_page=per_page,
        page=page,
    )
    return TodoPageResponse(data=todos.list_todos(db, current_user.id, query))


# Must stay above /{todo_id}
@router.get("/stats", response_model=TodoStatsResponse)
def todo_stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    return TodoStatsResponse(data=todos.todo_stats(db, current_user.id))


@router.post("", response_model=TodoMessageResponse, status_code=status.HTTP_201_CREATED)
def create_todo(
    todo_in: TodoCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    todo = todos.create_todo(db, current_user.id, todo_in)
    return TodoMessageResponse(message="Todo created successfully", data=TodoRead.model_validate(todo))


@router.get("/{todo_id}", response_model=TodoResponse)
def get_todo(todo_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    todo = todos.get_todo(db, current_user.id, todo_id)
    return TodoResponse(data=TodoRead.model_validate(todo))


@router.put("/{todo_id}", response_model=TodoMessageResponse)
def update_todo(
    todo_id: int,
    payload: Dict[str, Any] = Body(default={}),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    todo = todos.update_todo(db, current_user.id, todo_id, payload)
    return TodoMessageResponse(message="Todo updated successfully", data=TodoRead.model_validate(todo))


@router.delete("/{todo_id}", response_model=MessageResponse)
def delete_todo(todo_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    todos.delete_todo(db, current_user.id, todo_id)
    return MessageResponse(message="Todo deleted successfully")


@router.patch("/{todo_id}/complete", response_model=TodoMessageResponse)
def mark_completed(todo_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    todo = todos.mark_completed(db, current_user.id, todo_id)
    return TodoMessageResponse(message="Todo marked as completed", data=TodoRead.model_validate(todo))


@router.patch("/{todo_id}/pending", response_model=TodoMessageResponse)
def mark_pending(todo_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    todo = todos.mark_pending(db, current_user.id, todo_id)
    return TodoMessageResponse(message="Todo marked as pending", data=TodoRead.model_validate(todo))
