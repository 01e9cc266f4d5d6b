"""
Todo storage queries and the operations behind the /todos routes.

Every operation is scoped to the calling user. A todo owned by someone else
is reported exactly like one that does not exist.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import pydantic
from sqlalchemy import func
from sqlmodel import Session, col, select
from sqlmodel.sql.expression import SelectOfScalar

from todo_api import config
from todo_api.errors import NotFound, validation_error_from_pydantic
from todo_api.models import Todo, utc_now
from todo_api.schemas import SortField, SortOrder, TodoCreate, TodoPage, TodoRead, TodoStats, TodoStatus, TodoUpdate

logger = logging.getLogger(__name__)

# Largest value a signed 64-bit INTEGER column can hold
MAX_ID = 2**63 - 1
# Keeps (page - 1) * per_page within MAX_ID
MAX_PAGE = MAX_ID // config.MAX_PER_PAGE


# --- Query scopes ---

def for_user(statement: SelectOfScalar, user_id: int) -> SelectOfScalar:
    return statement.where(Todo.user_id == user_id)


def completed(statement: SelectOfScalar) -> SelectOfScalar:
    return statement.where(col(Todo.is_completed).is_(True))


def pending(statement: SelectOfScalar) -> SelectOfScalar:
    return statement.where(col(Todo.is_completed).is_(False))


def overdue(statement: SelectOfScalar) -> SelectOfScalar:
    return pending(statement).where(col(Todo.due_date) < utc_now())


def _parse_enum(enum_cls, value: Optional[str]):
    try:
        return enum_cls(value) if value is not None else None
    except ValueError:
        return None


@dataclass
class TodoQuery:
    """
    Filter, sort and page options for listing a user's todos.
    """
    status: Optional[TodoStatus] = None
    search: Optional[str] = None
    sort_by: SortField = SortField.created_at
    sort_order: SortOrder = SortOrder.desc
    per_page: int = config.DEFAULT_PER_PAGE
    page: int = 1

    @classmethod
    def from_params(
        cls,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
    ) -> "TodoQuery":
        """
        Builds a query from raw request parameters. Unknown status values are
        dropped, unknown sort options fall back to the defaults and per_page is
        capped at MAX_PER_PAGE.
        """
        return cls(
            status=_parse_enum(TodoStatus, status),
            search=search or None,
            sort_by=_parse_enum(SortField, sort_by) or SortField.created_at,
            sort_order=_parse_enum(SortOrder, sort_order) or SortOrder.desc,
            per_page=min(per_page or config.DEFAULT_PER_PAGE, config.MAX_PER_PAGE),
            page=page or 1,
        )

    def apply(self, statement: SelectOfScalar) -> SelectOfScalar:
        """Applies the filters (not sorting or paging) to a statement."""
        if self.status is TodoStatus.completed:
            statement = completed(statement)
        elif self.status is TodoStatus.pending:
            statement = pending(statement)
        if self.search:
            statement = statement.where(col(Todo.title).contains(self.search, autoescape=True))
        return statement

    def order(self, statement: SelectOfScalar) -> SelectOfScalar:
        column = col(getattr(Todo, self.sort_by.value))
        tiebreak = col(Todo.id)
        if self.sort_order is SortOrder.asc:
            return statement.order_by(column.asc(), tiebreak.asc())
        return statement.order_by(column.desc(), tiebreak.desc())


def _count(session: Session, statement: SelectOfScalar) -> int:
    return session.exec(select(func.count()).select_from(statement.subquery())).one()


def _get_owned(session: Session, user_id: int, todo_id: int) -> Todo:
    if not 1 <= todo_id <= MAX_ID:
        raise NotFound("Todo")
    todo = session.exec(for_user(select(Todo), user_id).where(Todo.id == todo_id)).first()
    if todo is None:
        raise NotFound("Todo")
    return todo


def _save(session: Session, todo: Todo) -> Todo:
    todo.updated_at = utc_now()
    session.add(todo)
    session.commit()
    session.refresh(todo)
    return todo


# --- Operations ---

def list_todos(session: Session, user_id: int, query: TodoQuery) -> TodoPage:
    statement = query.apply(for_user(select(Todo), user_id))
    total = _count(session, statement)

    offset = (query.page - 1) * query.per_page
    rows = session.exec(query.order(statement).offset(offset).limit(query.per_page)).all()

    return TodoPage(
        current_page=query.page,
        data=[TodoRead.model_validate(row) for row in rows],
        per_page=query.per_page,
        total=total,
        last_page=max(math.ceil(total / query.per_page), 1),
        from_=offset + 1 if rows else None,
        to=offset + len(rows) if rows else None,
    )


def create_todo(session: Session, user_id: int, data: TodoCreate) -> Todo:
    todo = Todo(
        user_id=user_id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        is_completed=False,
    )
    session.add(todo)
    session.commit()
    session.refresh(todo)
    logger.info("User %s created todo %s", user_id, todo.id)
    return todo


def get_todo(session: Session, user_id: int, todo_id: int) -> Todo:
    return _get_owned(session, user_id, todo_id)


def update_todo(session: Session, user_id: int, todo_id: int, payload: Mapping[str, Any]) -> Todo:
    """
    Applies a partial update from a request body. Only the fields present in
    ``payload`` are changed. Ownership is checked before the body is
    validated, so a missing todo is a 404 even when the body is invalid.
    """
    todo = _get_owned(session, user_id, todo_id)
    try:
        changes = TodoUpdate.model_validate(payload).model_dump(exclude_unset=True)
    except pydantic.ValidationError as e:
        raise validation_error_from_pydantic(e) from e

    for key, value in changes.items():
        setattr(todo, key, value)
    return _save(session, todo)


def delete_todo(session: Session, user_id: int, todo_id: int) -> None:
    todo = _get_owned(session, user_id, todo_id)
    session.delete(todo)
    session.commit()
    logger.info("User %s deleted todo %s", user_id, todo_id)


def set_completed(session: Session, user_id: int, todo_id: int, is_completed: bool) -> Todo:
    todo = _get_owned(session, user_id, todo_id)
    todo.is_completed = is_completed
    return _save(session, todo)


def mark_completed(session: Session, user_id: int, todo_id: int) -> Todo:
    return set_completed(session, user_id, todo_id, True)


def mark_pending(session: Session, user_id: int, todo_id: int) -> Todo:
    return set_completed(session, user_id, todo_id, False)


def todo_stats(session: Session, user_id: int) -> TodoStats:
    owned = for_user(select(Todo), user_id)
    total = _count(session, owned)
    done = _count(session, completed(owned))
    open_ = _count(session, pending(owned))
    late = _count(session, overdue(owned))

    return TodoStats(
        total_todos=total,
        completed_todos=done,
        pending_todos=open_,
        overdue_todos=late,
        completion_rate=round(done / total * 100, 2) if total > 0 else 0,
    )
