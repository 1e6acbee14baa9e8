import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from ..database import get_db
from ..models import Task, User
from ..schemas import TaskCreate, TaskUpdate, TaskOut
from ..auth import get_current_user
from ..scheduling.utils.time_utils import get_timezone, to_utc_naive
from ..services.ai_provider import AIProvider, HeuristicProvider, get_ai_provider

logger = logging.getLogger(__name__)
router = APIRouter()

DATETIME_FIELDS = ("deadline", "fixed_start")


@router.post("/", response_model=TaskOut, status_code=201)
def create_task(
    task: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: AIProvider = Depends(get_ai_provider),
):
    data = task.model_dump()
    for field in DATETIME_FIELDS:
        if data[field] is not None:
            data[field] = to_utc_naive(data[field], get_timezone(current_user.timezone))

    db_task = Task(user_id=current_user.id, **data)
    if task.category is None:
        try:
            result = provider.categorize(task.title, task.description)
        except Exception as exc:
            logger.warning(f"Categorization failed for '{task.title}', using heuristics: {exc}")
            result = HeuristicProvider().categorize(task.title, task.description)
        db_task.category = result.label
        db_task.ai_label = result.label.value
        db_task.ai_confidence = result.confidence
        db_task.ai_provider = result.provider
    else:
        db_task.ai_label = task.category.value
        db_task.ai_confidence = 1.0
        db_task.ai_provider = "user"

    db.add(db_task)
    db.commit()
    db.refresh(db_task)
    return db_task


@router.get("/", response_model=List[TaskOut])
def read_tasks(
    scheduled_date: Optional[date] = None,
    include_archived: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Task).filter(Task.user_id == current_user.id)
    if scheduled_date is not None:
        query = query.filter(Task.scheduled_date == scheduled_date)
    if not include_archived:
        query = query.filter(Task.archived.is_(False))
    return query.order_by(Task.id).all()


@router.get("/{task_id}", response_model=TaskOut)
def read_task(task_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == current_user.id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.put("/{task_id}", response_model=TaskOut)
def update_task(task_id: int, task_update: TaskUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == current_user.id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")

    data = task_update.model_dump(exclude_unset=True)
    for field, value in data.items():
        if field in DATETIME_FIELDS and value is not None:
            value = to_utc_naive(value, get_timezone(current_user.timezone))
        setattr(task, field, value)
    if "category" in data and data["category"] is not None:
        task.ai_label = data["category"].value
        task.ai_confidence = 1.0
        task.ai_provider = "user"

    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}")
def delete_task(task_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == current_user.id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    db.delete(task)
    db.commit()
    return {"message": "Task deleted"}
