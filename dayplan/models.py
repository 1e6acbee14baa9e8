from sqlalchemy import (
    String, Integer, Boolean, Enum, ForeignKey, DateTime, Date, Time, Float, JSON, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.ext.mutable import MutableList
from datetime import datetime, date, time
from typing import Optional, List
from .database import Base
from .scheduling.core.constants import TaskCategory, MealType, Profile, FeedbackSource, MODEL_VERSION

# Models

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    locale: Mapped[str] = mapped_column(String(8), default="en")
    profile: Mapped[Profile] = mapped_column(Enum(Profile), default=Profile.ADULT)
    timezone: Mapped[str] = mapped_column(String, default="UTC")

    sleep_start: Mapped[time] = mapped_column(Time, default=time(23, 0))
    sleep_end: Mapped[time] = mapped_column(Time, default=time(7, 0))
    work_start: Mapped[time] = mapped_column(Time, default=time(9, 0))
    work_end: Mapped[time] = mapped_column(Time, default=time(18, 0))
    preferred_daily_minutes: Mapped[int] = mapped_column(Integer, default=480)
    breakfast_offset: Mapped[int] = mapped_column(Integer, default=0)
    lunch_offset: Mapped[int] = mapped_column(Integer, default=0)
    dinner_offset: Mapped[int] = mapped_column(Integer, default=0)
    activity_target_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    school_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    school_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    # Utility model
    weights: Mapped[List[float]] = mapped_column(MutableList.as_mutable(JSON), default=list)
    model_version: Mapped[int] = mapped_column(Integer, default=MODEL_VERSION)
    model_updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    tasks = relationship("Task", back_populates="user", cascade="all, delete-orphan")
    plans = relationship("Plan", back_populates="user", cascade="all, delete-orphan")
    feedback = relationship("Feedback", back_populates="user", cascade="all, delete-orphan")


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    title: Mapped[str] = mapped_column(String, index=True)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    category: Mapped[TaskCategory] = mapped_column(Enum(TaskCategory), default=TaskCategory.OTHER)
    estimated_minutes: Mapped[int] = mapped_column(Integer, default=30)
    priority: Mapped[float] = mapped_column(Float, default=0.5)

    # Stored as naive UTC
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    fixed_start: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    scheduled_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)

    meal_type: Mapped[Optional[MealType]] = mapped_column(Enum(MealType), nullable=True)
    min_chunk_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    indivisible: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    archived: Mapped[bool] = mapped_column(Boolean, default=False)

    # Categorization stamp
    ai_label: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    ai_confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ai_provider: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="tasks")


class Plan(Base):
    __tablename__ = "plans"
    __table_args__ = (UniqueConstraint("user_id", "plan_date", name="uq_plan_user_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    plan_date: Mapped[date] = mapped_column(Date, index=True)
    warnings: Mapped[List[str]] = mapped_column(MutableList.as_mutable(JSON), default=list)
    model_version: Mapped[int] = mapped_column(Integer, default=MODEL_VERSION)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="plans")
    slots = relationship(
        "PlanSlot", back_populates="plan", cascade="all, delete-orphan", order_by="PlanSlot.start"
    )


class PlanSlot(Base):
    __tablename__ = "plan_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("plans.id"), index=True)

    # Task ids are strings so automatic meal blocks fit alongside stored tasks
    task_id: Mapped[str] = mapped_column(String, index=True)
    title: Mapped[str] = mapped_column(String)
    category: Mapped[TaskCategory] = mapped_column(Enum(TaskCategory), default=TaskCategory.OTHER)
    start: Mapped[datetime] = mapped_column(DateTime)
    end: Mapped[datetime] = mapped_column(DateTime)
    score: Mapped[float] = mapped_column(Float, default=0.0)
    features_snapshot: Mapped[List[float]] = mapped_column(MutableList.as_mutable(JSON), default=list)
    reasoning: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    auto_generated: Mapped[bool] = mapped_column(Boolean, default=False)

    plan = relationship("Plan", back_populates="slots")


class Feedback(Base):
    __tablename__ = "feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("plans.id"), index=True)
    task_id: Mapped[str] = mapped_column(String)
    slot_start: Mapped[datetime] = mapped_column(DateTime)
    slot_end: Mapped[datetime] = mapped_column(DateTime)
    label: Mapped[int] = mapped_column(Integer)
    source: Mapped[FeedbackSource] = mapped_column(Enum(FeedbackSource), default=FeedbackSource.THUMBS)
    note: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    features_snapshot: Mapped[List[float]] = mapped_column(MutableList.as_mutable(JSON), default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="feedback")
