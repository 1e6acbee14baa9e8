from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import UserCreate, UserOut, SettingsOut, SettingsUpdate, MealOffsetsSchema
from ..services.model_service import default_weights, ensure_user_weights

router = APIRouter()


def settings_out(user: User) -> SettingsOut:
    return SettingsOut(
        sleep_start=user.sleep_start,
        sleep_end=user.sleep_end,
        work_start=user.work_start,
        work_end=user.work_end,
        locale=user.locale,
        profile=user.profile,
        timezone=user.timezone,
        preferred_daily_minutes=user.preferred_daily_minutes,
        meal_offsets=MealOffsetsSchema(
            breakfast=user.breakfast_offset,
            lunch=user.lunch_offset,
            dinner=user.dinner_offset,
        ),
        activity_target_minutes=user.activity_target_minutes,
        school_start=user.school_start,
        school_end=user.school_end,
    )


@router.post("/", response_model=UserOut, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        email=payload.email,
        name=payload.name,
        profile=payload.profile,
        locale=payload.locale,
        timezone=payload.timezone,
        weights=default_weights(payload.profile),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/me/settings", response_model=SettingsOut)
def read_settings(current_user: User = Depends(get_current_user)):
    return settings_out(current_user)


@router.put("/me/settings", response_model=SettingsOut)
def update_settings(update: SettingsUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    data = update.model_dump(exclude_unset=True)
    offsets = data.pop("meal_offsets", None)
    if offsets is not None:
        current_user.breakfast_offset = offsets["breakfast"]
        current_user.lunch_offset = offsets["lunch"]
        current_user.dinner_offset = offsets["dinner"]

    profile_changed = "profile" in data and data["profile"] != current_user.profile
    for field, value in data.items():
        setattr(current_user, field, value)

    # A new profile starts from that profile's preset
    if profile_changed:
        current_user.weights = []
        ensure_user_weights(current_user)

    db.commit()
    db.refresh(current_user)
    return settings_out(current_user)
