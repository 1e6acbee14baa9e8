from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import WeightsOut
from ..scheduling.core.constants import FEATURE_NAMES
from ..services.model_service import ensure_user_weights, reset_user_weights

router = APIRouter()


def weights_out(user: User) -> WeightsOut:
    return WeightsOut(
        weights=list(user.weights),
        feature_names=FEATURE_NAMES,
        model_version=user.model_version,
        updated_at=user.model_updated_at,
    )


@router.get("/", response_model=WeightsOut)
def read_weights(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    _, migrated = ensure_user_weights(current_user)
    if migrated:
        db.commit()
    return weights_out(current_user)


@router.post("/reset", response_model=WeightsOut)
def reset_weights(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    reset_user_weights(db, current_user)
    return weights_out(current_user)
