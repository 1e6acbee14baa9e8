from typing import Optional
from fastapi import HTTPException, status, Depends, Header
from sqlalchemy.orm import Session
from .database import get_db
from .models import User

# Sessions are handled by the gateway in front of the API, which forwards the
# authenticated user's id in this header.
USER_HEADER = "X-User-Id"


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias=USER_HEADER),
    db: Session = Depends(get_db)
) -> User:
    """Get current user from the forwarded identity header"""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identity",
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
