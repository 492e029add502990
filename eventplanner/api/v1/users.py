from fastapi import APIRouter, Depends, status

from eventplanner.api.deps import get_current_user
from eventplanner.db.models.user import User
from eventplanner.schemas.user import UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
