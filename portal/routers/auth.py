from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.database.config.db import get_db
from portal.database.models.auth import User
from portal.schema.auth import LoginRequest, Token, UserResponse
from portal.utils.auth import SqlIdentityProvider, create_access_token, get_current_user

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/login", response_model=Token)
def login(
    form_data: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Login and get access token.
    """
    actor = SqlIdentityProvider(db).authenticate(form_data.email, form_data.password)

    access_token = create_access_token(
        data={"sub": str(actor.id), "email": actor.email, "role": actor.role.value}
    )
    return {"access_token": access_token, "token_type": "bearer"}


@auth_router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user information.
    """
    return current_user
