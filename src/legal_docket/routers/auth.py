from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

import legal_docket.schemas.user as user_schemas
import legal_docket.service.user as user_service
from legal_docket import security
from legal_docket.database import get_db
from legal_docket.models.user import Role

router = APIRouter(tags=["Authentication"])

@router.post("/login", response_model=user_schemas.Token)
def login_for_access_token(
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends()
):
    """
    Authenticates a user and returns a JWT carrying their id, org and role.
    """
    user = user_service.authenticate(db, email=form_data.username, password=form_data.password)
    access_token = security.create_access_token(user)
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/auth/register-admin", response_model=user_schemas.User, status_code=status.HTTP_201_CREATED)
def register_admin(user: user_schemas.UserRegister, db: Session = Depends(get_db)):
    """Registers an Admin. The Admin's own id becomes the org id."""
    return user_service.register(db, user=user, role=Role.ADMIN)

@router.post("/auth/register-lawyer", response_model=user_schemas.User, status_code=status.HTTP_201_CREATED)
def register_lawyer(user: user_schemas.UserRegister, db: Session = Depends(get_db)):
    """Registers a solo practitioner who owns their own org."""
    return user_service.register(db, user=user, role=Role.LAWYER)
