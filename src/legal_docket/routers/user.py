from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

import legal_docket.schemas.user as user_schemas
import legal_docket.service.user as user_service
from legal_docket import security
from legal_docket.database import get_db
from legal_docket.models.user import Role
from legal_docket.security import Subject

router = APIRouter(
    tags=["Users"],
    dependencies=[Depends(security.get_current_subject)]
)

admin_only = security.require_roles(Role.ADMIN)


@router.post("/users", response_model=user_schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(
    user: user_schemas.UserCreate,
    db: Session = Depends(get_db),
    subject: Subject = Depends(admin_only),
):
    """Adds a Lawyer (or another Admin) to the caller's org."""
    return user_service.create_member(db, subject, user)

@router.get("/org/users", response_model=user_schemas.UserPage)
def list_org_users(
    q: Optional[str] = None,
    role: Optional[user_schemas.RoleName] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    subject: Subject = Depends(admin_only),
):
    items, total = user_service.list_members(db, subject, q=q, role=role, page=page, limit=limit)
    return {"page": page, "limit": limit, "total": total, "items": items}

@router.get("/users/{user_id}", response_model=user_schemas.User)
def read_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    return user_service.get_member(db, subject, user_id)

@router.patch("/users/{user_id}", response_model=user_schemas.User)
def update_user(
    user_id: UUID,
    updates: user_schemas.UserUpdate,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    """Self or an Admin of the same org. The org itself can never change."""
    return user_service.update_member(db, subject, user_id, updates)

@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(admin_only),
):
    user_service.delete_member(db, subject, user_id)
