import logging
import uuid
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import legal_docket.models.user as user_model
import legal_docket.schemas.user as user_schemas
from legal_docket import security
from legal_docket.exceptions import Conflict, Forbidden, NotAuthenticated, NotFound
from legal_docket.models.user import Role
from legal_docket.security import Subject

logger = logging.getLogger(__name__)


def assign_default_org(user: user_model.User) -> user_model.User:
    """A user without an org owns one: its own id. Never overwrites an existing org."""
    if user.id is None:
        user.id = uuid.uuid4()
    if user.org_id is None:
        user.org_id = user.id
    return user


def get_user_by_email(db: Session, email: str) -> user_model.User | None:
    """Fetches a user by their email address."""
    return db.query(user_model.User).filter(user_model.User.email == email).first()


def _persist(db: Session, db_user: user_model.User) -> user_model.User:
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already in use")
    db.refresh(db_user)
    return db_user


def register(db: Session, user: user_schemas.UserRegister, role: Role) -> user_model.User:
    """Creates a user that owns its own org (an Admin, or a solo practitioner)."""
    if get_user_by_email(db, email=user.email):
        raise Conflict("Email already in use")

    db_user = user_model.User(
        email=user.email,
        name=user.name,
        role=role.value,
        hashed_password=security.get_password_hash(user.password),
    )
    assign_default_org(db_user)
    db_user = _persist(db, db_user)
    logger.info("Registered %s %s with self-owned org", role.value, db_user.id)
    return db_user


def authenticate(db: Session, email: str, password: str) -> user_model.User:
    user = get_user_by_email(db, email=email)
    if not user or not security.verify_password(password, user.hashed_password):
        raise NotAuthenticated("Incorrect email or password")
    return user


def create_member(db: Session, subject: Subject, user: user_schemas.UserCreate) -> user_model.User:
    """Admin adds a member to their own org."""
    if get_user_by_email(db, email=user.email):
        raise Conflict("Email already in use")
    db_user = user_model.User(
        email=user.email,
        name=user.name,
        role=user.role,
        org_id=subject.org_id,
        hashed_password=security.get_password_hash(user.password),
    )
    assign_default_org(db_user)
    db_user = _persist(db, db_user)
    logger.info("Admin %s added %s %s to org %s", subject.subject_id, user.role, db_user.id, subject.org_id)
    return db_user


def list_members(db: Session, subject: Subject, q: str | None = None, role: str | None = None,
                 page: int = 1, limit: int = 20) -> tuple[list[user_model.User], int]:
    query = db.query(user_model.User).filter(user_model.User.org_id == subject.org_id)
    if role:
        query = query.filter(user_model.User.role == role)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(user_model.User.name.ilike(pattern), user_model.User.email.ilike(pattern)))
    total = query.count()
    items = (
        query.order_by(user_model.User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def get_member(db: Session, subject: Subject, user_id: UUID) -> user_model.User:
    """Self, or any member of the subject's org when the subject is an Admin."""
    user = db.query(user_model.User).filter(
        user_model.User.id == user_id,
        user_model.User.org_id == subject.org_id,
    ).first()
    if user is None:
        raise NotFound("User")
    if user.id != subject.subject_id and not subject.is_admin:
        raise Forbidden()
    return user


def update_member(db: Session, subject: Subject, user_id: UUID, updates: user_schemas.UserUpdate) -> user_model.User:
    user = get_member(db, subject, user_id)
    if updates.name is not None:
        user.name = updates.name
    if updates.password:
        user.hashed_password = security.get_password_hash(updates.password)
    if updates.role is not None and updates.role != user.role:
        if not subject.is_admin:
            raise Forbidden("Only an Admin can change roles")
        user.role = updates.role
    db.commit()
    db.refresh(user)
    return user


def delete_member(db: Session, subject: Subject, user_id: UUID) -> None:
    user = get_member(db, subject, user_id)
    if user.id == subject.subject_id:
        raise Conflict("An Admin cannot delete their own account")
    db.delete(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User is still referenced by cases or documents")
    logger.info("Admin %s removed user %s from org %s", subject.subject_id, user_id, subject.org_id)
