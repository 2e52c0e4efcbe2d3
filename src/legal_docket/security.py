import hmac
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from legal_docket.config import settings
from legal_docket.exceptions import Forbidden, NotAuthenticated
from legal_docket.models.user import Role

logger = logging.getLogger(__name__)

# --- Password Hashing Setup ---
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# --- JWT Configuration ---
ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)

WORKER_KEY_HEADER = "X-OCR-Worker-Key"


@dataclass(frozen=True)
class Subject:
    """The authenticated actor of one request. Passed explicitly into every service call."""
    subject_id: uuid.UUID
    org_id: uuid.UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


@dataclass(frozen=True)
class WorkerCaller:
    """The trusted OCR worker. Not a tenant actor, so case scoping does not apply."""


@dataclass(frozen=True)
class UserCaller:
    subject: Subject


Caller = Union[WorkerCaller, UserCaller]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain password against a hashed one."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hashes a plain password."""
    return pwd_context.hash(password)

def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Creates a JWT carrying the user's id, org and role."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(user.id),
        "org_id": str(user.org_id or user.id),
        "role": user.role,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_subject(token: str) -> Subject:
    """Resolve a bearer token into a Subject, or raise NotAuthenticated."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise NotAuthenticated("Unauthorized or expired token")

    subject_id = payload.get("sub")
    org_id = payload.get("org_id")
    role = payload.get("role")
    if not subject_id or not org_id:
        raise NotAuthenticated("Token is missing subject or org")
    if role not in (Role.ADMIN.value, Role.LAWYER.value):
        raise NotAuthenticated("Token carries an unknown role")
    try:
        return Subject(subject_id=uuid.UUID(subject_id), org_id=uuid.UUID(org_id), role=role)
    except ValueError:
        raise NotAuthenticated("Malformed token identifiers")


def get_current_subject(token: str = Depends(oauth2_scheme)) -> Subject:
    """
    Dependency that turns the bearer token into the request's Subject.
    Every query downstream filters on ``subject.org_id``.
    """
    return decode_subject(token)


def is_worker_key(presented: Optional[str]) -> bool:
    expected = settings.OCR_WORKER_KEY
    if not expected or not presented:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())


def get_caller(
    worker_key: Optional[str] = Header(default=None, alias=WORKER_KEY_HEADER),
    token: Optional[str] = Depends(optional_oauth2_scheme),
) -> Caller:
    """Dependency for endpoints the OCR worker may call: worker key first, then a user token."""
    if is_worker_key(worker_key):
        return WorkerCaller()
    if worker_key:
        logger.warning("Rejected OCR worker key; falling back to user authentication")
    if not token:
        raise NotAuthenticated("Unauthorized: no token")
    return UserCaller(subject=decode_subject(token))


def require_roles(*roles: Role):
    """Dependency factory allowing only the given roles."""
    allowed = {r.value for r in roles}

    def _check(subject: Subject = Depends(get_current_subject)) -> Subject:
        if subject.role not in allowed:
            raise Forbidden()
        return subject

    return _check
