from legal_docket.database import Base
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func
import enum
import uuid


class Role(str, enum.Enum):
    ADMIN = "Admin"
    LAWYER = "Lawyer"


class User(Base):
    __tablename__ = "users"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Owner-user id of the organization. Admins and solo practitioners own themselves.
    org_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=Role.LAWYER.value)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
