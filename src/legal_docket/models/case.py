from legal_docket.database import Base
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid


class CaseStatus(str, enum.Enum):
    PENDING = "Pending"
    ONGOING = "Ongoing"
    CLOSED = "Closed"
    APPEALED = "Appealed"


class CourtLevel(str, enum.Enum):
    DISTRICT = "District"
    HIGH = "High"
    SUPREME = "Supreme"


class Case(Base):
    __tablename__ = "cases"
    __table_args__ = (
        UniqueConstraint("org_id", "case_number", name="uq_cases_org_case_number"),
    )
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    case_number = Column(String(100), nullable=False)  # e.g. "२०७९–ऋण–०१२३४"
    case_title = Column(String(500), nullable=True)
    court_level = Column(String(20), nullable=False)
    case_type = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=CaseStatus.PENDING.value, index=True)

    # Appeal lineage
    parent_case_id = Column(Uuid(as_uuid=True), nullable=True)
    appeal_case_id = Column(Uuid(as_uuid=True), nullable=True)

    dates = Column(JSON, nullable=False, default=dict)
    hearings = Column(JSON, nullable=False, default=list)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # --- Relationships ---
    parties = relationship(
        "CaseParty", back_populates="case", cascade="all, delete-orphan", order_by="CaseParty.position"
    )
    assigned_to = relationship("CaseAssignment", back_populates="case", cascade="all, delete-orphan")
    document_links = relationship("CaseDocument", back_populates="case", cascade="all, delete-orphan")

    @property
    def document_ids(self) -> list:
        return [link.document_id for link in self.document_links]


class CaseParty(Base):
    __tablename__ = "case_parties"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=True)
    role = Column(String(50), nullable=True)  # Plaintiff, Defendant, Third Party, Appellant, Respondent
    lawyer_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    contact_info = Column(String(255), nullable=True)

    case = relationship("Case", back_populates="parties")


class CaseAssignment(Base):
    __tablename__ = "case_assignments"
    case_id = Column(Uuid(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), primary_key=True, index=True)
    role = Column(String(50), nullable=True)

    case = relationship("Case", back_populates="assigned_to")


class CaseDocument(Base):
    """Soft link from a Case to the Documents filed under it. Set semantics via the composite key."""
    __tablename__ = "case_documents"
    case_id = Column(Uuid(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), primary_key=True)
    document_id = Column(Uuid(as_uuid=True), primary_key=True)
    linked_at = Column(DateTime(timezone=True), server_default=func.now())

    case = relationship("Case", back_populates="document_links")
