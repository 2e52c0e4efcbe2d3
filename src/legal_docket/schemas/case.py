from pydantic import BaseModel, field_validator
from uuid import UUID
from datetime import datetime
from typing import Any, Literal, Optional

CaseStatusName = Literal["Pending", "Ongoing", "Closed", "Appealed"]
PartyRoleName = Literal["Plaintiff", "Defendant", "Third Party", "Appellant", "Respondent"]

_COURT_ALIASES = {"district": "District", "high": "High", "supreme": "Supreme"}


def canonical_court(value: Any) -> Any:
    if isinstance(value, str):
        return _COURT_ALIASES.get(value.strip().lower(), value)
    return value


class Party(BaseModel):
    name: Optional[str] = None
    role: Optional[PartyRoleName] = None
    lawyer_user_id: Optional[UUID] = None
    contact_info: Optional[str] = None

    class Config:
        from_attributes = True

class Assignment(BaseModel):
    user_id: UUID
    role: Optional[str] = None

    class Config:
        from_attributes = True

class Hearing(BaseModel):
    date_ad: Optional[datetime] = None
    date_bs: Optional[str] = None
    description: Optional[str] = None
    order_document_id: Optional[UUID] = None

class CaseDates(BaseModel):
    filed_ad: Optional[datetime] = None
    filed_bs: Optional[str] = None
    next_hearing_ad: Optional[datetime] = None
    next_hearing_bs: Optional[str] = None
    judgment_ad: Optional[datetime] = None
    judgment_bs: Optional[str] = None


class CaseFields(BaseModel):
    """Mutable fields shared by create and update. Unknown keys are ignored."""
    case_title: Optional[str] = None
    court_level: Optional[Literal["District", "High", "Supreme"]] = None
    case_type: Optional[str] = None
    case_type_category: Optional[str] = None
    status: Optional[CaseStatusName] = None
    parent_case_id: Optional[UUID] = None
    appeal_case_id: Optional[UUID] = None
    parties: Optional[list[Party]] = None
    assigned_to: Optional[list[Assignment]] = None
    dates: Optional[CaseDates] = None
    hearings: Optional[list[Hearing]] = None
    # Shorthands kept for the intake form
    client_name: Optional[str] = None
    contact: Optional[str] = None
    court_date: Optional[datetime] = None

    @field_validator("court_level", mode="before")
    @classmethod
    def _canonical_court(cls, value):
        return canonical_court(value)

class CaseCreate(CaseFields):
    case_number: Optional[str] = None
    court_level: Literal["District", "High", "Supreme"]
    case_type: str

class CaseUpdate(CaseFields):
    pass


class Case(BaseModel):
    id: UUID
    org_id: UUID
    case_number: str
    case_title: Optional[str] = None
    court_level: str
    case_type: str
    status: str
    parent_case_id: Optional[UUID] = None
    appeal_case_id: Optional[UUID] = None
    parties: list[Party]
    assigned_to: list[Assignment]
    created_by: UUID
    document_ids: list[UUID]
    dates: dict
    hearings: list
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

class CasePage(BaseModel):
    page: int
    limit: int
    total: int
    items: list[Case]


class CalendarEntry(BaseModel):
    """One hearing of a case, flattened for the org calendar."""
    case_id: UUID
    case_number: str
    case_title: Optional[str] = None
    court_level: str
    date_ad: Optional[datetime] = None
    date_bs: Optional[str] = None
    description: Optional[str] = None
    order_document_id: Optional[UUID] = None

class Calendar(BaseModel):
    total: int
    items: list[CalendarEntry]
