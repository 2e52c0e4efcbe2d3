from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

import legal_docket.schemas.case as case_schema
import legal_docket.schemas.document as document_schema
import legal_docket.service.case as case_service
import legal_docket.service.document as document_service
from legal_docket import security
from legal_docket.database import get_db
from legal_docket.models.user import Role
from legal_docket.security import Subject

router = APIRouter(
    prefix="/cases",
    tags=["Cases"],
    dependencies=[Depends(security.get_current_subject)] # This protects all routes in this router
)

@router.post("", response_model=case_schema.Case, status_code=status.HTTP_201_CREATED)
def create_case(
    case: case_schema.CaseCreate,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.require_roles(Role.ADMIN, Role.LAWYER)),
):
    """Create a new case in the caller's org. The caller is recorded as creator."""
    return case_service.create_case(db, subject, case)

@router.get("", response_model=case_schema.CasePage)
def read_cases(
    q: Optional[str] = None,
    status: Optional[case_schema.CaseStatusName] = None,
    court_level: Optional[str] = None,
    case_type: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    """Retrieve the cases the caller can reach."""
    items, total = case_service.list_cases(
        db, subject, q=q, status=status, court_level=court_level, case_type=case_type, page=page, limit=limit
    )
    return {"page": page, "limit": limit, "total": total, "items": items}

@router.get("/{case_id}", response_model=case_schema.Case)
def read_case(
    case_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    """Retrieve a specific case: 404 outside the org, 403 when the caller is not related to it."""
    return case_service.get_case(db, subject, case_id)

@router.patch("/{case_id}", response_model=case_schema.Case)
def update_case(
    case_id: UUID,
    updates: case_schema.CaseUpdate,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    return case_service.update_case(db, subject, case_id, updates)

@router.delete("/{case_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_case(
    case_id: UUID,
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.require_roles(Role.ADMIN)),
):
    case_service.delete_case(db, subject, case_id)

@router.get("/{case_id}/documents", response_model=document_schema.DocumentPage)
def read_case_documents(
    case_id: UUID,
    type: Optional[document_schema.DocumentTypeName] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    items, total = document_service.list_documents(
        db, subject, case_id, document_type=type, page=page, limit=limit
    )
    return {"page": page, "limit": limit, "total": total, "items": items}
