from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

import legal_docket.schemas.case as case_schema
import legal_docket.service.case as case_service
from legal_docket import security
from legal_docket.database import get_db
from legal_docket.security import Subject

router = APIRouter(
    prefix="/calendar",
    tags=["Calendar"],
    dependencies=[Depends(security.get_current_subject)]
)

@router.get("", response_model=case_schema.Calendar)
def read_calendar(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    subject: Subject = Depends(security.get_current_subject),
):
    """Upcoming and past hearings across the cases the caller can reach. Hearings are edited on the case."""
    items = case_service.list_hearings(db, subject, date_from=date_from, date_to=date_to)
    return {"total": len(items), "items": items}
