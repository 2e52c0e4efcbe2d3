"""
Case-scoped access control.

Admins reach every case of their org. Lawyers reach a case of their org only
when they are assigned to it, represent one of its parties, or created it.
Documents and OCR jobs have no ACL of their own: access is always decided by
resolving the parent case.
"""
import enum
import logging
from uuid import UUID

from sqlalchemy import false, or_
from sqlalchemy.orm import Session

import legal_docket.models.case as case_model
import legal_docket.models.document as document_model
from legal_docket.exceptions import Forbidden, NotFound
from legal_docket.models.user import Role
from legal_docket.security import Subject

logger = logging.getLogger(__name__)


class Decision(str, enum.Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


def is_related_lawyer(subject: Subject, case: case_model.Case) -> bool:
    uid = subject.subject_id
    if case.created_by == uid:
        return True
    if any(a.user_id == uid for a in case.assigned_to):
        return True
    return any(p.lawyer_user_id == uid for p in case.parties)


def can_access_case(subject: Subject, case: case_model.Case) -> Decision:
    """Pure policy check on an already-loaded case."""
    if case.org_id != subject.org_id:
        return Decision.DENY
    if subject.role == Role.ADMIN.value:
        return Decision.ALLOW
    if subject.role == Role.LAWYER.value and is_related_lawyer(subject, case):
        return Decision.ALLOW
    return Decision.DENY


def case_scope_filter(subject: Subject):
    """SQL twin of ``can_access_case`` for list queries."""
    Case = case_model.Case
    org_part = Case.org_id == subject.org_id
    if subject.role == Role.ADMIN.value:
        return org_part
    if subject.role != Role.LAWYER.value:
        return false()
    uid = subject.subject_id
    return org_part & or_(
        Case.created_by == uid,
        Case.assigned_to.any(case_model.CaseAssignment.user_id == uid),
        Case.parties.any(case_model.CaseParty.lawyer_user_id == uid),
    )


def resolve_case(db: Session, subject: Subject, case_id: UUID) -> case_model.Case:
    """
    Load a case the subject may act on.

    Raises NotFound when the case is absent from the subject's org and
    Forbidden when it exists there but the subject's role or relationship
    does not reach it.
    """
    case = db.query(case_model.Case).filter(
        case_model.Case.id == case_id,
        case_model.Case.org_id == subject.org_id,
    ).first()
    if case is None:
        raise NotFound("Case")
    if can_access_case(subject, case) is not Decision.ALLOW:
        logger.info("Access denied: subject=%s case=%s", subject.subject_id, case_id)
        raise Forbidden()
    return case


def resolve_document(db: Session, subject: Subject, document_id: UUID) -> document_model.Document:
    """Load a document of the subject's org and check access through its parent case."""
    document = db.query(document_model.Document).filter(
        document_model.Document.id == document_id,
        document_model.Document.org_id == subject.org_id,
    ).first()
    if document is None:
        raise NotFound("Document")
    resolve_case(db, subject, document.case_id)
    return document


def require_admin(subject: Subject) -> None:
    """Changing whether something exists is reserved to Admins."""
    if not subject.is_admin:
        raise Forbidden()
