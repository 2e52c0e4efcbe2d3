import logging
import random
import string
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

import legal_docket.models.case as case_model
import legal_docket.models.document as document_model
import legal_docket.models.document_text as text_model
import legal_docket.models.user as user_model
import legal_docket.schemas.case as case_schema
from legal_docket.database import dialect_insert
from legal_docket.exceptions import Conflict, ValidationFailed
from legal_docket.security import Subject
from legal_docket.service import access, storage

logger = logging.getLogger(__name__)


def generate_case_number() -> str:
    year = datetime.now(timezone.utc).year
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"{year}-CV-{suffix}"


def _check_references(db: Session, subject: Subject, fields: case_schema.CaseFields) -> None:
    """Referenced users and linked cases must belong to the subject's org."""
    user_ids = {a.user_id for a in fields.assigned_to or []}
    user_ids.update(p.lawyer_user_id for p in fields.parties or [] if p.lawyer_user_id)
    if user_ids:
        found = {
            row.id for row in db.query(user_model.User.id).filter(
                user_model.User.id.in_(user_ids),
                user_model.User.org_id == subject.org_id,
            )
        }
        if found != user_ids:
            raise ValidationFailed("Referenced user is not a member of this organization")

    for name in ("parent_case_id", "appeal_case_id"):
        linked_id = getattr(fields, name)
        if linked_id is None:
            continue
        exists = db.query(case_model.Case.id).filter(
            case_model.Case.id == linked_id,
            case_model.Case.org_id == subject.org_id,
        ).first()
        if exists is None:
            raise ValidationFailed(f"{name} does not reference a case of this organization")


def _apply_fields(db_case: case_model.Case, fields: case_schema.CaseFields) -> None:
    """Copy the allow-listed fields that were actually sent onto the case."""
    sent = fields.model_fields_set

    for name in ("case_title", "court_level", "status", "parent_case_id", "appeal_case_id"):
        if name in sent and getattr(fields, name) is not None:
            setattr(db_case, name, getattr(fields, name))

    if fields.case_type:
        db_case.case_type = (
            f"{fields.case_type_category} - {fields.case_type}"
            if fields.case_type_category else fields.case_type
        )

    parties = [p.model_dump() for p in fields.parties] if fields.parties is not None else None
    if fields.client_name:
        if parties is None:
            parties = [
                {"name": p.name, "role": p.role, "lawyer_user_id": p.lawyer_user_id, "contact_info": p.contact_info}
                for p in db_case.parties
            ]
        parties.append({"name": fields.client_name, "role": "Plaintiff", "lawyer_user_id": None,
                        "contact_info": fields.contact})
    if parties is not None:
        db_case.parties = [
            case_model.CaseParty(position=i, **party) for i, party in enumerate(parties)
        ]

    if fields.assigned_to is not None:
        by_user = {a.user_id: a.role for a in fields.assigned_to}
        db_case.assigned_to = [
            case_model.CaseAssignment(user_id=user_id, role=role) for user_id, role in by_user.items()
        ]

    dates = dict(db_case.dates or {})
    if fields.dates is not None:
        dates.update(fields.dates.model_dump(mode="json", exclude_unset=True))
    if fields.court_date is not None:
        dates["next_hearing_ad"] = fields.court_date.isoformat()
    if fields.dates is not None or fields.court_date is not None:
        db_case.dates = dates

    if fields.hearings is not None:
        db_case.hearings = [h.model_dump(mode="json") for h in fields.hearings]


def create_case(db: Session, subject: Subject, case: case_schema.CaseCreate) -> case_model.Case:
    """Creates a new case in the subject's org, recording the subject as creator."""
    db_case = case_model.Case(
        org_id=subject.org_id,
        created_by=subject.subject_id,
        case_number=case.case_number or generate_case_number(),
        dates={},
        hearings=[],
    )
    _check_references(db, subject, case)
    _apply_fields(db_case, case)
    db.add(db_case)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Case number already exists")
    db.refresh(db_case)
    logger.info("Case %s (%s) created by %s", db_case.id, db_case.case_number, subject.subject_id)
    return db_case


def get_case(db: Session, subject: Subject, case_id: UUID) -> case_model.Case:
    return access.resolve_case(db, subject, case_id)


def list_cases(
    db: Session,
    subject: Subject,
    q: str | None = None,
    status: str | None = None,
    court_level: str | None = None,
    case_type: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[case_model.Case], int]:
    """Cases the subject can reach, filtered and paginated."""
    Case = case_model.Case
    query = db.query(Case).filter(access.case_scope_filter(subject))
    if status:
        query = query.filter(Case.status == status)
    if court_level:
        query = query.filter(Case.court_level == case_schema.canonical_court(court_level))
    if case_type:
        query = query.filter(Case.case_type == case_type)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(
            Case.case_number.ilike(pattern),
            Case.case_title.ilike(pattern),
            Case.parties.any(case_model.CaseParty.name.ilike(pattern)),
        ))
    total = query.count()
    items = query.order_by(Case.updated_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return items, total


def update_case(db: Session, subject: Subject, case_id: UUID, updates: case_schema.CaseUpdate) -> case_model.Case:
    db_case = access.resolve_case(db, subject, case_id)
    _check_references(db, subject, updates)
    _apply_fields(db_case, updates)
    db_case.updated_at = func.now()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Duplicate field value")
    db.refresh(db_case)
    return db_case


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def list_hearings(
    db: Session,
    subject: Subject,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[case_schema.CalendarEntry]:
    """
    Hearings of every case the subject can reach, earliest first.
    Naive datetimes are read as UTC. With a date window, undated hearings are left out;
    without one they come last.
    """
    date_from, date_to = _as_utc(date_from), _as_utc(date_to)
    cases = db.query(case_model.Case).filter(access.case_scope_filter(subject)).all()

    entries = []
    for db_case in cases:
        for raw in db_case.hearings or []:
            hearing = case_schema.Hearing.model_validate(raw)
            when = _as_utc(hearing.date_ad)
            if date_from or date_to:
                if when is None:
                    continue
                if date_from and when < date_from:
                    continue
                if date_to and when > date_to:
                    continue
            entries.append(case_schema.CalendarEntry(
                case_id=db_case.id,
                case_number=db_case.case_number,
                case_title=db_case.case_title,
                court_level=db_case.court_level,
                date_ad=when,
                date_bs=hearing.date_bs,
                description=hearing.description,
                order_document_id=hearing.order_document_id,
            ))

    entries.sort(key=lambda e: (e.date_ad is None, e.date_ad or datetime.min.replace(tzinfo=timezone.utc)))
    return entries


def link_document(db: Session, case_id: UUID, document_id: UUID) -> None:
    """Idempotently attach a document to its case. Joins the caller's transaction."""
    stmt = dialect_insert(db, case_model.CaseDocument.__table__).values(
        case_id=case_id, document_id=document_id, linked_at=datetime.now(timezone.utc)
    ).on_conflict_do_nothing(index_elements=["case_id", "document_id"])
    db.execute(stmt)


def unlink_document(db: Session, case_id: UUID, document_id: UUID) -> None:
    db.query(case_model.CaseDocument).filter(
        case_model.CaseDocument.case_id == case_id,
        case_model.CaseDocument.document_id == document_id,
    ).delete(synchronize_session=False)


def delete_case(db: Session, subject: Subject, case_id: UUID) -> None:
    """Admin only. Detaches and removes the case's documents, then the case itself."""
    access.require_admin(subject)
    db_case = access.resolve_case(db, subject, case_id)

    documents = db.query(document_model.Document).filter(
        document_model.Document.case_id == db_case.id,
        document_model.Document.org_id == subject.org_id,
    ).all()
    blob_keys = [d.storage_key for d in documents]
    document_ids = [d.id for d in documents]
    if document_ids:
        db.query(text_model.DocumentText).filter(
            text_model.DocumentText.org_id == subject.org_id,
            text_model.DocumentText.document_id.in_(document_ids),
        ).delete(synchronize_session=False)
        for document in documents:
            db.delete(document)
        db.flush()
    db.delete(db_case)
    db.commit()
    logger.info("Case %s deleted by %s with %d documents", case_id, subject.subject_id, len(document_ids))

    for key in blob_keys:
        storage.delete_blob(key)
