import hashlib
import uuid

from legal_docket.models.case import CaseDocument
from legal_docket.models.document import Document
from legal_docket.models.ocr_job import OcrJob
from legal_docket.models.user import Role
from legal_docket.service import storage

from conftest import WORKER_HEADERS, auth_headers, create_case, upload


def test_upload_creates_document_and_queued_job(client, org, db, sample_pdf_content):
    case = create_case(client, org["lawyer_headers"])
    r = upload(client, org["lawyer_headers"], case["id"], content=sample_pdf_content)
    assert r.status_code == 201, r.text
    body = r.json()
    document = body["document"]

    assert document["org_id"] == str(org["admin"].org_id)
    assert document["uploaded_by"] == str(org["lawyer"].id)
    assert document["storage"]["sha256"] == hashlib.sha256(sample_pdf_content).hexdigest()
    assert document["storage"]["size_bytes"] == len(sample_pdf_content)
    assert document["ocr"]["status"] == "pending"
    assert document["ocr"]["needs_review"] is False
    assert document["ocr_job_id"] == body["ocr_job_id"]
    assert document["language"] == {"iso": "ne", "script": "Devanagari", "mixed": True}
    assert storage.blob_exists(document["storage"]["key"])

    job = db.get(OcrJob, uuid.UUID(body["ocr_job_id"]))
    assert job.status == "queued"
    assert job.attempt == 1
    assert job.org_id == org["admin"].org_id

    linked = client.get(f"/cases/{case['id']}", headers=org["lawyer_headers"]).json()
    assert linked["document_ids"] == [document["id"]]


def test_same_content_twice_in_one_org_is_a_conflict(client, org):
    case = create_case(client, org["admin_headers"])
    assert upload(client, org["admin_headers"], case["id"]).status_code == 201
    other_case = create_case(client, org["admin_headers"])
    r = upload(client, org["admin_headers"], other_case["id"], filename="copy.pdf")
    assert r.status_code == 409


def test_duplicate_upload_keeps_the_original_blob(client, org):
    case = create_case(client, org["admin_headers"])
    first = upload(client, org["admin_headers"], case["id"]).json()["document"]
    upload(client, org["admin_headers"], case["id"])
    assert storage.blob_exists(first["storage"]["key"])


def test_same_content_in_two_orgs_succeeds(client, org, make_user):
    other = auth_headers(make_user(Role.ADMIN))
    mine = create_case(client, org["admin_headers"])
    theirs = create_case(client, other)
    assert upload(client, org["admin_headers"], mine["id"]).status_code == 201
    assert upload(client, other, theirs["id"]).status_code == 201


def test_unsupported_type_is_rejected(client, org):
    case = create_case(client, org["admin_headers"])
    r = upload(client, org["admin_headers"], case["id"], filename="notes.txt", content_type="text/plain")
    assert r.status_code == 415


def test_oversized_upload_is_rejected(client, org, monkeypatch):
    from legal_docket.config import settings
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 8)
    case = create_case(client, org["admin_headers"])
    r = upload(client, org["admin_headers"], case["id"], content=b"0123456789")
    assert r.status_code == 413


def test_upload_needs_case_scope(client, org):
    case = create_case(client, org["admin_headers"])
    assert upload(client, org["outsider_headers"], case["id"]).status_code == 403
    assert upload(client, org["outsider_headers"], str(uuid.uuid4())).status_code == 404


def test_failed_insert_removes_new_blob(client, org, monkeypatch, storage_dir):
    from legal_docket.service import case as case_service
    from sqlalchemy.exc import OperationalError

    def broken_link(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(case_service, "link_document", broken_link)
    case = create_case(client, org["admin_headers"])
    r = upload(client, org["admin_headers"], case["id"])
    assert r.status_code == 500
    assert r.json()["detail"] == "Internal server error"
    assert not [p for p in storage_dir.rglob("*") if p.is_file()]


def test_exhibit_only_kept_for_evidence(client, org):
    case = create_case(client, org["admin_headers"])
    evidence = upload(client, org["admin_headers"], case["id"], content=b"%PDF evidence",
                      document_type="Evidence", exhibit_no="Ex-1", exhibit_title="Deed").json()["document"]
    petition = upload(client, org["admin_headers"], case["id"], content=b"%PDF petition",
                      exhibit_no="Ex-2").json()["document"]
    assert evidence["exhibit"] == {"no": "Ex-1", "title": "Deed"}
    assert petition["exhibit"] is None


def test_list_documents_for_case(client, org):
    case = create_case(client, org["admin_headers"])
    upload(client, org["admin_headers"], case["id"], content=b"%PDF one")
    upload(client, org["admin_headers"], case["id"], content=b"%PDF two", document_type="Reply")

    r = client.get(f"/cases/{case['id']}/documents", headers=org["admin_headers"])
    assert r.json()["total"] == 2
    r = client.get(f"/cases/{case['id']}/documents", params={"type": "Reply"}, headers=org["admin_headers"])
    assert [d["document_type"] for d in r.json()["items"]] == ["Reply"]
    r = client.get(f"/cases/{case['id']}/documents", headers=org["outsider_headers"])
    assert r.status_code == 403


def test_document_access_follows_case(client, org, make_user):
    case = create_case(client, org["lawyer_headers"])
    document = upload(client, org["lawyer_headers"], case["id"]).json()["document"]

    assert client.get(f"/documents/{document['id']}", headers=org["lawyer_headers"]).status_code == 200
    assert client.get(f"/documents/{document['id']}", headers=org["outsider_headers"]).status_code == 403
    foreign = auth_headers(make_user(Role.ADMIN))
    assert client.get(f"/documents/{document['id']}", headers=foreign).status_code == 404


def test_update_document_allow_list(client, org):
    case = create_case(client, org["admin_headers"])
    document = upload(client, org["admin_headers"], case["id"]).json()["document"]
    r = client.patch(
        f"/documents/{document['id']}",
        json={"document_type": "Reply", "org_id": str(uuid.uuid4()), "language": {"iso": "en", "script": "Latin", "mixed": False}},
        headers=org["admin_headers"],
    )
    assert r.status_code == 200
    body = r.json()
    assert body["document_type"] == "Reply"
    assert body["org_id"] == document["org_id"]
    assert body["language"]["iso"] == "en"
    assert body["version"] == 2


def test_only_admin_deletes_documents(client, org, db):
    case = create_case(client, org["lawyer_headers"])
    document = upload(client, org["lawyer_headers"], case["id"]).json()["document"]
    key = document["storage"]["key"]
    client.post(f"/documents/{document['id']}/ocr-result", json={"full_text": "निवेदन"}, headers=WORKER_HEADERS)

    assert client.delete(f"/documents/{document['id']}", headers=org["lawyer_headers"]).status_code == 403
    assert client.delete(f"/documents/{document['id']}", headers=org["admin_headers"]).status_code == 204

    assert client.get(f"/documents/{document['id']}", headers=org["admin_headers"]).status_code == 404
    assert not storage.blob_exists(key)
    db.expire_all()
    assert db.query(CaseDocument).filter(CaseDocument.case_id == uuid.UUID(case["id"])).count() == 0
    # Job rows outlive the document for audit
    assert db.query(OcrJob).filter(OcrJob.document_id == uuid.UUID(document["id"])).count() == 1


def test_deleting_case_detaches_documents(client, org, db):
    case = create_case(client, org["admin_headers"])
    document = upload(client, org["admin_headers"], case["id"]).json()["document"]
    assert client.delete(f"/cases/{case['id']}", headers=org["admin_headers"]).status_code == 204
    db.expire_all()
    assert db.get(Document, uuid.UUID(document["id"])) is None
    assert not storage.blob_exists(document["storage"]["key"])


def test_reupload_after_delete_is_allowed(client, org):
    case = create_case(client, org["admin_headers"])
    document = upload(client, org["admin_headers"], case["id"]).json()["document"]
    client.delete(f"/documents/{document['id']}", headers=org["admin_headers"])
    assert upload(client, org["admin_headers"], case["id"]).status_code == 201
