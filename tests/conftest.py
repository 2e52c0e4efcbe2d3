import os
import tempfile
import uuid

# Settings are read at import time, so the environment has to be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OCR_DISPATCH_ENABLED"] = "false"
os.environ["OCR_WORKER_KEY"] = "test-worker-key"
os.environ.setdefault("STORAGE_PATH", tempfile.mkdtemp(prefix="legal-docket-"))

import pytest
from fastapi.testclient import TestClient

from legal_docket import security
from legal_docket.config import settings
from legal_docket.database import Base, SessionLocal, engine
from legal_docket.main import app
from legal_docket.models.user import Role, User
from legal_docket.service.user import assign_default_org

WORKER_KEY = "test-worker-key"
PASSWORD = "correct horse battery staple"


@pytest.fixture(scope="session")
def password_hash():
    return security.get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def storage_dir(tmp_path, monkeypatch):
    path = tmp_path / "storage"
    path.mkdir()
    monkeypatch.setattr(settings, "STORAGE_PATH", str(path))
    return path


@pytest.fixture(scope="function")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db, password_hash):
    """Insert a user. Without ``org_id`` the user owns a new org."""
    def _make(role: Role = Role.LAWYER, org_id=None, name=None):
        uid = uuid.uuid4()
        user = User(
            id=uid,
            org_id=org_id,
            role=role.value,
            name=name or f"{role.value} {str(uid)[:8]}",
            email=f"{str(uid)[:8]}@lawfirm.com.np",
            hashed_password=password_hash,
        )
        assign_default_org(user)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {security.create_access_token(user)}"}


WORKER_HEADERS = {security.WORKER_KEY_HEADER: WORKER_KEY}


@pytest.fixture
def org(make_user):
    """An Admin, two Lawyers of the same org, and their auth headers."""
    admin = make_user(Role.ADMIN)
    lawyer = make_user(Role.LAWYER, org_id=admin.org_id)
    outsider = make_user(Role.LAWYER, org_id=admin.org_id)
    return {
        "admin": admin,
        "lawyer": lawyer,
        "outsider": outsider,
        "admin_headers": auth_headers(admin),
        "lawyer_headers": auth_headers(lawyer),
        "outsider_headers": auth_headers(outsider),
    }


def create_case(client, headers, **fields) -> dict:
    body = {"court_level": "District", "case_type": "Civil"}
    body.update(fields)
    r = client.post("/cases", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def upload(client, headers, case_id, content=b"%PDF-1.4 petition", document_type="Petition",
           filename="petition.pdf", content_type="application/pdf", **form):
    data = {"case_id": case_id, "document_type": document_type}
    data.update(form)
    return client.post(
        "/documents/upload",
        data=data,
        files={"file": (filename, content, content_type)},
        headers=headers,
    )


@pytest.fixture
def sample_pdf_content():
    return (
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
        b"2 0 obj\n<< /Type /Pages /Kids [3 0 R] /Count 1 >>\nendobj\n"
        b"3 0 obj\n<< /Type /Page /Parent 2 0 R /MediaBox [0 0 200 200] >>\nendobj\n"
        b"trailer\n<< /Size 4 /Root 1 0 R >>\n%%EOF"
    )
