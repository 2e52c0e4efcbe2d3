import uuid

from legal_docket.models.user import Role

from conftest import auth_headers, create_case


def test_create_case_records_creator_and_org(client, org):
    case = create_case(client, org["lawyer_headers"], case_number="२०७९-ऋण-०१२३४", court_level="district")
    assert case["created_by"] == str(org["lawyer"].id)
    assert case["org_id"] == str(org["admin"].org_id)
    assert case["court_level"] == "District"
    assert case["status"] == "Pending"
    assert case["document_ids"] == []


def test_case_number_is_generated_when_missing(client, org):
    case = create_case(client, org["admin_headers"])
    year, kind, suffix = case["case_number"].split("-")
    assert kind == "CV" and len(year) == 4 and len(suffix) == 4


def test_intake_shorthands(client, org):
    case = create_case(
        client, org["admin_headers"],
        case_type_category="Civil", case_type="Money Recovery",
        client_name="Ram Bahadur", contact="98XXXXXXXX",
        court_date="2024-05-01T10:00:00",
    )
    assert case["case_type"] == "Civil - Money Recovery"
    assert case["parties"][0]["name"] == "Ram Bahadur"
    assert case["parties"][0]["role"] == "Plaintiff"
    assert case["dates"]["next_hearing_ad"].startswith("2024-05-01")


def test_duplicate_case_number_in_org_is_a_conflict(client, org):
    create_case(client, org["admin_headers"], case_number="2080-CV-0001")
    r = client.post("/cases", json={"case_number": "2080-CV-0001", "court_level": "High", "case_type": "Writ"},
                    headers=org["admin_headers"])
    assert r.status_code == 409


def test_same_case_number_in_two_orgs(client, org, make_user):
    other_admin = make_user(Role.ADMIN)
    create_case(client, org["admin_headers"], case_number="2080-CV-0002")
    create_case(client, auth_headers(other_admin), case_number="2080-CV-0002")


def test_unrelated_lawyer_gets_forbidden_not_found(client, org):
    case = create_case(client, org["admin_headers"])
    headers = org["outsider_headers"]
    assert client.get(f"/cases/{case['id']}", headers=headers).status_code == 403
    assert client.patch(f"/cases/{case['id']}", json={"status": "Ongoing"}, headers=headers).status_code == 403
    assert client.get(f"/cases/{uuid.uuid4()}", headers=headers).status_code == 404


def test_case_of_other_org_is_not_found_even_for_admin(client, org, make_user):
    foreign_admin = make_user(Role.ADMIN)
    foreign_case = create_case(client, auth_headers(foreign_admin))
    assert client.get(f"/cases/{foreign_case['id']}", headers=org["admin_headers"]).status_code == 404


def test_assigned_lawyer_and_party_lawyer_have_access(client, org):
    case = create_case(
        client, org["admin_headers"],
        assigned_to=[{"user_id": str(org["lawyer"].id), "role": "Lead"}],
    )
    assert client.get(f"/cases/{case['id']}", headers=org["lawyer_headers"]).status_code == 200

    case = create_case(
        client, org["admin_headers"],
        parties=[{"name": "Sita", "role": "Defendant", "lawyer_user_id": str(org["outsider"].id)}],
    )
    assert client.get(f"/cases/{case['id']}", headers=org["outsider_headers"]).status_code == 200


def test_related_lawyer_updates_case(client, org):
    case = create_case(client, org["lawyer_headers"])
    r = client.patch(f"/cases/{case['id']}", json={"status": "Ongoing", "case_title": "Bank v. Ram"},
                     headers=org["lawyer_headers"])
    assert r.status_code == 200
    assert r.json()["status"] == "Ongoing"
    assert r.json()["case_title"] == "Bank v. Ram"


def test_list_is_scope_filtered(client, org, make_user):
    mine = create_case(client, org["lawyer_headers"], case_title="Mine")
    create_case(client, org["admin_headers"], case_title="Someone else's")
    create_case(client, auth_headers(make_user(Role.ADMIN)), case_title="Other org")

    r = client.get("/cases", headers=org["lawyer_headers"])
    assert r.status_code == 200
    assert [c["id"] for c in r.json()["items"]] == [mine["id"]]

    r = client.get("/cases", headers=org["admin_headers"])
    assert r.json()["total"] == 2
    assert {c["org_id"] for c in r.json()["items"]} == {str(org["admin"].org_id)}


def test_list_search_and_filters(client, org):
    create_case(client, org["admin_headers"], case_title="Nabil Bank v. Hari", status="Ongoing")
    create_case(client, org["admin_headers"], case_title="Land dispute",
                parties=[{"name": "Gita Nabil", "role": "Respondent"}])
    create_case(client, org["admin_headers"], case_title="Unrelated", court_level="Supreme")

    r = client.get("/cases", params={"q": "nabil"}, headers=org["admin_headers"])
    assert r.json()["total"] == 2
    r = client.get("/cases", params={"status": "Ongoing"}, headers=org["admin_headers"])
    assert r.json()["total"] == 1
    r = client.get("/cases", params={"court_level": "supreme"}, headers=org["admin_headers"])
    assert r.json()["total"] == 1
    r = client.get("/cases", params={"page": 2, "limit": 2}, headers=org["admin_headers"])
    assert r.json()["page"] == 2 and len(r.json()["items"]) == 1


def test_only_admin_deletes_cases(client, org):
    case = create_case(client, org["lawyer_headers"])
    assert client.delete(f"/cases/{case['id']}", headers=org["lawyer_headers"]).status_code == 403
    assert client.delete(f"/cases/{case['id']}", headers=org["admin_headers"]).status_code == 204
    assert client.get(f"/cases/{case['id']}", headers=org["admin_headers"]).status_code == 404


def test_references_to_another_org_are_rejected(client, org, db, make_user):
    from legal_docket.models.case import Case

    foreign_admin = make_user(Role.ADMIN)
    foreign_lawyer = make_user(Role.LAWYER, org_id=foreign_admin.org_id)
    foreign_case = create_case(client, auth_headers(foreign_admin))
    headers = org["lawyer_headers"]
    base = {"court_level": "District", "case_type": "Civil"}

    attempts = [
        {"assigned_to": [{"user_id": str(foreign_lawyer.id), "role": "Lead"}]},
        {"parties": [{"name": "Sita", "role": "Defendant", "lawyer_user_id": str(foreign_lawyer.id)}]},
        {"parent_case_id": foreign_case["id"]},
        {"appeal_case_id": foreign_case["id"]},
        {"assigned_to": [{"user_id": str(uuid.uuid4())}]},
    ]
    for fields in attempts:
        r = client.post("/cases", json={**base, **fields}, headers=headers)
        assert r.status_code == 400, fields

    db.expire_all()
    assert db.query(Case).filter(Case.org_id == org["admin"].org_id).count() == 0

    case = create_case(client, headers)
    r = client.patch(f"/cases/{case['id']}", json={"parent_case_id": foreign_case["id"]}, headers=headers)
    assert r.status_code == 400
    assert client.get(f"/cases/{case['id']}", headers=headers).json()["parent_case_id"] is None


def test_references_within_org_are_accepted(client, org):
    parent = create_case(client, org["admin_headers"])
    case = create_case(
        client, org["admin_headers"],
        parent_case_id=parent["id"],
        assigned_to=[{"user_id": str(org["lawyer"].id), "role": "Lead"}],
        parties=[{"name": "Sita", "role": "Defendant", "lawyer_user_id": str(org["outsider"].id)}],
    )
    assert case["parent_case_id"] == parent["id"]
    assert case["assigned_to"][0]["user_id"] == str(org["lawyer"].id)
