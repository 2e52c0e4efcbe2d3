from legal_docket.models.user import Role

from conftest import auth_headers, create_case


def test_calendar_lists_reachable_hearings_in_date_order(client, org, make_user):
    mine = create_case(client, org["lawyer_headers"], case_title="Bank v. Ram", hearings=[
        {"date_ad": "2024-06-10T10:00:00", "description": "PESI"},
        {"date_ad": "2024-05-01T10:00:00", "date_bs": "2081-01-19", "description": "SATA"},
    ])
    create_case(client, org["admin_headers"], hearings=[{"date_ad": "2024-05-20T10:00:00"}])
    create_case(client, auth_headers(make_user(Role.ADMIN)), hearings=[{"date_ad": "2024-05-02T10:00:00"}])

    r = client.get("/calendar", headers=org["lawyer_headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert [e["description"] for e in body["items"]] == ["SATA", "PESI"]
    assert body["items"][0]["case_id"] == mine["id"]
    assert body["items"][0]["case_title"] == "Bank v. Ram"
    assert body["items"][0]["date_bs"] == "2081-01-19"

    r = client.get("/calendar", headers=org["admin_headers"])
    assert r.json()["total"] == 3


def test_calendar_date_window(client, org):
    create_case(client, org["admin_headers"], hearings=[
        {"date_ad": "2024-05-01T10:00:00", "description": "early"},
        {"date_ad": "2024-05-15T10:00:00", "description": "middle"},
        {"date_ad": "2024-06-01T10:00:00", "description": "late"},
        {"description": "undated"},
    ])
    r = client.get("/calendar", params={"from": "2024-05-10T00:00:00", "to": "2024-05-31T23:59:59"},
                   headers=org["admin_headers"])
    assert [e["description"] for e in r.json()["items"]] == ["middle"]

    r = client.get("/calendar", headers=org["admin_headers"])
    assert [e["description"] for e in r.json()["items"]][-1] == "undated"


def test_calendar_needs_authentication(client):
    assert client.get("/calendar").status_code == 401
