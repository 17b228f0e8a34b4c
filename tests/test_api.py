"""End-to-end HTTP flow: group -> birthday -> party -> proposal -> vote -> gift."""

API = "/api/v1"


def test_health(client):
    r = client.get(f"{API}/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

    r = client.get("/")
    assert r.json()["status"] == "running"


def test_account_register_login_me(client, auth_headers):
    headers, user_id = auth_headers("ana@example.com", "Ana")

    r = client.post(f"{API}/auth/login", json={"email": "ANA@example.com", "password": "secret-pass"})
    assert r.status_code == 200, f"login failed: {r.status_code} {r.text}"
    assert r.json()["user_id"] == user_id

    r = client.post(f"{API}/auth/login", json={"email": "ana@example.com", "password": "wrong-pass"})
    assert r.status_code == 401

    r = client.get(f"{API}/auth/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["display_name"] == "Ana"

    r = client.post(f"{API}/auth/register", json={
        "email": "ana@example.com",
        "password": "secret-pass",
        "display_name": "Ana again",
    })
    assert r.status_code == 409
    assert r.json()["detail"]["message"] == "Email already registered"

    r = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401


def test_full_party_scenario(client):
    # Group with its creator family
    r = client.post(f"{API}/groups", json={"name": "4ºB", "family_name": "Garcia", "type": "class"})
    assert r.status_code == 201, f"create group failed: {r.status_code} {r.text}"
    data = r.json()
    group_id = data["group"]["id"]
    invite_code = data["group"]["invite_code"]
    garcia_id = data["family"]["id"]
    assert data["family"]["is_creator"] is True
    assert data["group"]["created_by"] == garcia_id

    r = client.get(f"{API}/groups/invite/{invite_code}")
    assert r.status_code == 200
    assert r.json()["id"] == group_id

    r = client.post(f"{API}/families", json={"group_id": group_id, "family_name": "Lopez"})
    assert r.status_code == 201, f"join failed: {r.status_code} {r.text}"

    r = client.post(f"{API}/families", json={"group_id": group_id, "family_name": "Lopez"})
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "constraint_violation"

    # Birthday and party
    r = client.post(f"{API}/birthdays", json={
        "group_id": group_id,
        "child_name": "Leo",
        "birth_date": "2016-05-02",
    })
    assert r.status_code == 201, f"create birthday failed: {r.status_code} {r.text}"
    leo_id = r.json()["id"]

    r = client.post(f"{API}/ideas", json={
        "birthday_id": leo_id,
        "product_name": "Bike",
        "suggested_by": "Garcia",
        "price": 80,
    })
    assert r.status_code == 201

    r = client.post(f"{API}/parties", json={
        "group_id": group_id,
        "party_date": "2024-05-10",
        "celebrant_ids": [leo_id],
    })
    assert r.status_code == 201, f"create party failed: {r.status_code} {r.text}"
    party = r.json()
    party_id = party["id"]
    assert party["status"] == "pending"
    assert party["coordinator"]["id"] == garcia_id
    assert [c["child_name"] for c in party["celebrants"]] == ["Leo"]

    r = client.get(f"{API}/ideas", params={"party_id": party_id})
    assert [i["product_name"] for i in r.json()] == ["Bike"]

    # Proposal and votes
    r = client.post(f"{API}/proposals", json={
        "party_id": party_id,
        "name": "Bike",
        "total_price": 80,
        "items": [{"item_name": "Bike", "item_price": 80}],
    })
    assert r.status_code == 201, f"create proposal failed: {r.status_code} {r.text}"
    proposal_id = r.json()["id"]

    r = client.get(f"{API}/parties/{party_id}/status")
    assert r.json()["status"] == "voting"

    for voter in ("Garcia", "Lopez"):
        r = client.post(f"{API}/proposals/{proposal_id}/vote", json={"voter_name": voter})
        assert r.status_code == 201, f"vote failed: {r.status_code} {r.text}"

    r = client.post(f"{API}/proposals/{proposal_id}/vote", json={"voter_name": "Lopez"})
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "duplicate_vote"

    r = client.put(f"{API}/proposals/{proposal_id}/select")
    assert r.status_code == 200, f"select failed: {r.status_code} {r.text}"
    assert r.json()["is_selected"] is True
    assert r.json()["vote_count"] == 2

    r = client.get(f"{API}/parties/{party_id}/status")
    assert r.json()["status"] == "decided"

    # Gift: join, close, finalize
    r = client.post(f"{API}/gifts", json={"party_id": party_id, "proposal_id": proposal_id})
    assert r.status_code == 201, f"create gift failed: {r.status_code} {r.text}"
    gift = r.json()
    gift_id = gift["id"]
    assert gift["state"] == "open"
    assert gift["proposal_name"] == "Bike"

    r = client.post(f"{API}/gifts/{gift_id}/participants", json={"family_name": "Lopez"})
    assert r.status_code == 201

    r = client.get(f"{API}/gifts", params={"share_code": gift["share_code"]})
    assert r.status_code == 200
    assert [p["family_name"] for p in r.json()["participants"]] == ["Garcia", "Lopez"]

    r = client.put(f"{API}/gifts/{gift_id}/close")
    assert r.status_code == 200, f"close failed: {r.status_code} {r.text}"
    assert r.json()["price_per_family"] == 40.0

    r = client.put(f"{API}/gifts/{gift_id}/finalize", json={"final_price": 85})
    assert r.status_code == 200, f"finalize failed: {r.status_code} {r.text}"
    assert r.json()["final_price"] == 85

    r = client.get(f"{API}/parties/{party_id}/status")
    assert r.json()["status"] == "purchased"

    r = client.put(f"{API}/gifts/{gift_id}/finalize", json={"final_price": 90})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_transition"

    # Group overview, then tear it all down
    r = client.get(f"{API}/groups/{group_id}")
    assert r.status_code == 200
    assert r.json()["party_count"] == 1
    assert len(r.json()["families"]) == 2

    r = client.delete(f"{API}/groups/{group_id}")
    assert r.status_code == 200, f"delete group failed: {r.status_code} {r.text}"
    assert r.json()["success"] is True
    assert r.json()["warnings"]

    r = client.get(f"{API}/parties/{party_id}")
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "not_found"


def test_party_delete_over_http(client):
    r = client.post(f"{API}/groups", json={"name": "4ºB", "family_name": "Garcia"})
    group_id = r.json()["group"]["id"]
    r = client.post(f"{API}/birthdays", json={"group_id": group_id, "child_name": "Leo", "birth_date": "2016-05-02"})
    leo_id = r.json()["id"]
    r = client.post(f"{API}/parties", json={"group_id": group_id, "party_date": "2024-05-10", "celebrant_ids": [leo_id]})
    party_id = r.json()["id"]

    r = client.delete(f"{API}/parties/{party_id}")
    assert r.status_code == 200, f"delete party failed: {r.status_code} {r.text}"
    assert r.json()["affected"]["party_celebrants"] == 1

    r = client.get(f"{API}/birthdays/{leo_id}")
    assert r.status_code == 200


def test_validation_errors(client):
    r = client.post(f"{API}/groups", json={"name": "4ºB", "family_name": "G"})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "validation_error"

    r = client.post(f"{API}/groups", json={"name": "4ºB", "family_name": "Garcia", "type": "club"})
    assert r.status_code == 422

    r = client.post(f"{API}/parties", json={"group_id": "grp_missing", "party_date": "2024-05-10", "celebrant_ids": ["x"]})
    assert r.status_code == 404


def test_gift_and_vote_deletes_over_http(client):
    r = client.post(f"{API}/groups", json={"name": "4ºB", "family_name": "Garcia"})
    group_id = r.json()["group"]["id"]
    r = client.post(f"{API}/birthdays", json={"group_id": group_id, "child_name": "Leo", "birth_date": "2016-05-02"})
    leo_id = r.json()["id"]
    r = client.post(f"{API}/parties", json={"group_id": group_id, "party_date": "2024-05-10", "celebrant_ids": [leo_id]})
    party_id = r.json()["id"]
    r = client.post(f"{API}/proposals", json={
        "party_id": party_id,
        "name": "Bike",
        "total_price": 80,
        "items": [{"item_name": "Bike"}],
    })
    proposal_id = r.json()["id"]

    r = client.post(f"{API}/proposals/{proposal_id}/vote", json={"voter_name": "Ana"})
    assert r.status_code == 201
    r = client.delete(f"{API}/proposals/{proposal_id}/vote", params={"voter_name": "Ana"})
    assert r.status_code == 200, f"withdraw vote failed: {r.status_code} {r.text}"
    assert r.json()["removed"] == 1
    r = client.delete(f"{API}/proposals/{proposal_id}/vote", params={"voter_name": "Ana"})
    assert r.status_code == 404

    r = client.post(f"{API}/gifts", json={"party_id": party_id})
    gift_id = r.json()["id"]
    r = client.delete(f"{API}/gifts/{gift_id}")
    assert r.status_code == 200, f"delete gift failed: {r.status_code} {r.text}"
    assert r.json()["affected"]["participants"] == 1

    r = client.get(f"{API}/gifts/{gift_id}")
    assert r.status_code == 404
    r = client.get(f"{API}/parties/{party_id}/status")
    assert r.json()["status"] == "voting"
