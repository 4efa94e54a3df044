def _create_network(client, **body):
    payload = {"name": "Lab", **body}
    resp = client.post("/api/v1/networks", json=payload)
    assert resp.status_code == 201, resp.text
    assert resp.json()["message"] == "Network created successfully"
    return resp.json()["data"]


def test_create_network_applies_defaults(client):
    network = _create_network(client, name="Campus")

    assert network["name"] == "Campus"
    assert network["description"] is None
    assert network["devices"] == []
    assert network["connections"] == []
    assert network["userId"] is None
    assert network["id"]
    assert network["createdAt"]


def test_network_crud_round(client):
    network = _create_network(
        client,
        name="Branch",
        description="Branch office",
        devices=["router-1", "pc-1"],
        connections=["conn-1"],
    )
    network_id = network["id"]

    resp = client.get("/api/v1/networks")
    assert resp.status_code == 200
    assert network_id in [n["id"] for n in resp.json()["data"]]

    resp = client.get(f"/api/v1/networks/{network_id}")
    assert resp.status_code == 200
    assert resp.json()["data"]["devices"] == ["router-1", "pc-1"]

    resp = client.put(f"/api/v1/networks/{network_id}", json={"description": "Moved"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Network updated successfully"
    assert body["data"]["name"] == "Branch"
    assert body["data"]["description"] == "Moved"
    assert body["data"]["connections"] == ["conn-1"]

    resp = client.delete(f"/api/v1/networks/{network_id}")
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["message"] == "Network deleted successfully"

    resp = client.get(f"/api/v1/networks/{network_id}")
    assert resp.status_code == 404


def test_unknown_network_is_404_envelope(client):
    expected = {"success": False, "error": "Network not found", "details": {"code": "E001"}}

    assert client.get("/api/v1/networks/nope").json() == expected
    resp = client.put("/api/v1/networks/nope", json={"name": "X"})
    assert resp.status_code == 404
    assert resp.json() == expected
    resp = client.delete("/api/v1/networks/nope")
    assert resp.status_code == 404
    assert resp.json() == expected


def test_network_name_and_description_are_bounded(client):
    for body in ({}, {"name": ""}, {"name": "x" * 101}, {"name": "ok", "description": "d" * 501}):
        resp = client.post("/api/v1/networks", json=body)
        assert resp.status_code == 400, body
        assert resp.json()["details"]["code"] == "E002"

    network = _create_network(client)
    resp = client.put(f"/api/v1/networks/{network['id']}", json={"name": ""})
    assert resp.status_code == 400
