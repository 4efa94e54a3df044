def _create_device(client, name="PC-A", device_type="pc", **extra):
    body = {"type": device_type, "name": name, "position": {"x": 10, "y": 20}, **extra}
    resp = client.post("/api/v1/devices", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _connect(client, source, target):
    resp = client.post(
        "/api/v1/connections",
        json={"source": source, "target": target, "sourceInterface": "eth0", "targetInterface": "eth0"},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_create_and_list_devices(client):
    device = _create_device(client, "Router-A", "router")

    assert device["status"] == "offline"
    assert device["config"]["type"] == "router"
    assert "routingTable" in device["config"]

    resp = client.get("/api/v1/devices")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert [d["id"] for d in body["data"]] == [device["id"]]


def test_create_device_validation_error_is_400(client):
    resp = client.post("/api/v1/devices", json={"type": "modem", "name": "M", "position": {"x": 0, "y": 0}})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Validation error"
    assert body["details"]["code"] == "E002"
    assert body["details"]["errors"]


def test_create_device_rejects_bad_interface_address(client):
    resp = client.post(
        "/api/v1/devices",
        json={
            "type": "pc",
            "name": "PC",
            "position": {"x": 0, "y": 0},
            "interfaces": [{"id": "eth0", "name": "Ethernet0", "ipAddress": "999.1.1.1"}],
        },
    )
    assert resp.status_code == 400


def test_duplicate_interface_ids_are_400(client):
    interfaces = [{"id": "eth0", "name": "Ethernet0"}, {"id": "eth0", "name": "Ethernet1"}]

    resp = client.post(
        "/api/v1/devices",
        json={"type": "pc", "name": "PC", "position": {"x": 0, "y": 0}, "interfaces": interfaces},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Validation error"
    assert body["details"]["code"] == "E002"
    assert client.get("/api/v1/devices").json()["data"] == []

    device = _create_device(client)
    resp = client.put(f"/api/v1/devices/{device['id']}", json={"interfaces": interfaces})
    assert resp.status_code == 400
    assert resp.json()["details"]["code"] == "E002"


def test_get_unknown_device_is_404(client):
    resp = client.get("/api/v1/devices/nope")

    assert resp.status_code == 404
    body = resp.json()
    assert body == {"success": False, "error": "Device nope not found", "details": {"code": "E001"}}


def test_update_device_merges_fields(client):
    device = _create_device(client)

    resp = client.put(f"/api/v1/devices/{device['id']}", json={"name": "Renamed", "status": "online"})

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["name"] == "Renamed"
    assert data["status"] == "offline"
    assert data["position"] == {"x": 10, "y": 20}


def test_update_device_config_is_validated(client):
    device = _create_device(client, "Srv", "server")

    resp = client.put(
        f"/api/v1/devices/{device['id']}",
        json={"config": {"hostname": "srv-1", "services": [{"type": "web", "enabled": True}]}},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["config"]["services"][0]["enabled"] is True

    resp = client.put(f"/api/v1/devices/{device['id']}", json={"config": {"hostname": "no spaces allowed"}})
    assert resp.status_code == 400


def test_device_status_patch(client):
    device = _create_device(client)

    resp = client.patch(f"/api/v1/devices/{device['id']}/status", json={"status": "online"})
    assert resp.status_code == 200
    assert client.get(f"/api/v1/devices/{device['id']}").json()["data"]["status"] == "online"

    resp = client.patch(f"/api/v1/devices/{device['id']}/status", json={"status": "asleep"})
    assert resp.status_code == 400
    assert resp.json()["details"]["allowed"] == ["online", "offline", "error"]


def test_interfaces_add_and_update(client):
    device = _create_device(client, "Sw", "switch")

    resp = client.post(f"/api/v1/devices/{device['id']}/interfaces", json={"id": "port1"})
    assert resp.status_code == 201
    assert resp.json()["data"]["name"] == "FastEthernet0/0"

    resp = client.put(f"/api/v1/devices/{device['id']}/interfaces/port1", json={"status": "up"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "up"


def test_delete_device_cascades_connections(client):
    a = _create_device(client, "A")
    b = _create_device(client, "B")
    _connect(client, a["id"], b["id"])

    resp = client.delete(f"/api/v1/devices/{a['id']}")
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    assert client.get("/api/v1/connections").json()["data"] == []
    assert client.delete(f"/api/v1/devices/{a['id']}").status_code == 404


def test_connection_lifecycle(client):
    a = _create_device(client, "A")
    b = _create_device(client, "B")
    conn = _connect(client, a["id"], b["id"])

    assert conn["status"] == "connected"
    assert conn["sourceInterface"] == "eth0"

    resp = client.patch(f"/api/v1/connections/{conn['id']}/status", json={"status": "disconnected"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "disconnected"

    assert client.delete(f"/api/v1/connections/{conn['id']}").status_code == 200
    assert client.delete(f"/api/v1/connections/{conn['id']}").status_code == 404


def test_self_loop_connection_is_400(client):
    a = _create_device(client, "A")

    resp = client.post(
        "/api/v1/connections",
        json={"source": a["id"], "target": a["id"], "sourceInterface": "e0", "targetInterface": "e1"},
    )
    assert resp.status_code == 400


def test_unknown_route_is_404_envelope(client):
    resp = client.get("/api/v1/nope")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Route /api/v1/nope not found"}


def test_request_id_is_echoed(client):
    resp = client.get("/api/v1/healthz", headers={"X-Request-ID": "req-123"})

    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "req-123"
