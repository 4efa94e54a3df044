import time

import pytest


@pytest.fixture
def demo(client, sim):
    assert sim.seed_demo() is True
    return client


def _wait_for_status(client, packet_id: str, status: str, timeout: float = 2.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        packet = client.get(f"/api/v1/packets/{packet_id}").json()["data"]
        if packet["status"] == status or time.monotonic() > deadline:
            return packet
        time.sleep(0.02)


def test_send_packet_over_demo_topology(demo):
    resp = demo.post(
        "/api/v1/packets/send",
        json={"source": "router-1", "destination": "pc-1", "protocol": "ICMP", "payload": {"size": 64}},
    )

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["success"] is True
    packet = body["data"]
    assert packet["status"] == "transmitted"
    assert packet["path"] == ["router-1", "switch-1", "pc-1"]
    assert packet["payload"] == {"size": 64}

    assert _wait_for_status(demo, packet["id"], "received")["status"] == "received"


def test_send_packet_to_unknown_device_is_dropped_not_error(demo):
    resp = demo.post(
        "/api/v1/packets/send",
        json={"source": "router-1", "destination": "ghost", "protocol": "TCP"},
    )

    assert resp.status_code == 201
    assert resp.json()["data"]["status"] == "dropped"


def test_send_packet_rejects_unknown_protocol(demo):
    resp = demo.post(
        "/api/v1/packets/send",
        json={"source": "router-1", "destination": "pc-1", "protocol": "SCTP"},
    )
    assert resp.status_code == 400


def test_ping_and_traceroute(demo):
    resp = demo.post("/api/v1/packets/ping", json={"source": "pc-1", "destination": "router-1"})
    assert resp.status_code == 201
    assert resp.json()["data"]["payload"] == {"type": "ping", "sequence": 1}

    resp = demo.post("/api/v1/packets/traceroute", json={"source": "router-1", "destination": "pc-1"})
    assert resp.status_code == 201
    probes = resp.json()["data"]
    assert [(p["source"], p["destination"]) for p in probes] == [
        ("router-1", "switch-1"),
        ("switch-1", "pc-1"),
    ]

    history = demo.get("/api/v1/packets/history").json()["data"]
    assert len(history) == 3


def test_packet_get_and_delete(demo):
    packet = demo.post(
        "/api/v1/packets/send",
        json={"source": "router-1", "destination": "switch-1", "protocol": "ARP"},
    ).json()["data"]

    assert demo.get(f"/api/v1/packets/{packet['id']}").status_code == 200
    assert demo.delete(f"/api/v1/packets/{packet['id']}").status_code == 200
    assert demo.get(f"/api/v1/packets/{packet['id']}").status_code == 404


def test_simulation_start_stop_reset(demo):
    assert demo.get("/api/v1/simulation/status").json()["data"]["isRunning"] is False

    assert demo.post("/api/v1/simulation/start").status_code == 200
    status = demo.get("/api/v1/simulation/status").json()["data"]
    assert status == {"isRunning": True, "deviceCount": 3, "connectionCount": 2, "activePackets": 0}

    demo.post("/api/v1/packets/send", json={"source": "router-1", "destination": "pc-1", "protocol": "TCP"})
    assert demo.post("/api/v1/simulation/reset").status_code == 200

    state = demo.get("/api/v1/simulation/state").json()["data"]
    assert state["isRunning"] is False
    assert state["packets"] == []
    assert {d["status"] for d in state["devices"]} == {"offline"}
    assert len(state["connections"]) == 2

    assert demo.post("/api/v1/simulation/stop").status_code == 200


def test_health_reports_simulation_state(client):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["simulation"] == {"is_running": False}


def test_metrics_endpoint_exposes_packet_counter(demo):
    demo.post("/api/v1/packets/send", json={"source": "router-1", "destination": "ghost", "protocol": "UDP"})

    resp = demo.get("/metrics")

    assert resp.status_code == 200
    assert 'netsim_packets_total{protocol="UDP",status="dropped"}' in resp.text
