import asyncio

import pytest

from netsim.config import Settings
from netsim.core.simulator.runtime import NetworkSimulatorRuntime
from netsim.utils.exceptions import ConflictException, NotFoundException


async def _settle(sim: NetworkSimulatorRuntime) -> None:
    await asyncio.sleep(sim.packets.settle_delay_seconds * 4 + 0.05)


@pytest.mark.asyncio
async def test_unreachable_packet_is_dropped_immediately(sim, make_device):
    a = make_device("A")
    b = make_device("B")

    packet = await sim.packets.send_packet(a.id, b.id, "TCP")

    assert packet.status == "dropped"
    assert packet.path == []
    assert sim.packets.get_packet(packet.id).status == "dropped"
    assert sim.controller.status().active_packets == 0


@pytest.mark.asyncio
async def test_unknown_destination_is_dropped(sim, make_device):
    a = make_device("A")

    packet = await sim.packets.send_packet(a.id, "ghost", "UDP")

    assert packet.status == "dropped"


@pytest.mark.asyncio
async def test_route_through_a_non_device_endpoint_is_dropped(sim, make_device, make_connection):
    a = make_device("A")
    b = make_device("B")
    make_connection(a.id, "ghost")
    make_connection("ghost", b.id)

    packet = await sim.packets.send_packet(a.id, b.id, "TCP")

    assert packet.status == "dropped"
    assert packet.path == []


@pytest.mark.asyncio
async def test_transmitted_packet_settles_to_received_once(sim, line_topology):
    r1, s1, pc1 = line_topology
    sub = await sim.events.subscribe(events=["packet-flow"])

    packet = await sim.packets.send_packet(r1, pc1, "ICMP", {"seq": 7})

    assert packet.status == "transmitted"
    assert packet.path == [r1, s1, pc1]
    assert packet.payload == {"seq": 7}
    assert packet.id.startswith("packet_")

    await _settle(sim)

    assert sim.packets.get_packet(packet.id).status == "received"
    statuses = []
    while not sub.queue.empty():
        msg = sub.queue.get_nowait()
        assert msg["payload"]["id"] == packet.id
        statuses.append(msg["payload"]["status"])
    assert statuses == ["transmitted", "received"]


@pytest.mark.asyncio
async def test_reset_cancels_pending_settle(sim, line_topology):
    r1, _, pc1 = line_topology
    packet = await sim.packets.send_packet(r1, pc1, "TCP")
    sub = await sim.events.subscribe(events=["packet-flow"])

    sim.controller.reset()
    await _settle(sim)

    assert sim.packets.get_history() == []
    with pytest.raises(NotFoundException):
        sim.packets.get_packet(packet.id)
    assert sub.queue.empty()


@pytest.mark.asyncio
async def test_remove_packet_cancels_its_settle(sim, line_topology):
    r1, _, pc1 = line_topology
    packet = await sim.packets.send_packet(r1, pc1, "TCP")
    other = await sim.packets.send_packet(r1, pc1, "UDP")

    sim.packets.remove_packet(packet.id)
    await _settle(sim)

    assert [p.id for p in sim.packets.get_history()] == [other.id]
    assert sim.packets.get_packet(other.id).status == "received"
    with pytest.raises(NotFoundException):
        sim.packets.remove_packet(packet.id)


@pytest.mark.asyncio
async def test_history_is_a_snapshot(sim, line_topology):
    r1, _, pc1 = line_topology
    await sim.packets.send_packet(r1, pc1, "DNS")

    history = sim.packets.get_history()
    history[0].status = "dropped"
    history.clear()

    assert len(sim.packets.get_history()) == 1
    assert sim.packets.get_history()[0].status == "transmitted"


@pytest.mark.asyncio
async def test_history_keeps_creation_order(sim, line_topology, make_device):
    r1, s1, pc1 = line_topology
    lonely = make_device("Lonely")

    first = await sim.packets.send_packet(r1, pc1, "TCP")
    second = await sim.packets.send_packet(pc1, lonely.id, "TCP")
    third = await sim.packets.send_packet(s1, r1, "ARP")

    assert [p.id for p in sim.packets.get_history()] == [first.id, second.id, third.id]


@pytest.mark.asyncio
async def test_ping_sends_icmp_with_ping_payload(sim, line_topology):
    r1, _, pc1 = line_topology

    packet = await sim.packets.ping(r1, pc1)

    assert packet.protocol == "ICMP"
    assert packet.payload == {"type": "ping", "sequence": 1}
    assert packet.status == "transmitted"


@pytest.mark.asyncio
async def test_traceroute_probes_each_hop(sim, line_topology):
    r1, s1, pc1 = line_topology

    probes = await sim.packets.traceroute(r1, pc1)

    assert [(p.source, p.destination) for p in probes] == [(r1, s1), (s1, pc1)]
    assert [p.payload for p in probes] == [
        {"type": "traceroute", "hop": 1},
        {"type": "traceroute", "hop": 2},
    ]
    assert all(p.protocol == "ICMP" for p in probes)


@pytest.mark.asyncio
async def test_traceroute_without_path_sends_nothing(sim, make_device):
    a = make_device("A")
    b = make_device("B")

    assert await sim.packets.traceroute(a.id, b.id) == []
    assert sim.packets.get_history() == []


@pytest.mark.asyncio
async def test_send_requires_running_when_enabled():
    sim = NetworkSimulatorRuntime(
        settings=Settings(SIMULATION_REQUIRE_RUNNING=True),
        settle_delay_seconds=0.01,
    )

    with pytest.raises(ConflictException):
        await sim.packets.send_packet("a", "b", "TCP")

    sim.controller.start()
    packet = await sim.packets.send_packet("a", "b", "TCP")
    assert packet.status == "dropped"


@pytest.mark.asyncio
async def test_shutdown_cancels_outstanding_timers(sim, line_topology):
    r1, _, pc1 = line_topology
    packet = await sim.packets.send_packet(r1, pc1, "TCP")

    await sim.shutdown()
    await _settle(sim)

    assert sim.packets.get_packet(packet.id).status == "transmitted"
