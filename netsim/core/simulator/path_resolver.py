"""Route lookup over the connection graph.

The search is intentionally simple and order-dependent:

1. If either endpoint is not a known device, the result is ``[]``.
2. A direct ``connected`` edge between the endpoints wins: ``[source, dest]``.
3. Otherwise a depth-first walk (visited set, neighbours in connection
   iteration order) returns the first path it finds. Connections whose
   endpoints are not both known devices are not walked through.

Step 3 does not guarantee the shortest path; a longer route can be returned
when an earlier-inserted connection leads there first. An empty list means
"unreachable" and is a normal result, not an error.
"""
from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Optional

from netsim.schemas.connection import Connection


def build_adjacency(connections: Iterable[Connection]) -> dict[str, list[str]]:
    """Undirected adjacency from connected edges, preserving iteration order."""
    adjacency: dict[str, list[str]] = {}
    for conn in connections:
        if conn.status != "connected":
            continue
        adjacency.setdefault(conn.source, []).append(conn.target)
        adjacency.setdefault(conn.target, []).append(conn.source)
    return adjacency


def _depth_first(
    current: str,
    destination: str,
    adjacency: dict[str, list[str]],
    visited: set[str],
) -> Optional[list[str]]:
    # Iterative DFS with an explicit stack; same visiting order as the recursive form.
    stack: list[tuple[str, int]] = [(current, 0)]
    path: list[str] = [current]
    visited.add(current)
    while stack:
        node, idx = stack[-1]
        if node == destination:
            return path
        neighbours = adjacency.get(node, [])
        while idx < len(neighbours) and neighbours[idx] in visited:
            idx += 1
        if idx >= len(neighbours):
            stack.pop()
            path.pop()
            continue
        stack[-1] = (node, idx + 1)
        nxt = neighbours[idx]
        visited.add(nxt)
        stack.append((nxt, 0))
        path.append(nxt)
    return None


def resolve_path(
    source: str,
    destination: str,
    device_ids: Collection[str],
    connections: Iterable[Connection],
) -> list[str]:
    if source not in device_ids or destination not in device_ids:
        return []
    if source == destination:
        return [source]

    known = set(device_ids)
    connected = [
        c
        for c in connections
        if c.status == "connected" and c.source in known and c.target in known
    ]
    for conn in connected:
        if (conn.source == source and conn.target == destination) or (
            conn.source == destination and conn.target == source
        ):
            return [source, destination]

    found = _depth_first(source, destination, build_adjacency(connected), set())
    return found or []
