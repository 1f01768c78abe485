"""Graph values on top of networkx.

Nodes are the integers 0..n-1 and carry an optional `data` value. Every edge
has `weight` and `directed` attributes; an undirected edge is stored as a pair
of opposite arcs marked `directed=False`, so one DiGraph covers mixed graphs.
"""
from __future__ import annotations

import logging
import math
from collections import deque
from typing import Iterable, List, Optional, Tuple

import networkx as nx

from .runtime import register_graph
from .types import (
    SitBool, SitDict, SitGraph, SitList, SitNone, SitNumber, SitString, SitValue,
    Scope, ScriptItFileError, ScriptItRuntimeError, ScriptItTypeError,
)
from .values import clone, is_truthy, to_display, to_float, to_int, type_name

logger = logging.getLogger(__name__)

_EDGE_DIRECTIONS = ("directed", "bidirectional", "undirected")

# ---------- Construction ----------

def make_graph(arg: Optional[SitValue]) -> SitGraph:
    """`graph()`, `graph(n)` or `graph([edge specs])`."""
    graph = SitGraph(nx.DiGraph())

    match arg:
        case None | SitNone():
            pass
        case SitNumber() | SitBool():
            count = to_int(arg)
            if count < 0:
                raise ScriptItRuntimeError(f"graph() node count must be non-negative, got {count}")
            graph.g.add_nodes_from(range(count), data=SitNone())
        case SitList(items=items):
            for edge in items:
                add_edge_value(graph, edge, 0.0)
        case _:
            raise ScriptItTypeError(f"graph() expects a node count or a list of edges, got {type_name(arg)}")

    return graph

def _ensure_node(graph: SitGraph, node: int) -> None:
    if node < 0:
        raise ScriptItRuntimeError(f"Invalid node {node}")
    for n in range(graph.g.number_of_nodes(), node + 1):
        graph.g.add_node(n, data=SitNone())

def _node(graph: SitGraph, val: SitValue) -> int:
    node = to_int(val)
    if node not in graph.g:
        raise ScriptItRuntimeError(f"Node {node} does not exist")
    return node

def add_edge(graph: SitGraph, u: int, v: int, weight: float, directed: bool) -> None:
    _ensure_node(graph, u)
    _ensure_node(graph, v)
    graph.g.add_edge(u, v, weight=weight, directed=directed)
    if not directed:
        graph.g.add_edge(v, u, weight=weight, directed=False)

def add_edge_value(graph: SitGraph, edge: SitValue, weight: float) -> None:
    if not isinstance(edge, SitDict) or not {"__from__", "__to__", "__dir__"} <= edge.entries.keys():
        raise ScriptItTypeError(f"Expected an edge (a -> b, a <-> b or a --- b), got {type_name(edge)}")

    u = to_int(edge.entries["__from__"])
    v = to_int(edge.entries["__to__"])
    direction = to_display(edge.entries["__dir__"])

    if direction not in _EDGE_DIRECTIONS:
        raise ScriptItTypeError(f"Unknown edge direction '{direction}'")

    if direction == "directed":
        add_edge(graph, u, v, weight, True)
    elif direction == "bidirectional":
        add_edge(graph, u, v, weight, True)
        add_edge(graph, v, u, weight, True)
    else:
        add_edge(graph, u, v, weight, False)

def edge_count(graph: SitGraph) -> int:
    """Undirected edges count once even though they are stored both ways."""
    return sum(1 for u, v, d in graph.g.edges(data=True) if d["directed"] or u <= v)

def _has_undirected(graph: SitGraph) -> bool:
    return any(not d["directed"] for _, _, d in graph.g.edges(data=True))

def _undirected_view(graph: SitGraph) -> nx.Graph:
    """Collapse arcs into plain edges, keeping the lightest weight of a pair."""
    out = nx.Graph()
    out.add_nodes_from(graph.g.nodes)

    for u, v, d in graph.g.edges(data=True):
        if out.has_edge(u, v) and out[u][v]["weight"] <= d["weight"]:
            continue
        out.add_edge(u, v, weight=d["weight"])

    return out

def _ints(nodes: Iterable[int]) -> SitList:
    return SitList([SitNumber(n, "int") for n in nodes])

def _weight(w: float) -> SitNumber:
    return SitNumber(float(w), "double")

# ---------- Mutation ----------

@register_graph("add_node", 0, 1)
def _add_node(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitNumber:
    node = recv.g.number_of_nodes()
    recv.g.add_node(node, data=clone(args[0]) if args else SitNone())
    return SitNumber(node, "int")

@register_graph("add_edge", 1, 2, 3, 4)
def _add_edge(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitNone:
    if isinstance(args[0], SitDict):
        if len(args) > 2:
            raise ScriptItTypeError("add_edge(edge, weight) takes at most a weight after the edge")
        add_edge_value(recv, args[0], to_float(args[1]) if len(args) == 2 else 0.0)
        return SitNone()

    if len(args) < 2:
        raise ScriptItTypeError(f"add_edge() expects an edge or two nodes, got {type_name(args[0])}")

    weight = to_float(args[2]) if len(args) >= 3 else 0.0
    directed = is_truthy(args[3]) if len(args) == 4 else False
    add_edge(recv, to_int(args[0]), to_int(args[1]), weight, directed)
    return SitNone()

@register_graph("remove_edge", 2)
def _remove_edge(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitBool:
    u, v = to_int(args[0]), to_int(args[1])

    if not recv.g.has_edge(u, v):
        return SitBool(False)

    if not recv.g[u][v]["directed"] and recv.g.has_edge(v, u):
        recv.g.remove_edge(v, u)
    if recv.g.has_edge(u, v):
        recv.g.remove_edge(u, v)

    return SitBool(True)

@register_graph("set_node_data", 2)
def _set_node_data(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitNone:
    recv.g.nodes[_node(recv, args[0])]["data"] = clone(args[1])
    return SitNone()

@register_graph("set_edge_weight", 3)
def _set_edge_weight(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitNone:
    u, v = _node(recv, args[0]), _node(recv, args[1])

    if not recv.g.has_edge(u, v):
        raise ScriptItRuntimeError(f"No edge from {u} to {v}")

    weight = to_float(args[2])
    recv.g[u][v]["weight"] = weight
    if not recv.g[u][v]["directed"] and recv.g.has_edge(v, u):
        recv.g[v][u]["weight"] = weight

    return SitNone()

# ---------- Queries ----------

@register_graph("has_edge", 2)
def _has_edge(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitBool:
    return SitBool(recv.g.has_edge(to_int(args[0]), to_int(args[1])))

@register_graph("neighbors", 1)
def _neighbors(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitList:
    return _ints(sorted(recv.g.successors(_node(recv, args[0]))))

@register_graph("node_count")
@register_graph("size")
def _node_count(_scope: Scope, recv: SitGraph, _args: List[SitValue]) -> SitNumber:
    return SitNumber(recv.g.number_of_nodes(), "int")

@register_graph("edge_count")
def _edge_count(_scope: Scope, recv: SitGraph, _args: List[SitValue]) -> SitNumber:
    return SitNumber(edge_count(recv), "int")

@register_graph("get_node_data", 1)
def _get_node_data(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitValue:
    return clone(recv.g.nodes[_node(recv, args[0])]["data"])

@register_graph("get_edge_weight", 2)
def _get_edge_weight(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitNumber:
    u, v = _node(recv, args[0]), _node(recv, args[1])

    if not recv.g.has_edge(u, v):
        raise ScriptItRuntimeError(f"No edge from {u} to {v}")

    return _weight(recv.g[u][v]["weight"])

# ---------- Traversal ----------

@register_graph("dfs", 1)
def _dfs(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitList:
    start = _node(recv, args[0])
    seen = set()
    order: List[int] = []
    stack = [start]

    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        order.append(node)
        # reversed so the smallest neighbour is visited first
        stack.extend(n for n in sorted(recv.g.successors(node), reverse=True) if n not in seen)

    return _ints(order)

@register_graph("bfs", 1)
def _bfs(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitList:
    start = _node(recv, args[0])
    seen = {start}
    order: List[int] = []
    queue = deque([start])

    while queue:
        node = queue.popleft()
        order.append(node)
        for n in sorted(recv.g.successors(node)):
            if n not in seen:
                seen.add(n)
                queue.append(n)

    return _ints(order)

@register_graph("topological_sort")
def _topological_sort(_scope: Scope, recv: SitGraph, _args: List[SitValue]) -> SitList:
    if _has_undirected(recv):
        raise ScriptItRuntimeError("topological_sort requires a directed graph")

    try:
        return _ints(nx.lexicographical_topological_sort(recv.g))
    except nx.NetworkXUnfeasible:
        raise ScriptItRuntimeError("Graph has a cycle; topological sort is impossible") from None

@register_graph("connected_components")
def _connected_components(_scope: Scope, recv: SitGraph, _args: List[SitValue]) -> SitList:
    parts = sorted(sorted(c) for c in nx.weakly_connected_components(recv.g))
    return SitList([_ints(c) for c in parts])

@register_graph("is_connected")
def _is_connected(_scope: Scope, recv: SitGraph, _args: List[SitValue]) -> SitBool:
    if recv.g.number_of_nodes() == 0:
        return SitBool(True)
    return SitBool(nx.is_weakly_connected(recv.g))

@register_graph("has_cycle")
def _has_cycle(_scope: Scope, recv: SitGraph, _args: List[SitValue]) -> SitBool:
    arcs = nx.DiGraph()
    arcs.add_edges_from((u, v) for u, v, d in recv.g.edges(data=True) if d["directed"])

    if not nx.is_directed_acyclic_graph(arcs):
        return SitBool(True)

    if not _has_undirected(recv):
        return SitBool(False)

    # a mixed graph: an undirected pair alone is not a cycle
    return SitBool(bool(nx.cycle_basis(_undirected_view(recv))))

# ---------- Paths and trees ----------

def _shortest(recv: SitGraph, src: int, dst: int) -> Tuple[List[int], float]:
    weights = [d["weight"] for _, _, d in recv.g.edges(data=True)]

    if all(w == 0 for w in weights):
        path = nx.shortest_path(recv.g, src, dst)
        return path, float(len(path) - 1)

    if any(w < 0 for w in weights):
        try:
            distance, path = nx.single_source_bellman_ford(recv.g, src, dst, weight="weight")
        except nx.NetworkXUnbounded:
            raise ScriptItRuntimeError("Graph contains a negative-weight cycle") from None
        return path, float(distance)

    distance, path = nx.single_source_dijkstra(recv.g, src, dst, weight="weight")
    return path, float(distance)

@register_graph("get_shortest_path", 2)
def _get_shortest_path(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitDict:
    src, dst = _node(recv, args[0]), _node(recv, args[1])

    try:
        path, distance = _shortest(recv, src, dst)
    except nx.NetworkXNoPath:
        path, distance = [], math.inf

    return SitDict({"path": _ints(path), "distance": _weight(distance)})

@register_graph("prim_mst")
def _prim_mst(_scope: Scope, recv: SitGraph, _args: List[SitValue]) -> SitDict:
    tree = nx.minimum_spanning_tree(_undirected_view(recv), algorithm="prim")
    edges = sorted((min(u, v), max(u, v), d["weight"]) for u, v, d in tree.edges(data=True))
    total = sum(w for _, _, w in edges)

    return SitDict({
        "weight": _weight(total),
        "edges": SitList([SitList([SitNumber(u, "int"), SitNumber(v, "int"), _weight(w)]) for u, v, w in edges]),
    })

# ---------- Export ----------

def to_dot(graph: SitGraph) -> str:
    directed = any(d["directed"] for _, _, d in graph.g.edges(data=True))
    arrow = "->" if directed else "--"
    lines = ["digraph G {" if directed else "graph G {"]

    for node, attrs in sorted(graph.g.nodes(data=True)):
        data = attrs.get("data")
        if data is None or isinstance(data, SitNone):
            lines.append(f"    {node};")
        else:
            label = to_display(data).replace('"', '\\"')
            lines.append(f'    {node} [label="{label}"];')

    for u, v, d in sorted(graph.g.edges(data=True), key=lambda e: (e[0], e[1])):
        if not d["directed"] and u > v:
            continue
        attrs = [f'label="{SitNumber(d["weight"], "double")!r}"'] if d["weight"] else []
        if directed and not d["directed"]:
            attrs.append("dir=none")
        suffix = f" [{', '.join(attrs)}]" if attrs else ""
        lines.append(f"    {u} {arrow} {v}{suffix};")

    lines.append("}")
    return "\n".join(lines) + "\n"

@register_graph("to_dot", 0, 1)
def _to_dot(_scope: Scope, recv: SitGraph, args: List[SitValue]) -> SitValue:
    text = to_dot(recv)

    if not args:
        return SitString(text)

    path = to_display(args[0])
    try:
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(text)
    except OSError as exc:
        raise ScriptItFileError(f"Cannot write '{path}': {exc.strerror}") from exc

    logger.debug("wrote dot export to %s", path)
    return SitBool(True)
