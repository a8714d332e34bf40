# flowhub/utils/graph.py
from typing import Any, Dict, List, Optional
from collections import Counter

import networkx as nx

UNKNOWN_KIND = "unknown"


def build_graph(validated) -> nx.MultiDiGraph:
    """
    Build the workflow graph of a validated document.

    Nodes are keyed by node id and carry `step_kind`; edges carry
    `source_handle` / `target_handle` (None when absent or empty). A
    MultiDiGraph keeps parallel edges, which matter for the fingerprint.
    """
    G = nx.MultiDiGraph()
    for shape in validated.shapes:
        G.add_node(shape.node_id, step_kind=shape.step_kind)

    for e in validated.document.get("edges", []):
        src, tgt = e.get("source"), e.get("target")
        # endpoints are guaranteed by validation; keep them resolvable anyway
        for nid in (src, tgt):
            if nid not in G:
                G.add_node(nid, step_kind=UNKNOWN_KIND)
        G.add_edge(
            src,
            tgt,
            source_handle=_handle(e.get("sourceHandle")),
            target_handle=_handle(e.get("targetHandle")),
        )
    return G


def _handle(value: Any) -> Optional[Any]:
    # missing, null and "" all mean "default port"
    if value is None or value == "":
        return None
    return value


def step_kind_of(G: nx.MultiDiGraph, node_id: Any) -> str:
    if node_id not in G:
        return UNKNOWN_KIND
    return G.nodes[node_id].get("step_kind", UNKNOWN_KIND)


def kind_histogram(G: nx.MultiDiGraph) -> Counter:
    return Counter(step_kind_of(G, n) for n in G.nodes)


def entry_nodes(G: nx.MultiDiGraph) -> List[Any]:
    """Nodes with no incoming edge (where execution can start)."""
    return [n for n in G.nodes if G.in_degree(n) == 0]


def terminal_nodes(G: nx.MultiDiGraph) -> List[Any]:
    return [n for n in G.nodes if G.out_degree(n) == 0]


def graph_summary(G: nx.MultiDiGraph) -> Dict[str, Any]:
    """Counts used by `flowhub inspect`."""
    return {
        "n_nodes": G.number_of_nodes(),
        "n_edges": G.number_of_edges(),
        "entry_nodes": len(entry_nodes(G)),
        "terminal_nodes": len(terminal_nodes(G)),
        "acyclic": nx.is_directed_acyclic_graph(G),
        "weakly_connected_components": nx.number_weakly_connected_components(G) if G.number_of_nodes() else 0,
        "step_kinds": dict(sorted(kind_histogram(G).items())),
    }
