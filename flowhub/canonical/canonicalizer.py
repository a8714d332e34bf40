# flowhub/canonical/canonicalizer.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from flowhub.canonical.encoding import encode
from flowhub.errors import WorkflowPreconditionError
from flowhub.structural.validator import ValidatedWorkflow
from flowhub.structural.vocabulary import NodeShape
from flowhub.utils.graph import build_graph, step_kind_of

# Node settings that never affect behaviour
COSMETIC_KEYS = frozenset({"label", "name", "description", "x", "y", "position", "id"})


@dataclass(frozen=True)
class CanonicalNode:
    step_kind: str
    data: Dict[str, Any]

    def to_json(self) -> Dict[str, Any]:
        return {"type": self.step_kind, "data": self.data}


@dataclass(frozen=True)
class CanonicalEdge:
    source_kind: str
    target_kind: str
    source_handle: Optional[Any] = None
    target_handle: Optional[Any] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "sourceType": self.source_kind,
            "targetType": self.target_kind,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
        }


@dataclass(frozen=True)
class CanonicalForm:
    """Sorted, id-free view of a workflow graph. Serialization order is part of its identity."""
    nodes: Tuple[CanonicalNode, ...]
    edges: Tuple[CanonicalEdge, ...]

    def to_json(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_json() for n in self.nodes],
            "edges": [e.to_json() for e in self.edges],
        }


def canonical_data(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Drop cosmetic keys and keys whose value is null or ""."""
    return {
        k: v
        for k, v in settings.items()
        if k not in COSMETIC_KEYS and v is not None and v != ""
    }


def canonical_node(shape: NodeShape) -> CanonicalNode:
    return CanonicalNode(step_kind=shape.step_kind, data=canonical_data(shape.settings))


def canonicalize(validated: ValidatedWorkflow) -> CanonicalForm:
    """
    Reduce a validated workflow to its canonical form.

    Nodes are sorted by (step kind, encoded data); edges are rewritten from
    node ids to the step kinds of their endpoints and sorted by their
    encoding. The submitted document is only read.
    """
    if not isinstance(validated, ValidatedWorkflow):
        raise WorkflowPreconditionError(
            "canonicalize() requires a ValidatedWorkflow; run validate() first"
        )

    keyed_nodes = [(n.step_kind, encode(n.data), n) for n in map(canonical_node, validated.shapes)]
    keyed_nodes.sort(key=lambda t: (t[0], t[1]))

    G = build_graph(validated)
    edges: List[CanonicalEdge] = []
    for src, tgt, attrs in G.edges(data=True):
        edges.append(
            CanonicalEdge(
                source_kind=step_kind_of(G, src),
                target_kind=step_kind_of(G, tgt),
                source_handle=attrs.get("source_handle"),
                target_handle=attrs.get("target_handle"),
            )
        )
    keyed_edges = sorted(((encode(e.to_json()), e) for e in edges), key=lambda t: t[0])

    return CanonicalForm(
        nodes=tuple(n for _, _, n in keyed_nodes),
        edges=tuple(e for _, e in keyed_edges),
    )
