# tests/test_canonicalizer.py

import hashlib

from flowhub.api import validate
from flowhub.canonical.canonicalizer import (
    CanonicalEdge,
    CanonicalNode,
    canonical_data,
    canonicalize,
)
from flowhub.canonical.fingerprint import DIGEST_HEX_LENGTH, canonical_text, fingerprint
from flowhub.structural.vocabulary import FlatNode, WrappedNode, classify_node
from flowhub.utils.graph import build_graph, graph_summary, kind_histogram


def _validated(doc):
    res = validate(doc)
    assert res.valid, res.error
    return res.workflow


def test_canonical_data_drops_only_cosmetic_and_empty_values():
    settings = {
        "moduleType": "open_page",
        "label": "Open",
        "name": "n",
        "description": "d",
        "x": 1,
        "y": 2,
        "position": {"x": 1},
        "id": "inner",
        "url": "https://x",
        "note": None,
        "selector": "",
        "retries": 0,
        "headless": False,
        "headers": {},
        "items": [],
    }
    assert canonical_data(settings) == {
        "moduleType": "open_page",
        "url": "https://x",
        "retries": 0,
        "headless": False,
        "headers": {},
        "items": [],
    }


def test_canonical_data_is_shallow():
    nested = {"options": {"label": "kept", "x": 3}}
    assert canonical_data(nested) == nested


def test_wrapped_node_keeps_module_type_in_data():
    wrapped = _validated({"nodes": [{"id": "a", "type": "moduleNode",
                                     "data": {"moduleType": "wait", "ms": 10}}], "edges": []})
    flat = _validated({"nodes": [{"id": "a", "type": "wait", "data": {"ms": 10}}], "edges": []})
    assert canonicalize(wrapped).nodes == (CanonicalNode("wait", {"moduleType": "wait", "ms": 10}),)
    assert canonicalize(flat).nodes == (CanonicalNode("wait", {"ms": 10}),)
    assert fingerprint(canonicalize(wrapped)) != fingerprint(canonicalize(flat))


def test_legacy_config_is_used_when_data_missing():
    wf = _validated({"nodes": [{"id": "a", "type": "wait", "config": {"ms": 10}}], "edges": []})
    assert canonicalize(wf).nodes[0].data == {"ms": 10}


def test_module_type_in_legacy_config_does_not_wrap():
    node = {"id": "a", "type": "wait", "config": {"moduleType": "open_page", "ms": 10}}
    shape = classify_node(node)
    assert isinstance(shape, FlatNode)
    assert shape.step_kind == "wait"

    wf = _validated({"nodes": [node], "edges": []})
    assert canonicalize(wf).nodes == (CanonicalNode("wait", {"moduleType": "open_page", "ms": 10}),)


def test_module_type_in_data_wraps():
    shape = classify_node({"id": "a", "type": "moduleNode", "data": {"moduleType": "open_page"}})
    assert isinstance(shape, WrappedNode)
    assert shape.step_kind == "open_page"


def test_nodes_sorted_by_kind_then_data():
    wf = _validated({
        "nodes": [
            {"id": "1", "type": "wait", "data": {"ms": 2}},
            {"id": "2", "type": "screenshot", "data": {}},
            {"id": "3", "type": "wait", "data": {"ms": 1}},
        ],
        "edges": [],
    })
    kinds = [(n.step_kind, n.data) for n in canonicalize(wf).nodes]
    assert kinds == [("screenshot", {}), ("wait", {"ms": 1}), ("wait", {"ms": 2})]


def test_edges_rewritten_to_step_kinds():
    wf = _validated({
        "nodes": [
            {"id": "c", "type": "condition", "data": {"expr": "1"}},
            {"id": "l", "type": "print_log", "data": {}},
            {"id": "w", "type": "wait", "data": {}},
        ],
        "edges": [
            {"id": "e1", "source": "c", "target": "w", "sourceHandle": "true", "targetHandle": ""},
            {"id": "e2", "source": "c", "target": "l", "sourceHandle": "false", "targetHandle": None},
        ],
    })
    form = canonicalize(wf)
    assert form.edges == (
        CanonicalEdge("condition", "print_log", "false", None),
        CanonicalEdge("condition", "wait", "true", None),
    )
    assert form.to_json()["edges"][0] == {
        "sourceType": "condition",
        "targetType": "print_log",
        "sourceHandle": "false",
        "targetHandle": None,
    }


def test_fingerprint_matches_canonical_text():
    wf = _validated({"nodes": [{"id": "n1", "type": "open_page", "data": {"url": "https://x"}}], "edges": []})
    form = canonicalize(wf)
    text = canonical_text(form)
    assert text == '{"edges":[],"nodes":[{"data":{"url":"https://x"},"type":"open_page"}]}'
    digest = fingerprint(form)
    assert len(digest) == DIGEST_HEX_LENGTH
    assert digest == hashlib.sha256(text.encode("utf-8")).hexdigest()


def test_graph_helpers():
    wf = _validated({
        "nodes": [
            {"id": "a", "type": "open_page", "data": {}},
            {"id": "b", "type": "click_element", "data": {}},
            {"id": "c", "type": "click_element", "data": {}},
            {"id": "n", "type": "noteNode", "data": {"moduleType": "note", "text": "hi"}},
        ],
        "edges": [
            {"source": "a", "target": "b"},
            {"source": "a", "target": "b"},
            {"source": "b", "target": "c"},
        ],
    })
    G = build_graph(wf)
    assert G.number_of_edges() == 3
    assert kind_histogram(G)["click_element"] == 2

    summary = graph_summary(G)
    assert summary["n_nodes"] == 4
    assert summary["n_edges"] == 3
    assert summary["acyclic"] is True
    assert summary["weakly_connected_components"] == 2
