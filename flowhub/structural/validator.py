# flowhub/structural/validator.py

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator

from flowhub.canonical.encoding import normalize
from flowhub.config import DEFAULT_LIMITS, ValidationLimits
from flowhub.errors import ErrorKind
from flowhub.structural.schema import EDGE_FIELD_SCHEMAS, NODE_FIELD_SCHEMAS, VARIABLES_SCHEMA
from flowhub.structural.vocabulary import NodeShape, classify_node, is_known_step, is_wrapper
from flowhub.utils.logger import get_logger

logger = get_logger("structural.validator")

_NODE_VALIDATORS = {k: Draft7Validator(s) for k, s in NODE_FIELD_SCHEMAS.items()}
_EDGE_VALIDATORS = {k: Draft7Validator(s) for k, s in EDGE_FIELD_SCHEMAS.items()}
_VARIABLES_VALIDATOR = Draft7Validator(VARIABLES_SCHEMA)


@dataclass(frozen=True)
class ValidatedWorkflow:
    """
    Proof that a document passed `validate`.

    Holds the submitted document by reference (never copied or modified) and
    the node shapes resolved during validation, in document order.
    """
    document: Dict[str, Any]
    shapes: Tuple[NodeShape, ...]

    @property
    def node_count(self) -> int:
        return len(self.shapes)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    node_count: int = 0
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    workflow: Optional[ValidatedWorkflow] = field(default=None, repr=False, compare=False)

    @classmethod
    def ok(cls, workflow: ValidatedWorkflow) -> "ValidationResult":
        return cls(valid=True, node_count=workflow.node_count, workflow=workflow)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "ValidationResult":
        return cls(valid=False, error=error, kind=kind)

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: {"valid": true, "nodeCount": n} or {"valid": false, "error": msg}."""
        if self.valid:
            return {"valid": True, "nodeCount": self.node_count}
        return {"valid": False, "error": self.error}


class _Reject(Exception):
    """Internal short-circuit; never escapes `validate`."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def serialized_size(value: Any) -> int:
    """
    Length of the compact JSON serialization of `value`, in UTF-16 code units
    (characters outside the BMP, such as emoji, count twice).
    """
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    # a lone surrogate raises UnicodeEncodeError (a ValueError)
    return len(text.encode("utf-16-le")) // 2


def _field_ok(validators: Dict[str, Draft7Validator], name: str, value: Any) -> bool:
    return validators[name].is_valid(value)


def _size_of(value: Any, what: str) -> int:
    # normalize() also rejects what json.dumps would silently coerce (non-string keys)
    try:
        normalize(value)
        return serialized_size(value)
    except (TypeError, ValueError, RecursionError):
        raise _Reject(ErrorKind.STRUCTURAL, f"{what} is not JSON-serializable")


# ---------- Public API ----------

def validate(doc: Any, limits: ValidationLimits = DEFAULT_LIMITS) -> ValidationResult:
    """
    Check a raw workflow document against the workflow schema and step vocabulary.

    Checks run in a fixed order and stop at the first failure:
      1) document is an object
      2) `nodes` / `edges` exist and are arrays
      3) node count bounds
      4) per-node shape, ids, step kind, position, settings size
      5) step-kind vocabulary
      6) edges reference existing nodes
      7) optional `variables`
      8) total document size

    Never raises and never mutates `doc`.
    """
    try:
        workflow = _validate(doc, limits)
    except _Reject as r:
        logger.debug("workflow rejected [%s]: %s", r.kind.value, r.message)
        return ValidationResult.fail(r.kind, r.message)
    return ValidationResult.ok(workflow)


def _validate(doc: Any, limits: ValidationLimits) -> ValidatedWorkflow:
    # 1) Document type
    if isinstance(doc, list):
        raise _Reject(ErrorKind.STRUCTURAL, "invalid workflow format: expected an object, not an array")
    if not isinstance(doc, dict):
        raise _Reject(ErrorKind.STRUCTURAL, "invalid workflow: the document is not an object")

    # 2) Required collections, reported per field
    for name in ("nodes", "edges"):
        if name not in doc:
            raise _Reject(ErrorKind.STRUCTURAL, f"not a workflow file: missing '{name}' field")
    for name in ("nodes", "edges"):
        if not isinstance(doc[name], list):
            raise _Reject(ErrorKind.STRUCTURAL, f"invalid workflow format: '{name}' must be an array")

    nodes: List[Any] = doc["nodes"]
    edges: List[Any] = doc["edges"]

    # 3) Node count
    if len(nodes) == 0:
        raise _Reject(ErrorKind.STRUCTURAL, "a workflow needs at least one node")
    if len(nodes) > limits.max_nodes:
        raise _Reject(
            ErrorKind.SIZE_LIMIT,
            f"a workflow cannot have more than {limits.max_nodes} nodes (got {len(nodes)})",
        )

    # 4) Nodes
    shapes = _check_nodes(nodes, limits)

    # 5) Vocabulary
    _check_vocabulary(shapes, limits)

    # 6) Edges
    node_ids = {s.node_id for s in shapes}
    _check_edges(edges, node_ids)

    # 7) Variables
    if "variables" in doc:
        _check_variables(doc["variables"])

    # 8) Total size
    total = _size_of(doc, "workflow content")
    if total > limits.max_document_chars:
        raise _Reject(
            ErrorKind.SIZE_LIMIT,
            f"workflow content is too large ({total} characters, limit {limits.max_document_chars}); "
            "please trim it before publishing",
        )

    return ValidatedWorkflow(document=doc, shapes=tuple(shapes))


def _check_nodes(nodes: List[Any], limits: ValidationLimits) -> List[NodeShape]:
    shapes: List[NodeShape] = []
    seen = set()
    for i, node in enumerate(nodes, start=1):
        if not isinstance(node, dict):
            raise _Reject(ErrorKind.STRUCTURAL, f"node #{i} is not an object")

        if not _field_ok(_NODE_VALIDATORS, "id", node.get("id")):
            raise _Reject(ErrorKind.STRUCTURAL, f"node #{i} is missing a valid 'id' field")
        node_id = node["id"]
        if node_id in seen:
            raise _Reject(ErrorKind.STRUCTURAL, f"duplicate node id '{node_id}' (node #{i})")
        seen.add(node_id)

        for name in ("data", "config"):
            if not _field_ok(_NODE_VALIDATORS, name, node.get(name)):
                raise _Reject(ErrorKind.STRUCTURAL, f"node '{node_id}' has an invalid '{name}' field (must be an object)")

        shape = classify_node(node)
        if shape is None:
            raise _Reject(ErrorKind.STRUCTURAL, f"node '{node_id}' has no module type")

        if not _field_ok(_NODE_VALIDATORS, "position", node.get("position")):
            raise _Reject(ErrorKind.STRUCTURAL, f"node '{node_id}' has an invalid 'position' (must be an object)")

        size = _size_of(shape.settings, f"node '{node_id}' configuration data")
        if size > limits.max_node_data_chars:
            raise _Reject(
                ErrorKind.SIZE_LIMIT,
                f"node '{node_id}' configuration data is too large "
                f"({size} characters, limit {limits.max_node_data_chars})",
            )
        shapes.append(shape)
    return shapes


def _check_vocabulary(shapes: List[NodeShape], limits: ValidationLimits) -> None:
    valid_count = 0
    unknown: List[str] = []  # distinct, first-seen order
    for shape in shapes:
        kind = shape.step_kind
        if is_known_step(kind):
            valid_count += 1
        elif not is_wrapper(kind) and kind not in unknown:
            unknown.append(kind)

    if valid_count == 0:
        raise _Reject(
            ErrorKind.VOCABULARY,
            "this is not a workflow of this system: no recognizable module type found",
        )
    if unknown:
        examples = ", ".join(unknown[: limits.max_unknown_examples])
        if len(unknown) > limits.max_unknown_examples:
            raise _Reject(
                ErrorKind.VOCABULARY,
                f"workflow contains {len(unknown)} unsupported module types (e.g. {examples}); "
                "this is likely not a workflow of this system",
            )
        raise _Reject(ErrorKind.VOCABULARY, f"workflow contains unsupported module types: {examples}")


def _check_edges(edges: List[Any], node_ids: set) -> None:
    for i, edge in enumerate(edges, start=1):
        if not isinstance(edge, dict):
            raise _Reject(ErrorKind.STRUCTURAL, f"edge #{i} is not an object")
        for end in ("source", "target"):
            if not _field_ok(_EDGE_VALIDATORS, end, edge.get(end)):
                raise _Reject(ErrorKind.STRUCTURAL, f"edge #{i} is missing a valid '{end}' field")
        for end in ("source", "target"):
            if edge[end] not in node_ids:
                raise _Reject(
                    ErrorKind.REFERENTIAL,
                    f"edge #{i} references a non-existent {end} node: {edge[end]}",
                )


def _check_variables(variables: Any) -> None:
    if not isinstance(variables, list):
        raise _Reject(ErrorKind.STRUCTURAL, "invalid 'variables' field: must be an array")
    errors = sorted(_VARIABLES_VALIDATOR.iter_errors(variables), key=lambda e: list(e.absolute_path))
    if not errors:
        return
    err = errors[0]
    path = list(err.absolute_path)
    i = path[0] + 1
    if len(path) == 1 and err.validator == "type":
        raise _Reject(ErrorKind.STRUCTURAL, f"variable #{i} is not an object")
    raise _Reject(ErrorKind.STRUCTURAL, f"variable #{i} is missing a valid 'name' field")
