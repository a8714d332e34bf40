# tests/test_validation_bench.py

import json
from pathlib import Path

import pytest

from flowhub.api import validate

BENCH_DIR = Path(__file__).resolve().parent.parent / "bench" / "validation"


@pytest.mark.parametrize("case_dir", sorted(BENCH_DIR.glob("V*")), ids=lambda p: p.name)
def test_validation_bench(case_dir: Path):
    """
    Validation benchmark:
    - load workflow.json and expect.json
    - run validate
    - check verdict, error kind, node count and a fragment of the message
    """
    wf_file = case_dir / "workflow.json"
    exp_file = case_dir / "expect.json"

    assert wf_file.exists(), f"Missing workflow.json in {case_dir}"
    assert exp_file.exists(), f"Missing expect.json in {case_dir}"

    with wf_file.open("r", encoding="utf-8") as f:
        workflow = json.load(f)
    with exp_file.open("r", encoding="utf-8") as f:
        expect = json.load(f)

    asserts = expect.get("assert") or {}
    result = validate(workflow)

    assert result.valid == asserts["valid"], f"{case_dir.name}: error={result.error}"

    if "node_count" in asserts:
        assert result.node_count == asserts["node_count"], case_dir.name

    if "kind" in asserts:
        assert result.kind is not None and result.kind.value == asserts["kind"], (
            f"{case_dir.name}: kind={result.kind}, expected={asserts['kind']}"
        )

    if "error_contains" in asserts:
        assert asserts["error_contains"] in result.error, (
            f"{case_dir.name}: {result.error!r} does not mention {asserts['error_contains']!r}"
        )

    # wire shape
    wire = result.to_dict()
    if result.valid:
        assert wire == {"valid": True, "nodeCount": result.node_count}
    else:
        assert wire == {"valid": False, "error": result.error}
