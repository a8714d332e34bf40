# tests/test_fingerprint_bench.py

import json
from pathlib import Path

import pytest

from flowhub.api import canonicalize_and_fingerprint, validate

BENCH_DIR = Path(__file__).resolve().parent.parent / "bench" / "fingerprint"


def _load(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.mark.parametrize("case_dir", sorted(BENCH_DIR.glob("F*")), ids=lambda p: p.name)
def test_fingerprint_bench(case_dir: Path):
    """
    Fingerprint benchmark: a.json and b.json are both valid; expect.json says
    whether they must share a fingerprint (cosmetic / order-only differences)
    or not (functional differences).
    """
    a, b = _load(case_dir / "a.json"), _load(case_dir / "b.json")
    same = bool(_load(case_dir / "expect.json")["assert"]["same"])

    for name, doc in (("a", a), ("b", b)):
        res = validate(doc)
        assert res.valid, f"{case_dir.name}/{name}.json: {res.error}"

    fa = canonicalize_and_fingerprint(a)
    fb = canonicalize_and_fingerprint(b)

    assert len(fa) == 64 and all(c in "0123456789abcdef" for c in fa)
    if same:
        assert fa == fb, f"{case_dir.name}: expected identical fingerprints"
    else:
        assert fa != fb, f"{case_dir.name}: expected different fingerprints"
