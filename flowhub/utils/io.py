# flowhub/utils/io.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union

import yaml

# -------- Path helpers --------
PathLike = Union[str, Path]


def to_path(p: PathLike) -> Path:
    """Path or str -> Path."""
    return p if isinstance(p, Path) else Path(p)


def ensure_parent(path: PathLike) -> Path:
    """Ensure parent directory exists for a file path."""
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


# -------- JSON / YAML --------
def read_json(path: PathLike) -> Any:
    """Decode a UTF-8 JSON file; no workflow checks are applied."""
    with to_path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: PathLike, data: Any, indent: int = 2) -> Path:
    """Write JSON atomically (temp file then replace), pretty-formatted."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
    tmp.replace(p)
    return p


def read_yaml(path: PathLike) -> Any:
    """Load a YAML export of a workflow (same structure as the JSON one)."""
    with to_path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# -------- Generic loader --------
def load_workflow(path: PathLike) -> Any:
    """
    Load a workflow document by extension:
      - .json         -> JSON
      - .yaml / .yml  -> YAML
    The result is returned as decoded, without any checks. Malformed files
    raise ValueError (json.JSONDecodeError already is one).
    """
    p = to_path(path)
    suf = p.suffix.lower()
    if suf == ".json":
        return read_json(p)
    if suf in (".yaml", ".yml"):
        try:
            return read_yaml(p)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML in {p}: {e}") from e
    raise ValueError(f"Unsupported extension: {suf} for {p}")
