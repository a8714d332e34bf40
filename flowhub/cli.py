#!/usr/bin/env python3
# flowhub/cli.py

import json
from pathlib import Path
from typing import List, Optional

import typer

from flowhub import config
from flowhub.api import canonicalize_and_fingerprint, validate
from flowhub.canonical.canonicalizer import canonicalize
from flowhub.canonical.fingerprint import canonical_text, fingerprint
from flowhub.errors import DuplicateWorkflowError, FlowhubError, InvalidWorkflowError
from flowhub.registry import service
from flowhub.registry.store import WorkflowRegistry
from flowhub.utils.graph import build_graph, graph_summary
from flowhub.utils.io import load_workflow, write_json
from flowhub.utils.logger import init_logger, parse_level

app = typer.Typer(help="flowhub CLI - validate, fingerprint and publish automation workflows")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG | INFO | WARNING | ERROR (default: $LOG_LEVEL or INFO)"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also write a rotating log file in this directory"),
):
    level = parse_level(log_level) if log_level else None
    init_logger(level=level, log_dir=log_dir)


def _load(path: Path):
    try:
        return load_workflow(path)
    except (ValueError, OSError) as e:
        raise typer.BadParameter(f"cannot read {path}: {e}")


def _registry(db: Optional[Path]) -> WorkflowRegistry:
    reg = WorkflowRegistry(db or config.default_db_path())
    reg.init()
    return reg


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _db_option():
    return typer.Option(None, "--db", envvar=config.DB_ENV_VAR, help="Registry database (default: data/workflows.db)")


@app.command("validate")
def validate_cmd(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write the verdict as JSON to this path"),
):
    """
    Validate a workflow document. Exit code 1 when it is rejected.
    """
    result = validate(_load(input))

    if report is not None:
        payload = {"input": str(input), **result.to_dict()}
        if result.kind is not None:
            payload["kind"] = result.kind.value
        write_json(report, payload)
        typer.echo(f"[ok] wrote report to {report}")

    if not result.valid:
        _fail(f"[{result.kind.value}] {result.error}")
    typer.echo(f"valid: {result.node_count} nodes")


@app.command("fingerprint")
def fingerprint_cmd(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
    show_canonical: bool = typer.Option(False, "--canonical", help="Also print the canonical encoding that is hashed"),
):
    """
    Print the content fingerprint (SHA-256 hex) of a valid workflow.
    """
    result = validate(_load(input))
    if not result.valid:
        _fail(f"[{result.kind.value}] {result.error}")

    form = canonicalize(result.workflow)
    typer.echo(fingerprint(form))
    if show_canonical:
        typer.echo(canonical_text(form))


@app.command("inspect")
def inspect_cmd(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
):
    """
    Show step-kind counts and basic graph shape of a valid workflow.
    """
    result = validate(_load(input))
    if not result.valid:
        _fail(f"[{result.kind.value}] {result.error}")

    summary = graph_summary(build_graph(result.workflow))
    typer.echo(f"nodes:      {summary['n_nodes']}")
    typer.echo(f"edges:      {summary['n_edges']}")
    typer.echo(f"entries:    {summary['entry_nodes']}")
    typer.echo(f"terminals:  {summary['terminal_nodes']}")
    typer.echo(f"acyclic:    {summary['acyclic']}")
    typer.echo(f"components: {summary['weakly_connected_components']}")
    typer.echo("step kinds:")
    for kind, n in summary["step_kinds"].items():
        typer.echo(f"  {kind:<24} {n}")


@app.command("dedupe")
def dedupe_cmd(
    glob: str = typer.Option("workflows/**/*.json", "--glob", help="Glob for workflow files"),
    out: Path = typer.Option(Path("reports/dedupe.csv"), "--out", help="CSV path to write results"),
):
    """
    Fingerprint many workflow files and report which ones are duplicates.
    One CSV row per file; `duplicate_of` names the first file with the same fingerprint.
    """
    import glob as _glob
    import pandas as pd

    rows = []
    first_by_digest = {}
    for fp_str in sorted(_glob.glob(glob, recursive=True)):
        fp = Path(fp_str)
        try:
            doc = load_workflow(fp)
        except (ValueError, OSError) as e:
            typer.echo(f"[skip] {fp}: {e}")
            continue

        result = validate(doc)
        digest = canonicalize_and_fingerprint(result.workflow) if result.valid else ""
        duplicate_of = first_by_digest.get(digest, "") if digest else ""
        if digest and not duplicate_of:
            first_by_digest[digest] = str(fp)

        rows.append({
            "file": str(fp),
            "valid": result.valid,
            "error": result.error or "",
            "error_kind": result.kind.value if result.kind else "",
            "node_count": result.node_count,
            "digest": digest,
            "duplicate_of": duplicate_of,
        })

    df = pd.DataFrame(rows, columns=["file", "valid", "error", "error_kind", "node_count", "digest", "duplicate_of"])
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)

    n_dup = int((df["duplicate_of"] != "").sum()) if len(df) else 0
    n_invalid = int((~df["valid"].astype(bool)).sum()) if len(df) else 0
    typer.echo(f"files: {len(df)}  invalid: {n_invalid}  duplicates: {n_dup}")
    typer.echo(f"[ok] wrote {out}")


@app.command("publish")
def publish_cmd(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
    name: str = typer.Option(..., "--name", help="Display name (2-50 characters)"),
    description: str = typer.Option("", "--description"),
    author: str = typer.Option(config.DEFAULT_AUTHOR, "--author"),
    category: str = typer.Option(config.DEFAULT_CATEGORY, "--category", help=f"One of: {', '.join(config.CATEGORIES)}"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", help="Tag (repeatable, at most 5)"),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="Owner token (16-64 characters)"),
    db: Optional[Path] = _db_option(),
):
    """
    Publish a workflow into the registry. Exit code 1 when it is invalid or already published.
    """
    meta = service.WorkflowMetadata(
        name=name, description=description, author=author, category=category, tags=list(tags or []),
    )
    try:
        record = service.publish(_registry(db), _load(input), meta, client_id=client_id)
    except DuplicateWorkflowError as e:
        _fail(f"already exists: {e.existing_id} ({e.existing_name})")
    except InvalidWorkflowError as e:
        _fail(f"[{e.kind.value}] {e}")
    except FlowhubError as e:
        _fail(str(e))
    typer.echo(f"published {record.id} ({record.hash})")


@app.command("check")
def check_cmd(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to workflow JSON/YAML"),
    db: Optional[Path] = _db_option(),
):
    """
    Tell whether a workflow is already in the registry.
    """
    try:
        res = service.check(_registry(db), _load(input))
    except InvalidWorkflowError as e:
        _fail(f"[{e.kind.value}] {e}")
    if res.exists:
        typer.echo(f"exists: {res.existing_id} ({res.existing_name})")
    else:
        typer.echo(f"new: {res.digest}")


@app.command("list")
def list_cmd(
    page: int = typer.Option(1, "--page", min=1),
    limit: int = typer.Option(20, "--limit", min=1, max=config.PAGE_LIMIT_MAX),
    category: Optional[str] = typer.Option(None, "--category"),
    search: Optional[str] = typer.Option(None, "--search"),
    sort: str = typer.Option("newest", "--sort", help="newest | popular | downloads"),
    db: Optional[Path] = _db_option(),
):
    """
    List published workflows as JSON lines.
    """
    try:
        records, total = _registry(db).list_workflows(
            page=page, limit=limit, category=category, search=search, sort=sort,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e))
    for r in records:
        typer.echo(json.dumps(r.summary(), ensure_ascii=False))
    typer.echo(f"page {page}: {len(records)} of {total}")


if __name__ == "__main__":
    app()
