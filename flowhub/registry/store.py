# flowhub/registry/store.py
"""SQLite store for published workflows, keyed by id and unique by fingerprint."""

from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from flowhub.config import DOWNLOAD_DEDUP_SECONDS
from flowhub.utils.logger import get_logger

logger = get_logger("registry.store")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS workflows (
    id TEXT PRIMARY KEY,
    hash TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    author TEXT NOT NULL,
    category TEXT NOT NULL,
    tags TEXT NOT NULL DEFAULT '',
    content TEXT NOT NULL,
    node_count INTEGER NOT NULL DEFAULT 0,
    download_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    client_id TEXT
);
CREATE INDEX IF NOT EXISTS idx_workflows_category ON workflows(category);
CREATE INDEX IF NOT EXISTS idx_workflows_created_at ON workflows(created_at);
CREATE INDEX IF NOT EXISTS idx_workflows_download_count ON workflows(download_count);
CREATE INDEX IF NOT EXISTS idx_workflows_client_id ON workflows(client_id);

CREATE TABLE IF NOT EXISTS download_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    workflow_id TEXT NOT NULL,
    requester TEXT NOT NULL,
    downloaded_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_download_logs_lookup ON download_logs(workflow_id, requester);
"""

_COLUMNS = (
    "id, hash, name, description, author, category, tags, content, "
    "node_count, download_count, created_at, updated_at, client_id"
)

_SORTS = {
    "newest": "ORDER BY created_at DESC",
    "popular": "ORDER BY download_count DESC, created_at DESC",
    "downloads": "ORDER BY download_count DESC",
}

# Columns a caller may change through `update`
_UPDATABLE = frozenset({"name", "description", "author", "category", "tags", "content", "hash", "node_count"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ts(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class WorkflowRecord:
    """One published workflow. `content` is the submitted document, unchanged."""
    id: str
    hash: str
    name: str
    content: Dict[str, Any]
    description: str = ""
    author: str = ""
    category: str = ""
    tags: List[str] = field(default_factory=list)
    node_count: int = 0
    download_count: int = 0
    created_at: str = ""
    updated_at: str = ""
    client_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "WorkflowRecord":
        d = dict(row)
        d["tags"] = [t for t in (d.get("tags") or "").split(",") if t]
        d["content"] = json.loads(d["content"])
        return cls(**d)

    def summary(self) -> Dict[str, Any]:
        """Listing view: everything except the content and the owner token."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "author": self.author,
            "category": self.category,
            "tags": list(self.tags),
            "node_count": self.node_count,
            "download_count": self.download_count,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class PutResult:
    """Outcome of `put_if_absent`: the new record, or the one already holding the digest."""
    inserted: bool
    record: WorkflowRecord


class WorkflowRegistry:
    """Access to the workflow registry database. One connection per call."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init(self) -> None:
        """Create the tables and indexes if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._conn()
        try:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        finally:
            conn.close()

    # ---------- writes ----------

    def put_if_absent(
        self,
        digest: str,
        *,
        name: str,
        content: Dict[str, Any],
        node_count: int,
        description: str = "",
        author: str = "",
        category: str = "",
        tags: Optional[List[str]] = None,
        client_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PutResult:
        """Insert a workflow unless one with the same digest exists; the UNIQUE index decides."""
        ts = _ts(now or utc_now())
        record = WorkflowRecord(
            id=str(uuid.uuid4()),
            hash=digest,
            name=name,
            content=content,
            description=description,
            author=author,
            category=category,
            tags=list(tags or []),
            node_count=node_count,
            created_at=ts,
            updated_at=ts,
            client_id=client_id,
        )
        conn = self._conn()
        try:
            try:
                conn.execute(
                    f"INSERT INTO workflows ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.id,
                        record.hash,
                        record.name,
                        record.description,
                        record.author,
                        record.category,
                        ",".join(record.tags),
                        json.dumps(content, ensure_ascii=False),
                        record.node_count,
                        0,
                        record.created_at,
                        record.updated_at,
                        record.client_id,
                    ),
                )
                conn.commit()
            except sqlite3.IntegrityError:
                conn.rollback()
                row = conn.execute(f"SELECT {_COLUMNS} FROM workflows WHERE hash = ?", (digest,)).fetchone()
                if row is None:
                    raise
                existing = WorkflowRecord.from_row(row)
                logger.info("duplicate workflow %s (existing id=%s)", digest[:12], existing.id)
                return PutResult(inserted=False, record=existing)
        finally:
            conn.close()
        logger.info("stored workflow id=%s hash=%s nodes=%d", record.id, digest[:12], node_count)
        return PutResult(inserted=True, record=record)

    def update(self, workflow_id: str, fields: Dict[str, Any], now: Optional[datetime] = None) -> bool:
        """Update the given columns; `tags` may be a list, `content` a document."""
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"cannot update columns: {sorted(unknown)}")
        if not fields:
            return False
        values: Dict[str, Any] = dict(fields)
        if "tags" in values:
            values["tags"] = ",".join(values["tags"])
        if "content" in values:
            values["content"] = json.dumps(values["content"], ensure_ascii=False)
        values["updated_at"] = _ts(now or utc_now())

        assignments = ", ".join(f"{col} = ?" for col in values)
        conn = self._conn()
        try:
            cur = conn.execute(
                f"UPDATE workflows SET {assignments} WHERE id = ?",
                (*values.values(), workflow_id),
            )
            conn.commit()
            changed = cur.rowcount > 0
        finally:
            conn.close()
        if changed:
            logger.info("updated workflow id=%s fields=%s", workflow_id, sorted(fields))
        return changed

    def delete(self, workflow_id: str) -> bool:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM download_logs WHERE workflow_id = ?", (workflow_id,))
            cur = conn.execute("DELETE FROM workflows WHERE id = ?", (workflow_id,))
            conn.commit()
            deleted = cur.rowcount > 0
        finally:
            conn.close()
        if deleted:
            logger.info("deleted workflow id=%s", workflow_id)
        return deleted

    def record_download(self, workflow_id: str, requester: str, now: Optional[datetime] = None) -> bool:
        """
        Log a download and bump the counter, unless the same requester already
        downloaded this workflow within DOWNLOAD_DEDUP_SECONDS.
        Returns True when the download was counted.
        """
        now = now or utc_now()
        since = _ts(now - timedelta(seconds=DOWNLOAD_DEDUP_SECONDS))
        conn = self._conn()
        try:
            recent = conn.execute(
                "SELECT 1 FROM download_logs WHERE workflow_id = ? AND requester = ? AND downloaded_at > ?",
                (workflow_id, requester, since),
            ).fetchone()
            if recent is not None:
                return False
            conn.execute(
                "INSERT INTO download_logs (workflow_id, requester, downloaded_at) VALUES (?, ?, ?)",
                (workflow_id, requester, _ts(now)),
            )
            conn.execute(
                "UPDATE workflows SET download_count = download_count + 1 WHERE id = ?",
                (workflow_id,),
            )
            conn.commit()
        finally:
            conn.close()
        return True

    # ---------- reads ----------

    def get(self, workflow_id: str) -> Optional[WorkflowRecord]:
        conn = self._conn()
        try:
            row = conn.execute(f"SELECT {_COLUMNS} FROM workflows WHERE id = ?", (workflow_id,)).fetchone()
        finally:
            conn.close()
        return WorkflowRecord.from_row(row) if row else None

    def find_by_hash(self, digest: str, exclude_id: Optional[str] = None) -> Optional[WorkflowRecord]:
        sql = f"SELECT {_COLUMNS} FROM workflows WHERE hash = ?"
        params: Tuple[Any, ...] = (digest,)
        if exclude_id is not None:
            sql += " AND id != ?"
            params += (exclude_id,)
        conn = self._conn()
        try:
            row = conn.execute(sql, params).fetchone()
        finally:
            conn.close()
        return WorkflowRecord.from_row(row) if row else None

    def list_workflows(
        self,
        page: int = 1,
        limit: int = 20,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "newest",
        client_id: Optional[str] = None,
    ) -> Tuple[List[WorkflowRecord], int]:
        """One page of workflows plus the total number of matches."""
        if sort not in _SORTS:
            raise ValueError(f"unknown sort '{sort}' (expected one of: {', '.join(_SORTS)})")
        where = ["1 = 1"]
        params: List[Any] = []
        if category:
            where.append("category = ?")
            params.append(category)
        if search:
            where.append("(name LIKE ? OR description LIKE ? OR tags LIKE ?)")
            pattern = f"%{search}%"
            params.extend([pattern, pattern, pattern])
        if client_id is not None:
            where.append("client_id = ?")
            params.append(client_id)
        where_sql = " AND ".join(where)

        conn = self._conn()
        try:
            total = conn.execute(f"SELECT COUNT(*) FROM workflows WHERE {where_sql}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM workflows WHERE {where_sql} {_SORTS[sort]} LIMIT ? OFFSET ?",
                (*params, limit, (page - 1) * limit),
            ).fetchall()
        finally:
            conn.close()
        return [WorkflowRecord.from_row(r) for r in rows], int(total)

    def categories(self) -> List[Tuple[str, int]]:
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT category, COUNT(*) AS n FROM workflows GROUP BY category ORDER BY n DESC, category"
            ).fetchall()
        finally:
            conn.close()
        return [(r["category"], int(r["n"])) for r in rows]
