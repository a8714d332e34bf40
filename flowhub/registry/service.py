# flowhub/registry/service.py
"""
Publish / check / update flows on top of the registry.

The registry only ever sees the submitted document and its fingerprint; the
core is reached exclusively through `validate` and
`canonicalize_and_fingerprint`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from flowhub import config
from flowhub.api import canonicalize_and_fingerprint, validate
from flowhub.errors import (
    DuplicateWorkflowError,
    InvalidWorkflowError,
    MetadataError,
    WorkflowNotFoundError,
    WorkflowPermissionError,
)
from flowhub.registry.store import WorkflowRecord, WorkflowRegistry
from flowhub.utils.logger import get_logger

logger = get_logger("registry.service")


@dataclass
class WorkflowMetadata:
    """Free-text fields published alongside a workflow."""
    name: str
    description: str = ""
    author: str = config.DEFAULT_AUTHOR
    category: str = config.DEFAULT_CATEGORY
    tags: List[str] = field(default_factory=list)

    def cleaned(self) -> "WorkflowMetadata":
        """Stripped copy; raises MetadataError when a field is out of bounds."""
        name = _check_text("name", self.name, config.NAME_MAX_CHARS, config.NAME_MIN_CHARS)
        description = _check_text("description", self.description or "", config.DESCRIPTION_MAX_CHARS)
        author = _check_text("author", self.author or "", config.AUTHOR_MAX_CHARS) or config.DEFAULT_AUTHOR
        category = _check_category(self.category or config.DEFAULT_CATEGORY)
        tags = _check_tags(self.tags or [])
        return WorkflowMetadata(name=name, description=description, author=author, category=category, tags=tags)


@dataclass(frozen=True)
class DuplicateCheck:
    exists: bool
    digest: str
    existing_id: Optional[str] = None
    existing_name: Optional[str] = None


def _check_text(label: str, value: Any, max_chars: int, min_chars: int = 0) -> str:
    if not isinstance(value, str):
        raise MetadataError(f"{label} must be a string")
    value = value.strip()
    if not min_chars <= len(value) <= max_chars:
        if min_chars:
            raise MetadataError(f"{label} must be between {min_chars} and {max_chars} characters")
        raise MetadataError(f"{label} cannot exceed {max_chars} characters")
    return value


def _check_category(category: str) -> str:
    if category not in config.CATEGORIES:
        raise MetadataError(f"invalid category '{category}' (expected one of: {', '.join(config.CATEGORIES)})")
    return category


def _check_tags(tags: Any) -> List[str]:
    if not isinstance(tags, list):
        raise MetadataError("tags must be a list")
    if len(tags) > config.MAX_TAGS:
        raise MetadataError(f"at most {config.MAX_TAGS} tags are allowed")
    # commas separate tags in storage
    return [_check_text("tag", t, config.TAG_MAX_CHARS).replace(",", " ") for t in tags]


def check_client_id(client_id: Any) -> str:
    if not isinstance(client_id, str):
        raise MetadataError("invalid client id")
    client_id = client_id.strip()
    if not config.CLIENT_ID_MIN_CHARS <= len(client_id) <= config.CLIENT_ID_MAX_CHARS:
        raise MetadataError("invalid client id")
    return client_id


def _fingerprint_or_raise(content: Any) -> tuple:
    result = validate(content)
    if not result.valid:
        raise InvalidWorkflowError(result.error, result.kind)
    return canonicalize_and_fingerprint(result.workflow), result.node_count


# ---------- flows ----------

def publish(
    registry: WorkflowRegistry,
    content: Any,
    metadata: WorkflowMetadata,
    client_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WorkflowRecord:
    """
    Validate, fingerprint and store a workflow.

    Raises InvalidWorkflowError for a rejected document, MetadataError for
    bad metadata and DuplicateWorkflowError when the fingerprint is taken.
    """
    meta = metadata.cleaned()
    if client_id is not None:
        client_id = check_client_id(client_id)
    digest, node_count = _fingerprint_or_raise(content)

    put = registry.put_if_absent(
        digest,
        name=meta.name,
        content=content,
        node_count=node_count,
        description=meta.description,
        author=meta.author,
        category=meta.category,
        tags=meta.tags,
        client_id=client_id,
        now=now,
    )
    if not put.inserted:
        raise DuplicateWorkflowError(digest, put.record.id, put.record.name)
    return put.record


def check(registry: WorkflowRegistry, content: Any) -> DuplicateCheck:
    """Would `content` be a duplicate? Raises InvalidWorkflowError when it is not a valid workflow."""
    digest, _ = _fingerprint_or_raise(content)
    existing = registry.find_by_hash(digest)
    if existing is None:
        return DuplicateCheck(exists=False, digest=digest)
    return DuplicateCheck(exists=True, digest=digest, existing_id=existing.id, existing_name=existing.name)


def _owned(registry: WorkflowRegistry, workflow_id: str, client_id: str) -> WorkflowRecord:
    record = registry.get(workflow_id)
    if record is None:
        raise WorkflowNotFoundError(workflow_id)
    if not record.client_id or record.client_id != client_id:
        raise WorkflowPermissionError(f"client is not the publisher of workflow {workflow_id}")
    return record


def is_owner(registry: WorkflowRegistry, workflow_id: str, client_id: str) -> bool:
    record = registry.get(workflow_id)
    if record is None:
        raise WorkflowNotFoundError(workflow_id)
    return bool(record.client_id) and record.client_id == client_id


def get_for_edit(registry: WorkflowRegistry, workflow_id: str, client_id: str) -> WorkflowRecord:
    return _owned(registry, workflow_id, check_client_id(client_id))


def update(
    registry: WorkflowRegistry,
    workflow_id: str,
    client_id: str,
    content: Optional[Any] = None,
    now: Optional[datetime] = None,
    **changes: Any,
) -> WorkflowRecord:
    """
    Update metadata and/or content of a workflow owned by `client_id`.

    New content is validated and fingerprinted again; it may not collide
    with any other workflow's fingerprint (colliding with itself is fine).
    """
    client_id = check_client_id(client_id)
    _owned(registry, workflow_id, client_id)

    allowed = {"name", "description", "author", "category", "tags"}
    unknown = set(changes) - allowed
    if unknown:
        raise MetadataError(f"unknown fields: {', '.join(sorted(unknown))}")

    fields: Dict[str, Any] = {}
    if "name" in changes:
        fields["name"] = _check_text("name", changes["name"], config.NAME_MAX_CHARS, config.NAME_MIN_CHARS)
    if "description" in changes:
        fields["description"] = _check_text("description", changes["description"], config.DESCRIPTION_MAX_CHARS)
    if "author" in changes:
        fields["author"] = _check_text("author", changes["author"], config.AUTHOR_MAX_CHARS)
    if "category" in changes:
        fields["category"] = _check_category(changes["category"])
    if "tags" in changes:
        fields["tags"] = _check_tags(changes["tags"])

    if content is not None:
        digest, node_count = _fingerprint_or_raise(content)
        clash = registry.find_by_hash(digest, exclude_id=workflow_id)
        if clash is not None:
            raise DuplicateWorkflowError(digest, clash.id, clash.name)
        fields.update(content=content, hash=digest, node_count=node_count)

    if not fields:
        raise MetadataError("nothing to update")

    registry.update(workflow_id, fields, now=now)
    return registry.get(workflow_id)


def download(
    registry: WorkflowRegistry,
    workflow_id: str,
    requester: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Return the stored document and count the download (once per requester per window)."""
    record = registry.get(workflow_id)
    if record is None:
        raise WorkflowNotFoundError(workflow_id)
    if registry.record_download(workflow_id, requester, now=now):
        logger.debug("download counted for %s", workflow_id)
    return record.content


def delete(registry: WorkflowRegistry, workflow_id: str, client_id: str) -> None:
    client_id = check_client_id(client_id)
    _owned(registry, workflow_id, client_id)
    registry.delete(workflow_id)
