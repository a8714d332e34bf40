# flowhub/errors.py
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a validation failure."""
    STRUCTURAL = "STRUCTURAL"    # wrong shape: missing field, wrong type
    VOCABULARY = "VOCABULARY"    # wrong kind of document: unknown step kinds
    SIZE_LIMIT = "SIZE_LIMIT"    # node count / node data / document size
    REFERENTIAL = "REFERENTIAL"  # edge points at a node id that does not exist


class FlowhubError(Exception):
    """Base class for every error raised by flowhub."""


class WorkflowPreconditionError(FlowhubError):
    """Canonicalization was reached with a document that did not pass validation."""


class InvalidWorkflowError(FlowhubError):
    """A submitted workflow was rejected by the validator."""

    def __init__(self, message: str, kind: ErrorKind):
        super().__init__(message)
        self.kind = kind


class DuplicateWorkflowError(FlowhubError):
    """A workflow with the same fingerprint is already registered."""

    def __init__(self, digest: str, existing_id: str, existing_name: Optional[str] = None):
        super().__init__(f"workflow already exists in the registry (id={existing_id})")
        self.digest = digest
        self.existing_id = existing_id
        self.existing_name = existing_name


class WorkflowNotFoundError(FlowhubError):
    def __init__(self, workflow_id: str):
        super().__init__(f"workflow not found: {workflow_id}")
        self.workflow_id = workflow_id


class WorkflowPermissionError(FlowhubError):
    """The caller's client token does not own the workflow."""


class MetadataError(FlowhubError):
    """Publish/update metadata (name, tags, ...) is out of bounds."""
