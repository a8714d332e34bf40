# flowhub/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ValidationLimits:
    """Bounds applied by the validator. All sizes are serialized-JSON character counts."""
    max_nodes: int = 500
    max_node_data_chars: int = 50_000
    max_document_chars: int = 500_000
    # Number of distinct unknown step kinds cited in a rejection; more than this
    # switches to the "likely not a workflow of this system" message.
    max_unknown_examples: int = 3


DEFAULT_LIMITS = ValidationLimits()


# -------- Registry --------
DB_ENV_VAR = "FLOWHUB_DB"
DEFAULT_DB_PATH = Path("data") / "workflows.db"

CATEGORIES = (
    "data_collection",
    "automation",
    "form_filling",
    "ai",
    "scheduled",
    "other",
)
DEFAULT_CATEGORY = "other"
DEFAULT_AUTHOR = "anonymous"

NAME_MIN_CHARS = 2
NAME_MAX_CHARS = 50
DESCRIPTION_MAX_CHARS = 500
AUTHOR_MAX_CHARS = 30
MAX_TAGS = 5
TAG_MAX_CHARS = 20
CLIENT_ID_MIN_CHARS = 16
CLIENT_ID_MAX_CHARS = 64

# A requester downloading the same workflow again within this window is not counted twice.
DOWNLOAD_DEDUP_SECONDS = 3600
PAGE_LIMIT_MAX = 50


def default_db_path() -> Path:
    """Registry database path: $FLOWHUB_DB, else data/workflows.db."""
    return Path(os.getenv(DB_ENV_VAR) or DEFAULT_DB_PATH)
