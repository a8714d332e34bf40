# flowhub/canonical/fingerprint.py
from __future__ import annotations

import hashlib

from flowhub.canonical.canonicalizer import CanonicalForm
from flowhub.canonical.encoding import encode, encode_bytes

DIGEST_HEX_LENGTH = 64


def canonical_text(form: CanonicalForm) -> str:
    """The exact text that is hashed; useful when two digests differ unexpectedly."""
    return encode(form.to_json())


def fingerprint(form: CanonicalForm) -> str:
    """SHA-256 (hex) of the deterministic encoding of a canonical form."""
    return hashlib.sha256(encode_bytes(form.to_json())).hexdigest()
