"""Content fingerprints used to detect drift of mutable specs."""

import hashlib
import json
from typing import Any

# Label values are capped at 63 characters; 32 hex chars keep 128 bits.
HASH_LENGTH = 32


def canonical_json(value: Any) -> str:
    """Serialize ``value`` so that mapping key order never affects the output."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_object(value: Any) -> str:
    """Return a deterministic, label-safe fingerprint of a JSON-compatible value."""

    digest = hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()
    return digest[:HASH_LENGTH]


__all__ = ["hash_object", "canonical_json", "HASH_LENGTH"]
