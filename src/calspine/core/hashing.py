"""
Deterministic hashing for calendar snapshots.

A rebuild with the same configuration and range must produce identical
output. ``compute_hash`` gives a stable SHA-256 digest over any values, and
``fingerprint_records`` folds a sequence of row records into a single digest
so two builds can be compared without diffing every row.

Examples:
    >>> len(compute_hash("2024-01-01", 445, length=12))
    12
    >>> fingerprint_records([{"date_key": 20240101}]) == fingerprint_records([{"date_key": 20240101}])
    True

Tags:
    hashing, idempotency, fingerprint, calspine
"""

import hashlib
import json
from collections.abc import Iterable, Mapping
from typing import Any


def compute_hash(*values: Any, length: int = 32) -> str:
    """
    Compute a deterministic hash of the given values.

    Values are joined with ``|`` after ``str()`` conversion and hashed with
    SHA-256.

    Args:
        *values: Values to hash
        length: Number of hex characters to return (max 64)
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode()).hexdigest()[:length]


def canonical_json(record: Mapping[str, Any]) -> str:
    """Serialize a record with sorted keys so equal records hash equally."""
    return json.dumps(record, sort_keys=True, default=str, separators=(",", ":"))


def fingerprint_records(records: Iterable[Mapping[str, Any]], length: int = 64) -> str:
    """Fold ordered records into one SHA-256 digest."""
    digest = hashlib.sha256()
    for record in records:
        digest.update(canonical_json(record).encode())
        digest.update(b"\n")
    return digest.hexdigest()[:length]


__all__ = ["compute_hash", "canonical_json", "fingerprint_records"]
