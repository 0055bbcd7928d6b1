"""
Checksums for the graph file envelope.

The digest covers the canonical JSON form of the graph payload (sorted keys,
no whitespace), so key order and indentation in the file do not matter.
"""

import hashlib
import json
from typing import Any, Mapping, Optional

CHECKSUM_LENGTH = 16


def canonical_json(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def payload_checksum(payload: Mapping[str, Any], length: int = CHECKSUM_LENGTH) -> str:
    """
    SHA256 hex digest of a graph payload, cut to ``length`` characters.

    A ``length`` of 0 keeps the full 64-character digest.
    """
    if not isinstance(payload, Mapping):
        raise TypeError(f"payload must be a mapping, got {type(payload).__name__}")
    digest = hashlib.sha256(canonical_json(payload)).hexdigest()
    return digest[:length] if length > 0 else digest


def checksum_matches(payload: Any, expected: Optional[str]) -> bool:
    """True if ``payload`` is a mapping whose digest equals ``expected``."""
    if not isinstance(payload, Mapping) or not isinstance(expected, str) or not expected:
        return False
    return payload_checksum(payload, length=len(expected)) == expected
