"""
Shared utilities for tuesday.

Provides:
- Atomic file persistence (atomic_write, atomic_write_json)
- Graph payload checksums (payload_checksum, checksum_matches)
"""

from .persistence import atomic_write, atomic_write_json
from .checksums import checksum_matches, payload_checksum

__all__ = [
    'atomic_write',
    'atomic_write_json',
    'checksum_matches',
    'payload_checksum',
]
