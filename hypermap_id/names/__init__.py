# hypermap_id/names/__init__.py
"""
Hypermap ID Names

Namehash and label handling.

Updated: 2025-01-20
Version: 0.1.0
"""

from .namehash import (
    ROOT_NODE,
    labelhash,
    namehash,
    namehash_hex,
    join_name,
    split_name,
    validate_label,
    normalize_label,
)

__all__ = [
    "ROOT_NODE",
    "labelhash",
    "namehash",
    "namehash_hex",
    "join_name",
    "split_name",
    "validate_label",
    "normalize_label",
]
