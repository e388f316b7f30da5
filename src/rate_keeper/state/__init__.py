"""
Snapshot encoding for keeper state
"""

from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex, state_digest

__all__ = [
    "canonical_json_bytes",
    "domain_sep_bytes",
    "sha256_hex",
    "state_digest",
]
