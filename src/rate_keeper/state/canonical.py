"""
Deterministic canonical encoding for keeper snapshots.

Snapshots are audit artifacts: the same state must always encode to the same
bytes and hash to the same digest, independent of dict ordering or platform.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

CANONICAL_ENCODING_VERSION = 1
STATE_DIGEST_LABEL = "keeper-state"


def _reject_non_canonical(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, str):
        # Lone surrogates have no UTF-8 encoding.
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError("surrogate code points are not allowed in canonical encoding")
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_non_canonical(k)
            _reject_non_canonical(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_non_canonical(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (fixed-point values are always ints)
    """
    _reject_non_canonical(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = CANONICAL_ENCODING_VERSION) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"rate-keeper:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"


def state_digest(state_dict: Mapping[str, Any]) -> str:
    """0x-prefixed sha256 of a serialized keeper state."""
    payload = domain_sep_bytes(STATE_DIGEST_LABEL) + canonical_json_bytes(dict(state_dict))
    return sha256_hex(payload)
