"""
Key normalization utilities.

Two concerns live here because both exist to make lookups compare equal
when the raw keys do not:

* Job ids are issued in an 18-character form (15-character base plus a
  3-character checksum suffix).  Stored log entries and lookups may carry
  either form, so every boundary compares the 15-character canonical key.
* Row mappings produced by source adapters carry field names whose case
  depends on the source (report column labels, SQL aliases).  Field
  mappings match them case-insensitively.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterator, Mapping
from typing import Any

CANONICAL_ID_LENGTH = 15
FULL_ID_LENGTH = 18

_BASE62 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_SUFFIX_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ012345"


def canonicalize_job_id(value: object) -> str:
    """
    Return the canonical comparison key for a job id.

    Surrounding whitespace is stripped and anything past the 15-character
    base is dropped, so the 15- and 18-character forms of one id map to
    the same key.

    Raises:
        ValueError: If the value is None or blank.

    Example:
        >>> canonicalize_job_id("7074x00000AbCdEFGH")
        '7074x00000AbCdE'
    """
    if value is None:
        raise ValueError("Job id must not be None")
    text = str(value).strip()
    if not text:
        raise ValueError("Job id must not be blank")
    return text[:CANONICAL_ID_LENGTH]


def id_checksum_suffix(base_id: str) -> str:
    """
    Compute the 3-character case-safe suffix for a 15-character id.

    Each 5-character block contributes one suffix character whose index
    has bit ``i`` set when character ``i`` of the block is an uppercase
    ASCII letter.
    """
    if len(base_id) != CANONICAL_ID_LENGTH:
        raise ValueError(
            f"Expected a {CANONICAL_ID_LENGTH}-character id, got {len(base_id)}"
        )
    suffix = []
    for block_start in range(0, CANONICAL_ID_LENGTH, 5):
        flags = 0
        for offset, char in enumerate(base_id[block_start:block_start + 5]):
            if "A" <= char <= "Z":
                flags |= 1 << offset
        suffix.append(_SUFFIX_ALPHABET[flags])
    return "".join(suffix)


def to_full_id(value: str) -> str:
    """Expand a 15- or 18-character id to its 18-character form."""
    base_id = canonicalize_job_id(value)
    return base_id + id_checksum_suffix(base_id)


def generate_job_id(prefix: str = "707") -> str:
    """
    Issue a new 18-character job id.

    Format: 3-character key prefix, 12 random base62 characters, then the
    checksum suffix.
    """
    body_length = CANONICAL_ID_LENGTH - len(prefix)
    body = "".join(secrets.choice(_BASE62) for _ in range(body_length))
    return to_full_id(prefix + body)


def normalize_key(key: Any) -> Any:
    """Lower-case and strip a string key; other keys pass through."""
    if isinstance(key, str):
        return key.strip().lower()
    return key


def normalize_keys(mapping: Mapping[Any, Any]) -> dict[Any, Any]:
    """
    Return a copy of ``mapping`` with normalized keys.

    When two keys normalize to the same value the one iterated last wins.
    """
    return {normalize_key(k): v for k, v in mapping.items()}


class CaseInsensitiveDict(Mapping[str, Any]):
    """
    Read-only mapping with case-insensitive string keys.

    Iteration yields keys in their original spelling; lookups and
    membership tests ignore case and surrounding whitespace.
    """

    def __init__(self, data: Mapping[str, Any] | None = None, **kwargs: Any):
        self._store: dict[Any, tuple[Any, Any]] = {}
        for source in (data or {}, kwargs):
            for key, value in source.items():
                self._store[normalize_key(key)] = (key, value)

    def __getitem__(self, key: Any) -> Any:
        return self._store[normalize_key(key)][1]

    def __iter__(self) -> Iterator[Any]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return normalize_key(key) in self._store

    def lower_items(self) -> Iterator[tuple[Any, Any]]:
        """Iterate ``(normalized_key, value)`` pairs."""
        return ((k, pair[1]) for k, pair in self._store.items())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"
