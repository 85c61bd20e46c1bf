#!/usr/bin/env python3
"""
Content fingerprints and filtered copies of clipboard bundles.

A fingerprint is a 32-bit unsigned integer used for approximate equality
and lookup of history items. It is not a cryptographic identity: it is
built by XOR-ing one term per format, which makes it independent of the
order formats appear in a bundle but also lets different bundles collide.

Formats requested but absent from a bundle are skipped entirely, so they
contribute nothing to the result.

The per-value hash is the first four bytes of a SHA-256 digest rather
than Python's builtin hash(), which is salted per process; fingerprints
travel between processes and must be stable.
"""
from __future__ import annotations

import hashlib
from collections.abc import Iterable

from clipring.bundle import DataBundle

__all__ = ["clone_bundle", "fingerprint", "hash_bytes"]


def hash_bytes(data: bytes) -> int:
    """
    Compute a stable 32-bit hash of raw bytes.

    Args:
        data: Bytes to hash.

    Returns:
        Unsigned integer in range 0..2**32-1.
    """
    return int.from_bytes(hashlib.sha256(data).digest()[:4], "big")


def fingerprint(bundle: DataBundle, formats: Iterable[str]) -> int:
    """
    Compute the fingerprint of a bundle over the given formats.

    Args:
        bundle: Bundle to fingerprint.
        formats: Formats to include; duplicates are ignored.

    Returns:
        XOR of hash(payload) ^ hash(format name) for each present format.
    """
    result = 0
    for fmt in set(formats):
        data = bundle.get(fmt)
        if data is None:
            continue
        result ^= hash_bytes(data) ^ hash_bytes(fmt.encode("utf-8"))
    return result


def clone_bundle(
    bundle: DataBundle, allow_list: Iterable[str] | None = None
) -> DataBundle:
    """
    Copy a bundle, keeping only selected formats.

    With an allow list, keeps each listed format that is present with a
    non-empty payload. Without one, keeps every format whose name starts
    with a lowercase letter; uppercase names (TARGETS, TIMESTAMP,
    UTF8_STRING and the like) are transient selection internals.

    Args:
        bundle: Source bundle.
        allow_list: Formats to keep, in the order they should appear.

    Returns:
        A new bundle.
    """
    if allow_list is not None:
        return DataBundle(
            (fmt, bundle[fmt]) for fmt in allow_list if bundle.get(fmt)
        )
    return DataBundle(
        (fmt, data) for fmt, data in bundle.items() if fmt and fmt[0].islower()
    )
