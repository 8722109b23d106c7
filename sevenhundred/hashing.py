"""Cartridge digests used to identify ROM images."""

from __future__ import annotations

import hashlib


def compute_digest(data: bytes | bytearray | memoryview) -> str:
    """Return the 32-character lowercase hexadecimal MD5 digest of *data*."""
    return hashlib.md5(data, usedforsecurity=False).hexdigest()