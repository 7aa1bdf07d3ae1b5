"""Delimited MD5 digests shared by the platform and manifest fingerprints."""

from __future__ import annotations

import hashlib

FIELD_DELIMITER = "||"


def joined_digest(*fields: str) -> str:
    joined = FIELD_DELIMITER.join(fields)
    return hashlib.md5(joined.encode("utf-8"), usedforsecurity=False).hexdigest()
