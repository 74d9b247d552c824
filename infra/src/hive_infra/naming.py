"""Identifier normalisation shared by manifests, databases and buckets."""

from __future__ import annotations

import hashlib
import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_ASCII_ALNUM = re.compile(r"[a-z0-9]")
DIGEST_LENGTH = 8


def slugify(name: str, separator: str = "-", fallback: str = "app") -> str:
    """Lowercase ``name`` and collapse each run of non-alphanumerics to ``separator``.

    Leading and trailing separators are trimmed; ``fallback`` is returned when
    nothing alphanumeric is left.
    """
    slug = _NON_ALNUM.sub(separator, name.lower()).strip(separator)
    return slug or fallback


def is_lossy(name: str) -> bool:
    """Return ``True`` if slugifying ``name`` drops a letter or digit.

    Non-ASCII letters and digits are dropped, and a name with no ASCII
    alphanumerics at all collapses to the fallback.
    """
    lowered = name.lower()
    if not _ASCII_ALNUM.search(lowered):
        return True
    return any(ch.isalnum() and not _ASCII_ALNUM.fullmatch(ch) for ch in lowered)


def unique_slug(name: str, separator: str = "-", fallback: str = "app") -> str:
    """Slugify ``name``, suffixing a short digest when letters were dropped.

    Names that differ in an alphanumeric character keep distinct slugs;
    names that differ only in case or punctuation still share one.
    """
    slug = slugify(name, separator, fallback)
    if not is_lossy(name):
        return slug
    digest = hashlib.sha256(name.lower().encode("utf-8")).hexdigest()[:DIGEST_LENGTH]
    return f"{slug}{separator}{digest}"
