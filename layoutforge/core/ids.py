"""Application-wide identifier utilities."""

from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

ARTICLE_ID_PREFIX = "art"
TEMPLATE_ID_PREFIX = "tpl"
DOCUMENT_ID_PREFIX = "doc"


def _random_alnum(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(max(length, 0)))


def now_millis() -> int:
    return int(time.time() * 1000)


def generate_prefixed_id(prefix: str, *, random_length: int = 9, millis: int | None = None) -> str:
    """Generate ``<prefix>_<epoch-ms>_<random base36>``, e.g. ``art_1718000000000_k3j9x0a2b``."""
    stamp = millis if millis is not None else now_millis()
    return f"{prefix}_{stamp}_{_random_alnum(random_length)}"


def generate_article_id(millis: int | None = None) -> str:
    return generate_prefixed_id(ARTICLE_ID_PREFIX, millis=millis)
