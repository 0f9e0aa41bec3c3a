"""Unit tests for prefixed identifier generation."""

from __future__ import annotations

import re

from layoutforge.core.ids import generate_article_id, generate_prefixed_id


def test_article_id_format_and_uniqueness() -> None:
    ids = [generate_article_id() for _ in range(200)]

    assert len(ids) == len(set(ids))
    assert all(re.fullmatch(r"art_\d{13}_[0-9a-z]{9}", item) for item in ids)


def test_prefixed_id_uses_given_timestamp() -> None:
    identifier = generate_prefixed_id("tpl", millis=1718000000000, random_length=4)

    assert identifier.startswith("tpl_1718000000000_")
    assert len(identifier.rsplit("_", 1)[1]) == 4
