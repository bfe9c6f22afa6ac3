"""YAML front matter helpers for vault notes."""

from __future__ import annotations

import logging

import frontmatter
import yaml

logger = logging.getLogger(__name__)

ALIAS_FIELDS: tuple[str, ...] = ("aliases", "alias")


def parse_aliases(raw_content: str) -> list[str]:
    """Return the note's declared aliases.

    Accepts both a YAML list and a single string under ``aliases`` or
    ``alias``. Malformed front matter yields no aliases.
    """
    try:
        post = frontmatter.loads(raw_content)
    except (yaml.YAMLError, TypeError, ValueError) as exc:
        logger.warning("Ignoring malformed front matter: %s", exc)
        return []

    result: list[str] = []
    for field_name in ALIAS_FIELDS:
        raw = post.get(field_name)
        if raw is None:
            continue
        values = raw if isinstance(raw, list) else [raw]
        for value in values:
            if value is None:
                continue
            alias = str(value).strip()
            if alias and alias not in result:
                result.append(alias)
    return result
