"""Apply an inline Markdown edit to one field of a block."""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Union

from carecms.content.converter import MarkdownConverter
from carecms.core.models import INLINE_EDIT_POLICY, Block, SanitizationPolicy
from carecms.sanitize.audit import log_violations
from carecms.sanitize.base import Sanitizer

logger = logging.getLogger(__name__)


_SEGMENT_RE = re.compile(r"^([A-Za-z0-9_-]+)((?:\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")

FieldKey = Union[str, int]


def parse_field_path(field_path: str) -> list[FieldKey]:
    """Split ``data.key`` / ``data.nested.key`` into keys below ``data``.

    The ``data.`` prefix may be left out when the path still has at least
    two segments. ``cards[0]`` yields the key ``"cards"`` followed by the
    list index ``0``; a bare numeric segment such as ``cards.0`` indexes a
    list when the value there is one.
    """
    parts = (field_path or "").split(".")
    if parts[0] != "data" and len(parts) < 2:
        raise ValueError('Invalid field path. Expected "data.key" or "data.nested.key".')
    if parts[0] == "data":
        parts = parts[1:]
    if not parts:
        raise ValueError(f"Invalid field path: {field_path!r}")

    keys: list[FieldKey] = []
    for part in parts:
        match = _SEGMENT_RE.match(part)
        if not match:
            raise ValueError(f"Invalid field path: {field_path!r}")
        keys.append(match.group(1))
        keys.extend(int(index) for index in _INDEX_RE.findall(match.group(2)))
    return keys


def _list_index(items: list, key: FieldKey) -> int:
    if isinstance(key, int):
        index = key
    elif key.isdigit():
        index = int(key)
    else:
        raise ValueError(f"Expected a list index, got {key!r}")
    if index >= len(items):
        raise ValueError(f"List index {index} out of range ({len(items)} item(s))")
    return index


def set_field(data: dict[str, Any], keys: list[FieldKey], value: Any) -> None:
    """Set ``value`` at ``keys``.

    Existing lists are indexed in place and an index past the end raises
    ValueError. Missing mappings are created, and a scalar standing where a
    container is needed is replaced with a mapping.
    """
    target: Any = data
    for key in keys[:-1]:
        if isinstance(target, list):
            slot: FieldKey = _list_index(target, key)
        else:
            slot = str(key)
        child = target[slot] if isinstance(target, list) else target.get(slot)
        if not isinstance(child, (dict, list)):
            child = {}
            target[slot] = child
        target = child

    last = keys[-1]
    if isinstance(target, list):
        target[_list_index(target, last)] = value
    else:
        target[str(last)] = value


def sanitize_markdown(
    markdown: str,
    converter: MarkdownConverter,
    sanitizer: Sanitizer,
    policy: SanitizationPolicy = INLINE_EDIT_POLICY,
) -> str:
    """Round-trip Markdown through HTML and the sanitizer and back."""
    html = converter.to_html(markdown)
    sanitized = sanitizer.sanitize(html, policy)
    log_violations("inline edit", html, sanitized)
    return converter.to_markdown(sanitized)


def apply_inline_edit(
    block: Block,
    field_path: str,
    markdown: str,
    converter: MarkdownConverter,
    sanitizer: Sanitizer,
    policy: SanitizationPolicy = INLINE_EDIT_POLICY,
) -> Block:
    """Return a copy of ``block`` with the sanitized Markdown stored at ``field_path``.

    Raises ValueError for an empty edit or a malformed path.
    """
    if not markdown:
        raise ValueError("Markdown content is required")
    keys = parse_field_path(field_path)

    cleaned = sanitize_markdown(markdown, converter, sanitizer, policy)
    data = copy.deepcopy(block.data)
    set_field(data, keys, cleaned)
    logger.info("Inline edit on block %s at %s", block.id, field_path)
    return block.model_copy(update={"data": data})
