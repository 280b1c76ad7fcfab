"""
Merge a user's config document into a newer default document.

Comment handling for ruamel.yaml round-trip documents: ruamel stores the
text following a key's value on that key (``ca.items[key][2]``). The first
line of that text is the key's end-of-line comment; the remaining lines are
full-line comments that sit above the *next* key. When the merge reorders
or adds keys, the two parts are split apart and re-attached so every
comment stays with the key it was written for.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors import StructureError
from .version import find_version, is_older_version, is_version_key

# (template token, comment text)
_Comment = Tuple[Any, str]


@dataclass(frozen=True)
class MergeResult:
    document: Any
    changed: bool


@dataclass
class _CommentLayout:
    """Comments of one mapping level, keyed by the key they belong to."""

    end_of_line: Dict[Any, _Comment] = field(default_factory=dict)
    above: Dict[Any, _Comment] = field(default_factory=dict)
    tail: Optional[_Comment] = None
    last_key: Any = None
    extra: Dict[Any, List[Any]] = field(default_factory=dict)


def _post_token(node: Any, key: Any) -> Any:
    entry = node.ca.items.get(key)
    if entry is None or len(entry) < 3:
        return None
    return entry[2]


def _comment_layout(node: Any) -> Optional[_CommentLayout]:
    if getattr(node, "ca", None) is None:
        return None
    layout = _CommentLayout()
    keys = list(node)
    for index, key in enumerate(keys):
        entry = node.ca.items.get(key)
        if entry is not None:
            layout.extra[key] = list(entry)
        token = _post_token(node, key)
        if token is None:
            continue
        head, newline, rest = token.value.partition("\n")
        if head.strip():
            layout.end_of_line[key] = (token, head + newline)
        if rest:
            if index + 1 < len(keys):
                layout.above[keys[index + 1]] = (token, rest)
            else:
                layout.tail = (token, rest)
    layout.last_key = keys[-1] if keys else None
    return layout


def _set_post_comment(
    node: Any, key: Any, end_of_line: Optional[_Comment], below: Optional[_Comment]
) -> None:
    template = (end_of_line or below or (None, ""))[0]
    entry = node.ca.items.get(key)
    if template is None:
        if entry is not None and len(entry) > 2:
            entry[2] = None
            if not any(entry):
                del node.ca.items[key]
        return
    token = deepcopy(template)
    token.value = (end_of_line[1] if end_of_line else "\n") + (below[1] if below else "")
    if entry is None:
        entry = node.ca.items[key] = [None, None, None, None]
    entry[2] = token


def _copy_key_comments(node: Any, key: Any, source: Optional[List[Any]]) -> None:
    # Slots other than 2 hold comments on the key itself or its nested value.
    if not source:
        return
    entry = node.ca.items.setdefault(key, [None, None, None, None])
    for slot in (0, 1, 3):
        if slot < len(source) and source[slot] is not None:
            entry[slot] = deepcopy(source[slot])


def _rebuild_comments(
    merged: Any, default: _CommentLayout, current: _CommentLayout
) -> None:
    keys = list(merged)
    for index, key in enumerate(keys):
        _copy_key_comments(merged, key, current.extra.get(key))
        end_of_line = current.end_of_line.get(key) or default.end_of_line.get(key)
        if index + 1 < len(keys):
            following = keys[index + 1]
            below = current.above.get(following) or default.above.get(following)
        elif key == current.last_key and current.tail is not None:
            below = current.tail
        else:
            below = default.tail
        _set_post_comment(merged, key, end_of_line, below)


def _transplant_leading_comment(target: Any, source: Any) -> None:
    source_ca = getattr(source, "ca", None)
    target_ca = getattr(target, "ca", None)
    if source_ca is None or target_ca is None:
        return
    if source_ca.comment is not None:
        target_ca.comment = deepcopy(source_ca.comment)


def _merge_into(
    base: MutableMapping, current: Mapping, *, top_level: bool, preserve_comments: bool
) -> None:
    default_layout = current_layout = None
    if preserve_comments:
        default_layout = _comment_layout(base)
        current_layout = _comment_layout(current)
        _transplant_leading_comment(base, current)
    for key, current_value in current.items():
        if top_level and is_version_key(key):
            continue
        base_value = base.get(key)
        if (
            key in base
            and isinstance(base_value, Mapping)
            and isinstance(current_value, Mapping)
        ):
            _merge_into(
                base_value,
                current_value,
                top_level=False,
                preserve_comments=preserve_comments,
            )
        else:
            base[key] = deepcopy(current_value)
    if default_layout is not None and current_layout is not None:
        _rebuild_comments(base, default_layout, current_layout)


def merge_documents(
    default: Any, current: Any, *, preserve_comments: bool = False
) -> MergeResult:
    """
    Merge ``current`` (the user's document) into ``default``.

    The result contains every key of ``default``. For keys present on both
    sides the user's value wins, except the top-level ``version`` key, which
    always keeps the default's value. Nested mappings present on both sides
    merge key by key; any other pairing, including a scalar on one side and
    a mapping on the other, is replaced wholesale by the user's value. Keys
    only the user has are kept.

    With ``preserve_comments`` set (ruamel.yaml round-trip documents), each
    key keeps the user's comments when the user wrote any and the default's
    otherwise: the end-of-line comment and the full-line comments above it
    are resolved separately, so keys the default adds keep their own
    comments.

    ``changed`` is True when the current document's version is older than
    the default's, the condition under which the update coordinator
    rewrites the file.

    Neither input is mutated.

    Raises:
        StructureError: Either document is not a mapping.
    """
    if not isinstance(default, MutableMapping):
        raise StructureError(
            f"The default config root must be a mapping, got {type(default).__name__}"
        )
    if not isinstance(current, Mapping):
        raise StructureError(
            f"The current config root must be a mapping, got {type(current).__name__}"
        )

    merged = deepcopy(default)
    _merge_into(merged, current, top_level=True, preserve_comments=preserve_comments)
    changed = is_older_version(find_version(current), find_version(default))
    return MergeResult(document=merged, changed=changed)


def merge_tree(default: Any, current: Any) -> MergeResult:
    """Merge two ruamel.yaml round-trip documents, keeping the user's comments."""
    return merge_documents(default, current, preserve_comments=True)


def flatten(nested: Mapping, prefix: str = "") -> dict:
    """Flatten a nested mapping to a dotpath map."""
    items: dict = {}
    for key, value in nested.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping) and value:
            items.update(flatten(value, full_key))
        else:
            items[full_key] = value
    return items
