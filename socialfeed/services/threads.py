"""Reconstruction of two-tier comment threads from a flat comment list."""

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol


class ThreadableComment(Protocol):
    id: Any
    parent_comment_id: Any
    created_at: datetime


@dataclass
class CommentThread:
    """A top-level comment and every descendant reply, flattened one level deep."""

    comment: Any
    replies: list[Any] = field(default_factory=list)


def _by_created_at(item: ThreadableComment) -> datetime:
    # Naive timestamps are UTC
    created_at = item.created_at
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


def find_root_id(
    comment: ThreadableComment,
    by_id: dict[Hashable, ThreadableComment],
    cache: dict[Hashable, Hashable] | None = None,
) -> Hashable:
    """
    Walk parent links until a top-level comment is reached and return its id.

    When a parent id is not present in ``by_id`` the missing id itself is
    used as the root key. A repeated id (a cycle) also stops the walk.
    """
    cache = {} if cache is None else cache
    path: list[Hashable] = []
    seen: set[Hashable] = set()
    current = comment

    while True:
        if current.id in cache:
            root = cache[current.id]
            break
        if current.parent_comment_id is None:
            root = current.id
            break
        if current.id in seen:
            root = current.id
            break
        seen.add(current.id)
        path.append(current.id)

        parent = by_id.get(current.parent_comment_id)
        if parent is None:
            root = current.parent_comment_id
            break
        current = parent

    for comment_id in path:
        cache[comment_id] = root
    return root


def build_threads(comments: Iterable[ThreadableComment]) -> list[CommentThread]:
    """
    Group a post's comments into display threads.

    Top-level comments (no parent) become thread roots in chronological
    order. Each reply, however deeply nested, is attached to its top-level
    ancestor, and each thread's replies are sorted by ``created_at``.
    Replies whose ancestry ends at a comment that is not in ``comments``
    belong to no thread and are left out.
    """
    comments = list(comments)
    by_id = {c.id: c for c in comments}

    top_level = [c for c in comments if c.parent_comment_id is None]
    all_replies = [c for c in comments if c.parent_comment_id is not None]

    cache: dict[Hashable, Hashable] = {}
    replies_by_root: dict[Hashable, list[ThreadableComment]] = {}
    for reply in all_replies:
        root_id = find_root_id(reply, by_id, cache)
        replies_by_root.setdefault(root_id, []).append(reply)

    return [
        CommentThread(
            comment=root,
            replies=sorted(replies_by_root.get(root.id, []), key=_by_created_at),
        )
        for root in sorted(top_level, key=_by_created_at)
    ]


def collect_descendant_ids(
    comments: Sequence[ThreadableComment], comment_id: Hashable
) -> list[Hashable]:
    """Return the ids of every transitive reply to ``comment_id``."""
    children: dict[Hashable, list[Hashable]] = {}
    for c in comments:
        if c.parent_comment_id is not None:
            children.setdefault(c.parent_comment_id, []).append(c.id)

    descendants: list[Hashable] = []
    visited = {comment_id}
    stack = list(children.get(comment_id, []))
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        descendants.append(current)
        stack.extend(children.get(current, []))
    return descendants
