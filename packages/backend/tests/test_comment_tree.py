"""Comment threading — built in Python from a flat, oldest-first list."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from taskboard.schemas.task import build_comment_tree

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
TASK = uuid.uuid4()
AUTHOR = SimpleNamespace(name="Ada")


def _comment(minute, parent=None, author=AUTHOR):
    return SimpleNamespace(
        id=uuid.uuid4(),
        task_id=TASK,
        author_id=uuid.uuid4(),
        author=author,
        parent_id=parent.id if parent else None,
        content=f"comment at {minute}",
        created_at=T0 + timedelta(minutes=minute),
        updated_at=T0 + timedelta(minutes=minute),
    )


def test_replies_nest_under_parent_in_order():
    root = _comment(0)
    second_root = _comment(1)
    reply = _comment(2, parent=root)
    nested = _comment(3, parent=reply)
    late_reply = _comment(4, parent=root)

    tree = build_comment_tree([root, second_root, reply, nested, late_reply])

    assert [c.id for c in tree] == [root.id, second_root.id]
    assert [c.id for c in tree[0].replies] == [reply.id, late_reply.id]
    assert [c.id for c in tree[0].replies[0].replies] == [nested.id]
    assert tree[1].replies == []
    assert tree[0].author_name == "Ada"


def test_orphan_reply_is_shown_at_top_level():
    missing_parent = _comment(0)
    orphan = _comment(1, parent=missing_parent)
    tree = build_comment_tree([orphan])
    assert [c.id for c in tree] == [orphan.id]


def test_comment_without_author_row():
    tree = build_comment_tree([_comment(0, author=None)])
    assert tree[0].author_name is None


def test_empty():
    assert build_comment_tree([]) == []
