"""Sequence-node predicates.

A lock request is an ephemeral sequential node. Whether a request holds
its lock, and whether a key is locked at all, both come down to one
question about the siblings of a node: is there one (optionally with a
given name prefix) whose sequence index is below some bound?
"""

import posixpath
import re

from src.session.manager import Session, parent_of

_TRAILING_DIGITS = re.compile(r"[0-9]+$")

# Name filter meaning "siblings named like base_key itself"
SAME_NAME = True


def extract_index(path: str) -> int | None:
    """Sequence index of a node: its trailing digits, or None if it has none."""
    match = _TRAILING_DIGITS.search(path)
    if match is None:
        return None
    return int(match.group(0))


def any_sibling_below(
    session: Session,
    base_key: str,
    index_filter: int | None = None,
    name_filter: bool | str = False,
) -> bool:
    """Check for sibling nodes of base_key that match the filters.

    base_key is a full node path without its sequence suffix, e.g.
    ``/locks/orders/write-``; the siblings checked are the children of its
    parent directory.

    Args:
        session: Session to query.
        base_key: Full path prefix of the nodes in question.
        index_filter: If given, only siblings with a sequence index strictly
            below it match; siblings that are not sequence nodes never do.
            If None, any sibling surviving the name filter matches.
        name_filter: SAME_NAME to only consider siblings whose path starts
            with base_key, a string to only consider siblings whose path
            starts with that string, False to consider all siblings.

    Returns:
        True if a matching sibling exists. A missing parent means nothing
        can be locked there, so that is False.
    """
    parent = parent_of(base_key)
    if not session.client.exists(parent):
        return False

    if name_filter is True:
        prefix = base_key
    elif isinstance(name_filter, str):
        prefix = name_filter
    else:
        prefix = None

    for child_name in session.client.get_children(parent):
        child = posixpath.join(parent, child_name)
        if prefix is not None and not child.startswith(prefix):
            continue

        if index_filter is None:
            return True

        child_index = extract_index(child_name)
        if child_index is None:
            # Not a sequence node
            continue
        if child_index < index_filter:
            return True

    return False
