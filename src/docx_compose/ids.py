"""
Identifier allocation for WordprocessingML parts.

Every counter a document needs (numbering ids, relationship ids, drawing ids,
note ids, bookmark ids) is computed on demand by scanning the tree that owns
it. There is no hidden state: calling next_id() twice without changing the
tree returns the same value.

Tracked-change ids are the exception. They only have to be unique at save
time, so edits use provisional ids and renumber_tracked_changes() assigns the
final sequence right before serialization.
"""

import logging
import re
from collections.abc import Iterable
from enum import Enum

from lxml import etree

from .constants import rel, w, wp

logger = logging.getLogger(__name__)

_RELATIONSHIP_ID = re.compile(r"^rId(\d+)$")


class IdKind(Enum):
    """Counter kinds that next_id() can allocate."""

    ABSTRACT_NUMBERING = "abstractNum"
    NUMBERING = "num"
    RELATIONSHIP = "relationship"
    DRAWING = "drawing"
    DOCUMENT = "document"
    FOOTNOTE = "footnote"
    ENDNOTE = "endnote"
    BOOKMARK = "bookmark"


# kind -> ((tag, attribute) pairs scanned, floor returned for an empty tree)
_SCANS: dict[IdKind, tuple[tuple[tuple[str, str], ...], int]] = {
    IdKind.ABSTRACT_NUMBERING: (((w("abstractNum"), w("abstractNumId")),), 0),
    IdKind.NUMBERING: (((w("num"), w("numId")),), 1),
    IdKind.DRAWING: (((wp("docPr"), "id"),), 1),
    IdKind.DOCUMENT: (((wp("docPr"), "id"), (w("bookmarkStart"), w("id"))), 1),
    IdKind.FOOTNOTE: (((w("footnote"), w("id")),), 1),
    IdKind.ENDNOTE: (((w("endnote"), w("id")),), 1),
    IdKind.BOOKMARK: (((w("bookmarkStart"), w("id")),), 0),
}


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def existing_ids(root: etree._Element, kind: IdKind) -> list[int]:
    """Collect the integer ids of one kind present in a tree.

    Values that are not integers are ignored.

    Args:
        root: Tree to scan (numbering part, rels part, main document, ...)
        kind: Counter kind

    Returns:
        The ids in document order, duplicates included
    """
    if kind is IdKind.RELATIONSHIP:
        found = []
        for elem in root.iter(rel("Relationship")):
            match = _RELATIONSHIP_ID.match(elem.get("Id", ""))
            if match:
                found.append(int(match.group(1)))
        return found

    pairs, _ = _SCANS[kind]
    found = []
    for tag, attribute in pairs:
        for elem in root.iter(tag):
            value = _parse_int(elem.get(attribute))
            if value is not None:
                found.append(value)
    return found


def next_id(root: etree._Element | None, kind: IdKind) -> int:
    """Compute the next free identifier of a kind.

    The result is max(existing) + 1, or the kind's floor when the tree holds
    no id of that kind (0 for abstract numbering and bookmarks, 1 otherwise).

    Args:
        root: Tree owning the counter, or None when the part does not exist
        kind: Counter kind

    Returns:
        The next free identifier
    """
    floor = 1 if kind is IdKind.RELATIONSHIP else _SCANS[kind][1]
    if root is None:
        return floor
    ids = existing_ids(root, kind)
    if not ids:
        return floor
    return max(max(ids) + 1, floor)


def renumber_tracked_changes(roots: Iterable[etree._Element | None]) -> int:
    """Assign sequential ids to every w:ins and w:del element.

    Ids run 0..n-1 across the given trees, in the order the trees are passed
    and in document order within each tree. Callers pass the main document
    first, then headers, footers, footnotes and endnotes.

    Args:
        roots: Trees to renumber; None entries are skipped

    Returns:
        Number of tracked-change elements renumbered
    """
    tags = {w("ins"), w("del")}
    counter = 0
    for root in roots:
        if root is None:
            continue
        for elem in root.iter(*tags):
            elem.set(w("id"), str(counter))
            counter += 1
    logger.debug(f"Renumbered {counter} tracked changes")
    return counter
