"""
Footnote and endnote import for document merges.

Note ids are shifted above the host's highest id. The complete old -> new
map is computed before anything moves, and the references in the foreign
body are rewritten from it in one pass, so that a shifted id can never be
mistaken for an id that still has to be shifted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lxml import etree

from ..constants import DEFAULT_ENDNOTES_PART, DEFAULT_FOOTNOTES_PART, w
from ..content_types import ContentTypes
from ..ids import IdKind, next_id
from ..relationships import RelationshipTypes
from ..resources import default_endnotes_template, default_footnotes_template
from .merge_relationships import RelationshipImporter, apply_relationship_ids

if TYPE_CHECKING:
    from .merge import MergeContext

logger = logging.getLogger(__name__)

# Notes of these types hold separator lines, not content
_SPECIAL_TYPES = frozenset({"separator", "continuationSeparator", "continuationNotice"})


@dataclass(frozen=True)
class NoteKind:
    """Everything that differs between footnotes and endnotes.

    Attributes:
        name: "footnotes" or "endnotes"; also the MergeContext attribute
        note_tag: Tag of one note
        reference_tag: Tag of the body element pointing at a note
        rel_type: Relationship type from the main document
        content_type: Content type of the part
        default_part: Part name used when the host has none
        template: Factory for an empty part
        id_kind: Counter kind for next_id()
    """

    name: str
    note_tag: str
    reference_tag: str
    rel_type: str
    content_type: str
    default_part: str
    template: Callable[[], etree._Element]
    id_kind: IdKind


FOOTNOTES = NoteKind(
    name="footnotes",
    note_tag=w("footnote"),
    reference_tag=w("footnoteReference"),
    rel_type=RelationshipTypes.FOOTNOTES,
    content_type=ContentTypes.FOOTNOTES,
    default_part=DEFAULT_FOOTNOTES_PART,
    template=default_footnotes_template,
    id_kind=IdKind.FOOTNOTE,
)

ENDNOTES = NoteKind(
    name="endnotes",
    note_tag=w("endnote"),
    reference_tag=w("endnoteReference"),
    rel_type=RelationshipTypes.ENDNOTES,
    content_type=ContentTypes.ENDNOTES,
    default_part=DEFAULT_ENDNOTES_PART,
    template=default_endnotes_template,
    id_kind=IdKind.ENDNOTE,
)


def _note_id(note: etree._Element) -> int | None:
    try:
        return int(note.get(w("id"), ""))
    except ValueError:
        return None


def content_notes(root: etree._Element, kind: NoteKind) -> list[etree._Element]:
    """Notes that carry content, skipping separators and ids below 1."""
    notes = []
    for note in root.findall(kind.note_tag):
        if note.get(w("type")) in _SPECIAL_TYPES:
            continue
        note_id = _note_id(note)
        if note_id is None or note_id <= 0:
            continue
        notes.append(note)
    return notes


def merge_notes(context: MergeContext, kind: NoteKind, importer: RelationshipImporter) -> None:
    """Import the foreign footnotes or endnotes into the host.

    Args:
        context: Merge in progress; references in its main document copy
            are rewritten to the new note ids
        kind: FOOTNOTES or ENDNOTES
        importer: Relationship importer of this merge, for images and
            hyperlinks inside notes
    """
    foreign_root = getattr(context, kind.name)
    if foreign_root is None:
        return
    notes = content_notes(foreign_root, kind)
    if not notes:
        return

    host = context.host
    host_part = host.ensure_part(kind.rel_type, kind.content_type, kind.default_part, kind.template)
    host_root = host.cache.require(host_part)

    start = next_id(host_root, kind.id_kind)
    old_ids = sorted({_note_id(note) for note in notes})
    mapping = {str(old): str(start + index) for index, old in enumerate(old_ids)}

    for reference in context.document.iter(kind.reference_tag):
        new = mapping.get(reference.get(w("id"), ""))
        if new is not None:
            reference.set(w("id"), new)

    foreign_part = context.foreign.related_part(kind.rel_type)
    if foreign_part is not None:
        relationship_ids = importer.import_relationships(foreign_part, host_part, notes)
        apply_relationship_ids(notes, relationship_ids)

    existing = host_root.findall(kind.note_tag)
    anchor = existing[-1] if existing else None
    for note in reversed(notes):
        note.set(w("id"), mapping[str(_note_id(note))])
        if anchor is not None:
            anchor.addnext(note)
        else:
            host_root.insert(0, note)
    context.moved_notes.extend(notes)

    host.cache.mark_dirty(host_part)
    count = len(notes)
    if kind is FOOTNOTES:
        context.result.footnotes += count
    else:
        context.result.endnotes += count
    logger.debug(f"Imported {count} {kind.name} starting at id {start}")
