"""
MergeOperations class for inserting one document into another.

The foreign document is never modified: its main document, styles,
numbering, notes and font table are deep-copied into a MergeContext, the
copies are rewritten so that every identifier they use is valid in the host,
and only then are the rewritten elements moved into the host's parts.

The steps run in a fixed order because later steps depend on earlier
rewrites: numbering ids must be final before styles are compared, and
footnote content must carry host style ids before it is imported.
"""

from __future__ import annotations

import logging
import random
from copy import deepcopy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lxml import etree

from ..constants import (
    CUSTOM_PROPERTIES_NAMESPACE,
    DEFAULT_CUSTOM_PROPERTIES_PART,
    DEFAULT_FONT_TABLE_PART,
    MAX_PARAGRAPH_ID,
    NSMAP_FULL,
    VT_NAMESPACE,
    w,
    w14,
    wp,
)
from ..content_types import ContentTypes
from ..ids import IdKind, next_id
from ..relationships import RelationshipTypes, relative_target
from .merge_notes import ENDNOTES, FOOTNOTES, merge_notes
from .merge_numbering import merge_numbering
from .merge_relationships import RelationshipImporter, apply_relationship_ids
from .merge_styles import merge_styles

if TYPE_CHECKING:
    from ..document import Document

logger = logging.getLogger(__name__)

_COMMENT_MARKERS = (w("commentRangeStart"), w("commentRangeEnd"), w("commentReference"))


def _custom(tag: str) -> str:
    return f"{{{CUSTOM_PROPERTIES_NAMESPACE}}}{tag}"


@dataclass
class MergeResult:
    """What a merge added to the host document.

    Attributes:
        blocks: Body-level elements inserted (paragraphs, tables, ...)
        styles: Styles imported (identical styles are reused, not counted)
        abstract_numberings: Abstract numbering definitions imported
        numbering_instances: Numbering instances imported
        footnotes: Footnotes imported
        endnotes: Endnotes imported
        fonts: Font table entries imported
        custom_properties: Custom document properties imported
        images: Image parts added (identical images are reused, not counted)
        parts: Other parts cloned (charts, embedded objects, ...)
        relationships: Relationships added to the host main document
    """

    blocks: int = 0
    styles: int = 0
    abstract_numberings: int = 0
    numbering_instances: int = 0
    footnotes: int = 0
    endnotes: int = 0
    fonts: int = 0
    custom_properties: int = 0
    images: int = 0
    parts: int = 0
    relationships: int = 0

    def __str__(self) -> str:
        counts = ", ".join(f"{name}={value}" for name, value in vars(self).items() if value)
        return f"MergeResult({counts or 'nothing added'})"


@dataclass
class MergeContext:
    """Working copies of the foreign document's trees during one merge.

    Attributes:
        host: Document receiving the content
        foreign: Document providing the content (read only)
        document: Copy of the foreign w:document root
        styles: Copy of the foreign w:styles root, if any
        numbering: Copy of the foreign w:numbering root, if any
        footnotes: Copy of the foreign w:footnotes root, if any
        endnotes: Copy of the foreign w:endnotes root, if any
        font_table: Copy of the foreign w:fonts root, if any
        numbering_elements: Foreign numbering elements moved into the host,
            still subject to style id rewrites
        num_id_map: Foreign numId -> host numId of the imported instances
        moved_notes: Foreign footnotes and endnotes moved into the host
        cloned_parts: Foreign part name -> host part name of every part
            copied so far
        host_relationship_ids: Relationship ids to rewrite in the host's own
            main document
        result: Counters reported back to the caller
    """

    host: Document
    foreign: Document
    document: etree._Element
    styles: etree._Element | None = None
    numbering: etree._Element | None = None
    footnotes: etree._Element | None = None
    endnotes: etree._Element | None = None
    font_table: etree._Element | None = None
    numbering_elements: list[etree._Element] = field(default_factory=list)
    num_id_map: dict[int, int] = field(default_factory=dict)
    moved_notes: list[etree._Element] = field(default_factory=list)
    cloned_parts: dict[str, str] = field(default_factory=dict)
    host_relationship_ids: dict[str, str] = field(default_factory=dict)
    result: MergeResult = field(default_factory=MergeResult)

    @property
    def content_trees(self) -> list[etree._Element]:
        """Foreign trees holding body content: main document and notes."""
        return [
            tree for tree in (self.document, self.footnotes, self.endnotes) if tree is not None
        ]


class MergeOperations:
    """Handles inserting the content of another document.

    Example:
        >>> # Usually accessed through Document
        >>> doc = Document("report.docx")
        >>> result = doc.insert_document("appendix.docx")
        >>> result.styles, result.images
        (2, 1)
    """

    def __init__(self, document: Document) -> None:
        """Initialize MergeOperations with a Document reference.

        Args:
            document: The Document instance receiving merged content
        """
        self._document = document

    def merge(self, foreign: Document, append: bool = True) -> MergeResult:
        """Insert the body of another document into this one.

        Args:
            foreign: Document to import; it is not modified
            append: Add the content at the end of the body (True) or at the
                start (False)

        Returns:
            MergeResult with the number of imported items of each kind
        """
        context = self._prepare(foreign)
        importer = RelationshipImporter(context)

        merge_numbering(context)
        merge_styles(context)
        merge_notes(context, FOOTNOTES, importer)
        merge_notes(context, ENDNOTES, importer)
        self._merge_fonts(context, importer)
        self._merge_custom_properties(context)
        self._merge_comments(context, importer)
        self._merge_relationships(context, importer)
        self._shift_ids(context)
        self._splice(context, append)

        logger.info(f"Merged document: {context.result}")
        return context.result

    # -------------------------------------------------------------------------
    # Preparation
    # -------------------------------------------------------------------------

    def _prepare(self, foreign: Document) -> MergeContext:
        """Copy the foreign trees and strip what never travels with content."""

        def copy_of(part_name: str | None) -> etree._Element | None:
            if part_name is None:
                return None
            root = foreign.cache.get(part_name)
            return deepcopy(root) if root is not None else None

        context = MergeContext(
            host=self._document,
            foreign=foreign,
            document=deepcopy(foreign.xml_root),
            styles=copy_of(foreign.related_part(RelationshipTypes.STYLES)),
            numbering=copy_of(foreign.related_part(RelationshipTypes.NUMBERING)),
            footnotes=copy_of(foreign.related_part(RelationshipTypes.FOOTNOTES)),
            endnotes=copy_of(foreign.related_part(RelationshipTypes.ENDNOTES)),
            font_table=copy_of(foreign.related_part(RelationshipTypes.FONT_TABLE)),
        )

        for reference in list(
            context.document.iter(w("headerReference"), w("footerReference"))
        ):
            reference.getparent().remove(reference)

        body = context.document.find(w("body"))
        if body is not None and len(body) and body[-1].tag == w("sectPr"):
            body.remove(body[-1])
        return context

    # -------------------------------------------------------------------------
    # Fonts, custom properties and comments
    # -------------------------------------------------------------------------

    def _merge_fonts(self, context: MergeContext, importer: RelationshipImporter) -> None:
        """Add foreign fonts whose w:name the host font table lacks."""
        if context.font_table is None:
            return
        host = context.host
        host_part = host.ensure_part(
            RelationshipTypes.FONT_TABLE,
            ContentTypes.FONT_TABLE,
            DEFAULT_FONT_TABLE_PART,
            lambda: etree.Element(w("fonts"), nsmap=NSMAP_FULL),
        )
        host_root = host.cache.require(host_part)
        known = {font.get(w("name")) for font in host_root.findall(w("font"))}

        fonts = []
        for font in context.font_table.findall(w("font")):
            name = font.get(w("name"))
            if name in known:
                continue
            known.add(name)
            fonts.append(font)
        if not fonts:
            return

        # Embedded fonts point at obfuscated font parts through r:id
        foreign_part = context.foreign.related_part(RelationshipTypes.FONT_TABLE)
        if foreign_part is not None:
            mapping = importer.import_relationships(foreign_part, host_part, fonts)
            apply_relationship_ids(fonts, mapping)

        host_root.extend(fonts)
        host.cache.mark_dirty(host_part)
        context.result.fonts += len(fonts)
        logger.debug(f"Imported {len(fonts)} fonts")

    def _merge_custom_properties(self, context: MergeContext) -> None:
        """Union of custom document properties by name; host values win."""
        foreign_part = context.foreign.relationships_for("").get_target_part(
            RelationshipTypes.CUSTOM_PROPERTIES
        )
        if foreign_part is None:
            return
        foreign_root = context.foreign.cache.get(foreign_part)
        if foreign_root is None:
            return

        host = context.host
        package_rels = host.relationships_for("")
        host_part = package_rels.get_target_part(RelationshipTypes.CUSTOM_PROPERTIES)
        host_root = host.cache.get(host_part) if host_part is not None else None
        if host_root is None:
            host_part = host_part or DEFAULT_CUSTOM_PROPERTIES_PART
            host_root = etree.Element(
                _custom("Properties"),
                nsmap={None: CUSTOM_PROPERTIES_NAMESPACE, "vt": VT_NAMESPACE},
            )
            host.cache.add(host_part, host_root)
            host.content_types.add_override(host_part, ContentTypes.CUSTOM_PROPERTIES)
            package_rels.add_relationship(RelationshipTypes.CUSTOM_PROPERTIES, host_part)

        properties = host_root.findall(_custom("property"))
        names = {prop.get("name") for prop in properties}
        # pids 0 and 1 are reserved by the property set format
        pid = max([int(prop.get("pid", "1")) for prop in properties] + [1]) + 1

        added = 0
        for prop in foreign_root.findall(_custom("property")):
            name = prop.get("name")
            if name in names:
                logger.debug(f"Custom property {name!r} already exists; keeping host value")
                continue
            copy = deepcopy(prop)
            copy.set("pid", str(pid))
            host_root.append(copy)
            names.add(name)
            pid += 1
            added += 1

        if added:
            host.cache.mark_dirty(host_part)
            context.result.custom_properties += added

    def _merge_comments(self, context: MergeContext, importer: RelationshipImporter) -> None:
        """Bring foreign comments along, or drop their markers.

        A host without comments receives copies of the foreign comment
        parts. A host that already has comments keeps its own; the foreign
        comment anchors are removed since their ids would collide.
        """
        foreign_rels = context.foreign.relationships
        foreign_comment_rels = [
            relationship
            for relationship in foreign_rels.relationships()
            if relationship.rel_type in RelationshipTypes.COMMENT_TYPES
        ]
        markers = list(context.document.iter(*_COMMENT_MARKERS))
        if not foreign_comment_rels and not markers:
            return

        host_rels = context.host.relationships
        if host_rels.has_relationship(RelationshipTypes.COMMENTS) or not foreign_comment_rels:
            for marker in markers:
                parent = marker.getparent()
                parent.remove(marker)
                if parent.tag == w("r") and all(child.tag == w("rPr") for child in parent):
                    parent.getparent().remove(parent)
            if markers:
                logger.warning(
                    f"Removed {len(markers)} comment markers from the inserted document; "
                    "the host document keeps its own comments"
                )
            return

        for relationship in foreign_comment_rels:
            host_part = importer.clone_part(foreign_rels.target_part(relationship))
            host_rels.add_relationship(
                relationship.rel_type, relative_target(host_rels.part_name, host_part)
            )
        logger.debug(f"Copied {len(foreign_comment_rels)} comment parts")

    # -------------------------------------------------------------------------
    # Relationships, ids and splicing
    # -------------------------------------------------------------------------

    def _merge_relationships(
        self, context: MergeContext, importer: RelationshipImporter
    ) -> None:
        """Import the main document's images, hyperlinks and embedded parts."""
        host = context.host
        mapping = importer.import_relationships(
            context.foreign.main_part, host.main_part, [context.document], main_document=True
        )
        apply_relationship_ids([context.document], mapping)

        if context.host_relationship_ids:
            changed = apply_relationship_ids([host.xml_root], context.host_relationship_ids)
            if changed:
                host.cache.mark_dirty(host.main_part)
                logger.debug(f"Rewrote {changed} relationship references in the host")

    def _shift_ids(self, context: MergeContext) -> None:
        """Move drawing, bookmark and paragraph ids clear of the host's."""
        host_root = context.host.xml_root

        drawing_id = next_id(host_root, IdKind.DRAWING)
        for doc_pr in context.document.iter(wp("docPr")):
            doc_pr.set("id", str(drawing_id))
            drawing_id += 1

        # Bookmark and paragraph ids are unique across the body and the notes
        host_trees = [host_root, *self._host_notes(context)]
        foreign_trees = [context.document, *context.moved_notes]

        bookmark_id = max(next_id(tree, IdKind.BOOKMARK) for tree in host_trees)
        for tree in foreign_trees:
            bookmarks: dict[str, str] = {}
            for start in tree.iter(w("bookmarkStart")):
                old = start.get(w("id"))
                if old is None:
                    continue
                bookmarks[old] = str(bookmark_id)
                start.set(w("id"), str(bookmark_id))
                bookmark_id += 1
            for end in tree.iter(w("bookmarkEnd")):
                new = bookmarks.get(end.get(w("id"), ""))
                if new is not None:
                    end.set(w("id"), new)

        used = {
            value
            for tree in host_trees
            for element in tree.iter()
            if (value := element.get(w14("paraId"))) is not None
        }
        regenerated = 0
        for element in (element for tree in foreign_trees for element in tree.iter()):
            value = element.get(w14("paraId"))
            if value is None:
                continue
            if value in used:
                value = _new_paragraph_id(used)
                element.set(w14("paraId"), value)
                regenerated += 1
            used.add(value)
        if regenerated:
            logger.debug(f"Regenerated {regenerated} colliding paragraph ids")

    def _host_notes(self, context: MergeContext) -> list[etree._Element]:
        """The host's own footnotes and endnotes, without the ones just moved in."""
        host = context.host
        moved = set(context.moved_notes)
        notes = []
        for part_name in (host.footnotes_part, host.endnotes_part):
            root = host.cache.get(part_name)
            if root is not None:
                notes.extend(note for note in root if note not in moved)
        return notes

    def _splice(self, context: MergeContext, append: bool) -> None:
        """Move the foreign body blocks into the host body."""
        host = context.host
        self._merge_root_attributes(context)

        foreign_body = context.document.find(w("body"))
        blocks = list(foreign_body) if foreign_body is not None else []
        if append:
            for block in blocks:
                host.append_block(block)
        else:
            body = host.body
            for index, block in enumerate(blocks):
                body.insert(index, block)
        host.cache.mark_dirty(host.main_part)
        context.result.blocks += len(blocks)

    def _merge_root_attributes(self, context: MergeContext) -> None:
        """Copy namespace declarations and attributes the host root lacks.

        Existing host values are never overwritten. Prefixes only named in
        attribute values (mc:Ignorable, AlternateContent/@Requires) must be
        declared on the root, so a host missing any foreign declaration gets
        a rebuilt root element.
        """
        host = context.host
        host_root = host.xml_root
        foreign_root = context.document

        nsmap = dict(foreign_root.nsmap)
        nsmap.update(host_root.nsmap)
        if nsmap != host_root.nsmap:
            new_root = etree.Element(host_root.tag, dict(host_root.attrib), nsmap=nsmap)
            new_root.text = host_root.text
            new_root.extend(list(host_root))
            host.replace_main_root(new_root)
            host_root = new_root

        for name, value in foreign_root.attrib.items():
            if name not in host_root.attrib:
                host_root.set(name, value)
        host.cache.mark_dirty(host.main_part)


def _new_paragraph_id(used: set[str]) -> str:
    while True:
        value = f"{random.randint(1, MAX_PARAGRAPH_ID):08X}"
        if value not in used:
            return value
