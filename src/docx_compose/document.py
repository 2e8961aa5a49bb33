"""
Document class for composing and editing Word documents.

This module provides the main Document class which handles loading .docx
files, editing paragraph text, merging other documents in, and saving the
result. Parsed parts are owned by a PartCache; managers for styles,
numbering, relationships and content types are created lazily on top of it.
"""

import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO

from lxml import etree

from .constants import (
    DEFAULT_ENDNOTES_PART,
    DEFAULT_FOOTNOTES_PART,
    DEFAULT_MAIN_PART,
    DEFAULT_NUMBERING_PART,
    DEFAULT_STYLES_PART,
    PACKAGE_RELS_PART,
    w,
)
from .content_types import ContentTypeManager, ContentTypes
from .editing import TrackedChange, build_run
from .editing import insert_text as _insert_text
from .editing import remove_text as _remove_text
from .editing import replace_text as _replace_text
from .editing import split_paragraph as _split_paragraph
from .errors import InvalidArgumentError, ValidationError
from .formatted_text import FormattedText
from .formatted_text import get_formatted_text as _get_formatted_text
from .ids import IdKind, renumber_tracked_changes
from .ids import next_id as _next_id
from .models.numbering import ListKind
from .numbering import NumberingManager
from .operations.merge import MergeOperations, MergeResult
from .operations.merge_images import find_image_parts
from .package import OOXMLPackage
from .part_cache import PartCache
from .relationships import RelationshipManager, RelationshipTypes, relative_target
from .resources import (
    default_numbering_template,
    default_styles_template,
    empty_numbering_template,
    generate_hex_id,
    list_paragraph_style,
)
from .styles import StyleManager

if TYPE_CHECKING:
    from .models.paragraph import Paragraph

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "docx-compose"
LIST_PARAGRAPH_STYLE_ID = "ListParagraph"
MAX_LIST_LEVEL = 8


class Document:
    """Main class for working with Word documents.

    Documents can be loaded from:
    - File paths (str or Path)
    - Raw bytes
    - BytesIO objects
    - Open file objects (in binary mode)

    Example:
        >>> doc = Document("report.docx")
        >>> doc.insert_document("appendix.docx")
        >>> doc.save("report_with_appendix.docx")

    Example with bytes:
        >>> with open("report.docx", "rb") as f:
        ...     doc = Document(f.read())
        >>> doc.insert_text(0, 0, "DRAFT ", track=True)
        >>> doc_bytes = doc.save_to_bytes()

    Attributes:
        path: Path to the document file (None for in-memory documents)
        author: Author name for tracked changes
        main_part: Name of the main document part (usually "word/document.xml")
        xml_root: Root element of the main document part
    """

    def __init__(
        self,
        source: str | Path | bytes | BinaryIO,
        author: str = DEFAULT_AUTHOR,
    ) -> None:
        """Initialize a Document from a .docx file or in-memory data.

        Args:
            source: Document source - can be:
                    - Path to a .docx file (str or Path)
                    - Raw bytes of a .docx file
                    - BytesIO object containing a .docx file
                    - Open file object in binary mode
            author: Author name recorded on tracked changes

        Raises:
            ValidationError: If the document cannot be loaded or is invalid
        """
        if isinstance(source, bytes):
            stream: BinaryIO | None = io.BytesIO(source)
            self.path: Path | None = None
        elif hasattr(source, "read"):
            stream = source  # type: ignore[assignment]
            self.path = None
        else:
            stream = None
            self.path = Path(source)

        self.author = author
        self._package = OOXMLPackage.open(stream if stream is not None else self.path)
        self._cache = PartCache(self._package)
        self.main_part = self._locate_main_part()

        root = self._cache.get(self.main_part)
        if root is None:
            source_desc = str(self.path) if self.path else "<in-memory document>"
            raise ValidationError(f"{self.main_part} not found in {source_desc}")
        self.xml_root = root

    @classmethod
    def open(cls, source: str | Path | bytes | BinaryIO, author: str = DEFAULT_AUTHOR) -> "Document":
        """Open a document; alias of the constructor."""
        return cls(source, author=author)

    def _locate_main_part(self) -> str:
        """Find the main document part through the package relationships."""
        if self._cache.get(PACKAGE_RELS_PART) is None:
            return DEFAULT_MAIN_PART
        package_rels = RelationshipManager(self._cache, "")
        return package_rels.get_target_part(RelationshipTypes.OFFICE_DOCUMENT) or DEFAULT_MAIN_PART

    # -------------------------------------------------------------------------
    # Managers (lazy initialization)
    # -------------------------------------------------------------------------

    @property
    def package(self) -> OOXMLPackage:
        """The underlying OOXML container."""
        return self._package

    @property
    def cache(self) -> PartCache:
        """The cache owning every parsed part of this document."""
        return self._cache

    @property
    def content_types(self) -> ContentTypeManager:
        """Get the ContentTypeManager instance (lazy initialization)."""
        if not hasattr(self, "_content_types_instance"):
            self._content_types_instance = ContentTypeManager(self._cache)
        return self._content_types_instance

    @property
    def relationships(self) -> RelationshipManager:
        """Relationships of the main document part."""
        return self.relationships_for(self.main_part)

    def relationships_for(self, part_name: str) -> RelationshipManager:
        """Get the RelationshipManager of any part (one instance per part)."""
        if not hasattr(self, "_relationship_managers"):
            self._relationship_managers: dict[str, RelationshipManager] = {}
        manager = self._relationship_managers.get(part_name)
        if manager is None:
            manager = RelationshipManager(self._cache, part_name)
            self._relationship_managers[part_name] = manager
        return manager

    def related_part(self, rel_type: str) -> str | None:
        """Part the main document links to with a relationship type, if any."""
        return self.relationships.get_target_part(rel_type)

    def related_parts(self, rel_type: str) -> list[str]:
        """All internal parts the main document links to with a relationship type."""
        manager = self.relationships
        return [
            manager.target_part(relationship)
            for relationship in manager.relationships()
            if relationship.rel_type == rel_type and not relationship.is_external
        ]

    @property
    def styles(self) -> StyleManager:
        """Get the StyleManager instance (lazy initialization)."""
        if not hasattr(self, "_styles_instance"):
            part_name = self.related_part(RelationshipTypes.STYLES) or DEFAULT_STYLES_PART
            self._styles_instance = StyleManager(self._cache, part_name)
        return self._styles_instance

    @property
    def numbering(self) -> NumberingManager:
        """Get the NumberingManager instance (lazy initialization)."""
        if not hasattr(self, "_numbering_instance"):
            part_name = self.related_part(RelationshipTypes.NUMBERING) or DEFAULT_NUMBERING_PART
            self._numbering_instance = NumberingManager(self._cache, part_name)
        return self._numbering_instance

    @property
    def _merge_ops(self) -> MergeOperations:
        """Get the MergeOperations instance (lazy initialization)."""
        if not hasattr(self, "_merge_ops_instance"):
            self._merge_ops_instance = MergeOperations(self)
        return self._merge_ops_instance

    def ensure_part(
        self,
        rel_type: str,
        content_type: str,
        default_name: str,
        factory: Any,
    ) -> str:
        """Make sure the main document links to a part, creating it if needed.

        Args:
            rel_type: Relationship type from the main document
            content_type: Content type registered for a created part
            default_name: Part name used when no relationship exists yet
            factory: Callable returning the root element of a new part

        Returns:
            Name of the (possibly new) part
        """
        part_name = self.related_part(rel_type)
        if part_name is not None and part_name in self._cache:
            return part_name

        part_name = part_name or default_name
        if self._cache.get(part_name) is None:
            self._cache.add(part_name, factory())
            logger.debug(f"Created part {part_name}")
        self.content_types.add_override(part_name, content_type)
        if not self.relationships.has_relationship(rel_type):
            self.relationships.add_relationship(
                rel_type, relative_target(self.main_part, part_name)
            )
        return part_name

    # -------------------------------------------------------------------------
    # Parts with tracked changes
    # -------------------------------------------------------------------------

    @property
    def footnotes_part(self) -> str:
        return self.related_part(RelationshipTypes.FOOTNOTES) or DEFAULT_FOOTNOTES_PART

    @property
    def endnotes_part(self) -> str:
        return self.related_part(RelationshipTypes.ENDNOTES) or DEFAULT_ENDNOTES_PART

    def _tracked_parts(self) -> list[str]:
        """Parts whose w:ins/w:del ids share one sequence, in renumbering order."""
        parts = [self.main_part]
        parts.extend(self.related_parts(RelationshipTypes.HEADER))
        parts.extend(self.related_parts(RelationshipTypes.FOOTER))
        parts.append(self.footnotes_part)
        parts.append(self.endnotes_part)
        return parts

    # -------------------------------------------------------------------------
    # Paragraphs and text editing
    # -------------------------------------------------------------------------

    @property
    def body(self) -> etree._Element:
        """The w:body element of the main document."""
        body = self.xml_root.find(w("body"))
        if body is None:
            raise ValidationError(f"{self.main_part} has no w:body element")
        return body

    @property
    def paragraphs(self) -> list["Paragraph"]:
        """Get all paragraphs in the document body, including table cells.

        Indices into this list are what the editing methods take.

        Example:
            >>> for index, para in enumerate(doc.paragraphs):
            ...     print(index, para.text)
        """
        from docx_compose.models.paragraph import Paragraph

        return [Paragraph(p) for p in self.body.iter(w("p"))]

    def _paragraph_element(self, index: int) -> etree._Element:
        paragraphs = list(self.body.iter(w("p")))
        if not 0 <= index < len(paragraphs):
            raise InvalidArgumentError(
                "index", f"paragraph {index} does not exist ({len(paragraphs)} paragraphs)"
            )
        return paragraphs[index]

    def _tracked(self, track: bool) -> TrackedChange | None:
        return TrackedChange(self.author) if track else None

    def split_paragraph(
        self, index: int, offset: int
    ) -> tuple["Paragraph | None", "Paragraph | None"]:
        """Split a body paragraph in two at a character offset.

        The paragraph is replaced by its two halves. Splitting at 0 or at
        the paragraph length leaves the document unchanged.

        Args:
            index: Paragraph index (see `paragraphs`)
            offset: Character offset in [0, paragraph length]

        Returns:
            (before, after) Paragraph wrappers; the empty side is None

        Raises:
            InvalidArgumentError: If the index or offset is out of range
            DocumentFormatError: If the offset falls inside an unsplittable node
        """
        from docx_compose.models.paragraph import Paragraph

        element = self._paragraph_element(index)
        before, after = _split_paragraph(element, offset)
        if before is None or after is None:
            return (None, Paragraph(element)) if before is None else (Paragraph(element), None)

        element.addprevious(before)
        element.addnext(after)
        element.getparent().remove(element)
        self._cache.mark_dirty(self.main_part)
        logger.debug(f"Split paragraph {index} at offset {offset}")
        return Paragraph(before), Paragraph(after)

    def insert_text(self, index: int, offset: int, text: str, track: bool = False) -> None:
        """Insert text into a body paragraph.

        Args:
            index: Paragraph index
            offset: Character offset in [0, paragraph length]
            text: Text to insert
            track: Record the insertion as a tracked change by `author`
        """
        _insert_text(self._paragraph_element(index), offset, text, tracked=self._tracked(track))
        self._cache.mark_dirty(self.main_part)

    def remove_text(self, index: int, offset: int, count: int, track: bool = False) -> None:
        """Remove `count` characters from a body paragraph."""
        _remove_text(self._paragraph_element(index), offset, count, tracked=self._tracked(track))
        self._cache.mark_dirty(self.main_part)

    def replace_text(
        self, index: int, offset: int, count: int, text: str, track: bool = False
    ) -> None:
        """Replace `count` characters of a body paragraph with new text."""
        _replace_text(
            self._paragraph_element(index), offset, count, text, tracked=self._tracked(track)
        )
        self._cache.mark_dirty(self.main_part)

    def get_formatted_text(self, index: int | None = None) -> list[FormattedText]:
        """Formatted spans of one paragraph, or of the whole body when index is None."""
        element = self.body if index is None else self._paragraph_element(index)
        return _get_formatted_text(element)

    def next_id(self, kind: IdKind) -> int:
        """Next free identifier of a kind, scanned from the part that owns it.

        Example:
            >>> doc.next_id(IdKind.NUMBERING)
            3
        """
        if kind in (IdKind.ABSTRACT_NUMBERING, IdKind.NUMBERING):
            root = self.numbering.root
        elif kind is IdKind.RELATIONSHIP:
            root = self.relationships.root
        elif kind is IdKind.FOOTNOTE:
            root = self._cache.get(self.footnotes_part)
        elif kind is IdKind.ENDNOTE:
            root = self._cache.get(self.endnotes_part)
        else:
            root = self.xml_root
        return _next_id(root, kind)

    # -------------------------------------------------------------------------
    # Lists
    # -------------------------------------------------------------------------

    def add_list(self, kind: ListKind = ListKind.BULLETED, start: int | None = None) -> int:
        """Create a new list definition.

        Args:
            kind: Bulleted or decimal numbering
            start: Start value of the first level (decimal lists)

        Returns:
            The numId to pass to add_list_item()
        """
        self.ensure_part(
            RelationshipTypes.NUMBERING,
            ContentTypes.NUMBERING,
            DEFAULT_NUMBERING_PART,
            empty_numbering_template,
        )
        abstract_num_id = self.numbering.add_abstract(default_numbering_template(kind))
        num_id = self.numbering.add_instance(abstract_num_id, start)
        logger.debug(f"Added {kind.value} list {num_id}")
        return num_id

    def add_list_item(self, num_id: int, text: str, level: int = 0) -> "Paragraph":
        """Append a list paragraph to the end of the body.

        Args:
            num_id: List created with add_list() (or any existing numId)
            text: Paragraph text
            level: List level, 0-8

        Returns:
            The new Paragraph

        Raises:
            InvalidArgumentError: If the level is outside 0-8
            NumberingNotFoundError: If the numId or level does not resolve
        """
        from docx_compose.models.paragraph import Paragraph

        if not 0 <= level <= MAX_LIST_LEVEL:
            raise InvalidArgumentError("level", f"must be between 0 and {MAX_LIST_LEVEL}")
        self.numbering.resolve(num_id, level)

        self.ensure_part(
            RelationshipTypes.STYLES,
            ContentTypes.STYLES,
            DEFAULT_STYLES_PART,
            default_styles_template,
        )
        if LIST_PARAGRAPH_STYLE_ID not in self.styles:
            self.styles.add_element(list_paragraph_style(generate_hex_id()))

        paragraph = etree.Element(w("p"))
        properties = etree.SubElement(paragraph, w("pPr"))
        etree.SubElement(properties, w("pStyle")).set(w("val"), LIST_PARAGRAPH_STYLE_ID)
        numbering = etree.SubElement(properties, w("numPr"))
        etree.SubElement(numbering, w("ilvl")).set(w("val"), str(level))
        etree.SubElement(numbering, w("numId")).set(w("val"), str(num_id))
        if text:
            paragraph.append(build_run(text))

        self.append_block(paragraph)
        return Paragraph(paragraph)

    def append_block(self, element: etree._Element) -> None:
        """Add a block-level element at the end of the body, before w:sectPr."""
        body = self.body
        last = body[-1] if len(body) else None
        if last is not None and last.tag == w("sectPr"):
            last.addprevious(element)
        else:
            body.append(element)
        self._cache.mark_dirty(self.main_part)

    # -------------------------------------------------------------------------
    # Merging
    # -------------------------------------------------------------------------

    def insert_document(
        self, other: "Document | str | Path | bytes | BinaryIO", append: bool = True
    ) -> MergeResult:
        """Import the content of another document into this one.

        Styles, numbering, footnotes, endnotes, fonts, custom properties,
        images and other related parts come along; the other document is
        not modified.

        Args:
            other: Document instance or any source the constructor accepts
            append: Add the content at the end (True) or at the start (False)

        Returns:
            MergeResult counting what was added to this document

        Example:
            >>> doc = Document("report.docx")
            >>> doc.insert_document("appendix.docx")
            >>> doc.insert_document(Document("cover.docx"), append=False)
        """
        if other is self:
            # Merging reads the foreign parts while the host parts change
            other = self.save_to_bytes()
        if isinstance(other, Document):
            return self._merge_ops.merge(other, append=append)
        with Document(other, author=self.author) as foreign:
            return self._merge_ops.merge(foreign, append=append)

    def replace_main_root(self, root: etree._Element) -> None:
        """Install a new w:document root element for the main part."""
        self._cache.add(self.main_part, root)
        self.xml_root = root

    @property
    def image_parts(self) -> list[str]:
        """Names of all image parts referenced by any relationship."""
        return find_image_parts(self._cache)

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def _prepare_save(self) -> None:
        """Renumber tracked changes and write dirty trees back to the package."""
        roots = {name: self._cache.get(name) for name in self._tracked_parts()}
        renumber_tracked_changes(roots.values())
        for name, root in roots.items():
            if root is not None and next(root.iter(w("ins"), w("del")), None) is not None:
                self._cache.mark_dirty(name)
        self._cache.flush()

    def save(self, output_path: str | Path | None = None) -> None:
        """Save the document to a file.

        Args:
            output_path: Path to save the document. If None, saves to original path.
                        For in-memory documents (loaded from bytes), output_path is required.

        Raises:
            ValueError: If output_path is not provided for in-memory documents.
        """
        if output_path is None:
            if self.path is None:
                raise ValueError(
                    "output_path is required for in-memory documents. "
                    "Use doc.save(path) or doc.save_to_bytes() instead."
                )
            output_path = self.path

        self._prepare_save()
        self._package.save(Path(output_path))
        logger.debug(f"Saved document to {output_path}")

    def save_to_bytes(self) -> bytes:
        """Save the document to bytes (in-memory).

        Returns:
            bytes: The complete .docx file as bytes

        Example:
            >>> doc = Document("report.docx")
            >>> doc.insert_document("appendix.docx")
            >>> doc_bytes = doc.save_to_bytes()
        """
        self._prepare_save()
        return self._package.save_to_bytes()

    def close(self) -> None:
        """Release the in-memory package."""
        self._package.close()

    def __enter__(self) -> "Document":
        """Context manager support."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager cleanup."""
        self.close()


def merge_documents(
    host: str | Path | bytes | BinaryIO,
    *others: str | Path | bytes | BinaryIO,
    append: bool = True,
    author: str = DEFAULT_AUTHOR,
) -> Document:
    """Load a host document and insert other documents into it, in order.

    This is a convenience function; the returned Document is not saved.

    Args:
        host: Path, bytes, or file object of the document receiving content
        others: Documents to insert
        append: Insert each document at the end (True) or the start (False)
        author: Author name for tracked changes made later on the result

    Returns:
        The host Document with every other document merged in

    Example:
        >>> combined = merge_documents("report.docx", "appendix_a.docx", "appendix_b.docx")
        >>> combined.save("combined.docx")
    """
    document = Document(host, author=author)
    for other in others:
        document.insert_document(other, append=append)
    return document
