"""
RelationshipManager class for managing .rels files in OOXML packages.

This module provides a clean abstraction for managing relationships between
parts in an OOXML package, such as the relationship between document.xml
and styles.xml, footnotes.xml, media/image1.png, etc.
"""

import logging
import posixpath
from dataclasses import dataclass

from lxml import etree

from .constants import PACKAGE_RELATIONSHIPS_NAMESPACE, rel
from .ids import IdKind, next_id
from .package import normalize_part_name, rels_part_name
from .part_cache import PartCache

logger = logging.getLogger(__name__)

INTERNAL = "Internal"
EXTERNAL = "External"


@dataclass(frozen=True)
class Relationship:
    """One entry of a .rels file.

    Attributes:
        rel_id: Identifier unique within the owning part (e.g., "rId3")
        rel_type: Relationship type URI
        target: Target as written in the file (relative URI or external URL)
        target_mode: "Internal" or "External"
    """

    rel_id: str
    rel_type: str
    target: str
    target_mode: str = INTERNAL

    @property
    def is_external(self) -> bool:
        return self.target_mode == EXTERNAL


def resolve_target(source_part: str, target: str) -> str:
    """Resolve a relative relationship target to a part name.

    Args:
        source_part: Part owning the relationship ("" for the package)
        target: Target as written in the .rels file

    Returns:
        Normalized part name (e.g., "word/media/image1.png")
    """
    if target.startswith("/"):
        return normalize_part_name(target)
    base = posixpath.dirname(normalize_part_name(source_part))
    joined = posixpath.normpath(posixpath.join(base, target))
    return joined.lstrip("/")


def relative_target(source_part: str, part_name: str) -> str:
    """Express a part name as a target relative to the source part's directory."""
    base = posixpath.dirname(normalize_part_name(source_part)) or "."
    return posixpath.relpath(normalize_part_name(part_name), base)


class RelationshipManager:
    """Manages the .rels file of one part.

    This class handles the low-level operations of:
    - Reading relationship files (.rels) through the part cache
    - Adding new relationships with auto-generated IDs
    - Removing relationships by type or id

    A relationship links one part to another using an ID (rId) unique
    within the owning part, a relationship type URI, and a target path.

    Example:
        >>> rel_mgr = RelationshipManager(cache, "word/document.xml")
        >>> rel_id = rel_mgr.add_unique_relationship(RelationshipTypes.IMAGE, "media/image2.png")
        >>> rel_mgr.get_by_id(rel_id).target
        'media/image2.png'

    Attributes:
        part_name: The part this relationship file is for (e.g., "word/document.xml")
        rels_part: Name of the .rels part (e.g., "word/_rels/document.xml.rels")
    """

    def __init__(self, cache: PartCache, part_name: str) -> None:
        """Initialize a RelationshipManager for a specific part.

        Args:
            cache: PartCache of the package holding the relationship file
            part_name: The part this relationship file is for.
                      For example, "word/document.xml" -> "word/_rels/document.xml.rels"
        """
        self._cache = cache
        self.part_name = normalize_part_name(part_name)
        self.rels_part = rels_part_name(self.part_name)
        self._root: etree._Element | None = None

    def _ensure_loaded(self, create: bool = False) -> etree._Element:
        """Ensure the relationship XML is loaded into memory.

        A part without a .rels file reads as empty; the file is only added
        to the package when `create` is set, i.e. on the first write.
        """
        if self._root is not None:
            return self._root

        root = self._cache.get(self.rels_part)
        if root is None:
            # Create new rels file structure
            root = etree.Element(
                rel("Relationships"),
                nsmap={None: PACKAGE_RELATIONSHIPS_NAMESPACE},
            )
            if not create:
                return root
            self._cache.add(self.rels_part, root)
        self._root = root
        return root

    @property
    def root(self) -> etree._Element:
        """The <Relationships> element (empty and detached when the part has none)."""
        return self._ensure_loaded()

    @staticmethod
    def _to_relationship(element: etree._Element) -> Relationship:
        return Relationship(
            rel_id=element.get("Id", ""),
            rel_type=element.get("Type", ""),
            target=element.get("Target", ""),
            target_mode=element.get("TargetMode", INTERNAL),
        )

    def relationships(self) -> list[Relationship]:
        """All relationships of the part, in file order."""
        root = self._ensure_loaded()
        return [self._to_relationship(elem) for elem in root.iter(rel("Relationship"))]

    def get_by_id(self, rel_id: str) -> Relationship | None:
        """Look up a relationship by its id."""
        root = self._ensure_loaded()
        for elem in root.iter(rel("Relationship")):
            if elem.get("Id") == rel_id:
                return self._to_relationship(elem)
        return None

    def get_relationship(self, rel_type: str) -> str | None:
        """Get the relationship ID for a given type.

        Args:
            rel_type: The relationship type URI to search for

        Returns:
            The relationship ID (e.g., "rId3") if found, None otherwise
        """
        root = self._ensure_loaded()

        for elem in root.iter(rel("Relationship")):
            if elem.get("Type") == rel_type:
                return elem.get("Id")

        return None

    def get_relationship_target(self, rel_type: str) -> str | None:
        """Get the target path for a relationship type.

        Args:
            rel_type: The relationship type URI to search for

        Returns:
            The target path if found, None otherwise
        """
        root = self._ensure_loaded()

        for elem in root.iter(rel("Relationship")):
            if elem.get("Type") == rel_type:
                return elem.get("Target")

        return None

    def get_target_part(self, rel_type: str) -> str | None:
        """Resolve the part a relationship of the given type points at."""
        target = self.get_relationship_target(rel_type)
        if target is None:
            return None
        return resolve_target(self.part_name, target)

    def target_part(self, relationship: Relationship) -> str:
        """Resolve an internal relationship's target to a part name."""
        return resolve_target(self.part_name, relationship.target)

    def has_relationship(self, rel_type: str) -> bool:
        """Check if a relationship of the given type exists.

        Args:
            rel_type: The relationship type URI to check for

        Returns:
            True if a relationship of this type exists
        """
        return self.get_relationship(rel_type) is not None

    def add_relationship(self, rel_type: str, target: str) -> str:
        """Add a new relationship or return existing one.

        If a relationship of the given type already exists, returns its ID.
        Otherwise, creates a new relationship with an auto-generated ID.

        Args:
            rel_type: The relationship type URI
            target: The target path (relative to the part's directory)

        Returns:
            The relationship ID (e.g., "rId3")
        """
        existing_id = self.get_relationship(rel_type)
        if existing_id is not None:
            logger.debug(f"Relationship {rel_type} already exists: {existing_id}")
            return existing_id

        return self.add_unique_relationship(rel_type, target)

    def add_unique_relationship(
        self, rel_type: str, target: str, target_mode: str = INTERNAL
    ) -> str:
        """Add a new relationship, always creating a new ID.

        Unlike add_relationship(), this method does not check for existing
        relationships of the same type. Use this for relationship types
        that can have multiple instances, like images and hyperlinks.

        Args:
            rel_type: The relationship type URI
            target: The target path (relative to the part's directory) or URL
            target_mode: "Internal" or "External"

        Returns:
            The new relationship ID (e.g., "rId3")
        """
        root = self._ensure_loaded(create=True)

        rel_id = f"rId{next_id(root, IdKind.RELATIONSHIP)}"

        elem = etree.SubElement(root, rel("Relationship"))
        elem.set("Id", rel_id)
        elem.set("Type", rel_type)
        elem.set("Target", target)
        if target_mode == EXTERNAL:
            elem.set("TargetMode", EXTERNAL)

        self._cache.mark_dirty(self.rels_part)
        logger.debug(f"Added relationship {rel_id} in {self.rels_part}: {rel_type} -> {target}")

        return rel_id

    def remove_relationship(self, rel_type: str) -> bool:
        """Remove a relationship by type.

        Args:
            rel_type: The relationship type URI to remove

        Returns:
            True if a relationship was removed, False if not found
        """
        root = self._ensure_loaded()

        for elem in list(root.iter(rel("Relationship"))):
            if elem.get("Type") == rel_type:
                root.remove(elem)
                self._cache.mark_dirty(self.rels_part)
                logger.debug(f"Removed relationship: {rel_type}")
                return True

        return False

    def remove_relationships(self, rel_types: list[str]) -> int:
        """Remove multiple relationships by type.

        Args:
            rel_types: List of relationship type URIs to remove

        Returns:
            Number of relationships removed
        """
        root = self._ensure_loaded()

        removed = 0
        rel_types_set = set(rel_types)

        for elem in list(root.iter(rel("Relationship"))):
            rel_type = elem.get("Type")
            if rel_type in rel_types_set:
                root.remove(elem)
                removed += 1
                logger.debug(f"Removed relationship: {rel_type}")

        if removed > 0:
            self._cache.mark_dirty(self.rels_part)

        return removed


# Common relationship type constants for convenience
class RelationshipTypes:
    """Common OOXML relationship type URIs."""

    _BASE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

    # Standard Office Open XML relationships
    OFFICE_DOCUMENT = f"{_BASE}/officeDocument"
    COMMENTS = f"{_BASE}/comments"
    FOOTNOTES = f"{_BASE}/footnotes"
    ENDNOTES = f"{_BASE}/endnotes"
    STYLES = f"{_BASE}/styles"
    SETTINGS = f"{_BASE}/settings"
    WEB_SETTINGS = f"{_BASE}/webSettings"
    NUMBERING = f"{_BASE}/numbering"
    FONT_TABLE = f"{_BASE}/fontTable"
    FONT = f"{_BASE}/font"
    THEME = f"{_BASE}/theme"
    HEADER = f"{_BASE}/header"
    FOOTER = f"{_BASE}/footer"
    IMAGE = f"{_BASE}/image"
    HYPERLINK = f"{_BASE}/hyperlink"
    OLE_OBJECT = f"{_BASE}/oleObject"
    PACKAGE = f"{_BASE}/package"
    CHART = f"{_BASE}/chart"
    GLOSSARY_DOCUMENT = f"{_BASE}/glossaryDocument"
    CUSTOM_XML = f"{_BASE}/customXml"
    CUSTOM_PROPERTIES = f"{_BASE}/custom-properties"
    EXTENDED_PROPERTIES = f"{_BASE}/extended-properties"
    CORE_PROPERTIES = (
        "http://schemas.openxmlformats.org/package/2006/relationships/metadata/core-properties"
    )

    # Microsoft Office extensions
    STYLES_WITH_EFFECTS = "http://schemas.microsoft.com/office/2007/relationships/stylesWithEffects"
    COMMENTS_EXTENDED = "http://schemas.microsoft.com/office/2011/relationships/commentsExtended"
    COMMENTS_IDS = "http://schemas.microsoft.com/office/2016/09/relationships/commentsIds"
    COMMENTS_EXTENSIBLE = (
        "http://schemas.microsoft.com/office/2018/08/relationships/commentsExtensible"
    )
    PEOPLE = "http://schemas.microsoft.com/office/2011/relationships/people"

    COMMENT_TYPES = frozenset(
        {COMMENTS, COMMENTS_EXTENDED, COMMENTS_IDS, COMMENTS_EXTENSIBLE, PEOPLE}
    )
