"""
NumberingManager class for reading and extending word/numbering.xml.

Numbering definitions live in two collections of the numbering part:
abstract definitions (w:abstractNum) and instances (w:num). The schema
requires every w:abstractNum to precede every w:num, so new entries are
inserted after the last element of their own kind rather than appended.
"""

from __future__ import annotations

import logging

from lxml import etree

from .constants import DEFAULT_NUMBERING_PART, w
from .errors import InvalidArgumentError, NumberingNotFoundError
from .ids import IdKind, next_id
from .models.numbering import AbstractNumbering, ListKind, NumberingInstance, NumberingLevel
from .part_cache import PartCache

logger = logging.getLogger(__name__)


def insert_abstract_numbering(root: etree._Element, element: etree._Element) -> None:
    """Place a w:abstractNum after the last one already in the part.

    With no abstract definitions yet, it goes after any w:numPicBullet
    (or first).
    """
    anchors = root.findall(w("abstractNum")) or root.findall(w("numPicBullet"))
    if anchors:
        anchors[-1].addnext(element)
    else:
        root.insert(0, element)


def insert_numbering_instance(root: etree._Element, element: etree._Element) -> None:
    """Place a w:num after the last instance (or after the last abstractNum)."""
    anchors = root.findall(w("num")) or root.findall(w("abstractNum"))
    if anchors:
        anchors[-1].addnext(element)
        return
    cleanup = root.find(w("numIdMacAtCleanup"))
    if cleanup is not None:
        cleanup.addprevious(element)
    else:
        root.append(element)


class NumberingManager:
    """Manages word/numbering.xml in OOXML packages.

    Example:
        >>> numbering = NumberingManager(cache)
        >>> instance, abstract, level = numbering.resolve(num_id=3, level=0)
        >>> level.number_format
        'decimal'

    Attributes:
        part_name: Name of the numbering part (usually "word/numbering.xml")
    """

    def __init__(self, cache: PartCache, part_name: str = DEFAULT_NUMBERING_PART) -> None:
        self._cache = cache
        self.part_name = part_name

    @property
    def root(self) -> etree._Element | None:
        """The w:numbering element, or None when the part does not exist."""
        return self._cache.get(self.part_name)

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def abstract_numberings(self) -> list[AbstractNumbering]:
        """All abstract definitions in document order."""
        root = self.root
        if root is None:
            return []
        return [AbstractNumbering.from_element(elem) for elem in root.findall(w("abstractNum"))]

    def instances(self) -> list[NumberingInstance]:
        """All numbering instances in document order."""
        root = self.root
        if root is None:
            return []
        found = []
        for elem in root.findall(w("num")):
            instance = NumberingInstance.from_element(elem)
            if instance is not None:
                found.append(instance)
        return found

    def get_abstract(self, abstract_num_id: int) -> AbstractNumbering | None:
        for abstract in self.abstract_numberings():
            if abstract.abstract_num_id == abstract_num_id:
                return abstract
        return None

    def get_instance(self, num_id: int) -> NumberingInstance | None:
        for instance in self.instances():
            if instance.num_id == num_id:
                return instance
        return None

    def resolve(
        self, num_id: int, level: int = 0
    ) -> tuple[NumberingInstance, AbstractNumbering, NumberingLevel]:
        """Follow a (numId, ilvl) reference to its level definition.

        Args:
            num_id: The w:numId referenced by a paragraph
            level: The w:ilvl referenced by a paragraph

        Returns:
            (instance, abstract definition, level)

        Raises:
            NumberingNotFoundError: If any link of the chain is missing
        """
        instance = self.get_instance(num_id)
        if instance is None:
            raise NumberingNotFoundError(
                num_id, available_ids=[inst.num_id for inst in self.instances()]
            )

        abstract = self.get_abstract(instance.abstract_num_id)
        if abstract is None:
            raise NumberingNotFoundError(
                num_id,
                reason=f"abstract definition {instance.abstract_num_id} does not exist",
            )

        level_def = abstract.level(level)
        if level_def is None:
            raise NumberingNotFoundError(num_id, level=level)
        return instance, abstract, level_def

    def starting_number(self, num_id: int, level: int = 0) -> int:
        """Start value of a list level, honoring w:lvlOverride/w:startOverride."""
        instance, _, level_def = self.resolve(num_id, level)
        return instance.start_overrides.get(level, level_def.start)

    def find_abstract(self, kind: ListKind) -> AbstractNumbering | None:
        """First abstract definition whose level 0 matches a list kind."""
        for abstract in self.abstract_numberings():
            if abstract.kind is kind:
                return abstract
        return None

    def unresolved_references(self, root: etree._Element) -> list[int]:
        """numIds referenced in a tree that do not resolve to a definition.

        numId 0 means "no numbering" and is never reported.
        """
        abstract_ids = {abstract.abstract_num_id for abstract in self.abstract_numberings()}
        valid = {
            instance.num_id
            for instance in self.instances()
            if instance.abstract_num_id in abstract_ids
        }
        missing = []
        for num_id_elem in root.iter(w("numId")):
            try:
                num_id = int(num_id_elem.get(w("val"), ""))
            except ValueError:
                continue
            if num_id != 0 and num_id not in valid and num_id not in missing:
                missing.append(num_id)
        return missing

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def add_abstract(self, element: etree._Element) -> int:
        """Insert a w:abstractNum under a fresh id.

        Args:
            element: The w:abstractNum element; its id is overwritten

        Returns:
            The assigned w:abstractNumId
        """
        root = self._cache.require(self.part_name)
        abstract_num_id = next_id(root, IdKind.ABSTRACT_NUMBERING)
        element.set(w("abstractNumId"), str(abstract_num_id))
        insert_abstract_numbering(root, element)
        self._cache.mark_dirty(self.part_name)
        logger.debug(f"Added abstract numbering {abstract_num_id}")
        return abstract_num_id

    def add_instance(self, abstract_num_id: int, start: int | None = None) -> int:
        """Create a w:num pointing at an abstract definition.

        Args:
            abstract_num_id: Existing abstract definition to use
            start: Optional start value override for level 0

        Returns:
            The new w:numId

        Raises:
            NumberingNotFoundError: If the abstract definition does not exist
            InvalidArgumentError: If start is lower than 1
        """
        if start is not None and start < 1:
            raise InvalidArgumentError("start", f"must be at least 1, got {start}")
        if self.get_abstract(abstract_num_id) is None:
            raise NumberingNotFoundError(
                abstract_num_id, reason="no abstract definition with this id"
            )

        root = self._cache.require(self.part_name)
        num_id = next_id(root, IdKind.NUMBERING)

        num = etree.Element(w("num"))
        num.set(w("numId"), str(num_id))
        link = etree.SubElement(num, w("abstractNumId"))
        link.set(w("val"), str(abstract_num_id))
        if start is not None and start != 1:
            override = etree.SubElement(num, w("lvlOverride"))
            override.set(w("ilvl"), "0")
            start_override = etree.SubElement(override, w("startOverride"))
            start_override.set(w("val"), str(start))

        insert_numbering_instance(root, num)
        self._cache.mark_dirty(self.part_name)
        logger.debug(f"Added numbering instance {num_id} -> abstract {abstract_num_id}")
        return num_id
