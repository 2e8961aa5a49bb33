"""
Numbering model classes.

WordprocessingML lists use two levels of indirection: an abstract numbering
definition (w:abstractNum) describes the format of each list level, and a
numbering instance (w:num) points at an abstract definition and may override
the start value of individual levels. Paragraphs reference lists only by
(numId, ilvl).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from lxml import etree

from docx_compose.constants import w


class ListKind(Enum):
    """Kinds of list the default numbering templates provide."""

    BULLETED = "bullet"
    DECIMAL = "decimal"


def _int_attr(element: etree._Element | None, attribute: str = "val") -> int | None:
    if element is None:
        return None
    try:
        return int(element.get(w(attribute), ""))
    except ValueError:
        return None


@dataclass(frozen=True)
class NumberingLevel:
    """Format of one level of an abstract numbering definition.

    Attributes:
        level: Level index (w:ilvl, 0-8)
        number_format: w:numFmt value ("bullet", "decimal", "lowerLetter", ...)
        text: Level text pattern (e.g., "%1." or a bullet character)
        start: Start value of the level
    """

    level: int
    number_format: str | None = None
    text: str | None = None
    start: int = 1

    @classmethod
    def from_element(cls, element: etree._Element) -> NumberingLevel:
        """Build a level from a w:lvl element."""
        num_fmt = element.find(w("numFmt"))
        lvl_text = element.find(w("lvlText"))
        start = _int_attr(element.find(w("start")))
        return cls(
            level=_int_attr(element, "ilvl") or 0,
            number_format=num_fmt.get(w("val")) if num_fmt is not None else None,
            text=lvl_text.get(w("val")) if lvl_text is not None else None,
            start=start if start is not None else 1,
        )


@dataclass
class AbstractNumbering:
    """A w:abstractNum definition.

    Attributes:
        abstract_num_id: Value of w:abstractNumId
        levels: Levels in document order
    """

    abstract_num_id: int
    levels: list[NumberingLevel] = field(default_factory=list)

    def level(self, index: int) -> NumberingLevel | None:
        """Look up a level by its w:ilvl value."""
        for level in self.levels:
            if level.level == index:
                return level
        return None

    @property
    def kind(self) -> ListKind | None:
        """List kind derived from the format of level 0."""
        first = self.level(0)
        if first is None:
            return None
        if first.number_format == "bullet":
            return ListKind.BULLETED
        if first.number_format == "decimal":
            return ListKind.DECIMAL
        return None

    @classmethod
    def from_element(cls, element: etree._Element) -> AbstractNumbering:
        """Build a definition from a w:abstractNum element."""
        return cls(
            abstract_num_id=_int_attr(element, "abstractNumId") or 0,
            levels=[NumberingLevel.from_element(lvl) for lvl in element.findall(w("lvl"))],
        )


@dataclass
class NumberingInstance:
    """A w:num instance.

    Attributes:
        num_id: Value of w:numId, referenced from paragraphs
        abstract_num_id: The abstract definition this instance uses
        start_overrides: Level index -> overridden start value
    """

    num_id: int
    abstract_num_id: int
    start_overrides: dict[int, int] = field(default_factory=dict)

    @classmethod
    def from_element(cls, element: etree._Element) -> NumberingInstance | None:
        """Build an instance from a w:num element.

        Returns:
            The instance, or None if the element lacks a w:abstractNumId link
        """
        num_id = _int_attr(element, "numId")
        abstract_num_id = _int_attr(element.find(w("abstractNumId")))
        if num_id is None or abstract_num_id is None:
            return None

        overrides = {}
        for override in element.findall(w("lvlOverride")):
            level = _int_attr(override, "ilvl")
            start = _int_attr(override.find(w("startOverride")))
            if level is not None and start is not None:
                overrides[level] = start
        return cls(num_id=num_id, abstract_num_id=abstract_num_id, start_overrides=overrides)
