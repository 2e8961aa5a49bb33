"""
Style model classes for Word document style management.

Provides data classes for representing styles, run formatting, and paragraph
formatting in a Pythonic way, hiding the underlying OOXML complexity.

These models are read-only views built by StyleManager from word/styles.xml
and by the formatted-text walker from w:rPr elements.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lxml import etree

from docx_compose.constants import w

_FALSE_VALUES = {"0", "false", "off", "none"}


def _toggle(properties: etree._Element, tag: str) -> bool:
    """Read an OOXML on/off property (present without w:val means on)."""
    elem = properties.find(w(tag))
    if elem is None:
        return False
    return elem.get(w("val"), "true").lower() not in _FALSE_VALUES


def _value(properties: etree._Element, tag: str, attribute: str = "val") -> str | None:
    elem = properties.find(w(tag))
    if elem is None:
        return None
    return elem.get(w(attribute))


def _int_value(properties: etree._Element, tag: str, attribute: str = "val") -> int | None:
    value = _value(properties, tag, attribute)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class StyleType(Enum):
    """Types of styles in Word documents.

    Attributes:
        PARAGRAPH: Applied to whole paragraphs (includes both paragraph
            and character formatting)
        CHARACTER: Applied to runs of text within paragraphs
        TABLE: Applied to tables
        NUMBERING: Applied to numbered/bulleted lists
    """

    PARAGRAPH = "paragraph"
    CHARACTER = "character"
    TABLE = "table"
    NUMBERING = "numbering"


@dataclass(frozen=True)
class RunFormatting:
    """Character formatting resolved from a w:rPr element.

    Only direct formatting is read; formatting inherited through styles is
    not resolved. Values compare equal when every field matches, which is
    what the formatted-text walker uses to merge spans.

    Attributes:
        underline: Underline style name (e.g., "single", "double") or None
        font: Font family from w:rFonts/@w:ascii
        size: Font size in points (w:sz is stored in half-points)
        vertical_align: "superscript", "subscript" or None
        style: Character style id (w:rStyle)

    Example:
        >>> RunFormatting.from_properties(rpr)
        RunFormatting(bold=True, italic=False, ...)
    """

    bold: bool = False
    italic: bool = False
    underline: str | None = None
    strike: bool = False
    double_strike: bool = False
    caps: bool = False
    small_caps: bool = False
    hidden: bool = False
    color: str | None = None
    highlight: str | None = None
    font: str | None = None
    size: float | None = None
    vertical_align: str | None = None
    style: str | None = None

    @classmethod
    def from_properties(cls, properties: etree._Element | None) -> RunFormatting:
        """Build formatting from a w:rPr element (None gives the defaults)."""
        if properties is None:
            return cls()

        half_points = _int_value(properties, "sz")
        vertical_align = _value(properties, "vertAlign")
        underline = _value(properties, "u")
        return cls(
            bold=_toggle(properties, "b"),
            italic=_toggle(properties, "i"),
            underline=None if underline in (None, "none") else underline,
            strike=_toggle(properties, "strike"),
            double_strike=_toggle(properties, "dstrike"),
            caps=_toggle(properties, "caps"),
            small_caps=_toggle(properties, "smallCaps"),
            hidden=_toggle(properties, "vanish"),
            color=_value(properties, "color"),
            highlight=_value(properties, "highlight"),
            font=_value(properties, "rFonts", "ascii"),
            size=half_points / 2 if half_points is not None else None,
            vertical_align=None if vertical_align == "baseline" else vertical_align,
            style=_value(properties, "rStyle"),
        )


@dataclass(frozen=True)
class ParagraphFormatting:
    """Paragraph-level formatting read from a w:pPr element.

    Attributes:
        style: Paragraph style id (w:pStyle)
        alignment: Raw w:jc value ("left", "center", "both", ...)
        num_id: Numbering instance referenced through w:numPr
        level: List level referenced through w:numPr/w:ilvl
        outline_level: Heading outline level (0-8)
    """

    style: str | None = None
    alignment: str | None = None
    num_id: int | None = None
    level: int | None = None
    keep_next: bool = False
    keep_lines: bool = False
    outline_level: int | None = None

    @classmethod
    def from_properties(cls, properties: etree._Element | None) -> ParagraphFormatting:
        if properties is None:
            return cls()

        num_pr = properties.find(w("numPr"))
        num_id = level = None
        if num_pr is not None:
            num_id = _int_value(num_pr, "numId")
            level = _int_value(num_pr, "ilvl")
            if num_id is not None and level is None:
                level = 0

        return cls(
            style=_value(properties, "pStyle"),
            alignment=_value(properties, "jc"),
            num_id=num_id,
            level=level,
            keep_next=_toggle(properties, "keepNext"),
            keep_lines=_toggle(properties, "keepLines"),
            outline_level=_int_value(properties, "outlineLvl"),
        )


@dataclass
class Style:
    """Represents a Word document style.

    Attributes:
        style_id: Internal style identifier used in document references
            (e.g., "Heading1", "FootnoteReference")
        name: Display name shown in Word's UI (e.g., "Heading 1")
        style_type: Type of style (paragraph, character, table, numbering)
        based_on: style_id of parent style to inherit from
        next_style: style_id of style to apply after pressing Enter
        linked_style: style_id of linked paragraph/character style
        is_default: Whether this is the default style of its type
        run_formatting: Direct character formatting of the style
        paragraph_formatting: Direct paragraph formatting of the style
    """

    style_id: str
    name: str
    style_type: StyleType
    based_on: str | None = None
    next_style: str | None = None
    linked_style: str | None = None
    is_default: bool = False
    semi_hidden: bool = False
    run_formatting: RunFormatting = field(default_factory=RunFormatting)
    paragraph_formatting: ParagraphFormatting = field(default_factory=ParagraphFormatting)
    _element: Any = field(default=None, repr=False, compare=False)

    @property
    def element(self) -> etree._Element | None:
        """The w:style element this view was built from."""
        return self._element

    def __repr__(self) -> str:
        """String representation of the style."""
        return f"<Style style_id={self.style_id!r} name={self.name!r} type={self.style_type.value}>"
