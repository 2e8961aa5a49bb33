"""
StyleManager class for reading and extending word/styles.xml.

This module provides a clean abstraction over the style definitions of a
document, including paragraph styles, character styles, table styles, and
numbering styles. The parsed tree is owned by the PartCache; every read
reflects edits made through any other manager of the same document.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from lxml import etree

from .constants import DEFAULT_STYLES_PART, w
from .errors import InvalidArgumentError
from .models.style import ParagraphFormatting, RunFormatting, Style, StyleType
from .part_cache import PartCache

logger = logging.getLogger(__name__)


class StyleManager:
    """Manages word/styles.xml in OOXML packages.

    Example:
        >>> styles = StyleManager(cache)
        >>> for style in styles.list(style_type=StyleType.PARAGRAPH):
        ...     print(f"{style.style_id}: {style.name}")

    Attributes:
        part_name: Name of the styles part (usually "word/styles.xml")
    """

    def __init__(self, cache: PartCache, part_name: str = DEFAULT_STYLES_PART) -> None:
        """Initialize a StyleManager for a package.

        Args:
            cache: PartCache of the document
            part_name: Name of the styles part
        """
        self._cache = cache
        self.part_name = part_name

    @property
    def root(self) -> etree._Element | None:
        """The w:styles element, or None when the document has no styles part."""
        return self._cache.get(self.part_name)

    def _style_elements(self) -> list[etree._Element]:
        root = self.root
        if root is None:
            return []
        return root.findall(w("style"))

    def _element_to_style(self, element: etree._Element) -> Style | None:
        """Convert a w:style XML element to a Style object.

        Args:
            element: The w:style XML element to convert

        Returns:
            A Style object populated with data from the XML, or None if
            the element lacks a styleId
        """
        style_id = element.get(w("styleId"))
        if not style_id:
            logger.warning("Skipping style element without styleId attribute")
            return None

        style_type_str = element.get(w("type"), "paragraph")
        try:
            style_type = StyleType(style_type_str)
        except ValueError:
            logger.warning(f"Unknown style type '{style_type_str}' for {style_id}")
            style_type = StyleType.PARAGRAPH

        def child_val(tag: str) -> str | None:
            child = element.find(w(tag))
            return child.get(w("val")) if child is not None else None

        default = element.get(w("default"), "0").lower() in ("1", "true", "on")
        return Style(
            style_id=style_id,
            name=child_val("name") or style_id,
            style_type=style_type,
            based_on=child_val("basedOn"),
            next_style=child_val("next"),
            linked_style=child_val("link"),
            is_default=default,
            semi_hidden=element.find(w("semiHidden")) is not None,
            run_formatting=RunFormatting.from_properties(element.find(w("rPr"))),
            paragraph_formatting=ParagraphFormatting.from_properties(element.find(w("pPr"))),
            _element=element,
        )

    def _styles(self) -> dict[str, Style]:
        styles: dict[str, Style] = {}
        for element in self._style_elements():
            style = self._element_to_style(element)
            if style is not None:
                styles[style.style_id] = style
        return styles

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get(self, style_id: str) -> Style | None:
        """Get a style by its ID.

        Args:
            style_id: The style identifier (e.g., "Normal", "Heading1")

        Returns:
            The Style object if found, None otherwise
        """
        return self._styles().get(style_id)

    def get_by_name(self, name: str) -> Style | None:
        """Get a style by its display name (case-insensitive)."""
        name_lower = name.lower()
        for style in self._styles().values():
            if style.name.lower() == name_lower:
                return style
        return None

    def element(self, style_id: str) -> etree._Element | None:
        """The w:style element with the given styleId."""
        for element in self._style_elements():
            if element.get(w("styleId")) == style_id:
                return element
        return None

    def default_style(self, style_type: StyleType) -> Style | None:
        """The style marked w:default for a style type."""
        for style in self._styles().values():
            if style.style_type == style_type and style.is_default:
                return style
        return None

    def list(
        self,
        style_type: StyleType | None = None,
        include_hidden: bool = False,
    ) -> list[Style]:
        """List all styles, optionally filtered by type.

        Args:
            style_type: If provided, only return styles of this type
            include_hidden: If False (default), exclude semi_hidden styles

        Returns:
            List of Style objects matching the criteria
        """
        result = []
        for style in self._styles().values():
            if style_type is not None and style.style_type != style_type:
                continue
            if not include_hidden and style.semi_hidden:
                continue
            result.append(style)
        return result

    @property
    def style_ids(self) -> set[str]:
        """All styleIds defined in the part."""
        return {
            style_id
            for element in self._style_elements()
            if (style_id := element.get(w("styleId")))
        }

    def __contains__(self, style_id: str) -> bool:
        """Check if a style exists by ID."""
        return self.element(style_id) is not None

    def __iter__(self) -> Iterator[Style]:
        """Iterate over all styles in document order."""
        return iter(self._styles().values())

    def __len__(self) -> int:
        """Return the number of styles."""
        return len(self._styles())

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def add_element(self, element: etree._Element) -> bool:
        """Append a w:style element to the styles part.

        Args:
            element: The w:style element; it is moved into the part

        Returns:
            True if the style was added, False if its styleId already exists

        Raises:
            InvalidArgumentError: If the element has no styleId
            PartNotFoundError: If the document has no styles part
        """
        style_id = element.get(w("styleId"))
        if not style_id:
            raise InvalidArgumentError("style_id", "style element has no w:styleId")
        if style_id in self:
            logger.debug(f"Style {style_id} already exists")
            return False

        root = self._cache.require(self.part_name)
        root.append(element)
        self._cache.mark_dirty(self.part_name)
        logger.debug(f"Added style {style_id}")
        return True
