"""
Paragraph wrapper class for convenient access to paragraph elements.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from docx_compose.constants import WORD_NAMESPACE
from docx_compose.models.nodes import effective_length, element_text
from docx_compose.models.style import ParagraphFormatting

if TYPE_CHECKING:
    from docx_compose.formatted_text import FormattedText


class Paragraph:
    """Wrapper around a w:p (paragraph) element.

    Provides convenient Python API for reading paragraphs. Edits go through
    Document.insert_text() and friends so that offsets stay consistent.
    """

    def __init__(self, element: etree._Element):
        """Initialize Paragraph wrapper.

        Args:
            element: The w:p XML element to wrap
        """
        if element.tag != f"{{{WORD_NAMESPACE}}}p":
            raise ValueError(f"Expected w:p element, got {element.tag}")
        self._element = element

    @property
    def element(self) -> etree._Element:
        """Get the underlying XML element."""
        return self._element

    @property
    def text(self) -> str:
        """Get all text content from the paragraph.

        Includes text from tracked deletions (w:delText) as well as regular
        text (w:t); tabs are rendered as "\\t" and breaks as "\\n", so
        character positions match the offsets the edit methods take.

        Returns:
            Combined text from all runs in the paragraph
        """
        return element_text(self._element)

    def __len__(self) -> int:
        """Effective length of the paragraph."""
        return effective_length(self._element)

    @property
    def formatting(self) -> ParagraphFormatting:
        """Direct paragraph formatting read from w:pPr."""
        return ParagraphFormatting.from_properties(
            self._element.find(f"{{{WORD_NAMESPACE}}}pPr")
        )

    @property
    def style(self) -> str | None:
        """Get the paragraph style.

        Returns:
            Style id (e.g., 'Heading1', 'ListParagraph') or None if no style set
        """
        return self.formatting.style

    @property
    def is_list_item(self) -> bool:
        """Whether the paragraph references a numbering instance."""
        return self.formatting.num_id is not None

    @property
    def runs(self) -> list[FormattedText]:
        """Formatted spans of the paragraph."""
        from docx_compose.formatted_text import get_formatted_text

        return get_formatted_text(self._element)

    def __repr__(self) -> str:
        """String representation of the paragraph."""
        text_preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"<Paragraph style={self.style!r} text={text_preview!r}>"
