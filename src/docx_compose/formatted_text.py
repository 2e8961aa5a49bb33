"""
Formatted-text extraction.

get_formatted_text() is the read-side counterpart of the edit engine: it
flattens the run tree of an element into spans of identically formatted
text, hiding the run fragmentation that editing leaves behind.
"""

from __future__ import annotations

from dataclasses import dataclass

from lxml import etree

from .constants import w
from .models.nodes import NodeKind, node_kind
from .models.style import RunFormatting


@dataclass
class FormattedText:
    """A span of identically formatted text.

    Attributes:
        index: Character offset of the span within the extracted element
        text: Text of the span
        formatting: Formatting shared by every character of the span
    """

    index: int
    text: str
    formatting: RunFormatting


def _node_text(element: etree._Element, kind: NodeKind) -> str:
    if kind.is_text:
        return element.text or ""
    if kind in (NodeKind.TAB, NodeKind.TABLE_CELL):
        return "\t"
    if kind.is_single_character:
        return "\n"
    return ""


def get_formatted_text(element: etree._Element) -> list[FormattedText]:
    """Extract the text of an element as formatted spans.

    The element is walked depth first. Every text-bearing node takes the
    formatting of its enclosing run; w:caps upper-cases the text. Adjacent
    spans with identical formatting are merged. Runs without w:rPr share
    the default formatting and merge with each other.

    Args:
        element: A paragraph, run, table or any other body element

    Returns:
        Spans in document order; empty when the element holds no text

    Example:
        >>> [(span.index, span.text) for span in get_formatted_text(p)]
        [(0, 'Plain '), (6, 'bold'), (10, ' again')]
    """
    spans: list[FormattedText] = []
    position = 0

    def emit(text: str, formatting: RunFormatting) -> None:
        nonlocal position
        if formatting.caps:
            text = text.upper()
        if spans and spans[-1].formatting == formatting:
            spans[-1].text += text
        else:
            spans.append(FormattedText(position, text, formatting))
        position += len(text)

    def walk(node: etree._Element, formatting: RunFormatting) -> None:
        kind = node_kind(node)
        if kind.is_properties:
            return
        if kind is NodeKind.RUN:
            formatting = RunFormatting.from_properties(node.find(w("rPr")))

        text = _node_text(node, kind)
        if text:
            emit(text, formatting)
        if not kind.is_text:
            for child in node:
                walk(child, formatting)

    walk(element, RunFormatting())
    return spans
