"""
Document model classes for docx_compose.

These classes provide convenient wrappers around OOXML elements.
"""

from docx_compose.models.nodes import NodeKind, effective_length, element_text, node_kind
from docx_compose.models.numbering import (
    AbstractNumbering,
    ListKind,
    NumberingInstance,
    NumberingLevel,
)
from docx_compose.models.paragraph import Paragraph
from docx_compose.models.style import ParagraphFormatting, RunFormatting, Style, StyleType

__all__ = [
    "NodeKind",
    "node_kind",
    "effective_length",
    "element_text",
    "AbstractNumbering",
    "NumberingInstance",
    "NumberingLevel",
    "ListKind",
    "Paragraph",
    "ParagraphFormatting",
    "RunFormatting",
    "Style",
    "StyleType",
]
