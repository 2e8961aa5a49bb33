"""
docx_compose - Compose and edit Word documents while keeping them consistent.

This package merges .docx packages into one another (styles, numbering,
notes, fonts, images and related parts come along with fresh identifiers)
and edits paragraph text at character offsets across fragmented runs, with
optional tracked changes.

Example:
    >>> from docx_compose import Document
    >>> doc = Document("report.docx")
    >>> doc.insert_document("appendix.docx")
    >>> doc.replace_text(0, 0, 5, "Final", track=True)
    >>> doc.save("report_final.docx")
"""

__version__ = "0.1.0"
__all__ = [
    "Document",
    "merge_documents",
    "OOXMLPackage",
    "PartCache",
    "split_paragraph",
    "insert_text",
    "remove_text",
    "replace_text",
    "TrackedChange",
    "get_formatted_text",
    "FormattedText",
    "next_id",
    "IdKind",
    "ListKind",
    "Paragraph",
    "RunFormatting",
    "ParagraphFormatting",
    "Style",
    "StyleType",
    "MergeResult",
    "apply_merge_plan",
    "DocxComposeError",
    "InvalidArgumentError",
    "OffsetOutOfRangeError",
    "ValidationError",
    "DocumentFormatError",
    "PartNotFoundError",
    "NumberingNotFoundError",
]

# Import document class and standalone functions
from .document import Document, merge_documents

# Import edit engine
from .editing import TrackedChange, insert_text, remove_text, replace_text, split_paragraph
from .errors import (
    DocumentFormatError,
    DocxComposeError,
    InvalidArgumentError,
    NumberingNotFoundError,
    OffsetOutOfRangeError,
    PartNotFoundError,
    ValidationError,
)
from .formatted_text import FormattedText, get_formatted_text
from .ids import IdKind, next_id

# Import model classes
from .models.numbering import ListKind
from .models.paragraph import Paragraph
from .models.style import ParagraphFormatting, RunFormatting, Style, StyleType

# Import merge results and plans
from .operations import MergeResult, apply_merge_plan

# Import package classes
from .package import OOXMLPackage
from .part_cache import PartCache
