"""
Classification of WordprocessingML elements into a closed set of node kinds.

The edit engine and the formatted-text walker dispatch on NodeKind instead
of comparing tag strings at every call site.
"""

from enum import Enum

from lxml import etree

from docx_compose.constants import w


class NodeKind(Enum):
    """Kinds of element the run/paragraph edit engine distinguishes."""

    PARAGRAPH = "p"
    PARAGRAPH_PROPERTIES = "pPr"
    RUN = "r"
    RUN_PROPERTIES = "rPr"
    SECTION_PROPERTIES = "sectPr"
    INSERTION = "ins"
    DELETION = "del"
    MOVE_FROM = "moveFrom"
    MOVE_TO = "moveTo"
    HYPERLINK = "hyperlink"
    SMART_TAG = "smartTag"
    ATOMIC = "atomic"
    TEXT = "t"
    DELETED_TEXT = "delText"
    TAB = "tab"
    BREAK = "br"
    CARRIAGE_RETURN = "cr"
    TABLE_ROW = "tr"
    TABLE_CELL = "tc"
    OTHER = "other"

    @property
    def is_properties(self) -> bool:
        """Property subtrees never contribute to text length."""
        return self in _PROPERTIES

    @property
    def is_wrapper(self) -> bool:
        """Containers that can be split in two around their runs."""
        return self in _WRAPPERS

    @property
    def is_text(self) -> bool:
        return self in (NodeKind.TEXT, NodeKind.DELETED_TEXT)

    @property
    def is_single_character(self) -> bool:
        """Nodes that count as exactly one character."""
        return self in _SINGLE_CHARACTER


_PROPERTIES = frozenset(
    {NodeKind.PARAGRAPH_PROPERTIES, NodeKind.RUN_PROPERTIES, NodeKind.SECTION_PROPERTIES}
)
_WRAPPERS = frozenset(
    {
        NodeKind.INSERTION,
        NodeKind.DELETION,
        NodeKind.MOVE_FROM,
        NodeKind.MOVE_TO,
        NodeKind.HYPERLINK,
        NodeKind.SMART_TAG,
    }
)
_SINGLE_CHARACTER = frozenset(
    {
        NodeKind.TAB,
        NodeKind.BREAK,
        NodeKind.CARRIAGE_RETURN,
        NodeKind.TABLE_ROW,
        NodeKind.TABLE_CELL,
    }
)

_BY_TAG = {
    w("p"): NodeKind.PARAGRAPH,
    w("pPr"): NodeKind.PARAGRAPH_PROPERTIES,
    w("r"): NodeKind.RUN,
    w("rPr"): NodeKind.RUN_PROPERTIES,
    w("sectPr"): NodeKind.SECTION_PROPERTIES,
    w("ins"): NodeKind.INSERTION,
    w("del"): NodeKind.DELETION,
    w("moveFrom"): NodeKind.MOVE_FROM,
    w("moveTo"): NodeKind.MOVE_TO,
    w("hyperlink"): NodeKind.HYPERLINK,
    w("smartTag"): NodeKind.SMART_TAG,
    w("sdt"): NodeKind.ATOMIC,
    w("fldSimple"): NodeKind.ATOMIC,
    w("t"): NodeKind.TEXT,
    w("delText"): NodeKind.DELETED_TEXT,
    w("tab"): NodeKind.TAB,
    w("br"): NodeKind.BREAK,
    w("cr"): NodeKind.CARRIAGE_RETURN,
    w("tr"): NodeKind.TABLE_ROW,
    w("tc"): NodeKind.TABLE_CELL,
}


def node_kind(element: etree._Element) -> NodeKind:
    """Classify an element.

    Comments and processing instructions are OTHER.
    """
    if not isinstance(element.tag, str):
        return NodeKind.OTHER
    return _BY_TAG.get(element.tag, NodeKind.OTHER)


def effective_length(element: etree._Element) -> int:
    """Character-equivalent length of an element and its descendants.

    Text counts its characters; tab, break, carriage return, table row and
    table cell count as one; property subtrees count nothing.

    Args:
        element: Any element of the document body

    Returns:
        The effective length
    """
    kind = node_kind(element)
    if kind.is_properties:
        return 0
    if kind.is_text:
        return len(element.text or "")
    own = 1 if kind.is_single_character else 0
    return own + sum(effective_length(child) for child in element)


def element_text(element: etree._Element) -> str:
    """Text of an element as counted by effective_length().

    Deleted text is included. Tabs and table cells become "\\t"; breaks,
    carriage returns and table rows become "\\n". The result always has
    exactly effective_length(element) characters.
    """
    kind = node_kind(element)
    if kind.is_properties:
        return ""
    if kind.is_text:
        return element.text or ""
    if kind in (NodeKind.TAB, NodeKind.TABLE_CELL):
        own = "\t"
    elif kind.is_single_character:
        own = "\n"
    else:
        own = ""
    return own + "".join(element_text(child) for child in element)
