"""
Centralized constants for OOXML namespaces, part names and content types.

This module consolidates the namespace URLs, relationship types, content
types and tag helpers shared by the package, cache, edit and merge layers.
Import from here to keep the wire format consistent everywhere.
"""

# =============================================================================
# Word Processing Namespaces
# =============================================================================

# Main WordprocessingML namespace (Word 2007+)
WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

# Word version-specific namespaces
W14_NAMESPACE = "http://schemas.microsoft.com/office/word/2010/wordml"  # Word 2010


# =============================================================================
# DrawingML Namespaces
# =============================================================================

# Word Processing Drawing namespace (inline/anchor positioning)
WP_NAMESPACE = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"


# =============================================================================
# Package and Relationship Namespaces
# =============================================================================

# Open Packaging Convention namespaces
PACKAGE_RELATIONSHIPS_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/relationships"
CONTENT_TYPES_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/content-types"

# Office Document relationships
OFFICE_RELATIONSHIPS_NAMESPACE = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
)

# Custom document properties
CUSTOM_PROPERTIES_NAMESPACE = (
    "http://schemas.openxmlformats.org/officeDocument/2006/custom-properties"
)
VT_NAMESPACE = "http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes"

# XML namespace
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


# =============================================================================
# Well-known part names
# =============================================================================

CONTENT_TYPES_PART = "[Content_Types].xml"
PACKAGE_RELS_PART = "_rels/.rels"
DEFAULT_MAIN_PART = "word/document.xml"
DEFAULT_STYLES_PART = "word/styles.xml"
DEFAULT_NUMBERING_PART = "word/numbering.xml"
DEFAULT_FOOTNOTES_PART = "word/footnotes.xml"
DEFAULT_ENDNOTES_PART = "word/endnotes.xml"
DEFAULT_FONT_TABLE_PART = "word/fontTable.xml"
DEFAULT_CUSTOM_PROPERTIES_PART = "docProps/custom.xml"
MEDIA_FOLDER = "word/media"


# =============================================================================
# Namespace Maps
# =============================================================================

# Namespace map for creating main-document style parts
NSMAP_FULL = {
    "w": WORD_NAMESPACE,
    "w14": W14_NAMESPACE,
    "r": OFFICE_RELATIONSHIPS_NAMESPACE,
}


# =============================================================================
# Default/Magic Numbers
# =============================================================================

# Relationship ids Word generates itself look like this; see merge_images
DEFAULT_RELATIONSHIP_ID_PATTERN = r"rId\d+"

# w14:paraId values must stay below 0x80000000
MAX_PARAGRAPH_ID = 0x7FFFFFFF


# =============================================================================
# Helper Functions
# =============================================================================


def w(tag: str) -> str:
    """Create a fully qualified Word namespace tag.

    Args:
        tag: Tag name without namespace prefix (e.g., "p", "r", "t")

    Returns:
        Fully qualified tag (e.g., "{http://...wordprocessingml/2006/main}p")

    Example:
        >>> w("p")
        '{http://schemas.openxmlformats.org/wordprocessingml/2006/main}p'
    """
    return f"{{{WORD_NAMESPACE}}}{tag}"


def w14(tag: str) -> str:
    """Create a fully qualified Word 2010 namespace tag."""
    return f"{{{W14_NAMESPACE}}}{tag}"


def wp(tag: str) -> str:
    """Create a fully qualified Word Processing Drawing namespace tag.

    Args:
        tag: Tag name without namespace prefix (e.g., "inline", "docPr")

    Returns:
        Fully qualified tag with WP drawing namespace
    """
    return f"{{{WP_NAMESPACE}}}{tag}"


def rel(tag: str) -> str:
    """Create a fully qualified package relationships namespace tag."""
    return f"{{{PACKAGE_RELATIONSHIPS_NAMESPACE}}}{tag}"


def ct(tag: str) -> str:
    """Create a fully qualified content types namespace tag."""
    return f"{{{CONTENT_TYPES_NAMESPACE}}}{tag}"
