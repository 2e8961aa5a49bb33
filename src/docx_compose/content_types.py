"""
ContentTypeManager class for managing [Content_Types].xml in OOXML packages.

This module provides a clean abstraction for managing content type declarations
in an OOXML package. Content types define the MIME type for each part in the
package, such as styles.xml, numbering.xml, media/image1.png, etc.
"""

import logging

from lxml import etree

from .constants import CONTENT_TYPES_NAMESPACE, CONTENT_TYPES_PART, ct
from .part_cache import PartCache

logger = logging.getLogger(__name__)


def _override_name(part_name: str) -> str:
    return "/" + part_name.lstrip("/")


class ContentTypeManager:
    """Manages [Content_Types].xml in OOXML packages.

    Content types in OOXML use two mechanisms:
    - Default: Maps file extensions to content types (e.g., .png -> image/png)
    - Override: Maps specific part names to content types (e.g., /word/styles.xml)

    The tree itself is owned by the PartCache; this class reads and edits it
    in place and marks it dirty.

    Example:
        >>> ct_mgr = ContentTypeManager(cache)
        >>> ct_mgr.add_override("/word/numbering.xml", ContentTypes.NUMBERING)
        >>> ct_mgr.get_content_type("word/media/image1.png")
        'image/png'
    """

    def __init__(self, cache: PartCache) -> None:
        """Initialize a ContentTypeManager for a package.

        Args:
            cache: The PartCache of the package holding [Content_Types].xml
        """
        self._cache = cache
        self._root: etree._Element | None = None

    def _ensure_loaded(self) -> etree._Element:
        """Ensure the content types XML is loaded into memory."""
        if self._root is not None:
            return self._root

        root = self._cache.get(CONTENT_TYPES_PART)
        if root is None:
            # Shouldn't happen for a valid docx
            root = etree.Element(ct("Types"), nsmap={None: CONTENT_TYPES_NAMESPACE})
            self._cache.add(CONTENT_TYPES_PART, root)
        self._root = root
        return root

    def get_content_type(self, part_name: str) -> str | None:
        """Resolve the content type of a part.

        Overrides win over extension defaults.

        Args:
            part_name: The part name to look up (e.g., "word/styles.xml")

        Returns:
            The content type string if declared, None otherwise
        """
        override = self.get_override(part_name)
        if override is not None:
            return override

        _, dot, extension = part_name.rpartition(".")
        if not dot:
            return None
        return self.get_default(extension)

    def get_override(self, part_name: str) -> str | None:
        """Get the override content type for a specific part.

        Args:
            part_name: The part name to look up, with or without leading slash

        Returns:
            The content type string if an override exists, None otherwise
        """
        root = self._ensure_loaded()
        name = _override_name(part_name)
        for override in root.iter(ct("Override")):
            if override.get("PartName", "").lower() == name.lower():
                return override.get("ContentType")
        return None

    def get_default(self, extension: str) -> str | None:
        """Get the default content type registered for an extension."""
        root = self._ensure_loaded()
        for default in root.iter(ct("Default")):
            if default.get("Extension", "").lower() == extension.lower():
                return default.get("ContentType")
        return None

    def has_override(self, part_name: str) -> bool:
        """Check if an override exists for the given part name."""
        return self.get_override(part_name) is not None

    def add_override(self, part_name: str, content_type: str) -> bool:
        """Add a content type override for a part.

        If an override already exists for the part, this is a no-op.

        Args:
            part_name: The part name (e.g., "/word/numbering.xml")
            content_type: The content type (e.g., "application/...numbering+xml")

        Returns:
            True if a new override was added, False if it already existed
        """
        root = self._ensure_loaded()

        if self.has_override(part_name):
            logger.debug(f"Content type override already exists for {part_name}")
            return False

        override = etree.SubElement(root, ct("Override"))
        override.set("PartName", _override_name(part_name))
        override.set("ContentType", content_type)

        self._cache.mark_dirty(CONTENT_TYPES_PART)
        logger.debug(f"Added content type override: {part_name} -> {content_type}")
        return True

    def add_default(self, extension: str, content_type: str) -> bool:
        """Register a default content type for a file extension.

        Defaults are inserted before the first Override to keep the
        conventional ordering of the file.

        Args:
            extension: File extension without dot (e.g., "png")
            content_type: The content type (e.g., "image/png")

        Returns:
            True if a new default was added, False if one already existed
        """
        root = self._ensure_loaded()

        if self.get_default(extension) is not None:
            return False

        default = etree.Element(ct("Default"))
        default.set("Extension", extension.lower())
        default.set("ContentType", content_type)

        first_override = root.find(ct("Override"))
        if first_override is not None:
            first_override.addprevious(default)
        else:
            root.append(default)

        self._cache.mark_dirty(CONTENT_TYPES_PART)
        logger.debug(f"Added content type default: .{extension} -> {content_type}")
        return True

    def ensure_content_type(self, part_name: str, content_type: str) -> None:
        """Make sure a part resolves to the given content type.

        Image-like parts rely on an extension default when one matches;
        everything else receives an override.
        """
        if self.get_content_type(part_name) == content_type:
            return
        _, dot, extension = part_name.rpartition(".")
        if dot and content_type in ContentTypes.IMAGE_TYPES:
            if self.add_default(extension, content_type):
                return
        self.add_override(part_name, content_type)

    def remove_override(self, part_name: str) -> bool:
        """Remove a content type override by part name.

        Args:
            part_name: The part name to remove (e.g., "/word/comments.xml")

        Returns:
            True if an override was removed, False if not found
        """
        root = self._ensure_loaded()
        name = _override_name(part_name)

        for override in list(root.iter(ct("Override"))):
            if override.get("PartName", "").lower() == name.lower():
                root.remove(override)
                self._cache.mark_dirty(CONTENT_TYPES_PART)
                logger.debug(f"Removed content type override: {part_name}")
                return True

        return False


# Common content type constants for convenience
class ContentTypes:
    """Common OOXML content type strings."""

    # Word document parts
    DOCUMENT = "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"
    TEMPLATE = "application/vnd.openxmlformats-officedocument.wordprocessingml.template.main+xml"
    MACRO_DOCUMENT = "application/vnd.ms-word.document.macroEnabled.main+xml"
    STYLES = "application/vnd.openxmlformats-officedocument.wordprocessingml.styles+xml"
    STYLES_WITH_EFFECTS = "application/vnd.ms-word.stylesWithEffects+xml"
    SETTINGS = "application/vnd.openxmlformats-officedocument.wordprocessingml.settings+xml"
    WEB_SETTINGS = "application/vnd.openxmlformats-officedocument.wordprocessingml.webSettings+xml"
    NUMBERING = "application/vnd.openxmlformats-officedocument.wordprocessingml.numbering+xml"
    FONT_TABLE = "application/vnd.openxmlformats-officedocument.wordprocessingml.fontTable+xml"
    FOOTNOTES = "application/vnd.openxmlformats-officedocument.wordprocessingml.footnotes+xml"
    ENDNOTES = "application/vnd.openxmlformats-officedocument.wordprocessingml.endnotes+xml"
    COMMENTS = "application/vnd.openxmlformats-officedocument.wordprocessingml.comments+xml"
    HEADER = "application/vnd.openxmlformats-officedocument.wordprocessingml.header+xml"
    FOOTER = "application/vnd.openxmlformats-officedocument.wordprocessingml.footer+xml"
    THEME = "application/vnd.openxmlformats-officedocument.theme+xml"

    # Package-level parts
    RELATIONSHIPS = "application/vnd.openxmlformats-package.relationships+xml"
    CORE_PROPERTIES = "application/vnd.openxmlformats-package.core-properties+xml"
    EXTENDED_PROPERTIES = "application/vnd.openxmlformats-officedocument.extended-properties+xml"
    CUSTOM_PROPERTIES = "application/vnd.openxmlformats-officedocument.custom-properties+xml"

    MAIN_DOCUMENT_TYPES = frozenset({DOCUMENT, TEMPLATE, MACRO_DOCUMENT})

    IMAGE_TYPES = frozenset(
        {
            "image/jpeg",
            "image/jpg",
            "image/png",
            "image/bmp",
            "image/gif",
            "image/tiff",
            "image/icon",
            "image/x-icon",
            "image/pcx",
            "image/emf",
            "image/x-emf",
            "image/wmf",
            "image/x-wmf",
            "image/svg",
            "image/svg+xml",
        }
    )

    IMAGE_EXTENSION_MAP = {
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "gif": "image/gif",
        "bmp": "image/bmp",
        "tif": "image/tiff",
        "tiff": "image/tiff",
        "emf": "image/x-emf",
        "wmf": "image/x-wmf",
        "svg": "image/svg+xml",
    }
