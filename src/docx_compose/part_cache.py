"""
PartCache class owning the parsed XML trees of a package.

Every XML part that the edit or merge engines touch is parsed once and kept
here together with a dirty flag. Engines mutate the cached tree in place and
call mark_dirty(); nothing is serialized until flush() runs at save time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from lxml import etree

from .errors import PartNotFoundError
from .package import OOXMLPackage, normalize_part_name

logger = logging.getLogger(__name__)


@dataclass
class CachedPart:
    """A parsed part and whether it changed since it was loaded.

    Attributes:
        root: Root element of the parsed part
        dirty: True when the tree must be written back on flush
    """

    root: etree._Element
    dirty: bool = False


class PartCache:
    """Cache of parsed XML parts keyed by part name.

    The cache is the sole owner of each parsed tree. Two lookups of the same
    part return the same root element, so edits made through one manager are
    visible to every other manager of the same document.

    Example:
        >>> cache = PartCache(package)
        >>> root = cache.get("word/styles.xml")
        >>> root.append(new_style)
        >>> cache.mark_dirty("word/styles.xml")
        >>> cache.flush()  # writes word/styles.xml back into the package
    """

    def __init__(self, package: OOXMLPackage) -> None:
        """Initialize an empty cache over a package.

        Args:
            package: The container the parts are read from and written to
        """
        self._package = package
        self._entries: dict[str, CachedPart] = {}

    @property
    def package(self) -> OOXMLPackage:
        """The package backing this cache."""
        return self._package

    def __contains__(self, part_name: str) -> bool:
        name = normalize_part_name(part_name)
        return name in self._entries or self._package.part_exists(name)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get(self, part_name: str) -> etree._Element | None:
        """Return the parsed root of a part, loading it on first access.

        Args:
            part_name: Part name, with or without a leading slash

        Returns:
            The cached root element, or None if the part does not exist
        """
        name = normalize_part_name(part_name)
        entry = self._entries.get(name)
        if entry is not None:
            return entry.root

        root = self._package.get_part(name)
        if root is None:
            return None

        self._entries[name] = CachedPart(root)
        logger.debug(f"Parsed part {name}")
        return root

    def require(self, part_name: str) -> etree._Element:
        """Return the parsed root of a part that must exist.

        Raises:
            PartNotFoundError: If the part does not exist
        """
        root = self.get(part_name)
        if root is None:
            raise PartNotFoundError(normalize_part_name(part_name))
        return root

    def add(self, part_name: str, root: etree._Element) -> None:
        """Register a new (or replacement) tree for a part.

        The entry starts dirty so it is written on the next flush.

        Args:
            part_name: Part name, with or without a leading slash
            root: Root element of the new part
        """
        name = normalize_part_name(part_name)
        self._entries[name] = CachedPart(root, dirty=True)
        logger.debug(f"Added part {name} to cache")

    def mark_dirty(self, part_name: str) -> None:
        """Flag a cached part as modified.

        Raises:
            PartNotFoundError: If the part was never loaded into the cache
        """
        name = normalize_part_name(part_name)
        entry = self._entries.get(name)
        if entry is None:
            raise PartNotFoundError(name, "not loaded in the part cache")
        entry.dirty = True

    def is_dirty(self, part_name: str) -> bool:
        """Check whether a part has unsaved modifications."""
        entry = self._entries.get(normalize_part_name(part_name))
        return entry is not None and entry.dirty

    @property
    def dirty_parts(self) -> list[str]:
        """Names of all parts with unsaved modifications."""
        return [name for name, entry in self._entries.items() if entry.dirty]

    def read_bytes(self, part_name: str) -> bytes:
        """Current contents of a part, including unsaved edits of its tree.

        Raises:
            PartNotFoundError: If the part does not exist
        """
        name = normalize_part_name(part_name)
        entry = self._entries.get(name)
        if entry is not None and entry.dirty:
            return etree.tostring(
                entry.root.getroottree(),
                encoding="UTF-8",
                xml_declaration=True,
                standalone=True,
            )
        return self._package.read_part(name)

    def discard(self, part_name: str) -> None:
        """Delete a part from both the cache and the package."""
        name = normalize_part_name(part_name)
        self._entries.pop(name, None)
        self._package.delete_part(name)
        logger.debug(f"Discarded part {name}")

    def flush(self) -> int:
        """Serialize every dirty tree back into the package.

        Returns:
            Number of parts written
        """
        written = 0
        with self._package.lock:
            for name, entry in self._entries.items():
                if not entry.dirty:
                    continue
                self._package.set_part(name, entry.root)
                entry.dirty = False
                written += 1
        if written:
            logger.debug(f"Flushed {written} dirty parts")
        return written
