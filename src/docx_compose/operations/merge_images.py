"""
Image import with content deduplication.

An image identical to one the host already stores is never copied twice:
SHA-256 digests narrow the candidates and a byte comparison confirms the
match. Every image part reachable from any .rels file of the host takes part
in the lookup, so an image used only in a header is found as well.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
from typing import TYPE_CHECKING

from ..constants import MEDIA_FOLDER
from ..content_types import ContentTypes
from ..package import source_part_name
from ..part_cache import PartCache
from ..relationships import INTERNAL, RelationshipManager, RelationshipTypes, relative_target

if TYPE_CHECKING:
    from .merge import MergeContext

logger = logging.getLogger(__name__)


def find_image_parts(cache: PartCache) -> list[str]:
    """Names of image parts referenced by any relationship in the package.

    Args:
        cache: PartCache of the package to scan

    Returns:
        Existing image part names in discovery order, without duplicates
    """
    rels_parts = [name for name in cache.package.part_names if name.endswith(".rels")]
    rels_parts += [name for name in cache if name.endswith(".rels") and name not in rels_parts]

    found: list[str] = []
    for rels_part in rels_parts:
        source = source_part_name(rels_part)
        if source is None:
            continue
        manager = RelationshipManager(cache, source)
        for relationship in manager.relationships():
            if relationship.rel_type != RelationshipTypes.IMAGE or relationship.is_external:
                continue
            part_name = manager.target_part(relationship)
            if part_name not in found and part_name in cache:
                found.append(part_name)
    return found


def unique_part_name(cache: PartCache, part_name: str) -> str:
    """Return part_name, or "<stem>_<n><ext>" if the name is already taken.

    Example:
        >>> unique_part_name(cache, "word/charts/chart1.xml")
        'word/charts/chart1_1.xml'
    """
    if part_name not in cache:
        return part_name
    stem, ext = posixpath.splitext(part_name)
    counter = 1
    while f"{stem}_{counter}{ext}" in cache:
        counter += 1
    return f"{stem}_{counter}{ext}"


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class ImageImporter:
    """Copies foreign images into the host, reusing identical ones.

    Attributes:
        copied: Host part names created by this importer
    """

    def __init__(self, context: MergeContext) -> None:
        self._context = context
        self._index: dict[str, list[str]] | None = None
        self.copied: list[str] = []

    def _host_index(self) -> dict[str, list[str]]:
        """Digest -> host image parts, built on first use."""
        if self._index is None:
            cache = self._context.host.cache
            self._index = {}
            for part_name in find_image_parts(cache):
                digest = _digest(cache.read_bytes(part_name))
                self._index.setdefault(digest, []).append(part_name)
            logger.debug(f"Indexed {len(self._index)} distinct host images")
        return self._index

    def host_image_for(self, foreign_part: str) -> str:
        """Host part holding the same bytes as a foreign image part.

        The image is copied into word/media first if the host has no
        identical image.

        Args:
            foreign_part: Image part name in the foreign package

        Returns:
            Name of the host image part
        """
        data = self._context.foreign.cache.read_bytes(foreign_part)
        digest = _digest(data)
        index = self._host_index()

        host_cache = self._context.host.cache
        for candidate in index.get(digest, []):
            if host_cache.read_bytes(candidate) == data:
                logger.debug(f"Reusing host image {candidate} for {foreign_part}")
                return candidate

        host_part = self._store(foreign_part, data)
        index.setdefault(digest, []).append(host_part)
        return host_part

    def _store(self, foreign_part: str, data: bytes) -> str:
        """Write image bytes to a free name under word/media."""
        context = self._context
        host = context.host
        host_part = unique_part_name(
            host.cache, f"{MEDIA_FOLDER}/{posixpath.basename(foreign_part)}"
        )
        host.package.write_part(host_part, data)

        content_type = context.foreign.content_types.get_content_type(foreign_part)
        if content_type is None:
            extension = posixpath.splitext(foreign_part)[1].lstrip(".").lower()
            content_type = ContentTypes.IMAGE_EXTENSION_MAP.get(extension)
        if content_type is not None:
            host.content_types.ensure_content_type(host_part, content_type)
        else:
            logger.warning(f"Unknown content type for image {foreign_part}")

        self.copied.append(host_part)
        context.result.images += 1
        logger.debug(f"Copied image {foreign_part} to {host_part}")
        return host_part

    def import_image(self, foreign_part: str, host_rels: RelationshipManager) -> tuple[str, bool]:
        """Link a foreign image from a host part.

        An existing relationship from the host part to the same image is
        reused; otherwise a new one is created.

        Args:
            foreign_part: Image part name in the foreign package
            host_rels: Relationships of the host part that will show the image

        Returns:
            (relationship id, whether the image bytes were copied)
        """
        copies = len(self.copied)
        host_part = self.host_image_for(foreign_part)
        copied = len(self.copied) > copies

        for relationship in host_rels.relationships():
            if (
                relationship.rel_type == RelationshipTypes.IMAGE
                and relationship.target_mode == INTERNAL
                and host_rels.target_part(relationship) == host_part
            ):
                return relationship.rel_id, copied

        rel_id = host_rels.add_unique_relationship(
            RelationshipTypes.IMAGE, relative_target(host_rels.part_name, host_part)
        )
        return rel_id, copied
