"""
Relationship import for document merges.

Content moved from one package to another keeps pointing at relationship
ids of its old part (r:embed on pictures, r:id on hyperlinks, OLE objects,
charts, embedded fonts). RelationshipImporter recreates each referenced
relationship in the host part and returns the old -> new id map, which
apply_relationship_ids() then applies to the moved content in one pass.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from copy import deepcopy
from typing import TYPE_CHECKING

from lxml import etree

from ..constants import DEFAULT_RELATIONSHIP_ID_PATTERN, OFFICE_RELATIONSHIPS_NAMESPACE, rel
from ..package import rels_part_name
from ..relationships import (
    EXTERNAL,
    Relationship,
    RelationshipTypes,
    relative_target,
    resolve_target,
)
from .merge_images import ImageImporter, unique_part_name

if TYPE_CHECKING:
    from .merge import MergeContext

logger = logging.getLogger(__name__)

_R_PREFIX = f"{{{OFFICE_RELATIONSHIPS_NAMESPACE}}}"

# Parts merged element by element elsewhere
HANDLED_TYPES = frozenset(
    {
        RelationshipTypes.STYLES,
        RelationshipTypes.STYLES_WITH_EFFECTS,
        RelationshipTypes.NUMBERING,
        RelationshipTypes.FONT_TABLE,
        RelationshipTypes.FOOTNOTES,
        RelationshipTypes.ENDNOTES,
    }
)

# Parts a document has at most one of; the host keeps its own
SINGLETON_TYPES = (
    frozenset(
        {
            RelationshipTypes.SETTINGS,
            RelationshipTypes.WEB_SETTINGS,
            RelationshipTypes.THEME,
            RelationshipTypes.HEADER,
            RelationshipTypes.FOOTER,
            RelationshipTypes.GLOSSARY_DOCUMENT,
            RelationshipTypes.CUSTOM_XML,
        }
    )
    | RelationshipTypes.COMMENT_TYPES
)


def referenced_ids(trees: Iterable[etree._Element]) -> set[str]:
    """Values of every r:-namespaced attribute in the given trees."""
    found = set()
    for tree in trees:
        for element in tree.iter():
            for name, value in element.attrib.items():
                if name.startswith(_R_PREFIX):
                    found.add(value)
    return found


def apply_relationship_ids(trees: Iterable[etree._Element], mapping: dict[str, str]) -> int:
    """Rewrite relationship id references in one pass.

    Every attribute in the r: namespace whose value is a key of `mapping`
    is replaced. Each attribute is looked up once, so a map such as
    {"rId1": "rId2", "rId2": "rId3"} never chains.

    Returns:
        Number of attributes rewritten
    """
    if not mapping:
        return 0
    changed = 0
    for tree in trees:
        for element in tree.iter():
            for name, value in element.attrib.items():
                if name.startswith(_R_PREFIX) and value in mapping:
                    element.set(name, mapping[value])
                    changed += 1
    return changed


class RelationshipImporter:
    """Recreates foreign relationships in host parts during one merge.

    Images are deduplicated by content (see ImageImporter), external targets
    are linked again under fresh ids, and any other internal target is
    copied into the host together with the parts it relates to.

    Example:
        >>> importer = RelationshipImporter(context)
        >>> mapping = importer.import_relationships(
        ...     "word/document.xml", "word/document.xml", [context.document]
        ... )
        >>> apply_relationship_ids([context.document], mapping)
    """

    def __init__(self, context: MergeContext) -> None:
        self._context = context
        self._images = ImageImporter(context)

    def import_relationships(
        self,
        foreign_source: str,
        host_source: str,
        trees: list[etree._Element],
        main_document: bool = False,
    ) -> dict[str, str]:
        """Recreate the relationships that `trees` reference.

        Args:
            foreign_source: Foreign part owning the relationships
            host_source: Host part receiving them
            trees: Foreign content about to move into host_source
            main_document: Whether the foreign source is the main document

        Returns:
            Foreign id -> host id for every recreated relationship
        """
        context = self._context
        foreign_rels = context.foreign.relationships_for(foreign_source)
        host_rels = context.host.relationships_for(host_source)
        used = referenced_ids(trees)
        existing = len(host_rels.relationships())

        mapping: dict[str, str] = {}
        for relationship in foreign_rels.relationships():
            if relationship.rel_id not in used:
                continue
            if relationship.rel_type in HANDLED_TYPES or relationship.rel_type in SINGLETON_TYPES:
                logger.debug(f"Not importing {relationship.rel_type} relationship")
                continue

            if relationship.is_external:
                new_id = host_rels.add_unique_relationship(
                    relationship.rel_type, relationship.target, EXTERNAL
                )
            elif relationship.rel_type == RelationshipTypes.IMAGE:
                new_id, copied = self._images.import_image(
                    foreign_rels.target_part(relationship), host_rels
                )
                if copied and main_document:
                    self._remember_custom_id(relationship, new_id)
            else:
                host_part = self.clone_part(foreign_rels.target_part(relationship))
                new_id = host_rels.add_unique_relationship(
                    relationship.rel_type, relative_target(host_source, host_part)
                )

            mapping[relationship.rel_id] = new_id
            logger.debug(f"Relationship {relationship.rel_id} -> {new_id} in {host_source}")

        if main_document:
            context.result.relationships += len(host_rels.relationships()) - existing
        return mapping

    def _remember_custom_id(self, relationship: Relationship, new_id: str) -> None:
        """Ids not generated by Word are also rewritten in the host's own content."""
        if re.fullmatch(DEFAULT_RELATIONSHIP_ID_PATTERN, relationship.rel_id, re.IGNORECASE):
            return
        self._context.host_relationship_ids[relationship.rel_id] = new_id

    def clone_part(self, foreign_part: str) -> str:
        """Copy a foreign part, and everything it relates to, into the host.

        The copy keeps its name unless the host already has a part with that
        name. The copy's .rels file keeps the original ids, so the copied
        bytes never need rewriting; only targets are adjusted.

        Args:
            foreign_part: Name of the part in the foreign package

        Returns:
            Name of the copy in the host package
        """
        context = self._context
        cloned = context.cloned_parts.get(foreign_part)
        if cloned is not None:
            return cloned

        foreign, host = context.foreign, context.host
        host_part = unique_part_name(host.cache, foreign_part)
        context.cloned_parts[foreign_part] = host_part

        host.package.write_part(host_part, foreign.cache.read_bytes(foreign_part))
        content_type = foreign.content_types.get_content_type(foreign_part)
        if content_type is not None:
            host.content_types.ensure_content_type(host_part, content_type)
        else:
            logger.warning(f"No content type declared for {foreign_part}")

        foreign_rels_part = rels_part_name(foreign_part)
        if foreign_rels_part in foreign.cache:
            rels_root = deepcopy(foreign.cache.require(foreign_rels_part))
            for element in rels_root.iter(rel("Relationship")):
                if element.get("TargetMode") == EXTERNAL:
                    continue
                target = resolve_target(foreign_part, element.get("Target", ""))
                if element.get("Type") == RelationshipTypes.IMAGE:
                    host_target = self._images.host_image_for(target)
                else:
                    host_target = self.clone_part(target)
                element.set("Target", relative_target(host_part, host_target))
            host.cache.add(rels_part_name(host_part), rels_root)

        context.result.parts += 1
        logger.debug(f"Cloned part {foreign_part} as {host_part}")
        return host_part
