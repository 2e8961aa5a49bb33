"""
Style import for document merges.

Two styles are the same when their definitions are identical apart from the
styleId. A foreign style identical to a host style is not imported; its
references are pointed at the host style instead. Any other foreign style is
imported under a fresh, globally unique id so that it can never capture
references that belong to a host style of the same name.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

from lxml import etree

from ..constants import DEFAULT_STYLES_PART, w
from ..content_types import ContentTypes
from ..relationships import RelationshipTypes
from .merge_numbering import remap_style_numbering

if TYPE_CHECKING:
    from .merge import MergeContext

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

# Elements whose w:val names a style, by where they occur
CONTENT_REFERENCES = (w("pStyle"), w("rStyle"), w("tblStyle"))
STYLE_REFERENCES = (w("basedOn"), w("next"), w("link"))
NUMBERING_REFERENCES = (w("pStyle"), w("styleLink"), w("numStyleLink"))


def style_key(element: etree._Element) -> str:
    """Normalized form of a w:style used to detect identical styles.

    The styleId is left out, attributes are sorted and whitespace is
    collapsed, so the key does not depend on namespace prefixes or on how
    the part was indented.
    """

    def render(node: etree._Element) -> str:
        if not isinstance(node.tag, str):
            return ""
        attributes = sorted(
            (name, value) for name, value in node.attrib.items() if name != w("styleId")
        )
        text = _WHITESPACE.sub("", node.text or "")
        children = "".join(render(child) for child in node)
        return f"<{node.tag}{attributes}>{text}{children}</>"

    return render(element)


def rewrite_style_references(
    trees: Iterable[etree._Element], tags: tuple[str, ...], mapping: dict[str, str]
) -> int:
    """Rewrite w:val of style reference elements in a single pass.

    Returns:
        Number of references rewritten
    """
    changed = 0
    for tree in trees:
        for element in tree.iter(*tags):
            value = element.get(w("val"))
            if value in mapping:
                element.set(w("val"), mapping[value])
                changed += 1
    return changed


def merge_styles(context: MergeContext) -> None:
    """Import the foreign styles into the host.

    Styles are compared as the inserted document wrote them; only the
    imported ones have their numId references moved to the new instances.

    Args:
        context: Merge in progress; its content trees and numbering elements
            are rewritten to the styleIds valid in the host
    """
    foreign = context.styles
    if foreign is None:
        return

    host = context.host
    host_root = host.styles.root
    if host_root is None:
        host.ensure_part(
            RelationshipTypes.STYLES,
            ContentTypes.STYLES,
            DEFAULT_STYLES_PART,
            lambda: foreign,
        )
        remap_style_numbering(foreign.findall(w("style")), context)
        context.result.styles += len(foreign.findall(w("style")))
        logger.debug("Created styles part from the inserted document")
        return

    host_keys: dict[str, str] = {}
    for element in host_root.findall(w("style")):
        style_id = element.get(w("styleId"))
        if style_id:
            host_keys.setdefault(style_key(element), style_id)

    mapping: dict[str, str] = {}
    imported: list[etree._Element] = []
    for element in foreign.findall(w("style")):
        style_id = element.get(w("styleId"))
        if not style_id:
            logger.warning("Skipping style element without styleId attribute")
            continue

        host_id = host_keys.get(style_key(element))
        if host_id is not None:
            if host_id != style_id:
                mapping[style_id] = host_id
            continue

        new_id = uuid.uuid4().hex
        mapping[style_id] = new_id
        element.set(w("styleId"), new_id)
        element.attrib.pop(w("default"), None)
        imported.append(element)

    references = rewrite_style_references(context.content_trees, CONTENT_REFERENCES, mapping)
    references += rewrite_style_references(imported, STYLE_REFERENCES, mapping)
    remap_style_numbering(imported, context)
    references += rewrite_style_references(
        context.numbering_elements, NUMBERING_REFERENCES, mapping
    )

    if imported:
        host_root.extend(imported)
        host.cache.mark_dirty(host.styles.part_name)
    if context.numbering_elements and references:
        host.cache.mark_dirty(host.numbering.part_name)

    context.result.styles += len(imported)
    logger.debug(f"Imported {len(imported)} styles; rewrote {references} style references")
