"""
Numbering import for document merges.

Foreign abstract definitions and instances are renumbered above the host's
highest ids before they are moved, and every numId reference in the foreign
content is rewritten to match. Foreign styles are rewritten later, once the
style merge knows which of them are imported. Definitions are inserted after
the host's last definition of the same kind so that the part keeps the
schema order (all w:abstractNum before any w:num).

A foreign list reference that the foreign numbering part cannot resolve
raises NumberingNotFoundError before anything moves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from lxml import etree

from ..constants import DEFAULT_NUMBERING_PART, w
from ..content_types import ContentTypes
from ..errors import NumberingNotFoundError
from ..ids import IdKind, next_id
from ..numbering import insert_abstract_numbering, insert_numbering_instance
from ..relationships import RelationshipTypes
from ..resources import generate_hex_id

if TYPE_CHECKING:
    from .merge import MergeContext

logger = logging.getLogger(__name__)


def _int(element: etree._Element, attribute: str) -> int | None:
    try:
        return int(element.get(attribute, ""))
    except ValueError:
        return None


def _remap(elements: Iterable[etree._Element], attribute: str, mapping: dict[int, int]) -> int:
    """Rewrite integer attribute values found in mapping; returns the count."""
    changed = 0
    for element in elements:
        value = _int(element, attribute)
        if value is not None and value in mapping:
            element.set(attribute, str(mapping[value]))
            changed += 1
    return changed


def numbering_id_map(
    foreign: etree._Element, host: etree._Element | None
) -> tuple[dict[int, int], dict[int, int]]:
    """Compute new ids for the foreign abstract definitions and instances.

    Ids are handed out in foreign document order starting at the host's
    next free value of each kind.

    Args:
        foreign: Foreign w:numbering root
        host: Host w:numbering root, or None

    Returns:
        (abstractNumId mapping, numId mapping)

    Example:
        Host abstract ids {0, 1} and foreign {0} give {0: 2}.
    """
    abstract_ids: dict[int, int] = {}
    next_abstract = next_id(host, IdKind.ABSTRACT_NUMBERING)
    for abstract in foreign.findall(w("abstractNum")):
        old = _int(abstract, w("abstractNumId"))
        if old is None or old in abstract_ids:
            continue
        abstract_ids[old] = next_abstract
        next_abstract += 1

    num_ids: dict[int, int] = {}
    next_num = next_id(host, IdKind.NUMBERING)
    for num in foreign.findall(w("num")):
        old = _int(num, w("numId"))
        if old is None or old == 0 or old in num_ids:
            continue
        num_ids[old] = next_num
        next_num += 1
    return abstract_ids, num_ids


def check_numbering_references(context: MergeContext) -> None:
    """Verify that every foreign list reference resolves in the foreign part.

    Checks the abstract definition link of each w:num and every w:numId
    reference (numId 0 excepted) in the foreign content and styles.

    Raises:
        NumberingNotFoundError: On the first reference that does not resolve
    """
    foreign = context.numbering
    abstract_ids: set[int] = set()
    num_ids: list[int] = []
    if foreign is not None:
        for abstract in foreign.findall(w("abstractNum")):
            abstract_id = _int(abstract, w("abstractNumId"))
            if abstract_id is not None:
                abstract_ids.add(abstract_id)
        for num in foreign.findall(w("num")):
            num_id = _int(num, w("numId"))
            if num_id is None:
                continue
            link = num.find(w("abstractNumId"))
            target = _int(link, w("val")) if link is not None else None
            if target not in abstract_ids:
                raise NumberingNotFoundError(
                    num_id,
                    reason=f"abstract definition {target} does not exist "
                    "in the inserted document",
                )
            num_ids.append(num_id)

    referencing = list(context.content_trees)
    if context.styles is not None:
        referencing.append(context.styles)
    for tree in referencing:
        for reference in tree.iter(w("numId")):
            value = _int(reference, w("val"))
            if value is None or value == 0 or value in num_ids:
                continue
            raise NumberingNotFoundError(
                value,
                available_ids=sorted(num_ids),
                reason="referenced by the inserted document",
            )


def remap_style_numbering(styles: Iterable[etree._Element], context: MergeContext) -> int:
    """Point numId references inside imported styles at the new instances.

    Returns:
        Number of references rewritten
    """
    return _remap(
        (reference for style in styles for reference in style.iter(w("numId"))),
        w("val"),
        context.num_id_map,
    )


def merge_numbering(context: MergeContext) -> None:
    """Import the foreign numbering definitions into the host.

    Foreign styles are left untouched so that the style merge compares them
    as they were written; see remap_style_numbering().

    Args:
        context: Merge in progress; its numbering and content trees are
            rewritten in place

    Raises:
        NumberingNotFoundError: If the foreign document references a list
            or abstract definition its numbering part lacks
    """
    check_numbering_references(context)
    foreign = context.numbering
    if foreign is None:
        return

    host = context.host
    host_root = host.numbering.root
    abstracts = foreign.findall(w("abstractNum"))
    instances = foreign.findall(w("num"))

    if host_root is None:
        # The host has no numbering at all: the foreign part moves in as is
        host.ensure_part(
            RelationshipTypes.NUMBERING,
            ContentTypes.NUMBERING,
            DEFAULT_NUMBERING_PART,
            lambda: foreign,
        )
        context.numbering_elements.append(foreign)
        context.result.abstract_numberings += len(abstracts)
        context.result.numbering_instances += len(instances)
        logger.debug("Created numbering part from the inserted document")
        return

    abstract_ids, num_ids = numbering_id_map(foreign, host_root)

    _remap(abstracts, w("abstractNumId"), abstract_ids)
    _remap(instances, w("numId"), num_ids)
    _remap(
        (link for num in instances for link in num.findall(w("abstractNumId"))),
        w("val"),
        abstract_ids,
    )

    context.num_id_map = num_ids
    references = 0
    for tree in context.content_trees:
        # numId 0 means "no numbering" and is never in the map
        references += _remap(tree.iter(w("numId")), w("val"), num_ids)

    host_nsids = {
        nsid.get(w("val")) for nsid in host_root.iter(w("nsid")) if nsid.get(w("val"))
    }
    picture_bullets = foreign.find(w("numPicBullet")) is not None

    for abstract in abstracts:
        nsid = abstract.find(w("nsid"))
        if nsid is not None and nsid.get(w("val")) in host_nsids:
            # Word links lists that share an nsid
            nsid.set(w("val"), generate_hex_id())
        if picture_bullets:
            for picture in list(abstract.iter(w("lvlPicBulletId"))):
                picture.getparent().remove(picture)
        insert_abstract_numbering(host_root, abstract)
        context.numbering_elements.append(abstract)
    for num in instances:
        insert_numbering_instance(host_root, num)
        context.numbering_elements.append(num)

    if picture_bullets:
        logger.warning("Picture bullets of the inserted document fall back to text bullets")

    host.cache.mark_dirty(host.numbering.part_name)
    context.result.abstract_numberings += len(abstracts)
    context.result.numbering_instances += len(instances)
    logger.debug(
        f"Imported {len(abstracts)} abstract numberings and {len(instances)} instances; "
        f"rewrote {references} numId references"
    )
