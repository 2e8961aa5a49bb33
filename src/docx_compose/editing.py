"""
Run/paragraph edit engine.

Every text edit reduces to one primitive: cut the run tree of a paragraph at
a character offset so that the content before and after the offset lives in
separate top-level children. Runs are divided at the text level and each
half keeps a copy of the run properties; tracked-change wrappers, hyperlinks
and smart tags are divided into two wrappers carrying the same attributes.

Offsets are measured in effective length (see models.nodes.effective_length):
text counts its characters, tabs and breaks count one, everything else zero.
"""

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone

from lxml import etree

from .constants import W14_NAMESPACE, XML_NAMESPACE, w
from .errors import DocumentFormatError, InvalidArgumentError, OffsetOutOfRangeError
from .models.nodes import NodeKind, effective_length, node_kind

logger = logging.getLogger(__name__)

_XML_SPACE = f"{{{XML_NAMESPACE}}}space"
_PARAGRAPH_IDS = (f"{{{W14_NAMESPACE}}}paraId", f"{{{W14_NAMESPACE}}}textId")
# Revision markers that must not be copied into freshly inserted runs
_REVISION_PROPERTIES = (w("ins"), w("del"), w("rPrChange"), w("moveFrom"), w("moveTo"))


@dataclass(frozen=True)
class TrackedChange:
    """Author and timestamp of a tracked edit.

    The w:id written on the wrapper is provisional; Document.save()
    renumbers all tracked changes of the document.

    Attributes:
        author: Name shown in Word's review pane
        date: Timestamp of the change (defaults to now, UTC)
    """

    author: str
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.author or not self.author.strip():
            raise InvalidArgumentError("author", "must not be empty")

    @property
    def timestamp(self) -> str:
        return self.date.strftime("%Y-%m-%dT%H:%M:%SZ")

    def make_wrapper(self, tag: str, change_id: int) -> etree._Element:
        """Create an empty w:ins or w:del element for this change."""
        wrapper = etree.Element(tag)
        wrapper.set(w("id"), str(change_id))
        wrapper.set(w("author"), self.author)
        wrapper.set(w("date"), self.timestamp)
        return wrapper


def _check_offset(offset: int, length: int, argument: str = "offset") -> None:
    if not 0 <= offset <= length:
        raise OffsetOutOfRangeError(offset, length, argument)


def _check_paragraph(paragraph: etree._Element) -> None:
    if node_kind(paragraph) is not NodeKind.PARAGRAPH:
        raise InvalidArgumentError("paragraph", f"expected w:p element, got {paragraph.tag}")


def _shallow_copy(element: etree._Element) -> etree._Element:
    """Copy an element's tag and attributes without its children."""
    return element.makeelement(element.tag, dict(element.attrib))


def _split_text(element: etree._Element, offset: int) -> tuple[etree._Element, etree._Element]:
    text = element.text or ""
    halves = []
    for part in (text[:offset], text[offset:]):
        half = _shallow_copy(element)
        half.text = part
        half.set(_XML_SPACE, "preserve")
        halves.append(half)
    return halves[0], halves[1]


def _split_children(
    children: list[etree._Element], offset: int
) -> tuple[list[etree._Element], list[etree._Element]]:
    """Partition a list of sibling elements at an offset.

    Children ending at or before the offset go left, children starting at or
    after it go right (a zero-length child sitting exactly on the offset goes
    right). The one child the offset falls strictly inside is split.

    Nothing is moved or modified before the split point has been validated,
    so a DocumentFormatError leaves the tree untouched.
    """
    before: list[etree._Element] = []
    after: list[etree._Element] = []
    position = 0
    for child in children:
        length = effective_length(child)
        end = position + length
        if end <= offset and position < offset:
            before.append(child)
        elif position >= offset:
            after.append(child)
        else:
            left, right = _split_node(child, offset - position)
            before.append(left)
            after.append(right)
        position = end
    return before, after


def _split_node(element: etree._Element, offset: int) -> tuple[etree._Element, etree._Element]:
    """Split one element strictly inside its content (0 < offset < length)."""
    kind = node_kind(element)

    if kind.is_text:
        return _split_text(element, offset)

    if kind is NodeKind.RUN:
        properties = element.find(w("rPr"))
        content = [child for child in element if child is not properties]
        before_content, after_content = _split_children(content, offset)
        halves = []
        for part in (before_content, after_content):
            half = _shallow_copy(element)
            if properties is not None:
                half.append(deepcopy(properties))
            half.extend(part)
            halves.append(half)
        return halves[0], halves[1]

    if kind.is_wrapper:
        before_content, after_content = _split_children(list(element), offset)
        before_wrapper = _shallow_copy(element)
        before_wrapper.extend(before_content)
        after_wrapper = _shallow_copy(element)
        after_wrapper.extend(after_content)
        return before_wrapper, after_wrapper

    if kind is NodeKind.ATOMIC:
        raise DocumentFormatError(
            f"Cannot split inside atomic container {etree.QName(element).localname}"
        )

    raise DocumentFormatError(
        f"Offset {offset} falls inside non-text element {etree.QName(element).localname}"
    )


def _paragraph_properties(paragraph: etree._Element) -> etree._Element | None:
    for child in paragraph:
        if node_kind(child) is NodeKind.PARAGRAPH_PROPERTIES:
            return child
    return None


def isolate_offset(paragraph: etree._Element, offset: int) -> int:
    """Split the paragraph in place so that an offset falls between children.

    After the call, every top-level child before the returned index ends at
    or before `offset`, and every child from the index on starts at or after
    it. Text is not changed.

    Args:
        paragraph: The w:p element to modify
        offset: Character offset in [0, effective length]

    Returns:
        Index of the first paragraph child holding content after `offset`

    Raises:
        OffsetOutOfRangeError: If the offset is outside the paragraph
        DocumentFormatError: If the offset falls inside an unsplittable node
    """
    _check_paragraph(paragraph)
    _check_offset(offset, effective_length(paragraph))

    properties = _paragraph_properties(paragraph)
    content = [child for child in paragraph if child is not properties]
    before, after = _split_children(content, offset)

    for child in content:
        paragraph.remove(child)
    paragraph.extend(before + after)
    return len(paragraph) - len(after)


def _paragraph_half(
    paragraph: etree._Element,
    properties: etree._Element | None,
    content: list[etree._Element],
    *,
    keep_section: bool,
    keep_ids: bool,
) -> etree._Element:
    half = etree.Element(paragraph.tag, dict(paragraph.attrib), nsmap=paragraph.nsmap)
    if not keep_ids:
        for attribute in _PARAGRAPH_IDS:
            half.attrib.pop(attribute, None)
    if properties is not None:
        props_copy = deepcopy(properties)
        if not keep_section:
            for section in props_copy.findall(w("sectPr")):
                props_copy.remove(section)
        half.append(props_copy)
    half.extend(content)
    return half


def split_paragraph(
    paragraph: etree._Element, offset: int
) -> tuple[etree._Element | None, etree._Element | None]:
    """Split a paragraph into two new paragraphs at a character offset.

    The input is not modified. Both halves carry a copy of the paragraph
    properties; section properties stay with the second half and the
    w14:paraId/w14:textId attributes with the first.

    Args:
        paragraph: The w:p element to split
        offset: Character offset in [0, effective length]

    Returns:
        (before, after). Splitting at 0 gives (None, copy); splitting at the
        full length gives (copy, None).

    Raises:
        OffsetOutOfRangeError: If the offset is outside the paragraph
        DocumentFormatError: If the offset falls inside an unsplittable node

    Example:
        >>> before, after = split_paragraph(p, 15)  # "This is a test. Will it work?"
        >>> element_text(before), element_text(after)
        ('This is a test.', ' Will it work?')
    """
    _check_paragraph(paragraph)
    length = effective_length(paragraph)
    _check_offset(offset, length)

    if offset == 0:
        return None, deepcopy(paragraph)
    if offset == length:
        return deepcopy(paragraph), None

    work = deepcopy(paragraph)
    index = isolate_offset(work, offset)
    properties = _paragraph_properties(work)
    children = list(work)
    before_content = [child for child in children[:index] if child is not properties]
    after_content = children[index:]

    before = (
        _paragraph_half(work, properties, before_content, keep_section=False, keep_ids=True)
        if before_content
        else None
    )
    after = (
        _paragraph_half(work, properties, after_content, keep_section=True, keep_ids=False)
        if after_content
        else None
    )
    return before, after


def _runs_with_spans(paragraph: etree._Element) -> list[tuple[etree._Element, int, int]]:
    """Runs of a paragraph in document order with their [start, end) spans."""
    spans = []
    position = 0

    def walk(element: etree._Element) -> None:
        nonlocal position
        for child in element:
            kind = node_kind(child)
            if kind.is_properties:
                continue
            if kind is NodeKind.RUN:
                length = effective_length(child)
                spans.append((child, position, position + length))
                position += length
            elif kind.is_text or kind.is_single_character:
                position += effective_length(child)
            else:
                walk(child)

    walk(paragraph)
    return spans


def _formatting_at(
    paragraph: etree._Element, offset: int, prefer_preceding: bool
) -> etree._Element | None:
    """Copy of the w:rPr governing a character position, or None."""
    spans = [span for span in _runs_with_spans(paragraph) if span[2] > span[1]]
    if not spans:
        return None

    chosen = None
    if prefer_preceding and offset > 0:
        chosen = next((run for run, start, end in spans if start < offset <= end), None)
    if chosen is None:
        chosen = next((run for run, start, end in spans if start <= offset < end), None)
    if chosen is None:
        chosen = spans[-1][0]

    properties = chosen.find(w("rPr"))
    if properties is None:
        return None
    properties = deepcopy(properties)
    for revision in properties.findall("*"):
        if revision.tag in _REVISION_PROPERTIES:
            properties.remove(revision)
    return properties


def _provisional_change_id(element: etree._Element) -> int:
    root = element.getroottree().getroot()
    ids = [-1]
    for change in root.iter(w("ins"), w("del")):
        try:
            ids.append(int(change.get(w("id"), "")))
        except ValueError:
            continue
    return max(ids) + 1


def build_run(text: str, run_properties: etree._Element | None = None) -> etree._Element:
    """Create a w:r holding text, with "\\t" as w:tab and "\\n" as w:br.

    Args:
        text: Text of the run
        run_properties: Optional w:rPr; a copy is placed first in the run

    Returns:
        The new w:r element
    """
    run = etree.Element(w("r"))
    if run_properties is not None:
        run.append(deepcopy(run_properties))

    buffer = ""

    def flush() -> None:
        nonlocal buffer
        if buffer:
            text_elem = etree.SubElement(run, w("t"))
            text_elem.text = buffer
            if buffer[0].isspace() or buffer[-1].isspace():
                text_elem.set(_XML_SPACE, "preserve")
            buffer = ""

    for char in text:
        if char == "\t":
            flush()
            etree.SubElement(run, w("tab"))
        elif char == "\n":
            flush()
            etree.SubElement(run, w("br"))
        else:
            buffer += char
    flush()
    return run


def _insert_at_index(
    paragraph: etree._Element,
    index: int,
    text: str,
    run_properties: etree._Element | None,
    tracked: TrackedChange | None,
) -> etree._Element:
    node = build_run(text, run_properties)
    if tracked is not None:
        wrapper = tracked.make_wrapper(w("ins"), _provisional_change_id(paragraph))
        wrapper.append(node)
        node = wrapper
    paragraph.insert(index, node)
    return node


def insert_text(
    paragraph: etree._Element,
    offset: int,
    text: str,
    run_properties: etree._Element | None = None,
    tracked: TrackedChange | None = None,
) -> etree._Element:
    """Insert text into a paragraph at a character offset.

    The new run copies the formatting of the run preceding the insertion
    point (or the following run at offset 0) unless run_properties is given.

    Args:
        paragraph: The w:p element to modify
        offset: Character offset in [0, effective length]
        text: Text to insert; "\\t" and "\\n" become w:tab and w:br
        run_properties: Explicit w:rPr for the new run
        tracked: Wrap the new run in a w:ins for this change

    Returns:
        The inserted w:r, or the w:ins wrapping it

    Raises:
        InvalidArgumentError: If the text is empty or the offset is out of range
        DocumentFormatError: If the offset falls inside an unsplittable node
    """
    _check_paragraph(paragraph)
    if not text:
        raise InvalidArgumentError("text", "must not be empty")
    _check_offset(offset, effective_length(paragraph))

    if run_properties is None:
        run_properties = _formatting_at(paragraph, offset, prefer_preceding=True)

    work = deepcopy(paragraph)
    index = isolate_offset(work, offset)
    node = _insert_at_index(work, index, text, run_properties, tracked)
    paragraph[:] = list(work)
    logger.debug(f"Inserted {len(text)} characters at offset {offset}")
    return node


def _to_deleted(run: etree._Element) -> None:
    for text_elem in run.iter(w("t")):
        text_elem.tag = w("delText")
        text_elem.set(_XML_SPACE, "preserve")
    for instr in run.iter(w("instrText")):
        instr.tag = w("delInstrText")


def _mark_deleted(
    container: etree._Element,
    nodes: list[etree._Element],
    tracked: TrackedChange,
    next_change_id: int,
) -> int:
    """Wrap runs of `nodes` (children of container) in w:del elements.

    Consecutive runs share one wrapper. Insertions are dropped, existing
    deletions left alone and other wrappers processed recursively.

    Returns:
        The next unused provisional change id
    """
    current: etree._Element | None = None
    for node in nodes:
        kind = node_kind(node)
        if kind is NodeKind.RUN:
            if current is None:
                current = tracked.make_wrapper(w("del"), next_change_id)
                next_change_id += 1
                node.addprevious(current)
            _to_deleted(node)
            current.append(node)
            continue

        current = None
        if kind is NodeKind.INSERTION:
            container.remove(node)
        elif kind in (NodeKind.HYPERLINK, NodeKind.SMART_TAG, NodeKind.MOVE_TO):
            next_change_id = _mark_deleted(node, list(node), tracked, next_change_id)
        elif kind is NodeKind.ATOMIC and effective_length(node):
            logger.warning(
                f"Tracked removal skipped content of {etree.QName(node).localname}; "
                "content controls and simple fields are removed only untracked"
            )
    return next_change_id


def _remove_from(
    paragraph: etree._Element,
    offset: int,
    count: int,
    tracked: TrackedChange | None,
) -> int:
    """Remove a range in place.

    Returns:
        Child index where replacement content belongs: the start of the
        range when untracked, just after the new deletion when tracked
    """
    start = isolate_offset(paragraph, offset)
    end = isolate_offset(paragraph, offset + count)
    children = list(paragraph)
    covered = children[start:end]

    if tracked is None:
        for node in covered:
            if effective_length(node) or node_kind(node) is not NodeKind.OTHER:
                paragraph.remove(node)
        return start

    following = children[end] if end < len(children) else None
    _mark_deleted(paragraph, covered, tracked, _provisional_change_id(paragraph))
    return paragraph.index(following) if following is not None else len(paragraph)


def _check_range(paragraph: etree._Element, offset: int, count: int) -> None:
    if count < 0:
        raise InvalidArgumentError("count", f"must not be negative, got {count}")
    length = effective_length(paragraph)
    _check_offset(offset, length)
    _check_offset(offset + count, length, "count")


def remove_text(
    paragraph: etree._Element,
    offset: int,
    count: int,
    tracked: TrackedChange | None = None,
) -> None:
    """Remove `count` characters starting at `offset`.

    Untracked removal deletes the covered runs. Tracked removal wraps them in
    w:del (text becomes w:delText), drops covered w:ins content and leaves
    existing w:del content as it is. Zero-length markers such as bookmarks
    inside the range are kept in both modes.

    Args:
        paragraph: The w:p element to modify
        offset: First character to remove
        count: Number of characters to remove
        tracked: Record the removal as a tracked deletion

    Raises:
        InvalidArgumentError: If the range is outside the paragraph
        DocumentFormatError: If a range end falls inside an unsplittable node
    """
    _check_paragraph(paragraph)
    _check_range(paragraph, offset, count)
    if count == 0:
        return

    work = deepcopy(paragraph)
    _remove_from(work, offset, count, tracked)
    paragraph[:] = list(work)
    logger.debug(f"Removed {count} characters at offset {offset}")


def replace_text(
    paragraph: etree._Element,
    offset: int,
    count: int,
    text: str,
    run_properties: etree._Element | None = None,
    tracked: TrackedChange | None = None,
) -> etree._Element:
    """Replace `count` characters at `offset` with new text.

    The replacement takes the formatting of the first replaced character
    unless run_properties is given. A tracked replacement places the w:ins
    right after the w:del it replaces.

    Returns:
        The inserted w:r, or the w:ins wrapping it
    """
    _check_paragraph(paragraph)
    if not text:
        raise InvalidArgumentError("text", "must not be empty")
    _check_range(paragraph, offset, count)

    if run_properties is None:
        run_properties = _formatting_at(paragraph, offset, prefer_preceding=count == 0)

    work = deepcopy(paragraph)
    if count:
        index = _remove_from(work, offset, count, tracked)
    else:
        index = isolate_offset(work, offset)
    node = _insert_at_index(work, index, text, run_properties, tracked)
    paragraph[:] = list(work)
    logger.debug(f"Replaced {count} characters at offset {offset}")
    return node
