"""Tests for the run/paragraph edit engine."""

import logging
from datetime import datetime, timezone

import pytest
from lxml import etree

from builders import fragment, w
from docx_compose.editing import (
    TrackedChange,
    build_run,
    insert_text,
    isolate_offset,
    remove_text,
    replace_text,
    split_paragraph,
)
from docx_compose.errors import DocumentFormatError, InvalidArgumentError, OffsetOutOfRangeError
from docx_compose.formatted_text import get_formatted_text
from docx_compose.models.nodes import effective_length, element_text

W14_PARA_ID = "{http://schemas.microsoft.com/office/word/2010/wordml}paraId"

SENTENCE = (
    '<w:p w14:paraId="1A2B3C4D">'
    '<w:pPr><w:jc w:val="center"/></w:pPr>'
    "<w:r><w:rPr><w:b/></w:rPr><w:t>This is a test.</w:t></w:r>"
    '<w:r><w:t xml:space="preserve"> Will it work?</w:t></w:r>'
    "</w:p>"
)

HELLO = '<w:p><w:r><w:t xml:space="preserve">Hello world</w:t></w:r></w:p>'

SDT = (
    "<w:p><w:r><w:t>ab</w:t></w:r>"
    "<w:sdt><w:sdtContent><w:r><w:t>cdef</w:t></w:r></w:sdtContent></w:sdt>"
    "</w:p>"
)


@pytest.fixture
def change():
    return TrackedChange("Reviewer", datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))


def visible_text(paragraph):
    return "".join(t.text or "" for t in paragraph.iter(w("t")))


class TestTrackedChange:
    """Tests for TrackedChange."""

    def test_empty_author_raises(self):
        with pytest.raises(InvalidArgumentError):
            TrackedChange("  ")

    def test_timestamp(self, change):
        assert change.timestamp == "2024-01-02T03:04:05Z"

    def test_make_wrapper(self, change):
        wrapper = change.make_wrapper(w("ins"), 4)
        assert wrapper.get(w("id")) == "4"
        assert wrapper.get(w("author")) == "Reviewer"


class TestSplitParagraph:
    """Tests for split_paragraph()."""

    def test_split_between_runs(self):
        paragraph = fragment(SENTENCE)
        before, after = split_paragraph(paragraph, 15)

        assert element_text(before) == "This is a test."
        assert element_text(after) == " Will it work?"

    def test_split_inside_run_keeps_formatting(self):
        paragraph = fragment(SENTENCE)
        before, after = split_paragraph(paragraph, 8)

        assert element_text(before) == "This is "
        assert element_text(after) == "a test. Will it work?"
        assert get_formatted_text(after)[0].formatting.bold
        assert get_formatted_text(after)[0].text == "a test."

    def test_halves_add_up(self):
        paragraph = fragment(SENTENCE)
        length = effective_length(paragraph)
        for offset in range(1, length):
            before, after = split_paragraph(paragraph, offset)
            assert effective_length(before) + effective_length(after) == length
            assert element_text(before) + element_text(after) == element_text(paragraph)

    def test_both_halves_keep_paragraph_properties(self):
        before, after = split_paragraph(fragment(SENTENCE), 4)
        for half in (before, after):
            assert half.find(f"{w('pPr')}/{w('jc')}").get(w("val")) == "center"

    def test_paragraph_ids_stay_on_first_half(self):
        before, after = split_paragraph(fragment(SENTENCE), 4)
        assert before.get(W14_PARA_ID) == "1A2B3C4D"
        assert after.get(W14_PARA_ID) is None

    def test_section_properties_move_to_second_half(self):
        paragraph = fragment(
            '<w:p><w:pPr><w:pStyle w:val="Heading1"/><w:sectPr/></w:pPr>'
            "<w:r><w:t>abcdef</w:t></w:r></w:p>"
        )
        before, after = split_paragraph(paragraph, 2)

        assert before.find(f"{w('pPr')}/{w('sectPr')}") is None
        assert before.find(f"{w('pPr')}/{w('pStyle')}") is not None
        assert after.find(f"{w('pPr')}/{w('sectPr')}") is not None

    def test_split_inside_insertion_keeps_wrapper_attributes(self):
        paragraph = fragment(
            '<w:p><w:ins w:id="9" w:author="Ann" w:date="2024-01-01T00:00:00Z">'
            "<w:r><w:t>abcdef</w:t></w:r></w:ins></w:p>"
        )
        before, after = split_paragraph(paragraph, 3)

        for half, text in ((before, "abc"), (after, "def")):
            wrapper = half.find(w("ins"))
            assert wrapper.get(w("author")) == "Ann"
            assert element_text(wrapper) == text

    def test_split_at_boundaries(self):
        paragraph = fragment(SENTENCE)
        length = effective_length(paragraph)

        before, after = split_paragraph(paragraph, 0)
        assert before is None
        assert element_text(after) == element_text(paragraph)
        assert after is not paragraph

        before, after = split_paragraph(paragraph, length)
        assert after is None
        assert element_text(before) == element_text(paragraph)

    def test_input_is_not_modified(self):
        paragraph = fragment(SENTENCE)
        original = etree.tostring(paragraph)
        split_paragraph(paragraph, 8)
        assert etree.tostring(paragraph) == original

    def test_offset_out_of_range(self):
        with pytest.raises(OffsetOutOfRangeError) as exc_info:
            split_paragraph(fragment(SENTENCE), 100)
        assert exc_info.value.length == 29

    def test_negative_offset(self):
        with pytest.raises(InvalidArgumentError):
            split_paragraph(fragment(SENTENCE), -1)

    def test_split_inside_content_control_raises(self):
        with pytest.raises(DocumentFormatError):
            split_paragraph(fragment(SDT), 4)

    def test_split_next_to_content_control(self):
        before, after = split_paragraph(fragment(SDT), 2)
        assert element_text(before) == "ab"
        assert after.find(w("sdt")) is not None

    def test_tab_counts_as_one_character(self):
        paragraph = fragment("<w:p><w:r><w:t>a</w:t><w:tab/><w:t>b</w:t></w:r></w:p>")
        before, after = split_paragraph(paragraph, 2)
        assert element_text(before) == "a\t"
        assert element_text(after) == "b"

    def test_rejects_non_paragraph(self):
        with pytest.raises(InvalidArgumentError):
            split_paragraph(fragment("<w:r><w:t>x</w:t></w:r>"), 0)


class TestIsolateOffset:
    """Tests for isolate_offset()."""

    def test_returns_index_of_following_content(self):
        paragraph = fragment(HELLO)
        index = isolate_offset(paragraph, 5)

        children = list(paragraph)
        assert index == 1
        assert element_text(children[0]) == "Hello"
        assert element_text(children[1]) == " world"

    def test_does_not_change_text(self):
        paragraph = fragment(SENTENCE)
        isolate_offset(paragraph, 3)
        assert element_text(paragraph) == "This is a test. Will it work?"

    def test_skips_paragraph_properties(self):
        paragraph = fragment(SENTENCE)
        assert isolate_offset(paragraph, 0) == 1


class TestBuildRun:
    """Tests for build_run()."""

    def test_tabs_and_breaks(self):
        run = build_run("a\tb\nc")
        assert [child.tag for child in run] == [w("t"), w("tab"), w("t"), w("br"), w("t")]

    def test_whitespace_is_preserved(self):
        run = build_run(" padded ")
        assert run.find(w("t")).get("{http://www.w3.org/XML/1998/namespace}space") == "preserve"

    def test_properties_come_first(self):
        run = build_run("x", fragment("<w:rPr><w:i/></w:rPr>"))
        assert run[0].tag == w("rPr")


class TestInsertText:
    """Tests for insert_text()."""

    def test_insert_inside_run(self):
        paragraph = fragment(HELLO)
        node = insert_text(paragraph, 5, ",")

        assert node.tag == w("r")
        assert element_text(paragraph) == "Hello, world"

    def test_inherits_preceding_formatting(self):
        paragraph = fragment(
            "<w:p><w:r><w:rPr><w:b/></w:rPr><w:t>Bold</w:t></w:r>"
            '<w:r><w:t xml:space="preserve"> plain</w:t></w:r></w:p>'
        )
        insert_text(paragraph, 4, "er")

        spans = get_formatted_text(paragraph)
        assert [(span.text, span.formatting.bold) for span in spans] == [
            ("Bolder", True),
            (" plain", False),
        ]

    def test_insert_at_start_uses_following_formatting(self):
        paragraph = fragment("<w:p><w:r><w:rPr><w:i/></w:rPr><w:t>tail</w:t></w:r></w:p>")
        insert_text(paragraph, 0, "head ")

        spans = get_formatted_text(paragraph)
        assert len(spans) == 1
        assert spans[0].text == "head tail"
        assert spans[0].formatting.italic

    def test_explicit_run_properties(self):
        paragraph = fragment(HELLO)
        underline = fragment('<w:rPr><w:u w:val="single"/></w:rPr>')
        insert_text(paragraph, 11, "!", run_properties=underline)
        assert get_formatted_text(paragraph)[-1].formatting.underline == "single"

    def test_revision_markers_are_not_inherited(self):
        paragraph = fragment(
            "<w:p><w:r><w:rPr><w:b/><w:rPrChange w:id=\"1\" w:author=\"A\"><w:rPr/></w:rPrChange>"
            "</w:rPr><w:t>abc</w:t></w:r></w:p>"
        )
        node = insert_text(paragraph, 3, "d")
        assert node.find(f"{w('rPr')}/{w('rPrChange')}") is None
        assert node.find(f"{w('rPr')}/{w('b')}") is not None

    def test_tracked_insert(self, change):
        paragraph = fragment(HELLO)
        node = insert_text(paragraph, 5, " there", tracked=change)

        assert node.tag == w("ins")
        assert node.get(w("author")) == "Reviewer"
        assert element_text(node) == " there"
        assert element_text(paragraph) == "Hello there world"

    def test_empty_text_raises(self):
        with pytest.raises(InvalidArgumentError):
            insert_text(fragment(HELLO), 0, "")

    def test_offset_out_of_range_leaves_paragraph_untouched(self):
        paragraph = fragment(HELLO)
        original = etree.tostring(paragraph)
        with pytest.raises(OffsetOutOfRangeError):
            insert_text(paragraph, 12, "x")
        assert etree.tostring(paragraph) == original

    def test_insert_into_empty_paragraph(self):
        paragraph = fragment("<w:p/>")
        insert_text(paragraph, 0, "first")
        assert element_text(paragraph) == "first"


class TestRemoveText:
    """Tests for remove_text()."""

    def test_untracked_remove(self):
        paragraph = fragment(HELLO)
        remove_text(paragraph, 5, 6)
        assert element_text(paragraph) == "Hello"

    def test_remove_across_runs(self):
        paragraph = fragment(SENTENCE)
        remove_text(paragraph, 10, 10)
        assert element_text(paragraph) == "This is a  it work?"

    def test_zero_count_is_noop(self):
        paragraph = fragment(HELLO)
        original = etree.tostring(paragraph)
        remove_text(paragraph, 3, 0)
        assert etree.tostring(paragraph) == original

    def test_bookmarks_survive_removal(self):
        paragraph = fragment(
            '<w:p><w:r><w:t>ab</w:t></w:r><w:bookmarkStart w:id="0" w:name="mark"/>'
            "<w:r><w:t>cd</w:t></w:r></w:p>"
        )
        remove_text(paragraph, 1, 2)

        assert element_text(paragraph) == "ad"
        assert paragraph.find(w("bookmarkStart")) is not None

    def test_tracked_remove(self, change):
        paragraph = fragment(HELLO)
        remove_text(paragraph, 0, 6, tracked=change)

        deletion = paragraph.find(w("del"))
        assert deletion.get(w("author")) == "Reviewer"
        assert [t.text for t in deletion.iter(w("delText"))] == ["Hello "]
        assert visible_text(paragraph) == "world"
        # Deleted text keeps its offsets
        assert element_text(paragraph) == "Hello world"

    def test_tracked_remove_drops_insertions(self, change):
        paragraph = fragment(
            '<w:p><w:r><w:t xml:space="preserve">keep </w:t></w:r>'
            '<w:ins w:id="1" w:author="A" w:date="2024-01-01T00:00:00Z">'
            "<w:r><w:t>new</w:t></w:r></w:ins></w:p>"
        )
        remove_text(paragraph, 5, 3, tracked=change)

        assert paragraph.find(w("ins")) is None
        assert paragraph.find(w("del")) is None
        assert element_text(paragraph) == "keep "

    def test_tracked_remove_skips_content_controls(self, change, caplog):
        paragraph = fragment(SDT)
        with caplog.at_level(logging.WARNING, logger="docx_compose.editing"):
            remove_text(paragraph, 2, 4, tracked=change)

        assert visible_text(paragraph) == "abcdef"
        assert "content controls" in caplog.text

    def test_untracked_remove_of_content_control(self):
        paragraph = fragment(SDT)
        remove_text(paragraph, 2, 4)
        assert element_text(paragraph) == "ab"
        assert paragraph.find(w("sdt")) is None

    def test_range_ending_inside_content_control_is_atomic(self):
        paragraph = fragment(SDT)
        original = etree.tostring(paragraph)
        with pytest.raises(DocumentFormatError):
            remove_text(paragraph, 1, 3)
        assert etree.tostring(paragraph) == original

    def test_negative_count(self):
        with pytest.raises(InvalidArgumentError):
            remove_text(fragment(HELLO), 0, -1)

    def test_range_past_end(self):
        with pytest.raises(OffsetOutOfRangeError) as exc_info:
            remove_text(fragment(HELLO), 5, 100)
        assert exc_info.value.argument == "count"


class TestReplaceText:
    """Tests for replace_text()."""

    def test_untracked_replace_takes_replaced_formatting(self):
        paragraph = fragment(
            '<w:p><w:r><w:t xml:space="preserve">Hello </w:t></w:r>'
            "<w:r><w:rPr><w:b/></w:rPr><w:t>world</w:t></w:r></w:p>"
        )
        replace_text(paragraph, 6, 5, "there")

        spans = get_formatted_text(paragraph)
        assert [(span.text, span.formatting.bold) for span in spans] == [
            ("Hello ", False),
            ("there", True),
        ]

    def test_tracked_replace_puts_insertion_after_deletion(self, change):
        paragraph = fragment(HELLO)
        node = replace_text(paragraph, 6, 5, "there", tracked=change)

        assert node.tag == w("ins")
        assert [child.tag for child in paragraph] == [w("r"), w("del"), w("ins")]
        assert visible_text(paragraph) == "Hello there"

    def test_tracked_replace_in_middle(self, change):
        paragraph = fragment(SENTENCE)
        replace_text(paragraph, 10, 4, "trial", tracked=change)

        tags = [etree.QName(child).localname for child in paragraph]
        assert tags == ["pPr", "r", "del", "ins", "r", "r"]
        assert visible_text(paragraph) == "This is a trial. Will it work?"

    def test_zero_count_inserts(self):
        paragraph = fragment(HELLO)
        replace_text(paragraph, 0, 0, ">> ")
        assert element_text(paragraph) == ">> Hello world"

    def test_empty_text_raises(self):
        with pytest.raises(InvalidArgumentError):
            replace_text(fragment(HELLO), 0, 5, "")
