"""Tests for formatted-text extraction and formatting models."""

from builders import fragment
from docx_compose.formatted_text import get_formatted_text
from docx_compose.models.paragraph import Paragraph
from docx_compose.models.style import ParagraphFormatting, RunFormatting


def spans_of(xml):
    return [(span.index, span.text) for span in get_formatted_text(fragment(xml))]


class TestGetFormattedText:
    """Tests for get_formatted_text()."""

    def test_spans_follow_formatting_changes(self):
        xml = (
            '<w:p><w:r><w:t xml:space="preserve">Plain </w:t></w:r>'
            "<w:r><w:rPr><w:b/></w:rPr><w:t>bold</w:t></w:r>"
            '<w:r><w:t xml:space="preserve"> again</w:t></w:r></w:p>'
        )
        assert spans_of(xml) == [(0, "Plain "), (6, "bold"), (10, " again")]

    def test_fragmented_runs_are_merged(self):
        xml = (
            "<w:p><w:r><w:rPr><w:i/></w:rPr><w:t>frag</w:t></w:r>"
            "<w:r><w:rPr><w:i/></w:rPr><w:t>mented</w:t></w:r></w:p>"
        )
        assert spans_of(xml) == [(0, "fragmented")]

    def test_runs_without_properties_merge(self):
        xml = "<w:p><w:r><w:t>one</w:t></w:r><w:r><w:t>two</w:t></w:r></w:p>"
        assert spans_of(xml) == [(0, "onetwo")]

    def test_caps_upper_cases_text(self):
        xml = "<w:p><w:r><w:rPr><w:caps/></w:rPr><w:t>shout</w:t></w:r></w:p>"
        spans = get_formatted_text(fragment(xml))
        assert spans[0].text == "SHOUT"
        assert spans[0].formatting.caps

    def test_tabs_and_breaks(self):
        xml = "<w:p><w:r><w:t>a</w:t><w:tab/><w:t>b</w:t><w:br/><w:t>c</w:t></w:r></w:p>"
        assert spans_of(xml) == [(0, "a\tb\nc")]

    def test_deleted_text_is_included(self):
        xml = (
            "<w:p><w:r><w:t>kept</w:t></w:r>"
            '<w:del w:id="1" w:author="A"><w:r><w:delText>gone</w:delText></w:r></w:del></w:p>'
        )
        assert spans_of(xml) == [(0, "keptgone")]

    def test_hyperlink_runs_keep_their_formatting(self):
        xml = (
            '<w:p><w:hyperlink r:id="rId4"><w:r><w:rPr><w:rStyle w:val="Hyperlink"/>'
            "</w:rPr><w:t>link</w:t></w:r></w:hyperlink></w:p>"
        )
        spans = get_formatted_text(fragment(xml))
        assert spans[0].formatting.style == "Hyperlink"

    def test_empty_paragraph(self):
        assert get_formatted_text(fragment("<w:p/>")) == []

    def test_table_cells_are_separated(self):
        xml = (
            "<w:tbl><w:tr>"
            "<w:tc><w:p><w:r><w:t>A</w:t></w:r></w:p></w:tc>"
            "<w:tc><w:p><w:r><w:t>B</w:t></w:r></w:p></w:tc>"
            "</w:tr></w:tbl>"
        )
        assert spans_of(xml) == [(0, "\n\tA\tB")]


class TestRunFormatting:
    """Tests for RunFormatting.from_properties()."""

    def test_defaults(self):
        assert RunFormatting.from_properties(None) == RunFormatting()

    def test_toggle_values(self):
        formatting = RunFormatting.from_properties(
            fragment('<w:rPr><w:b w:val="0"/><w:i w:val="true"/><w:strike/></w:rPr>')
        )
        assert not formatting.bold
        assert formatting.italic
        assert formatting.strike

    def test_values(self):
        formatting = RunFormatting.from_properties(
            fragment(
                '<w:rPr><w:rFonts w:ascii="Arial"/><w:sz w:val="24"/>'
                '<w:color w:val="FF0000"/><w:u w:val="double"/>'
                '<w:vertAlign w:val="superscript"/></w:rPr>'
            )
        )
        assert formatting.font == "Arial"
        assert formatting.size == 12.0
        assert formatting.color == "FF0000"
        assert formatting.underline == "double"
        assert formatting.vertical_align == "superscript"

    def test_underline_none_and_baseline(self):
        formatting = RunFormatting.from_properties(
            fragment('<w:rPr><w:u w:val="none"/><w:vertAlign w:val="baseline"/></w:rPr>')
        )
        assert formatting.underline is None
        assert formatting.vertical_align is None


class TestParagraph:
    """Tests for the Paragraph wrapper."""

    def test_formatting(self):
        formatting = ParagraphFormatting.from_properties(
            fragment(
                '<w:pPr><w:pStyle w:val="ListParagraph"/><w:keepNext/>'
                '<w:numPr><w:numId w:val="3"/></w:numPr><w:jc w:val="both"/></w:pPr>'
            )
        )
        assert formatting.style == "ListParagraph"
        assert formatting.num_id == 3
        assert formatting.level == 0
        assert formatting.keep_next
        assert formatting.alignment == "both"

    def test_paragraph_view(self):
        paragraph = Paragraph(
            fragment(
                '<w:p><w:pPr><w:pStyle w:val="Heading1"/></w:pPr>'
                "<w:r><w:t>Title</w:t></w:r><w:r><w:tab/></w:r></w:p>"
            )
        )
        assert paragraph.text == "Title\t"
        assert len(paragraph) == 6
        assert paragraph.style == "Heading1"
        assert not paragraph.is_list_item
        assert [span.text for span in paragraph.runs] == ["Title\t"]

    def test_rejects_other_elements(self):
        import pytest

        with pytest.raises(ValueError):
            Paragraph(fragment("<w:r/>"))
