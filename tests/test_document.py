"""Tests for the Document class."""

import io
import zipfile

import pytest

from builders import fragment, part_names, read_part, text_paragraph, w
from docx_compose import Document, IdKind, ListKind
from docx_compose.errors import InvalidArgumentError, NumberingNotFoundError, ValidationError

REL_NUMBERING = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/numbering"
SECTION = '<w:sectPr><w:pgSz w:w="12240" w:h="15840"/></w:sectPr>'


def body_texts(root):
    return [
        "".join(t.text or "" for t in p.iter(w("t")))
        for p in root.find(w("body")).iter(w("p"))
    ]


class TestOpen:
    """Tests for loading documents."""

    def test_open_from_path(self, make_docx):
        path = make_docx()
        doc = Document(path)

        assert doc.path == path
        assert doc.main_part == "word/document.xml"
        assert [p.text for p in doc.paragraphs] == ["Hello world"]

    def test_open_from_bytes(self, make_docx):
        doc = Document(make_docx().read_bytes())
        assert doc.path is None
        assert doc.paragraphs[0].text == "Hello world"

    def test_open_from_stream(self, make_docx):
        with open(make_docx(), "rb") as stream:
            doc = Document(stream)
        assert len(doc.paragraphs) == 1

    def test_open_alias(self, make_docx):
        doc = Document.open(make_docx(), author="Reviewer")
        assert doc.author == "Reviewer"

    def test_missing_main_part_raises(self, tmp_path):
        path = tmp_path / "empty.docx"
        with zipfile.ZipFile(path, "w") as docx:
            docx.writestr(
                "[Content_Types].xml",
                '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types"/>',
            )
        with pytest.raises(ValidationError, match="word/document.xml not found"):
            Document(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ValidationError):
            Document(tmp_path / "missing.docx")

    def test_context_manager_closes_package(self, make_docx):
        with Document(make_docx()) as doc:
            assert not doc.package.closed
        assert doc.package.closed


class TestEditing:
    """Tests for the paragraph editing methods."""

    def test_split_paragraph(self, make_docx):
        doc = Document(make_docx(body=text_paragraph("This is a test. Will it work?")))
        before, after = doc.split_paragraph(0, 15)

        assert before.text == "This is a test."
        assert after.text == " Will it work?"
        assert [p.text for p in doc.paragraphs] == ["This is a test.", " Will it work?"]

    def test_split_at_boundary_changes_nothing(self, make_docx):
        doc = Document(make_docx())
        before, after = doc.split_paragraph(0, 0)

        assert before is None
        assert after.text == "Hello world"
        assert len(doc.paragraphs) == 1

    def test_split_keeps_section_in_body(self, make_docx):
        doc = Document(make_docx(body=text_paragraph("abcdef") + SECTION))
        doc.split_paragraph(0, 3)
        assert doc.body[-1].tag == w("sectPr")

    def test_invalid_paragraph_index(self, make_docx):
        doc = Document(make_docx())
        with pytest.raises(InvalidArgumentError, match="paragraph 3 does not exist"):
            doc.insert_text(3, 0, "x")

    def test_insert_remove_replace(self, make_docx):
        doc = Document(make_docx())
        doc.insert_text(0, 11, "!")
        doc.replace_text(0, 6, 5, "there")
        doc.remove_text(0, 0, 6)

        assert doc.paragraphs[0].text == "there!"

    def test_edits_are_saved(self, make_docx, tmp_path):
        doc = Document(make_docx())
        doc.replace_text(0, 0, 5, "Goodbye")
        output = tmp_path / "out.docx"
        doc.save(output)

        assert body_texts(read_part(output, "word/document.xml")) == ["Goodbye world"]

    def test_tracked_edits_are_renumbered_on_save(self, make_docx):
        doc = Document(
            make_docx(body=text_paragraph("First paragraph") + text_paragraph("Second one")),
            author="Reviewer",
        )
        doc.insert_text(0, 0, "New ", track=True)
        doc.replace_text(1, 0, 6, "Other", track=True)

        root = read_part(doc.save_to_bytes(), "word/document.xml")
        changes = list(root.iter(w("ins"), w("del")))
        assert [change.get(w("id")) for change in changes] == ["0", "1", "2"]
        assert {change.get(w("author")) for change in changes} == {"Reviewer"}

    def test_get_formatted_text(self, make_docx):
        doc = Document(
            make_docx(
                body="<w:p><w:r><w:rPr><w:b/></w:rPr><w:t>Bold</w:t></w:r></w:p>"
                + text_paragraph("plain")
            )
        )
        assert [span.text for span in doc.get_formatted_text(0)] == ["Bold"]
        assert [span.text for span in doc.get_formatted_text()] == ["Bold", "plain"]

    def test_next_id(self, make_docx):
        doc = Document(
            make_docx(
                body='<w:p><w:bookmarkStart w:id="4" w:name="here"/></w:p>',
                relationships=[("rId7", "hyperlink", "https://example.com", "External")],
            )
        )
        assert doc.next_id(IdKind.BOOKMARK) == 5
        assert doc.next_id(IdKind.RELATIONSHIP) == 8
        assert doc.next_id(IdKind.NUMBERING) == 1
        assert doc.next_id(IdKind.FOOTNOTE) == 1


class TestLists:
    """Tests for add_list() and add_list_item()."""

    def test_add_list_creates_numbering_part(self, make_docx):
        doc = Document(make_docx())
        num_id = doc.add_list(ListKind.DECIMAL)

        assert num_id == 1
        data = doc.save_to_bytes()
        assert "word/numbering.xml" in part_names(data)

        types = read_part(data, "[Content_Types].xml")
        overrides = {o.get("PartName") for o in types}
        assert "/word/numbering.xml" in overrides

        rels = read_part(data, "word/_rels/document.xml.rels")
        assert REL_NUMBERING in {r.get("Type") for r in rels}

    def test_add_list_twice_uses_new_definitions(self, make_docx):
        doc = Document(make_docx())
        first = doc.add_list()
        second = doc.add_list(ListKind.DECIMAL, start=3)

        assert second == first + 1
        assert doc.numbering.starting_number(second) == 3
        assert len(doc.numbering.abstract_numberings()) == 2

    def test_add_list_item(self, make_docx):
        doc = Document(make_docx(body=text_paragraph("Intro") + SECTION))
        num_id = doc.add_list(ListKind.BULLETED)
        item = doc.add_list_item(num_id, "Point", level=1)

        assert item.text == "Point"
        assert item.style == "ListParagraph"
        assert item.formatting.num_id == num_id
        assert item.formatting.level == 1
        assert doc.body[-1].tag == w("sectPr")
        assert "ListParagraph" in doc.styles

    def test_add_list_item_to_missing_list(self, make_docx):
        doc = Document(make_docx())
        with pytest.raises(NumberingNotFoundError):
            doc.add_list_item(5, "Orphan")

    def test_add_list_item_invalid_level(self, make_docx):
        doc = Document(make_docx())
        num_id = doc.add_list()
        with pytest.raises(InvalidArgumentError):
            doc.add_list_item(num_id, "Too deep", level=9)


class TestSave:
    """Tests for saving."""

    def test_save_in_memory_document_requires_path(self, make_docx):
        doc = Document(make_docx().read_bytes())
        with pytest.raises(ValueError, match="output_path is required"):
            doc.save()

    def test_save_over_source(self, make_docx):
        path = make_docx()
        doc = Document(path)
        doc.insert_text(0, 0, ">> ")
        doc.save()

        assert Document(path).paragraphs[0].text == ">> Hello world"

    def test_save_to_bytes_is_loadable(self, make_docx):
        doc = Document(make_docx())
        reloaded = Document(io.BytesIO(doc.save_to_bytes()))
        assert reloaded.paragraphs[0].text == "Hello world"

    def test_append_block_goes_before_section(self, make_docx):
        doc = Document(make_docx(body=text_paragraph("Only") + SECTION))
        doc.append_block(fragment(text_paragraph("Last")))

        root = read_part(doc.save_to_bytes(), "word/document.xml")
        assert body_texts(root) == ["Only", "Last"]
        assert root.find(w("body"))[-1].tag == w("sectPr")
