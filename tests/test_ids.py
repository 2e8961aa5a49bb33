"""Tests for identifier allocation and tracked-change renumbering."""

import pytest

from builders import fragment, w
from docx_compose.ids import IdKind, existing_ids, next_id, renumber_tracked_changes

NUMBERING = """
<w:numbering>
  <w:abstractNum w:abstractNumId="0"/>
  <w:abstractNum w:abstractNumId="4"/>
  <w:num w:numId="1"><w:abstractNumId w:val="0"/></w:num>
  <w:num w:numId="7"><w:abstractNumId w:val="4"/></w:num>
</w:numbering>
"""

DOCUMENT = """
<w:document>
  <w:body>
    <w:p>
      <w:bookmarkStart w:id="3" w:name="first"/>
      <w:r><w:drawing><wp:inline><wp:docPr id="12" name="Picture 12"/></wp:inline></w:drawing></w:r>
      <w:bookmarkEnd w:id="3"/>
      <w:bookmarkStart w:id="_GoBack" w:name="broken"/>
    </w:p>
  </w:body>
</w:document>
"""


class TestNextId:
    """Tests for next_id() on each kind."""

    def test_numbering_kinds(self):
        root = fragment(NUMBERING)
        assert next_id(root, IdKind.ABSTRACT_NUMBERING) == 5
        assert next_id(root, IdKind.NUMBERING) == 8

    def test_document_kinds(self):
        root = fragment(DOCUMENT)
        assert next_id(root, IdKind.DRAWING) == 13
        assert next_id(root, IdKind.BOOKMARK) == 4
        assert next_id(root, IdKind.DOCUMENT) == 13

    def test_relationship_ids(self):
        root = fragment(
            '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
            '<Relationship Id="rId2" Type="t" Target="a"/>'
            '<Relationship Id="rId9" Type="t" Target="b"/>'
            '<Relationship Id="custom" Type="t" Target="c"/>'
            "</Relationships>"
        )
        assert next_id(root, IdKind.RELATIONSHIP) == 10

    def test_notes(self):
        root = fragment(
            '<w:footnotes><w:footnote w:type="separator" w:id="-1"/>'
            '<w:footnote w:id="0"/><w:footnote w:id="2"/></w:footnotes>'
        )
        assert next_id(root, IdKind.FOOTNOTE) == 3
        assert next_id(root, IdKind.ENDNOTE) == 1

    @pytest.mark.parametrize(
        "kind,floor",
        [
            (IdKind.ABSTRACT_NUMBERING, 0),
            (IdKind.NUMBERING, 1),
            (IdKind.RELATIONSHIP, 1),
            (IdKind.DRAWING, 1),
            (IdKind.DOCUMENT, 1),
            (IdKind.FOOTNOTE, 1),
            (IdKind.ENDNOTE, 1),
            (IdKind.BOOKMARK, 0),
        ],
    )
    def test_floor_for_missing_part(self, kind, floor):
        assert next_id(None, kind) == floor

    def test_floor_applies_to_low_ids(self):
        # Separator notes alone must not hand out id 0
        root = fragment('<w:endnotes><w:endnote w:type="separator" w:id="-1"/></w:endnotes>')
        assert next_id(root, IdKind.ENDNOTE) == 1

    def test_non_integer_values_ignored(self):
        root = fragment(DOCUMENT)
        assert existing_ids(root, IdKind.BOOKMARK) == [3]

    def test_repeated_calls_return_same_value(self):
        root = fragment(NUMBERING)
        assert next_id(root, IdKind.NUMBERING) == next_id(root, IdKind.NUMBERING)


class TestRenumberTrackedChanges:
    """Tests for the save-time renumbering pass."""

    def test_ids_are_sequential_across_trees(self):
        main = fragment(
            '<w:body><w:p><w:ins w:id="40"/><w:del w:id="7"/></w:p>'
            '<w:p><w:ins w:id="7"/></w:p></w:body>'
        )
        notes = fragment('<w:footnotes><w:footnote w:id="1"><w:p><w:del w:id="3"/></w:p>'
                         "</w:footnote></w:footnotes>")

        count = renumber_tracked_changes([main, None, notes])

        assert count == 4
        ids = [el.get(w("id")) for tree in (main, notes) for el in tree.iter(w("ins"), w("del"))]
        assert ids == ["0", "1", "2", "3"]

    def test_no_tracked_changes(self):
        assert renumber_tracked_changes([fragment("<w:body><w:p/></w:body>")]) == 0
