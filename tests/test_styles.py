"""Tests for StyleManager."""

import pytest

from builders import build_docx, fragment
from docx_compose.errors import InvalidArgumentError, PartNotFoundError
from docx_compose.models.style import StyleType
from docx_compose.package import OOXMLPackage
from docx_compose.part_cache import PartCache
from docx_compose.styles import StyleManager

STYLES = """
<w:style w:type="paragraph" w:default="1" w:styleId="Normal">
  <w:name w:val="Normal"/>
</w:style>
<w:style w:type="paragraph" w:styleId="Heading1">
  <w:name w:val="heading 1"/>
  <w:basedOn w:val="Normal"/>
  <w:next w:val="Normal"/>
  <w:link w:val="Heading1Char"/>
  <w:pPr><w:keepNext/><w:outlineLvl w:val="0"/></w:pPr>
  <w:rPr><w:b/><w:sz w:val="32"/></w:rPr>
</w:style>
<w:style w:type="character" w:styleId="Heading1Char">
  <w:name w:val="Heading 1 Char"/>
  <w:link w:val="Heading1"/>
</w:style>
<w:style w:type="character" w:default="1" w:styleId="DefaultParagraphFont">
  <w:name w:val="Default Paragraph Font"/>
  <w:semiHidden/>
</w:style>
<w:style w:type="table" w:styleId="TableGrid">
  <w:name w:val="Table Grid"/>
</w:style>
<w:style w:type="paragraph">
  <w:name w:val="Broken"/>
</w:style>
"""


@pytest.fixture
def cache(tmp_path):
    return PartCache(OOXMLPackage.open(build_docx(tmp_path / "doc.docx", styles=STYLES)))


@pytest.fixture
def styles(cache):
    return StyleManager(cache)


class TestReading:
    """Tests for reading style definitions."""

    def test_get(self, styles):
        heading = styles.get("Heading1")

        assert heading.name == "heading 1"
        assert heading.style_type is StyleType.PARAGRAPH
        assert heading.based_on == "Normal"
        assert heading.next_style == "Normal"
        assert heading.linked_style == "Heading1Char"
        assert heading.run_formatting.bold
        assert heading.run_formatting.size == 16.0
        assert heading.paragraph_formatting.outline_level == 0
        assert heading.element is styles.element("Heading1")

    def test_get_missing(self, styles):
        assert styles.get("Heading9") is None
        assert styles.element("Heading9") is None

    def test_get_by_name_is_case_insensitive(self, styles):
        assert styles.get_by_name("Heading 1").style_id == "Heading1"

    def test_default_style(self, styles):
        assert styles.default_style(StyleType.PARAGRAPH).style_id == "Normal"
        assert styles.default_style(StyleType.CHARACTER).style_id == "DefaultParagraphFont"
        assert styles.default_style(StyleType.TABLE) is None

    def test_list_filters(self, styles):
        character = [style.style_id for style in styles.list(StyleType.CHARACTER)]
        assert character == ["Heading1Char"]

        with_hidden = styles.list(StyleType.CHARACTER, include_hidden=True)
        assert len(with_hidden) == 2

    def test_styles_without_id_are_skipped(self, styles):
        assert len(styles) == 5
        assert styles.style_ids == {
            "Normal",
            "Heading1",
            "Heading1Char",
            "DefaultParagraphFont",
            "TableGrid",
        }

    def test_contains_and_iter(self, styles):
        assert "TableGrid" in styles
        assert "Missing" not in styles
        assert [style.style_id for style in styles][0] == "Normal"

    def test_missing_styles_part(self, tmp_path):
        cache = PartCache(OOXMLPackage.open(build_docx(tmp_path / "bare.docx")))
        styles = StyleManager(cache)

        assert styles.root is None
        assert len(styles) == 0
        assert styles.list() == []


class TestAddElement:
    """Tests for StyleManager.add_element()."""

    def test_add_new_style(self, styles, cache):
        element = fragment(
            '<w:style w:type="paragraph" w:styleId="Quote"><w:name w:val="Quote"/></w:style>'
        )
        assert styles.add_element(element) is True
        assert styles.get("Quote").name == "Quote"
        assert cache.is_dirty("word/styles.xml")

    def test_add_duplicate_returns_false(self, styles, cache):
        element = fragment('<w:style w:type="paragraph" w:styleId="Normal"/>')
        assert styles.add_element(element) is False
        assert not cache.is_dirty("word/styles.xml")

    def test_add_without_style_id_raises(self, styles):
        with pytest.raises(InvalidArgumentError):
            styles.add_element(fragment('<w:style w:type="paragraph"/>'))

    def test_add_without_styles_part_raises(self, tmp_path):
        cache = PartCache(OOXMLPackage.open(build_docx(tmp_path / "bare.docx")))
        with pytest.raises(PartNotFoundError):
            StyleManager(cache).add_element(fragment('<w:style w:styleId="X"/>'))
