"""Tests for RelationshipManager and target helpers."""

import pytest

from builders import build_docx
from docx_compose.package import OOXMLPackage
from docx_compose.part_cache import PartCache
from docx_compose.relationships import (
    EXTERNAL,
    RelationshipManager,
    RelationshipTypes,
    relative_target,
    resolve_target,
)


@pytest.fixture
def cache(tmp_path):
    path = build_docx(
        tmp_path / "doc.docx",
        styles="",
        relationships=[
            ("rId1", "image", "media/image1.png"),
            ("rId3", "hyperlink", "https://example.com", "External"),
        ],
        parts={"word/media/image1.png": b"PNG"},
    )
    return PartCache(OOXMLPackage.open(path))


class TestTargets:
    """Tests for resolving and relativizing targets."""

    def test_resolve_relative_target(self):
        assert resolve_target("word/document.xml", "media/image1.png") == "word/media/image1.png"

    def test_resolve_parent_directory(self):
        assert resolve_target("word/document.xml", "../customXml/item1.xml") == (
            "customXml/item1.xml"
        )

    def test_resolve_absolute_target(self):
        assert resolve_target("word/document.xml", "/word/styles.xml") == "word/styles.xml"

    def test_resolve_from_package(self):
        assert resolve_target("", "word/document.xml") == "word/document.xml"

    def test_relative_target(self):
        assert relative_target("word/document.xml", "word/media/a.png") == "media/a.png"
        assert relative_target("word/charts/chart1.xml", "word/media/a.png") == "../media/a.png"
        assert relative_target("", "docProps/custom.xml") == "docProps/custom.xml"


class TestReading:
    """Tests for reading relationships."""

    def test_relationships_in_file_order(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        ids = [relationship.rel_id for relationship in manager.relationships()]
        assert ids == ["rId101", "rId1", "rId3"]

    def test_get_by_id(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        hyperlink = manager.get_by_id("rId3")

        assert hyperlink.rel_type == RelationshipTypes.HYPERLINK
        assert hyperlink.is_external
        assert manager.get_by_id("rId99") is None

    def test_get_target_part(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        assert manager.get_target_part(RelationshipTypes.STYLES) == "word/styles.xml"
        assert manager.get_target_part(RelationshipTypes.NUMBERING) is None

    def test_reading_missing_rels_does_not_create_part(self, cache):
        manager = RelationshipManager(cache, "word/styles.xml")

        assert manager.relationships() == []
        assert not manager.has_relationship(RelationshipTypes.IMAGE)
        assert "word/_rels/styles.xml.rels" not in cache


class TestWriting:
    """Tests for adding and removing relationships."""

    def test_add_unique_relationship_uses_next_id(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        rel_id = manager.add_unique_relationship(RelationshipTypes.IMAGE, "media/image2.png")

        assert rel_id == "rId102"
        assert manager.get_by_id(rel_id).target == "media/image2.png"
        assert cache.is_dirty("word/_rels/document.xml.rels")

    def test_add_relationship_reuses_existing_type(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        assert manager.add_relationship(RelationshipTypes.STYLES, "other.xml") == "rId101"

    def test_add_external_relationship(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        rel_id = manager.add_unique_relationship(
            RelationshipTypes.HYPERLINK, "https://example.org", EXTERNAL
        )
        assert manager.get_by_id(rel_id).target_mode == EXTERNAL

    def test_first_write_creates_rels_part(self, cache):
        manager = RelationshipManager(cache, "word/styles.xml")
        rel_id = manager.add_unique_relationship(RelationshipTypes.IMAGE, "media/image1.png")

        assert rel_id == "rId1"
        assert cache.is_dirty("word/_rels/styles.xml.rels")

    def test_remove_relationship(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        assert manager.remove_relationship(RelationshipTypes.IMAGE) is True
        assert manager.remove_relationship(RelationshipTypes.IMAGE) is False

    def test_remove_relationships(self, cache):
        manager = RelationshipManager(cache, "word/document.xml")
        removed = manager.remove_relationships(
            [RelationshipTypes.IMAGE, RelationshipTypes.HYPERLINK]
        )
        assert removed == 2
        assert [r.rel_type for r in manager.relationships()] == [RelationshipTypes.STYLES]
