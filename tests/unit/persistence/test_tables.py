"""Tests for persistence table definitions."""

from notestore.persistence.tables import (
    Base,
    ObjectHeaderTable,
    ObjectMetadataTable,
    ObjectTable,
)


class TestTableDefinitions:
    """Test table schema definitions."""

    def test_all_tables_inherit_from_base(self) -> None:
        for table in (ObjectTable, ObjectMetadataTable, ObjectHeaderTable):
            assert issubclass(table, Base)

    def test_objects_columns(self) -> None:
        columns = {c.name for c in ObjectTable.__table__.columns}
        assert columns == {"path", "content", "content_type", "is_compressed"}
        assert [c.name for c in ObjectTable.__table__.primary_key] == ["path"]

    def test_metadata_primary_key(self) -> None:
        pk = [c.name for c in ObjectMetadataTable.__table__.primary_key]
        assert pk == ["path", "key"]

    def test_headers_primary_key(self) -> None:
        pk = [c.name for c in ObjectHeaderTable.__table__.primary_key]
        assert pk == ["path", "header_type"]

    def test_child_tables_cascade_on_delete(self) -> None:
        for table in (ObjectMetadataTable, ObjectHeaderTable):
            (fk,) = table.__table__.foreign_keys
            assert fk.target_fullname == "objects.path"
            assert fk.ondelete == "CASCADE"

    def test_metadata_registers_three_tables(self) -> None:
        assert set(Base.metadata.tables) == {"objects", "object_metadata", "object_headers"}
