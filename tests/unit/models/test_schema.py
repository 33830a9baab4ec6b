"""
Unit tests for database schema module.
"""

from memoire.models.schema import (
    MEMORIES_TABLE_INDEXES,
    MEMORIES_TABLE_SCHEMA,
    PROFILES_TABLE_SCHEMA,
    REQUIRED_COLUMNS,
    get_schema_statements,
    validate_schema_compatibility,
)


class TestSchema:
    """Test cases for schema module."""

    def test_get_schema_statements(self):
        """Tables come before their indexes."""
        statements = get_schema_statements()

        assert statements[0] == MEMORIES_TABLE_SCHEMA
        assert PROFILES_TABLE_SCHEMA in statements
        for index_sql in MEMORIES_TABLE_INDEXES:
            assert index_sql in statements
            assert statements.index(index_sql) > statements.index(MEMORIES_TABLE_SCHEMA)

    def test_schema_is_compatible(self):
        assert validate_schema_compatibility()

    def test_tags_are_a_list_column(self):
        assert "tags VARCHAR[]" in MEMORIES_TABLE_SCHEMA

    def test_required_columns_match_model_fields(self):
        assert REQUIRED_COLUMNS["memories"] == {
            "id",
            "type",
            "title",
            "src",
            "thumbnail",
            "date",
            "created_at",
            "duration",
            "tags",
            "album_photos",
        }
        assert "is_admin" in REQUIRED_COLUMNS["profiles"]
