"""Tests for the row classifier."""

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from normetrics.core.classify import classify
from normetrics.core.errors import ColumnClassificationFailure

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]

SAMPLE_ROW = [
    ("datname", "app"),
    ("host", "a"),
    ("port", 5432),
    ("load", 0.75),
    ("active", True),
    ("label", b"blue"),
    ("secret", None),
    ("stats_reset", "2024-01-01"),
]


class TestClassifyTagsAndFields:
    """Tests for splitting columns into tags and fields."""

    def test_tag_field_and_null(self) -> None:
        """Tag columns become tags, others fields, nulls disappear."""
        row = [("host", "a"), ("value", 42), ("secret", None)]

        result = classify(row, tag_names={"host"})

        assert result.tags == {"host": "a"}
        assert result.fields == {"value": 42}
        assert result.failures == []

    def test_ignored_columns_are_dropped(self) -> None:
        """Ignored columns appear in neither tags nor fields."""
        result = classify(SAMPLE_ROW, ignored_names={"stats_reset"})

        assert "stats_reset" not in result.tags
        assert "stats_reset" not in result.fields

    def test_bytes_tag_is_decoded(self) -> None:
        """Byte sequences become string tags."""
        result = classify([("label", b"blue")], tag_names={"label"})

        assert result.tags == {"label": "blue"}

    def test_integer_and_bool_tags_use_decimal_form(self) -> None:
        """Integer-like tag values are rendered in decimal."""
        result = classify(
            [("port", 5432), ("active", True)], tag_names={"port", "active"}
        )

        assert result.tags == {"active": "1", "port": "5432"}

    def test_float_tag_is_dropped_without_failing_row(self) -> None:
        """A float tag column is dropped and reported, the row survives."""
        result = classify([("load", 0.75), ("value", 1)], tag_names={"load"})

        assert "load" not in result.tags
        assert "load" not in result.fields
        assert result.fields == {"value": 1}
        assert [f.column for f in result.failures] == ["load"]
        assert isinstance(result.failures[0], ColumnClassificationFailure)

    def test_bytes_field_becomes_string(self) -> None:
        """Byte sequence fields are converted to strings."""
        result = classify([("label", b"blue")])

        assert result.fields == {"label": "blue"}

    def test_fields_pass_through_unchanged(self) -> None:
        """Other field kinds are not coerced."""
        row = [("port", 5432), ("load", 0.75), ("active", False), ("name", "x")]

        result = classify(row)

        assert result.fields == {"port": 5432, "load": 0.75, "active": False, "name": "x"}

    def test_column_never_in_both(self) -> None:
        """Each column lands in at most one of tags or fields."""
        result = classify(SAMPLE_ROW, tag_names={"host", "port"})

        assert set(result.tags).isdisjoint(result.fields)

    def test_unsupported_type_is_dropped(self) -> None:
        """Values outside the raw value kinds are dropped and reported."""
        result = classify([("amount", Decimal("1.5")), ("value", 2)])

        assert result.fields == {"value": 2}
        assert [f.column for f in result.failures] == ["amount"]

    def test_duplicate_column_is_dropped(self) -> None:
        """Ambiguous duplicate columns are dropped entirely."""
        result = classify([("value", 1), ("value", 2), ("other", 3)])

        assert result.fields == {"other": 3}
        assert [f.column for f in result.failures] == ["value"]


class TestClassifyIdentity:
    """Tests for the identity tag."""

    def test_identity_from_string_column(self) -> None:
        """A string identity column supplies the identity tag."""
        result = classify(
            SAMPLE_ROW, identity_column="datname", fallback_identity="postgres"
        )

        assert result.tags["db"] == "app"

    @pytest.mark.parametrize(
        "row",
        [
            [("datname", None)],
            [("datname", 7)],
            [("other", "x")],
        ],
    )
    def test_identity_falls_back(self, row: list) -> None:
        """Missing, null or non-string identity uses the fallback."""
        result = classify(row, identity_column="datname", fallback_identity="postgres")

        assert result.tags["db"] == "postgres"

    def test_empty_string_identity_is_kept(self) -> None:
        """An empty string identity is used as is, not replaced by the fallback."""
        result = classify(
            [("datname", "")], identity_column="datname", fallback_identity="postgres"
        )

        assert result.tags == {"db": ""}

    def test_field_may_share_identity_tag_name(self) -> None:
        """A non-tag column named like the identity tag stays a field."""
        result = classify(
            [("datname", "app"), ("db", 5)],
            identity_column="datname",
            fallback_identity="postgres",
        )

        assert result.tags == {"db": "app"}
        assert result.fields == {"datname": "app", "db": 5}

    def test_custom_identity_tag(self) -> None:
        """The identity tag key is configurable."""
        result = classify(
            [("name", "node1")], identity_column="name", identity_tag="host"
        )

        assert result.tags == {"host": "node1"}

    def test_tag_column_wins_over_identity(self) -> None:
        """A tag column with the identity key replaces the identity value."""
        result = classify(
            [("db", "explicit")],
            tag_names={"db"},
            identity_column="datname",
            fallback_identity="postgres",
        )

        assert result.tags == {"db": "explicit"}

    def test_base_tags_are_included(self) -> None:
        """Base tags are merged into every classification."""
        result = classify(
            [("value", 1)], fallback_identity="postgres", base_tags={"server": "db01"}
        )

        assert result.tags == {"server": "db01", "db": "postgres"}


class TestClassifyOrderIndependence:
    """Tests that classification does not depend on row order."""

    def test_same_row_twice_is_identical(self) -> None:
        """Classifying the same row twice gives identical maps."""
        first = classify(SAMPLE_ROW, tag_names={"host", "port"})
        second = classify(SAMPLE_ROW, tag_names={"host", "port"})

        assert list(first.tags.items()) == list(second.tags.items())
        assert list(first.fields.items()) == list(second.fields.items())

    @given(st.permutations(SAMPLE_ROW))
    def test_permutations_give_identical_maps(self, row: list) -> None:
        """Any ordering of the row yields the same tags and fields, in order."""
        expected = classify(
            SAMPLE_ROW,
            tag_names={"host", "port", "load"},
            ignored_names={"stats_reset"},
            identity_column="datname",
        )

        result = classify(
            row,
            tag_names={"host", "port", "load"},
            ignored_names={"stats_reset"},
            identity_column="datname",
        )

        assert list(result.tags.items()) == list(expected.tags.items())
        assert list(result.fields.items()) == list(expected.fields.items())
        assert [f.column for f in result.failures] == [
            f.column for f in expected.failures
        ]
