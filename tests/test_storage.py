"""
Tests for the parquet table store.
"""

import pytest

from storage import ParquetTableStore, SourceResult, TableNotFoundError, table_slug


class TestReadWrite:
    def test_replace_then_read_round_trip(self, store):
        store.replace("API Units", ["unit.unitID", "unit.rent"], [
            {"unit.unitID": "U1", "unit.rent": "950"},
            {"unit.unitID": "U2", "unit.rent": ""},
        ])
        data = store.read("API Units")
        assert data.columns == ["unit.unitID", "unit.rent"]
        assert data.rows == [
            {"unit.unitID": "U1", "unit.rent": "950"},
            {"unit.unitID": "U2", "unit.rent": ""},
        ]

    def test_replace_clears_previous_content(self, store):
        store.replace("T", ["a"], [{"a": "1"}, {"a": "2"}])
        store.replace("T", ["b"], [{"b": "3"}])
        data = store.read("T")
        assert data.columns == ["b"]
        assert data.rows == [{"b": "3"}]

    def test_missing_numbers_read_back_as_none(self, store):
        store.replace("T", ["x", "y"], [{"x": 1.5, "y": "a"}, {"x": None, "y": None}])
        rows = store.read("T").rows
        assert rows[0]["x"] == 1.5
        assert rows[1]["x"] is None
        assert rows[1]["y"] is None

    def test_mixed_column_types_are_written(self, store):
        store.replace("T", ["v"], [{"v": "text"}, {"v": 3.5}, {"v": 2}])
        assert [row["v"] for row in store.read("T").rows] == ["text", "3.5", "2"]

    def test_int_and_float_column_becomes_float(self, store):
        store.replace("T", ["v"], [{"v": 2}, {"v": 3.5}])
        assert [row["v"] for row in store.read("T").rows] == [2.0, 3.5]

    def test_empty_table_keeps_columns(self, store):
        store.replace("T", ["a", "b"], [])
        data = store.read("T")
        assert data.columns == ["a", "b"]
        assert data.rows == []


class TestMissingTables:
    def test_read_missing_raises_distinguishable_error(self, store):
        with pytest.raises(TableNotFoundError) as excinfo:
            store.read("API Units")
        assert isinstance(excinfo.value, FileNotFoundError)
        assert excinfo.value.table_name == "API Units"

    def test_read_optional_reports_absence(self, store):
        result = store.read_optional("API Vendors")
        assert isinstance(result, SourceResult)
        assert result.present is False
        assert result.rows == []

    def test_read_optional_reports_presence(self, store):
        store.replace("API Vendors", ["id"], [{"id": "1"}])
        result = store.read_optional("API Vendors")
        assert result.present is True
        assert result.rows == [{"id": "1"}]

    def test_row_count_of_missing_table_is_zero(self, store):
        assert store.row_count("nope") == 0


class TestAppend:
    def test_append_preserves_history(self, store):
        store.append("RC_AVM_SNAPSHOTS", [{"unit_id": "U1", "rent_estimate": "1000"}])
        store.append("RC_AVM_SNAPSHOTS", [{"unit_id": "U1", "rent_estimate": "1100", "snapshot_date": "2024-01-01"}])
        data = store.read("RC_AVM_SNAPSHOTS")
        assert data.columns == ["unit_id", "rent_estimate", "snapshot_date"]
        assert [row["rent_estimate"] for row in data.rows] == ["1000", "1100"]
        assert data.rows[0]["snapshot_date"] is None

    def test_append_with_declared_columns(self, store):
        store.append("RUN_LOG", [{"status": "SUCCESS"}], columns=["timestamp", "status"])
        assert store.read("RUN_LOG").columns == ["timestamp", "status"]


class TestMetadata:
    def test_last_refresh_timestamp_from_first_row(self, store):
        store.replace("API Units", ["Refresh Time", "id"], [
            {"Refresh Time": "2024-07-01 06:00:00", "id": "1"},
            {"Refresh Time": "", "id": "2"},
        ])
        assert store.last_refresh_timestamp("API Units") == "2024-07-01 06:00:00"
        assert store.row_count("API Units") == 2

    def test_last_refresh_timestamp_absent(self, store):
        assert store.last_refresh_timestamp("API Units") is None
        store.replace("API Units", ["id"], [{"id": "1"}])
        assert store.last_refresh_timestamp("API Units") is None

    def test_table_names_and_slugs(self, store):
        store.replace("API Units", ["id"], [])
        assert store.exists("API Units")
        assert store.table_names() == ["api_units"]
        assert table_slug(" API Units ") == "api_units"

    def test_invalid_table_name(self, tmp_path):
        with pytest.raises(ValueError):
            ParquetTableStore(tmp_path).path_for("!!!")
