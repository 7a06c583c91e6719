"""
Tests for CONFIG reading and defaults.
"""

from engine_config import CONFIG_DEFAULTS, EngineConfig, GapThresholds, get_config, load_engine_config, parse_track_zips


class TestDefaults:
    def test_missing_config_table_uses_defaults(self, store):
        config = load_engine_config(store)
        assert config == EngineConfig()
        assert config.thresholds == GapThresholds(10.0, 10.0)
        assert config.renewal_window_days == 90
        assert config.market_call_budget == 50
        assert config.track_zips == ()

    def test_get_config_falls_back(self, store):
        assert get_config(store, "UNDERPRICED_THRESHOLD") == CONFIG_DEFAULTS["UNDERPRICED_THRESHOLD"]
        assert get_config(store, "UNKNOWN_KEY") is None


class TestConfigTable:
    def test_values_read_from_table(self, store):
        store.replace("CONFIG", ["key", "value"], [
            {"key": "UNDERPRICED_THRESHOLD", "value": "15"},
            {"key": "OVERPRICED_THRESHOLD", "value": "7.5"},
            {"key": "TRACK_ZIPS", "value": "62701, 62565"},
            {"key": "RENTCAST_CALL_BUDGET", "value": "20"},
        ])
        config = load_engine_config(store)
        assert config.thresholds == GapThresholds(15.0, 7.5)
        assert config.track_zips == ("62701", "62565")
        assert config.market_call_budget == 20
        assert get_config(store, "UNDERPRICED_THRESHOLD") == "15"

    def test_headerless_layout(self, store):
        store.replace("CONFIG", ["A", "B"], [{"A": "RENEWAL_WINDOW_DAYS", "B": "30"}])
        assert load_engine_config(store).renewal_window_days == 30

    def test_headerless_layout_after_refresh_column(self, store):
        store.replace("CONFIG", ["Refresh Time", "A", "B"], [
            {"Refresh Time": "2024-07-01 06:00:00", "A": "OVERPRICED_THRESHOLD", "B": "4"},
        ])
        assert load_engine_config(store).thresholds == GapThresholds(10.0, 4.0)

    def test_invalid_values_fall_back(self, store):
        store.replace("CONFIG", ["key", "value"], [
            {"key": "UNDERPRICED_THRESHOLD", "value": "lots"},
            {"key": "OVERPRICED_THRESHOLD", "value": "-3"},
        ])
        assert load_engine_config(store).thresholds == GapThresholds(10.0, 10.0)

    def test_overrides_win(self, store):
        store.replace("CONFIG", ["key", "value"], [{"key": "UNDERPRICED_THRESHOLD", "value": "15"}])
        config = load_engine_config(store, {"UNDERPRICED_THRESHOLD": 25, "OVERPRICED_THRESHOLD": None})
        assert config.thresholds == GapThresholds(25.0, 10.0)


class TestTrackZips:
    def test_parsing(self):
        assert parse_track_zips("") == ()
        assert parse_track_zips(None) == ()
        assert parse_track_zips("62701;62701 62565") == ("62701", "62565")
