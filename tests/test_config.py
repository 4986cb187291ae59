"""Tests for settings, facility tables and timestamp helpers."""

import json
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from trackpage.config import Settings
from trackpage.errors import ConfigurationError, InvalidTimestampError
from trackpage.facilities import STATE_FACILITIES, TRANSIT_HUBS, load_facility_tables
from trackpage.utils import format_display_date, format_display_time, parse_timestamp, to_iso


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env()
        assert settings.durable_storage is True
        assert settings.shopify_configured is False
        assert settings.refresh_after == 4 * 60 * 60
        assert settings.unsaved_ttl == 60 * 60
        assert settings.fulfillment_window == (0, 30)
        assert (settings.metafield_namespace, settings.metafield_key) == ("custom", "replacement_tracking")

    def test_overrides(self, temp_dir, monkeypatch):
        env = {
            "TRACKPAGE_DATA_DIR": str(temp_dir),
            "TRACKPAGE_DURABLE_STORAGE": "false",
            "SHOPIFY_SHOP_DOMAIN": "shop.myshopify.com",
            "SHOPIFY_ACCESS_TOKEN": "tok",
            "SHOPIFY_TIMEOUT": "5",
            "ADMIN_PASSWORD": "hunter2",
            "TRACKPAGE_RETENTION_DAYS": "7",
            "TRACKPAGE_FULFILLMENT_WINDOW_DAYS": "1,14",
            "TRACKPAGE_REPLACEMENT_METAFIELD": "shipping.reship_tracking",
            "TRACKPAGE_PUBLIC_BASE_URL": "https://track.example.com/",
            "TRACKPAGE_LOG_LEVEL": "debug",
        }
        for name, value in env.items():
            monkeypatch.setenv(name, value)

        settings = Settings.from_env()
        assert settings.data_dir == Path(temp_dir)
        assert settings.durable_storage is False
        assert settings.shopify_configured is True
        assert settings.shopify_timeout == 5
        assert settings.admin_password == "hunter2"
        assert settings.retention_days == 7
        assert settings.fulfillment_window == (1.0, 14.0)
        assert settings.metafield_namespace == "shipping"
        assert settings.metafield_key == "reship_tracking"
        assert settings.public_base_url == "https://track.example.com"
        assert settings.log_level == "DEBUG"

    def test_empty_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("TRACKPAGE_UNSAVED_TTL", "")
        monkeypatch.setenv("TRACKPAGE_FACILITIES_FILE", "")
        settings = Settings.from_env()
        assert settings.unsaved_ttl == 60 * 60
        assert settings.facilities_file is None

    def test_keyword_construction(self, temp_dir):
        settings = Settings(data_dir=temp_dir, shopify_shop_domain="s.myshopify.com", shopify_access_token="t")
        assert settings.shopify_configured is True

    @pytest.mark.parametrize(
        "name,value",
        [
            ("TRACKPAGE_UNSAVED_TTL", "soon"),
            ("TRACKPAGE_REFRESH_AFTER", "0"),
            ("SHOPIFY_TIMEOUT", "-1"),
            ("TRACKPAGE_DURABLE_STORAGE", "maybe"),
            ("TRACKPAGE_FULFILLMENT_WINDOW_DAYS", "30,0"),
            ("TRACKPAGE_FULFILLMENT_WINDOW_DAYS", "thirty"),
            ("TRACKPAGE_REPLACEMENT_METAFIELD", "no_dot"),
        ],
    )
    def test_malformed_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env()
        assert exc_info.value.setting == name


class TestFacilityTables:
    def test_builtin(self):
        tables = load_facility_tables(None)
        assert tables.for_state("tx") == STATE_FACILITIES["TX"]
        assert tables.for_state(None) == STATE_FACILITIES["DEFAULT"]
        assert tables.transit_hubs == TRANSIT_HUBS

    def test_builtin_tables_are_copies(self):
        tables = load_facility_tables(None)
        tables.transit_hubs.append("Somewhere")
        assert "Somewhere" not in TRANSIT_HUBS

    def test_override_transit_hubs_only(self, temp_dir):
        path = temp_dir / "facilities.json"
        path.write_text(json.dumps({"transit_hubs": ["Reno, NV Hub"]}))

        tables = load_facility_tables(path)
        assert tables.transit_hubs == ["Reno, NV Hub"]
        assert tables.for_state("CA") == STATE_FACILITIES["CA"]

    def test_override_states_replaces_table(self, temp_dir):
        path = temp_dir / "facilities.json"
        path.write_text(json.dumps({"state_facilities": {"or": ["Portland Hub"], "DEFAULT": ["Depot"]}}))

        tables = load_facility_tables(path)
        assert tables.for_state("OR") == ["Portland Hub"]
        assert tables.for_state("CA") == ["Depot"]

    def test_states_without_default_rejected(self, temp_dir):
        path = temp_dir / "facilities.json"
        path.write_text(json.dumps({"state_facilities": {"OR": ["Portland Hub"]}}))
        with pytest.raises(ConfigurationError):
            load_facility_tables(path)

    def test_empty_list_rejected(self, temp_dir):
        path = temp_dir / "facilities.json"
        path.write_text(json.dumps({"transit_hubs": []}))
        with pytest.raises(ConfigurationError):
            load_facility_tables(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigurationError):
            load_facility_tables(temp_dir / "nope.json")


class TestTimestamps:
    def test_zulu(self):
        assert parse_timestamp("2025-03-03T10:00:00Z") == datetime(2025, 3, 3, 10, tzinfo=timezone.utc)

    def test_offset_kept(self):
        parsed = parse_timestamp("2025-03-03T10:00:00-05:00")
        assert parsed.utcoffset().total_seconds() == -5 * 3600

    def test_date_only_is_midnight_utc(self):
        assert parse_timestamp("2025-03-03") == datetime(2025, 3, 3, tzinfo=timezone.utc)

    def test_date_object(self):
        assert parse_timestamp(date(2025, 3, 3)) == datetime(2025, 3, 3, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "   ", "tomorrow", None, 17])
    def test_invalid(self, value):
        with pytest.raises(InvalidTimestampError):
            parse_timestamp(value, "field")

    def test_to_iso(self):
        assert to_iso(datetime(2025, 3, 3, 10, tzinfo=timezone.utc)) == "2025-03-03T10:00:00Z"

    def test_display_date(self):
        assert format_display_date(datetime(2025, 1, 6)) == "Mon, Jan 6, 2025"

    @pytest.mark.parametrize(
        "hour,minute,expected",
        [(0, 5, "12:05 AM"), (9, 0, "9:00 AM"), (12, 30, "12:30 PM"), (23, 59, "11:59 PM")],
    )
    def test_display_time(self, hour, minute, expected):
        assert format_display_time(hour, minute) == expected
