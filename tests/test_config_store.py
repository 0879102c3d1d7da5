from contextlib import closing
from pathlib import Path
import tempfile
import unittest

import pytest

from src.config_store import (
    LAT_OVERRIDE_KEY,
    LON_OVERRIDE_KEY,
    LUX_PEAK_OVERRIDE_KEY,
    OVERRIDE_ENABLED_KEY,
    StationConfig,
    StationOverrides,
    _parse_thresholds,
    connect,
    load_overrides,
    load_station_config,
    read_flag,
    read_number,
    read_setting,
    save_overrides,
    write_setting,
)


class ConfigStoreTest(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self.tmp.name) / "config.db"

    def tearDown(self):
        self.tmp.cleanup()

    def test_round_trip_settings(self):
        with closing(connect(self.db_path)) as conn:
            write_setting(conn, "sample_key", "value")
            self.assertEqual(read_setting(conn, "sample_key"), "value")

            write_setting(conn, OVERRIDE_ENABLED_KEY, True)
            self.assertTrue(read_flag(conn, OVERRIDE_ENABLED_KEY))

            write_setting(conn, LAT_OVERRIDE_KEY, -19.5)
            self.assertAlmostEqual(read_number(conn, LAT_OVERRIDE_KEY), -19.5)

        with closing(connect(self.db_path)) as conn:
            self.assertEqual(read_setting(conn, "sample_key"), "value")
            self.assertTrue(read_flag(conn, OVERRIDE_ENABLED_KEY))
            self.assertFalse(read_flag(conn, "missing"))
            self.assertIsNone(read_number(conn, "missing"))

    def test_garbage_number_is_none(self):
        with closing(connect(self.db_path)) as conn:
            write_setting(conn, LUX_PEAK_OVERRIDE_KEY, "muito")
            self.assertIsNone(read_number(conn, LUX_PEAK_OVERRIDE_KEY))
            self.assertEqual(load_station_config(conn, StationConfig()), StationConfig())

    def test_location_override_requires_flag(self):
        base = StationConfig()
        with closing(connect(self.db_path)) as conn:
            write_setting(conn, LAT_OVERRIDE_KEY, -20.0)
            write_setting(conn, LON_OVERRIDE_KEY, -41.0)
            self.assertEqual(load_station_config(conn, base), base)

            write_setting(conn, OVERRIDE_ENABLED_KEY, True)
            config = load_station_config(conn, base)
        self.assertEqual(config.latitude, -20.0)
        self.assertEqual(config.longitude, -41.0)
        self.assertEqual(config.lux_peak, base.lux_peak)

    def test_lux_peak_override(self):
        with closing(connect(self.db_path)) as conn:
            write_setting(conn, LUX_PEAK_OVERRIDE_KEY, 8000)
            config = load_station_config(conn, StationConfig())
        self.assertEqual(config.lux_peak, 8000.0)

    def test_saved_overrides_reach_station_config(self):
        saved = StationOverrides(location_enabled=True, latitude=-19.9, longitude=-40.1, lux_peak=7500.0)
        with closing(connect(self.db_path)) as conn:
            save_overrides(conn, saved)
        with closing(connect(self.db_path)) as conn:
            self.assertEqual(load_overrides(conn), saved)
            config = load_station_config(conn, StationConfig())
        self.assertEqual((config.latitude, config.longitude, config.lux_peak), (-19.9, -40.1, 7500.0))

    def test_disabling_keeps_coordinates_and_clears_lux_peak(self):
        with closing(connect(self.db_path)) as conn:
            save_overrides(conn, StationOverrides(True, -19.9, -40.1, 7500.0))
            save_overrides(conn, StationOverrides(False, -19.9, -40.1, None))
            overrides = load_overrides(conn)
            config = load_station_config(conn, StationConfig())
        self.assertFalse(overrides.location_enabled)
        self.assertEqual((overrides.latitude, overrides.longitude), (-19.9, -40.1))
        self.assertIsNone(overrides.lux_peak)
        self.assertEqual(config, StationConfig())

    def test_invalid_coordinates_write_nothing(self):
        with closing(connect(self.db_path)) as conn:
            with self.assertRaises(ValueError):
                save_overrides(conn, StationOverrides(True, -95.0, -40.1, None))
            self.assertEqual(load_overrides(conn), StationOverrides())


def test_thresholds_are_sorted_descending():
    assert _parse_thresholds("1000,4000,2000,3000") == (4000.0, 3000.0, 2000.0, 1000.0)


def test_thresholds_need_four_values():
    with pytest.raises(ValueError):
        _parse_thresholds("4000,3000")


if __name__ == "__main__":
    unittest.main()
