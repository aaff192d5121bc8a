import datetime as dt
import unittest

import requests

from swellwatch.data_sources import open_meteo_client
from swellwatch.errors import UpstreamUnavailable


class DummyResp:
    def __init__(self, payload, status_error=None, json_error=None):
        self._payload = payload
        self._status_error = status_error
        self._json_error = json_error

    def raise_for_status(self):
        if self._status_error:
            raise self._status_error

    def json(self):
        if self._json_error:
            raise self._json_error
        return self._payload


class DummySession:
    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc:
            raise self.exc
        return self.resp


def _make_weather_payload():
    return {
        "current": {
            "time": "2024-06-01T12:00",
            "temperature_2m": 20.0,
            "apparent_temperature": 19.0,
            "relative_humidity_2m": 70.0,
            "pressure_msl": 1015.0,
            "wind_speed_10m": 4.47,
            "wind_direction_10m": 90.0,
            "wind_gusts_10m": 6.0,
            "visibility": 10000.0,
            "uv_index": 5.0,
            "cloud_cover": 25.0,
            "precipitation": 0.0,
            "weather_code": 2,
        },
        "current_units": {
            "temperature_2m": "°C",
            "wind_speed_10m": "m/s",
            "wind_direction_10m": "°",
            "visibility": "m",
        },
    }


def _make_marine_payload():
    return {
        "current": {
            "time": "2024-06-01T12:00",
            "wave_height": 1.5,
            "wave_direction": 280.0,
            "wave_period": 10.0,
            "wind_wave_height": 0.3,
            "wind_wave_direction": 250.0,
            "wind_wave_period": 4.0,
            "swell_wave_height": 1.2,
            "swell_wave_direction": 270.0,
            "swell_wave_period": 14.0,
            "sea_surface_temperature": 15.0,
        },
        "current_units": {"wave_height": "m", "sea_surface_temperature": "°C"},
    }


class TestOpenMeteoClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = open_meteo_client.session

    def tearDown(self):
        open_meteo_client.session = self._orig_session

    def test_fetch_weather_current(self):
        dummy = DummySession(DummyResp(_make_weather_payload()))
        open_meteo_client.session = dummy

        current = open_meteo_client.fetch_weather_current(36.95, -122.02, timeout=3.0)

        self.assertEqual(current.temperature, 20.0)
        self.assertEqual(current.wind_speed, 4.47)
        self.assertEqual(current.wind_direction, 90.0)
        self.assertEqual(current.weather_code, 2)
        call = dummy.calls[0]
        self.assertEqual(call["url"], open_meteo_client.OPEN_METEO_WEATHER_URL)
        self.assertEqual(call["timeout"], 3.0)
        self.assertEqual(call["params"]["wind_speed_unit"], "ms")
        self.assertEqual(call["params"]["temperature_unit"], "celsius")
        self.assertIn("wind_gusts_10m", call["params"]["current"])

    def test_explicit_http_session_wins(self):
        open_meteo_client.session = DummySession(exc=AssertionError("module session should not be used"))
        dummy = DummySession(DummyResp(_make_marine_payload()))

        current = open_meteo_client.fetch_marine_current(36.95, -122.02, url="http://example.test/marine", http=dummy)

        self.assertEqual(current.swell_wave_height, 1.2)
        self.assertEqual(current.sea_surface_temperature, 15.0)
        self.assertEqual(dummy.calls[0]["url"], "http://example.test/marine")

    def test_missing_optional_fields_are_none(self):
        payload = {"current": {"time": "2024-06-01T12:00", "wave_height": 0.0}}
        open_meteo_client.session = DummySession(DummyResp(payload))
        current = open_meteo_client.fetch_marine_current(0.0, 0.0)
        self.assertEqual(current.wave_height, 0.0)
        self.assertIsNone(current.swell_wave_height)
        self.assertIsNone(current.sea_surface_temperature)

    def test_network_error_maps_to_upstream_unavailable(self):
        open_meteo_client.session = DummySession(exc=requests.ConnectionError("down"))
        with self.assertRaises(UpstreamUnavailable) as ctx:
            open_meteo_client.fetch_weather_current(0.0, 0.0)
        self.assertEqual(ctx.exception.provider, open_meteo_client.WEATHER_PROVIDER)

    def test_http_status_maps_to_upstream_unavailable(self):
        resp = DummyResp({}, status_error=requests.HTTPError("503 Service Unavailable"))
        open_meteo_client.session = DummySession(resp)
        with self.assertRaises(UpstreamUnavailable) as ctx:
            open_meteo_client.fetch_marine_current(0.0, 0.0)
        self.assertEqual(ctx.exception.provider, open_meteo_client.MARINE_PROVIDER)

    def test_invalid_json_maps_to_upstream_unavailable(self):
        open_meteo_client.session = DummySession(DummyResp(None, json_error=ValueError("Expecting value")))
        with self.assertRaises(UpstreamUnavailable):
            open_meteo_client.fetch_weather_current(0.0, 0.0)

    def test_missing_block_or_temperature(self):
        open_meteo_client.session = DummySession(DummyResp({"error": True, "reason": "bad"}))
        with self.assertRaises(UpstreamUnavailable):
            open_meteo_client.fetch_weather_current(0.0, 0.0)

        payload = _make_weather_payload()
        payload["current"]["temperature_2m"] = None
        open_meteo_client.session = DummySession(DummyResp(payload))
        with self.assertRaises(UpstreamUnavailable):
            open_meteo_client.fetch_weather_current(0.0, 0.0)

    def test_unexpected_units_warn(self):
        payload = _make_weather_payload()
        payload["current_units"]["wind_speed_10m"] = "km/h"
        open_meteo_client.session = DummySession(DummyResp(payload))
        with self.assertLogs("swellwatch.data_sources.open_meteo_client", level="WARNING") as logs:
            open_meteo_client.fetch_weather_current(0.0, 0.0)
        self.assertTrue(any("wind_speed_10m" in line for line in logs.output))

    def test_fetch_weather_daily(self):
        payload = {
            "daily": {
                "time": ["2024-06-01", "2024-06-02"],
                "temperature_2m_max": [20.0, 22.0],
                "temperature_2m_min": [12.0, 13.0],
                "wind_speed_10m_max": [5.0, 7.0],
                "wind_direction_10m_dominant": [45.0, 90.0],
                "precipitation_sum": [0.0, 1.2],
                "cloud_cover_mean": [30.0, 80.0],
                "weather_code": [1, 61],
            },
        }
        dummy = DummySession(DummyResp(payload))
        open_meteo_client.session = dummy

        days = open_meteo_client.fetch_weather_daily(36.95, -122.02, forecast_days=2)

        self.assertEqual(len(days), 2)
        self.assertEqual(days[1].date, dt.date(2024, 6, 2))
        self.assertEqual(days[1].weather_code, 61)
        self.assertIsNone(days[0].wind_gusts_max)
        self.assertEqual(dummy.calls[0]["params"]["forecast_days"], 2)

    def test_fetch_marine_daily_pads_short_columns(self):
        payload = {
            "daily": {
                "time": ["2024-06-01", "2024-06-02", "2024-06-03"],
                "swell_wave_height_max": [1.0, 1.5],
                "swell_wave_period_max": [12.0, 13.0, 14.0],
            },
        }
        open_meteo_client.session = DummySession(DummyResp(payload))

        days = open_meteo_client.fetch_marine_daily(36.95, -122.02, forecast_days=3)

        self.assertEqual([d.date.day for d in days], [1, 2, 3])
        self.assertIsNone(days[2].swell_wave_height_max)
        self.assertEqual(days[2].swell_wave_period_max, 14.0)

    def test_bad_daily_date(self):
        open_meteo_client.session = DummySession(DummyResp({"daily": {"time": ["not-a-date"]}}))
        with self.assertRaises(UpstreamUnavailable):
            open_meteo_client.fetch_marine_daily(0.0, 0.0)


class TestWeatherCodes(unittest.TestCase):
    def test_describe_weather_code(self):
        self.assertEqual(open_meteo_client.describe_weather_code(3), "Overcast")
        self.assertEqual(open_meteo_client.describe_weather_code(None), "Unknown")
        self.assertEqual(open_meteo_client.describe_weather_code(1234), "Unknown")


if __name__ == "__main__":
    unittest.main()
