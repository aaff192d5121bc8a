import datetime as dt
import unittest

import requests

from swellwatch.data_sources import noaa_tides_client
from swellwatch.data_sources.noaa_tides_client import TidePrediction, closest_tide_station, find_tide_extremes
from swellwatch.errors import UpstreamUnavailable

NOW = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


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


def _levels(*heights, start=NOW):
    return [TidePrediction(time=start + dt.timedelta(minutes=6 * i), height=h) for i, h in enumerate(heights)]


class TestStations(unittest.TestCase):
    def test_closest_station(self):
        self.assertEqual(closest_tide_station(36.95, -122.02).station_id, "9413450")  # Monterey
        self.assertEqual(closest_tide_station(32.85, -117.27).station_id, "9410230")  # La Jolla
        self.assertEqual(closest_tide_station(33.66, -118.0).station_id, "9410660")  # Los Angeles
        self.assertEqual(closest_tide_station(41.9, -124.2).name, "Crescent City")


class TestFindTideExtremes(unittest.TestCase):
    def _series(self, marks):
        heights = [1.0] * 37
        for index, height in marks.items():
            heights[index] = height
        return _levels(*heights)

    def test_high_and_low_on_half_hour_steps(self):
        series = self._series({0: 0.8, 6: 1.2, 12: 1.8, 18: 1.0, 24: 0.2, 30: 0.6, 36: 1.0})

        extremes = find_tide_extremes(series)

        self.assertEqual([(e.kind, e.height) for e in extremes], [("high", 1.8), ("low", 0.2)])
        self.assertEqual(extremes[0].time, NOW + dt.timedelta(minutes=72))

    def test_shallow_turns_are_ignored(self):
        # A 0.9 m peak is not high water and a 0.7 m trough is not low water.
        series = self._series({0: 0.8, 6: 0.85, 12: 0.9, 18: 0.8, 24: 0.7, 30: 0.75, 36: 1.0})
        self.assertEqual(find_tide_extremes(series), [])

    def test_scan_starts_at_index_and_respects_limit(self):
        series = self._series({0: 0.8, 6: 1.2, 12: 1.8, 18: 1.0, 24: 0.2, 30: 0.6, 36: 1.0})
        self.assertEqual([e.kind for e in find_tide_extremes(series, start=18)], ["low"])
        self.assertEqual(len(find_tide_extremes(series, limit=1)), 1)

    def test_short_series_has_no_extremes(self):
        self.assertEqual(find_tide_extremes(_levels(0.1, 2.0, 0.1)), [])


class TestNoaaTidesClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = noaa_tides_client.session

    def tearDown(self):
        noaa_tides_client.session = self._orig_session

    def test_fetch_tide_predictions(self):
        payload = {"predictions": [{"t": "2024-06-01 11:00", "v": "1.204"}, {"t": "2024-06-01 11:06", "v": "1.251"}]}
        dummy = DummySession(DummyResp(payload))
        noaa_tides_client.session = dummy

        predictions = noaa_tides_client.fetch_tide_predictions(36.95, -122.02, timeout=4.0, now=NOW)

        self.assertEqual(len(predictions), 2)
        self.assertEqual(predictions[0].time, dt.datetime(2024, 6, 1, 11, 0, tzinfo=dt.timezone.utc))
        self.assertEqual(predictions[1].height, 1.251)
        call = dummy.calls[0]
        self.assertEqual(call["url"], noaa_tides_client.NOAA_TIDES_URL)
        self.assertEqual(call["timeout"], 4.0)
        params = call["params"]
        self.assertEqual(params["station"], "9413450")
        self.assertEqual(params["product"], "predictions")
        self.assertEqual(params["datum"], "MLLW")
        self.assertEqual(params["units"], "metric")
        self.assertEqual(params["time_zone"], "gmt")
        self.assertEqual(params["begin_date"], "20240601 11:00")
        self.assertEqual(params["range"], 24)

    def test_explicit_http_session_wins(self):
        noaa_tides_client.session = DummySession(exc=AssertionError("module session should not be used"))
        dummy = DummySession(DummyResp({"predictions": [{"t": "2024-06-01 11:00", "v": "0.500"}]}))

        noaa_tides_client.fetch_tide_predictions(32.85, -117.27, url="http://example.test/tides", http=dummy, now=NOW)

        self.assertEqual(dummy.calls[0]["url"], "http://example.test/tides")
        self.assertEqual(dummy.calls[0]["params"]["station"], "9410230")

    def test_error_body_raises_unavailable(self):
        noaa_tides_client.session = DummySession(DummyResp({"error": {"message": "No Predictions data was found."}}))
        with self.assertRaises(UpstreamUnavailable) as ctx:
            noaa_tides_client.fetch_tide_predictions(36.95, -122.02, now=NOW)
        self.assertEqual(ctx.exception.provider, "tide")
        self.assertIn("No Predictions", ctx.exception.detail)

    def test_bad_payloads_raise_unavailable(self):
        for payload in ({}, {"predictions": "none"}, {"predictions": []},
                        {"predictions": [{"t": "2024-06-01 11:00", "v": "n/a"}]},
                        {"predictions": [{"v": "1.0"}]}, ["not", "an", "object"]):
            noaa_tides_client.session = DummySession(DummyResp(payload))
            with self.assertRaises(UpstreamUnavailable):
                noaa_tides_client.fetch_tide_predictions(36.95, -122.02, now=NOW)

    def test_transport_and_decode_errors_raise_unavailable(self):
        noaa_tides_client.session = DummySession(exc=requests.ConnectionError("down"))
        with self.assertRaises(UpstreamUnavailable):
            noaa_tides_client.fetch_tide_predictions(36.95, -122.02, now=NOW)

        resp = DummyResp({}, status_error=requests.HTTPError("503 Server Error"))
        noaa_tides_client.session = DummySession(resp)
        with self.assertRaises(UpstreamUnavailable):
            noaa_tides_client.fetch_tide_predictions(36.95, -122.02, now=NOW)

        noaa_tides_client.session = DummySession(DummyResp(None, json_error=ValueError("Expecting value")))
        with self.assertRaises(UpstreamUnavailable):
            noaa_tides_client.fetch_tide_predictions(36.95, -122.02, now=NOW)

    def test_fetch_tide_daily(self):
        payload = {
            "predictions": [
                {"t": "2024-06-01 03:12", "v": "0.213", "type": "L"},
                {"t": "2024-06-01 09:40", "v": "1.520", "type": "H"},
                {"t": "2024-06-01 21:30", "v": "1.830", "type": "HH"},
            ]
        }
        dummy = DummySession(DummyResp(payload))
        noaa_tides_client.session = dummy

        extremes = noaa_tides_client.fetch_tide_daily(36.95, -122.02, forecast_days=3, today=dt.date(2024, 6, 1))

        self.assertEqual([e.kind for e in extremes], ["low", "high", "high"])
        self.assertEqual(extremes[0].time, dt.datetime(2024, 6, 1, 3, 12))
        self.assertEqual(extremes[0].height, 0.213)
        params = dummy.calls[0]["params"]
        self.assertEqual(params["interval"], "hilo")
        self.assertEqual(params["time_zone"], "lst_ldt")
        self.assertEqual(params["begin_date"], "20240531")
        self.assertEqual(params["end_date"], "20240604")

    def test_fetch_tide_daily_requires_predictions(self):
        noaa_tides_client.session = DummySession(DummyResp({"data": []}))
        with self.assertRaises(UpstreamUnavailable):
            noaa_tides_client.fetch_tide_daily(36.95, -122.02, forecast_days=2, today=dt.date(2024, 6, 1))


if __name__ == "__main__":
    unittest.main()
