import datetime as dt
import unittest

from pydantic import ValidationError

from swellwatch.domain import (
    DailyConditions,
    FetchFailure,
    Location,
    NormalizedConditions,
    Rating,
    SpotPreferenceProfile,
    TideEvent,
    TideEventKind,
    TideState,
)

NOW = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def _conditions(**overrides):
    values = dict(
        swell_height=4.0,
        swell_period=12.0,
        swell_direction="W",
        wind_speed=8.0,
        wind_direction="NE",
        water_temp=58.0,
        air_temp=64.0,
        timestamp=NOW,
    )
    values.update(overrides)
    return NormalizedConditions(**values)


class TestNormalizedConditions(unittest.TestCase):
    def test_frozen(self):
        conditions = _conditions()
        with self.assertRaises(ValidationError):
            conditions.swell_height = 10.0

    def test_rejects_non_compass_direction(self):
        with self.assertRaises(ValidationError):
            _conditions(swell_direction="West")
        with self.assertRaises(ValidationError):
            _conditions(wind_wave_direction="sideshore")

    def test_rejects_negative_height(self):
        with self.assertRaises(ValidationError):
            _conditions(swell_height=-1.0)

    def test_degraded_round_trips_through_json(self):
        conditions = _conditions(failures=(FetchFailure.MARINE_UNAVAILABLE,))
        payload = conditions.model_dump(mode="json")
        self.assertTrue(payload["degraded"])
        self.assertEqual(payload["failures"], ["marine_unavailable"])
        self.assertEqual(NormalizedConditions.model_validate(payload), conditions)

    def test_unknown_fields_are_rejected(self):
        with self.assertRaises(ValidationError):
            _conditions(swell_size="big")


class TestDailyConditions(unittest.TestCase):
    def test_defaults(self):
        day = DailyConditions(
            date=dt.date(2024, 6, 1),
            swell_height=3.0,
            swell_period=11.0,
            swell_direction="WNW",
            wind_speed=9.0,
            wind_direction="N",
            air_temp=66.0,
            water_temp=57.0,
        )
        self.assertEqual(day.precipitation, 0.0)
        self.assertEqual(day.cloud_cover, 50.0)
        self.assertFalse(day.degraded)


class TestMisc(unittest.TestCase):
    def test_rating_bands(self):
        self.assertIs(Rating.from_score(8), Rating.EXCELLENT)
        self.assertIs(Rating.from_score(6), Rating.GOOD)
        self.assertIs(Rating.from_score(4), Rating.FAIR)
        self.assertIs(Rating.from_score(3), Rating.POOR)
        self.assertEqual(Rating.GOOD.value, "Good")

    def test_location_range(self):
        with self.assertRaises(ValidationError):
            Location(lat=91.0, lng=0.0)
        with self.assertRaises(ValidationError):
            Location(lat=0.0, lng=-180.5)

    def test_tide_state_thirds(self):
        self.assertIs(TideState.from_height(0.2, 0.0, 2.0), TideState.LOW)
        self.assertIs(TideState.from_height(1.0, 0.0, 2.0), TideState.MID)
        self.assertIs(TideState.from_height(1.9, 0.0, 2.0), TideState.HIGH)
        self.assertIs(TideState.from_height(1.0, 1.0, 1.0), TideState.MID)
        self.assertEqual(TideState.HIGH.value, "High")

    def test_tide_event_kind_is_validated(self):
        event = TideEvent(time=NOW, kind="high", height=5.2)
        self.assertIs(event.kind, TideEventKind.HIGH)
        with self.assertRaises(ValidationError):
            TideEvent(time=NOW, kind="slack", height=1.0)

    def test_conditions_accept_tide_fields(self):
        conditions = _conditions(tide="Mid", tide_height=3.3, tide_trend="Rising",
                                 tide_events=[{"time": NOW, "kind": "low", "height": 0.7}])
        self.assertIs(conditions.tide, TideState.MID)
        self.assertEqual(NormalizedConditions.model_validate(conditions.model_dump(mode="json")), conditions)
        with self.assertRaises(ValidationError):
            _conditions(tide="Flooding")

    def test_profile_defaults(self):
        profile = SpotPreferenceProfile()
        self.assertEqual(profile.swell_size, "2-8ft")
        self.assertEqual(profile.tide, [])


if __name__ == "__main__":
    unittest.main()
