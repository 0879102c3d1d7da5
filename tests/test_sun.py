from datetime import date
import unittest
from unittest import mock

import requests

from src.sun import SUN_API_URL, fetch_sun_times

SAMPLE_PAYLOAD = {
    "results": {
        "sunrise": "2025-05-10T09:05:12+00:00",
        "sunset": "2025-05-10T20:31:40+00:00",
        "day_length": 41188,
    },
    "status": "OK",
}


class SunTimesTest(unittest.TestCase):
    def test_parse_in_station_time(self):
        session = mock.Mock()
        session.get.return_value.json.return_value = SAMPLE_PAYLOAD
        sun = fetch_sun_times(-19.41, -40.54, date(2025, 5, 10), "America/Sao_Paulo", session=session)
        self.assertEqual((sun.sunrise.hour, sun.sunrise.minute), (6, 5))
        self.assertEqual((sun.sunset.hour, sun.sunset.minute), (17, 31))
        self.assertEqual(session.get.call_args.args[0], SUN_API_URL)
        self.assertEqual(
            session.get.call_args.kwargs["params"],
            {"lat": -19.41, "lng": -40.54, "date": "2025-05-10", "formatted": 0},
        )

    def test_unreachable_service(self):
        session = mock.Mock()
        session.get.side_effect = requests.ConnectionError("offline")
        self.assertIsNone(fetch_sun_times(-19.41, -40.54, date(2025, 5, 10), "America/Sao_Paulo", session=session))

    def test_bad_status(self):
        session = mock.Mock()
        session.get.return_value.json.return_value = {"results": "", "status": "INVALID_REQUEST"}
        self.assertIsNone(fetch_sun_times(-19.41, -40.54, date(2025, 5, 10), "America/Sao_Paulo", session=session))


if __name__ == "__main__":
    unittest.main()
