from datetime import date, datetime, timezone
import unittest

from src.aggregator import DailyAggregate, HistoryFetchError
from src.pages.historico import (
    EMPTY_MESSAGE,
    ERROR_MESSAGE,
    history_chart,
    history_frame,
    load_history,
    station_today,
)
from src.readings import NO_DATA


class StubAggregator:
    def __init__(self, result=None, error=None):
        self.result = result or []
        self.error = error
        self.calls = []

    def get_range(self, start, end):
        self.calls.append((start, end))
        if self.error:
            raise self.error
        return self.result


class LoadHistoryTest(unittest.TestCase):
    def test_results(self):
        aggregates = [DailyAggregate(dia="2025-05-01", tempMax=20, tempMin=10, tempMedia=15)]
        result, message = load_history(StubAggregator(aggregates), date(2025, 5, 1), date(2025, 5, 3))
        self.assertEqual(result, aggregates)
        self.assertEqual(message, "")

    def test_empty_is_not_an_error(self):
        result, message = load_history(StubAggregator([]), date(2025, 5, 1), date(2025, 5, 3))
        self.assertEqual(result, [])
        self.assertEqual(message, EMPTY_MESSAGE)

    def test_store_failure_message(self):
        error = HistoryFetchError("boom", "readings_for_day", start="2025-05-01", end="2025-05-03", day="2025-05-02")
        result, message = load_history(StubAggregator(error=error), date(2025, 5, 1), date(2025, 5, 3))
        self.assertEqual(result, [])
        self.assertEqual(message, ERROR_MESSAGE)

    def test_inverted_range_skips_store(self):
        stub = StubAggregator()
        result, message = load_history(stub, date(2025, 5, 3), date(2025, 5, 1))
        self.assertEqual(result, [])
        self.assertTrue(message)
        self.assertEqual(stub.calls, [])


def test_history_frame_skips_no_data():
    aggregates = [
        DailyAggregate(dia="2025-05-01", velMax=6.0, velMedia=2.1),
        DailyAggregate(dia="2025-05-02", velMax=NO_DATA, velMedia=NO_DATA),
    ]
    df = history_frame(aggregates, "vel", [("Máxima", "Max"), ("Média", "Media")])
    assert list(df["metric"]) == ["Máxima", "Média"]
    assert list(df["value"]) == [6.0, 2.1]
    assert NO_DATA not in set(df["value"])


def test_history_chart_encoding():
    aggregates = [DailyAggregate(dia="2025-05-01", tempMax=25, tempMin=15, tempMedia=20)]
    df = history_frame(aggregates, "temp", [("Máxima", "Max"), ("Média", "Media"), ("Mínima", "Min")])
    chart = history_chart(df).to_dict()
    assert chart["mark"]["type"] == "line"
    assert chart["encoding"]["x"]["field"] == "day"


def test_station_today_follows_station_calendar():
    # 01:30 UTC is still the previous evening in São Paulo
    now = datetime(2025, 5, 11, 1, 30, tzinfo=timezone.utc)
    assert station_today("America/Sao_Paulo", now) == date(2025, 5, 10)
    assert station_today("UTC", now) == date(2025, 5, 11)
