import time
from dataclasses import asdict, dataclass
from datetime import date, timedelta

from src.activity_log import log
from src.readings import NO_DATA, valid_values
from src.store import ReadingStore, StoreError

# DailyAggregate field prefix -> stored record field
METRICS = {
    "temp": "Temperatura",
    "umid": "Umidade",
    "vel": "Velocidade",
}


class HistoryFetchError(StoreError):
    """A history request was aborted by a store failure or its time budget."""

    def __init__(self, message: str, operation: str, start: str | None = None, end: str | None = None, day: str | None = None):
        super().__init__(message, operation, day)
        self.start = start
        self.end = end
        self.day = day


@dataclass(frozen=True)
class DailyAggregate:
    dia: str
    tempMax: float = NO_DATA
    tempMin: float = NO_DATA
    tempMedia: float = NO_DATA
    umidMax: float = NO_DATA
    umidMin: float = NO_DATA
    umidMedia: float = NO_DATA
    velMax: float = NO_DATA
    velMin: float = NO_DATA
    velMedia: float = NO_DATA

    def to_record(self) -> dict:
        return asdict(self)

    @classmethod
    def from_record(cls, record: dict, day: str | None = None) -> "DailyAggregate":
        values = {}
        for name in cls.__dataclass_fields__:
            if name == "dia":
                continue
            raw = record.get(name)
            values[name] = raw if isinstance(raw, (int, float)) and not isinstance(raw, bool) else NO_DATA
        return cls(dia=record.get("dia") or day, **values)

    def has_data(self, prefix: str) -> bool:
        return getattr(self, f"{prefix}Max") != NO_DATA


def day_key(day: date) -> str:
    return day.isoformat()


def day_keys(start: date, end: date) -> list[str]:
    """Inclusive list of day keys from start to end."""
    keys = []
    current = start
    while current <= end:
        keys.append(day_key(current))
        current += timedelta(days=1)
    return keys


def next_day_key(key: str) -> str:
    return day_key(date.fromisoformat(key) + timedelta(days=1))


def _metric_stats(series) -> tuple[float, float, float]:
    if series.empty:
        return NO_DATA, NO_DATA, NO_DATA
    return float(series.max()), float(series.min()), round(float(series.mean()), 1)


def summarize_day(day: str, records: list[dict]) -> DailyAggregate:
    """Daily max/min/mean per metric, ignoring junk values and the sentinel."""
    fields = {}
    for prefix, source in METRICS.items():
        values = [record.get(source) for record in records]
        series = valid_values(values)
        dropped = len(values) - len(series)
        if dropped:
            log(f"{day}: ignored {dropped} invalid {source} value(s)")
        high, low, mean = _metric_stats(series)
        fields[f"{prefix}Max"] = high
        fields[f"{prefix}Min"] = low
        fields[f"{prefix}Media"] = mean
    return DailyAggregate(dia=day, **fields)


class Aggregator:
    """
    Daily rollups of the station logs, cached per day in the store.

    A cached day is returned as-is forever. A day without a cached row is
    only computed once the logs already contain the following day.
    """

    def __init__(self, store: ReadingStore, budget_seconds: float | None = None, clock=time.monotonic):
        self.store = store
        self.budget_seconds = budget_seconds
        self.clock = clock

    def get_daily_summary(self, day: date | str, available_days: set[str] | None = None) -> DailyAggregate | None:
        key = day if isinstance(day, str) else day_key(day)
        try:
            return self._resolve(key, available_days)
        except StoreError as exc:
            raise HistoryFetchError(
                f"Falha ao buscar o resumo de {key}: {exc}", exc.operation, start=key, end=key, day=key
            ) from exc

    def _resolve(self, key: str, available_days: set[str] | None) -> DailyAggregate | None:
        cached = self.store.load_daily_summary(key)
        if cached is not None:
            return DailyAggregate.from_record(cached, key)

        if available_days is None:
            available_days = self.store.available_days()
        following = next_day_key(key)
        if following not in available_days:
            log(f"Day {key} skipped: following day {following} not found in logs")
            return None

        records = self.store.readings_for_day(key)
        if not records:
            return None

        aggregate = summarize_day(key, records)
        self.store.save_daily_summary(key, aggregate.to_record())
        return aggregate

    def get_range(self, start: date, end: date) -> list[DailyAggregate]:
        """One aggregate per resolvable day in [start, end], ascending."""
        keys = day_keys(start, end)
        if not keys:
            return []
        started = self.clock()
        current = None
        try:
            available = self.store.available_days()
            results = []
            for current in keys:
                self._check_budget(started, keys[0], keys[-1], current)
                aggregate = self._resolve(current, available)
                if aggregate is not None:
                    results.append(aggregate)
            return results
        except HistoryFetchError:
            raise
        except StoreError as exc:
            raise HistoryFetchError(
                f"Falha ao buscar o histórico de {keys[0]} a {keys[-1]}: {exc}",
                exc.operation,
                start=keys[0],
                end=keys[-1],
                day=current,
            ) from exc

    def _check_budget(self, started: float, start: str, end: str, day: str) -> None:
        if self.budget_seconds is None:
            return
        if self.clock() - started > self.budget_seconds:
            raise HistoryFetchError(
                f"Tempo esgotado ao processar {day} ({start} a {end})",
                "get_range",
                start=start,
                end=end,
                day=day,
            )
