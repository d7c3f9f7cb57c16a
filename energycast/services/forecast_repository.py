"""
Forecast cache: a dumb date-keyed store.

Three maps, each with at most one record per calendar day:
  forecasts   day -> DayEnergyForecast
  waves       day -> realized (measured) 24-hour waveform
  accuracy    day -> 0..1 agreement between forecast and realized waveform

No policy lives here. Deciding when an entry is stale, when to record
accuracy, and what may be cached is the job of the forecast model, the
unified blender and the summary provider.

Concurrency: several summaries can be requested at once (one per visible
day). CACHE_LOCK is a single process-wide re-entrant lock; every mutation
takes it, and callers hold it across read-check-write sequences such as
accuracy bookkeeping.
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import date, timedelta
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from energycast.models.forecast import EnergyForecastRecord, ForecastAccuracy, RealizedWaveform
from energycast.services.domain import DayEnergyForecast, ForecastSource
from energycast.services.metrics import MetricType

logger = logging.getLogger(__name__)

CACHE_LOCK = threading.RLock()


def _jdump(values) -> str:
    return json.dumps(list(values))


def _jload(text: Optional[str]) -> list:
    if not text:
        return []
    try:
        result = json.loads(text)
        return result if isinstance(result, list) else []
    except (ValueError, TypeError):
        return []


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class ForecastRepository:
    """Storage contract shared by the in-memory and SQL implementations."""

    lock = CACHE_LOCK

    def get(self, day: date) -> Optional[DayEnergyForecast]:
        raise NotImplementedError

    def put(self, forecast: DayEnergyForecast) -> None:
        raise NotImplementedError

    def invalidate(self, day: date) -> None:
        raise NotImplementedError

    def record_accuracy(self, day: date, value: float) -> None:
        raise NotImplementedError

    def get_accuracy(self, day: date) -> Optional[float]:
        raise NotImplementedError

    def get_wave(self, day: date) -> Optional[list[float]]:
        raise NotImplementedError

    def put_wave(self, day: date, wave: Sequence[float]) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def recent_accuracy(self, days: int, today: date) -> Optional[float]:
        """Mean recorded accuracy over the `days` days ending today, or None."""
        values = [
            acc for acc in (
                self.get_accuracy(today - timedelta(days=i)) for i in range(days)
            )
            if acc is not None
        ]
        if not values:
            return None
        return sum(values) / len(values)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class InMemoryForecastRepository(ForecastRepository):
    def __init__(self):
        self._forecasts: dict[date, DayEnergyForecast] = {}
        self._waves: dict[date, tuple[float, ...]] = {}
        self._accuracy: dict[date, float] = {}

    def get(self, day: date) -> Optional[DayEnergyForecast]:
        return self._forecasts.get(day)

    def put(self, forecast: DayEnergyForecast) -> None:
        with self.lock:
            self._forecasts[forecast.day] = forecast

    def invalidate(self, day: date) -> None:
        with self.lock:
            self._forecasts.pop(day, None)

    def record_accuracy(self, day: date, value: float) -> None:
        with self.lock:
            self._accuracy[day] = value

    def get_accuracy(self, day: date) -> Optional[float]:
        return self._accuracy.get(day)

    def get_wave(self, day: date) -> Optional[list[float]]:
        wave = self._waves.get(day)
        return list(wave) if wave is not None else None

    def put_wave(self, day: date, wave: Sequence[float]) -> None:
        with self.lock:
            self._waves[day] = tuple(wave)

    def clear(self) -> None:
        with self.lock:
            self._forecasts.clear()
            self._waves.clear()
            self._accuracy.clear()


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------

def _record_to_forecast(row: EnergyForecastRecord) -> DayEnergyForecast:
    missing = []
    for raw in _jload(row.missing_metrics):
        try:
            missing.append(MetricType(raw))
        except ValueError:
            logger.warning("Ignoring unknown metric %r in cached forecast for %s", raw, row.day)
    return DayEnergyForecast(
        day=row.day,
        values=tuple(float(v) for v in _jload(row.hourly_values)),
        score=float(row.score),
        confidence=float(row.confidence),
        missing_metrics=tuple(missing),
        source_type=ForecastSource(row.source_type),
        debug_info=row.debug_info,
    )


class SqlForecastRepository(ForecastRepository):
    """Upsert-by-day storage on top of a request-scoped Session. Commits per write."""

    def __init__(self, db: Session):
        self.db = db

    # -- forecasts ----------------------------------------------------------

    def _forecast_row(self, day: date) -> Optional[EnergyForecastRecord]:
        return (
            self.db.query(EnergyForecastRecord)
            .filter(EnergyForecastRecord.day == day)
            .first()
        )

    def get(self, day: date) -> Optional[DayEnergyForecast]:
        row = self._forecast_row(day)
        return _record_to_forecast(row) if row is not None else None

    def put(self, forecast: DayEnergyForecast) -> None:
        with self.lock:
            existing = self._forecast_row(forecast.day)
            fields = dict(
                hourly_values=_jdump(forecast.values),
                score=forecast.score,
                confidence=forecast.confidence,
                missing_metrics=_jdump(m.value for m in forecast.missing_metrics),
                source_type=forecast.source_type.value,
                debug_info=forecast.debug_info,
            )
            if existing is not None:
                for key, value in fields.items():
                    setattr(existing, key, value)
            else:
                self.db.add(EnergyForecastRecord(day=forecast.day, **fields))
            self.db.commit()

    def invalidate(self, day: date) -> None:
        with self.lock:
            deleted = (
                self.db.query(EnergyForecastRecord)
                .filter(EnergyForecastRecord.day == day)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        if deleted:
            logger.debug("Deleted cached forecast row for %s", day)

    # -- accuracy -----------------------------------------------------------

    def record_accuracy(self, day: date, value: float) -> None:
        with self.lock:
            existing = (
                self.db.query(ForecastAccuracy)
                .filter(ForecastAccuracy.day == day)
                .first()
            )
            if existing is not None:
                existing.accuracy = value
            else:
                self.db.add(ForecastAccuracy(day=day, accuracy=value))
            self.db.commit()

    def get_accuracy(self, day: date) -> Optional[float]:
        row = (
            self.db.query(ForecastAccuracy.accuracy)
            .filter(ForecastAccuracy.day == day)
            .first()
        )
        return float(row.accuracy) if row is not None else None

    def recent_accuracy(self, days: int, today: date) -> Optional[float]:
        start = today - timedelta(days=days - 1)
        rows = (
            self.db.query(ForecastAccuracy.accuracy)
            .filter(ForecastAccuracy.day >= start, ForecastAccuracy.day <= today)
            .all()
        )
        if not rows:
            return None
        return sum(float(r.accuracy) for r in rows) / len(rows)

    # -- realized waves -----------------------------------------------------

    def get_wave(self, day: date) -> Optional[list[float]]:
        row = (
            self.db.query(RealizedWaveform)
            .filter(RealizedWaveform.day == day)
            .first()
        )
        if row is None:
            return None
        return [float(v) for v in _jload(row.hourly_values)]

    def put_wave(self, day: date, wave: Sequence[float]) -> None:
        with self.lock:
            existing = (
                self.db.query(RealizedWaveform)
                .filter(RealizedWaveform.day == day)
                .first()
            )
            if existing is not None:
                existing.hourly_values = _jdump(wave)
            else:
                self.db.add(RealizedWaveform(day=day, hourly_values=_jdump(wave)))
            self.db.commit()

    def clear(self) -> None:
        with self.lock:
            self.db.query(EnergyForecastRecord).delete(synchronize_session=False)
            self.db.query(RealizedWaveform).delete(synchronize_session=False)
            self.db.query(ForecastAccuracy).delete(synchronize_session=False)
            self.db.commit()
