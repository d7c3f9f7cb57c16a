"""
Forecast cache tables.

One row per calendar day in each table. These are derived caches: the
engine can always recompute them from biometric and schedule snapshots,
so rows are overwritten (upsert by day) or deleted freely.

  energy_forecasts    DayEnergyForecast payloads
  realized_waveforms  measured waveform stored once a day is in the past
  forecast_accuracy   1 - mean |forecast - realized| for a day

Waveforms and metric lists are JSON-encoded lists stored as Text.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, Text, Float, DateTime, Date, func
from sqlalchemy.orm import Mapped, mapped_column

from energycast.db.base import Base


class EnergyForecastRecord(Base):
    __tablename__ = "energy_forecasts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    day: Mapped[date] = mapped_column(Date, nullable=False, unique=True, index=True)
    hourly_values: Mapped[str] = mapped_column(
        Text, nullable=False,
        comment="JSON list of 24 floats in 0..1, or [] for the ineligible sentinel",
    )
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    missing_metrics: Mapped[str] = mapped_column(
        Text, nullable=False, default="[]",
        comment="JSON list of MetricType values",
    )
    source_type: Mapped[str] = mapped_column(
        String(32), nullable=False,
        comment='"historical_model" or "default_heuristic"',
    )
    debug_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class RealizedWaveform(Base):
    __tablename__ = "realized_waveforms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    day: Mapped[date] = mapped_column(Date, nullable=False, unique=True, index=True)
    hourly_values: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ForecastAccuracy(Base):
    __tablename__ = "forecast_accuracy"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    day: Mapped[date] = mapped_column(Date, nullable=False, unique=True, index=True)
    accuracy: Mapped[float] = mapped_column(
        Float, nullable=False,
        comment="0..1; 1 means the forecast matched the measured waveform exactly",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
