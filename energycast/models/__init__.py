from .forecast import EnergyForecastRecord, RealizedWaveform, ForecastAccuracy

__all__ = [
    "EnergyForecastRecord",
    "RealizedWaveform",
    "ForecastAccuracy",
]
