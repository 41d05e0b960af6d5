from .detector import PercentileDetector, PercentileDetectorConfig

__all__ = ["PercentileDetector", "PercentileDetectorConfig"]
