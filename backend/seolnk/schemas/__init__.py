from .events import TrackEvent, TrackResponse
from .analytics import LinkAnalytics, RotatorAnalytics, BioAnalytics

__all__ = ["TrackEvent", "TrackResponse", "LinkAnalytics", "RotatorAnalytics", "BioAnalytics"]
